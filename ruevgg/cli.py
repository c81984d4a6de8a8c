"""Interface en ligne de commande de l'analyse d'équipe.

Usage:
    python -m ruevgg.cli --player "Faker#KR1" --player "Keria#KR1"
    python -m ruevgg.cli -p "A#EUW" -p "B#EUW" -p "C#EUW" --games 20 --duo
    python -m ruevgg.cli -p "A#EUW" -p "B#EUW" --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from ruevgg.analysis.performance import PlayerPerformanceSummary
from ruevgg.data.domain.models.stats import GroupStats
from ruevgg.data.sync.api_client import RiotAPIClient, get_api_key_from_env
from ruevgg.data.sync.engine import TeamAnalysisEngine
from ruevgg.data.sync.models import (
    GAME_COUNT_CHOICES,
    MAX_PLAYERS,
    MIN_PLAYERS,
    AnalysisOptions,
    AnalysisResult,
)
from ruevgg.utils.riot_id import try_parse_riot_id

logger = logging.getLogger(__name__)


def _get_usage_examples() -> str:
    return """
Exemples:
  python -m ruevgg.cli -p "Faker#KR1" -p "Keria#KR1" --region KR
  python -m ruevgg.cli -p "A#EUW" -p "B#EUW" -p "C#EUW" --games 20     # 20 parties
  python -m ruevgg.cli -p "A#EUW" -p "B#EUW" -p "C#EUW" --duo          # Chaque paire
  python -m ruevgg.cli -p "A#EUW" -p "B#EUW" --depth 200 --json        # Sortie JSON
"""


def create_argument_parser() -> argparse.ArgumentParser:
    """Crée le parser d'arguments du CLI.

    Returns:
        Parser configuré avec tous les arguments.
    """
    parser = argparse.ArgumentParser(
        description="Parties jouées ensemble (même équipe) entre 2 et 5 joueurs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_get_usage_examples(),
    )

    # ── Joueurs ──
    parser.add_argument(
        "-p",
        "--player",
        action="append",
        default=[],
        metavar="NOM#TAG",
        help=f"Riot ID d'un joueur (répéter {MIN_PLAYERS} à {MAX_PLAYERS} fois)",
    )

    # ── Recherche ──
    parser.add_argument(
        "--games",
        type=int,
        choices=GAME_COUNT_CHOICES,
        default=10,
        help="Nombre de parties communes recherchées (défaut: 10)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=100,
        help="Profondeur max d'historique par joueur, en matchs (défaut: 100)",
    )
    parser.add_argument(
        "--duo",
        action="store_true",
        help="Analyser chaque paire de joueurs séparément",
    )
    parser.add_argument(
        "--region",
        type=str,
        default="europe",
        help="Plateforme (EUW1, NA1, KR...) ou région (europe, americas, asia)",
    )

    # ── Sortie ──
    parser.add_argument("--json", action="store_true", help="Sortie JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés (DEBUG)")
    return parser


def _format_group(stats: GroupStats, title: str) -> list[str]:
    lines = [
        f"{title}: {stats.player_names}",
        f"  {stats.games_played_together} parties - {stats.wins}V / {stats.losses}D "
        f"({stats.win_rate:.1f}%)",
    ]
    for mode in stats.sorted_game_modes:
        lines.append(
            f"    {mode.mode_name}: {mode.games} parties, {mode.wins}V / {mode.losses}D "
            f"({mode.win_rate:.1f}%)"
        )
    return lines


def _format_performance(summary: PlayerPerformanceSummary) -> list[str]:
    lines = [
        f"{summary.player.display_name} (niveau {summary.player.level})",
        f"  {summary.total_games} parties, {summary.win_rate:.1f}% victoires, "
        f"KDA {summary.average_kda:.2f} "
        f"({summary.average_kills:.1f}/{summary.average_deaths:.1f}/{summary.average_assists:.1f})",
        f"  CS/min {summary.average_cs_per_minute:.1f} - Or/min {summary.average_gold_per_minute:.0f}"
        f" - Vision {summary.average_vision_score:.1f}",
    ]
    for champ in summary.champion_stats[:3]:
        lines.append(
            f"    {champ.champion_name}: {champ.games_played} parties, "
            f"{champ.win_rate:.0f}% victoires, {champ.kda_string}"
        )
    best = summary.best_kda_game
    if best is not None:
        lines.append(
            f"  Meilleure partie: {best.champion_name} {best.kda_string} "
            f"({best.mode_name}, {best.game_duration_formatted})"
        )
    return lines


def format_result(result: AnalysisResult) -> str:
    """Rapport texte d'une analyse."""
    lines = [result.to_message()]
    if not result.success:
        lines.extend(f"  - {err}" for err in result.errors)
        return "\n".join(lines)

    lines.extend(f"  ! {w}" for w in result.warnings)
    if result.team_stats is not None:
        lines.append("")
        lines.extend(_format_group(result.team_stats, "Équipe"))
    for duo in sorted(result.duo_stats, key=lambda d: -d.games_played_together):
        lines.append("")
        lines.extend(_format_group(duo, "Duo"))

    for summary in result.player_performances.values():
        if summary.total_games == 0:
            continue
        lines.append("")
        lines.extend(_format_performance(summary))
    return "\n".join(lines)


async def run_analysis(args: argparse.Namespace) -> AnalysisResult:
    """Exécute l'analyse décrite par les arguments CLI."""
    options = AnalysisOptions(
        target_games=args.games,
        max_search_depth=args.depth,
        region=args.region,
    )
    api_key = get_api_key_from_env()
    limiter = options.create_rate_limiter()
    async with RiotAPIClient(
        api_key=api_key,
        region=options.region,
        timeout_seconds=options.request_timeout_seconds,
        limiter=limiter,
    ) as client:
        engine = TeamAnalysisEngine(client, options, limiter=limiter)
        return await engine.analyze_riot_ids(args.player, duo=args.duo)


def main(argv: Sequence[str] | None = None) -> int:
    """Point d'entrée principal."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not MIN_PLAYERS <= len(args.player) <= MAX_PLAYERS:
        parser.error(f"entre {MIN_PLAYERS} et {MAX_PLAYERS} --player sont requis")
    invalid = [p for p in args.player if try_parse_riot_id(p) is None]
    if invalid:
        parser.error(f"Riot ID invalide(s): {', '.join(invalid)} (format attendu: Nom#TAG)")
    if args.depth <= 0:
        parser.error("--depth doit être > 0")

    try:
        result = asyncio.run(run_analysis(args))
    except ValueError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrompu par l'utilisateur")
        return 130

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_result(result))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
