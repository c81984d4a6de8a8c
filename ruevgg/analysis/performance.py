"""Performances individuelles sur les parties communes.

Ce module fournit :
- PlayerPerformanceSummary : synthèse immuable des parties d'un joueur
- Ventilations par champion et par poste, calculées avec Polars
- Sélection des meilleures parties (KDA, kills, CS)

Départage des ex-aequo : la partie la plus récente (game_creation) gagne ;
à date identique, la première rencontrée est conservée.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

import polars as pl

from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.domain.models.stats import (
    ChampionPerformance,
    PlayerMatchData,
    PositionPerformance,
)
from ruevgg.data.domain.refdata import normalize_position

MATCH_FRAME_SCHEMA: dict[str, Any] = {
    "match_id": pl.Utf8,
    "game_creation": pl.Datetime(time_zone="UTC"),
    "queue_id": pl.Int64,
    "mode_name": pl.Utf8,
    "champion_name": pl.Utf8,
    "position": pl.Utf8,
    "win": pl.Boolean,
    "kills": pl.Int64,
    "deaths": pl.Int64,
    "assists": pl.Int64,
    "total_cs": pl.Int64,
    "gold_earned": pl.Int64,
    "game_duration": pl.Int64,
    "total_damage_dealt": pl.Int64,
    "total_damage_taken": pl.Int64,
    "vision_score": pl.Int64,
}


def _kda_expr() -> pl.Expr:
    # KDA du match: (K + A) / max(1, D)
    return (pl.col("kills") + pl.col("assists")) / pl.when(pl.col("deaths") == 0).then(1).otherwise(
        pl.col("deaths")
    )


def matches_to_polars(matches: Iterable[PlayerMatchData]) -> pl.DataFrame:
    """Convertit des PlayerMatchData en DataFrame Polars (une ligne par partie)."""
    rows = [
        {
            "match_id": m.match_id,
            "game_creation": m.game_creation,
            "queue_id": m.queue_id,
            "mode_name": m.mode_name,
            "champion_name": m.champion_name,
            "position": normalize_position(m.team_position),
            "win": m.win,
            "kills": m.kills,
            "deaths": m.deaths,
            "assists": m.assists,
            "total_cs": m.total_cs,
            "gold_earned": m.gold_earned,
            "game_duration": m.game_duration,
            "total_damage_dealt": m.total_damage_dealt,
            "total_damage_taken": m.total_damage_taken,
            "vision_score": m.vision_score,
        }
        for m in matches
    ]
    if not rows:
        return pl.DataFrame(schema=MATCH_FRAME_SCHEMA)
    return pl.DataFrame(rows, schema=MATCH_FRAME_SCHEMA).with_columns(_kda_expr().alias("kda"))


def compute_champion_breakdown(matches: Sequence[PlayerMatchData]) -> list[ChampionPerformance]:
    """Ventilation par champion, triée par parties jouées puis par nom.

    Le KDA moyen est la moyenne des KDA par partie.
    """
    if not matches:
        return []

    grouped = (
        matches_to_polars(matches)
        .group_by("champion_name")
        .agg(
            pl.len().alias("games_played"),
            pl.col("win").sum().alias("wins"),
            pl.col("kda").mean().alias("average_kda"),
            pl.col("kills").sum().alias("total_kills"),
            pl.col("deaths").sum().alias("total_deaths"),
            pl.col("assists").sum().alias("total_assists"),
        )
        .sort(["games_played", "champion_name"], descending=[True, False])
    )

    result = []
    for row in grouped.iter_rows(named=True):
        games = int(row["games_played"])
        wins = int(row["wins"])
        result.append(
            ChampionPerformance(
                champion_name=str(row["champion_name"]),
                games_played=games,
                wins=wins,
                losses=games - wins,
                average_kda=float(row["average_kda"] or 0.0),
                total_kills=int(row["total_kills"]),
                total_deaths=int(row["total_deaths"]),
                total_assists=int(row["total_assists"]),
            )
        )
    return result


def compute_position_breakdown(matches: Sequence[PlayerMatchData]) -> list[PositionPerformance]:
    """Ventilation par poste (vide → FILL), triée par parties jouées puis par poste."""
    if not matches:
        return []

    grouped = (
        matches_to_polars(matches)
        .group_by("position")
        .agg(
            pl.len().alias("games_played"),
            pl.col("win").sum().alias("wins"),
        )
        .sort(["games_played", "position"], descending=[True, False])
    )

    result = []
    for row in grouped.iter_rows(named=True):
        games = int(row["games_played"])
        wins = int(row["wins"])
        result.append(
            PositionPerformance(
                position=str(row["position"]),
                games_played=games,
                wins=wins,
                losses=games - wins,
            )
        )
    return result


def _recency(m: PlayerMatchData) -> float:
    return m.game_creation.timestamp()


def _mean(values: Iterable[float], count: int) -> float:
    return sum(values) / count if count > 0 else 0.0


@dataclass(frozen=True)
class PlayerPerformanceSummary:
    """Synthèse des performances d'un joueur sur les parties communes.

    Toutes les métriques sont calculées à la demande depuis `matches` ;
    `filtered_by_queue` retourne une nouvelle synthèse sans modifier celle-ci.
    """

    player: PlayerIdentity
    matches: tuple[PlayerMatchData, ...] = ()

    # -------------------------------------------------------------------------
    # Totaux
    # -------------------------------------------------------------------------

    @property
    def total_games(self) -> int:
        return len(self.matches)

    @property
    def wins(self) -> int:
        return sum(1 for m in self.matches if m.win)

    @property
    def losses(self) -> int:
        return self.total_games - self.wins

    @property
    def win_rate(self) -> float:
        if self.total_games == 0:
            return 0.0
        return self.wins * 100.0 / self.total_games

    @property
    def total_kills(self) -> int:
        return sum(m.kills for m in self.matches)

    @property
    def total_deaths(self) -> int:
        return sum(m.deaths for m in self.matches)

    @property
    def total_assists(self) -> int:
        return sum(m.assists for m in self.matches)

    # -------------------------------------------------------------------------
    # Moyennes
    # -------------------------------------------------------------------------

    @property
    def average_kills(self) -> float:
        return _mean((m.kills for m in self.matches), self.total_games)

    @property
    def average_deaths(self) -> float:
        return _mean((m.deaths for m in self.matches), self.total_games)

    @property
    def average_assists(self) -> float:
        return _mean((m.assists for m in self.matches), self.total_games)

    @property
    def average_kda(self) -> float:
        """KDA agrégé : (ΣK + ΣA) / max(ΣD, 1)."""
        return (self.total_kills + self.total_assists) / max(self.total_deaths, 1)

    @property
    def average_cs(self) -> float:
        return _mean((m.total_cs for m in self.matches), self.total_games)

    @property
    def average_cs_per_minute(self) -> float:
        return _mean((m.cs_per_minute for m in self.matches), self.total_games)

    @property
    def average_gold(self) -> float:
        return _mean((m.gold_earned for m in self.matches), self.total_games)

    @property
    def average_gold_per_minute(self) -> float:
        return _mean((m.gold_per_minute for m in self.matches), self.total_games)

    @property
    def average_damage_dealt(self) -> float:
        return _mean((m.total_damage_dealt for m in self.matches), self.total_games)

    @property
    def average_damage_taken(self) -> float:
        return _mean((m.total_damage_taken for m in self.matches), self.total_games)

    @property
    def average_vision_score(self) -> float:
        return _mean((m.vision_score for m in self.matches), self.total_games)

    # -------------------------------------------------------------------------
    # Ventilations
    # -------------------------------------------------------------------------

    @property
    def champion_stats(self) -> list[ChampionPerformance]:
        return compute_champion_breakdown(self.matches)

    @property
    def position_stats(self) -> list[PositionPerformance]:
        return compute_position_breakdown(self.matches)

    # -------------------------------------------------------------------------
    # Meilleures / pires parties
    # -------------------------------------------------------------------------

    @property
    def best_kda_game(self) -> PlayerMatchData | None:
        if not self.matches:
            return None
        return max(self.matches, key=lambda m: (m.kda, _recency(m)))

    @property
    def worst_kda_game(self) -> PlayerMatchData | None:
        if not self.matches:
            return None
        return min(self.matches, key=lambda m: (m.kda, -_recency(m)))

    @property
    def highest_kill_game(self) -> PlayerMatchData | None:
        if not self.matches:
            return None
        return max(self.matches, key=lambda m: (m.kills, _recency(m)))

    @property
    def highest_cs_game(self) -> PlayerMatchData | None:
        if not self.matches:
            return None
        return max(self.matches, key=lambda m: (m.total_cs, _recency(m)))

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    def filtered_by_queue(self, queue_id: int | None) -> PlayerPerformanceSummary:
        """Nouvelle synthèse restreinte à une file ; None = toutes les files."""
        if queue_id is None:
            return self
        return replace(self, matches=tuple(m for m in self.matches if m.queue_id == queue_id))

    def to_polars(self) -> pl.DataFrame:
        return matches_to_polars(self.matches)

    def to_dict(self) -> dict[str, Any]:
        """Convertit en dict pour sérialisation JSON."""
        best = self.best_kda_game
        return {
            "player": self.player.display_name,
            "puuid": self.player.puuid,
            "total_games": self.total_games,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 1),
            "average_kda": round(self.average_kda, 2),
            "average_kills": round(self.average_kills, 1),
            "average_deaths": round(self.average_deaths, 1),
            "average_assists": round(self.average_assists, 1),
            "average_cs_per_minute": round(self.average_cs_per_minute, 1),
            "average_gold_per_minute": round(self.average_gold_per_minute, 1),
            "average_vision_score": round(self.average_vision_score, 1),
            "best_kda_game": best.match_id if best else None,
            "champions": [
                {
                    "champion_name": c.champion_name,
                    "games_played": c.games_played,
                    "win_rate": round(c.win_rate, 1),
                    "average_kda": round(c.average_kda, 2),
                }
                for c in self.champion_stats
            ],
            "positions": [
                {
                    "position": p.position,
                    "games_played": p.games_played,
                    "win_rate": round(p.win_rate, 1),
                }
                for p in self.position_stats
            ],
        }


__all__ = [
    "PlayerPerformanceSummary",
    "matches_to_polars",
    "compute_champion_breakdown",
    "compute_position_breakdown",
]
