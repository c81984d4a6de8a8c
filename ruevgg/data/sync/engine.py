"""Moteur d'analyse d'équipe.

Ce module contient le TeamAnalysisEngine qui orchestre tout le pipeline :
Riot ID → résolution → historiques → parties communes → statistiques

Usage:
    async with RiotAPIClient(region="EUW1") as client:
        engine = TeamAnalysisEngine(client)
        result = await engine.analyze_riot_ids(["Faker#KR1", "Keria#KR1"])
        print(result.to_message())

    # Mode duo : chaque paire est analysée séparément
    result = await engine.analyze_riot_ids(ids, duo=True)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from types import MappingProxyType

from ruevgg.analysis.aggregator import StatsAggregator
from ruevgg.analysis.co_occurrence import CoOccurrenceFinder, SearchReport
from ruevgg.data.domain.models.match import MatchRecord
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.sync.errors import (
    AnalysisCancelledError,
    NotFoundError,
    ProviderError,
    UnauthorizedError,
)
from ruevgg.data.sync.history import HistoryCache, HistoryFetcher, gather_or_cancel
from ruevgg.data.sync.models import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    AnalysisMode,
    AnalysisOptions,
    AnalysisResult,
    AnalysisStatus,
    SearchOutcome,
    status_from_outcome,
)
from ruevgg.data.sync.provider import MatchDataProvider
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter
from ruevgg.utils.riot_id import RiotId, parse_riot_id

logger = logging.getLogger(__name__)


def _validate_player_count(count: int) -> None:
    if not MIN_PLAYERS <= count <= MAX_PLAYERS:
        raise ValueError(
            f"Une analyse nécessite entre {MIN_PLAYERS} et {MAX_PLAYERS} joueurs ({count} fournis)"
        )


def _combine_outcomes(reports: Sequence[SearchReport]) -> SearchOutcome:
    """Issue globale du mode duo : COMPLETE seulement si toutes les paires le sont."""
    outcomes = {r.outcome for r in reports}
    if not outcomes or outcomes == {SearchOutcome.COMPLETE}:
        return SearchOutcome.COMPLETE
    if SearchOutcome.CAPPED in outcomes:
        return SearchOutcome.CAPPED
    return SearchOutcome.EXHAUSTED


class TeamAnalysisEngine:
    """Moteur de recherche des parties communes entre 2 et 5 joueurs.

    Le fournisseur de données et le rate limiter sont injectés ; le cache
    d'historiques et le cache de détails appartiennent à l'analyse en cours
    et sont vidés au début de chaque analyse.

    Une seule analyse à la fois par instance.
    """

    def __init__(
        self,
        provider: MatchDataProvider,
        options: AnalysisOptions | None = None,
        *,
        limiter: DualWindowRateLimiter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        progress_callback: Callable[[str], None] | None = None,
    ) -> None:
        """
        Args:
            provider: Source des données (RiotAPIClient ou équivalent).
            options: Options par défaut des analyses.
            limiter: Rate limiter partagé (créé depuis les options si None).
            sleep: Fonction d'attente utilisée pour le backoff.
            progress_callback: Appelé à chaque changement de progression.
        """
        self._provider = provider
        self._options = options or AnalysisOptions()
        self._limiter = limiter or self._options.create_rate_limiter()
        self._sleep = sleep
        self._progress_callback = progress_callback

        self._history = HistoryCache()
        self._details: dict[str, MatchRecord] = {}
        self._progress = ""
        self._cancel_requested = False
        self._running = False

    # =========================================================================
    # État
    # =========================================================================

    @property
    def options(self) -> AnalysisOptions:
        return self._options

    @property
    def progress(self) -> str:
        """Dernier message de progression (la dernière mise à jour gagne)."""
        return self._progress

    @property
    def limiter(self) -> DualWindowRateLimiter:
        return self._limiter

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def history_cache(self) -> HistoryCache:
        return self._history

    def cancel(self) -> None:
        """Demande l'abandon de l'analyse en cours (pris en compte au prochain point de contrôle)."""
        if self._running:
            logger.info("Annulation demandée")
        self._cancel_requested = True

    def reset(self) -> None:
        """Vide caches, progression et demande d'annulation."""
        self._history.clear()
        self._details.clear()
        self._progress = ""
        self._cancel_requested = False

    def _check_cancelled(self) -> None:
        if self._cancel_requested:
            raise AnalysisCancelledError("Analyse annulée")

    def _set_progress(self, message: str) -> None:
        self._progress = message
        logger.info(message)
        if self._progress_callback is not None:
            self._progress_callback(message)

    # =========================================================================
    # Résolution des joueurs
    # =========================================================================

    async def resolve_players(
        self,
        riot_ids: Sequence[RiotId | str],
    ) -> tuple[list[PlayerIdentity], list[str]]:
        """Résout les Riot ID en parallèle.

        Un jeton est pris par Riot ID. Un fournisseur qui émet plusieurs
        requêtes par résolution doit partager `self.limiter` pour les
        suivantes (`RiotAPIClient(limiter=...)`).

        Returns:
            (joueurs trouvés dans l'ordre de saisie, Riot ID introuvables).

        Raises:
            ValueError: Riot ID mal formé.
            UnauthorizedError: Clé API refusée.
            ProviderError: Toute autre erreur de résolution.
        """
        parsed = [r if isinstance(r, RiotId) else parse_riot_id(r) for r in riot_ids]

        async def _resolve(riot_id: RiotId) -> PlayerIdentity | None:
            self._check_cancelled()
            await self._limiter.acquire()
            self._check_cancelled()
            try:
                return await self._provider.resolve_player(riot_id.game_name, riot_id.tag_line)
            except NotFoundError:
                logger.warning(f"Joueur introuvable: {riot_id}")
                return None

        resolved = await gather_or_cancel(_resolve(r) for r in parsed)

        players: list[PlayerIdentity] = []
        not_found: list[str] = []
        seen: set[str] = set()
        for riot_id, player in zip(parsed, resolved):
            if player is None:
                not_found.append(str(riot_id))
            elif player.puuid not in seen:
                seen.add(player.puuid)
                players.append(player)
        return players, not_found

    async def analyze_riot_ids(
        self,
        riot_ids: Sequence[RiotId | str],
        *,
        duo: bool = False,
        options: AnalysisOptions | None = None,
    ) -> AnalysisResult:
        """Résout puis analyse une liste de Riot ID ("Nom#Tag").

        Les joueurs introuvables sont exclus et listés dans `not_found` ;
        s'il en reste moins de deux, le statut est PLAYER_NOT_FOUND.
        """
        _validate_player_count(len(riot_ids))
        if self._running:
            raise RuntimeError("Une analyse est déjà en cours sur ce moteur")

        opts = options or self._options
        mode = AnalysisMode.DUO if duo else AnalysisMode.TEAM
        started_at = datetime.now(timezone.utc)
        start_time = time.time()

        def _fail(status: AnalysisStatus, message: str) -> AnalysisResult:
            return self._failure(mode, status, message, opts, started_at, start_time)

        self._running = True
        self._cancel_requested = False
        try:
            self._set_progress(f"Recherche de {len(riot_ids)} joueurs...")
            players, not_found = await self.resolve_players(riot_ids)
        except UnauthorizedError as e:
            return _fail(AnalysisStatus.UNAUTHORIZED, str(e))
        except AnalysisCancelledError:
            return _fail(AnalysisStatus.CANCELLED, "Analyse annulée")
        except ProviderError as e:
            return _fail(
                AnalysisStatus.INSUFFICIENT_DATA,
                f"Résolution des joueurs impossible: {e}",
            )
        finally:
            self._running = False

        if len(players) < MIN_PLAYERS:
            if not_found:
                message = "Joueurs introuvables: " + ", ".join(not_found)
            else:
                message = "Au moins deux joueurs distincts sont nécessaires"
            self._set_progress(message)
            return self._failure(
                mode,
                AnalysisStatus.PLAYER_NOT_FOUND,
                message,
                opts,
                started_at,
                start_time,
                players=players,
                not_found=not_found,
            )

        return await self._run(
            players,
            mode,
            opts,
            not_found=not_found,
            started_at=started_at,
            start_time=start_time,
        )

    # =========================================================================
    # Analyses
    # =========================================================================

    async def analyze_team(
        self,
        players: Sequence[PlayerIdentity],
        options: AnalysisOptions | None = None,
    ) -> AnalysisResult:
        """Parties où TOUS les joueurs étaient dans la même équipe."""
        _validate_player_count(len(players))
        return await self._run(tuple(players), AnalysisMode.TEAM, options or self._options)

    async def analyze_duos(
        self,
        players: Sequence[PlayerIdentity],
        options: AnalysisOptions | None = None,
    ) -> AnalysisResult:
        """Même recherche pour chaque paire de joueurs (C(N,2) paires)."""
        _validate_player_count(len(players))
        return await self._run(tuple(players), AnalysisMode.DUO, options or self._options)

    async def _run(
        self,
        players: Sequence[PlayerIdentity],
        mode: AnalysisMode,
        options: AnalysisOptions,
        *,
        not_found: Sequence[str] = (),
        started_at: datetime | None = None,
        start_time: float | None = None,
    ) -> AnalysisResult:
        """Implémentation commune des modes équipe et duo."""
        if self._running:
            raise RuntimeError("Une analyse est déjà en cours sur ce moteur")

        players = tuple(players)
        started_at = started_at or datetime.now(timezone.utc)
        start_time = start_time if start_time is not None else time.time()

        self._running = True
        self._cancel_requested = False
        self._history.clear()
        self._details.clear()

        aggregator = StatsAggregator(players)
        fetcher = HistoryFetcher(
            self._provider,
            self._limiter,
            self._history,
            check_cancelled=self._check_cancelled,
        )
        finder = CoOccurrenceFinder(
            self._provider,
            self._limiter,
            fetcher,
            detail_cache=self._details,
            backoff_seconds=options.transient_backoff_seconds,
            sleep=self._sleep,
            check_cancelled=self._check_cancelled,
            progress_callback=self._set_progress,
        )

        def _fail(status: AnalysisStatus, message: str) -> AnalysisResult:
            return self._failure(
                mode,
                status,
                message,
                options,
                started_at,
                start_time,
                players=players,
                not_found=not_found,
            )

        try:
            self._set_progress(f"Récupération des historiques de {len(players)} joueurs...")
            await fetcher.ensure_pages_for_all(
                players, 1, page_size=options.page_size, max_depth=options.max_search_depth
            )

            missing = [p for p in players if not self._history.has_data(p.puuid)]
            failed = [p for p in missing if self._history.entry(p.puuid).failed]
            required = len(players) if mode is AnalysisMode.TEAM else MIN_PLAYERS
            if failed and len(players) - len(failed) < required:
                names = ", ".join(p.display_name for p in failed)
                self._set_progress(f"Données insuffisantes: historique indisponible pour {names}")
                return _fail(
                    AnalysisStatus.INSUFFICIENT_DATA,
                    f"Historique indisponible pour {names}",
                )

            self._set_progress("Recherche des parties communes...")
            if mode is AnalysisMode.TEAM:
                reports = [
                    await finder.find(
                        players,
                        options.target_games,
                        max_depth=options.max_search_depth,
                        page_size=options.page_size,
                        on_event=aggregator.add_team_event,
                    )
                ]
            else:
                reports = await finder.find_pairs(
                    players,
                    options.target_games,
                    max_depth=options.max_search_depth,
                    page_size=options.page_size,
                    on_event=aggregator.add_duo_event,
                )
        except UnauthorizedError as e:
            self._set_progress("Clé API refusée")
            return _fail(AnalysisStatus.UNAUTHORIZED, str(e))
        except AnalysisCancelledError:
            self._set_progress("Analyse annulée")
            return _fail(AnalysisStatus.CANCELLED, "Analyse annulée")
        finally:
            self._running = False

        games_found = sum(r.games_found for r in reports)
        status = status_from_outcome(_combine_outcomes(reports), games_found)

        warnings = [
            f"Historique partiel pour {p.display_name}: {self._history.entry(p.puuid).last_error}"
            for p in players
            if self._history.entry(p.puuid).failed
        ]
        warnings.extend(f"Joueur introuvable: {name}" for name in not_found)

        if status is AnalysisStatus.NO_SHARED_GAMES:
            self._set_progress("Aucune partie commune trouvée")
        else:
            self._set_progress(f"Terminé: {games_found} parties communes ({status.value})")

        return AnalysisResult(
            mode=mode,
            status=status,
            players=players,
            team_stats=aggregator.team_stats() if mode is AnalysisMode.TEAM else None,
            duo_stats=aggregator.duo_stats() if mode is AnalysisMode.DUO else (),
            player_performances=aggregator.performance_summaries(),
            games_found=games_found,
            target_games=options.target_games,
            matches_evaluated=sum(r.candidates_evaluated for r in reports),
            not_found=tuple(not_found),
            warnings=tuple(warnings),
            duration_seconds=time.time() - start_time,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )

    def _failure(
        self,
        mode: AnalysisMode,
        status: AnalysisStatus,
        message: str,
        options: AnalysisOptions,
        started_at: datetime,
        start_time: float,
        *,
        players: Sequence[PlayerIdentity] = (),
        not_found: Sequence[str] = (),
    ) -> AnalysisResult:
        """Résultat d'erreur : aucune statistique partielle."""
        logger.error(f"Analyse interrompue ({status.value}): {message}")
        return AnalysisResult(
            mode=mode,
            status=status,
            players=tuple(players),
            player_performances=MappingProxyType({}),
            target_games=options.target_games,
            not_found=tuple(not_found),
            errors=(message,),
            duration_seconds=time.time() - start_time,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )


__all__ = ["TeamAnalysisEngine"]
