"""Recherche des parties jouées ensemble, dans la même équipe.

HOW IT WORKS:
1. Chaque joueur a au moins une page d'historique en cache
2. Candidats = intersection des historiques, dans l'ordre du premier joueur,
   moins les ids déjà évalués (différence d'ensembles, pas de découpage
   positionnel)
3. Pour chaque candidat : rate limit → détail du match → vérification que
   tous les joueurs sont présents avec le même teamId
4. Objectif non atteint et candidats épuisés : une page de plus pour
   chaque joueur, puis retour en 2
5. Fin quand l'objectif est atteint, quand la profondeur max est atteinte,
   ou quand plus aucun historique ne peut grandir

Les détails de match sont récupérés séquentiellement (une seule file par
analyse) ; seule la pagination des historiques est parallèle.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from ruevgg.data.domain.models.match import MatchRecord, ParticipantStat
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.sync.errors import ProviderError, ProviderErrorKind, UnauthorizedError
from ruevgg.data.sync.history import HistoryFetcher, pages_for_depth
from ruevgg.data.sync.models import SearchOutcome
from ruevgg.data.sync.provider import MatchDataProvider
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter

logger = logging.getLogger(__name__)

# Tentatives par détail de match : l'essai initial + un après backoff
DETAIL_ATTEMPTS = 2


@dataclass(frozen=True)
class CoOccurrenceEvent:
    """Match confirmé : tous les joueurs présents dans la même équipe.

    Attributes:
        match: Détail complet du match.
        participants: Stats de chaque joueur, dans l'ordre de la recherche.
        team_id: Équipe commune.
    """

    match: MatchRecord
    participants: tuple[ParticipantStat, ...]
    team_id: int

    @property
    def match_id(self) -> str:
        return self.match.match_id

    @property
    def queue_id(self) -> int:
        return self.match.queue_id

    @property
    def won(self) -> bool:
        return bool(self.participants) and self.participants[0].win


@dataclass
class SearchReport:
    """Bilan d'une recherche (équipe complète ou une paire)."""

    players: tuple[PlayerIdentity, ...]
    target: int
    outcome: SearchOutcome = SearchOutcome.EXHAUSTED
    events: list[CoOccurrenceEvent] = field(default_factory=list)
    pages_consulted: int = 0
    candidates_evaluated: int = 0
    candidates_rejected: int = 0
    detail_failures: int = 0

    @property
    def games_found(self) -> int:
        return len(self.events)

    @property
    def target_reached(self) -> bool:
        return self.games_found >= self.target


def compute_candidates(histories: Sequence[Sequence[str]], evaluated: set[str]) -> list[str]:
    """Intersection des historiques dans l'ordre du premier, moins `evaluated`."""
    if not histories:
        return []
    others = [set(h) for h in histories[1:]]
    return [
        match_id
        for match_id in histories[0]
        if match_id not in evaluated and all(match_id in o for o in others)
    ]


def verify_co_occurrence(
    record: MatchRecord,
    players: Sequence[PlayerIdentity],
) -> CoOccurrenceEvent | None:
    """Retourne l'événement si tous les joueurs sont dans la même équipe, sinon None."""
    participants = []
    for player in players:
        stat = record.find_participant(player.puuid)
        if stat is None:
            return None
        participants.append(stat)

    team_ids = {stat.team_id for stat in participants}
    if len(team_ids) != 1:
        return None

    return CoOccurrenceEvent(
        match=record,
        participants=tuple(participants),
        team_id=participants[0].team_id,
    )


class CoOccurrenceFinder:
    """Recherche incrémentale des parties communes.

    Le cache de détails est partagé entre les paires du mode duo : un match
    commun à plusieurs paires n'est récupéré qu'une fois.
    """

    def __init__(
        self,
        provider: MatchDataProvider,
        limiter: DualWindowRateLimiter,
        fetcher: HistoryFetcher,
        *,
        detail_cache: dict[str, MatchRecord] | None = None,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        check_cancelled: Callable[[], None] | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> None:
        self._provider = provider
        self._limiter = limiter
        self._fetcher = fetcher
        self._details = detail_cache if detail_cache is not None else {}
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._check_cancelled = check_cancelled or (lambda: None)
        self._progress = progress_callback or (lambda _msg: None)

    async def find(
        self,
        players: Sequence[PlayerIdentity],
        target: int,
        *,
        max_depth: int,
        page_size: int,
        on_event: Callable[[CoOccurrenceEvent], None] | None = None,
        label: str = "",
    ) -> SearchReport:
        """Recherche jusqu'à `target` parties communes aux `players`.

        Args:
            players: Joueurs (au moins 2).
            target: Nombre de parties visé.
            max_depth: Nombre max d'ids d'historique consultés par joueur.
            page_size: Taille d'une page d'historique.
            on_event: Appelé pour chaque partie confirmée.
            label: Préfixe des messages de progression (mode duo).

        Raises:
            UnauthorizedError: Clé API refusée (fatal).
            AnalysisCancelledError: Annulation demandée.
        """
        players = tuple(players)
        report = SearchReport(players=players, target=target)
        max_pages = pages_for_depth(max_depth, page_size)
        cache = self._fetcher.cache
        evaluated: set[str] = set()
        prefix = f"{label} " if label else ""

        depth = 1
        await self._fetcher.ensure_pages_for_all(
            players, depth, page_size=page_size, max_depth=max_depth
        )

        while True:
            self._check_cancelled()
            report.pages_consulted = depth
            candidates = compute_candidates([cache.get(p.puuid) for p in players], evaluated)
            logger.debug(f"{prefix}profondeur {depth}: {len(candidates)} nouveaux candidats")

            for match_id in candidates:
                if report.target_reached:
                    break
                self._check_cancelled()
                evaluated.add(match_id)
                report.candidates_evaluated += 1

                record = await self._get_detail(match_id)
                if record is None:
                    report.detail_failures += 1
                    continue

                event = verify_co_occurrence(record, players)
                if event is None:
                    report.candidates_rejected += 1
                    logger.debug(
                        f"{prefix}match {match_id} ignoré (joueur absent ou équipes différentes)"
                    )
                    continue

                report.events.append(event)
                if on_event is not None:
                    on_event(event)
                self._progress(f"{prefix}Trouvé {report.games_found}/{target} parties communes")

            if report.target_reached:
                report.outcome = SearchOutcome.COMPLETE
                break
            histories = [cache.entry(p.puuid) for p in players]
            if not any(h.can_fetch_more for h in histories) or any(
                not h.can_fetch_more and not h.match_ids for h in histories
            ):
                report.outcome = SearchOutcome.EXHAUSTED
                break
            if depth >= max_pages:
                report.outcome = SearchOutcome.CAPPED
                break

            depth += 1
            self._progress(
                f"{prefix}Recherche plus profonde (page {depth}/{max_pages}), "
                f"{report.games_found}/{target} trouvées"
            )
            await self._fetcher.ensure_pages_for_all(
                players, depth, page_size=page_size, max_depth=max_depth
            )

        logger.info(
            f"{prefix}recherche terminée ({report.outcome.value}): "
            f"{report.games_found}/{target} parties, {report.candidates_evaluated} candidats, "
            f"{report.pages_consulted} pages"
        )
        return report

    async def find_pairs(
        self,
        players: Sequence[PlayerIdentity],
        target: int,
        *,
        max_depth: int,
        page_size: int,
        on_event: Callable[[tuple[PlayerIdentity, PlayerIdentity], CoOccurrenceEvent], None]
        | None = None,
    ) -> list[SearchReport]:
        """Mode duo : la même recherche pour chaque paire non ordonnée.

        Les paires sont traitées l'une après l'autre et partagent le cache
        d'historiques, chaque page n'est donc demandée qu'une fois.
        """
        reports = []
        pairs = list(itertools.combinations(players, 2))
        for index, pair in enumerate(pairs, start=1):
            self._check_cancelled()
            label = f"[{index}/{len(pairs)}] {pair[0].game_name} + {pair[1].game_name}"
            self._progress(f"Analyse du duo {label}")

            callback = functools.partial(on_event, pair) if on_event is not None else None
            report = await self.find(
                pair,
                target,
                max_depth=max_depth,
                page_size=page_size,
                on_event=callback,
                label=label,
            )
            reports.append(report)
        return reports

    async def _get_detail(self, match_id: str) -> MatchRecord | None:
        """Détail d'un match via le cache ; None si le candidat doit être ignoré."""
        cached = self._details.get(match_id)
        if cached is not None:
            return cached

        for attempt in range(1, DETAIL_ATTEMPTS + 1):
            self._check_cancelled()
            await self._limiter.acquire()
            self._check_cancelled()
            try:
                record = await self._provider.fetch_match_detail(match_id)
            except UnauthorizedError:
                raise
            except ProviderError as e:
                if e.kind is ProviderErrorKind.DECODING:
                    logger.warning(f"Match {match_id}: réponse illisible (essai {attempt}): {e}")
                else:
                    logger.warning(f"Match {match_id}: erreur {e.kind.value} (essai {attempt}): {e}")

                if not e.retryable or attempt >= DETAIL_ATTEMPTS:
                    logger.warning(f"Match {match_id} ignoré")
                    return None

                wait = max(self._backoff_seconds, getattr(e, "retry_after", None) or 0.0)
                logger.info(f"Backoff {wait:.1f}s avant nouvel essai de {match_id}")
                await self._sleep(wait)
                continue

            self._details[match_id] = record
            return record

        return None


__all__ = [
    "CoOccurrenceEvent",
    "CoOccurrenceFinder",
    "SearchReport",
    "compute_candidates",
    "verify_co_occurrence",
]
