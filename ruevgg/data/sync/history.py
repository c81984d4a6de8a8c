"""Récupération paginée et cache des historiques de matchs.

Ce module contient :
- HistoryCache : ids de match par joueur, en ajout seul, jamais réduit
- HistoryFetcher : pagination (offset 0, P, 2P, ...) sous rate limit

Un échec de page arrête la pagination du joueur concerné et conserve ce
qui est déjà en cache ; seule une erreur d'autorisation remonte.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.sync.errors import ProviderError, UnauthorizedError
from ruevgg.data.sync.provider import MatchDataProvider
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter

logger = logging.getLogger(__name__)


# =============================================================================
# Cache
# =============================================================================


@dataclass
class PlayerHistory:
    """État de pagination d'un joueur.

    Attributes:
        match_ids: Ids reçus, dans l'ordre de réception.
        next_offset: Offset de la prochaine page à demander.
        pages_fetched: Nombre de pages obtenues avec succès.
        exhausted: Une page courte a été reçue (fin d'historique).
        failed: Une page a échoué ; plus aucune page ne sera demandée.
        last_error: Message de la dernière erreur rencontrée.
    """

    match_ids: list[str] = field(default_factory=list)
    next_offset: int = 0
    pages_fetched: int = 0
    exhausted: bool = False
    failed: bool = False
    last_error: str | None = None
    _known: set[str] = field(default_factory=set, repr=False)

    @property
    def can_fetch_more(self) -> bool:
        return not (self.exhausted or self.failed)

    def append(self, ids: Iterable[str]) -> int:
        """Ajoute les ids inconnus en fin de liste ; retourne le nombre ajouté."""
        added = 0
        for match_id in ids:
            if match_id in self._known:
                continue
            self._known.add(match_id)
            self.match_ids.append(match_id)
            added += 1
        return added


class HistoryCache:
    """Historiques par joueur (puuid → ids ordonnés).

    Les listes ne font que grandir pendant une analyse ; `clear()` n'est
    appelé qu'au démarrage d'une nouvelle analyse.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PlayerHistory] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def entry(self, puuid: str) -> PlayerHistory:
        history = self._entries.get(puuid)
        if history is None:
            history = PlayerHistory()
            self._entries[puuid] = history
        return history

    def lock_for(self, puuid: str) -> asyncio.Lock:
        lock = self._locks.get(puuid)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[puuid] = lock
        return lock

    def get(self, puuid: str) -> tuple[str, ...]:
        """Copie immuable des ids en cache pour un joueur."""
        history = self._entries.get(puuid)
        return tuple(history.match_ids) if history else ()

    def has_data(self, puuid: str) -> bool:
        history = self._entries.get(puuid)
        return bool(history and history.match_ids)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __contains__(self, puuid: object) -> bool:
        return puuid in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Fetcher
# =============================================================================


async def gather_or_cancel(coros: Iterable[Awaitable[Any]]) -> list[Any]:
    """`asyncio.gather` qui annule les tâches sœurs au premier échec."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def pages_for_depth(max_depth: int, page_size: int) -> int:
    """Nombre de pages nécessaires pour couvrir `max_depth` ids."""
    if max_depth <= 0 or page_size <= 0:
        return 0
    return math.ceil(max_depth / page_size)


class HistoryFetcher:
    """Remplit le HistoryCache page par page, sous rate limit."""

    def __init__(
        self,
        provider: MatchDataProvider,
        limiter: DualWindowRateLimiter,
        cache: HistoryCache,
        *,
        check_cancelled: Callable[[], None] | None = None,
    ) -> None:
        self._provider = provider
        self._limiter = limiter
        self._cache = cache
        self._check_cancelled = check_cancelled or (lambda: None)
        self.requests_made = 0

    @property
    def cache(self) -> HistoryCache:
        return self._cache

    async def fetch_history(
        self,
        player: PlayerIdentity,
        max_depth: int,
        page_size: int,
    ) -> tuple[str, ...]:
        """Pagine l'historique complet d'un joueur jusqu'à `max_depth` ids.

        S'arrête sur une page courte, sur un échec de page, ou quand
        l'offset cumulé atteint `max_depth`.

        Returns:
            Ids en cache pour ce joueur après pagination.
        """
        pages = pages_for_depth(max_depth, page_size)
        await self.ensure_pages(player, pages, page_size=page_size, max_depth=max_depth)
        return self._cache.get(player.puuid)

    async def fetch_histories(
        self,
        players: Iterable[PlayerIdentity],
        max_depth: int,
        page_size: int,
    ) -> dict[str, tuple[str, ...]]:
        """Pagine plusieurs joueurs en parallèle (une tâche par joueur)."""
        unique = list({p.puuid: p for p in players}.values())
        results = await gather_or_cancel(
            self.fetch_history(p, max_depth, page_size) for p in unique
        )
        return {p.puuid: ids for p, ids in zip(unique, results)}

    async def ensure_pages(
        self,
        player: PlayerIdentity,
        pages: int,
        *,
        page_size: int,
        max_depth: int,
    ) -> int:
        """Garantit qu'au moins `pages` pages sont en cache pour ce joueur.

        Idempotent : les pages déjà obtenues ne sont jamais redemandées, ce
        qui permet aux paires du mode duo de partager un même joueur.

        Returns:
            Nombre de pages obtenues pour ce joueur.
        """
        history = self._cache.entry(player.puuid)
        async with self._cache.lock_for(player.puuid):
            while (
                history.pages_fetched < pages
                and history.can_fetch_more
                and history.next_offset < max_depth
            ):
                count = min(page_size, max_depth - history.next_offset)
                await self._fetch_page(player, history, count)
        return history.pages_fetched

    async def ensure_pages_for_all(
        self,
        players: Iterable[PlayerIdentity],
        pages: int,
        *,
        page_size: int,
        max_depth: int,
    ) -> None:
        """`ensure_pages` en parallèle, avec barrière avant l'intersection."""
        await gather_or_cancel(
            self.ensure_pages(p, pages, page_size=page_size, max_depth=max_depth)
            for p in players
        )

    async def _fetch_page(self, player: PlayerIdentity, history: PlayerHistory, count: int) -> None:
        offset = history.next_offset
        self._check_cancelled()
        await self._limiter.acquire()
        self._check_cancelled()

        self.requests_made += 1
        try:
            ids = await self._provider.fetch_match_id_page(player.puuid, offset, count)
        except UnauthorizedError:
            raise
        except ProviderError as e:
            history.failed = True
            history.last_error = str(e)
            logger.warning(
                f"Historique {player.display_name}: page offset={offset} en échec "
                f"({e.kind.value}): {e}. Pagination arrêtée."
            )
            return

        added = history.append(ids)
        history.pages_fetched += 1
        history.next_offset = offset + count
        if len(ids) < count:
            history.exhausted = True

        logger.debug(
            f"Historique {player.display_name}: offset={offset} count={count} "
            f"reçus={len(ids)} nouveaux={added} total={len(history.match_ids)}"
        )


__all__ = [
    "PlayerHistory",
    "HistoryCache",
    "HistoryFetcher",
    "gather_or_cancel",
    "pages_for_depth",
]
