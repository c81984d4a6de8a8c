"""Tests de la pagination des historiques et du cache.

Couvre :
- arrêt sur page courte / profondeur max / échec de page
- idempotence de ensure_pages (partage entre paires)
- croissance monotone du cache
- annulation des tâches sœurs
"""

from __future__ import annotations

import asyncio

import pytest

from ruevgg.data.sync.errors import (
    AnalysisCancelledError,
    NotFoundError,
    TransientError,
    UnauthorizedError,
)
from ruevgg.data.sync.history import (
    HistoryCache,
    HistoryFetcher,
    PlayerHistory,
    gather_or_cancel,
    pages_for_depth,
)


def _ids(prefix: str, n: int) -> list[str]:
    return [f"{prefix}_{i}" for i in range(n)]


class TestPagesForDepth:
    def test_exact_and_partial_pages(self):
        assert pages_for_depth(100, 20) == 5
        assert pages_for_depth(30, 20) == 2
        assert pages_for_depth(20, 20) == 1

    def test_degenerate_values(self):
        assert pages_for_depth(0, 20) == 0
        assert pages_for_depth(100, 0) == 0


class TestPlayerHistory:
    def test_append_skips_known_ids(self):
        history = PlayerHistory()
        assert history.append(["a", "b"]) == 2
        assert history.append(["b", "c"]) == 1
        assert history.match_ids == ["a", "b", "c"]

    def test_can_fetch_more(self):
        history = PlayerHistory()
        assert history.can_fetch_more
        history.exhausted = True
        assert not history.can_fetch_more


class TestHistoryCache:
    def test_get_unknown_player_is_empty(self):
        cache = HistoryCache()
        assert cache.get("nobody") == ()
        assert not cache.has_data("nobody")

    def test_clear(self):
        cache = HistoryCache()
        cache.entry("p1").append(["m1"])
        assert "p1" in cache
        cache.clear()
        assert "p1" not in cache
        assert len(cache) == 0


class TestHistoryFetcher:
    @pytest.mark.asyncio
    async def test_stops_on_short_page(self, fake_provider, fast_limiter, player_builder):
        """Une page plus courte que demandé signale la fin de l'historique."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 25))
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        ids = await fetcher.fetch_history(player, max_depth=100, page_size=10)

        assert ids == tuple(_ids("m", 25))
        assert fake_provider.pages_for(player.puuid) == [
            (player.puuid, 0, 10),
            (player.puuid, 10, 10),
            (player.puuid, 20, 10),
        ]
        assert fetcher.cache.entry(player.puuid).exhausted

    @pytest.mark.asyncio
    async def test_stops_at_max_depth(self, fake_provider, fast_limiter, player_builder):
        """L'offset cumulé ne dépasse jamais max_depth (dernière page réduite)."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 100))
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        ids = await fetcher.fetch_history(player, max_depth=30, page_size=20)

        assert len(ids) == 30
        assert fake_provider.pages_for(player.puuid) == [
            (player.puuid, 0, 20),
            (player.puuid, 20, 10),
        ]
        assert not fetcher.cache.entry(player.puuid).exhausted

    @pytest.mark.asyncio
    async def test_failed_page_keeps_cached_ids(self, fake_provider, fast_limiter, player_builder):
        """Un échec de page arrête la pagination du joueur sans vider son cache."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 100))
        fake_provider.page_errors[(player.puuid, 20)] = TransientError("503", status=503)
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        ids = await fetcher.fetch_history(player, max_depth=100, page_size=20)

        assert ids == tuple(_ids("m", 20))
        history = fetcher.cache.entry(player.puuid)
        assert history.failed
        assert "503" in (history.last_error or "")
        assert len(fake_provider.pages_for(player.puuid)) == 2

    @pytest.mark.asyncio
    async def test_not_found_page_marks_failed(self, fake_provider, fast_limiter, player_builder):
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 10))
        fake_provider.page_errors[(player.puuid, 0)] = NotFoundError("404", status=404)
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        ids = await fetcher.fetch_history(player, max_depth=100, page_size=20)

        assert ids == ()
        assert fetcher.cache.entry(player.puuid).failed

    @pytest.mark.asyncio
    async def test_unauthorized_propagates(self, fake_provider, fast_limiter, player_builder):
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 10))
        fake_provider.page_errors[(player.puuid, 0)] = UnauthorizedError("401", status=401)
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        with pytest.raises(UnauthorizedError):
            await fetcher.fetch_history(player, max_depth=100, page_size=20)

    @pytest.mark.asyncio
    async def test_ensure_pages_is_idempotent(self, fake_provider, fast_limiter, player_builder):
        """Les pages déjà en cache ne sont jamais redemandées."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 100))
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        await fetcher.ensure_pages(player, 1, page_size=20, max_depth=100)
        await fetcher.ensure_pages(player, 1, page_size=20, max_depth=100)
        pages = await fetcher.ensure_pages(player, 2, page_size=20, max_depth=100)

        assert pages == 2
        assert len(fake_provider.pages_for(player.puuid)) == 2
        assert fetcher.requests_made == 2

    @pytest.mark.asyncio
    async def test_cache_grows_monotonically(self, fake_provider, fast_limiter, player_builder):
        """Chaque expansion conserve les ids précédents, dans le même ordre."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 60))
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        previous: tuple[str, ...] = ()
        for depth in range(1, 4):
            await fetcher.ensure_pages(player, depth, page_size=20, max_depth=100)
            current = fetcher.cache.get(player.puuid)
            assert len(current) >= len(previous)
            assert current[: len(previous)] == previous
            previous = current

        assert len(previous) == 60

    @pytest.mark.asyncio
    async def test_overlapping_pages_are_deduplicated(
        self, fake_provider, fast_limiter, player_builder
    ):
        """Un id décalé d'une page à l'autre n'est stocké qu'une fois."""
        player = player_builder("Alpha")
        fake_provider.add_player(player, ["m1", "m2", "m2", "m3"])
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        ids = await fetcher.fetch_history(player, max_depth=10, page_size=2)

        assert ids == ("m1", "m2", "m3")

    @pytest.mark.asyncio
    async def test_fetch_histories_concurrently(self, fake_provider, fast_limiter, player_builder):
        alpha = player_builder("Alpha")
        beta = player_builder("Beta")
        fake_provider.add_player(alpha, _ids("a", 5))
        fake_provider.add_player(beta, _ids("b", 7))
        fetcher = HistoryFetcher(fake_provider, fast_limiter, HistoryCache())

        result = await fetcher.fetch_histories([alpha, beta], max_depth=100, page_size=20)

        assert result == {alpha.puuid: tuple(_ids("a", 5)), beta.puuid: tuple(_ids("b", 7))}

    @pytest.mark.asyncio
    async def test_cancellation_checked_before_request(
        self, fake_provider, fast_limiter, player_builder
    ):
        player = player_builder("Alpha")
        fake_provider.add_player(player, _ids("m", 10))

        def _cancelled() -> None:
            raise AnalysisCancelledError("stop")

        fetcher = HistoryFetcher(
            fake_provider, fast_limiter, HistoryCache(), check_cancelled=_cancelled
        )

        with pytest.raises(AnalysisCancelledError):
            await fetcher.fetch_history(player, max_depth=100, page_size=20)
        assert fake_provider.page_calls == []


class TestGatherOrCancel:
    @pytest.mark.asyncio
    async def test_returns_results_in_order(self):
        async def _value(v: int) -> int:
            await asyncio.sleep(0)
            return v

        assert await gather_or_cancel(_value(i) for i in range(3)) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_cancels_siblings_on_failure(self):
        """Le premier échec annule les autres tâches encore en cours."""
        cancelled = asyncio.Event()

        async def _slow() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def _boom() -> None:
            await asyncio.sleep(0)
            raise UnauthorizedError("401", status=401)

        with pytest.raises(UnauthorizedError):
            await gather_or_cancel([_slow(), _boom()])

        assert cancelled.is_set()
