"""Tests du client API Riot (session aiohttp simulée)."""

from __future__ import annotations

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from ruevgg.data.sync import api_client
from ruevgg.data.sync.api_client import (
    ApiKey,
    RiotAPIClient,
    error_for_status,
    get_api_key_from_env,
    resolve_routing,
)
from ruevgg.data.sync.errors import (
    DecodingError,
    NotFoundError,
    ProviderErrorKind,
    TransientError,
    UnauthorizedError,
)
from ruevgg.data.sync.provider import MatchDataProvider


def _response(status: int = 200, payload=None, headers=None, json_error: Exception | None = None):
    resp_mock = AsyncMock()
    resp_mock.status = status
    resp_mock.headers = headers or {}
    if json_error is not None:
        resp_mock.json = AsyncMock(side_effect=json_error)
    else:
        resp_mock.json = AsyncMock(return_value=payload)
    resp_mock.__aenter__ = AsyncMock(return_value=resp_mock)
    resp_mock.__aexit__ = AsyncMock(return_value=False)
    return resp_mock


def _session(*responses) -> MagicMock:
    session = MagicMock()
    session.get = MagicMock(side_effect=list(responses))
    return session


def _client(session, region: str = "EUW1") -> RiotAPIClient:
    return RiotAPIClient(api_key=ApiKey("test-key"), region=region, session=session)


class TestRouting:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("EUW1", ("EUW1", "europe")),
            ("na1", ("NA1", "americas")),
            ("KR", ("KR", "asia")),
            ("europe", ("EUW1", "europe")),
            ("Americas", ("NA1", "americas")),
            ("", ("EUW1", "europe")),
            ("mars", ("EUW1", "europe")),
        ],
    )
    def test_resolve_routing(self, value, expected):
        assert resolve_routing(value) == expected


class TestErrorForStatus:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (401, ProviderErrorKind.UNAUTHORIZED),
            (403, ProviderErrorKind.UNAUTHORIZED),
            (404, ProviderErrorKind.NOT_FOUND),
            (429, ProviderErrorKind.TRANSIENT),
            (500, ProviderErrorKind.TRANSIENT),
            (503, ProviderErrorKind.TRANSIENT),
        ],
    )
    def test_mapping(self, status, kind):
        error = error_for_status(status, "https://x")
        assert error.kind is kind
        assert error.status == status

    def test_retryable(self):
        assert error_for_status(503, "u").retryable
        assert not error_for_status(404, "u").retryable
        assert not error_for_status(401, "u").retryable


class TestApiKey:
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setattr(api_client, "REPO_ROOT", tmp_path)
        monkeypatch.setenv("RIOT_API_KEY", "  RGAPI-123  ")

        key = get_api_key_from_env()

        assert key.value == "RGAPI-123"
        assert key.headers == {"X-Riot-Token": "RGAPI-123"}
        assert "RGAPI" not in repr(key)

    def test_missing_key(self, monkeypatch, tmp_path):
        monkeypatch.setattr(api_client, "REPO_ROOT", tmp_path)
        monkeypatch.delenv("RIOT_API_KEY", raising=False)

        with pytest.raises(ValueError, match="RIOT_API_KEY"):
            get_api_key_from_env()

    def test_read_from_dotenv_local_first(self, monkeypatch, tmp_path):
        """.env.local est prioritaire sur .env ; l'environnement n'est pas modifié."""
        monkeypatch.delenv("RIOT_API_KEY", raising=False)
        (tmp_path / ".env").write_text("RIOT_API_KEY=from-env-file\n", encoding="utf-8")
        (tmp_path / ".env.local").write_text(
            "# commentaire\nOTHER=1\nexport RIOT_API_KEY=\"from-local\"\n", encoding="utf-8"
        )

        key = get_api_key_from_env(dotenv_dir=tmp_path)

        assert key.value == "from-local"
        assert "RIOT_API_KEY" not in os.environ

    def test_environment_wins_over_dotenv(self, monkeypatch, tmp_path):
        monkeypatch.setenv("RIOT_API_KEY", "from-environ")
        (tmp_path / ".env").write_text("RIOT_API_KEY=from-env-file\n", encoding="utf-8")

        assert get_api_key_from_env(dotenv_dir=tmp_path).value == "from-environ"

    def test_empty_dotenv_value_ignored(self, monkeypatch, tmp_path):
        monkeypatch.delenv("RIOT_API_KEY", raising=False)
        (tmp_path / ".env.local").write_text("RIOT_API_KEY=\n", encoding="utf-8")
        (tmp_path / ".env").write_text("RIOT_API_KEY=fallback\n", encoding="utf-8")

        assert get_api_key_from_env(dotenv_dir=tmp_path).value == "fallback"


class TestRiotAPIClient:
    def test_implements_provider(self):
        assert isinstance(_client(MagicMock()), MatchDataProvider)

    @pytest.mark.asyncio
    async def test_session_required(self):
        client = RiotAPIClient(api_key=ApiKey("k"))
        with pytest.raises(RuntimeError):
            await client.fetch_match_detail("EUW1_1")

    @pytest.mark.asyncio
    async def test_fetch_match_id_page(self):
        session = _session(_response(payload=["EUW1_3", "EUW1_2"]))

        async with _client(session) as client:
            ids = await client.fetch_match_id_page("abc", 20, 20)

        assert ids == ["EUW1_3", "EUW1_2"]
        args, kwargs = session.get.call_args
        assert args[0] == "https://europe.api.riotgames.com/lol/match/v5/matches/by-puuid/abc/ids"
        assert kwargs["params"] == {"start": 20, "count": 20}
        assert kwargs["headers"] == {"X-Riot-Token": "test-key"}

    @pytest.mark.asyncio
    async def test_id_page_not_a_list(self):
        session = _session(_response(payload={"oops": True}))

        async with _client(session) as client:
            with pytest.raises(DecodingError):
                await client.fetch_match_id_page("abc", 0, 20)

    @pytest.mark.asyncio
    async def test_fetch_match_detail(self, match_payload_builder, participant_builder):
        payload = match_payload_builder("EUW1_1", [participant_builder("abc")])
        session = _session(_response(payload=payload))

        async with _client(session) as client:
            record = await client.fetch_match_detail("EUW1_1")

        assert record.match_id == "EUW1_1"
        assert session.get.call_args.args[0].endswith("/lol/match/v5/matches/EUW1_1")

    @pytest.mark.asyncio
    async def test_malformed_detail_is_decoding_error(self):
        session = _session(_response(payload={"metadata": {}}))

        async with _client(session) as client:
            with pytest.raises(DecodingError):
                await client.fetch_match_detail("EUW1_1")

    @pytest.mark.asyncio
    async def test_invalid_json_is_decoding_error(self):
        session = _session(_response(json_error=ValueError("Expecting value")))

        async with _client(session) as client:
            with pytest.raises(DecodingError) as exc_info:
                await client.fetch_match_detail("EUW1_1")
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error_type",
        [(401, UnauthorizedError), (403, UnauthorizedError), (404, NotFoundError), (500, TransientError)],
    )
    async def test_status_errors(self, status, error_type):
        session = _session(_response(status=status))

        async with _client(session) as client:
            with pytest.raises(error_type):
                await client.fetch_match_detail("EUW1_1")

    @pytest.mark.asyncio
    async def test_rate_limited_carries_retry_after(self):
        session = _session(_response(status=429, headers={"Retry-After": "7"}))

        async with _client(session) as client:
            with pytest.raises(TransientError) as exc_info:
                await client.fetch_match_id_page("abc", 0, 20)

        assert exc_info.value.status == 429
        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("reset"), asyncio.TimeoutError()]
    )
    async def test_transport_errors_are_transient(self, error):
        session = MagicMock()
        session.get = MagicMock(side_effect=error)

        async with _client(session) as client:
            with pytest.raises(TransientError):
                await client.fetch_match_id_page("abc", 0, 20)

    @pytest.mark.asyncio
    async def test_resolve_player(self):
        session = _session(
            _response(payload={"puuid": "abc", "gameName": "Faker", "tagLine": "KR1"}),
            _response(payload={"summonerLevel": 512, "profileIconId": 6}),
        )

        async with _client(session, region="KR") as client:
            player = await client.resolve_player("Faker", "KR1")

        assert player.puuid == "abc"
        assert player.display_name == "Faker#KR1"
        assert player.level == 512
        account_url = session.get.call_args_list[0].args[0]
        summoner_url = session.get.call_args_list[1].args[0]
        assert account_url == "https://asia.api.riotgames.com/riot/account/v1/accounts/by-riot-id/Faker/KR1"
        assert summoner_url == "https://kr.api.riotgames.com/lol/summoner/v4/summoners/by-puuid/abc"

    @pytest.mark.asyncio
    async def test_resolve_player_quotes_riot_id(self):
        session = _session(
            _response(payload={"puuid": "abc", "gameName": "Hide on bush", "tagLine": "KR1"}),
            _response(payload={"summonerLevel": 1}),
        )

        async with _client(session) as client:
            await client.resolve_player("Hide on bush", "KR1")

        assert "/by-riot-id/Hide%20on%20bush/KR1" in session.get.call_args_list[0].args[0]

    @pytest.mark.asyncio
    async def test_resolve_player_without_summoner(self):
        """summoner-v4 indisponible : le joueur est résolu avec un niveau 0."""
        session = _session(
            _response(payload={"puuid": "abc", "gameName": "Faker", "tagLine": "KR1"}),
            _response(status=503),
        )

        async with _client(session) as client:
            player = await client.resolve_player("Faker", "KR1")

        assert player.level == 0

    @pytest.mark.asyncio
    async def test_summoner_lookup_takes_a_token(self, fast_limiter):
        """La requête summoner-v4 consomme un jeton du limiter partagé."""
        session = _session(
            _response(payload={"puuid": "abc", "gameName": "Faker", "tagLine": "KR1"}),
            _response(payload={"summonerLevel": 30}),
        )
        client = RiotAPIClient(api_key=ApiKey("k"), session=session, limiter=fast_limiter)

        async with client:
            await client.resolve_player("Faker", "KR1")

        assert fast_limiter.total_acquired == 1
        assert session.get.call_count == 2

    @pytest.mark.asyncio
    async def test_resolve_unknown_player(self):
        session = _session(_response(status=404))

        async with _client(session) as client:
            with pytest.raises(NotFoundError):
                await client.resolve_player("Ghost", "EUW")

    @pytest.mark.asyncio
    async def test_external_session_not_closed(self):
        session = MagicMock()
        session.close = AsyncMock()

        async with _client(session):
            pass

        session.close.assert_not_awaited()
