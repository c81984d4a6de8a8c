"""Fixtures communes pour les tests.

Ce fichier contient :
- des builders de JSON match-v5 / de joueurs
- un faux MatchDataProvider en mémoire (réponses scriptées, appels tracés)
- un rate limiter sans attente et un sleep simulé
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from ruevgg.data.domain.models.match import MatchRecord
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.sync.errors import NotFoundError, ProviderError
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter

BASE_CREATION_MS = 1_700_000_000_000


# =============================================================================
# Builders
# =============================================================================


def build_player(name: str, tag: str = "EUW", *, puuid: str | None = None, level: int = 100):
    return PlayerIdentity(
        puuid=puuid or f"puuid-{name.lower()}",
        game_name=name,
        tag_line=tag,
        summoner_level=level,
    )


def build_participant(
    puuid: str,
    *,
    team_id: int = 100,
    win: bool = True,
    champion: str = "Ahri",
    kills: int = 5,
    deaths: int = 2,
    assists: int = 7,
    position: str = "MIDDLE",
    minions: int = 150,
    neutral: int = 10,
    gold: int = 11000,
    damage: int = 20000,
    taken: int = 15000,
    vision: int = 25,
) -> dict[str, Any]:
    return {
        "puuid": puuid,
        "teamId": team_id,
        "win": win,
        "championName": champion,
        "kills": kills,
        "deaths": deaths,
        "assists": assists,
        "individualPosition": position,
        "totalMinionsKilled": minions,
        "neutralMinionsKilled": neutral,
        "goldEarned": gold,
        "totalDamageDealtToChampions": damage,
        "totalDamageTaken": taken,
        "visionScore": vision,
    }


def build_match_payload(
    match_id: str,
    participants: list[dict[str, Any]],
    *,
    queue_id: int = 420,
    duration: int = 1800,
    creation_ms: int = BASE_CREATION_MS,
) -> dict[str, Any]:
    return {
        "metadata": {"matchId": match_id, "participants": [p["puuid"] for p in participants]},
        "info": {
            "gameCreation": creation_ms,
            "gameDuration": duration,
            "queueId": queue_id,
            "gameMode": "CLASSIC",
            "participants": participants,
        },
    }


def build_match(match_id: str, participants: list[dict[str, Any]], **kwargs: Any) -> MatchRecord:
    return MatchRecord.from_api(build_match_payload(match_id, participants, **kwargs))


def build_team_match(
    match_id: str,
    players: list[PlayerIdentity],
    *,
    team_id: int = 100,
    win: bool = True,
    **kwargs: Any,
) -> MatchRecord:
    """Match où tous les `players` sont dans la même équipe, plus un adversaire."""
    participants = [build_participant(p.puuid, team_id=team_id, win=win) for p in players]
    participants.append(build_participant("puuid-opponent", team_id=300 - team_id, win=not win))
    return build_match(match_id, participants, **kwargs)


# =============================================================================
# Faux fournisseur
# =============================================================================


class FakeMatchProvider:
    """MatchDataProvider en mémoire.

    Attributes:
        accounts: (nom, tag) → PlayerIdentity.
        histories: puuid → liste complète des ids (plus récent d'abord).
        matches: match_id → MatchRecord.
        page_errors: (puuid, offset) → exception levée pour cette page.
        detail_errors: match_id → exceptions levées successivement.
        resolve_errors: (nom, tag) → exception levée à la résolution.
    """

    def __init__(self) -> None:
        self.accounts: dict[tuple[str, str], PlayerIdentity] = {}
        self.histories: dict[str, list[str]] = {}
        self.matches: dict[str, MatchRecord] = {}
        self.page_errors: dict[tuple[str, int], ProviderError] = {}
        self.detail_errors: dict[str, list[ProviderError]] = {}
        self.resolve_errors: dict[tuple[str, str], ProviderError] = {}
        self.page_calls: list[tuple[str, int, int]] = []
        self.detail_calls: list[str] = []
        self.resolve_calls: list[tuple[str, str]] = []

    def add_player(self, player: PlayerIdentity, history: list[str] | None = None) -> None:
        self.accounts[(player.game_name, player.tag_line)] = player
        self.histories[player.puuid] = list(history or [])

    def add_match(self, record: MatchRecord) -> None:
        self.matches[record.match_id] = record

    async def resolve_player(self, game_name: str, tag_line: str) -> PlayerIdentity:
        self.resolve_calls.append((game_name, tag_line))
        error = self.resolve_errors.get((game_name, tag_line))
        if error is not None:
            raise error
        player = self.accounts.get((game_name, tag_line))
        if player is None:
            raise NotFoundError(f"{game_name}#{tag_line} introuvable", status=404)
        return player

    async def fetch_match_id_page(self, puuid: str, offset: int, count: int) -> list[str]:
        self.page_calls.append((puuid, offset, count))
        error = self.page_errors.get((puuid, offset))
        if error is not None:
            raise error
        history = self.histories.get(puuid, [])
        return history[offset : offset + count]

    async def fetch_match_detail(self, match_id: str) -> MatchRecord:
        self.detail_calls.append(match_id)
        errors = self.detail_errors.get(match_id)
        if errors:
            raise errors.pop(0)
        record = self.matches.get(match_id)
        if record is None:
            raise NotFoundError(f"Match {match_id} introuvable", status=404)
        return record

    def pages_for(self, puuid: str) -> list[tuple[str, int, int]]:
        return [c for c in self.page_calls if c[0] == puuid]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_provider() -> FakeMatchProvider:
    return FakeMatchProvider()


@pytest.fixture
def fast_limiter() -> DualWindowRateLimiter:
    """Limiter aux capacités assez grandes pour ne jamais attendre."""
    return DualWindowRateLimiter(10_000, 1.0, 100_000, 120.0)


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def player_builder() -> Callable[..., PlayerIdentity]:
    return build_player


@pytest.fixture
def participant_builder() -> Callable[..., dict[str, Any]]:
    return build_participant


@pytest.fixture
def match_builder() -> Callable[..., MatchRecord]:
    return build_match


@pytest.fixture
def match_payload_builder() -> Callable[..., dict[str, Any]]:
    return build_match_payload


@pytest.fixture
def team_match_builder() -> Callable[..., MatchRecord]:
    return build_team_match
