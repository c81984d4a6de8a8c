"""
Modèles de domaine avec validation Pydantic v2.
(Domain models with Pydantic v2 validation)
"""

from ruevgg.data.domain.models.match import MatchRecord, ParticipantStat
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.domain.models.stats import (
    ChampionPerformance,
    DuoStats,
    GameModeStats,
    GroupStats,
    PlayerMatchData,
    PositionPerformance,
)

__all__ = [
    "PlayerIdentity",
    "MatchRecord",
    "ParticipantStat",
    "GameModeStats",
    "GroupStats",
    "DuoStats",
    "PlayerMatchData",
    "ChampionPerformance",
    "PositionPerformance",
]
