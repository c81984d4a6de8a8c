"""
Modèles de données pour les matchs League of Legends.
(Data models for League of Legends matches)

HOW IT WORKS:
- ParticipantStat : statistiques d'un participant (une entrée de info.participants)
- MatchRecord : détail immuable d'un match (match-v5), validé par Pydantic v2

Les alias camelCase correspondent exactement au JSON de l'API match-v5 ;
les champs absents ou nuls sont normalisés à 0 pour que les agrégats
n'aient jamais à gérer de None.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParticipantStat(BaseModel):
    """
    Statistiques d'un joueur dans un match.
    (Per-participant statistics for one match)
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    puuid: str = Field(..., min_length=1)
    team_id: int = Field(..., alias="teamId")
    champion_name: str = Field(default="", alias="championName")
    kills: int = Field(default=0, ge=0)
    deaths: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    win: bool = False
    individual_position: str = Field(default="", alias="individualPosition")
    total_minions_killed: int = Field(default=0, ge=0, alias="totalMinionsKilled")
    neutral_minions_killed: int = Field(default=0, ge=0, alias="neutralMinionsKilled")
    gold_earned: int = Field(default=0, ge=0, alias="goldEarned")
    total_damage_dealt_to_champions: int = Field(
        default=0, ge=0, alias="totalDamageDealtToChampions"
    )
    total_damage_taken: int = Field(default=0, ge=0, alias="totalDamageTaken")
    vision_score: int = Field(default=0, ge=0, alias="visionScore")

    @field_validator(
        "kills",
        "deaths",
        "assists",
        "total_minions_killed",
        "neutral_minions_killed",
        "gold_earned",
        "total_damage_dealt_to_champions",
        "total_damage_taken",
        "vision_score",
        mode="before",
    )
    @classmethod
    def null_to_zero(cls, v: Any) -> Any:
        """Les compteurs optionnels de l'API peuvent valoir null."""
        return 0 if v is None else v

    @field_validator("champion_name", "individual_position", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @property
    def total_cs(self) -> int:
        """Creep score total (sbires + monstres neutres)."""
        return self.total_minions_killed + self.neutral_minions_killed


class MatchRecord(BaseModel):
    """
    Détail complet d'un match.
    (Full match detail)

    Construit depuis le JSON match-v5 via `from_api` qui aplatit
    `metadata.matchId` et le bloc `info`.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    match_id: str = Field(..., min_length=1, alias="matchId")
    game_creation: datetime = Field(..., alias="gameCreation")
    game_duration: int = Field(default=0, ge=0, alias="gameDuration")
    queue_id: int = Field(default=0, alias="queueId")
    game_mode: str = Field(default="", alias="gameMode")
    participants: tuple[ParticipantStat, ...] = ()

    @field_validator("game_creation", mode="before")
    @classmethod
    def parse_creation(cls, v: Any) -> datetime:
        """
        Parse le timestamp de création.
        (Parse creation timestamp)

        Formats supportés:
        - 1700000000000 (epoch en millisecondes, format match-v5)
        - "2024-01-15T14:30:00Z" (ISO 8601)
        - datetime
        """
        if isinstance(v, datetime):
            return v
        if isinstance(v, bool):
            raise ValueError(f"Invalid gameCreation: {v}")
        if isinstance(v, int | float):
            return datetime.fromtimestamp(v / 1000.0, tz=timezone.utc)
        if isinstance(v, str):
            v_str = v[:-1] + "+00:00" if v.endswith("Z") else v
            return datetime.fromisoformat(v_str)
        raise ValueError(f"Invalid gameCreation: {v}")

    @field_validator("participants", mode="before")
    @classmethod
    def null_participants(cls, v: Any) -> Any:
        return () if v is None else v

    @classmethod
    def from_api(cls, payload: Any) -> MatchRecord:
        """Construit un MatchRecord depuis la réponse brute match-v5.

        Args:
            payload: JSON `{"metadata": {...}, "info": {...}}`.

        Returns:
            MatchRecord validé.

        Raises:
            ValueError: Si le payload n'a pas la forme attendue
                (pydantic.ValidationError hérite de ValueError).
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Payload match inattendu: {type(payload).__name__}")
        info = payload.get("info")
        metadata = payload.get("metadata") or {}
        if not isinstance(info, dict):
            raise ValueError("Payload match sans bloc 'info'")
        data = dict(info)
        data["matchId"] = metadata.get("matchId") or info.get("matchId") or ""
        return cls.model_validate(data)

    def find_participant(self, puuid: str) -> ParticipantStat | None:
        """Retourne les stats du joueur `puuid`, ou None s'il est absent."""
        for p in self.participants:
            if p.puuid == puuid:
                return p
        return None
