"""
Modèles de données pour les joueurs.
(Data models for players)

HOW IT WORKS:
- PlayerIdentity : identité résolue d'un joueur (puuid + Riot ID + niveau)
- Créée une fois par analyse, immuable ensuite
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlayerIdentity(BaseModel):
    """
    Identité d'un joueur League of Legends.
    (League of Legends player identity)

    Combine la réponse account-v1 (puuid, gameName, tagLine) et la
    réponse summoner-v4 (niveau, icône).
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    puuid: str = Field(..., min_length=1, description="Identifiant stable du joueur")
    game_name: str = Field(..., alias="gameName", description="Nom affiché")
    tag_line: str = Field(..., alias="tagLine", description="Tag affiché")
    summoner_level: int = Field(default=0, ge=0, alias="summonerLevel")
    profile_icon_id: int = Field(default=0, ge=0, alias="profileIconId")

    @field_validator("game_name", "tag_line", mode="before")
    @classmethod
    def sanitize_text(cls, v: Any) -> str:
        """Nettoie les espaces autour du nom et du tag."""
        if v is None:
            return ""
        return str(v).strip()

    @property
    def display_name(self) -> str:
        """Riot ID complet, ex: "Faker#KR1"."""
        return f"{self.game_name}#{self.tag_line}"

    @property
    def level(self) -> int:
        return self.summoner_level

    def __str__(self) -> str:
        return self.display_name
