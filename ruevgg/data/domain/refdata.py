"""Données de référence League of Legends (files d'attente, postes).

Ce module fournit :
- QueueId : identifiants de file connus (match-v5 `info.queueId`)
- Libellés et catégories de modes (Ranked, ARAM, Normal, Special, Other)
- Libellés d'affichage des postes (`individualPosition`)

Source : https://static.developer.riotgames.com/docs/lol/queues.json
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class QueueId(IntEnum):
    """Files d'attente suivies par l'analyse."""

    NORMAL_DRAFT = 400
    RANKED_SOLO_DUO = 420
    NORMAL_BLIND = 430
    RANKED_FLEX = 440
    ARAM = 450
    QUICKPLAY = 490
    CLASH = 700
    COOP_VS_AI_INTRO = 830
    COOP_VS_AI_BEGINNER = 840
    COOP_VS_AI_INTERMEDIATE = 850
    URF = 900
    PORO_KING = 920
    ONE_FOR_ALL = 1020
    NEXUS_BLITZ = 1300
    ULTIMATE_SPELLBOOK = 1400
    ARENA = 1700


OTHER_MODE_NAME: Final[str] = "Other Mode"

QUEUE_MODE_NAMES: Final[dict[int, str]] = {
    QueueId.RANKED_SOLO_DUO: "Ranked Solo/Duo",
    QueueId.RANKED_FLEX: "Ranked Flex",
    QueueId.ARAM: "ARAM",
    QueueId.NORMAL_DRAFT: "Normal Draft",
    QueueId.NORMAL_BLIND: "Normal Blind",
    QueueId.CLASH: "Clash",
    QueueId.COOP_VS_AI_INTRO: "Co-op vs AI",
    QueueId.COOP_VS_AI_BEGINNER: "Co-op vs AI",
    QueueId.COOP_VS_AI_INTERMEDIATE: "Co-op vs AI",
    QueueId.URF: "URF",
    QueueId.PORO_KING: "Legend of the Poro King",
    QueueId.ONE_FOR_ALL: "One for All",
    QueueId.NEXUS_BLITZ: "Nexus Blitz",
    QueueId.ULTIMATE_SPELLBOOK: "Ultimate Spellbook",
    QueueId.ARENA: "Arena",
    QueueId.QUICKPLAY: "Quickplay",
}

QUEUE_CATEGORIES: Final[dict[int, str]] = {
    QueueId.RANKED_SOLO_DUO: "Ranked",
    QueueId.RANKED_FLEX: "Ranked",
    QueueId.ARAM: "ARAM",
    QueueId.NORMAL_DRAFT: "Normal",
    QueueId.NORMAL_BLIND: "Normal",
    QueueId.QUICKPLAY: "Normal",
    QueueId.URF: "Special",
    QueueId.PORO_KING: "Special",
    QueueId.ONE_FOR_ALL: "Special",
    QueueId.NEXUS_BLITZ: "Special",
    QueueId.ULTIMATE_SPELLBOOK: "Special",
    QueueId.ARENA: "Special",
}

# Poste vide = le jeu n'a pas assigné de rôle (ARAM, Arena...)
FILL_POSITION: Final[str] = "FILL"

POSITION_DISPLAY_NAMES: Final[dict[str, str]] = {
    "TOP": "Top",
    "JUNGLE": "Jungle",
    "MIDDLE": "Mid",
    "BOTTOM": "ADC",
    "UTILITY": "Support",
    FILL_POSITION: "Fill",
}


def get_mode_name(queue_id: int) -> str:
    """Retourne le libellé d'un mode de jeu à partir de son queue id."""
    return QUEUE_MODE_NAMES.get(queue_id, OTHER_MODE_NAME)


def get_mode_category(queue_id: int) -> str:
    """Retourne la catégorie (Ranked, ARAM, Normal, Special, Other)."""
    return QUEUE_CATEGORIES.get(queue_id, "Other")


def normalize_position(position: str | None) -> str:
    """Normalise un poste brut ; vide ou absent devient FILL."""
    s = (position or "").strip().upper()
    return s or FILL_POSITION


def get_position_display_name(position: str | None) -> str:
    """Libellé d'affichage d'un poste (TOP → Top, UTILITY → Support...)."""
    normalized = normalize_position(position)
    return POSITION_DISPLAY_NAMES.get(normalized, position or normalized)


__all__ = [
    "QueueId",
    "OTHER_MODE_NAME",
    "QUEUE_MODE_NAMES",
    "QUEUE_CATEGORIES",
    "FILL_POSITION",
    "POSITION_DISPLAY_NAMES",
    "get_mode_name",
    "get_mode_category",
    "normalize_position",
    "get_position_display_name",
]
