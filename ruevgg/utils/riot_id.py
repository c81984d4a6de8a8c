"""Utilitaires pour la manipulation des Riot ID.

Un Riot ID s'écrit "Nom#TAG" : le nom peut contenir des espaces, le tag
est normalisé en majuscules.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "RiotId",
    "parse_riot_id",
    "try_parse_riot_id",
]


@dataclass(frozen=True)
class RiotId:
    """Riot ID saisi par l'utilisateur (avant résolution)."""

    game_name: str
    tag_line: str

    def __str__(self) -> str:
        return f"{self.game_name}#{self.tag_line}"


def try_parse_riot_id(s: str | None) -> RiotId | None:
    """Parse une entrée utilisateur "Nom#Tag".

    Args:
        s: Entrée utilisateur.

    Returns:
        Le RiotId (tag en majuscules), ou None si invalide.
    """
    s = (s or "").strip()
    if "#" not in s:
        return None
    name, tag = s.split("#", 1)
    name = name.strip()
    tag = tag.strip().upper()
    if not name or not tag:
        return None
    return RiotId(game_name=name, tag_line=tag)


def parse_riot_id(s: str | None) -> RiotId:
    """Comme `try_parse_riot_id` mais lève ValueError si l'entrée est invalide."""
    riot_id = try_parse_riot_id(s)
    if riot_id is None:
        raise ValueError(f"Riot ID invalide: '{s}' (format attendu: Nom#TAG)")
    return riot_id
