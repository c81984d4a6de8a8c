"""Utilitaires partagés pour le projet ruevgg."""

from ruevgg.utils.riot_id import RiotId, parse_riot_id, try_parse_riot_id

__all__ = [
    "RiotId",
    "parse_riot_id",
    "try_parse_riot_id",
]
