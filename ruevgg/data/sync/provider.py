"""
Protocole du fournisseur de données de match.
(Match data provider protocol)

HOW IT WORKS:
Le moteur d'analyse ne fait aucune I/O lui-même : tout passe par un objet
respectant `MatchDataProvider`. Cela permet d'avoir :
- RiotAPIClient : implémentation réelle (aiohttp + API Riot)
- un faux fournisseur en mémoire pour les tests

Les erreurs sont signalées exclusivement par la famille `ProviderError`
(NotFoundError, UnauthorizedError, TransientError, DecodingError).

Précondition sur l'ordre : `fetch_match_id_page` renvoie les ids du plus
récent au plus ancien. Le moteur s'en sert comme indice de récence pour
ordonner les candidats, jamais pour décider quels ids sont nouveaux.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ruevgg.data.domain.models.match import MatchRecord
from ruevgg.data.domain.models.player import PlayerIdentity


@runtime_checkable
class MatchDataProvider(Protocol):
    """
    Interface abstraite vers la source des matchs.
    (Abstract interface to the match source)
    """

    async def resolve_player(self, game_name: str, tag_line: str) -> PlayerIdentity:
        """
        Résout un Riot ID en identité joueur.

        Raises:
            NotFoundError: Riot ID inconnu.
            UnauthorizedError: Clé API refusée.
            TransientError: Erreur réseau/serveur.
        """
        ...

    async def fetch_match_id_page(self, puuid: str, offset: int, count: int) -> list[str]:
        """
        Retourne une page d'ids de match (plus récent d'abord).

        Une page plus courte que `count` signifie que l'historique est épuisé.

        Raises:
            UnauthorizedError: Clé API refusée.
            TransientError: Erreur réseau/serveur.
        """
        ...

    async def fetch_match_detail(self, match_id: str) -> MatchRecord:
        """
        Retourne le détail complet d'un match.

        Raises:
            NotFoundError: Match inconnu.
            UnauthorizedError: Clé API refusée.
            TransientError: Erreur réseau/serveur.
            DecodingError: Réponse illisible.
        """
        ...


__all__ = ["MatchDataProvider"]
