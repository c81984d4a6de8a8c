"""Taxonomie des erreurs du fournisseur de données de match.

Toutes les erreurs remontées par un `MatchDataProvider` appartiennent à une
énumération fermée (`ProviderErrorKind`) :
- NOT_FOUND : joueur ou match absent (non réessayable)
- UNAUTHORIZED : clé API invalide/expirée (fatal, interrompt l'analyse)
- TRANSIENT : réseau, rate limit ou erreur serveur (réessayable)
- DECODING : réponse malformée (réessayable comme TRANSIENT, loggée à part)
"""

from __future__ import annotations

from enum import Enum


class ProviderErrorKind(str, Enum):
    """Catégories d'erreurs du fournisseur. (Provider error categories)"""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT = "transient"
    DECODING = "decoding"


class ProviderError(Exception):
    """Erreur de base levée par un fournisseur de données de match."""

    kind: ProviderErrorKind = ProviderErrorKind.TRANSIENT

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def retryable(self) -> bool:
        """True si une nouvelle tentative a du sens."""
        return self.kind in (ProviderErrorKind.TRANSIENT, ProviderErrorKind.DECODING)


class NotFoundError(ProviderError):
    """Joueur ou match introuvable (404)."""

    kind = ProviderErrorKind.NOT_FOUND


class UnauthorizedError(ProviderError):
    """Clé API refusée (401/403). Fatal pour toute l'analyse."""

    kind = ProviderErrorKind.UNAUTHORIZED


class TransientError(ProviderError):
    """Erreur passagère : réseau, 429, 5xx, timeout."""

    kind = ProviderErrorKind.TRANSIENT

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status=status)
        self.retry_after = retry_after


class DecodingError(TransientError):
    """Réponse illisible (JSON invalide ou schéma inattendu)."""

    kind = ProviderErrorKind.DECODING


class AnalysisCancelledError(Exception):
    """Levée quand l'appelant a demandé l'abandon de l'analyse en cours."""


__all__ = [
    "ProviderErrorKind",
    "ProviderError",
    "NotFoundError",
    "UnauthorizedError",
    "TransientError",
    "DecodingError",
    "AnalysisCancelledError",
]
