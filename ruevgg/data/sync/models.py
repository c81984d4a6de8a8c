"""Modèles de données pour le moteur d'analyse.

Contient les dataclasses et énumérations pour :
- Options d'analyse (AnalysisOptions)
- Issues de recherche et statuts d'analyse (SearchOutcome, AnalysisStatus)
- Résultat final immuable (AnalysisResult)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.domain.models.stats import DuoStats, GroupStats
from ruevgg.data.sync.rate_limiter import DualWindowRateLimiter

if TYPE_CHECKING:
    from ruevgg.analysis.performance import PlayerPerformanceSummary

MIN_PLAYERS = 2
MAX_PLAYERS = 5
GAME_COUNT_CHOICES = (5, 10, 15, 20)


# =============================================================================
# Options d'analyse
# =============================================================================


@dataclass
class AnalysisOptions:
    """Options d'analyse.

    Attributes:
        target_games: Nombre de parties communes recherchées.
        max_search_depth: Nombre max d'ids d'historique consultés par joueur.
        page_size: Taille d'une page d'historique.
        region: Plateforme (EUW1...) ou région de routage (europe...).
        short_term_limit: Capacité du seau court terme.
        short_term_window: Fenêtre du seau court terme (secondes).
        long_term_limit: Capacité du seau long terme.
        long_term_window: Fenêtre du seau long terme (secondes).
        transient_backoff_seconds: Attente avant l'unique nouvel essai d'un match.
        request_timeout_seconds: Timeout HTTP par requête.
    """

    target_games: int = 10
    max_search_depth: int = 100
    page_size: int = 20
    region: str = "europe"
    short_term_limit: int = 20
    short_term_window: float = 1.0
    long_term_limit: int = 100
    long_term_window: float = 120.0
    transient_backoff_seconds: float = 5.0
    request_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.target_games <= 0:
            raise ValueError("target_games doit être > 0")
        if self.page_size <= 0:
            raise ValueError("page_size doit être > 0")
        if self.max_search_depth <= 0:
            raise ValueError("max_search_depth doit être > 0")
        if self.transient_backoff_seconds < 0:
            raise ValueError("transient_backoff_seconds doit être >= 0")

    def create_rate_limiter(self) -> DualWindowRateLimiter:
        """Rate limiter à partager entre le client HTTP et le moteur."""
        return DualWindowRateLimiter(
            self.short_term_limit,
            self.short_term_window,
            self.long_term_limit,
            self.long_term_window,
        )


# =============================================================================
# Statuts
# =============================================================================


class AnalysisMode(str, Enum):
    TEAM = "team"
    DUO = "duo"


class SearchOutcome(str, Enum):
    """Fin d'une recherche de co-occurrences."""

    COMPLETE = "complete"  # objectif atteint
    CAPPED = "capped"  # profondeur max atteinte
    EXHAUSTED = "exhausted"  # historiques épuisés


class AnalysisStatus(str, Enum):
    """Statut global d'une analyse.

    Correspondance avec les erreurs :
    - UNAUTHORIZED : clé refusée, à n'importe quelle étape
    - PLAYER_NOT_FOUND : moins de deux joueurs distincts résolus (NotFound)
    - INSUFFICIENT_DATA : historique indisponible pour trop de joueurs, ou
      résolution d'un Riot ID en échec (Transient/Decoding) ; dans ce
      dernier cas l'analyse s'arrête avant toute pagination et `errors`
      commence par "Résolution des joueurs impossible"
    - CANCELLED : `cancel()` demandé pendant l'analyse
    """

    COMPLETE = "complete"
    CAPPED = "capped"
    EXHAUSTED = "exhausted"
    NO_SHARED_GAMES = "no_shared_games"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_DATA = "insufficient_data"
    PLAYER_NOT_FOUND = "player_not_found"
    CANCELLED = "cancelled"

    @property
    def is_error(self) -> bool:
        return self in _ERROR_STATUSES


_ERROR_STATUSES = frozenset(
    {
        AnalysisStatus.UNAUTHORIZED,
        AnalysisStatus.INSUFFICIENT_DATA,
        AnalysisStatus.PLAYER_NOT_FOUND,
        AnalysisStatus.CANCELLED,
    }
)


def status_from_outcome(outcome: SearchOutcome, games_found: int) -> AnalysisStatus:
    if games_found == 0:
        return AnalysisStatus.NO_SHARED_GAMES
    return AnalysisStatus(outcome.value)


# =============================================================================
# Résultat d'analyse
# =============================================================================


@dataclass(frozen=True)
class AnalysisResult:
    """Résultat d'une analyse (instantané en lecture seule).

    Les statuts d'erreur (UNAUTHORIZED, INSUFFICIENT_DATA, PLAYER_NOT_FOUND,
    CANCELLED) ne portent jamais de statistiques.
    """

    mode: AnalysisMode
    status: AnalysisStatus
    players: tuple[PlayerIdentity, ...] = ()
    team_stats: GroupStats | None = None
    duo_stats: tuple[DuoStats, ...] = ()
    player_performances: Mapping[str, PlayerPerformanceSummary] = field(
        default_factory=lambda: MappingProxyType({})
    )
    games_found: int = 0
    target_games: int = 0
    matches_evaluated: int = 0
    not_found: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    duration_seconds: float = 0.0
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def success(self) -> bool:
        """True si l'analyse a abouti (même sans partie commune)."""
        return not self.status.is_error

    @property
    def is_incomplete(self) -> bool:
        """True si la recherche s'est arrêtée avant l'objectif (plafond ou historiques épuisés)."""
        return self.success and self.status is not AnalysisStatus.COMPLETE

    def to_message(self) -> str:
        """Message de résumé pour l'affichage."""
        if not self.success:
            error_preview = ", ".join(self.errors[:2]) or self.status.value
            return f"❌ Analyse échouée ({self.status.value}): {error_preview}"

        if self.games_found == 0:
            return "Aucune partie commune trouvée"

        if self.mode is AnalysisMode.DUO:
            summary = f"{len(self.duo_stats)} duos, {self.games_found} parties communes"
        else:
            stats = self.team_stats
            win_rate = stats.win_rate if stats else 0.0
            summary = f"{self.games_found}/{self.target_games} parties ({win_rate:.1f}% victoires)"

        if self.is_incomplete:
            summary += " - recherche incomplète"

        duration_str = ""
        if self.duration_seconds > 0:
            duration_str = f" ({self.duration_seconds:.1f}s)"

        return f"✅ {summary}{duration_str}"

    def to_dict(self) -> dict[str, Any]:
        """Convertit en dict pour sérialisation JSON."""
        return {
            "mode": self.mode.value,
            "status": self.status.value,
            "success": self.success,
            "players": [p.display_name for p in self.players],
            "games_found": self.games_found,
            "target_games": self.target_games,
            "matches_evaluated": self.matches_evaluated,
            "team_stats": self.team_stats.to_dict() if self.team_stats else None,
            "duo_stats": [d.to_dict() for d in self.duo_stats],
            "player_performances": {
                puuid: summary.to_dict() for puuid, summary in self.player_performances.items()
            },
            "not_found": list(self.not_found),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "duration_seconds": self.duration_seconds,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


__all__ = [
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "GAME_COUNT_CHOICES",
    "AnalysisOptions",
    "AnalysisMode",
    "SearchOutcome",
    "AnalysisStatus",
    "AnalysisResult",
    "status_from_outcome",
]
