"""Module d'analyse des parties communes."""

from ruevgg.analysis.aggregator import StatsAggregator
from ruevgg.analysis.co_occurrence import (
    CoOccurrenceEvent,
    CoOccurrenceFinder,
    SearchReport,
    compute_candidates,
    verify_co_occurrence,
)
from ruevgg.analysis.performance import (
    PlayerPerformanceSummary,
    compute_champion_breakdown,
    compute_position_breakdown,
    matches_to_polars,
)

__all__ = [
    # Recherche
    "CoOccurrenceEvent",
    "CoOccurrenceFinder",
    "SearchReport",
    "compute_candidates",
    "verify_co_occurrence",
    # Agrégation
    "StatsAggregator",
    # Performances
    "PlayerPerformanceSummary",
    "compute_champion_breakdown",
    "compute_position_breakdown",
    "matches_to_polars",
]
