"""Agrégation des parties communes confirmées.

Transforme les CoOccurrenceEvent en :
- GroupStats (équipe) ou DuoStats (une par paire)
- PlayerMatchData par joueur, puis PlayerPerformanceSummary

Un seul écrivain par analyse : le moteur appelle `add_*` depuis la boucle
de recherche, les lectures passent par des copies.
"""

from __future__ import annotations

import copy
import itertools
import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from ruevgg.analysis.co_occurrence import CoOccurrenceEvent
from ruevgg.analysis.performance import PlayerPerformanceSummary
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.domain.models.stats import DuoStats, GroupStats, PlayerMatchData
from ruevgg.data.domain.refdata import get_mode_name

logger = logging.getLogger(__name__)


def _pair_key(pair: Sequence[PlayerIdentity]) -> tuple[str, str]:
    return pair[0].puuid, pair[1].puuid


class StatsAggregator:
    """Compteurs d'équipe/duos et historique de performances par joueur."""

    def __init__(self, players: Sequence[PlayerIdentity]) -> None:
        self._players = tuple(players)
        self.reset()

    def reset(self) -> None:
        """Vide tous les compteurs."""
        self._team = GroupStats(players=self._players)
        self._duos: dict[tuple[str, str], DuoStats] = {
            _pair_key(pair): DuoStats(players=pair)
            for pair in itertools.combinations(self._players, 2)
        }
        self._matches: dict[str, list[PlayerMatchData]] = {p.puuid: [] for p in self._players}
        self._seen: dict[str, set[str]] = {p.puuid: set() for p in self._players}
        logger.debug(f"Agrégateur initialisé pour {len(self._players)} joueurs")

    @property
    def players(self) -> tuple[PlayerIdentity, ...]:
        return self._players

    # =========================================================================
    # Écriture
    # =========================================================================

    def add_team_event(self, event: CoOccurrenceEvent) -> None:
        """Comptabilise une partie de l'équipe complète."""
        self._team.record_game(
            won=event.won,
            queue_id=event.queue_id,
            mode_name=get_mode_name(event.queue_id),
        )
        self._record_participants(self._players, event)

    def add_duo_event(self, pair: Sequence[PlayerIdentity], event: CoOccurrenceEvent) -> None:
        """Comptabilise une partie pour une paire du mode duo."""
        key = _pair_key(pair)
        duo = self._duos.get(key)
        if duo is None:
            duo = DuoStats(players=tuple(pair))
            self._duos[key] = duo
        duo.record_game(
            won=event.won,
            queue_id=event.queue_id,
            mode_name=get_mode_name(event.queue_id),
        )
        self._record_participants(pair, event)

    def _record_participants(
        self,
        players: Sequence[PlayerIdentity],
        event: CoOccurrenceEvent,
    ) -> None:
        # Un même match peut être confirmé par plusieurs paires : une seule
        # entrée par joueur et par match.
        for player, participant in zip(players, event.participants):
            seen = self._seen.setdefault(player.puuid, set())
            if event.match_id in seen:
                continue
            seen.add(event.match_id)
            self._matches.setdefault(player.puuid, []).append(
                PlayerMatchData.from_participant(participant, event.match)
            )

    # =========================================================================
    # Lecture (copies)
    # =========================================================================

    def team_stats(self) -> GroupStats:
        return copy.deepcopy(self._team)

    def duo_stats(self) -> tuple[DuoStats, ...]:
        return tuple(copy.deepcopy(d) for d in self._duos.values())

    def player_matches(self, puuid: str) -> tuple[PlayerMatchData, ...]:
        return tuple(self._matches.get(puuid, ()))

    def performance_summaries(self) -> Mapping[str, PlayerPerformanceSummary]:
        """Synthèse par joueur (puuid → résumé), en lecture seule."""
        summaries = {
            p.puuid: PlayerPerformanceSummary(player=p, matches=self.player_matches(p.puuid))
            for p in self._players
        }
        return MappingProxyType(summaries)


__all__ = ["StatsAggregator"]
