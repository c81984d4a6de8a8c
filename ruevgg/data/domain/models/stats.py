"""Modèles dataclass pour l'analytique de groupe.

Ce module regroupe les structures de données (GameModeStats, GroupStats,
DuoStats, PlayerMatchData, ChampionPerformance, PositionPerformance)
utilisées par l'agrégateur et la couche d'analyse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ruevgg.data.domain.models.match import MatchRecord, ParticipantStat
from ruevgg.data.domain.models.player import PlayerIdentity
from ruevgg.data.domain.refdata import get_mode_name, get_position_display_name


def _win_rate(wins: int, losses: int) -> float:
    """Taux de victoire en pourcentage (0-100), 0 si aucun match."""
    total = wins + losses
    if total <= 0:
        return 0.0
    return wins * 100.0 / total


@dataclass
class GameModeStats:
    """Compteurs victoire/défaite pour un queue id."""

    mode_name: str
    queue_id: int
    games: int = 0
    wins: int = 0
    losses: int = 0

    def record(self, won: bool) -> None:
        self.games += 1
        if won:
            self.wins += 1
        else:
            self.losses += 1

    @property
    def win_rate(self) -> float:
        return _win_rate(self.wins, self.losses)


@dataclass
class GroupStats:
    """Statistiques d'un groupe de joueurs sur leurs parties communes.

    Invariant : wins + losses == games_played_together. Seul `record_game`
    modifie les compteurs.
    """

    players: tuple[PlayerIdentity, ...] = ()
    games_played_together: int = 0
    wins: int = 0
    losses: int = 0
    games_by_mode: dict[int, GameModeStats] = field(default_factory=dict)

    def record_game(self, *, won: bool, queue_id: int, mode_name: str | None = None) -> None:
        """Comptabilise une partie confirmée (global + ventilation par mode)."""
        self.games_played_together += 1
        if won:
            self.wins += 1
        else:
            self.losses += 1

        mode_stats = self.games_by_mode.get(queue_id)
        if mode_stats is None:
            mode_stats = GameModeStats(
                mode_name=mode_name or get_mode_name(queue_id),
                queue_id=queue_id,
            )
            self.games_by_mode[queue_id] = mode_stats
        mode_stats.record(won)

    @property
    def win_rate(self) -> float:
        """Taux de victoire (0-100)."""
        return _win_rate(self.wins, self.losses)

    @property
    def player_names(self) -> str:
        return ", ".join(p.display_name for p in self.players)

    @property
    def sorted_game_modes(self) -> list[GameModeStats]:
        """Modes triés par nombre de parties décroissant."""
        return sorted(self.games_by_mode.values(), key=lambda m: (-m.games, m.queue_id))

    def to_dict(self) -> dict[str, Any]:
        """Convertit en dict pour sérialisation JSON."""
        return {
            "players": [p.display_name for p in self.players],
            "games_played_together": self.games_played_together,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 1),
            "games_by_mode": [
                {
                    "queue_id": m.queue_id,
                    "mode_name": m.mode_name,
                    "games": m.games,
                    "wins": m.wins,
                    "losses": m.losses,
                    "win_rate": round(m.win_rate, 1),
                }
                for m in self.sorted_game_modes
            ],
        }


@dataclass
class DuoStats(GroupStats):
    """Statistiques d'une paire de joueurs (mode duo)."""

    @property
    def player1(self) -> PlayerIdentity:
        return self.players[0]

    @property
    def player2(self) -> PlayerIdentity:
        return self.players[1]


@dataclass(frozen=True)
class PlayerMatchData:
    """Performance d'un joueur sur une partie confirmée.

    Attributes:
        match_id: Identifiant du match.
        champion_name: Champion joué.
        kills: Nombre de kills.
        deaths: Nombre de morts.
        assists: Nombre d'assistances.
        total_cs: Creep score total.
        game_duration: Durée en secondes.
        win: Victoire de l'équipe du joueur.
        queue_id: File d'attente du match.
        mode_name: Libellé du mode dérivé du queue id.
        team_position: Poste normalisé (TOP, JUNGLE... ou vide).
        total_damage_dealt: Dégâts infligés aux champions.
        total_damage_taken: Dégâts subis.
        gold_earned: Or gagné.
        vision_score: Score de vision.
        game_creation: Date de création du match (UTC).
    """

    match_id: str
    champion_name: str
    kills: int
    deaths: int
    assists: int
    total_cs: int
    game_duration: int
    win: bool
    queue_id: int
    mode_name: str
    team_position: str
    total_damage_dealt: int
    total_damage_taken: int
    gold_earned: int
    vision_score: int
    game_creation: datetime

    @classmethod
    def from_participant(cls, participant: ParticipantStat, record: MatchRecord) -> PlayerMatchData:
        """Enrichit les stats d'un participant avec le contexte du match."""
        return cls(
            match_id=record.match_id,
            champion_name=participant.champion_name,
            kills=participant.kills,
            deaths=participant.deaths,
            assists=participant.assists,
            total_cs=participant.total_cs,
            game_duration=record.game_duration,
            win=participant.win,
            queue_id=record.queue_id,
            mode_name=get_mode_name(record.queue_id),
            team_position=participant.individual_position,
            total_damage_dealt=participant.total_damage_dealt_to_champions,
            total_damage_taken=participant.total_damage_taken,
            gold_earned=participant.gold_earned,
            vision_score=participant.vision_score,
            game_creation=record.game_creation,
        )

    @property
    def kda(self) -> float:
        """(K + A) / max(D, 1) : zéro mort compte comme un diviseur de 1."""
        return (self.kills + self.assists) / max(self.deaths, 1)

    @property
    def cs_per_minute(self) -> float:
        minutes = self.game_duration / 60.0
        if minutes <= 0:
            return 0.0
        return self.total_cs / minutes

    @property
    def gold_per_minute(self) -> float:
        minutes = self.game_duration / 60.0
        if minutes <= 0:
            return 0.0
        return self.gold_earned / minutes

    @property
    def kda_string(self) -> str:
        return f"{self.kills}/{self.deaths}/{self.assists}"

    @property
    def game_duration_formatted(self) -> str:
        """Durée au format m:ss."""
        minutes, seconds = divmod(max(self.game_duration, 0), 60)
        return f"{minutes}:{seconds:02d}"


@dataclass(frozen=True)
class ChampionPerformance:
    """Performance agrégée d'un joueur sur un champion."""

    champion_name: str
    games_played: int
    wins: int
    losses: int
    average_kda: float
    total_kills: int
    total_deaths: int
    total_assists: int

    @property
    def win_rate(self) -> float:
        return _win_rate(self.wins, self.losses)

    @property
    def kda_string(self) -> str:
        """Moyennes K/D/A par partie, ex: "7.5/3.0/9.2"."""
        if self.games_played <= 0:
            return "0.0/0.0/0.0"
        n = self.games_played
        return (
            f"{self.total_kills / n:.1f}/{self.total_deaths / n:.1f}/{self.total_assists / n:.1f}"
        )


@dataclass(frozen=True)
class PositionPerformance:
    """Performance agrégée d'un joueur sur un poste."""

    position: str
    games_played: int
    wins: int
    losses: int

    @property
    def win_rate(self) -> float:
        return _win_rate(self.wins, self.losses)

    @property
    def display_name(self) -> str:
        return get_position_display_name(self.position)
