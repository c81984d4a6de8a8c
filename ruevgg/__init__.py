"""ruevgg : parties communes et statistiques d'équipe League of Legends."""

__version__ = "0.1.0"
