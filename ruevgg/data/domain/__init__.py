"""Modèles de domaine et données de référence League of Legends."""
