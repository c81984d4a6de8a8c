"""
Module data : accès à l'API Riot et modèles de domaine.
(Data module: Riot API access and domain models)

HOW IT WORKS:
1. domain : modèles Pydantic/dataclass et données de référence (files, postes)
2. sync : fournisseur de données, rate limiting, pagination et moteur d'analyse
"""
