#!/usr/bin/env python3
"""Script d'analyse d'équipe.

Recherche les parties jouées ensemble (même équipe) par 2 à 5 joueurs et
affiche les statistiques d'équipe et les performances individuelles.

La clé API est lue depuis RIOT_API_KEY (ou .env.local / .env).

Usage:
    python scripts/analyze_team.py --help
    python scripts/analyze_team.py -p "Faker#KR1" -p "Keria#KR1" --region KR
    python scripts/analyze_team.py -p "A#EUW" -p "B#EUW" -p "C#EUW" --duo --games 5
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ajouter le répertoire parent au path pour les imports
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from ruevgg.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
