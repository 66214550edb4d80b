"""Chemins communs pour le relais, les clients et les données persistées."""

from __future__ import annotations

import os
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("BUZZBOARD_DATA_DIR", ROOT_DIR / "data"))
STATE_PATH = DATA_DIR / "state.json"
QUESTIONS_PATH = Path(os.environ.get("BUZZBOARD_QUESTIONS", DATA_DIR / "questions.json"))
IDENTITY_PATH = DATA_DIR / "buzzer_team.json"
