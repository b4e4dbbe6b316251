from __future__ import annotations
from pathlib import Path
import os

RES_DIR = Path(__file__).resolve().parent / "res"
CATALOG_FILE = RES_DIR / "catalog.json"

# Fortschritt + Einstellungen; per VOCAQUIZ_HOME umlenkbar
DATA_DIR = Path(os.environ.get("VOCAQUIZ_HOME") or RES_DIR)
PROGRESS_FILE = DATA_DIR / "quiz_progress.json"
PREFS_FILE = DATA_DIR / "prefs.json"
BACKUP_DIR_NAME = "back_ups"

HISTORY_LIMIT = 50
XP_PER_CORRECT = 10
XP_PERFECT_BONUS = 50
XP_HIGH_SCORE_BONUS = 20
HIGH_SCORE_THRESHOLD = 80
XP_PER_LEVEL = 1000
OPTION_COUNT = 4

TTS_MODEL = "tts_models/en/vctk/vits"
TTS_SPEAKER_INDEX = 5
WRONG_ANSWER_SPEAK_DELAY = 0.3

STT_MODEL_SIZE = "base"
STT_SAMPLE_RATE = 16000
STT_INTERIM_INTERVAL = 1.5

SOUND_SAMPLE_RATE = 22050
SOUND_VOLUME = 0.3

SAVE_DEBOUNCE = 0.2

_prefs = None


def get_prefs():
    global _prefs
    if _prefs is None:
        from kivy.storage.jsonstore import JsonStore
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        _prefs = JsonStore(str(PREFS_FILE))
    return _prefs


def get_pref(section: str, key: str, default=None):
    try:
        prefs = get_prefs()
        if prefs.exists(section):
            value = prefs.get(section).get(key)
            return default if value is None else value
    except Exception:
        pass
    return default


def put_pref(section: str, **values):
    try:
        prefs = get_prefs()
        current = prefs.get(section) if prefs.exists(section) else {}
        current.update(values)
        prefs.put(section, **current)
    except Exception:
        pass
