from __future__ import annotations
from pathlib import Path
import json

from kivy.logger import Logger

from VocaQuiz.models.state import Catalog, Lesson, Unit, VocabularyEntry


def _entry_from_dict(item) -> VocabularyEntry | None:
    if not isinstance(item, dict):
        return None
    word = str(item.get("word", "") or "").strip()
    meaning = str(item.get("meaning", "") or "").strip()
    if not word or not meaning:
        return None
    return VocabularyEntry(word=word, meaning=meaning, definition=str(item.get("definition", "") or "").strip())


def catalog_from_dict(obj: dict) -> Catalog:
    units = []
    for raw_unit in obj.get("units", []) or []:
        if not isinstance(raw_unit, dict):
            continue
        lessons = []
        for raw_lesson in raw_unit.get("lessons", []) or []:
            if not isinstance(raw_lesson, dict):
                continue
            vocab, seen = [], set()
            for item in raw_lesson.get("vocabulary", []) or []:
                entry = _entry_from_dict(item)
                if entry is None or entry.word in seen:
                    continue
                seen.add(entry.word)
                vocab.append(entry)
            # leere Lektionen sind nicht abfragbar
            if vocab:
                lessons.append(Lesson(lesson_number=int(raw_lesson.get("lesson_number", len(lessons) + 1)), vocabulary=tuple(vocab)))
        if lessons:
            units.append(Unit(unit_number=int(raw_unit.get("unit_number", len(units) + 1)), lessons=tuple(lessons)))
    return Catalog(title=str(obj.get("title", "") or ""), units=tuple(units))


def load_catalog(json_path) -> Catalog:
    p = Path(json_path)
    if not p.exists():
        Logger.error(f"Catalog: {p} not found")
        return Catalog()
    try:
        with open(p, "r", encoding="utf-8") as f:
            obj = json.load(f)
        return catalog_from_dict(obj if isinstance(obj, dict) else {})
    except (OSError, ValueError, TypeError) as e:
        Logger.error(f"Catalog: failed to load {p}: {e}")
        return Catalog()
