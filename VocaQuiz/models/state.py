from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime
from typing import Optional


class QuizMode(str, Enum):
    KOREAN_TO_ENGLISH = "korean_to_english"
    ENGLISH_TO_KOREAN = "english_to_korean"
    SPELLING = "spelling"
    SPEAKING = "speaking"


@dataclass(frozen=True, slots=True)
class VocabularyEntry:
    word: str
    meaning: str
    definition: str = ""

    def to_dict(self) -> dict:
        return {"word": self.word, "meaning": self.meaning, "definition": self.definition}


@dataclass(frozen=True, slots=True)
class Lesson:
    lesson_number: int
    vocabulary: tuple[VocabularyEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class Unit:
    unit_number: int
    lessons: tuple[Lesson, ...] = ()


@dataclass(frozen=True, slots=True)
class Catalog:
    title: str = ""
    units: tuple[Unit, ...] = ()


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    id: str
    date: str
    unit_number: Optional[int]
    lesson_number: Optional[int]
    mode: QuizMode
    total_questions: int
    correct_answers: int
    percentage: int
    duration_seconds: int
    xp_gained: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "unit_number": self.unit_number,
            "lesson_number": self.lesson_number,
            "mode": self.mode.value,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "percentage": self.percentage,
            "duration_seconds": self.duration_seconds,
            "xp_gained": self.xp_gained,
        }


@dataclass(slots=True)
class SessionState:
    active_unit: Optional[Unit] = None
    active_lesson: Optional[Lesson] = None
    mode: QuizMode = QuizMode.KOREAN_TO_ENGLISH
    question_set: list[VocabularyEntry] = field(default_factory=list)
    current_index: int = 0
    correct_count: int = 0
    session_wrong_answers: list[VocabularyEntry] = field(default_factory=list)
    session_start: Optional[datetime] = None
    is_quiz_active: bool = False
    is_preview_active: bool = False


@dataclass(slots=True)
class ProgressState:
    # keyed by VocabularyEntry.word, insertion ordered
    persistent_mistakes: dict[str, VocabularyEntry] = field(default_factory=dict)
    history: list[HistoryEntry] = field(default_factory=list)
    xp: int = 0
    level: int = 1
    streak: int = 0
    last_study_date: Optional[str] = None
    earned_badges: list[str] = field(default_factory=list)
