"""
Quiz/Progress store.

Owns the running quiz session (questions, cursor, score, wrong answers) and
the durable progress (review queue, history, XP, level, streak, badges).
All mutation goes through the action methods below; the screens only read
attributes and call actions.
"""
from __future__ import annotations
from datetime import datetime
from typing import Callable, Optional
import math
import random

from kivy.logger import Logger

from VocaQuiz import config
from VocaQuiz.models import gamification
from VocaQuiz.models.state import (
    HistoryEntry,
    Lesson,
    ProgressState,
    QuizMode,
    SessionState,
    Unit,
    VocabularyEntry,
)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class QuizStore:
    def __init__(
        self,
        progress: Optional[ProgressState] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        on_persist: Optional[Callable[["QuizStore"], None]] = None,
    ):
        self.session = SessionState()
        self.progress = progress if progress is not None else ProgressState()
        self.last_result: Optional[HistoryEntry] = None
        self.last_badges: list[gamification.Badge] = []
        self._clock = clock or _local_now
        self._rng = rng or random.Random()
        self._on_persist = on_persist
        self._listeners: list[Callable[[str, object], None]] = []

    # ---- Listener / persistence hooks ----
    def bind(self, callback: Callable[[str, object], None]):
        if callback not in self._listeners:
            self._listeners.append(callback)

    def set_persist_hook(self, hook: Optional[Callable[["QuizStore"], None]]):
        self._on_persist = hook

    def _emit(self, event: str, payload=None):
        for cb in list(self._listeners):
            try:
                cb(event, payload)
            except Exception as e:
                Logger.warning(f"QuizStore: listener failed on {event}: {e}")

    def _persist(self):
        if not self._on_persist:
            return
        try:
            self._on_persist(self)
        except Exception as e:
            Logger.warning(f"QuizStore: persisting progress failed: {e}")

    # ---- Read-only views ----
    @property
    def mode(self) -> QuizMode:
        return self.session.mode

    @property
    def question_set(self) -> list[VocabularyEntry]:
        return self.session.question_set

    @property
    def current_index(self) -> int:
        return self.session.current_index

    @property
    def correct_count(self) -> int:
        return self.session.correct_count

    @property
    def session_wrong_answers(self) -> list[VocabularyEntry]:
        return self.session.session_wrong_answers

    @property
    def is_quiz_active(self) -> bool:
        return self.session.is_quiz_active

    @property
    def is_preview_active(self) -> bool:
        return self.session.is_preview_active

    @property
    def is_review_session(self) -> bool:
        return self.session.active_unit is None and self.session.active_lesson is None

    @property
    def current_question(self) -> Optional[VocabularyEntry]:
        qs = self.session.question_set
        if not self.session.is_quiz_active or not qs:
            return None
        return qs[self.session.current_index]

    @property
    def view(self) -> str:
        if self.session.is_preview_active:
            return "preview"
        if self.session.is_quiz_active:
            return "quiz"
        if self.session.question_set:
            return "finished"
        return "idle"

    @property
    def persistent_mistakes(self) -> list[VocabularyEntry]:
        return list(self.progress.persistent_mistakes.values())

    @property
    def history(self) -> list[HistoryEntry]:
        return self.progress.history

    @property
    def xp(self) -> int:
        return self.progress.xp

    @property
    def level(self) -> int:
        return self.progress.level

    @property
    def streak(self) -> int:
        return self.progress.streak

    @property
    def last_study_date(self) -> Optional[str]:
        return self.progress.last_study_date

    @property
    def earned_badges(self) -> list[str]:
        return self.progress.earned_badges

    def best_score(self, unit_number: int, lesson_number: int) -> Optional[int]:
        scores = [
            h.percentage for h in self.progress.history
            if h.unit_number == unit_number and h.lesson_number == lesson_number
        ]
        return max(scores) if scores else None

    # ---- Session actions ----
    def _begin(self, unit: Optional[Unit], lesson: Optional[Lesson], mode: QuizMode, words):
        questions = list(words)
        self._rng.shuffle(questions)
        self.session = SessionState(
            active_unit=unit,
            active_lesson=lesson,
            mode=QuizMode(mode),
            question_set=questions,
            session_start=self._clock(),
            is_quiz_active=True,
        )
        self.last_result = None
        self.last_badges = []

    def start_quiz(self, unit: Unit, lesson: Lesson, mode: QuizMode):
        if lesson is None or not lesson.vocabulary:
            Logger.debug("QuizStore: start_quiz ignored, lesson has no vocabulary")
            return
        self._begin(unit, lesson, mode, lesson.vocabulary)
        Logger.info(
            f"QuizStore: quiz started unit={getattr(unit, 'unit_number', None)} "
            f"lesson={lesson.lesson_number} mode={self.session.mode.value} n={len(self.session.question_set)}"
        )

    def start_review_quiz(self, mode: QuizMode):
        mistakes = self.persistent_mistakes
        if not mistakes:
            Logger.debug("QuizStore: review queue empty, start_review_quiz ignored")
            return
        self._begin(None, None, mode, mistakes)
        Logger.info(f"QuizStore: review started mode={self.session.mode.value} n={len(mistakes)}")

    def start_preview(self, unit: Unit, lesson: Lesson):
        s = self.session
        s.active_unit = unit
        s.active_lesson = lesson
        s.question_set = list(lesson.vocabulary)
        s.current_index = 0
        s.is_preview_active = True
        s.is_quiz_active = False

    def submit_answer(self, is_correct: bool, word: VocabularyEntry):
        s = self.session
        if not s.is_quiz_active:
            Logger.debug("QuizStore: submit_answer ignored, no active quiz")
            return
        mistakes = self.progress.persistent_mistakes
        changed = False
        if is_correct:
            s.correct_count += 1
            if s.active_lesson is None and word.word in mistakes:
                del mistakes[word.word]
                changed = True
        else:
            s.session_wrong_answers.append(word)
            if word.word not in mistakes:
                mistakes[word.word] = word
                changed = True
        if changed:
            self._persist()

    def next_question(self):
        s = self.session
        if not s.is_quiz_active:
            Logger.debug("QuizStore: next_question ignored, no active quiz")
            return
        if s.current_index >= len(s.question_set) - 1:
            self.end_quiz()
            return
        s.current_index += 1

    def end_quiz(self):
        s = self.session
        now = self._clock()
        duration = 0
        if s.session_start is not None:
            duration = max(math.floor((now - s.session_start).total_seconds()), 0)
        total = len(s.question_set)
        percentage = gamification.score_percentage(s.correct_count, total)
        xp_gained = gamification.xp_for_session(s.correct_count, percentage)

        entry = HistoryEntry(
            id=self._next_history_id(now),
            date=now.isoformat(),
            unit_number=s.active_unit.unit_number if s.active_unit else None,
            lesson_number=s.active_lesson.lesson_number if s.active_lesson else None,
            mode=s.mode,
            total_questions=total,
            correct_answers=s.correct_count,
            percentage=percentage,
            duration_seconds=duration,
            xp_gained=xp_gained,
        )
        p = self.progress
        p.history = [entry] + p.history[: config.HISTORY_LIMIT - 1]
        p.streak = gamification.next_streak(p.streak, p.last_study_date, gamification.to_local_date(now))
        p.last_study_date = now.isoformat()
        s.is_quiz_active = False
        self.last_result = entry
        Logger.info(
            f"QuizStore: quiz finished {entry.correct_answers}/{entry.total_questions} "
            f"({entry.percentage}%) +{xp_gained} XP streak={p.streak}"
        )

        self.add_xp(xp_gained)
        self.last_badges = self.check_achievements(entry)
        self._persist()

    def _next_history_id(self, now: datetime) -> str:
        hid = str(int(now.timestamp() * 1000))
        taken = {h.id for h in self.progress.history[:5]}
        n = 1
        base = hid
        while hid in taken:
            hid = f"{base}-{n}"
            n += 1
        return hid

    def retry_quiz(self):
        s = self.session
        if s.active_lesson is not None:
            self.start_quiz(s.active_unit, s.active_lesson, s.mode)
        elif self.progress.persistent_mistakes:
            self.start_review_quiz(s.mode)
        else:
            Logger.debug("QuizStore: nothing to retry")

    def reset_quiz(self):
        mode = self.session.mode
        self.session = SessionState(mode=mode)
        self.last_result = None
        self.last_badges = []

    # ---- Durable resets ----
    def clear_review_list(self):
        self.progress.persistent_mistakes = {}
        self._persist()

    def clear_history(self):
        self.progress.history = []
        self._persist()

    # ---- Gamification ----
    def add_xp(self, amount: int):
        if amount < 0:
            Logger.debug(f"QuizStore: negative XP {amount} ignored")
            return
        p = self.progress
        old_level = p.level
        p.xp += amount
        p.level = gamification.level_for_xp(p.xp)
        if p.level > old_level:
            Logger.info(f"QuizStore: level up {old_level} -> {p.level}")
            self._emit("level_up", p.level)
        self._persist()

    def check_achievements(self, entry: HistoryEntry) -> list[gamification.Badge]:
        earned = self.progress.earned_badges
        new_badges = [
            b for b in gamification.BADGES
            if b.id not in earned and b.predicate(self, entry)
        ]
        if not new_badges:
            return []
        for b in new_badges:
            earned.append(b.id)
            Logger.info(f"QuizStore: badge earned {b.id}")
            self._emit("badge_earned", b)
        self._persist()
        return new_badges
