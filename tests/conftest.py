import os
import random
import sys
import tempfile
from datetime import datetime, timedelta, timezone

# Kivy must not parse pytest's argv or write log files
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("VOCAQUIZ_HOME", tempfile.mkdtemp(prefix="vocaquiz-test-"))

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from VocaQuiz.models.quiz_store import QuizStore
from VocaQuiz.models.state import Lesson, Unit, VocabularyEntry


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_entries(n, prefix="word"):
    return tuple(
        VocabularyEntry(word=f"{prefix}{i} (n.)", meaning=f"meaning{i}", definition=f"definition {i}")
        for i in range(n)
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lesson():
    return Lesson(lesson_number=1, vocabulary=make_entries(5))


@pytest.fixture
def unit(lesson):
    return Unit(unit_number=1, lessons=(lesson,))


@pytest.fixture
def persisted():
    calls = []
    return calls


@pytest.fixture
def store(clock, persisted):
    return QuizStore(clock=clock, rng=random.Random(1234), on_persist=persisted.append)


@pytest.fixture
def feel_entry():
    return VocabularyEntry(word="feel/felt (v.)", meaning="느끼다", definition="to sense or be aware of")
