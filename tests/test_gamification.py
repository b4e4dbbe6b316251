"""
Tests for scoring, XP/level, streaks, history and badges.
"""
from datetime import date

import pytest

from VocaQuiz.models import gamification
from VocaQuiz.models.state import Lesson, QuizMode

from conftest import make_entries


def finish(store, unit, lesson, correct, seconds=60, mode=QuizMode.SPELLING):
    store.start_quiz(unit, lesson, mode)
    store._clock.advance(seconds=seconds)
    for i in range(len(store.question_set)):
        store.submit_answer(i < correct, store.current_question)
        store.next_question()
    return store.history[0]


class TestScoring:
    def test_four_of_five(self, store, unit, lesson):
        entry = finish(store, unit, lesson, correct=4)
        assert entry.percentage == 80
        assert entry.xp_gained == 4 * 10 + 20
        assert entry.total_questions == 5
        assert entry.correct_answers == 4

    def test_perfect(self, store, unit, lesson):
        entry = finish(store, unit, lesson, correct=5)
        assert entry.percentage == 100
        assert entry.xp_gained == 5 * 10 + 50

    def test_low_score_has_no_bonus(self, store, unit, lesson):
        entry = finish(store, unit, lesson, correct=2)
        assert entry.percentage == 40
        assert entry.xp_gained == 20

    @pytest.mark.parametrize("correct,total,expected", [(1, 3, 33), (2, 3, 67), (1, 8, 13), (0, 0, 0)])
    def test_percentage_rounding(self, correct, total, expected):
        assert gamification.score_percentage(correct, total) == expected

    def test_end_quiz_without_questions(self, store):
        store.end_quiz()
        entry = store.history[0]
        assert entry.percentage == 0
        assert entry.total_questions == 0
        assert entry.xp_gained == 0
        assert entry.unit_number is None and entry.lesson_number is None

    def test_duration_and_metadata(self, store, unit, lesson, clock):
        entry = finish(store, unit, lesson, correct=3, seconds=75)
        assert entry.duration_seconds == 75
        assert entry.unit_number == 1
        assert entry.lesson_number == 1
        assert entry.mode == QuizMode.SPELLING
        assert entry.date == clock.now.isoformat()
        assert store.last_study_date == clock.now.isoformat()


class TestXpAndLevel:
    def test_xp_accumulates_and_level_derived(self, store):
        store.add_xp(1200)
        store.add_xp(1300)
        assert store.xp == 2500
        assert store.level == 3

    def test_level_boundaries(self):
        assert gamification.level_for_xp(0) == 1
        assert gamification.level_for_xp(999) == 1
        assert gamification.level_for_xp(1000) == 2

    def test_negative_xp_ignored(self, store):
        store.add_xp(100)
        store.add_xp(-50)
        assert store.xp == 100

    def test_session_xp_added_to_total(self, store, unit, lesson):
        finish(store, unit, lesson, correct=5)
        finish(store, unit, lesson, correct=4)
        assert store.xp == 100 + 60
        assert store.level == 1

    def test_level_up_event(self, store):
        events = []
        store.bind(lambda e, p: events.append((e, p)))
        store.add_xp(999)
        store.add_xp(1)
        assert events == [("level_up", 2)]

    def test_level_progress(self):
        assert gamification.level_progress(2500, 3) == (500, 50.0)
        assert gamification.level_progress(0, 1) == (0, 0.0)

    @pytest.mark.parametrize("level,title", [(1, "Baby Egg"), (4, "Wobbly Chick"), (5, "Smart Owl"), (99, "Legendary Dragon")])
    def test_level_title(self, level, title):
        assert gamification.level_title(level).title == title


class TestStreak:
    def test_first_session_starts_streak(self, store, unit, lesson):
        finish(store, unit, lesson, correct=1)
        assert store.streak == 1

    def test_same_day_keeps_streak(self, store, unit, lesson, clock):
        finish(store, unit, lesson, correct=1)
        clock.advance(hours=5)
        finish(store, unit, lesson, correct=1)
        assert store.streak == 1

    def test_next_day_extends_streak(self, store, unit, lesson, clock):
        finish(store, unit, lesson, correct=1)
        clock.advance(days=1)
        finish(store, unit, lesson, correct=1)
        clock.advance(hours=23)
        finish(store, unit, lesson, correct=1)
        assert store.streak == 3

    def test_gap_resets_streak(self, store, unit, lesson, clock):
        finish(store, unit, lesson, correct=1)
        clock.advance(days=1)
        finish(store, unit, lesson, correct=1)
        assert store.streak == 2
        clock.advance(days=2)
        finish(store, unit, lesson, correct=1)
        assert store.streak == 1

    def test_next_streak_pure(self):
        today = date(2026, 3, 10)
        assert gamification.next_streak(0, None, today) == 1
        assert gamification.next_streak(4, "2026-03-10T08:00:00+00:00", today) == 4
        assert gamification.next_streak(4, "2026-03-09T23:59:00+00:00", today) == 5
        assert gamification.next_streak(4, "2026-03-07T12:00:00+00:00", today) == 1
        assert gamification.next_streak(4, "not a date", today) == 1


class TestHistory:
    def test_history_capped_newest_first(self, store, unit, lesson, clock):
        for _ in range(55):
            clock.advance(minutes=1)
            finish(store, unit, lesson, correct=1, seconds=1)

        assert len(store.history) == 50
        assert store.history[0].date == clock.now.isoformat()
        dates = [h.date for h in store.history]
        assert dates == sorted(dates, reverse=True)
        assert len({h.id for h in store.history}) == 50


class TestBadges:
    def test_first_step(self, store, unit, lesson):
        finish(store, unit, lesson, correct=0)
        assert "first_step" in store.earned_badges

    def test_perfect_score_is_permanent(self, store, unit, lesson):
        finish(store, unit, lesson, correct=4)
        assert "perfect_score" not in store.earned_badges
        finish(store, unit, lesson, correct=5)
        assert "perfect_score" in store.earned_badges
        finish(store, unit, lesson, correct=0)
        assert "perfect_score" in store.earned_badges

    def test_speed_racer_needs_five_correct(self, store, unit, clock):
        short = Lesson(lesson_number=3, vocabulary=make_entries(4))
        finish(store, unit, short, correct=4, seconds=10)
        assert "speed_racer" not in store.earned_badges

        full = Lesson(lesson_number=4, vocabulary=make_entries(6))
        finish(store, unit, full, correct=5, seconds=30)
        assert "speed_racer" in store.earned_badges

    def test_slow_session_no_speed_badge(self, store, unit, lesson):
        finish(store, unit, lesson, correct=5, seconds=31)
        assert "speed_racer" not in store.earned_badges

    def test_streak_badge(self, store, unit, lesson, clock):
        for _ in range(3):
            finish(store, unit, lesson, correct=1)
            clock.advance(days=1)
        assert "streak_3" in store.earned_badges

    def test_level_badge_granted_in_same_session(self, store, unit, lesson):
        store.add_xp(3990)
        assert "level_5" not in store.earned_badges
        finish(store, unit, lesson, correct=1)
        assert store.level == 5
        assert "level_5" in store.earned_badges

    def test_badges_not_duplicated(self, store, unit, lesson):
        for _ in range(3):
            finish(store, unit, lesson, correct=5)
        assert store.earned_badges.count("perfect_score") == 1
        assert store.earned_badges.count("first_step") == 1

    def test_check_achievements_returns_only_new(self, store, unit, lesson):
        entry = finish(store, unit, lesson, correct=5)
        assert store.check_achievements(entry) == []

    def test_last_badges_lists_only_this_session(self, store, unit, lesson):
        finish(store, unit, lesson, correct=5)
        assert {b.id for b in store.last_badges} == {"first_step", "perfect_score"}

        finish(store, unit, lesson, correct=5)
        assert store.last_badges == []

    def test_last_badges_cleared_on_reset(self, store, unit, lesson):
        finish(store, unit, lesson, correct=1)
        assert store.last_badges
        store.reset_quiz()
        assert store.last_badges == []
