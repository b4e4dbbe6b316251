"""
Tests for the quiz session state machine.

Covers:
- Idle / Preview / ActiveQuiz / Finished transitions
- Answer bookkeeping and the persistent review queue
- Finalising through next_question on the last question
- retry / reset / clear actions
"""
from collections import Counter

from VocaQuiz.models.quiz_store import QuizStore
from VocaQuiz.models.state import Lesson, QuizMode, Unit

from conftest import make_entries


def play(store, outcomes):
    """Answer the running quiz in order; True = correct."""
    for ok in outcomes:
        store.submit_answer(ok, store.current_question)
        store.next_question()


class TestTransitions:
    def test_initial_state_is_idle(self, store):
        assert store.view == "idle"
        assert store.question_set == []
        assert not store.is_quiz_active
        assert not store.is_preview_active

    def test_start_quiz_builds_permutation(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)

        assert store.view == "quiz"
        assert len(store.question_set) == len(lesson.vocabulary)
        assert Counter(store.question_set) == Counter(lesson.vocabulary)
        assert store.current_index == 0
        assert store.correct_count == 0
        assert store.session_wrong_answers == []
        assert store.mode == QuizMode.SPELLING

    def test_start_quiz_shuffles_over_many_runs(self, store, unit):
        lesson = Lesson(lesson_number=2, vocabulary=make_entries(8))
        orders = set()
        for _ in range(20):
            store.start_quiz(unit, lesson, QuizMode.SPELLING)
            orders.add(tuple(e.word for e in store.question_set))
        assert len(orders) > 1

    def test_start_quiz_records_start_time(self, store, unit, lesson, clock):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        assert store.session.session_start == clock.now

    def test_start_quiz_with_empty_lesson_is_ignored(self, store, unit):
        store.start_quiz(unit, Lesson(lesson_number=9, vocabulary=()), QuizMode.SPELLING)
        assert store.view == "idle"

    def test_preview_lists_lesson_unshuffled(self, store, unit, lesson):
        store.start_preview(unit, lesson)

        assert store.view == "preview"
        assert store.is_preview_active
        assert not store.is_quiz_active
        assert store.question_set == list(lesson.vocabulary)

    def test_preview_to_quiz_keeps_lesson(self, store, unit, lesson):
        store.start_preview(unit, lesson)
        store.start_quiz(store.session.active_unit, store.session.active_lesson, QuizMode.ENGLISH_TO_KOREAN)

        assert store.view == "quiz"
        assert not store.is_preview_active
        assert store.session.active_lesson is lesson

    def test_preview_reset_returns_to_idle(self, store, unit, lesson):
        store.start_preview(unit, lesson)
        store.reset_quiz()
        assert store.view == "idle"

    def test_next_question_advances_cursor(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.next_question()
        assert store.current_index == 1
        assert store.is_quiz_active

    def test_last_next_question_finishes_and_records_once(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [True] * 5)

        assert store.view == "finished"
        assert not store.is_quiz_active
        assert store.question_set  # kept for the results view
        assert len(store.history) == 1

        # further calls are no-ops
        store.next_question()
        assert len(store.history) == 1

    def test_actions_without_active_quiz_are_noops(self, store, lesson, persisted):
        store.submit_answer(False, lesson.vocabulary[0])
        store.next_question()

        assert store.correct_count == 0
        assert store.persistent_mistakes == []
        assert store.history == []
        assert persisted == []

    def test_reset_keeps_progress(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [False, True, True, True, True])
        xp = store.xp

        store.reset_quiz()

        assert store.view == "idle"
        assert store.session.active_lesson is None
        assert store.correct_count == 0
        assert store.session_wrong_answers == []
        assert store.xp == xp
        assert len(store.history) == 1
        assert len(store.persistent_mistakes) == 1


class TestAnswers:
    def test_correct_answer_counts(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(True, store.current_question)
        assert store.correct_count == 1
        assert store.session_wrong_answers == []
        assert store.current_index == 0

    def test_wrong_answer_goes_to_session_and_queue(self, store, unit, lesson, persisted):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        word = store.current_question
        store.submit_answer(False, word)

        assert store.session_wrong_answers == [word]
        assert store.persistent_mistakes == [word]
        assert len(persisted) == 1

    def test_mistakes_are_deduplicated_across_sessions(self, store, unit, lesson):
        word = lesson.vocabulary[0]
        for _ in range(3):
            store.start_quiz(unit, lesson, QuizMode.SPELLING)
            store.submit_answer(False, word)
            store.submit_answer(False, word)

        assert [w.word for w in store.persistent_mistakes].count(word.word) == 1

    def test_correct_answer_in_lesson_quiz_does_not_redeem(self, store, unit, lesson):
        word = lesson.vocabulary[0]
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(False, word)
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(True, word)

        assert word in store.persistent_mistakes

    def test_review_quiz_redeems_correct_answers(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(False, lesson.vocabulary[0])
        store.submit_answer(False, lesson.vocabulary[1])

        store.start_review_quiz(QuizMode.KOREAN_TO_ENGLISH)
        assert store.is_review_session
        assert sorted(w.word for w in store.question_set) == sorted(
            [lesson.vocabulary[0].word, lesson.vocabulary[1].word]
        )

        store.submit_answer(True, lesson.vocabulary[0])
        assert [w.word for w in store.persistent_mistakes] == [lesson.vocabulary[1].word]

    def test_review_quiz_on_empty_queue_is_ignored(self, store):
        store.start_review_quiz(QuizMode.SPELLING)
        assert store.view == "idle"
        assert store.session == QuizStore().session


class TestRetry:
    def test_retry_lesson_quiz_reshuffles_same_mode(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.ENGLISH_TO_KOREAN)
        play(store, [True, False, True, True, True])

        store.retry_quiz()

        assert store.view == "quiz"
        assert store.mode == QuizMode.ENGLISH_TO_KOREAN
        assert store.session.active_lesson is lesson
        assert store.correct_count == 0
        assert store.session_wrong_answers == []

    def test_retry_review_quiz_uses_remaining_mistakes(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [False, False, True, True, True])

        store.start_review_quiz(QuizMode.SPELLING)
        play(store, [True, False])
        assert len(store.persistent_mistakes) == 1

        store.retry_quiz()
        assert store.view == "quiz"
        assert store.is_review_session
        assert len(store.question_set) == 1

    def test_retry_review_with_empty_queue_is_noop(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(False, lesson.vocabulary[0])
        store.start_review_quiz(QuizMode.SPELLING)
        play(store, [True])
        assert store.persistent_mistakes == []

        store.retry_quiz()
        assert store.view == "finished"


class TestDurableResets:
    def test_clear_review_list(self, store, unit, lesson, persisted):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        store.submit_answer(False, lesson.vocabulary[0])
        persisted.clear()

        store.clear_review_list()

        assert store.persistent_mistakes == []
        assert len(persisted) == 1

    def test_clear_history_keeps_xp_and_badges(self, store, unit, lesson):
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [True] * 5)
        xp, badges = store.xp, list(store.earned_badges)

        store.clear_history()

        assert store.history == []
        assert store.xp == xp
        assert store.earned_badges == badges


class TestListeners:
    def test_persist_hook_failure_does_not_break_actions(self, clock, unit, lesson):
        def broken(_store):
            raise OSError("disk full")

        store = QuizStore(clock=clock, on_persist=broken)
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [False] * 5)

        assert len(store.history) == 1

    def test_badge_events_are_emitted(self, store, unit, lesson):
        events = []
        store.bind(lambda event, payload: events.append((event, payload)))
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [True] * 5)

        earned = [p.id for e, p in events if e == "badge_earned"]
        assert "first_step" in earned
        assert "perfect_score" in earned

    def test_best_score_per_lesson(self, store, unit, lesson):
        assert store.best_score(1, 1) is None
        store.start_quiz(unit, lesson, QuizMode.SPELLING)
        play(store, [True, True, False, False, False])
        store.retry_quiz()
        play(store, [True, True, True, True, False])
        store.retry_quiz()
        play(store, [False] * 5)

        assert store.best_score(1, 1) == 80
        assert store.best_score(1, 2) is None
