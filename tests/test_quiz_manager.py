"""
Tests for the session registry and the save hook.
"""

from datetime import timedelta

import pytest

from quiz_widget.core.quiz_manager import QuizManager, SessionNotFoundError
from quiz_widget.core.quiz_session import ValidationError
from quiz_widget.core.services.lifecycle import save_session
from quiz_widget.core.services.persistence import SaveResult


@pytest.fixture
def manager(clock) -> QuizManager:
    return QuizManager(clock=clock)


class TestRegistry:
    """Tests for starting, reading and ending sessions."""

    def test_start_session(self, manager, quiz):
        session_id = manager.start_session(quiz)
        snapshot = manager.get_snapshot(session_id)

        assert manager.has_session(session_id)
        assert snapshot.title == "Arithmetic"
        assert snapshot.current_index == 0
        assert snapshot.total_questions == 3
        assert snapshot.selected_option is None
        assert snapshot.correct_option_index is None
        assert snapshot.completed is False

    def test_sessions_are_isolated(self, manager, quiz):
        """Two sessions on the same quiz do not see each other's answers."""
        first = manager.start_session(quiz)
        second = manager.start_session(quiz)

        manager.answer(first, 1)
        manager.advance(first)

        assert first != second
        assert manager.get_snapshot(second).selected_option is None
        assert manager.get_snapshot(second).current_index == 0
        assert manager.get_session_count() == 2

    def test_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.get_snapshot("missing")

    def test_end_session(self, manager, quiz):
        session_id = manager.start_session(quiz)
        manager.end_session(session_id)

        assert not manager.has_session(session_id)
        with pytest.raises(SessionNotFoundError):
            manager.end_session(session_id)


class TestWidgetFlow:
    """Tests for the caller-side navigation protocol."""

    def test_answer_reveals_correct_index(self, manager, quiz):
        session_id = manager.start_session(quiz)

        snapshot = manager.answer(session_id, 0)

        assert snapshot.selected_option == 0
        assert snapshot.correct_option_index == 1

    def test_invalid_answer_propagates(self, manager, quiz):
        session_id = manager.start_session(quiz)

        with pytest.raises(ValidationError):
            manager.answer(session_id, 4)

    def test_advance_completes_only_on_last_question(self, manager, quiz, clock):
        """Next moves forward until the last question, then completes."""
        session_id = manager.start_session(quiz)

        assert manager.advance(session_id).current_index == 1
        assert manager.advance(session_id).current_index == 2
        assert manager.get_snapshot(session_id).completed is False

        clock.advance(seconds=75)
        snapshot = manager.advance(session_id)

        assert snapshot.completed is True
        assert snapshot.current_index == 2
        assert snapshot.summary.formatted_time == "1:15"

    def test_previous_at_start_does_not_complete(self, manager, quiz):
        session_id = manager.start_session(quiz)

        snapshot = manager.go_previous(session_id)

        assert snapshot.completed is False
        assert snapshot.current_index == 0

    def test_hint_cleared_on_move(self, manager, quiz):
        session_id = manager.start_session(quiz)

        assert manager.toggle_hint(session_id).show_hint is True
        assert manager.advance(session_id).show_hint is False

        manager.toggle_hint(session_id)
        assert manager.go_previous(session_id).show_hint is False

    def test_hint_kept_when_move_refused(self, manager, quiz):
        session_id = manager.start_session(quiz)
        manager.toggle_hint(session_id)

        assert manager.go_previous(session_id).show_hint is True
        assert manager.go_to(session_id, 9).show_hint is True

    def test_full_run_and_retake(self, manager, quiz):
        """Answer everything, finish, then retake from scratch."""
        session_id = manager.start_session(quiz)
        manager.answer(session_id, 1)
        manager.advance(session_id)
        manager.answer(session_id, 0)
        manager.advance(session_id)
        manager.answer(session_id, 0)
        manager.toggle_hint(session_id)

        finished = manager.advance(session_id)

        assert finished.completed is True
        assert finished.summary.score == 2
        assert finished.summary.accuracy == 67
        assert finished.summary.progress == 100

        restarted = manager.retake(session_id)

        assert restarted.completed is False
        assert restarted.current_index == 0
        assert restarted.show_hint is False
        assert restarted.summary.answered_count == 0


class TestSave:
    """Tests for handing session data to persistence."""

    def test_save_passes_bundle_with_answers(self, manager, quiz):
        session_id = manager.start_session(quiz)
        manager.answer(session_id, 2)
        received = []

        def hook(bundle):
            received.append(bundle)
            return SaveResult(success=True, message="ok")

        result = manager.save(session_id, hook)

        assert result.success is True
        assert received[0]["title"] == "Arithmetic"
        assert received[0]["answers"] == [2, None, None]

    def test_failed_save_keeps_state(self, manager, quiz):
        """A raising hook is reported as failure and nothing is rolled back."""
        session_id = manager.start_session(quiz)
        manager.answer(session_id, 1)
        manager.advance(session_id)

        def hook(bundle):
            raise ConnectionError("backend down")

        result = manager.save(session_id, hook)
        snapshot = manager.get_snapshot(session_id)

        assert result == SaveResult(success=False, message="backend down")
        assert snapshot.current_index == 1
        assert snapshot.summary.answered_count == 1

    def test_hook_cannot_mutate_answers(self, quiz):
        answers = [1, None, None]

        def hook(bundle):
            bundle["answers"][0] = 3
            return SaveResult(success=True, message="ok")

        save_session(quiz, answers, hook)

        assert answers == [1, None, None]

    def test_boolean_hook_result(self, quiz):
        assert save_session(quiz, None, lambda bundle: False).success is False
        assert save_session(quiz, None, lambda bundle: True).success is True

    def test_save_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.save("missing", lambda bundle: SaveResult(True, "ok"))


class TestCompletedSession:
    """A finished quiz stays as it was shown until it is retaken."""

    def finish(self, manager, quiz, clock):
        session_id = manager.start_session(quiz)
        manager.go_to(session_id, 2)
        manager.answer(session_id, 0)
        clock.advance(seconds=30)
        return session_id, manager.advance(session_id)

    def test_repeated_advance_keeps_time(self, manager, quiz, clock):
        session_id, finished = self.finish(manager, quiz, clock)
        clock.advance(minutes=5)

        again = manager.advance(session_id)

        assert finished.summary.formatted_time == "0:30"
        assert again.summary.formatted_time == "0:30"
        assert again.summary.elapsed_ms == 30000

    def test_answers_frozen_after_completion(self, manager, quiz, clock):
        session_id, finished = self.finish(manager, quiz, clock)

        after = manager.answer(session_id, 1)

        assert finished.summary.score == 1
        assert after.summary.score == 1
        assert after.selected_option == 0
        assert after.completed is True

    def test_navigation_frozen_after_completion(self, manager, quiz, clock):
        session_id, _ = self.finish(manager, quiz, clock)

        assert manager.go_previous(session_id).current_index == 2
        assert manager.go_to(session_id, 0).current_index == 2

    def test_retake_unfreezes(self, manager, quiz, clock):
        session_id, _ = self.finish(manager, quiz, clock)
        manager.retake(session_id)

        snapshot = manager.answer(session_id, 3)

        assert snapshot.completed is False
        assert snapshot.selected_option == 3


class TestEviction:
    """Sessions nobody ends are eventually dropped."""

    def test_session_count_is_capped(self, clock, quiz):
        manager = QuizManager(clock=clock, max_sessions=10)

        ids = [manager.start_session(quiz) for _ in range(25)]

        assert manager.get_session_count() == 10
        assert not manager.has_session(ids[0])
        assert manager.has_session(ids[-1])

    def test_default_cap_bounds_growth(self, clock, quiz):
        manager = QuizManager(clock=clock)

        for _ in range(1000):
            manager.start_session(quiz)

        assert manager.get_session_count() < 1000

    def test_least_recently_used_is_evicted(self, clock, quiz):
        manager = QuizManager(clock=clock, max_sessions=2)
        first = manager.start_session(quiz)
        clock.advance(seconds=1)
        second = manager.start_session(quiz)
        clock.advance(seconds=1)
        manager.get_snapshot(first)
        clock.advance(seconds=1)

        third = manager.start_session(quiz)

        assert manager.has_session(first)
        assert not manager.has_session(second)
        assert manager.has_session(third)

    def test_idle_sessions_expire(self, clock, quiz):
        manager = QuizManager(clock=clock, idle_timeout=timedelta(minutes=30))
        idle = manager.start_session(quiz)
        active = manager.start_session(quiz)
        clock.advance(minutes=20)
        manager.advance(active)
        clock.advance(minutes=15)

        manager.start_session(quiz)

        assert not manager.has_session(idle)
        assert manager.has_session(active)
        with pytest.raises(SessionNotFoundError):
            manager.get_snapshot(idle)

    def test_invalid_cap(self, clock):
        with pytest.raises(ValueError):
            QuizManager(clock=clock, max_sessions=0)
