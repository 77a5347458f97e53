# ==============================================================================
# ARCHITECTURE: UNIT TEST (CORE LOGIC)
# ------------------------------------------------------------------------------
# GOAL: Test attempt lifecycle and the pausable timer.
# CONSTRAINTS:
#   1. Invalid transitions are refused, never raised.
#   2. Paused time is not charged.
# ==============================================================================
from datetime import timedelta

import pytest

from src.iqtest.domain.session import (
    TestAction,
    TestSession,
    TestState,
    TestStateMachine,
)


class TestStateMachineTransitions:
    def test_happy_path(self):
        fsm = TestStateMachine()

        assert fsm.transition(TestAction.BEGIN)
        assert fsm.transition(TestAction.START)
        assert fsm.transition(TestAction.PAUSE)
        assert fsm.current_state == TestState.PAUSED
        assert fsm.transition(TestAction.RESUME)
        assert fsm.transition(TestAction.SUBMIT)
        assert fsm.current_state == TestState.COMPLETED

    def test_submit_from_pause(self):
        fsm = TestStateMachine(TestState.PAUSED)
        assert fsm.transition(TestAction.SUBMIT)
        assert fsm.current_state == TestState.COMPLETED

    def test_time_up(self):
        fsm = TestStateMachine(TestState.IN_PROGRESS)
        assert fsm.transition(TestAction.TIME_UP)
        assert fsm.current_state == TestState.COMPLETED

    @pytest.mark.parametrize(
        "state, action",
        [
            (TestState.IDLE, TestAction.START),
            (TestState.IDLE, TestAction.SUBMIT),
            (TestState.COMPLETED, TestAction.PAUSE),
            (TestState.COMPLETED, TestAction.ABANDON),
            (TestState.PAUSED, TestAction.PAUSE),
        ],
    )
    def test_invalid_transition_keeps_state(self, state, action):
        fsm = TestStateMachine(state)
        assert fsm.transition(action) is False
        assert fsm.current_state == state

    def test_abandon_and_reset_return_to_idle(self):
        fsm = TestStateMachine(TestState.IN_PROGRESS)
        assert fsm.transition(TestAction.ABANDON)
        assert fsm.current_state == TestState.IDLE

        fsm = TestStateMachine(TestState.COMPLETED)
        assert fsm.transition(TestAction.RESET)
        assert fsm.current_state == TestState.IDLE


@pytest.fixture
def session(now):
    return TestSession(
        session_id="s1", question_ids=[1, 2, 3], started_at=now, time_limit=600
    )


class TestSessionNavigation:
    def test_answers_padded_to_question_count(self, session):
        assert session.answers == [None, None, None]
        assert session.unanswered_count() == 3

    def test_answer_and_move(self, session):
        session.answer(2)
        session.next()
        session.answer(0)

        assert session.answers == [2, 0, None]
        assert session.current_index == 1

    def test_navigation_is_clamped(self, session):
        session.previous()
        assert session.current_index == 0

        session.go_to(10)
        assert session.current_index == 2
        assert session.is_last_question()

    def test_answer_out_of_range(self, session):
        with pytest.raises(IndexError):
            session.answer(1, index=5)


class TestSessionTimer:
    def test_elapsed_and_remaining(self, session, now):
        later = now + timedelta(seconds=125)
        assert session.elapsed_seconds(later) == 125
        assert session.remaining_seconds(later) == 475

    def test_pause_freezes_clock(self, session, now):
        # Arrange
        session.pause(now + timedelta(seconds=100))

        # Act / Assert: frozen while paused
        assert session.elapsed_seconds(now + timedelta(seconds=400)) == 100

        # Resume after 300s of pause; only running time counts
        session.resume(now + timedelta(seconds=400))
        assert session.elapsed_seconds(now + timedelta(seconds=450)) == 150

    def test_pause_twice_keeps_first_stamp(self, session, now):
        session.pause(now + timedelta(seconds=10))
        session.pause(now + timedelta(seconds=50))
        session.resume(now + timedelta(seconds=60))

        assert session.paused_seconds == 50

    def test_time_up_caps_elapsed(self, session, now):
        much_later = now + timedelta(hours=2)
        assert session.elapsed_seconds(much_later) == 600
        assert session.is_time_up(much_later)
