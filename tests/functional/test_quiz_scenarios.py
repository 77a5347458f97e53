# ==============================================================================
# ARCHITECTURE: FUNCTIONAL TEST (USER FLOWS)
# ------------------------------------------------------------------------------
# GOAL: Verify a full test attempt end to end, from the landing page to the
#       leaderboard, through TestViewModel and the wired services.
# CONSTRAINTS:
#   1. SERVICES: Real services on an in-memory SQLite backend.
#   2. TIME: Injected clock; st.session_state is the conftest mock.
# ==============================================================================
from datetime import timedelta

from src.iqtest.domain.session import TestState
from src.iqtest.presentation.state_provider import StreamlitStateProvider
from src.iqtest.presentation.viewmodel import TestViewModel


class SteppedClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


def test_scenario_paused_attempt_reaches_leaderboard(
    services, now, user_info, question_answers
):
    clock = SteppedClock(now)

    def rerun():
        return TestViewModel(services.tests, StreamlitStateProvider(), clock=clock)

    # 1. Landing -> info form -> test
    vm = rerun()
    vm.begin()
    vm = rerun()
    vm.start_test(user_info, is_mobile=True)

    # 2. Answer every question, one rerun per click
    for option in question_answers:
        vm = rerun()
        vm.select_answer(option)
        vm.go_next()
        clock.advance(20)

    # 3. Pause; the break is not charged
    vm = rerun()
    vm.pause()
    clock.advance(600)
    assert rerun().current_state == TestState.PAUSED

    # 4. Submit from the pause popup
    vm = rerun()
    vm.submit()

    vm = rerun()
    assert vm.current_state == TestState.COMPLETED
    assert vm.result.iq == 145
    assert vm.result.time_spent == 20 * len(question_answers)

    # 5. The leaderboard and the admin analytics see the attempt
    board = services.leaderboard.get_page()
    assert board.total == 1
    top = board.items[0]
    assert (top.rank, top.name, top.score, top.badge) == (1, "Lan", 145, "genius")

    stats = services.analytics.get_analytics_stats()
    assert stats.completed_sessions == 1
    assert stats.device_stats["mobile"].count == 1
