# ==============================================================================
# ARCHITECTURE: INTEGRATION TEST (WIRED LOCAL BACKEND)
# ------------------------------------------------------------------------------
# GOAL: A full test attempt lands in results, anonymous players, the
#       behaviour log and the leaderboard.
# CONSTRAINTS:
#   1. In-memory SQLite, bundled question file, no seed data.
# ==============================================================================
from datetime import timedelta

import pytest

from src.cms.domain.models import BehaviorEvent
from src.shared.errors import ValidationError


class TestTestService:
    def test_perfect_run(self, services, user_info, question_answers, now):
        # Arrange
        tests = services.tests
        session = tests.start_session(is_mobile=True, now=now)
        for index, option in enumerate(question_answers):
            session.answer(option, index=index)

        # Act
        result, record = tests.submit(session, user_info, now=now + timedelta(minutes=10))

        # Assert
        assert result.correct_answers == len(question_answers)
        assert result.iq == 145
        assert result.classification == "genius"
        assert result.time_spent == 600
        assert record.id is not None

        players = services.users.list_users(user_type="anonymous").items
        assert [p.full_name for p in players] == ["Lan"]
        assert players[0].test_score == 145

        events = [log.event_type for log in services.analytics.repo.list_logs()]
        assert events == [BehaviorEvent.START, BehaviorEvent.COMPLETE]

        entry = services.leaderboard.get_page().items[0]
        assert (entry.name, entry.score, entry.badge) == ("Lan", 145, "genius")

    def test_registered_user_is_not_saved_as_anonymous(self, services, user_info, now):
        session = services.tests.start_session(now=now)

        services.tests.submit(session, user_info, user_id="user-42", now=now)

        assert services.users.list_users(user_type="anonymous").total == 0

    def test_session_from_answers_clamps_time(self, services, question_answers, now):
        session = services.tests.session_from_answers(
            question_answers[:3], time_spent=99999, now=now
        )

        assert session.answers[3] is None
        assert session.elapsed_seconds(now) == services.tests.time_limit

    def test_too_many_answers(self, services, question_answers):
        with pytest.raises(ValidationError):
            services.tests.session_from_answers(question_answers + [0], time_spent=10)

    def test_abandon_logs_position(self, services, now):
        session = services.tests.start_session(now=now)
        session.go_to(4)
        session.answer(1)

        services.tests.abandon(session, "pause_exit", now=now)

        abandon = services.analytics.repo.list_logs()[-1]
        assert abandon.event_type == BehaviorEvent.ABANDON
        assert abandon.question_number == 5
        assert abandon.event_data == {"reason": "pause_exit", "answered": 1}
        assert services.analytics.get_analytics_stats().main_abandon_reason == "pause_exit"
