# ==============================================================================
# ARCHITECTURE: UNIT TEST (APPLICATION SERVICES)
# ------------------------------------------------------------------------------
# GOAL: Dashboard aggregates over the behaviour log, and the merged user list.
# CONSTRAINTS:
#   1. Repositories are in-memory fakes or mocks.
# ==============================================================================
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from src.cms.application.analytics import AnalyticsService
from src.cms.application.users import UserService
from src.cms.domain.models import (
    AnonymousPlayer,
    BehaviorEvent,
    BehaviorLog,
    UserProfile,
)


class InMemoryLogRepository:
    def __init__(self):
        self.logs: list[BehaviorLog] = []

    def append(self, log):
        self.logs.append(log)

    def list_logs(self):
        return list(self.logs)


def at(hour, minute=0):
    return datetime(2025, 6, 1, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def analytics():
    return AnalyticsService(InMemoryLogRepository())


class TestAnalyticsStats:
    def test_empty_log_gives_defaults(self, analytics):
        stats = analytics.get_analytics_stats()

        assert stats.total_sessions == 0
        assert stats.peak_hour == 9
        assert stats.main_abandon_reason == "N/A"
        assert stats.device_stats["mobile"].count == 0

    def test_aggregates(self, analytics):
        # Arrange
        log = analytics.log_event
        log("s1", BehaviorEvent.START, 1, {"isMobile": True}, at(10, 5))
        log("s1", BehaviorEvent.COMPLETE, 12, {"totalTime": 600, "score": 120}, at(10, 15))
        log("s2", BehaviorEvent.START, 1, {"isMobile": False}, at(10, 30))
        log("s2", BehaviorEvent.ABANDON, 3, {"reason": "too_hard"}, at(10, 40))
        log("s3", BehaviorEvent.START, 1, {"isMobile": False}, at(14))
        log("s3", BehaviorEvent.COMPLETE, 12, {"totalTime": 1200, "score": 100}, at(14, 20))
        log("s4", BehaviorEvent.START, 1, {"isMobile": True}, at(14, 10))

        # Act
        stats = analytics.get_analytics_stats()

        # Assert
        assert stats.total_sessions == 4
        assert stats.completed_sessions == 2
        assert stats.abandoned_sessions == 1
        assert stats.in_progress_sessions == 1
        assert (stats.completion_rate, stats.abandon_rate, stats.in_progress_rate) == (
            50,
            25,
            25,
        )
        assert stats.avg_completion_time == 15
        assert stats.peak_hour == 10  # tie with 14, earliest wins
        assert stats.main_abandon_reason == "too_hard"
        assert [(p.question_number, p.abandon_count) for p in stats.problem_questions] == [
            (3, 1)
        ]
        assert stats.device_stats["mobile"].completion_rate == 50
        assert stats.device_stats["desktop"].count == 2
        assert stats.score_vs_speed["fast"].avg_score == 120
        assert stats.score_vs_speed["medium"].count == 1
        assert stats.score_vs_speed["slow"].count == 0

    def test_completed_session_with_abandon_popup_counts_as_completed(self, analytics):
        analytics.log_event("s1", BehaviorEvent.START, 1, {"isMobile": False}, at(9))
        analytics.log_event("s1", BehaviorEvent.ABANDON, 5, {"reason": "popup"}, at(9, 5))
        analytics.log_event("s1", BehaviorEvent.COMPLETE, 12, {"totalTime": 900}, at(9, 15))

        stats = analytics.get_analytics_stats()

        assert stats.completed_sessions == 1
        assert stats.abandoned_sessions == 0

    def test_stats_are_cached_until_next_event(self, analytics):
        first = analytics.get_analytics_stats()
        assert analytics.get_analytics_stats() is first

        analytics.log_event("s1", BehaviorEvent.START, 1, {"isMobile": True}, at(9))

        assert analytics.get_analytics_stats().total_sessions == 1

    def test_non_numeric_time_is_ignored(self, analytics):
        analytics.log_event("s1", BehaviorEvent.COMPLETE, 12, {"totalTime": "soon"}, at(9))
        assert analytics.get_analytics_stats().avg_completion_time == 0


@pytest.fixture
def directory():
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    mock = Mock()
    mock.list_profiles.return_value = [
        UserProfile(
            id="u1",
            full_name="Minh Admin",
            email="admin@example.com",
            role="admin",
            is_verified=True,
            created_at=base,
        ),
        UserProfile(id="u2", full_name="Hoa", email="hoa@example.com", created_at=base + timedelta(days=2)),
    ]
    mock.list_anonymous_players.return_value = [
        AnonymousPlayer(
            id="a1", name="Guest", test_score=118, created_at=base + timedelta(days=1)
        ),
    ]
    return mock


class TestUserService:
    def test_merges_and_sorts_newest_first(self, directory):
        page = UserService(directory).list_users()

        assert [r.id for r in page.items] == ["u2", "a1", "u1"]
        assert page.items[1].user_type == "anonymous"
        assert page.items[1].test_score == 118

    def test_filters(self, directory):
        service = UserService(directory)

        assert [r.id for r in service.list_users(role="admin").items] == ["u1"]
        assert [r.id for r in service.list_users(verified=False).items] == ["u2", "a1"]
        assert [r.id for r in service.list_users(search="HOA").items] == ["u2"]

    def test_user_type_skips_other_source(self, directory):
        page = UserService(directory).list_users(user_type="registered")

        assert page.total == 2
        directory.list_anonymous_players.assert_not_called()

    def test_pagination(self, directory):
        page = UserService(directory).list_users(page=2, limit=2)

        assert [r.id for r in page.items] == ["u1"]
        assert page.total_pages == 2
