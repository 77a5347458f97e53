# ==============================================================================
# ARCHITECTURE: UNIT TEST (CORE LOGIC)
# ------------------------------------------------------------------------------
# GOAL: The publishing batch flips only due articles and reports failures
#       as data instead of raising.
# CONSTRAINTS:
#   1. Repository is mocked; no database.
#   2. At most `batch_limit` articles per run.
# ==============================================================================
from datetime import timedelta
from unittest.mock import Mock

from src.cms.application.scheduled_publishing import ScheduledPublishingService
from src.cms.domain.models import ScheduledArticleRef


def make_refs(count, now):
    return [
        ScheduledArticleRef(f"a{i}", f"Article {i}", now - timedelta(minutes=i))
        for i in range(count)
    ]


class TestProcessScheduledArticles:
    def test_publishes_due_articles(self, now):
        # Arrange
        repo = Mock()
        repo.find_due_scheduled.return_value = make_refs(2, now)
        repo.publish_scheduled.return_value = ["a0", "a1"]
        service = ScheduledPublishingService(repo)

        # Act
        result = service.process_scheduled_articles(now)

        # Assert
        repo.find_due_scheduled.assert_called_once_with(now, 50)
        repo.publish_scheduled.assert_called_once_with(["a0", "a1"], now)
        assert result.published == 2
        assert result.errors == []
        assert result.articles == ["a0", "a1"]

    def test_nothing_due_skips_update(self, now):
        repo = Mock()
        repo.find_due_scheduled.return_value = []
        service = ScheduledPublishingService(repo)

        result = service.process_scheduled_articles(now)

        assert result.published == 0
        repo.publish_scheduled.assert_not_called()

    def test_batch_is_capped_even_if_repository_overfetches(self, now):
        repo = Mock()
        repo.find_due_scheduled.return_value = make_refs(60, now)
        repo.publish_scheduled.side_effect = lambda ids, _now: ids
        service = ScheduledPublishingService(repo, batch_limit=50)

        result = service.process_scheduled_articles(now)

        published_ids = repo.publish_scheduled.call_args.args[0]
        assert len(published_ids) == 50
        assert result.published == 50

    def test_only_rows_the_update_confirmed_count(self, now):
        # An editor unscheduled a1 between the select and the update
        repo = Mock()
        repo.find_due_scheduled.return_value = make_refs(2, now)
        repo.publish_scheduled.return_value = ["a0"]
        service = ScheduledPublishingService(repo)

        result = service.process_scheduled_articles(now)

        assert result.published == 1
        assert result.articles == ["a0"]

    def test_fetch_error_is_reported(self, now):
        repo = Mock()
        repo.find_due_scheduled.side_effect = RuntimeError("connection refused")
        service = ScheduledPublishingService(repo)

        result = service.process_scheduled_articles(now)

        assert result.published == 0
        assert result.errors == ["Fetch error: connection refused"]

    def test_update_error_is_reported(self, now):
        repo = Mock()
        repo.find_due_scheduled.return_value = make_refs(1, now)
        repo.publish_scheduled.side_effect = RuntimeError("deadlock")
        service = ScheduledPublishingService(repo)

        result = service.process_scheduled_articles(now)

        assert result.published == 0
        assert result.errors == ["Update error: deadlock"]


class TestStatsAndHealth:
    def test_stats_split_by_due_time(self, now):
        repo = Mock()
        repo.count_scheduled.side_effect = lambda due_before=None, due_after=None: (
            1 if due_before else 4 if due_after else 5
        )
        service = ScheduledPublishingService(repo)

        stats = service.get_scheduled_stats(now)

        assert (stats.total, stats.upcoming, stats.overdue) == (5, 4, 1)

    def test_overdue_is_warning(self, now):
        repo = Mock()
        repo.count_scheduled.side_effect = lambda due_before=None, due_after=None: (
            2 if due_before else 0
        )
        health = ScheduledPublishingService(repo).health_check(now)

        assert health.status == "warning"
        assert "2 article(s)" in health.message

    def test_healthy(self, now):
        repo = Mock()
        repo.count_scheduled.return_value = 0
        health = ScheduledPublishingService(repo).health_check(now)
        assert health.status == "healthy"

    def test_error(self, now):
        repo = Mock()
        repo.count_scheduled.side_effect = RuntimeError("down")
        health = ScheduledPublishingService(repo).health_check(now)

        assert health.status == "error"
        assert health.stats is None

    def test_upcoming_limit_at_least_one(self, now):
        repo = Mock()
        repo.list_upcoming_scheduled.return_value = []
        ScheduledPublishingService(repo).get_upcoming_scheduled_articles(0, now)
        repo.list_upcoming_scheduled.assert_called_once_with(now, 1)
