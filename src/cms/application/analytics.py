from collections import Counter, defaultdict
from datetime import datetime
from typing import Any

from src.cms.domain.models import (
    AnalyticsStats,
    BehaviorEvent,
    BehaviorLog,
    DeviceBucket,
    ProblemQuestion,
    SpeedBucket,
)
from src.cms.domain.ports import IBehaviorLogRepository
from src.config import AppConfig
from src.shared.cache import TTLCache
from src.shared.clock import utcnow
from src.shared.telemetry import Telemetry, measure_time

FAST_SECONDS = 900  # under 15 minutes
SLOW_SECONDS = 1500  # 25 minutes and over
DEFAULT_PEAK_HOUR = 9
TOP_PROBLEM_QUESTIONS = 5


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _number(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return None
    return float(value)


class AnalyticsService:
    """Aggregates the test behaviour event stream for the admin dashboard."""

    STATS_KEY = "analytics_stats"

    def __init__(
        self, repo: IBehaviorLogRepository, cache: TTLCache | None = None
    ) -> None:
        self.repo = repo
        self.cache = cache or TTLCache(AppConfig.CACHE_DEFAULT_TTL)
        self.telemetry = Telemetry("AnalyticsService")

    def log_event(
        self,
        session_id: str,
        event_type: BehaviorEvent,
        question_number: int | None = None,
        event_data: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> BehaviorLog:
        log = BehaviorLog(
            session_id=session_id,
            event_type=event_type,
            question_number=question_number,
            timestamp=timestamp or utcnow(),
            event_data=event_data or {},
        )
        self.repo.append(log)
        self.cache.delete(self.STATS_KEY)
        return log

    def get_analytics_stats(self) -> AnalyticsStats:
        cached = self.cache.get(self.STATS_KEY)
        if cached is not None:
            return cached
        stats = self._compute_stats()
        self.cache.set(self.STATS_KEY, stats)
        return stats

    @measure_time("analytics_stats")
    def _compute_stats(self) -> AnalyticsStats:
        logs = self.repo.list_logs()
        if not logs:
            return AnalyticsStats()

        stats = AnalyticsStats(
            problem_questions=self._problem_questions(logs),
            device_stats=self._device_stats(logs),
            peak_hour=self._peak_hour(logs),
            main_abandon_reason=self._main_abandon_reason(logs),
            score_vs_speed=self._score_vs_speed(logs),
            avg_completion_time=self._avg_completion_minutes(logs),
        )
        self._fill_session_stats(stats, logs)
        return stats

    @staticmethod
    def _fill_session_stats(stats: AnalyticsStats, logs: list[BehaviorLog]) -> None:
        events: dict[str, set[BehaviorEvent]] = defaultdict(set)
        for log in logs:
            events[log.session_id].add(log.event_type)

        completed = abandoned = in_progress = 0
        for kinds in events.values():
            # A completed session may also carry an earlier abandon popup event
            if BehaviorEvent.COMPLETE in kinds:
                completed += 1
            elif BehaviorEvent.ABANDON in kinds:
                abandoned += 1
            elif BehaviorEvent.START in kinds:
                in_progress += 1

        total = completed + abandoned + in_progress
        stats.total_sessions = total
        stats.completed_sessions = completed
        stats.abandoned_sessions = abandoned
        stats.in_progress_sessions = in_progress
        stats.completion_rate = _percent(completed, total)
        stats.abandon_rate = _percent(abandoned, total)
        stats.in_progress_rate = _percent(in_progress, total)

    @staticmethod
    def _problem_questions(logs: list[BehaviorLog]) -> list[ProblemQuestion]:
        counts = Counter(
            log.question_number
            for log in logs
            if log.event_type == BehaviorEvent.ABANDON and log.question_number
        )
        return [
            ProblemQuestion(question_number=q, abandon_count=c)
            for q, c in counts.most_common(TOP_PROBLEM_QUESTIONS)
        ]

    @staticmethod
    def _device_stats(logs: list[BehaviorLog]) -> dict[str, DeviceBucket]:
        sessions: dict[str, set[str]] = {"mobile": set(), "desktop": set()}
        completed: set[str] = set()
        for log in logs:
            if log.event_type == BehaviorEvent.START and "isMobile" in log.event_data:
                device = "mobile" if log.event_data["isMobile"] else "desktop"
                sessions[device].add(log.session_id)
            elif log.event_type == BehaviorEvent.COMPLETE:
                completed.add(log.session_id)

        return {
            device: DeviceBucket(
                completion_rate=_percent(len(ids & completed), len(ids)),
                count=len(ids),
            )
            for device, ids in sessions.items()
        }

    @staticmethod
    def _peak_hour(logs: list[BehaviorLog]) -> int:
        hours = Counter(
            log.timestamp.hour for log in logs if log.event_type == BehaviorEvent.START
        )
        if not hours:
            return DEFAULT_PEAK_HOUR
        # Earliest hour wins a tie
        return max(sorted(hours), key=lambda h: hours[h])

    @staticmethod
    def _main_abandon_reason(logs: list[BehaviorLog]) -> str:
        reasons = Counter(
            str(log.event_data["reason"])
            for log in logs
            if log.event_type == BehaviorEvent.ABANDON and log.event_data.get("reason")
        )
        return reasons.most_common(1)[0][0] if reasons else "N/A"

    @staticmethod
    def _score_vs_speed(logs: list[BehaviorLog]) -> dict[str, SpeedBucket]:
        buckets: dict[str, list[float]] = {"fast": [], "medium": [], "slow": []}
        for log in logs:
            if log.event_type != BehaviorEvent.COMPLETE:
                continue
            total_time = _number(log.event_data, "totalTime")
            score = _number(log.event_data, "score")
            if total_time is None or score is None:
                continue
            if total_time < FAST_SECONDS:
                buckets["fast"].append(score)
            elif total_time < SLOW_SECONDS:
                buckets["medium"].append(score)
            else:
                buckets["slow"].append(score)

        return {
            name: SpeedBucket(
                avg_score=round(sum(scores) / len(scores)) if scores else 0,
                count=len(scores),
            )
            for name, scores in buckets.items()
        }

    @staticmethod
    def _avg_completion_minutes(logs: list[BehaviorLog]) -> int:
        times = [
            t
            for log in logs
            if log.event_type == BehaviorEvent.COMPLETE
            and (t := _number(log.event_data, "totalTime")) is not None
        ]
        if not times:
            return 0
        return round(sum(times) / len(times) / 60)
