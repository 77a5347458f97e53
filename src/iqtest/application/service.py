import uuid
from datetime import datetime, timedelta

from src.cms.application.analytics import AnalyticsService
from src.cms.domain.models import AnonymousPlayer, BehaviorEvent
from src.config import AppConfig
from src.iqtest.domain.models import Question, TestResult, TestResultRecord, UserInfo
from src.iqtest.domain.ports import IQuestionBank, IResultRepository
from src.iqtest.domain.scoring import generate_test_result
from src.iqtest.domain.session import TestSession
from src.shared.clock import utcnow
from src.shared.errors import ValidationError
from src.shared.telemetry import Telemetry, measure_time


class TestService:
    """
    Runs one IQ test attempt from start to saved result.

    Every attempt leaves a trail in the behaviour log (start, then complete
    or abandon) which feeds the admin analytics.
    """

    __test__ = False

    def __init__(
        self,
        questions: IQuestionBank,
        results: IResultRepository,
        analytics: AnalyticsService,
        time_limit: int = AppConfig.TEST_TIME_LIMIT_SECONDS,
    ) -> None:
        self.questions = questions
        self.results = results
        self.analytics = analytics
        self.time_limit = time_limit
        self.telemetry = Telemetry("TestService")

    def load_questions(self) -> list[Question]:
        return self.questions.get_questions()

    def questions_for(self, session: TestSession) -> list[Question]:
        by_id = {q.id: q for q in self.load_questions()}
        missing = [qid for qid in session.question_ids if qid not in by_id]
        if missing:
            raise ValidationError(f"Unknown question ids: {missing}")
        return [by_id[qid] for qid in session.question_ids]

    @measure_time("start_session")
    def start_session(
        self, is_mobile: bool = False, now: datetime | None = None
    ) -> TestSession:
        questions = self.load_questions()
        if not questions:
            raise ValidationError("No questions available")

        session = TestSession(
            session_id=str(uuid.uuid4()),
            question_ids=[q.id for q in questions],
            started_at=now or utcnow(),
            time_limit=self.time_limit,
            is_mobile=is_mobile,
        )
        self.analytics.log_event(
            session.session_id,
            BehaviorEvent.START,
            question_number=1,
            event_data={"isMobile": is_mobile},
            timestamp=session.started_at,
        )
        self.telemetry.log_info("Test started", session=session.session_id)
        return session

    def session_from_answers(
        self,
        answers: list[int | None],
        time_spent: int,
        session_id: str | None = None,
        now: datetime | None = None,
    ) -> TestSession:
        """Rebuilds a finished session from a client that kept its own state."""
        questions = self.load_questions()
        if len(answers) > len(questions):
            raise ValidationError(
                f"Got {len(answers)} answers for {len(questions)} questions"
            )
        now = now or utcnow()
        spent = min(max(time_spent, 0), self.time_limit)
        return TestSession(
            session_id=session_id or str(uuid.uuid4()),
            question_ids=[q.id for q in questions],
            answers=list(answers),
            started_at=now - timedelta(seconds=spent),
            time_limit=self.time_limit,
        )

    def score(self, session: TestSession, now: datetime | None = None) -> TestResult:
        return generate_test_result(
            self.questions_for(session),
            session.answers,
            session.elapsed_seconds(now or utcnow()),
        )

    @measure_time("submit_test")
    def submit(
        self,
        session: TestSession,
        user_info: UserInfo,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> tuple[TestResult, TestResultRecord]:
        now = now or utcnow()
        result = self.score(session, now)

        record = self.results.save_result(
            TestResultRecord(
                user_id=user_id,
                score=result.iq,
                correct_answers=result.correct_answers,
                total_questions=result.total_questions,
                accuracy=result.accuracy,
                classification=result.classification,
                percentile=result.percentile,
                duration_seconds=result.time_spent,
                answers=result.answers,
                category_scores=result.category_scores,
                name=user_info.name,
                email=user_info.email,
                age=user_info.age,
                country=user_info.country,
                gender=user_info.gender,
                tested_at=now,
            )
        )

        if user_id is None:
            self.results.save_anonymous_player(
                AnonymousPlayer(
                    name=user_info.name,
                    email=user_info.email,
                    age=user_info.age,
                    country=user_info.country,
                    gender=user_info.gender,
                    test_result=result.model_dump(mode="json"),
                    test_score=result.iq,
                    test_duration=result.time_spent,
                    created_at=now,
                )
            )

        self.analytics.log_event(
            session.session_id,
            BehaviorEvent.COMPLETE,
            question_number=session.total_questions,
            event_data={"totalTime": result.time_spent, "score": result.iq},
            timestamp=now,
        )
        self.telemetry.log_info(
            "Test submitted", session=session.session_id, iq=result.iq, anonymous=user_id is None
        )
        return result, record

    def abandon(
        self, session: TestSession, reason: str = "user_exit", now: datetime | None = None
    ) -> None:
        self.analytics.log_event(
            session.session_id,
            BehaviorEvent.ABANDON,
            question_number=session.current_index + 1,
            event_data={
                "reason": reason,
                "answered": session.total_questions - session.unanswered_count(),
            },
            timestamp=now or utcnow(),
        )
        self.telemetry.log_info("Test abandoned", session=session.session_id, reason=reason)
