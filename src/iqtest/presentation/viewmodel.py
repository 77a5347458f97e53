from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel

from src.iqtest.application.service import TestService
from src.iqtest.domain.models import Question, TestResult, UserInfo
from src.iqtest.domain.scoring import format_time
from src.iqtest.domain.session import TestAction, TestSession, TestState, TestStateMachine
from src.iqtest.presentation.state_provider import IStateProvider
from src.shared.clock import utcnow
from src.shared.telemetry import Telemetry

# Timer turns red below this many seconds
TIMER_WARNING_SECONDS = 300


class TimerView(BaseModel):
    remaining: int
    label: str
    warning: bool
    progress: float


class TestViewModel:
    """Bridges the Streamlit pages and TestService, persisting the attempt in session state."""

    __test__ = False

    def __init__(
        self,
        service: TestService,
        state_provider: IStateProvider,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.service = service
        self.state = state_provider
        self.clock = clock
        self.telemetry = Telemetry("TestViewModel")

        saved_fsm = self.state.get("fsm_state", TestState.IDLE)
        self.fsm = TestStateMachine(initial_state=saved_fsm)

    # --- Properties ---
    @property
    def current_state(self) -> TestState:
        return self.fsm.current_state

    @property
    def session(self) -> TestSession | None:
        return self.state.get("session")

    @property
    def questions(self) -> list[Question]:
        return self.state.get("questions", [])

    @property
    def current_question(self) -> Question | None:
        session = self.session
        if session is None or not self.questions:
            return None
        return self.questions[session.current_index]

    @property
    def user_info(self) -> UserInfo | None:
        return self.state.get("user_info")

    @property
    def result(self) -> TestResult | None:
        return self.state.get("result")

    def timer(self) -> TimerView | None:
        session = self.session
        if session is None:
            return None
        remaining = session.remaining_seconds(self.clock())
        return TimerView(
            remaining=remaining,
            label=format_time(remaining),
            warning=remaining < TIMER_WARNING_SECONDS,
            progress=1 - remaining / session.time_limit if session.time_limit else 1.0,
        )

    # --- Actions (Traced) ---

    def begin(self) -> None:
        Telemetry.start_trace()
        self.fsm.transition(TestAction.BEGIN)
        self._persist_fsm()

    def start_test(self, user_info: UserInfo, is_mobile: bool = False) -> None:
        Telemetry.start_trace()
        self.telemetry.log_info("Action: Start Test", name=user_info.name)

        if not self.fsm.transition(TestAction.START):
            return

        session = self.service.start_session(is_mobile=is_mobile, now=self.clock())
        self.state.set("user_info", user_info)
        self.state.set("questions", self.service.questions_for(session))
        self.state.set("session", session)
        self.state.delete("result")
        self._persist_fsm()

    def select_answer(self, option: int) -> None:
        session = self.session
        if session is None or self.current_state != TestState.IN_PROGRESS:
            return
        session.answer(option)
        self.state.set("session", session)

    def go_next(self) -> None:
        self._navigate(lambda s: s.next())

    def go_previous(self) -> None:
        self._navigate(lambda s: s.previous())

    def go_to(self, index: int) -> None:
        self._navigate(lambda s: s.go_to(index))

    def _navigate(self, move: Callable[[TestSession], None]) -> None:
        session = self.session
        if session is None:
            return
        move(session)
        self.state.set("session", session)

    def pause(self) -> None:
        Telemetry.start_trace()
        session = self.session
        if session is None or not self.fsm.transition(TestAction.PAUSE):
            return
        session.pause(self.clock())
        self.state.set("session", session)
        self._persist_fsm()

    def resume(self) -> None:
        Telemetry.start_trace()
        session = self.session
        if session is None or not self.fsm.transition(TestAction.RESUME):
            return
        session.resume(self.clock())
        self.state.set("session", session)
        self._persist_fsm()

    def check_timer(self) -> bool:
        """Finishes the test when the clock ran out. Returns True if it did."""
        session = self.session
        if self.current_state != TestState.IN_PROGRESS or session is None:
            return False
        if not session.is_time_up(self.clock()):
            return False
        self.telemetry.log_info("Time is up", session=session.session_id)
        self._finish(TestAction.TIME_UP)
        return True

    def submit(self) -> None:
        Telemetry.start_trace()
        self._finish(TestAction.SUBMIT)

    def _finish(self, action: TestAction) -> None:
        if self.current_state not in (TestState.IN_PROGRESS, TestState.PAUSED):
            self.telemetry.log_warning(
                "Submit ignored", state=self.current_state.name, action=action.name
            )
            return
        session = self.session
        user_info = self.user_info
        if session is None or user_info is None:
            self.telemetry.log_error("Submit failed", Exception("No active test"))
            return

        now = self.clock()
        # Paused time must not be charged when submitting from the pause popup
        session.resume(now)
        result, _ = self.service.submit(session, user_info, now=now)

        self.fsm.transition(action)
        self.state.set("result", result)
        self.state.set("session", session)
        self._persist_fsm()

    def abandon(self, reason: str = "user_exit") -> None:
        Telemetry.start_trace()
        session = self.session
        if not self.fsm.transition(TestAction.ABANDON):
            return
        if session is not None:
            self.service.abandon(session, reason, now=self.clock())
        self._clear_attempt()

    def reset(self) -> None:
        Telemetry.start_trace()
        self.fsm.transition(TestAction.RESET)
        self._clear_attempt()

    def _clear_attempt(self) -> None:
        for key in ("session", "questions", "result"):
            self.state.delete(key)
        self._persist_fsm()

    def _persist_fsm(self) -> None:
        self.state.set("fsm_state", self.fsm.current_state)
