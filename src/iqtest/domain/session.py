import logging
from datetime import datetime
from enum import Enum, auto

from pydantic import BaseModel

from src.config import AppConfig

logger = logging.getLogger(__name__)


class TestState(Enum):
    __test__ = False

    IDLE = auto()  # Landing page
    COLLECTING_INFO = auto()  # Name/age/country form
    IN_PROGRESS = auto()  # Timer running, answering questions
    PAUSED = auto()  # Pause popup shown, timer frozen
    COMPLETED = auto()  # Result computed and saved


class TestAction(Enum):
    __test__ = False

    BEGIN = auto()
    START = auto()
    PAUSE = auto()
    RESUME = auto()
    SUBMIT = auto()
    TIME_UP = auto()
    ABANDON = auto()
    RESET = auto()


class TestStateMachine:
    """
    Pure FSM logic for one test attempt. Knows nothing about UI or storage.
    """

    __test__ = False

    def __init__(self, initial_state: TestState = TestState.IDLE) -> None:
        self._state = initial_state

    @property
    def current_state(self) -> TestState:
        return self._state

    def transition(self, action: TestAction) -> bool:
        previous = self._state

        match (self._state, action):
            case (TestState.IDLE, TestAction.BEGIN):
                self._state = TestState.COLLECTING_INFO
            case (TestState.COLLECTING_INFO, TestAction.START):
                self._state = TestState.IN_PROGRESS

            # Pause popup
            case (TestState.IN_PROGRESS, TestAction.PAUSE):
                self._state = TestState.PAUSED
            case (TestState.PAUSED, TestAction.RESUME):
                self._state = TestState.IN_PROGRESS

            # Finishing: explicit submit or the clock running out
            case (TestState.IN_PROGRESS | TestState.PAUSED, TestAction.SUBMIT):
                self._state = TestState.COMPLETED
            case (TestState.IN_PROGRESS | TestState.PAUSED, TestAction.TIME_UP):
                self._state = TestState.COMPLETED

            case (
                TestState.COLLECTING_INFO | TestState.IN_PROGRESS | TestState.PAUSED,
                TestAction.ABANDON,
            ):
                self._state = TestState.IDLE

            case (_, TestAction.RESET):
                self._state = TestState.IDLE

            case _:
                logger.error(f"⛔ INVALID TRANSITION: {self._state.name} + {action.name}")
                return False

        logger.info(f"🔄 FSM: {previous.name} --[{action.name}]--> {self._state.name}")
        return True


class TestSession(BaseModel):
    """
    Progress of a running attempt: answers, position and timer bookkeeping.
    Time spent paused does not count against the limit.
    """

    __test__ = False

    session_id: str
    question_ids: list[int]
    answers: list[int | None] = []
    current_index: int = 0
    started_at: datetime
    paused_at: datetime | None = None
    paused_seconds: float = 0.0
    time_limit: int = AppConfig.TEST_TIME_LIMIT_SECONDS
    is_mobile: bool = False

    def model_post_init(self, __context: object) -> None:
        if len(self.answers) < len(self.question_ids):
            self.answers = self.answers + [None] * (
                len(self.question_ids) - len(self.answers)
            )

    # --- Navigation ---

    @property
    def total_questions(self) -> int:
        return len(self.question_ids)

    def answer(self, option: int, index: int | None = None) -> None:
        target = self.current_index if index is None else index
        if not 0 <= target < self.total_questions:
            raise IndexError(f"Question index {target} out of range")
        self.answers[target] = option

    def go_to(self, index: int) -> None:
        self.current_index = min(max(index, 0), max(self.total_questions - 1, 0))

    def next(self) -> None:
        self.go_to(self.current_index + 1)

    def previous(self) -> None:
        self.go_to(self.current_index - 1)

    def is_last_question(self) -> bool:
        return self.current_index >= self.total_questions - 1

    def unanswered_count(self) -> int:
        return sum(1 for a in self.answers if a is None)

    # --- Timer ---

    def pause(self, now: datetime) -> None:
        if self.paused_at is None:
            self.paused_at = now

    def resume(self, now: datetime) -> None:
        if self.paused_at is not None:
            self.paused_seconds += (now - self.paused_at).total_seconds()
            self.paused_at = None

    def elapsed_seconds(self, now: datetime) -> int:
        # A paused clock stays frozen at the moment of pausing
        reference = self.paused_at or now
        running = (reference - self.started_at).total_seconds() - self.paused_seconds
        return max(0, min(int(running), self.time_limit))

    def remaining_seconds(self, now: datetime) -> int:
        return self.time_limit - self.elapsed_seconds(now)

    def is_time_up(self, now: datetime) -> bool:
        return self.remaining_seconds(now) <= 0
