from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, ValidationInfo, field_validator


# --- Enums ---
class QuestionType(str, Enum):
    LOGIC = "logic"
    MATH = "math"
    VERBAL = "verbal"
    SPATIAL = "spatial"
    PATTERN = "pattern"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


# --- Entities ---
class Question(BaseModel):
    id: int
    type: QuestionType
    difficulty: Difficulty = Difficulty.MEDIUM
    question: str
    options: list[str]
    correct: int
    explanation: str | None = None

    @field_validator("correct")
    @classmethod
    def correct_in_range(cls, value: int, info: ValidationInfo) -> int:
        options = info.data.get("options") or []
        if options and not 0 <= value < len(options):
            raise ValueError("correct must index into options")
        return value


class UserInfo(BaseModel):
    """Contact details an anonymous taker fills in before starting."""

    name: str = Field(min_length=1, max_length=100)
    email: str | None = None
    age: int | None = Field(default=None, ge=0, le=120)
    country: str | None = None
    gender: str | None = None


class TestResult(BaseModel):
    """Computed outcome of one finished test."""

    __test__ = False  # keeps pytest from collecting this model

    correct_answers: int
    total_questions: int
    iq: int
    classification: str
    percentile: float
    answers: list[int | None]
    time_spent: int
    category_scores: dict[str, int] = {}
    accuracy: int

    @property
    def incorrect_answers(self) -> int:
        return self.total_questions - self.correct_answers


class TestResultRecord(BaseModel):
    """Row of user_test_results."""

    __test__ = False

    id: str | None = None
    user_id: str | None = None
    test_type: str = "iq"
    score: int
    correct_answers: int = 0
    total_questions: int = 0
    accuracy: int = 0
    classification: str | None = None
    percentile: float | None = None
    duration_seconds: int = 0
    answers: list[int | None] = []
    category_scores: dict[str, int] = {}
    name: str | None = None
    email: str | None = None
    age: int | None = None
    country: str | None = None
    gender: str | None = None
    tested_at: datetime


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str | None = None
    name: str
    score: int
    country: str | None = None
    badge: str
    tested_at: datetime
    duration_seconds: int = 0


class LeaderboardStats(BaseModel):
    total_participants: int = 0
    highest_score: int = 0
    average_score: int = 0
    median_score: int = 0
    genius_percentage: float = 0.0
    top_percentile_score: int = 0
    recent_growth: float = 0.0
