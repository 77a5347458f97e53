import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
import streamlit as st

from src.container import build_sqlite_services
from src.iqtest.domain.models import Difficulty, Question, QuestionType, UserInfo
from src.shared.db_manager import DatabaseManager

QUESTIONS_FILE = str(Path(__file__).resolve().parent.parent / "data" / "iq_questions.json")
FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class MockSessionState(dict):
    """
    Mock for st.session_state that behaves like both a dict and an object.
    Allows both dict-style and attribute-style access.
    """

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as err:
            raise AttributeError(
                f"'MockSessionState' object has no attribute '{name}'"
            ) from err

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        try:
            del self[name]
        except KeyError as err:
            raise AttributeError(
                f"'MockSessionState' object has no attribute '{name}'"
            ) from err


@pytest.fixture(autouse=True)
def mock_streamlit_session():
    """
    Auto-use fixture that ensures st.session_state exists for all tests.
    """
    original_session_state = getattr(st, "session_state", None)
    st.session_state = MockSessionState()

    yield st.session_state

    st.session_state.clear()
    if original_session_state is not None:
        st.session_state = original_session_state


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    yield manager
    manager.close()


@pytest.fixture
def make_question():
    def _make(qid: int, qtype=QuestionType.LOGIC, correct: int = 0) -> Question:
        return Question(
            id=qid,
            type=qtype,
            difficulty=Difficulty.MEDIUM,
            question=f"Question {qid}?",
            options=["A", "B", "C", "D"],
            correct=correct,
            explanation="Because.",
        )

    return _make


@pytest.fixture
def user_info():
    return UserInfo(name="Lan", email="lan@example.com", age=30, country="VN")


@pytest.fixture
def question_answers():
    """Correct option index per question in the bundled question file, in order."""
    with open(QUESTIONS_FILE, encoding="utf-8") as f:
        payload = json.load(f)
    return [q["correct"] for q in payload["questions"]]


@pytest.fixture
def services(tmp_path):
    """Fully wired local backend on an in-memory database, no seed data."""
    return build_sqlite_services(
        db_path=":memory:",
        media_root=str(tmp_path / "media"),
        questions_file=QUESTIONS_FILE,
        seed_file=None,
    )
