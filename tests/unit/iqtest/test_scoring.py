# ==============================================================================
# ARCHITECTURE: UNIT TEST (CORE LOGIC)
# ------------------------------------------------------------------------------
# GOAL: Raw answers map to IQ, classification and percentile deterministically.
# CONSTRAINTS:
#   1. Pure functions, no I/O.
# ==============================================================================
import pytest

from src.config import Badge
from src.iqtest.domain.models import QuestionType
from src.iqtest.domain.scoring import (
    calculate_category_scores,
    calculate_iq,
    calculate_percentile,
    classify_iq,
    format_time,
    generate_test_result,
)


@pytest.mark.parametrize(
    "correct, total, expected",
    [
        (20, 20, 145),
        (19, 20, 145),
        (18, 20, 130),
        (10, 20, 100),
        (7, 20, 90),
        (2, 20, 75),
        (1, 20, 70),
        (0, 20, 70),
        (0, 0, 70),
    ],
)
def test_calculate_iq_bands(correct, total, expected):
    assert calculate_iq(correct, total) == expected


class TestClassification:
    def test_boundaries(self):
        assert classify_iq(145) == "genius"
        assert classify_iq(130) == "very_superior"
        assert classify_iq(100) == "average"
        assert classify_iq(69) == "low"

    def test_percentiles(self):
        assert calculate_percentile(145) == 99.9
        assert calculate_percentile(100) == 50
        assert calculate_percentile(60) == 0.1


def test_badges_by_threshold():
    assert Badge.for_score(145) is Badge.GENIUS
    assert Badge.for_score(130) is Badge.SUPERIOR
    assert Badge.for_score(115) is Badge.ABOVE
    assert Badge.for_score(90) is Badge.GOOD
    assert Badge.GENIUS.key == "genius"


class TestGenerateResult:
    def test_full_result(self, make_question):
        # Arrange
        questions = [
            make_question(1, QuestionType.LOGIC, correct=0),
            make_question(2, QuestionType.LOGIC, correct=1),
            make_question(3, QuestionType.MATH, correct=2),
            make_question(4, QuestionType.MATH, correct=3),
        ]
        answers = [0, 3, 2, None]

        # Act
        result = generate_test_result(questions, answers, time_spent=605)

        # Assert
        assert result.correct_answers == 2
        assert result.incorrect_answers == 2
        assert result.iq == 100
        assert result.classification == "average"
        assert result.accuracy == 50
        assert result.category_scores == {"logic": 50, "math": 50}
        assert result.time_spent == 605

    def test_short_answer_list_counts_missing_as_wrong(self, make_question):
        questions = [make_question(1), make_question(2)]
        result = generate_test_result(questions, [0], time_spent=10)
        assert result.correct_answers == 1

    def test_category_scores_per_type(self, make_question):
        questions = [
            make_question(1, QuestionType.VERBAL, correct=0),
            make_question(2, QuestionType.SPATIAL, correct=0),
        ]
        assert calculate_category_scores(questions, [0, 1]) == {
            "verbal": 100,
            "spatial": 0,
        }


def test_format_time():
    assert format_time(0) == "0:00"
    assert format_time(605) == "10:05"
    assert format_time(-3) == "0:00"
