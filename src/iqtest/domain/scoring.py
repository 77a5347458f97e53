from collections.abc import Sequence

from src.iqtest.domain.models import Question, TestResult

# (minimum percentage correct, IQ)
IQ_BANDS: list[tuple[int, int]] = [
    (95, 145),
    (90, 130),
    (85, 120),
    (75, 115),
    (65, 110),
    (50, 100),
    (35, 90),
    (25, 85),
    (15, 80),
    (10, 75),
]
IQ_FLOOR = 70

# (minimum IQ, classification)
CLASSIFICATIONS: list[tuple[int, str]] = [
    (145, "genius"),
    (130, "very_superior"),
    (120, "superior"),
    (110, "high_average"),
    (90, "average"),
    (80, "low_average"),
    (70, "borderline"),
]

# (minimum IQ, percentile)
PERCENTILES: list[tuple[int, float]] = [
    (145, 99.9),
    (130, 98),
    (120, 91),
    (110, 75),
    (100, 50),
    (90, 25),
    (80, 9),
    (70, 2),
]


def calculate_iq(correct: int, total: int) -> int:
    if total <= 0:
        return IQ_FLOOR
    percentage = correct / total * 100
    for minimum, iq in IQ_BANDS:
        if percentage >= minimum:
            return iq
    return IQ_FLOOR


def classify_iq(iq: int) -> str:
    for minimum, label in CLASSIFICATIONS:
        if iq >= minimum:
            return label
    return "low"


def calculate_percentile(iq: int) -> float:
    for minimum, percentile in PERCENTILES:
        if iq >= minimum:
            return percentile
    return 0.1


def calculate_category_scores(
    questions: Sequence[Question], answers: Sequence[int | None]
) -> dict[str, int]:
    """Percentage correct per question type, rounded."""
    totals: dict[str, list[int]] = {}
    for index, question in enumerate(questions):
        bucket = totals.setdefault(question.type.value, [0, 0])
        bucket[1] += 1
        if index < len(answers) and answers[index] == question.correct:
            bucket[0] += 1
    return {kind: round(c / t * 100) for kind, (c, t) in totals.items()}


def generate_test_result(
    questions: Sequence[Question], answers: Sequence[int | None], time_spent: int
) -> TestResult:
    correct = sum(
        1
        for index, question in enumerate(questions)
        if index < len(answers) and answers[index] == question.correct
    )
    total = len(questions)
    iq = calculate_iq(correct, total)
    return TestResult(
        correct_answers=correct,
        total_questions=total,
        iq=iq,
        classification=classify_iq(iq),
        percentile=calculate_percentile(iq),
        answers=list(answers),
        time_spent=max(0, int(time_spent)),
        category_scores=calculate_category_scores(questions, answers),
        accuracy=round(correct / total * 100) if total else 0,
    )


def format_time(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"
