import json
import os

from pydantic import BaseModel

from src.iqtest.domain.models import Question
from src.iqtest.domain.ports import IQuestionBank
from src.shared.telemetry import Telemetry


class TestInfo(BaseModel):
    __test__ = False

    title: str
    description: str = ""
    time_limit: int
    total_questions: int


class JsonQuestionBank(IQuestionBank):
    """Reads the fixed IQ question set shipped with the site."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.telemetry = Telemetry("JsonQuestionBank")
        self._questions: list[Question] | None = None
        self.info: TestInfo | None = None

    def _load(self) -> list[Question]:
        if not os.path.exists(self.path):
            self.telemetry.log_warning("Question file not found", path=self.path)
            return []

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)

        questions = [Question.model_validate(q) for q in data.get("questions", [])]
        if "test_info" in data:
            self.info = TestInfo.model_validate(data["test_info"])
        self.telemetry.log_info("Loaded questions", count=len(questions), path=self.path)
        return questions

    def get_questions(self) -> list[Question]:
        if self._questions is None:
            self._questions = self._load()
        return list(self._questions)
