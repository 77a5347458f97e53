from abc import ABC, abstractmethod

from src.cms.domain.models import AnonymousPlayer
from src.iqtest.domain.models import Question, TestResultRecord


class IResultRepository(ABC):
    @abstractmethod
    def save_result(self, record: TestResultRecord) -> TestResultRecord:
        pass

    @abstractmethod
    def save_anonymous_player(self, player: AnonymousPlayer) -> AnonymousPlayer:
        pass

    @abstractmethod
    def list_results(self) -> list[TestResultRecord]:
        """All stored results, best score first."""
        pass


class IQuestionBank(ABC):
    @abstractmethod
    def get_questions(self) -> list[Question]:
        pass
