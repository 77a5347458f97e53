import json
import uuid

from src.cms.domain.models import AnonymousPlayer
from src.iqtest.domain.models import TestResultRecord
from src.iqtest.domain.ports import IResultRepository
from src.shared.clock import from_iso, to_iso, utcnow
from src.shared.db_manager import DatabaseManager
from src.shared.telemetry import Telemetry, measure_time

RESULT_COLUMNS = (
    "id", "user_id", "test_type", "score", "correct_answers", "total_questions",
    "accuracy", "classification", "percentile", "duration_seconds", "answers",
    "category_scores", "name", "email", "age", "country", "gender", "tested_at",
)


class SQLiteResultRepository(IResultRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteResultRepository")
        self.db_manager = db_manager

    def is_empty(self) -> bool:
        row = (
            self.db_manager.get_connection()
            .execute("SELECT count(*) FROM user_test_results")
            .fetchone()
        )
        return (row[0] if row else 0) == 0

    @measure_time("db_save_result")
    def save_result(self, record: TestResultRecord) -> TestResultRecord:
        saved = record.model_copy(update={"id": record.id or str(uuid.uuid4())})
        data = saved.model_dump()
        data["answers"] = json.dumps(data["answers"])
        data["category_scores"] = json.dumps(data["category_scores"])
        data["tested_at"] = to_iso(saved.tested_at)

        conn = self.db_manager.get_connection()
        conn.execute(
            f"INSERT INTO user_test_results ({','.join(RESULT_COLUMNS)}) "
            f"VALUES ({','.join('?' for _ in RESULT_COLUMNS)})",
            [data[c] for c in RESULT_COLUMNS],
        )
        conn.commit()
        return saved

    def save_anonymous_player(self, player: AnonymousPlayer) -> AnonymousPlayer:
        saved = player.model_copy(
            update={
                "id": player.id or str(uuid.uuid4()),
                "created_at": player.created_at or utcnow(),
            }
        )
        conn = self.db_manager.get_connection()
        conn.execute(
            "INSERT INTO anonymous_players "
            "(id, name, email, age, country, gender, test_result, test_score, "
            "test_duration, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                saved.id,
                saved.name,
                saved.email,
                saved.age,
                saved.country,
                saved.gender,
                json.dumps(saved.test_result),
                saved.test_score,
                saved.test_duration,
                to_iso(saved.created_at),
            ),
        )
        conn.commit()
        self.telemetry.log_info("Anonymous player saved", player_id=saved.id)
        return saved

    @measure_time("db_list_results")
    def list_results(self) -> list[TestResultRecord]:
        rows = (
            self.db_manager.get_connection()
            .execute("SELECT * FROM user_test_results ORDER BY score DESC, tested_at ASC")
            .fetchall()
        )
        results = []
        for r in rows:
            data = dict(r)
            data["answers"] = json.loads(data["answers"] or "[]")
            data["category_scores"] = json.loads(data["category_scores"] or "{}")
            data["tested_at"] = from_iso(data["tested_at"])
            results.append(TestResultRecord.model_validate(data))
        return results
