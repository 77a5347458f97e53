from typing import Any, cast

from src.cms.domain.models import AnonymousPlayer
from src.iqtest.domain.models import TestResultRecord
from src.iqtest.domain.ports import IResultRepository
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client


class SupabaseResultRepository(IResultRepository):
    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseResultRepository")
        self.client = client

    @measure_time("sb_save_result")
    def save_result(self, record: TestResultRecord) -> TestResultRecord:
        payload = record.model_dump(mode="json", exclude_none=True)
        try:
            response = self.client.table("user_test_results").insert(payload).execute()
            data = cast(list[dict[str, Any]], response.data)
            return TestResultRecord.model_validate(data[0]) if data else record
        except Exception as e:
            self.telemetry.log_error("save_result failed", e, user_id=record.user_id)
            raise

    def save_anonymous_player(self, player: AnonymousPlayer) -> AnonymousPlayer:
        payload = player.model_dump(mode="json", exclude_none=True)
        try:
            response = (
                self.client.table("anonymous_players").insert(payload).execute()
            )
            data = cast(list[dict[str, Any]], response.data)
            saved = AnonymousPlayer.model_validate(data[0]) if data else player
            self.telemetry.log_info("Anonymous player saved", player_id=saved.id)
            return saved
        except Exception as e:
            self.telemetry.log_error("save_anonymous_player failed", e)
            raise

    @measure_time("sb_list_results")
    def list_results(self) -> list[TestResultRecord]:
        try:
            response = (
                self.client.table("user_test_results")
                .select(
                    "id, user_id, test_type, score, accuracy, classification, "
                    "percentile, duration_seconds, name, email, age, country, "
                    "gender, tested_at"
                )
                .order("score", desc=True)
                .execute()
            )
            data = cast(list[dict[str, Any]], response.data)
            return [TestResultRecord.model_validate(r) for r in data]
        except Exception as e:
            self.telemetry.log_error("list_results failed", e)
            raise
