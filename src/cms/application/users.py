from datetime import datetime, timezone
from typing import Literal

from src.cms.domain.models import UserRow
from src.cms.domain.ports import IUserDirectory
from src.config import AppConfig
from src.shared.clock import ensure_utc
from src.shared.pagination import Page, paginate
from src.shared.telemetry import Telemetry, measure_time

UserType = Literal["all", "registered", "anonymous"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class UserService:
    """Admin listing that merges registered accounts with anonymous test takers."""

    def __init__(self, directory: IUserDirectory) -> None:
        self.directory = directory
        self.telemetry = Telemetry("UserService")

    def _all_rows(self, user_type: UserType) -> list[UserRow]:
        rows: list[UserRow] = []
        if user_type in ("all", "registered"):
            rows.extend(
                UserRow(
                    id=p.id,
                    full_name=p.full_name,
                    email=p.email,
                    age=p.age,
                    country=p.country,
                    role=p.role,
                    is_verified=p.is_verified,
                    user_type="registered",
                    created_at=p.created_at,
                )
                for p in self.directory.list_profiles()
            )
        if user_type in ("all", "anonymous"):
            rows.extend(
                UserRow(
                    id=a.id or "",
                    full_name=a.name,
                    email=a.email,
                    age=a.age,
                    country=a.country,
                    user_type="anonymous",
                    created_at=a.created_at or _EPOCH,
                    test_score=a.test_score,
                )
                for a in self.directory.list_anonymous_players()
            )
        return rows

    @measure_time("list_users")
    def list_users(
        self,
        page: int = 1,
        limit: int = AppConfig.USERS_PAGE_SIZE,
        search: str | None = None,
        role: str | None = None,
        verified: bool | None = None,
        user_type: UserType = "all",
    ) -> Page[UserRow]:
        rows = self._all_rows(user_type)

        needle = (search or "").strip().lower()
        if needle:
            rows = [
                r
                for r in rows
                if needle in (r.full_name or "").lower() or needle in (r.email or "").lower()
            ]
        if role:
            rows = [r for r in rows if r.role == role]
        if verified is not None:
            rows = [r for r in rows if r.is_verified == verified]

        rows.sort(key=lambda r: ensure_utc(r.created_at), reverse=True)
        return paginate(rows, page, limit)
