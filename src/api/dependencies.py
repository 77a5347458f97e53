import secrets
from functools import lru_cache
from typing import Any

from fastapi import Depends
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config import AppConfig
from src.container import Services, build_services
from src.shared.errors import UnauthorizedError

# auto_error=False: a missing header must answer 401 in our envelope, not 403
bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services()


def _check_token(
    creds: HTTPAuthorizationCredentials | None, accepted: list[str | None]
) -> None:
    if creds is None or not creds.credentials:
        raise UnauthorizedError("Unauthorized - Missing auth token")
    token = creds.credentials
    if not any(t and secrets.compare_digest(token, t) for t in accepted):
        raise UnauthorizedError("Unauthorized - Invalid auth token")


def require_admin_token(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> None:
    _check_token(creds, [AppConfig.ADMIN_API_TOKEN])


def require_publishing_token(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> None:
    # The dashboard's "publish now" button uses the admin token
    _check_token(
        creds, [AppConfig.SCHEDULED_PUBLISHING_TOKEN, AppConfig.ADMIN_API_TOKEN]
    )


def ok(data: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse:
    body: dict[str, Any] = {"success": True, "data": data, **extra}
    return JSONResponse(status_code=status_code, content=body)


def fail(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": error, **extra}
    )
