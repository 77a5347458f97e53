"""
Scheduled publishing trigger.

Calls the publishing endpoint once with {"action": "process"}, retrying
transient failures. Meant to be run every minute from cron:

    * * * * * iqsite-publish-cron >> /var/log/iqsite-cron.log 2>&1
"""

import logging
import sys
import time
from collections.abc import Callable

import httpx

from src.config import AppConfig
from src.shared.telemetry import CRON_ATTEMPTS, Telemetry

telemetry = Telemetry("PublishCron")


class CronAttemptError(Exception):
    """One trigger attempt did not produce a successful response."""


def trigger(client: httpx.Client, url: str, token: str) -> dict:
    try:
        response = client.post(
            url,
            json={"action": "process"},
            headers={"Authorization": f"Bearer {token}"},
        )
    except httpx.TimeoutException as e:
        raise CronAttemptError("Request timeout") from e
    except httpx.HTTPError as e:
        raise CronAttemptError(f"Request failed: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise CronAttemptError(f"Invalid JSON response: {response.text[:200]}") from e
    if not isinstance(payload, dict):
        raise CronAttemptError(f"Invalid JSON response: {response.text[:200]}")

    if response.status_code != 200 or not payload.get("success"):
        raise CronAttemptError(
            f"API returned error: HTTP {response.status_code} {payload}"
        )
    data = payload.get("data")
    return data if isinstance(data, dict) else {}


def run(
    url: str,
    token: str,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_retries: int = AppConfig.CRON_MAX_RETRIES,
    timeout: float = AppConfig.CRON_TIMEOUT_SECONDS,
    backoff: float = AppConfig.CRON_BACKOFF_SECONDS,
) -> int:
    """Returns the process exit code: 0 on success, 1 when every attempt failed."""
    Telemetry.start_trace()
    started = time.perf_counter()
    telemetry.log_info("🚀 Starting scheduled publishing run", url=url)

    own_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        for attempt in range(1, max_retries + 1):
            try:
                telemetry.log_info(f"📡 Attempt {attempt}/{max_retries}")
                data = trigger(http, url, token)
            except CronAttemptError as e:
                CRON_ATTEMPTS.labels(outcome="failure").inc()
                telemetry.log_warning(
                    f"Attempt {attempt} failed", error=str(e), attempt=attempt
                )
                if attempt < max_retries:
                    sleep(backoff * attempt)
                continue

            CRON_ATTEMPTS.labels(outcome="success").inc()
            duration_ms = round((time.perf_counter() - started) * 1000)
            telemetry.log_info(
                f"✅ Published {data.get('published', 0)} articles",
                duration_ms=duration_ms,
            )
            errors = data.get("errors") or []
            if errors:
                telemetry.log_warning("Publishing reported errors", errors=errors)
            return 0
    finally:
        if own_client:
            http.close()

    telemetry.log_warning(f"💥 All {max_retries} attempts failed")
    return 1


def main() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
    )
    token = AppConfig.SCHEDULED_PUBLISHING_TOKEN
    if not token:
        telemetry.log_warning("SCHEDULED_PUBLISHING_TOKEN is not set")
        sys.exit(1)
    sys.exit(run(AppConfig.SCHEDULED_PUBLISHING_API_URL, token))


if __name__ == "__main__":
    main()
