# ==============================================================================
# ARCHITECTURE: UNIT TEST (CRON TRIGGER)
# ------------------------------------------------------------------------------
# GOAL: The cron trigger retries failures with backoff and maps the outcome
#       to an exit code.
# CONSTRAINTS:
#   1. No network: httpx.MockTransport answers every request.
#   2. sleep is injected and recorded.
# ==============================================================================
import json
from unittest.mock import patch

import httpx
import pytest

from src.jobs import publish_cron
from src.jobs.publish_cron import run

URL = "http://iqsite.test/api/admin/scheduled-publishing"


def make_client(responses, seen=None):
    replies = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        reply = next(replies)
        if isinstance(reply, Exception):
            raise reply
        return reply

    return httpx.Client(transport=httpx.MockTransport(handler))


def ok_response(published=2, errors=()):
    return httpx.Response(
        200,
        json={"success": True, "data": {"published": published, "errors": list(errors)}},
    )


class TestRun:
    def test_success_first_try(self):
        # Arrange
        seen = []
        sleeps = []
        client = make_client([ok_response()], seen)

        # Act
        code = run(URL, "cron-secret", client=client, sleep=sleeps.append)

        # Assert
        assert code == 0
        assert sleeps == []
        request = seen[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer cron-secret"
        assert json.loads(request.content) == {"action": "process"}

    def test_recovers_after_failures(self):
        sleeps = []
        client = make_client(
            [
                httpx.Response(500, json={"success": False, "error": "Internal server error"}),
                httpx.ConnectError("refused"),
                ok_response(errors=["Update error: x"]),
            ]
        )

        code = run(URL, "t", client=client, sleep=sleeps.append)

        assert code == 0
        assert sleeps == [1.0, 2.0]

    def test_all_attempts_fail(self):
        sleeps = []
        client = make_client([httpx.Response(401, json={"success": False})] * 3)

        code = run(URL, "bad", client=client, sleep=sleeps.append)

        assert code == 1
        assert sleeps == [1.0, 2.0]

    def test_timeout_and_invalid_json_count_as_failures(self):
        sleeps = []
        client = make_client(
            [
                httpx.ReadTimeout("slow"),
                httpx.Response(200, text="<html>oops</html>"),
                httpx.Response(200, json={"success": False}),
            ]
        )

        assert run(URL, "t", client=client, sleep=sleeps.append) == 1
        assert len(sleeps) == 2

    def test_non_object_json_counts_as_failure(self):
        sleeps = []
        client = make_client([httpx.Response(200, json=[1, 2])] * 3)

        code = run(URL, "t", client=client, sleep=sleeps.append)

        assert code == 1
        assert sleeps == [1.0, 2.0]

    def test_null_body_then_success_without_data(self):
        sleeps = []
        client = make_client(
            [
                httpx.Response(200, json=None),
                httpx.Response(200, json={"success": True, "data": ["unexpected"]}),
            ]
        )

        assert run(URL, "t", client=client, sleep=sleeps.append) == 0
        assert sleeps == [1.0]

    def test_custom_retry_settings(self):
        sleeps = []
        client = make_client([httpx.Response(503, json={})] * 2)

        code = run(URL, "t", client=client, sleep=sleeps.append, max_retries=2, backoff=0.5)

        assert code == 1
        assert sleeps == [0.5]


class TestMain:
    def test_missing_token_exits_with_error(self):
        with patch("src.config.AppConfig.SCHEDULED_PUBLISHING_TOKEN", None):
            with pytest.raises(SystemExit) as exc:
                publish_cron.main()
        assert exc.value.code == 1

    def test_exit_code_from_run(self):
        with patch("src.config.AppConfig.SCHEDULED_PUBLISHING_TOKEN", "t"), patch.object(
            publish_cron, "run", return_value=0
        ) as fake_run:
            with pytest.raises(SystemExit) as exc:
                publish_cron.main()

        assert exc.value.code == 0
        fake_run.assert_called_once()
