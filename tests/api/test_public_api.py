import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_services
from src.api.main import create_app


@pytest.fixture
def client(services):
    app = create_app()
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client


def submit(client, answers, name="Lan", email="lan@example.com", time_spent=900):
    return client.post(
        "/api/results",
        json={
            "user_info": {"name": name, "email": email, "country": "VN"},
            "answers": answers,
            "time_spent": time_spent,
        },
    )


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"x-request-id": "abc123"})
    assert response.headers["x-request-id"] == "abc123"


def test_questions_hide_answers(client):
    data = client.get("/api/questions").json()["data"]

    assert data["time_limit"] == 1500
    assert len(data["questions"]) == 12
    assert all("correct" not in q and "explanation" not in q for q in data["questions"])


def test_submit_result_updates_leaderboard(client, question_answers):
    # Arrange: warm the leaderboard cache with an empty board
    assert client.get("/api/leaderboard").json()["data"]["total"] == 0

    # Act
    response = submit(client, question_answers)

    # Assert
    assert response.status_code == 201
    result = response.json()["data"]["result"]
    assert result["iq"] == 145
    assert result["time_spent"] == 900

    board = client.get("/api/leaderboard", params={"page_size": 5}).json()["data"]
    assert board["total"] == 1
    assert board["items"][0]["name"] == "Lan"

    stats = client.get("/api/leaderboard/stats").json()["data"]
    assert stats["highest_score"] == 145


def test_leaderboard_keeps_best_attempt_per_email(client, question_answers):
    submit(client, [None] * 12)
    submit(client, question_answers, email="LAN@example.com")

    board = client.get("/api/leaderboard").json()["data"]
    assert board["total"] == 1
    assert board["items"][0]["score"] == 145


def test_submit_validation_error(client):
    response = client.post("/api/results", json={"answers": [], "time_spent": 10})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_behavior_log_feeds_analytics(client, services):
    response = client.post(
        "/api/behavior-logs",
        json={"session_id": "s1", "event_type": "start", "event_data": {"isMobile": True}},
    )

    assert response.status_code == 201
    stats = services.analytics.get_analytics_stats()
    assert stats.in_progress_sessions == 1
    assert stats.device_stats["mobile"].count == 1


def test_track_view_unknown_article(client):
    response = client.post("/api/track-view", json={"article_id": "ghost"})
    assert response.status_code == 404
