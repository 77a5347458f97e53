from fastapi import APIRouter, Depends, Query

from src.api.dependencies import fail, get_services, ok
from src.api.schemas import BehaviorLogRequest, SubmitResultRequest, TrackViewRequest
from src.config import AppConfig
from src.container import Services

router = APIRouter(prefix="/api", tags=["public"])


@router.get("/health")
def health_check():
    return {"status": "ok", "app": AppConfig.APP_TITLE}


@router.get("/questions")
def list_questions(services: Services = Depends(get_services)):
    # Answers and explanations stay server-side until the result is computed
    questions = [
        q.model_dump(mode="json", exclude={"correct", "explanation"})
        for q in services.tests.load_questions()
    ]
    return ok({"time_limit": services.tests.time_limit, "questions": questions})


@router.post("/results", status_code=201)
def submit_result(body: SubmitResultRequest, services: Services = Depends(get_services)):
    session = services.tests.session_from_answers(
        body.answers, body.time_spent, body.session_id
    )
    result, record = services.tests.submit(session, body.user_info, body.user_id)
    services.leaderboard.invalidate()
    return ok(
        {"result": result.model_dump(mode="json"), "id": record.id},
        status_code=201,
    )


@router.post("/behavior-logs", status_code=201)
def log_behavior(body: BehaviorLogRequest, services: Services = Depends(get_services)):
    services.analytics.log_event(
        body.session_id, body.event_type, body.question_number, body.event_data
    )
    return ok(status_code=201)


@router.post("/track-view")
def track_view(body: TrackViewRequest, services: Services = Depends(get_services)):
    if not services.articles.track_view(body.article_id):
        return fail(404, "Article not found")
    return ok()


@router.get("/leaderboard")
def leaderboard(
    page: int = Query(1, ge=1),
    page_size: int = Query(AppConfig.LEADERBOARD_PAGE_SIZE, ge=1, le=100),
    services: Services = Depends(get_services),
):
    return ok(services.leaderboard.get_page(page, page_size).model_dump(mode="json"))


@router.get("/leaderboard/stats")
def leaderboard_stats(services: Services = Depends(get_services)):
    return ok(services.leaderboard.get_stats().model_dump())


@router.get("/leaderboard/recent")
def recent_top_performers(
    days: int = Query(7, ge=1, le=365),
    limit: int = Query(5, ge=1, le=50),
    services: Services = Depends(get_services),
):
    entries = services.leaderboard.get_recent_top_performers(days, limit)
    return ok([e.model_dump(mode="json") for e in entries])


@router.get("/leaderboard/users/{user_id}")
def local_ranking(user_id: str, services: Services = Depends(get_services)):
    entries = services.leaderboard.get_user_local_ranking(user_id)
    if not entries:
        return fail(404, "User has no ranked result")
    return ok([e.model_dump(mode="json") for e in entries])
