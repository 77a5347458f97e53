from fastapi import APIRouter, Depends, Query

from src.api.dependencies import fail, get_services, ok, require_publishing_token
from src.api.schemas import PublishingActionRequest
from src.config import AppConfig
from src.container import Services
from src.shared.telemetry import Telemetry

router = APIRouter(
    prefix="/api/admin/scheduled-publishing",
    tags=["scheduled-publishing"],
    dependencies=[Depends(require_publishing_token)],
)
telemetry = Telemetry("ScheduledPublishingAPI")


@router.get("")
def publishing_status(
    action: str = "stats",
    limit: int = Query(AppConfig.UPCOMING_DEFAULT_LIMIT, ge=1, le=100),
    services: Services = Depends(get_services),
):
    try:
        match action:
            case "stats":
                data = services.publishing.get_scheduled_stats().model_dump()
            case "upcoming":
                data = [
                    a.model_dump(mode="json")
                    for a in services.publishing.get_upcoming_scheduled_articles(limit)
                ]
            case "health":
                data = services.publishing.health_check().model_dump(mode="json")
            case _:
                return fail(400, "Invalid action. Use: stats, upcoming, health")
    except Exception as e:
        telemetry.log_error("Scheduled publishing GET failed", e, action=action)
        return fail(500, "Internal server error", message=str(e))
    return ok(data)


@router.post("")
def publishing_trigger(
    body: PublishingActionRequest, services: Services = Depends(get_services)
):
    if body.action != "process":
        return fail(400, "Invalid action. Use: process")

    try:
        result = services.publishing.process_scheduled_articles()
    except Exception as e:
        telemetry.log_error("Scheduled publishing POST failed", e)
        return fail(500, "Internal server error", message=str(e))

    return ok(
        {"published": result.published, "errors": result.errors},
        message=f"Processed {result.published} articles with {len(result.errors)} errors",
    )
