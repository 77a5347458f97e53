import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from src.api.dependencies import fail
from src.api.routes import admin, media, public, scheduled_publishing
from src.config import AppConfig
from src.shared.errors import AppError
from src.shared.observability import configure_observability
from src.shared.telemetry import Telemetry

telemetry = Telemetry("API")


def create_app() -> FastAPI:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
    )
    configure_observability("iqsite-api")

    app = FastAPI(title=f"{AppConfig.APP_TITLE} API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=AppConfig.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id(request: Request, call_next):
        trace_id = Telemetry.start_trace(request.headers.get("x-request-id"))
        response = await call_next(request)
        response.headers["x-request-id"] = trace_id
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            telemetry.log_error("Request failed", exc, path=request.url.path)
        return fail(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return fail(400, "Invalid request", details=jsonable_errors(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        telemetry.log_error("Unhandled error", exc, path=request.url.path)
        return fail(500, "Internal server error", message=str(exc))

    app.include_router(public.router)
    app.include_router(scheduled_publishing.router)
    app.include_router(media.router)
    app.include_router(admin.router)

    app.mount("/metrics", make_asgi_app())
    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


app = create_app()
