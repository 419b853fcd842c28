import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from smart75.api import challenge, health, stats, sync
from smart75.core.config import resolve_timezone, settings, validate_config
from smart75.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from smart75.core.logging import configure_logging, get_logger
from smart75.core.middleware.request_id import RequestIdMiddleware
from smart75.features.challenge.service import ChallengeService
from smart75.features.storage.repository import build_repository


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger()
    logger.info("Starting 75 Smart backend...")
    if not app.state.challenge_service.is_available():
        logger.error("storage.unavailable", extra={"error_code": "storage_unavailable"})
    try:
        yield
    finally:
        logger.info("Stopping 75 Smart backend...")


def create_app(service: Optional[ChallengeService] = None) -> FastAPI:
    """Build the HTTP app around a ChallengeService (configured from settings by default)."""
    if service is None:
        service = ChallengeService(build_repository(settings), tz=resolve_timezone(settings))

    app = FastAPI(title="75 Smart", lifespan=lifespan)
    app.state.challenge_service = service

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(challenge.router, tags=["challenge"])
    app.include_router(stats.router, tags=["stats"])
    app.include_router(sync.router, tags=["sync"])
    return app


configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_config(strict=settings.CONFIG_STRICT)

app = create_app()
