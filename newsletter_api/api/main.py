import logging
import os
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from newsletter_api import __version__
from newsletter_api.adapters.sqlite.migrator import SQLiteMigrator
from newsletter_api.api.deps import close_resources, get_settings
from newsletter_api.api.routes import health, newsletters, subscriptions
from newsletter_api.telemetry import init_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    init_logging(settings.logging.level)

    db_dir = os.path.dirname(settings.database.path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    # Schema must be current before the first request (fail-fast)
    SQLiteMigrator(settings.database.path, settings.database.migrations_dir).run_migrations()
    logger.info(
        "Serving on %s:%s", settings.application.host, settings.application.port
    )

    yield

    close_resources()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Newsletter API",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router, tags=["Health"])
app.include_router(subscriptions.router, tags=["Subscriptions"])
app.include_router(newsletters.router, tags=["Newsletters"])


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed request fields are a plain 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request_id=%s method=%s path=%s status=%s duration_ms=%.1f",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    response.headers["X-Request-ID"] = request_id
    return response
