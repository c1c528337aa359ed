from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from .config import get_settings
from .errors import StrangewayError
from .logging import setup_logging
from .routers import filter_router, health_router
from .state import get_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    status = get_pipeline().status()
    if not status.detector_ready:
        logger.error("Face detector unavailable: %s", status.detector_error)
    yield


settings = get_settings()

app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(health_router)
app.include_router(filter_router)


@app.exception_handler(StrangewayError)
async def strangeway_error_handler(request: Request, exc: StrangewayError) -> PlainTextResponse:
    logger.warning(
        "%s %s failed: %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc.message,
        extra={"locator": request.query_params.get("url"), "status_code": exc.status_code},
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    details = "; ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors())
    return PlainTextResponse(f"Invalid query parameters: {details}", status_code=400)
