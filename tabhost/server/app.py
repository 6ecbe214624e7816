"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from playwright.async_api import Error as PlaywrightError

from ..core.config import Settings
from ..core.errors import TabHostError
from .routes import router
from .service import TabService

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    """First validation problem as a short message, e.g. ``userId required``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = str(first.get("loc", ["request"])[-1])
    if first.get("type") == "missing":
        return f"{field} required"
    return f"{field}: {first.get('msg', 'invalid value')}"


def create_app(settings: Optional[Settings] = None, service: Optional[TabService] = None) -> FastAPI:
    """Build the application around one explicitly owned service.

    Args:
        settings: Application settings, defaults to environment.
        service: Pre-built service, mainly for tests with a fake browser.
    """
    settings = settings or Settings()
    service = service or TabService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.start()
        logger.info("tabhost ready")
        yield
        await service.shutdown()

    app = FastAPI(title="tabhost", version="0.1.0", lifespan=lifespan)
    app.state.service = service
    app.include_router(router)

    @app.exception_handler(TabHostError)
    async def tabhost_error_handler(request: Request, exc: TabHostError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})

    @app.exception_handler(PlaywrightError)
    async def driver_error_handler(request: Request, exc: PlaywrightError):
        logger.error(f"{request.method} {request.url.path} driver error: {exc.message}")
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} unexpected error")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    return app
