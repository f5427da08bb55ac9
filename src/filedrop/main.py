"""Main application entrypoint for FileDrop."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from filedrop.api.middleware import HTTPErrorLoggingMiddleware
from filedrop.api.v1 import routes_health
from filedrop.api.v1.routes_drop import STATIC_DIR, not_found_page, ui_router
from filedrop.api.v1.routes_slots import router as slots_router
from filedrop.chat.notifier import ChatNotifier
from filedrop.core.config import Settings, settings as default_settings
from filedrop.core.logging import setup_logging
from filedrop.lifecycle.orchestrator import FileDropLifecycle
from filedrop.storage.local import LocalSlotStorage

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    lifecycle: Optional[FileDropLifecycle] = None,
    notifier: Optional[ChatNotifier] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use, defaults to the environment settings
        lifecycle: Pre-built lifecycle, built from settings when omitted
        notifier: Pre-built chat notifier, built from settings when omitted

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app_settings = app_settings or default_settings

    # Initialize logging first
    setup_logging(app_settings.ENV, app_settings.LOG_LEVEL)

    if lifecycle is None:
        lifecycle = FileDropLifecycle.build(
            storage=LocalSlotStorage(app_settings.storage_root),
            max_storage_bytes=app_settings.MAX_STORAGE_SIZE_BYTES,
            retention=app_settings.retention,
        )
    if notifier is None:
        notifier = ChatNotifier(
            api_url=app_settings.CHAT_API_URL,
            token=app_settings.CHAT_TOKEN,
            timeout=app_settings.NOTIFY_TIMEOUT,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Entries are not persisted, so anything already on disk is orphaned
        lifecycle.storage.reset()
        yield

    app = FastAPI(
        title=app_settings.SERVICE_NAME,
        version=app_settings.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.lifecycle = lifecycle
    app.state.notifier = notifier

    app.add_middleware(HTTPErrorLoggingMiddleware)

    # Register routers
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(slots_router)
    app.include_router(ui_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and not request.url.path.startswith("/api/"):
            return not_found_page()
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    return app


def run() -> None:
    """Process entry point: validate credentials and serve the app."""
    if not default_settings.CHAT_TOKEN:
        logger.critical("CHAT_TOKEN is required")
        sys.exit(1)

    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


# Export app instance for ASGI servers
app = create_app()


if __name__ == "__main__":
    run()
