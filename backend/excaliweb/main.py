import asyncio
import logging
import os
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Load environment variables
load_dotenv()

from excaliweb.api.routes import files, filesystem, settings as settings_routes, workspace
from excaliweb.api.routes.workspace import limiter
from excaliweb.core.config import Settings, settings as default_settings
from excaliweb.core.errors import FileManagerError, PathEscape
from excaliweb.services.document_store import get_document_store
from excaliweb.services.workspace import WorkspaceState

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("excaliweb.security")


async def file_manager_error_handler(request: Request, exc: FileManagerError):
    """Map taxonomy errors to ``{"error", "detail"}`` responses."""
    if isinstance(exc, PathEscape):
        security_logger.warning(
            "Blocked path escape (%s boundary): %s %s: %s",
            exc.boundary, request.method, request.url.path, exc.message,
        )
    else:
        logger.info("%s %s failed: %s: %s", request.method, request.url.path, exc.category, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.category, "detail": exc.message},
    )


async def os_error_handler(request: Request, exc: OSError):
    """Unclassified filesystem failures: report the message, never the traceback."""
    logger.error("Filesystem error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "operation_failed", "detail": str(exc)},
    )


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="ExcaliWeb API",
        version="1.0.0",
        description="Workspace and drawing file management for ExcaliWeb",
    )

    app.state.settings = app_settings
    app.state.workspace = WorkspaceState()

    # Attach limiter to app state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(FileManagerError, file_manager_error_handler)
    app.add_exception_handler(OSError, os_error_handler)

    # TODO: [SECURITY] Add authentication before exposing beyond localhost
    # See: https://fastapi.tiangolo.com/tutorial/security/

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    # Include routers
    app.include_router(workspace.router, prefix="/api")
    app.include_router(files.router, prefix="/api")
    app.include_router(filesystem.router, prefix="/api")
    app.include_router(settings_routes.router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": "ExcaliWeb API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        checks = {
            "server": "ok",
            "workspace": "ok" if app.state.workspace.is_selected else "not configured",
            "dataDir": "not configured",
        }
        if app_settings.data_dir:
            accessible = await asyncio.to_thread(os.access, app_settings.data_dir, os.R_OK)
            checks["dataDir"] = "ok" if accessible else "inaccessible"

        all_ok = all(v in ("ok", "not configured") for v in checks.values())
        return JSONResponse(status_code=200 if all_ok else 503, content=checks)

    @app.on_event("startup")
    async def startup():
        """Select the data directory as workspace when DEFAULT_WORKSPACE is on."""
        logger.info("Data directory: %s", app_settings.data_dir or "(not configured)")
        if not app_settings.default_workspace_enabled:
            return

        store = get_document_store(app.state.workspace, app_settings.data_dir)
        try:
            await store.initialize_default_workspace()
        except (FileManagerError, OSError):
            logger.exception("Failed to initialize default workspace, server will continue running")
            return
        logger.info("Default workspace initialized: %s", app.state.workspace.get_workspace_path())

    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging(default_settings.log_level)

app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("excaliweb.main:app", host="0.0.0.0", port=default_settings.port)
