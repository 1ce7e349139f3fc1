"""
Bridge Inspection Recorder - Backend API
FastAPI service that lists bridge spreadsheets under a Drive folder and
appends field inspection records to them.

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import contextvars
import logging
import time
import uuid

from core.request_router import RequestRouter
from core.wiring import build_components
from routers import bridges
from settings import Settings, get_settings

VERSION = "1.0"

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    request_router: Optional[RequestRouter] = None,
) -> FastAPI:
    settings = settings or get_settings()
    if request_router is None:
        request_router = build_components(settings).request_router

    app = FastAPI(
        title="Bridge Inspection Recorder API",
        description="Bridge list + inspection record append over Google Drive / Sheets",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.request_router = request_router

    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request_id and timing to all requests."""
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        started = time.time()

        response = await call_next(request)

        latency_ms = round((time.time() - started) * 1000, 2)
        logger.info(
            "%s %s -> %s (%sms) [%s]",
            request.method, request.url.path, response.status_code, latency_ms, request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_origins_list(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        # Keep the response shape and status the client parses, even here
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        if request.method == "POST":
            content = {"success": False, "error": "Internal server error"}
        else:
            content = {"status": "error", "error": "Internal server error"}
        return JSONResponse(status_code=200, content=content)

    @app.get("/health")
    async def health_check():
        """Health check endpoint (no Google calls)."""
        return {
            "status": "ok",
            "backend": settings.storage_backend,
            "schemaVariant": request_router.config.variant.key,
            "configured": request_router.config_error is None,
            "version": VERSION,
        }

    app.include_router(bridges.router)
    return app


app = create_app()
