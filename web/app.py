"""
FastAPI application for the CivicEye engine.

The entity store, event bus and workflow are constructed here and owned by the
app (app.state); routes reach them through dependencies. Pass a store or bus
to create_app() to substitute a different backend.

Production deployment configuration via environment variables (utils.config).
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import ConflictError, InternalError, NotFoundError, ValidationError
from core.events import EventBus
from core.scoring import ScoringEngine
from core.seed import seed_sample_data
from core.store import EntityStore, InMemoryEntityStore
from core.workflow import CivicWorkflow
from reporting import TaxNoticePDFGenerator
from utils.config import Config
from web.api_routes import router as api_router
from web.identity import CurrentUserResolver, HeaderUserResolver
from web.realtime import router as realtime_router


logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

DEV_ORIGINS = ["http://localhost:5000", "http://localhost:5173", "http://127.0.0.1:8000"]


# =============================================================================
# Error Responses
# =============================================================================


def _field_name(loc: tuple) -> str:
    """('body', 'propertyId') -> 'propertyId'; ('query', 'limit') -> 'limit'."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "fields": exc.field_errors},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = {}
        for error in exc.errors():
            fields.setdefault(_field_name(tuple(error.get("loc", ()))), error.get("msg", "Invalid value"))
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "fields": fields},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": exc.public_message})

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        content = {"error": str(exc)}
        if exc.field:
            content["field"] = exc.field
        return JSONResponse(status_code=409, content=content)

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError):
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    config: Optional[Config] = None,
    store: Optional[EntityStore] = None,
    bus: Optional[EventBus] = None,
    current_user_resolver: Optional[CurrentUserResolver] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="CivicEye",
        description="Citizen reporting of vacant properties and tax enforcement",
        version=VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    # Healthchecks: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    allowed_origins = config.allowed_origins or ([] if IS_PRODUCTION else DEV_ORIGINS)
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # ==========================================================================
    # Owned components
    # ==========================================================================
    if store is None:
        store = InMemoryEntityStore(persist_path=config.store_persist_path or None)
        if config.seed_sample_data:
            seed_sample_data(store)

    bus = bus or EventBus()
    engine = ScoringEngine(
        confirmation_threshold=config.confirmation_threshold,
        report_points=config.report_points,
    )

    app.state.config = config
    app.state.store = store
    app.state.bus = bus
    app.state.workflow = CivicWorkflow(store=store, bus=bus, engine=engine)
    app.state.pdf_generator = TaxNoticePDFGenerator(output_dir=config.reports_dir)
    app.state.current_user_resolver = current_user_resolver or HeaderUserResolver(
        store, default_user_id=config.default_user_id
    )

    @app.on_event("startup")
    def on_startup():
        logger.info("CivicEye %s started (%s)", VERSION, "production" if IS_PRODUCTION else "development")

    @app.on_event("shutdown")
    def on_shutdown():
        store.close()
        logger.info("CivicEye stopped")

    register_exception_handlers(app)
    app.include_router(api_router)
    app.include_router(realtime_router)

    @app.get("/api/health")
    async def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    return app


# Create app instance for uvicorn
app = create_app()
