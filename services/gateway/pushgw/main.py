"""PushGW FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_fastapi_instrumentator import Instrumentator

from pushgw.config import Settings, get_settings
from pushgw.dependencies import get_dispatch, get_registry, init_services, reset_services
from pushgw.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from pushgw.middleware.logging import LoggingMiddleware, setup_logging
from pushgw.routers import devices, notifications

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app.state.settings
    setup_logging(debug=settings.debug)
    logger.info("Starting %s (env=%s, port=%d)", settings.app_name, settings.app_env, settings.port)

    init_services(settings)

    yield

    # Registrations are in-memory only and do not survive shutdown
    reset_services()
    logger.info("%s shutting down", settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="FCM Server API",
        description="API for registering device tokens and sending FCM data notifications.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    # Middleware (order matters: outermost first)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    origins = settings.cors_origins
    allow_all = origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if not allow_all else [],
        allow_origin_regex=r".*" if allow_all else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=600,
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(devices.router)
    app.include_router(notifications.router)

    @app.get("/")
    async def root():
        return {"status": "running", "service": settings.app_name, "version": "1.0.0"}

    @app.get("/health")
    async def health():
        return {"ok": True, "service": settings.app_name}

    @app.get("/health/ready")
    async def health_ready():
        """Report registry size and whether the FCM app has been initialized."""
        registry = get_registry(settings)
        stats = registry.stats()
        provider = get_dispatch(settings, registry).provider
        return {
            "ok": True,
            "checks": {
                "registry": {"users": stats.users, "tokens": stats.tokens},
                "fcm": "initialized" if getattr(provider, "initialized", False) else "lazy",
            },
        }

    # Prometheus instrumentation
    instrumentator = Instrumentator(
        excluded_handlers=["/health", "/health/ready", "/docs", "/redoc", "/openapi.json", "/metrics"],
    )
    instrumentator.instrument(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint for this process."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Default app instance for uvicorn
app = create_app()


def run() -> None:
    """Console entry point: serve the default app with uvicorn.

    Registrations live in process memory, so the app runs as a single worker.
    """
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
