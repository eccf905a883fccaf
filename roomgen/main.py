import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roomgen import __version__
from roomgen.api.v1.router import api_v1_router
from roomgen.core.config import settings, validate_settings_for_production
from roomgen.core.dependencies import build_generation_service
from roomgen.core.exceptions import AppError
from roomgen.core.logging import setup_logging
from roomgen.core.metrics import PrometheusMiddleware, metrics_response
from roomgen.core.middleware import RequestLoggingMiddleware
from roomgen.core.sentry import init_sentry
from roomgen.generation.rate_limiter import build_rate_limit_mode, redis_storage

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    logger.info("Starting room redesign service...")

    storage = redis_storage(settings.redis_url) if settings.redis_url else None
    if storage is not None and not await storage.check():
        logger.warning("Rate limit storage is not reachable yet")
    rate_limit = build_rate_limit_mode(storage, settings.rate_limit)
    app.state.generation_service = build_generation_service(rate_limit)

    yield

    # Shutdown
    logger.info("Room redesign service shut down")


app = FastAPI(
    title="Room Redesign",
    description="Redesign room photos in a chosen theme via Replicate",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "kind": exc.kind},
        headers=exc.headers(),
    )


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(
        status_code=500,
        content={
            "error": "Unexpected server error",
            "kind": "internal_error",
            "detail": f"{type(exc).__name__}: {exc}" if settings.app_debug else None,
        },
    )


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After", "X-Request-ID"],
)

app.include_router(api_v1_router)


@app.get("/api/v1/health")
async def health(request: Request):
    service = getattr(request.app.state, "generation_service", None)
    return {
        "status": "ok",
        "rate_limiting": bool(service and service.rate_limiting_enabled),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
