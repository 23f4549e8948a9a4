"""
Coworking Reservations API - Main Application Entry Point

Booking core of a coworking marketplace:
- Concurrency-safe reservations with a per-office lock
- Inclusive date-range overlap checks and monthly discount pricing
- Structured logging with request correlation
- Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coworking.core.config import get_settings
from coworking.core.exceptions import BookingError
from coworking.core.logging import setup_logging, get_logger
from coworking.core.metrics import metrics_endpoint
from coworking.api.router import api_router
from coworking.api.middleware import RequestLoggingMiddleware
from coworking.infrastructure.redis_client import get_redis, close_redis, get_redis_stats

settings = get_settings()
logger = get_logger(__name__)


def _uses_redis() -> bool:
    return settings.LOCK_BACKEND == "redis" or settings.NOTIFIER_BACKEND == "redis"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        lock_backend=settings.LOCK_BACKEND,
        notifier_backend=settings.NOTIFIER_BACKEND,
    )

    if _uses_redis():
        redis_client = await get_redis()
        if redis_client:
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Bookings will report busy until Redis is back")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Coworking office reservations with double-booking protection",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render domain errors as `{message, code, errors?}`."""
    if exc.status_code >= 500:
        logger.error("booking_error", code=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "lock_backend": settings.LOCK_BACKEND,
        "redis": await get_redis_stats(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
