"""
FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import settings, validate_config
from app.core.exceptions import SadhanaException
from app.core.rate_limit import limiter
from app.routes import achievements, challenges, clock, habits, health, leaderboard, payments, rewards, shop
from app.services.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Silence noisy third-party loggers
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)
logging.getLogger('apscheduler.scheduler').setLevel(logging.WARNING)
logging.getLogger('apscheduler.executors').setLevel(logging.WARNING)
logging.getLogger('apscheduler.executors.default').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup/shutdown events
    """
    # Startup
    for error in validate_config(settings):
        logger.warning(f"Configuration: {error}")

    if settings.SCHEDULER_ENABLED:
        try:
            start_scheduler()
            logger.info("✓ Maintenance scheduler started")
        except Exception as e:
            logger.warning(f"Could not start scheduler: {e}")

    yield

    # Shutdown
    if settings.SCHEDULER_ENABLED:
        try:
            stop_scheduler()
            logger.info("✓ Maintenance scheduler stopped")
        except Exception as e:
            logger.warning(f"Error stopping scheduler: {e}")


# Initialize FastAPI app with lifespan
app = FastAPI(
    title=f"{settings.APP_NAME} API",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def maintenance_mode(request: Request, call_next):
    """Answer 503 for everything but the health check while in maintenance"""
    if settings.MAINTENANCE_MODE and not request.url.path.startswith(f"{API_PREFIX}/health"):
        return JSONResponse(
            status_code=503,
            content={"detail": "Service is under maintenance. Please try again later."}
        )
    return await call_next(request)


@app.exception_handler(SadhanaException)
async def sadhana_exception_handler(request: Request, exc: SadhanaException):
    """Last resort for application errors a route did not map"""
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


# Register routes
app.include_router(health.router, prefix=API_PREFIX)
app.include_router(clock.router, prefix=API_PREFIX)
app.include_router(habits.router, prefix=API_PREFIX)
app.include_router(rewards.router, prefix=API_PREFIX)
app.include_router(achievements.router, prefix=API_PREFIX)
app.include_router(challenges.router, prefix=API_PREFIX)
app.include_router(leaderboard.router, prefix=API_PREFIX)
app.include_router(shop.router, prefix=API_PREFIX)
app.include_router(payments.router, prefix=API_PREFIX)
