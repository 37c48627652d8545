"""
PawPa Backend - pet care API with subscriptions and monthly budgets
"""

from pathlib import Path
import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from auth import auth_router
from routers.subscription_router import subscription_router
from routers.pets_router import pets_router
from routers.expenses_router import expenses_router
from routers.health_records_router import health_records_router
from routers.events_router import events_router
from routers.feeding_schedules_router import feeding_schedules_router
from routers.budget_router import budget_router
from routers.budget_limits_router import budget_limits_router
from utils.errors import register_exception_handlers, unhandled_error_response
from utils.rate_limit import RateLimiterMiddleware
from utils.responses import success_response
from utils.date_utils import utcnow
from database import init_db
from config.settings import settings, IS_PRODUCTION

API_VERSION = "1.0.0"

# Logging setup - write ALL events to ./logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PawPa API", version=API_VERSION)


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            return unhandled_error_response(request, e)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status and duration."""
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if IS_PRODUCTION and request.url.path == "/health":
            return response
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms")
        return response


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # JSON API only, nothing to load
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # HTTPS is only guaranteed behind the production proxy
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(RateLimiterMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
async def check_env_keys_on_startup():
    """Warn about missing secrets on startup (non-fatal)"""
    if not settings.jwt_secret_key:
        logger.warning("JWT_SECRET_KEY is not set. Login and authenticated routes will fail.")
    if not settings.revenuecat_webhook_auth_key:
        logger.warning("REVENUECAT_WEBHOOK_AUTH_KEY is not set. Every webhook delivery will be rejected.")


@app.on_event("startup")
async def initialize_database():
    """Create database tables on startup"""
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


@app.get("/health")
async def health_check():
    return success_response({"status": "OK", "timestamp": utcnow(), "version": API_VERSION})


@app.get("/api")
async def api_info():
    return success_response({
        "name": "PawPa API",
        "version": API_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "pets": "/api/pets",
            "expenses": "/api/expenses",
            "healthRecords": "/api/health-records",
            "events": "/api/events",
            "feedingSchedules": "/api/feeding-schedules",
            "budget": "/api/budget",
            "budgetLimits": "/api/budget-limits",
            "subscription": "/api/subscription",
        },
    })


app.include_router(auth_router)
app.include_router(subscription_router)
app.include_router(pets_router)
app.include_router(expenses_router)
app.include_router(health_records_router)
app.include_router(events_router)
app.include_router(feeding_schedules_router)
app.include_router(budget_router)
app.include_router(budget_limits_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
