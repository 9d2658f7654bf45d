"""
Tably Backend - restaurant ordering, reservations and subscription plans
"""

from pathlib import Path
import logging
import traceback

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auth import auth_router
from routers.ai_router import router as ai_router
from routers.menu_router import router as menu_router
from routers.orders_router import router as orders_router
from routers.payments_router import router as payments_router
from routers.reservations_router import router as reservations_router
from routers.restaurants_router import router as restaurants_router
from routers.subscription_router import subscription_router
from routers.upgrade_request_router import admin_upgrade_request_router, upgrade_request_router
from utils.rate_limit import RateLimiterMiddleware
from database import init_db
from config.settings import settings

# ============================================================================
# LOGGING
# ============================================================================

# Write all events to ./logs/app.log and stderr
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP SETUP
# ============================================================================

app = FastAPI(title="Tably API")


def _is_render_env() -> bool:
    """Check if running in Render.com environment"""
    return bool(settings.render or settings.render_external_url or settings.render_service_name)


class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    """Logs unhandled exceptions and returns a 500 JSON body"""
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": "Internal Server Error"}
            )


# Keys whose absence disables a feature without stopping the server
OPTIONAL_KEY_MAP = {
    "STRIPE_WEBHOOK_SECRET": settings.stripe_webhook_secret,
    "PAYPAL_CLIENT_ID": settings.paypal_client_id,
    "AI_API_KEY": settings.ai_api_key,
    "REDIS_URL": settings.redis_url,
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "connect-src 'self' https://api.stripe.com https://api-m.paypal.com https://api-m.sandbox.paypal.com; "
            "frame-src https://js.stripe.com https://www.paypal.com; "
            "img-src 'self' data: blob:; "
            "object-src 'none'; "
            "base-uri 'self';"
        )

        # HTTPS is only guaranteed on Render
        if _is_render_env():
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(RateLimiterMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# STARTUP
# ============================================================================

@app.on_event("startup")
async def check_env_keys_on_startup():
    """Warn about missing optional integrations (non-fatal)"""
    if not settings.jwt_secret_key:
        logger.warning("Startup check: JWT_SECRET_KEY is not set, signup and login will fail")

    missing = [key for key, value in OPTIONAL_KEY_MAP.items() if not value]
    if missing:
        logger.warning(f"Startup check: Missing environment variables: {', '.join(missing)}")
    else:
        logger.info("Startup check: All optional environment variables are set")


@app.on_event("startup")
async def initialize_database():
    """Create all tables."""
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


@app.get("/health")
async def health():
    return {"ok": True, "status": "healthy"}

# ============================================================================
# INCLUDE ROUTERS
# ============================================================================
app.include_router(auth_router)
app.include_router(subscription_router)
app.include_router(upgrade_request_router)
app.include_router(admin_upgrade_request_router)
app.include_router(restaurants_router)
app.include_router(menu_router)
app.include_router(orders_router)
app.include_router(reservations_router)
app.include_router(payments_router)
app.include_router(ai_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
