# app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import sys
from datetime import datetime, timezone
import time
import psutil

# Import your core modules
from app.core.config import settings
from app.core.exceptions import AppError, register_exception_handlers
from app.core.rate_limiter import limiter
from app.core.store import CollectionStore
from app.models.user import UserRole
from app.services.auth_service import ResetCodeStore, create_user, get_user_by_email, normalize_email
from app.services.broadcast import Broadcaster
from app.services.chatbot_service import seed_default_triggers
from app.services.command_service import seed_default_commands

# Routers
from app.api.endpoints import (
    auth as auth_router,
    users as users_router,
    account as account_router,
    badges as badges_router,
    master as master_router,
    chatbot as chatbot_router,
    notices as notices_router,
    tests_admin as tests_router,
    attendance as attendance_router,
    logs as logs_router,
    analytics as analytics_router,
    data as data_router,
    realtime as realtime_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="Campus Portal Backend",
    version="1.0.0",
    description="Backend service for the Campus Portal admin, faculty, moderator and student dashboards.",
)

# Shared state owned by this app instance
app.state.store = CollectionStore(settings.DATA_DIR)
app.state.broadcaster = Broadcaster(queue_size=settings.BROADCAST_QUEUE_SIZE)
app.state.reset_codes = ResetCodeStore(ttl_minutes=settings.RESET_CODE_TTL_MINUTES)
app.state.limiter = limiter

# Global variables for metrics
START_TIME = time.time()

# ------------------------------------------------------------
# ERROR HANDLERS
# ------------------------------------------------------------
register_exception_handlers(app)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ------------------------------------------------------------
# METRICS API
# ------------------------------------------------------------
@app.get("/api/metrics", tags=["System"])
async def metrics():
    # 1. System Stats
    uptime_seconds = int(time.time() - START_TIME)
    cpu_usage = psutil.cpu_percent(interval=None)
    ram_usage = psutil.virtual_memory().percent
    try:
        disk_usage = psutil.disk_usage(app.state.store.data_dir).percent
    except OSError:
        disk_usage = 0

    # 2. Store & real-time channel
    store_status = app.state.store.status()
    sessions = app.state.broadcaster.session_count
    now = datetime.now(timezone.utc)
    live_sessions = [
        {
            "connectedSeconds": int((now - s.connected_at).total_seconds()),
            "subscriptions": sorted(s.subscriptions),
            "dropped": s.dropped,
        }
        for s in app.state.broadcaster.sessions()
    ]

    current_time = time.strftime("%H:%M:%S")
    logs = [
        {"time": current_time, "level": "INFO", "msg": f"Health check: {sessions} live session(s)"}
    ]

    return {
        "status": "Online",
        "version": app.version,
        "cpu": cpu_usage,
        "ram": ram_usage,
        "disk": disk_usage,
        "uptime": uptime_seconds,
        "collections": store_status,
        "sessions": sessions,
        "liveSessions": live_sessions,
        "logs": logs
    }


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        settings.FRONTEND_URL,
        "*",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "*"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(account_router.router)
app.include_router(badges_router.router)
app.include_router(master_router.router)
app.include_router(chatbot_router.router)
app.include_router(notices_router.router)
app.include_router(tests_router.router)
app.include_router(attendance_router.router)
app.include_router(logs_router.router)
app.include_router(analytics_router.router)
app.include_router(data_router.router)
app.include_router(realtime_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting Campus Portal Backend...")
    store = app.state.store

    # 1) Load every collection (missing / corrupt files fall back to defaults)
    store.load_all()
    logger.success(f"Collections loaded from {store.data_dir}")

    # 2) Seed Super Admin
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings.")
    else:
        try:
            admin_email = normalize_email(settings.SUPER_ADMIN_EMAIL)
            if get_user_by_email(store, admin_email):
                logger.info("Super Admin already exists. Skipping.")
            else:
                logger.info(f"Seeding Super Admin: {admin_email}")
                create_user(
                    store,
                    None,
                    {
                        "email": admin_email,
                        "name": settings.SUPER_ADMIN_NAME or "Super Admin",
                        "password": settings.SUPER_ADMIN_PASSWORD,
                        "role": UserRole.Admin,
                    },
                    actor="system",
                )
                logger.success("Super Admin created successfully.")
        except (AppError, OSError):
            logger.exception("Super Admin seeding failed.")

    # 3) Default master commands and chatbot triggers
    seed_default_commands(store)
    seed_default_triggers(store)

    logger.success("Backend startup completed successfully.\n")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "Campus Portal Backend",
        "version": app.version,
        "message": "Backend running successfully",
        "sessions": app.state.broadcaster.session_count,
    }
