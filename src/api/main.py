import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware.correlation_id import correlation_id_middleware
from src.api.middleware.rate_limiter import general_rate_limit
from src.api.routers import rate_alerts_router, admin_router
from src.common.config.settings import get_settings
from src.common.database.db_connector import Base, engine, get_db
from src.common.exceptions import AppError
from src.common.logging_config import setup_logging
from src.common.services.notification import get_notification_provider
from src.common.services.rate_data_service import get_rate_data_provider
from src.common.services.rate_monitor_service import RateMonitorService
from src.worker.scheduler import setup_scheduler, start_scheduler, stop_scheduler

import src.common.models  # noqa: F401  모든 모델을 Base.metadata에 등록

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)
    logger.info(f"Starting rate alert API (env={settings.APP_ENV})...")

    # Ensure tables are created for all environments
    Base.metadata.create_all(bind=engine)

    app.state.rate_monitor = RateMonitorService(
        get_rate_data_provider(settings),
        get_notification_provider(settings),
    )

    if settings.RATE_MONITOR_ENABLED:
        setup_scheduler(app.state.rate_monitor, settings.RATE_MONITOR_INTERVAL_SECONDS)
        start_scheduler()
    else:
        logger.info("Rate monitor is disabled (RATE_MONITOR_ENABLED=false).")

    yield

    logger.info("Shutting down rate alert API...")
    if settings.RATE_MONITOR_ENABLED:
        stop_scheduler()


app = FastAPI(
    title="Rate Alert Service",
    version=API_VERSION,
    lifespan=lifespan,
    dependencies=[Depends(general_rate_limit)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(correlation_id_middleware)


# --- Exception Handlers ---
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = AppError("VALIDATION_ERROR", "Invalid request data", 400, details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=400, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    error = AppError(code, str(exc.detail), exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=error.to_dict(), headers=getattr(exc, "headers", None))


# correlation id 미들웨어 밖에서 발생한 오류용
@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    error = AppError("INTERNAL_ERROR", "An unexpected error occurred", 500)
    return JSONResponse(status_code=500, content=error.to_dict())


# --- Routers ---
app.include_router(rate_alerts_router)
app.include_router(admin_router)


# --- Basic Endpoints ---
@app.get("/health")
def health_check():
    """헬스체크 엔드포인트"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """DB 연결까지 확인하는 준비 상태 엔드포인트"""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}", exc_info=True)
        return JSONResponse(status_code=503, content={"status": "not ready", "database": "unavailable"})
    return {"status": "ready", "database": "ok"}


@app.get("/api")
def api_info():
    return {
        "name": "Rate Alert Service",
        "version": API_VERSION,
        "endpoints": {
            "rateAlerts": "/rate-alerts",
            "adminRateAlerts": "/admin/rate-alerts",
            "runRateCheck": "/admin/rate-alerts/run-check",
            "schedulerStatus": "/admin/scheduler/status",
            "health": "/health",
            "ready": "/ready",
        },
    }
