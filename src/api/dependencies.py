import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, Request

from src.common.config.settings import Settings, get_settings
from src.common.exceptions import AppError
from src.common.schemas.tenant import TenantContext
from src.common.services.rate_alert_service import RateAlertService
from src.common.services.rate_monitor_service import RateMonitorService

logger = logging.getLogger(__name__)


def get_rate_alert_service():
    return RateAlertService()


def get_rate_monitor_service(request: Request) -> RateMonitorService:
    """lifespan에서 생성한 모니터 인스턴스 (API와 스케줄러가 공유)"""
    return request.app.state.rate_monitor


def get_tenant_context(
    broker_id: Optional[str] = Header(None, alias="x-broker-id"),
    loan_officer_id: Optional[str] = Header(None, alias="x-loan-officer-id"),
) -> TenantContext:
    return TenantContext(
        broker_id=broker_id,
        loan_officer_id=loan_officer_id,
    )


def verify_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.ADMIN_KEY:
        logger.error("ADMIN_KEY is not configured; rejecting admin request.")
        raise AppError("ADMIN_CONFIG_ERROR", "Admin access is not configured", 500)
    if not x_admin_key or not secrets.compare_digest(x_admin_key.encode(), settings.ADMIN_KEY.encode()):
        raise AppError("UNAUTHORIZED", "Invalid or missing admin key", 401)
