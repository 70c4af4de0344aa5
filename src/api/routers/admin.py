import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.dependencies import get_rate_alert_service, get_rate_monitor_service, verify_admin_key
from src.common.database.db_connector import get_db
from src.common.schemas.rate_alert import AdminRateAlertsResponse, RunRateCheckResponse
from src.common.services.rate_alert_service import RateAlertService
from src.common.services.rate_monitor_service import RateMonitorService
from src.worker.scheduler import get_scheduler_status

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(verify_admin_key)])
logger = logging.getLogger(__name__)


@router.get("/rate-alerts", response_model=AdminRateAlertsResponse, tags=["admin"])
def admin_list_rate_alerts(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    return rate_alert_service.get_admin_alerts(db, page=page, limit=limit)


@router.post("/rate-alerts/run-check", response_model=RunRateCheckResponse, tags=["admin"])
async def admin_run_rate_check(
    db: Session = Depends(get_db),
    monitor: RateMonitorService = Depends(get_rate_monitor_service)
):
    """금리 알림 검사를 즉시 한 번 실행합니다."""
    logger.info("관리자 요청으로 금리 알림 검사를 실행합니다.")
    result = await monitor.run_rate_check(db)
    return RunRateCheckResponse(
        success=True,
        message="Rate alert check completed",
        checked=result["checked"],
        triggered=result["triggered"],
    )


@router.get("/scheduler/status", tags=["admin"])
def admin_scheduler_status():
    """스케줄러 실행 여부와 등록된 잡 목록을 조회합니다."""
    return get_scheduler_status()
