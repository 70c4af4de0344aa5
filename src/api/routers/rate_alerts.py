import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from pydantic import EmailStr
from sqlalchemy.orm import Session

from src.api.dependencies import get_rate_alert_service, get_tenant_context
from src.api.middleware.rate_limiter import mutation_rate_limit, read_rate_limit
from src.common.database import db_connector
from src.common.schemas.rate_alert import (
    RateAlertCreate,
    RateAlertUpdate,
    RateAlertRead,
    RateAlertListResponse,
    CreateRateAlertResponse,
    DeleteRateAlertResponse,
)
from src.common.schemas.tenant import TenantContext
from src.common.services.rate_alert_service import RateAlertService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rate-alerts", tags=["rate-alerts"])


@router.post("", response_model=CreateRateAlertResponse, status_code=201,
             dependencies=[Depends(mutation_rate_limit)],
             summary="새 금리 알림 생성",
             description="목표 금리에 도달하면 이메일로 알려주는 금리 알림을 생성합니다. Idempotency-Key 헤더가 필수이며, 같은 키로 다시 요청하면 기존 알림을 반환합니다.")
async def create_rate_alert(
    alert: RateAlertCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    tenant: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(db_connector.get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    logger.debug(f"create_rate_alert: email={alert.email}, loan_type={alert.loan_type}, target_rate={alert.target_rate}")
    return await rate_alert_service.create_alert(db, alert, idempotency_key, tenant)


@router.get("", response_model=RateAlertListResponse,
            dependencies=[Depends(read_rate_limit)],
            summary="이메일별 금리 알림 목록 조회",
            description="기본적으로 활성 알림만 반환합니다. includeAll=true 이면 모든 상태의 알림을 반환합니다.")
def list_rate_alerts(
    email: EmailStr = Query(...),
    include_all: Optional[str] = Query(None, alias="includeAll"),
    db: Session = Depends(db_connector.get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    # 정확히 "true"일 때만 전체 조회
    return rate_alert_service.get_alerts(db, email, include_all == "true")


@router.get("/{alert_id}", response_model=RateAlertRead,
            dependencies=[Depends(read_rate_limit)],
            summary="금리 알림 상세 조회")
def get_rate_alert(
    alert_id: UUID,
    db: Session = Depends(db_connector.get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    return rate_alert_service.get_alert_detail(db, str(alert_id))


@router.put("/{alert_id}", response_model=RateAlertRead,
            dependencies=[Depends(mutation_rate_limit)],
            summary="금리 알림 수정",
            description="targetRate, loanType, timeframe, status 중 전달된 필드만 변경합니다.")
async def update_rate_alert(
    alert_id: UUID,
    alert_update: RateAlertUpdate,
    db: Session = Depends(db_connector.get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    return await rate_alert_service.update_alert(db, str(alert_id), alert_update)


@router.delete("/{alert_id}", response_model=DeleteRateAlertResponse,
               dependencies=[Depends(mutation_rate_limit)],
               summary="금리 알림 비활성화",
               description="알림을 삭제하지 않고 INACTIVE 상태로 변경합니다.")
async def delete_rate_alert(
    alert_id: UUID,
    db: Session = Depends(db_connector.get_db),
    rate_alert_service: RateAlertService = Depends(get_rate_alert_service)
):
    await rate_alert_service.delete_alert(db, str(alert_id))
    return DeleteRateAlertResponse(success=True, message="Rate alert deactivated successfully")
