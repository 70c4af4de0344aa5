import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from src.common.exceptions import AppError, AlertNotFoundError
from src.common.models.rate_alert import RateAlert, RateAlertStatus
from src.common.schemas.rate_alert import (
    RateAlertCreate,
    RateAlertUpdate,
    RateAlertRead,
    RateAlertSummary,
    RateAlertListResponse,
    CreateRateAlertResponse,
    AdminRateAlertsResponse,
)
from src.common.schemas.tenant import TenantContext
from src.common.services.lead_service import LeadService
from src.common.utils.time_utils import utcnow, start_of_utc_day

logger = logging.getLogger(__name__)

MAX_ACTIVE_ALERTS_PER_EMAIL = 5
MAX_DAILY_ALERTS_PER_EMAIL = 10
DETAIL_NOTIFICATION_LIMIT = 10
ADMIN_NOTIFICATION_LIMIT = 5

CREATED_MESSAGE = "Rate alert created successfully! We'll notify you when rates hit your target."
ALREADY_EXISTS_MESSAGE = "Rate alert already exists"


class RateAlertService:
    def __init__(self, lead_service: LeadService = None):
        self.lead_service = lead_service or LeadService()

    async def create_alert(self, db: Session, alert_data: RateAlertCreate, idempotency_key: Optional[str],
                           tenant: Optional[TenantContext] = None) -> CreateRateAlertResponse:
        if not idempotency_key or not idempotency_key.strip():
            raise AppError("IDEMPOTENCY_KEY_REQUIRED", "Idempotency-Key header is required", 400)

        existing_alert = self.get_alert_by_idempotency_key(db, idempotency_key)
        if existing_alert:
            logger.info(f"Idempotent replay for key {idempotency_key}; returning alert {existing_alert.id}")
            return self._to_create_response(existing_alert, ALREADY_EXISTS_MESSAGE)

        tenant = tenant or TenantContext()
        broker_id = alert_data.broker_id if alert_data.broker_id is not None else tenant.broker_id
        loan_officer_id = alert_data.loan_officer_id if alert_data.loan_officer_id is not None else tenant.loan_officer_id

        # 스팸 방지 1: 이메일당 활성 알림 수 제한
        if self.count_active_alerts(db, alert_data.email) >= MAX_ACTIVE_ALERTS_PER_EMAIL:
            raise AppError(
                "MAX_ACTIVE_ALERTS_EXCEEDED",
                f"You have reached the maximum of {MAX_ACTIVE_ALERTS_PER_EMAIL} active rate alerts. "
                "Please deactivate an existing alert first.",
                400,
            )

        # 스팸 방지 2: UTC 기준 하루 생성 수 제한
        if self.count_alerts_created_today(db, alert_data.email) >= MAX_DAILY_ALERTS_PER_EMAIL:
            raise AppError(
                "MAX_DAILY_ALERTS_EXCEEDED",
                f"You have reached the maximum of {MAX_DAILY_ALERTS_PER_EMAIL} rate alerts per day. "
                "Please try again tomorrow.",
                400,
            )

        now = utcnow()
        db_alert = RateAlert(
            email=alert_data.email,
            first_name=alert_data.first_name,
            last_name=alert_data.last_name,
            phone=alert_data.phone,
            loan_type=alert_data.loan_type,
            target_rate=alert_data.target_rate,
            loan_amount=alert_data.loan_amount,
            property_address=alert_data.property_address,
            timeframe=alert_data.timeframe,
            status=RateAlertStatus.ACTIVE,
            notifications_sent=0,
            created_at=now,
            last_checked=now,
            idempotency_key=idempotency_key,
            user_id=str(alert_data.user_id) if alert_data.user_id else None,
            broker_id=broker_id,
            loan_officer_id=loan_officer_id,
        )
        try:
            db.add(db_alert)
            db.commit()
            db.refresh(db_alert)
        except IntegrityError:
            # 같은 키로 동시에 들어온 요청이 먼저 저장된 경우: 기존 알림을 반환
            db.rollback()
            existing_alert = self.get_alert_by_idempotency_key(db, idempotency_key)
            if existing_alert is None:
                raise
            logger.info(f"Idempotency key {idempotency_key} won by a concurrent request; returning alert {existing_alert.id}")
            return self._to_create_response(existing_alert, ALREADY_EXISTS_MESSAGE)
        except Exception:
            db.rollback()
            raise

        logger.info(f"Created rate alert {db_alert.id}", extra={"alert_id": db_alert.id, "loan_type": db_alert.loan_type})

        self.lead_service.create_lead_for_alert(db, db_alert)

        return self._to_create_response(db_alert, CREATED_MESSAGE)

    def get_alert_by_idempotency_key(self, db: Session, idempotency_key: str) -> Optional[RateAlert]:
        return db.query(RateAlert).filter(RateAlert.idempotency_key == idempotency_key).first()

    def get_alert_by_id(self, db: Session, alert_id: str) -> Optional[RateAlert]:
        return db.query(RateAlert).filter(RateAlert.id == alert_id).first()

    def count_active_alerts(self, db: Session, email: str) -> int:
        return db.query(func.count(RateAlert.id)).filter(
            RateAlert.email == email,
            RateAlert.status == RateAlertStatus.ACTIVE
        ).scalar()

    def count_alerts_created_today(self, db: Session, email: str) -> int:
        return db.query(func.count(RateAlert.id)).filter(
            RateAlert.email == email,
            RateAlert.created_at >= start_of_utc_day()
        ).scalar()

    def get_alerts(self, db: Session, email: str, include_all: bool = False) -> RateAlertListResponse:
        query = db.query(RateAlert).filter(RateAlert.email == email)
        # 기본은 활성 알림만
        if not include_all:
            query = query.filter(RateAlert.status == RateAlertStatus.ACTIVE)
        alerts = query.order_by(RateAlert.created_at.desc()).all()
        summaries = [RateAlertSummary.model_validate(alert) for alert in alerts]
        return RateAlertListResponse(alerts=summaries, total=len(summaries))

    def get_alert_detail(self, db: Session, alert_id: str) -> RateAlertRead:
        db_alert = self.get_alert_by_id(db, alert_id)
        if not db_alert:
            raise AlertNotFoundError()
        return self._to_read(db_alert, DETAIL_NOTIFICATION_LIMIT)

    async def update_alert(self, db: Session, alert_id: str, alert_data: RateAlertUpdate) -> RateAlertRead:
        db_alert = self.get_alert_by_id(db, alert_id)
        if not db_alert:
            raise AlertNotFoundError()

        # 상태를 ACTIVE로 되돌려도 활성 알림 수 제한은 다시 확인하지 않음
        update_data = alert_data.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in update_data:
            update_data["status"] = RateAlertStatus(update_data["status"])
        for key, value in update_data.items():
            setattr(db_alert, key, value)

        try:
            db.add(db_alert)
            db.commit()
            db.refresh(db_alert)
        except Exception:
            db.rollback()
            raise
        logger.info(f"Updated rate alert {alert_id}", extra={"alert_id": alert_id, "fields": sorted(update_data)})
        return self._to_read(db_alert, DETAIL_NOTIFICATION_LIMIT)

    async def delete_alert(self, db: Session, alert_id: str) -> None:
        db_alert = self.get_alert_by_id(db, alert_id)
        if not db_alert:
            raise AlertNotFoundError()

        # 소프트 삭제: 행은 남겨두고 상태만 INACTIVE로 변경
        db_alert.status = RateAlertStatus.INACTIVE
        try:
            db.add(db_alert)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deactivated rate alert {alert_id}")

    def get_admin_alerts(self, db: Session, page: int = 1, limit: int = 50) -> AdminRateAlertsResponse:
        offset = (page - 1) * limit
        alerts = db.query(RateAlert).options(selectinload(RateAlert.notifications)).order_by(
            RateAlert.created_at.desc()
        ).offset(offset).limit(limit).all()

        total = db.query(func.count(RateAlert.id)).scalar()
        active = db.query(func.count(RateAlert.id)).filter(RateAlert.status == RateAlertStatus.ACTIVE).scalar()
        triggered = db.query(func.count(RateAlert.id)).filter(RateAlert.status == RateAlertStatus.TRIGGERED).scalar()

        return AdminRateAlertsResponse(
            alerts=[self._to_read(alert, ADMIN_NOTIFICATION_LIMIT) for alert in alerts],
            total=total,
            active=active,
            triggered=triggered,
            page=page,
            limit=limit,
        )

    def _to_read(self, db_alert: RateAlert, notification_limit: int) -> RateAlertRead:
        alert_read = RateAlertRead.model_validate(db_alert)
        # 관계는 sent_at 내림차순으로 정렬되어 있음
        alert_read.notifications = alert_read.notifications[:notification_limit]
        return alert_read

    def _to_create_response(self, db_alert: RateAlert, message: str) -> CreateRateAlertResponse:
        return CreateRateAlertResponse(
            success=True,
            alert_id=db_alert.id,
            message=message,
            target_rate=db_alert.target_rate,
            loan_type=db_alert.loan_type,
            email=db_alert.email,
        )
