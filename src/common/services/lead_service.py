import logging
from typing import Optional

from sqlalchemy.orm import Session

from src.common.models.lead import Lead
from src.common.models.rate_alert import RateAlert

logger = logging.getLogger(__name__)

RATE_ALERT_LEAD_SOURCE = "rate-alert"
RATE_ALERT_LEAD_SCORE = 85


class LeadService:
    def create_lead_for_alert(self, db: Session, alert: RateAlert) -> Optional[Lead]:
        """
        금리 알림으로부터 CRM 리드를 생성합니다.

        실패해도 알림 생성은 성공으로 처리되어야 하므로 예외를 삼키고 None을 반환합니다.
        """
        lead = Lead(
            email=alert.email,
            first_name=alert.first_name,
            last_name=alert.last_name,
            phone=alert.phone,
            property_address=alert.property_address,
            loan_amount=alert.loan_amount,
            loan_type=alert.loan_type,
            target_rate=alert.target_rate,
            lead_source=RATE_ALERT_LEAD_SOURCE,
            lead_score=RATE_ALERT_LEAD_SCORE,
            status="new",
            alert_id=alert.id,
        )
        try:
            db.add(lead)
            db.commit()
            db.refresh(lead)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to create lead record for alert {alert.id}: {e}", exc_info=True)
            return None
        return lead
