import asyncio
import logging
from typing import Dict

from sqlalchemy.orm import Session

from src.common.models.rate_alert import RateAlert, RateAlertNotification, RateAlertStatus
from src.common.services.notification.provider import NotificationProvider
from src.common.services.rate_data_service import RateDataProvider
from src.common.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def build_trigger_message(loan_type: str, current_rate: float, target_rate: float) -> str:
    return (
        f"Rate alert triggered for {loan_type}: current rate {current_rate:.2f}% "
        f"is at or below target {target_rate:.2f}%."
    )


class RateMonitorService:
    """
    활성 금리 알림을 현재 시장 금리와 비교하는 주기 작업

    한 프로세스 안에서는 lock으로 검사 패스가 겹치지 않도록 합니다.
    배포당 모니터는 하나만 실행해야 합니다.
    """

    def __init__(self, rate_data_provider: RateDataProvider, notification_provider: NotificationProvider):
        self.rate_data_provider = rate_data_provider
        self.notification_provider = notification_provider
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_rate_check(self, db: Session) -> Dict[str, int]:
        async with self._lock:
            return await self._run_rate_check(db)

    async def _run_rate_check(self, db: Session) -> Dict[str, int]:
        rates = await self.rate_data_provider.get_current_rates()
        rate_map = {rate.loan_type: rate.current_rate for rate in rates}

        alerts = db.query(RateAlert).filter(RateAlert.status == RateAlertStatus.ACTIVE).all()
        logger.info(f"Rate check started: {len(alerts)} active alerts, {len(rate_map)} loan types priced.")

        triggered = 0
        for alert in alerts:
            current_rate = rate_map.get(alert.loan_type)
            if current_rate is None:
                # 금리를 모르는 대출 유형은 건너뜀 (last_checked도 유지)
                logger.debug(f"No current rate for {alert.loan_type}; skipping alert {alert.id}.")
                continue

            now = utcnow()
            if current_rate <= alert.target_rate:
                await self._trigger_alert(db, alert, current_rate, now)
                triggered += 1
            else:
                alert.last_checked = now
                try:
                    db.commit()
                except Exception:
                    db.rollback()
                    raise

        logger.info(f"Rate check finished: checked={len(alerts)}, triggered={triggered}")
        return {"checked": len(alerts), "triggered": triggered}

    async def _trigger_alert(self, db: Session, alert: RateAlert, current_rate: float, now) -> None:
        message = build_trigger_message(alert.loan_type, current_rate, alert.target_rate)

        # 상태 변경과 알림 기록은 하나의 커밋으로 처리
        alert.status = RateAlertStatus.TRIGGERED
        alert.triggered_at = now
        alert.last_checked = now
        alert.notifications_sent = (alert.notifications_sent or 0) + 1
        db.add(RateAlertNotification(
            rate_alert_id=alert.id,
            current_rate=current_rate,
            message=message,
            sent_at=now,
        ))
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Rate alert {alert.id} triggered",
            extra={"alert_id": alert.id, "loan_type": alert.loan_type, "current_rate": current_rate},
        )

        try:
            await self.notification_provider.send_rate_alert_triggered(
                email=alert.email,
                loan_type=alert.loan_type,
                current_rate=current_rate,
                target_rate=alert.target_rate,
                alert_id=alert.id,
            )
        except Exception as e:
            # 발송 실패는 트리거 결과에 영향을 주지 않음
            logger.error(f"Failed to send notification for alert {alert.id}: {e}", exc_info=True)
