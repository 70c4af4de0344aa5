import logging

from .provider import NotificationProvider, build_subject, build_text_body

logger = logging.getLogger(__name__)


class LoggingNotificationProvider(NotificationProvider):
    """실제 발송 없이 로그로만 남기는 개발용 제공자"""

    name = "log"

    def __init__(self, alerts_url: str = "/rate-alerts"):
        self.alerts_url = alerts_url

    async def send_rate_alert_triggered(self, email: str, loan_type: str, current_rate: float,
                                        target_rate: float, alert_id: str) -> None:
        logger.info(
            "Rate alert notification (log provider)",
            extra={
                "to": email,
                "subject": build_subject(),
                "body": build_text_body(loan_type, current_rate, target_rate, self.alerts_url),
                "alert_id": alert_id,
            },
        )
