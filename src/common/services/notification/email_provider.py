"""Email notification provider implementation with SMTP support."""
import logging
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path

from src.common.config.settings import Settings, get_settings
from src.common.exceptions import NotificationDeliveryError
from .provider import NotificationProvider, build_subject, build_text_body

logger = logging.getLogger(__name__)


class EmailNotificationProvider(NotificationProvider):
    """이메일 알림 제공자 구현체 (SMTP)"""

    name = "email"
    template_name = "rate_alert_triggered.html"

    def __init__(self, settings: Settings = None, alerts_url: str = "/rate-alerts"):
        self.settings = settings or get_settings()
        self.alerts_url = alerts_url
        template_dir = Path(__file__).parent.parent.parent / "templates" / "email"
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html', 'xml'])
        )

    async def send_rate_alert_triggered(self, email: str, loan_type: str, current_rate: float,
                                        target_rate: float, alert_id: str) -> None:
        subject = build_subject()
        body = build_text_body(loan_type, current_rate, target_rate, self.alerts_url)

        if not self.settings.smtp_configured:
            # SMTP 미설정 시 발송을 건너뜀 (오류 아님)
            logger.info(
                "Email notification skipped (SMTP not configured)",
                extra={"to": email, "subject": subject, "alert_id": alert_id},
            )
            return

        html_content = self.env.get_template(self.template_name).render(
            subject=subject,
            loan_type=loan_type,
            current_rate=current_rate,
            target_rate=target_rate,
            alerts_url=self.alerts_url,
        )

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.settings.SENDER_NAME} <{self.settings.SENDER_EMAIL}>"
        msg['To'] = email
        msg.attach(MIMEText(body, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        use_tls = self.settings.SMTP_USE_TLS
        start_tls = False
        # 587 포트는 암시적 TLS 대신 STARTTLS 사용
        if self.settings.SMTP_PORT == 587:
            use_tls = False
            start_tls = True

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.settings.SMTP_HOST,
                port=self.settings.SMTP_PORT,
                username=self.settings.SMTP_USERNAME,
                password=self.settings.SMTP_PASSWORD,
                use_tls=use_tls,
                start_tls=start_tls,
            )
        except aiosmtplib.SMTPException as e:
            raise NotificationDeliveryError(f"Failed to send email to {email}: {e}", provider=self.name) from e

        logger.info(f"Rate alert email sent to {email}", extra={"alert_id": alert_id})
