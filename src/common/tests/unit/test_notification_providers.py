import aiosmtplib
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from src.common.config.settings import Settings
from src.common.exceptions import NotificationDeliveryError
from src.common.services.notification import (
    EmailNotificationProvider,
    LoggingNotificationProvider,
    get_notification_provider,
)
from src.common.services.notification.provider import build_text_body


def _settings(**overrides):
    values = {
        "SMTP_HOST": "smtp.test",
        "SMTP_PORT": 587,
        "SMTP_USERNAME": "user",
        "SMTP_PASSWORD": "secret",
        "SMTP_USE_TLS": True,
        "SENDER_EMAIL": "alerts@test.com",
        "SENDER_NAME": "Rate Alerts",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_text_body_formats_rates():
    body = build_text_body("FHA", 6.1, 6.25, "https://app.test/rate-alerts")
    assert "Current rate: 6.10%" in body
    assert "Target rate: 6.25%" in body
    assert "https://app.test/rate-alerts" in body


@pytest.mark.asyncio
async def test_email_provider_sends_with_starttls_on_587():
    provider = EmailNotificationProvider(settings=_settings(), alerts_url="https://app.test/rate-alerts")

    with patch("src.common.services.notification.email_provider.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
        await provider.send_rate_alert_triggered("a@x.com", "30-Year Fixed", 6.1, 6.25, "alert-1")

    mock_send.assert_awaited_once()
    message = mock_send.call_args.args[0]
    kwargs = mock_send.call_args.kwargs
    assert message["To"] == "a@x.com"
    assert message["From"] == "Rate Alerts <alerts@test.com>"
    assert message["Subject"] == "Your rate alert was triggered"
    assert kwargs["hostname"] == "smtp.test"
    assert kwargs["start_tls"] is True
    assert kwargs["use_tls"] is False
    html_part = message.get_payload()[1].get_payload(decode=True).decode()
    assert "6.10%" in html_part
    assert "https://app.test/rate-alerts" in html_part


@pytest.mark.asyncio
async def test_email_provider_uses_implicit_tls_on_465():
    provider = EmailNotificationProvider(settings=_settings(SMTP_PORT=465))

    with patch("src.common.services.notification.email_provider.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
        await provider.send_rate_alert_triggered("a@x.com", "FHA", 5.9, 6.0, "alert-1")

    assert mock_send.call_args.kwargs["use_tls"] is True
    assert mock_send.call_args.kwargs["start_tls"] is False


@pytest.mark.asyncio
async def test_email_provider_skips_when_smtp_not_configured():
    provider = EmailNotificationProvider(settings=_settings(SMTP_USERNAME="", SMTP_PASSWORD=""))

    with patch("src.common.services.notification.email_provider.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
        await provider.send_rate_alert_triggered("a@x.com", "FHA", 5.9, 6.0, "alert-1")

    mock_send.assert_not_awaited()


@pytest.mark.asyncio
async def test_email_provider_wraps_smtp_errors():
    provider = EmailNotificationProvider(settings=_settings())

    with patch("src.common.services.notification.email_provider.aiosmtplib.send",
               new_callable=AsyncMock, side_effect=aiosmtplib.SMTPException("connection refused")):
        with pytest.raises(NotificationDeliveryError) as exc_info:
            await provider.send_rate_alert_triggered("a@x.com", "FHA", 5.9, 6.0, "alert-1")

    assert exc_info.value.provider == "email"


@pytest.mark.asyncio
async def test_logging_provider_does_not_raise():
    provider = LoggingNotificationProvider()
    await provider.send_rate_alert_triggered("a@x.com", "FHA", 5.9, 6.0, "alert-1")


def test_get_notification_provider_selects_implementation():
    assert isinstance(
        get_notification_provider(SimpleNamespace(NOTIFICATION_PROVIDER="email", ALERTS_URL="/rate-alerts")),
        EmailNotificationProvider,
    )
    assert isinstance(
        get_notification_provider(SimpleNamespace(NOTIFICATION_PROVIDER="log", ALERTS_URL="/rate-alerts")),
        LoggingNotificationProvider,
    )
    with pytest.raises(ValueError):
        get_notification_provider(SimpleNamespace(NOTIFICATION_PROVIDER="sms", ALERTS_URL="/rate-alerts"))


def test_smtp_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "mail.example.com")
    monkeypatch.setenv("SMTP_PORT", "465")
    monkeypatch.setenv("SMTP_USERNAME", "mailer")
    monkeypatch.setenv("SMTP_PASSWORD", "pw")
    monkeypatch.setenv("SMTP_USE_TLS", "false")
    monkeypatch.setenv("SENDER_EMAIL", "rates@example.com")

    settings = Settings(_env_file=None)

    assert settings.SMTP_HOST == "mail.example.com"
    assert settings.SMTP_PORT == 465
    assert settings.SMTP_USE_TLS is False
    assert settings.SENDER_EMAIL == "rates@example.com"
    assert settings.smtp_configured is True


def test_smtp_not_configured_without_credentials(monkeypatch):
    monkeypatch.delenv("SMTP_USERNAME", raising=False)
    monkeypatch.delenv("SMTP_PASSWORD", raising=False)

    assert Settings(_env_file=None).smtp_configured is False


def test_factory_passes_settings_to_email_provider():
    settings = _settings(NOTIFICATION_PROVIDER="email", ALERTS_URL="https://app.test/rate-alerts")

    provider = get_notification_provider(settings)

    assert provider.settings is settings
    assert provider.alerts_url == "https://app.test/rate-alerts"
