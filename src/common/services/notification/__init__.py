from .provider import NotificationProvider
from .email_provider import EmailNotificationProvider
from .log_provider import LoggingNotificationProvider


def get_notification_provider(settings) -> NotificationProvider:
    provider = settings.NOTIFICATION_PROVIDER.lower()
    if provider == "email":
        return EmailNotificationProvider(settings=settings, alerts_url=settings.ALERTS_URL)
    if provider == "log":
        return LoggingNotificationProvider(alerts_url=settings.ALERTS_URL)
    raise ValueError(f"Unknown notification provider: {settings.NOTIFICATION_PROVIDER}")


__all__ = [
    "NotificationProvider",
    "EmailNotificationProvider",
    "LoggingNotificationProvider",
    "get_notification_provider",
]
