from .rate_alert import RateAlert, RateAlertNotification, RateAlertStatus
from .lead import Lead

__all__ = [
    "RateAlert",
    "RateAlertNotification",
    "RateAlertStatus",
    "Lead",
]
