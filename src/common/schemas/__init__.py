from .rate_alert import (
    LoanType,
    Timeframe,
    RateAlertCreate,
    RateAlertUpdate,
    RateAlertRead,
    RateAlertSummary,
    RateAlertNotificationRead,
    RateAlertListResponse,
    CreateRateAlertResponse,
    DeleteRateAlertResponse,
    AdminRateAlertsResponse,
    RunRateCheckResponse,
    ErrorResponse,
)
