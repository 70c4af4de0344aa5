from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from src.common.models.rate_alert import RateAlertStatus


class LoanType(str, Enum):
    THIRTY_YEAR_FIXED = "30-Year Fixed"
    FIFTEEN_YEAR_FIXED = "15-Year Fixed"
    FHA = "FHA"
    VA = "VA"
    ARM = "ARM"
    JUMBO = "Jumbo"
    USDA = "USDA"
    TWENTY_YEAR_FIXED = "20-Year Fixed"


class Timeframe(str, Enum):
    DAYS_30 = "30 days"
    DAYS_60 = "60 days"
    DAYS_90 = "90 days"
    DAYS_180 = "180 days"
    DAYS_365 = "365 days"


MIN_TARGET_RATE = 0.5
MAX_TARGET_RATE = 20.0


class CamelModel(BaseModel):
    """요청/응답 JSON은 camelCase 키를 사용"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RateAlertCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    loan_type: LoanType
    target_rate: float = Field(ge=MIN_TARGET_RATE, le=MAX_TARGET_RATE)
    loan_amount: Optional[float] = Field(default=None, gt=0)
    property_address: Optional[str] = None
    timeframe: Timeframe = Timeframe.DAYS_90.value
    user_id: Optional[UUID] = None
    broker_id: Optional[str] = None
    loan_officer_id: Optional[str] = None


class RateAlertUpdate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    target_rate: Optional[float] = Field(default=None, ge=MIN_TARGET_RATE, le=MAX_TARGET_RATE)
    loan_type: Optional[LoanType] = None
    timeframe: Optional[Timeframe] = None
    status: Optional[RateAlertStatus] = None


class CreateRateAlertResponse(CamelModel):
    success: bool = True
    alert_id: str
    message: str
    target_rate: float
    loan_type: str
    email: str


class RateAlertSummary(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    loan_type: str
    target_rate: float
    status: RateAlertStatus
    created_at: datetime


class RateAlertListResponse(CamelModel):
    alerts: List[RateAlertSummary]
    total: int


class RateAlertNotificationRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    rate_alert_id: str
    current_rate: float
    message: str
    sent_at: datetime


class RateAlertRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    loan_type: str
    target_rate: float
    loan_amount: Optional[float] = None
    property_address: Optional[str] = None
    status: RateAlertStatus
    timeframe: str
    created_at: datetime
    updated_at: datetime
    last_checked: Optional[datetime] = None
    triggered_at: Optional[datetime] = None
    notifications_sent: int
    idempotency_key: Optional[str] = None
    user_id: Optional[str] = None
    broker_id: Optional[str] = None
    loan_officer_id: Optional[str] = None
    notifications: List[RateAlertNotificationRead] = []


class DeleteRateAlertResponse(CamelModel):
    success: bool = True
    message: str


class AdminRateAlertsResponse(CamelModel):
    alerts: List[RateAlertRead]
    total: int
    active: int
    triggered: int
    page: int
    limit: int


class RunRateCheckResponse(CamelModel):
    success: bool = True
    message: str
    checked: int
    triggered: int


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    error: ErrorBody
