import enum
import uuid

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text, Enum
from sqlalchemy.orm import relationship

from src.common.database.db_connector import Base
from src.common.utils.time_utils import utcnow


class RateAlertStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TRIGGERED = "TRIGGERED"
    EXPIRED = "EXPIRED"


def _new_uuid() -> str:
    return str(uuid.uuid4())


class RateAlert(Base):
    __tablename__ = 'rate_alerts'

    id = Column(String(36), primary_key=True, default=_new_uuid)

    # 요청자 정보
    email = Column(String(255), nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)

    # 알림 대상
    loan_type = Column(String(50), nullable=False)
    target_rate = Column(Float, nullable=False)
    loan_amount = Column(Float, nullable=True)
    property_address = Column(Text, nullable=True)

    status = Column(Enum(RateAlertStatus, name="rate_alert_status", native_enum=False, length=20),
                    nullable=False, default=RateAlertStatus.ACTIVE, index=True)
    timeframe = Column(String(20), nullable=False, default="90 days")  # 저장만 하고 자동 만료에는 사용하지 않음

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    last_checked = Column(DateTime, nullable=True)  # 모니터가 마지막으로 평가한 시각
    triggered_at = Column(DateTime, nullable=True)
    notifications_sent = Column(Integer, nullable=False, default=0)

    # 재요청 시 중복 생성을 막는 유일 키
    idempotency_key = Column(String(255), unique=True, nullable=True)

    # 귀속 정보 (접근 제어에는 사용하지 않음)
    user_id = Column(String(36), nullable=True)
    broker_id = Column(String(100), nullable=True)
    loan_officer_id = Column(String(100), nullable=True)

    notifications = relationship(
        "RateAlertNotification",
        back_populates="rate_alert",
        order_by="RateAlertNotification.sent_at.desc()",
    )


class RateAlertNotification(Base):
    __tablename__ = 'rate_alert_notifications'

    id = Column(String(36), primary_key=True, default=_new_uuid)
    rate_alert_id = Column(String(36), ForeignKey('rate_alerts.id'), nullable=False, index=True)
    current_rate = Column(Float, nullable=False)
    message = Column(Text, nullable=False)
    sent_at = Column(DateTime, nullable=False, default=utcnow)

    rate_alert = relationship("RateAlert", back_populates="notifications")
