import os

# 앱 모듈 임포트 전에 테스트 환경 변수를 설정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_MONITOR_ENABLED"] = "false"
os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["LOG_FORMAT"] = "text"
os.environ["NOTIFICATION_PROVIDER"] = "log"
os.environ["RATE_DATA_PROVIDER"] = "static"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import src.common.models  # noqa: F401
from src.common.database.db_connector import Base
from src.common.models.rate_alert import RateAlert, RateAlertStatus
from src.common.utils.time_utils import utcnow
from src.api.middleware.rate_limiter import reset_rate_limiters


@pytest.fixture(scope="function")
def db_session():
    """함수 스코프 fixture: 인메모리 SQLite에 깨끗한 테이블과 세션을 제공합니다."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def clear_rate_limiters():
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def alert_factory(db_session):
    """테스트용 금리 알림을 DB에 직접 저장"""
    def _create(**kwargs):
        now = utcnow()
        values = {
            "email": "a@x.com",
            "loan_type": "30-Year Fixed",
            "target_rate": 6.25,
            "status": RateAlertStatus.ACTIVE,
            "timeframe": "90 days",
            "created_at": now,
            "updated_at": now,
            "last_checked": now,
            "notifications_sent": 0,
        }
        values.update(kwargs)
        alert = RateAlert(**values)
        db_session.add(alert)
        db_session.commit()
        db_session.refresh(alert)
        return alert
    return _create
