import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.common.database.db_connector import get_db

ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


@pytest.fixture(scope="function")
def client(db_session):
    """get_db를 테스트 세션으로 교체한 TestClient"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


def alert_payload(**overrides):
    payload = {
        "email": "a@x.com",
        "loanType": "30-Year Fixed",
        "targetRate": 6.25,
        "timeframe": "90 days",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_alert(client):
    """POST /rate-alerts 헬퍼"""
    counter = {"n": 0}

    def _create(idempotency_key=None, headers=None, **overrides):
        counter["n"] += 1
        request_headers = {"Idempotency-Key": idempotency_key or f"key-{counter['n']}"}
        request_headers.update(headers or {})
        return client.post("/rate-alerts", json=alert_payload(**overrides), headers=request_headers)
    return _create
