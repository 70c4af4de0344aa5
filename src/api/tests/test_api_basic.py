import logging
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from src.api.dependencies import get_rate_alert_service
from src.api.main import app
from src.api.middleware.rate_limiter import mutation_rate_limit, read_rate_limit, SlidingWindowRateLimiter
from src.common.database.db_connector import get_db
from src.common.logging_config import CorrelationIdFilter


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "ok"}


def test_ready_reports_database_failure(client):
    broken_db = MagicMock()
    broken_db.execute.side_effect = RuntimeError("connection refused")

    def override_get_db():
        yield broken_db

    app.dependency_overrides[get_db] = override_get_db
    response = client.get("/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not ready"


def test_api_info(client):
    data = client.get("/api").json()
    assert data["name"] == "Rate Alert Service"
    assert data["endpoints"]["rateAlerts"] == "/rate-alerts"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_wrong_method_uses_error_envelope(client):
    response = client.patch("/rate-alerts")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"x-correlation-id": "corr-123"})
    assert response.headers["x-correlation-id"] == "corr-123"


def test_correlation_id_is_generated(client):
    response = client.get("/health")
    assert len(response.headers["x-correlation-id"]) == 36


def test_cors_allows_configured_origin(client):
    response = client.options(
        "/rate-alerts",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_mutation_rate_limit(client, create_alert, monkeypatch):
    monkeypatch.setattr(mutation_rate_limit, "max_requests", 2)

    assert create_alert().status_code == 201
    assert create_alert().status_code == 201
    response = create_alert()

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


def test_read_rate_limit(client, monkeypatch):
    monkeypatch.setattr(read_rate_limit, "max_requests", 1)

    assert client.get("/rate-alerts", params={"email": "a@x.com"}).status_code == 200
    assert client.get("/rate-alerts", params={"email": "a@x.com"}).status_code == 429
    # 읽기 제한은 다른 엔드포인트에 영향을 주지 않음
    assert client.get("/health").status_code == 200


def test_sliding_window_expires_old_hits():
    now = [1000.0]
    limiter = SlidingWindowRateLimiter("test", max_requests=2, window_seconds=60, clock=lambda: now[0])

    assert limiter.hit("1.2.3.4") is True
    assert limiter.hit("1.2.3.4") is True
    assert limiter.hit("1.2.3.4") is False
    assert limiter.hit("5.6.7.8") is True

    now[0] += 61
    assert limiter.hit("1.2.3.4") is True

    limiter.reset()
    assert limiter.hit("1.2.3.4") is True


def test_sliding_window_forgets_idle_clients():
    now = [1000.0]
    limiter = SlidingWindowRateLimiter("test", max_requests=5, window_seconds=60, clock=lambda: now[0])

    for i in range(100):
        limiter.hit(f"10.0.0.{i}")
    assert limiter.tracked_keys == 100

    now[0] += 61
    assert limiter.hit("10.0.0.200") is True
    assert limiter.tracked_keys == 1


def test_unhandled_error_returns_internal_error(db_session):
    failing_service = MagicMock()
    failing_service.get_alerts.side_effect = RuntimeError("boom")

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_alert_service] = lambda: failing_service
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.get("/rate-alerts", params={"email": "a@x.com"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}


def test_unhandled_error_is_logged_with_correlation_id(db_session):
    failing_service = MagicMock()
    failing_service.get_alerts.side_effect = RuntimeError("boom")
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    handler.addFilter(CorrelationIdFilter())
    middleware_logger = logging.getLogger("src.api.middleware.correlation_id")
    middleware_logger.addHandler(handler)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_alert_service] = lambda: failing_service
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.get("/rate-alerts", params={"email": "a@x.com"}, headers={"x-correlation-id": "cid-500"})
    finally:
        app.dependency_overrides.clear()
        middleware_logger.removeHandler(handler)

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert response.headers["x-correlation-id"] == "cid-500"
    error_records = [r for r in records if r.levelno == logging.ERROR]
    assert len(error_records) == 1
    assert error_records[0].correlation_id == "cid-500"
    assert error_records[0].exc_info is not None
