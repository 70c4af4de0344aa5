from typing import Any, Optional


class AppError(Exception):
    """HTTP 응답으로 그대로 직렬화되는 애플리케이션 오류"""
    def __init__(self, code: str, message: str, status_code: int = 500, details: Optional[Any] = None):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AlertNotFoundError(AppError):
    def __init__(self, message: str = "Rate alert not found"):
        super().__init__("ALERT_NOT_FOUND", message, 404)


class NotificationDeliveryError(Exception):
    """알림 제공자가 메시지를 전달하지 못했을 때 발생하는 오류"""
    def __init__(self, message: str, provider: str = None):
        self.provider = provider
        super().__init__(f"[{provider}] {message}" if provider else message)
