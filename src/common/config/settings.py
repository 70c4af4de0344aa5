from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # 서비스 설정
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./rate_alerts.db"
    CORS_ORIGIN: str = "http://localhost:3000"

    # 관리자 API 키 (미설정 시 관리자 API는 500 ADMIN_CONFIG_ERROR)
    ADMIN_KEY: Optional[str] = None

    # 금리 모니터 설정
    RATE_MONITOR_ENABLED: bool = True
    RATE_MONITOR_INTERVAL_SECONDS: int = 60 * 60

    # 금리 데이터 제공자: 'static' 또는 'fred'
    RATE_DATA_PROVIDER: str = "static"
    FRED_API_KEY: Optional[str] = None
    FRED_BASE_URL: str = "https://api.stlouisfed.org/fred/series/observations"

    # 알림 제공자: 'email' 또는 'log'
    NOTIFICATION_PROVIDER: str = "email"
    ALERTS_URL: str = "/rate-alerts"

    # SMTP 설정 (계정 정보가 없으면 이메일 발송을 건너뜀)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SENDER_EMAIL: str = "no-reply@ratealerts.local"
    SENDER_NAME: str = "Rate Alerts"

    # IP별 요청 제한 (슬라이딩 윈도우)
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_GENERAL_MAX: int = 300
    RATE_LIMIT_MUTATION_MAX: int = 50
    RATE_LIMIT_READ_MAX: int = 100

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_FILE: Optional[str] = None

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_USERNAME and self.SMTP_PASSWORD)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
