import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler

from pythonjsonlogger import jsonlogger

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="no-correlation-id")

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s'
JSON_FORMAT = '%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s'


class CorrelationIdFilter(logging.Filter):
    """현재 요청의 correlation id를 로그 레코드에 추가"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(settings):
    """
    로깅 설정

    LOG_FORMAT이 'json'이면 python-json-logger 포맷을, 그 외에는 텍스트 포맷을 사용합니다.
    LOG_FILE이 설정된 경우 회전 파일 핸들러를 추가합니다.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)

    # 기존 핸들러 제거
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if settings.LOG_FORMAT == "json":
        formatter = jsonlogger.JsonFormatter(JSON_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(RotatingFileHandler(settings.LOG_FILE, maxBytes=5*1024*1024, backupCount=2, encoding='utf-8'))

    correlation_filter = CorrelationIdFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)

    # 서드파티 라이브러리 로깅 레벨 조정
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('aiosmtplib').setLevel(logging.WARNING)

    return root_logger
