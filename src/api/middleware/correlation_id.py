import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from src.common.exceptions import AppError
from src.common.logging_config import correlation_id_var

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "x-correlation-id"


async def correlation_id_middleware(request: Request, call_next):
    """요청마다 correlation id를 할당하고 응답 헤더로 돌려줍니다."""
    correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
    token = correlation_id_var.set(correlation_id)
    request.state.correlation_id = correlation_id
    try:
        response = await call_next(request)
    except Exception as e:
        # contextvar가 유효한 동안 기록해야 로그에 correlation id가 남음
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
        error = AppError("INTERNAL_ERROR", "An unexpected error occurred", 500)
        response = JSONResponse(status_code=500, content=error.to_dict())
    finally:
        correlation_id_var.reset(token)
    response.headers[CORRELATION_ID_HEADER] = correlation_id
    return response
