import logging
from datetime import datetime

from src.common.database.db_connector import get_db
from src.common.services.rate_monitor_service import RateMonitorService

# 로깅 설정
logger = logging.getLogger(__name__)


async def run_scheduled_rate_check(monitor: RateMonitorService):
    """[Job] 활성 금리 알림 검사 작업"""
    job_name = "금리 알림 검사"

    if monitor.is_running:
        logger.info(f"[Job] {job_name}: 이전 검사가 아직 실행 중이므로 건너뜁니다.")
        return None

    start_time = datetime.now()
    logger.info(f"[Job] {job_name} 시작.")

    db_gen = get_db()
    db = next(db_gen)
    result = None
    try:
        result = await monitor.run_rate_check(db)
        duration = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"[Job] {job_name} 성공. checked={result['checked']}, triggered={result['triggered']}, "
            f"소요 시간={duration:.2f}초"
        )
    except Exception as e:
        # 예약 작업의 실패는 다음 주기에 다시 시도
        logger.error(f"[Job] {job_name} 중 오류: {e}", exc_info=True)
    finally:
        next(db_gen, None)
        logger.info(f"[Job] {job_name} 종료.")
    return result
