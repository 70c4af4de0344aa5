import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.common.services.rate_monitor_service import RateMonitorService
from src.worker import tasks

logger = logging.getLogger(__name__)

RATE_MONITOR_JOB_ID = "rate_alert_monitor"

scheduler = AsyncIOScheduler()


def setup_scheduler(monitor: RateMonitorService, interval_seconds: int,
                    target: Optional[AsyncIOScheduler] = None) -> AsyncIOScheduler:
    """금리 알림 검사 잡을 interval 트리거로 등록합니다."""
    target = target or scheduler
    target.add_job(
        tasks.run_scheduled_rate_check,
        'interval',
        seconds=interval_seconds,
        args=[monitor],
        id=RATE_MONITOR_JOB_ID,
        name='금리 알림 검사',
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info(f"Scheduled '{RATE_MONITOR_JOB_ID}' every {interval_seconds} seconds.")
    return target


def start_scheduler(target: Optional[AsyncIOScheduler] = None) -> None:
    target = target or scheduler
    if not target.running:
        target.start()
        logger.info("APScheduler started.")


def stop_scheduler(target: Optional[AsyncIOScheduler] = None) -> None:
    target = target or scheduler
    if target.running:
        target.shutdown(wait=False)
        logger.info("APScheduler stopped.")


def get_scheduler_status(target: Optional[AsyncIOScheduler] = None) -> dict:
    """스케줄러 실행 여부와 등록된 잡 목록"""
    target = target or scheduler
    jobs = []
    for job in target.get_jobs():
        next_run_time = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": next_run_time.isoformat() if next_run_time else None,
            "trigger": str(job.trigger),
        })
    return {"is_running": target.running, "jobs": jobs}
