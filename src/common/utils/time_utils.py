from datetime import datetime, timezone


def utcnow() -> datetime:
    """DB 저장용 naive UTC 시각"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_utc_day(now: datetime = None) -> datetime:
    """주어진 시각(기본: 현재)이 속한 UTC 자정"""
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
