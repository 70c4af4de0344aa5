from dataclasses import dataclass
from typing import Optional


@dataclass
class TenantContext:
    """요청 헤더에서 읽은 브로커/대출 담당자 귀속 정보"""
    broker_id: Optional[str] = None
    loan_officer_id: Optional[str] = None
