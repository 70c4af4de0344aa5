"""Current market rate providers used by the rate monitor."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

import httpx

from src.common.schemas.rate_alert import LoanType

logger = logging.getLogger(__name__)


@dataclass
class RateData:
    loan_type: str
    current_rate: float


class RateDataProvider(ABC):
    """금리 데이터 제공자를 위한 추상 기본 클래스입니다."""

    @abstractmethod
    async def get_current_rates(self) -> List[RateData]:
        """
        대출 유형별 현재 금리를 반환합니다.

        일부 대출 유형이 빠져 있을 수 있으며, 호출하는 쪽은 빠진 유형을
        '알 수 없음'으로 취급하고 건너뛰어야 합니다.
        """
        pass


# 실제 피드 연동 전 사용하는 고정 금리표
STATIC_RATES: Dict[str, float] = {
    LoanType.THIRTY_YEAR_FIXED.value: 6.25,
    LoanType.FIFTEEN_YEAR_FIXED.value: 5.75,
    LoanType.FHA.value: 6.0,
    LoanType.VA.value: 5.9,
    LoanType.ARM.value: 6.1,
    LoanType.JUMBO.value: 6.5,
    LoanType.USDA.value: 6.05,
    LoanType.TWENTY_YEAR_FIXED.value: 6.15,
}


class StaticRateDataProvider(RateDataProvider):
    def __init__(self, rates: Optional[Dict[str, float]] = None):
        self.rates = dict(STATIC_RATES if rates is None else rates)

    async def get_current_rates(self) -> List[RateData]:
        return [RateData(loan_type=loan_type, current_rate=rate) for loan_type, rate in self.rates.items()]


# FRED 시리즈가 없는 대출 유형(ARM, USDA, 20-Year Fixed)은 결과에서 빠집니다.
FRED_SERIES_IDS: Dict[str, str] = {
    LoanType.THIRTY_YEAR_FIXED.value: "MORTGAGE30US",
    LoanType.FIFTEEN_YEAR_FIXED.value: "MORTGAGE15US",
    LoanType.FHA.value: "OBMMIFHA30YF",
    LoanType.VA.value: "OBMMIVA30YF",
    LoanType.JUMBO.value: "OBMMIJUMBO30YF",
}


class FredRateDataProvider(RateDataProvider):
    """St. Louis FRED 시계열에서 대출 유형별 최신 금리를 조회합니다."""

    def __init__(self, api_key: str, base_url: str, lookback_days: int = 30,
                 series_ids: Optional[Dict[str, str]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url
        self.lookback_days = lookback_days
        self.series_ids = dict(FRED_SERIES_IDS if series_ids is None else series_ids)
        # 5xx/네트워크 오류 시 최대 3번 재시도
        self.transport = transport or httpx.AsyncHTTPTransport(retries=3)

    async def get_current_rates(self) -> List[RateData]:
        rates = []
        async with httpx.AsyncClient(transport=self.transport, timeout=10.0) as client:
            for loan_type, series_id in self.series_ids.items():
                rate = await self._fetch_latest(client, series_id)
                if rate is None:
                    logger.warning(f"No FRED rate available for {loan_type} ({series_id}); skipping.")
                    continue
                rates.append(RateData(loan_type=loan_type, current_rate=rate))
        return rates

    async def _fetch_latest(self, client: httpx.AsyncClient, series_id: str) -> Optional[float]:
        end_date = date.today()
        start_date = end_date - timedelta(days=self.lookback_days)
        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "observation_start": start_date.isoformat(),
            "observation_end": end_date.isoformat(),
            "sort_order": "desc",
            "limit": 5,
        }
        try:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            observations = response.json().get("observations", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"FRED request failed for {series_id}: {e}", exc_info=True)
            return None

        # '.'은 FRED의 결측값 표기
        for obs in observations:
            value = obs.get("value")
            if not value or value == ".":
                continue
            try:
                rate = float(value)
            except ValueError:
                continue
            if rate > 0:
                return rate
        return None


def get_rate_data_provider(settings) -> RateDataProvider:
    provider = settings.RATE_DATA_PROVIDER.lower()
    if provider == "static":
        return StaticRateDataProvider()
    if provider == "fred":
        if not settings.FRED_API_KEY:
            raise ValueError("RATE_DATA_PROVIDER=fred requires FRED_API_KEY")
        return FredRateDataProvider(api_key=settings.FRED_API_KEY, base_url=settings.FRED_BASE_URL)
    raise ValueError(f"Unknown rate data provider: {settings.RATE_DATA_PROVIDER}")
