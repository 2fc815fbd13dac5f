"""
상관관계 데이터 모델

종목 쌍별 분석 레코드, 분석 기간, 종목별 분산 점수를 정의합니다.
레코드에서 파생되는 값(평균 상관계수, 위험도)은 모듈 함수로 제공합니다.
"""

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from divquant.config.correlation_config import MEDIUM_RISK_FACTOR


class AnalysisWindow(str, Enum):
    """분석 기간"""
    THREE_MONTH = "3M"
    SIX_MONTH = "6M"
    ONE_YEAR = "1Y"
    ALL = "ALL"

    @property
    def months(self) -> int:
        """기간에 따른 개월 수 (ALL은 1년 기준)"""
        return _WINDOW_MONTHS[self]

    @property
    def display_name(self) -> str:
        return _WINDOW_NAMES[self]

    def expand(self) -> Tuple["AnalysisWindow", ...]:
        """실제로 계산할 기간 목록"""
        if self is AnalysisWindow.ALL:
            return CONCRETE_WINDOWS
        return (self,)

    @classmethod
    def from_code(cls, code) -> "AnalysisWindow":
        """'3M', 'six_month', AnalysisWindow 등을 AnalysisWindow로 변환"""
        if isinstance(code, cls):
            return code
        text = str(code).strip().upper()
        for window in cls:
            if text in (window.value, window.name):
                return window
        raise ValueError(f"지원하지 않는 분석 기간입니다: {code} (3M, 6M, 1Y, ALL)")


_WINDOW_MONTHS = {
    AnalysisWindow.THREE_MONTH: 3,
    AnalysisWindow.SIX_MONTH: 6,
    AnalysisWindow.ONE_YEAR: 12,
    AnalysisWindow.ALL: 12,
}

_WINDOW_NAMES = {
    AnalysisWindow.THREE_MONTH: "3개월",
    AnalysisWindow.SIX_MONTH: "6개월",
    AnalysisWindow.ONE_YEAR: "1년",
    AnalysisWindow.ALL: "전체",
}

CONCRETE_WINDOWS = (
    AnalysisWindow.THREE_MONTH,
    AnalysisWindow.SIX_MONTH,
    AnalysisWindow.ONE_YEAR,
)


class RiskLevel(str, Enum):
    """종목 쌍 위험도"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class CorrelationRecord:
    """종목 쌍 상관관계 분석 레코드

    ticker1/ticker2는 순서 없는 쌍이며 기간별 상관계수는 데이터가 없으면 None.
    """
    session_id: str
    ticker1: str
    ticker2: str
    correlation_3m: Optional[float] = None
    correlation_6m: Optional[float] = None
    correlation_1y: Optional[float] = None
    analysis_start_date: Optional[date] = None
    analysis_end_date: Optional[date] = None
    analysis_date: Optional[date] = None

    def matches(self, ticker_a: str, ticker_b: str) -> bool:
        """방향과 무관하게 같은 종목 쌍인지 확인"""
        return (
            (self.ticker1 == ticker_a and self.ticker2 == ticker_b)
            or (self.ticker1 == ticker_b and self.ticker2 == ticker_a)
        )

    def to_dict(self) -> Dict:
        data = asdict(self)
        for key in ('analysis_start_date', 'analysis_end_date', 'analysis_date'):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        data['average_correlation'] = average_correlation(self)
        return data


def window_value(record: CorrelationRecord, window: AnalysisWindow) -> Optional[float]:
    """기간별 상관계수 조회"""
    window = AnalysisWindow.from_code(window)
    if window is AnalysisWindow.THREE_MONTH:
        return record.correlation_3m
    if window is AnalysisWindow.SIX_MONTH:
        return record.correlation_6m
    if window is AnalysisWindow.ONE_YEAR:
        return record.correlation_1y
    return average_correlation(record)


def average_correlation(record: CorrelationRecord) -> Optional[float]:
    """기간별 상관계수 중 값이 있는 것들의 산술평균 (모두 없으면 None)"""
    values = [
        value for value in (record.correlation_3m, record.correlation_6m, record.correlation_1y)
        if value is not None
    ]
    if not values:
        return None
    return sum(values) / len(values)


def is_high_correlation(record: CorrelationRecord, threshold: float) -> bool:
    """높은 상관관계 여부"""
    avg = average_correlation(record)
    return avg is not None and abs(avg) >= threshold


def risk_level(record: CorrelationRecord, threshold: float) -> RiskLevel:
    """위험도 평가"""
    avg = average_correlation(record)
    if avg is None:
        return RiskLevel.UNKNOWN

    abs_corr = abs(avg)
    if abs_corr >= threshold:
        return RiskLevel.HIGH
    elif abs_corr >= threshold * MEDIUM_RISK_FACTOR:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def tickers_of(records: List[CorrelationRecord]) -> List[str]:
    """레코드에 등장하는 종목 목록 (중복 제거, 최초 등장 순서)"""
    seen: Dict[str, None] = {}
    for record in records:
        seen.setdefault(record.ticker1)
        seen.setdefault(record.ticker2)
    return list(seen)


@dataclass(frozen=True)
class DiversificationScore:
    """종목별 분산 점수

    diversification_score = 1 - |avg_correlation| (0~1, 높을수록 다른 종목과 상관관계가 낮음)
    """
    ticker: str
    stock_name: str
    avg_correlation: float
    high_correlation_count: int
    diversification_score: float
    selected: bool = False
    selection_rank: Optional[int] = None
    exclusion_reason: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)
