"""
히트맵 데이터 모듈

시각화용 2차원 상관계수 매트릭스와 기간별 통계(최소/최대/평균)를 생성합니다.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence

from divquant.utils.log_utils import get_logger
from .models import CONCRETE_WINDOWS, AnalysisWindow, CorrelationRecord, window_value

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColorScale:
    """색상 스케일 설정"""
    low_color: str = "#0571b0"   # 낮은 상관관계 (파란색)
    mid_color: str = "#f7f7f7"   # 중간 상관관계 (회색)
    high_color: str = "#ca0020"  # 높은 상관관계 (빨간색)
    low_threshold: float = -0.5
    high_threshold: float = 0.7


@dataclass
class HeatmapPeriodData:
    """기간별 히트맵 데이터"""
    window: AnalysisWindow
    window_name: str
    matrix: List[List[float]]
    min_value: float = 0.0
    max_value: float = 0.0
    avg_value: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'period': self.window.value,
            'period_name': self.window_name,
            'matrix': self.matrix,
            'min_value': self.min_value,
            'max_value': self.max_value,
            'avg_value': self.avg_value,
        }


@dataclass
class HeatmapData:
    """히트맵 시각화 데이터"""
    labels: List[str] = field(default_factory=list)
    period_data: List[HeatmapPeriodData] = field(default_factory=list)
    color_scale: ColorScale = field(default_factory=ColorScale)

    def period(self, window: AnalysisWindow) -> Optional[HeatmapPeriodData]:
        window = AnalysisWindow.from_code(window)
        for data in self.period_data:
            if data.window is window:
                return data
        return None

    def to_dict(self) -> Dict:
        return {
            'labels': self.labels,
            'period_data': [data.to_dict() for data in self.period_data],
            'color_scale': asdict(self.color_scale),
        }


class HeatmapBuilder:
    """
    히트맵 생성기

    값이 없는 셀은 매트릭스에 0.0으로 표시하지만 통계 계산에서는 제외합니다.
    (점수 계산용 CorrelationMatrixBuilder는 같은 셀을 0.0으로 계산에 포함)
    """

    def __init__(self, color_scale: Optional[ColorScale] = None):
        self.color_scale = color_scale or ColorScale()

    def build_heatmap(
        self,
        tickers: Sequence[str],
        records: Sequence[CorrelationRecord]
    ) -> HeatmapData:
        """
        3개월/6개월/1년 히트맵 데이터 생성

        Args:
            tickers: 축 레이블 (x축, y축 공통)
            records: 종목 쌍 레코드

        Returns:
            HeatmapData: 기간별 히트맵
        """
        labels = list(tickers)
        period_data = [
            self._build_period(window, labels, records)
            for window in CONCRETE_WINDOWS
        ]

        return HeatmapData(
            labels=labels,
            period_data=period_data,
            color_scale=self.color_scale
        )

    def _build_period(
        self,
        window: AnalysisWindow,
        tickers: List[str],
        records: Sequence[CorrelationRecord]
    ) -> HeatmapPeriodData:
        size = len(tickers)
        matrix = []
        observed = []

        for i in range(size):
            row = []
            for j in range(size):
                if i == j:
                    row.append(1.0)
                    continue

                value = self._find_value(tickers[i], tickers[j], records, window)
                row.append(value if value is not None else 0.0)
                if value is not None:
                    observed.append(value)
            matrix.append(row)

        if not observed:
            logger.debug(f"히트맵 {window.value}: 유효한 상관계수 없음")
            return HeatmapPeriodData(window, window.display_name, matrix)

        return HeatmapPeriodData(
            window=window,
            window_name=window.display_name,
            matrix=matrix,
            min_value=min(observed),
            max_value=max(observed),
            avg_value=sum(observed) / len(observed),
        )

    @staticmethod
    def _find_value(
        ticker_a: str,
        ticker_b: str,
        records: Sequence[CorrelationRecord],
        window: AnalysisWindow
    ) -> Optional[float]:
        for record in records:
            if record.matches(ticker_a, ticker_b):
                return window_value(record, window)
        return None
