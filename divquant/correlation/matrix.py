"""
상관관계 매트릭스 모듈

종목 쌍 레코드로부터 기간별 대칭 상관관계 매트릭스를 구성합니다.
"""

from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from divquant.utils.log_utils import get_logger
from .models import AnalysisWindow, CorrelationRecord, window_value

logger = get_logger(__name__)


class CorrelationMatrix:
    """
    불변 상관관계 매트릭스

    N x N 배열과 종목 -> 인덱스 맵으로 구성됩니다.
    대각선은 1.0, M[a][b] == M[b][a]가 항상 성립하며 배열은 읽기 전용입니다.
    """

    def __init__(self, tickers: Sequence[str], values: np.ndarray):
        values = np.array(values, dtype=float)
        n = len(tickers)
        if values.shape != (n, n):
            raise ValueError(f"매트릭스 크기 불일치: {values.shape} != ({n}, {n})")

        values.setflags(write=False)
        self._tickers: Tuple[str, ...] = tuple(tickers)
        self._index: Dict[str, int] = {ticker: i for i, ticker in enumerate(self._tickers)}
        self._values = values

    @property
    def tickers(self) -> List[str]:
        return list(self._tickers)

    @property
    def values(self) -> np.ndarray:
        """읽기 전용 배열"""
        return self._values

    def __len__(self) -> int:
        return len(self._tickers)

    def __contains__(self, ticker: str) -> bool:
        return ticker in self._index

    def value(self, ticker_a: str, ticker_b: str) -> float:
        """두 종목 간 상관계수"""
        return float(self._values[self._index[ticker_a], self._index[ticker_b]])

    def others(self, ticker: str) -> List[Tuple[str, float]]:
        """자기 자신을 제외한 (종목, 상관계수) 목록"""
        i = self._index[ticker]
        return [
            (other, float(self._values[i, j]))
            for j, other in enumerate(self._tickers)
            if j != i
        ]

    def submatrix(self, tickers: Iterable[str]) -> "CorrelationMatrix":
        """지정 종목만 남긴 매트릭스 (매트릭스에 없는 종목은 무시)"""
        kept = [ticker for ticker in tickers if ticker in self._index]
        idx = [self._index[ticker] for ticker in kept]
        return CorrelationMatrix(kept, self._values[np.ix_(idx, idx)])

    def mean_abs_off_diagonal(self) -> float:
        """상삼각(대각선 제외) |상관계수| 평균, 종목이 2개 미만이면 0.0"""
        if len(self._tickers) < 2:
            return 0.0

        mask = np.triu(np.ones_like(self._values, dtype=bool), k=1)
        return float(np.mean(np.abs(self._values[mask])))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._values.copy(), index=self.tickers, columns=self.tickers)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        """{종목: {종목: 상관계수}} 형식"""
        return {
            row: {col: float(self._values[i, j]) for j, col in enumerate(self._tickers)}
            for i, row in enumerate(self._tickers)
        }

    def __repr__(self) -> str:
        return f"CorrelationMatrix(tickers={self.tickers})"


class CorrelationMatrixBuilder:
    """
    상관관계 매트릭스 생성기

    레코드가 없거나 해당 기간 값이 없는 쌍은 0.0(상관관계 근거 없음)으로 둡니다.
    """

    def build(
        self,
        tickers: Sequence[str],
        records: Iterable[CorrelationRecord],
        window: AnalysisWindow
    ) -> CorrelationMatrix:
        """
        기간별 상관관계 매트릭스 생성

        Args:
            tickers: 매트릭스 종목 목록
            records: 종목 쌍 레코드
            window: 분석 기간 (3M, 6M, 1Y)

        Returns:
            CorrelationMatrix: 대칭 매트릭스
        """
        window = AnalysisWindow.from_code(window)
        index = {ticker: i for i, ticker in enumerate(tickers)}
        values = np.eye(len(index), dtype=float)

        for record in records:
            i = index.get(record.ticker1)
            j = index.get(record.ticker2)
            if i is None or j is None or i == j:
                continue

            value = window_value(record, window)
            if value is None:
                continue

            values[i, j] = value
            values[j, i] = value

        logger.debug(f"상관관계 매트릭스 생성: {window.value}, 종목수={len(index)}")
        return CorrelationMatrix(list(index), values)

    def build_all(
        self,
        tickers: Sequence[str],
        records: Sequence[CorrelationRecord],
        windows: Iterable[AnalysisWindow]
    ) -> Dict[AnalysisWindow, CorrelationMatrix]:
        """여러 기간의 매트릭스를 한 번에 생성"""
        return {window: self.build(tickers, records, window) for window in windows}
