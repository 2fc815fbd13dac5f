"""
분산투자 점수 모듈

종목별로 다른 종목들과의 평균 상관계수를 구해 분산 점수를 매깁니다.
"""

from typing import Dict, List, Optional, Sequence

from divquant.config.correlation_config import UNKNOWN_STOCK_NAME
from divquant.utils.log_utils import get_logger
from .matrix import CorrelationMatrix
from .models import DiversificationScore

logger = get_logger(__name__)


class DiversificationScorer:
    """
    종목별 분산 점수 계산기

    평균 상관계수가 0에 가까울수록 분산 효과가 큰 종목으로 평가합니다.
    """

    def score(
        self,
        tickers: Sequence[str],
        matrix: CorrelationMatrix,
        threshold: float,
        stock_names: Optional[Dict[str, str]] = None
    ) -> List[DiversificationScore]:
        """
        분산 점수 계산

        Args:
            tickers: 평가할 종목 목록 (매트릭스에 없는 종목은 건너뜀)
            matrix: 상관관계 매트릭스
            threshold: 높은 상관관계 기준
            stock_names: {종목코드: 종목명}

        Returns:
            분산 점수 내림차순 목록 (동점은 입력 순서 유지)
        """
        stock_names = stock_names or {}
        scores = []

        for ticker in tickers:
            if ticker not in matrix:
                logger.warning(f"티커 {ticker}의 상관관계 데이터가 없습니다.")
                continue

            correlations = [value for _, value in matrix.others(ticker)]
            avg_correlation = sum(correlations) / len(correlations) if correlations else 0.0
            high_count = sum(1 for value in correlations if abs(value) >= threshold)

            scores.append(DiversificationScore(
                ticker=ticker,
                stock_name=stock_names.get(ticker, UNKNOWN_STOCK_NAME),
                avg_correlation=avg_correlation,
                high_correlation_count=high_count,
                diversification_score=1.0 - abs(avg_correlation),
            ))

        # sorted()는 안정 정렬이므로 reverse=True에서도 동점 순서가 유지됨
        return sorted(scores, key=lambda s: s.diversification_score, reverse=True)
