"""
그리디 분산 종목 선택 모듈

분산 점수 순으로 후보를 한 번 훑으며, 이미 선택된 종목과
높은 상관관계가 없는 종목만 목표 개수까지 선택합니다.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Sequence

from divquant.utils.log_utils import get_logger
from .matrix import CorrelationMatrix
from .models import DiversificationScore

logger = get_logger(__name__)


@dataclass
class SelectionResult:
    """그리디 선택 결과"""
    all_scores: List[DiversificationScore] = field(default_factory=list)
    selected: List[DiversificationScore] = field(default_factory=list)
    target_count: int = 0
    portfolio_avg_correlation: float = 0.0

    @property
    def excluded(self) -> List[DiversificationScore]:
        """선택되지 않은 종목 (검토 전에 목표 개수가 채워진 종목 포함)"""
        return [score for score in self.all_scores if not score.selected]

    @property
    def shortfall(self) -> int:
        """목표 대비 부족한 종목 수"""
        return max(0, self.target_count - len(self.selected))

    @property
    def target_reached(self) -> bool:
        return self.shortfall == 0

    @property
    def portfolio_diversification_score(self) -> float:
        """포트폴리오 분산 점수 (0~100)"""
        return (1.0 - self.portfolio_avg_correlation) * 100.0

    @property
    def selected_tickers(self) -> List[str]:
        return [score.ticker for score in self.selected]

    def to_dict(self) -> Dict:
        return {
            'all_scores': [score.to_dict() for score in self.all_scores],
            'selected_stocks': [score.to_dict() for score in self.selected],
            'excluded_stocks': [score.to_dict() for score in self.excluded],
            'target_count': self.target_count,
            'shortfall': self.shortfall,
            'portfolio_avg_correlation': self.portfolio_avg_correlation,
            'portfolio_diversification_score': self.portfolio_diversification_score,
        }


class GreedyDiversificationSelector:
    """
    그리디 분산 종목 선택기

    알고리즘:
    1. 분산 점수가 가장 높은 종목을 첫 번째로 선택
    2. 이미 선택된 종목들과 |상관계수| >= threshold 인 종목은 제외
    3. 목표 개수에 도달하면 중단

    되돌아가기(backtracking)나 임계값 완화는 하지 않으므로
    최대 크기의 저상관 조합을 보장하지 않습니다.
    """

    def select(
        self,
        scores: Sequence[DiversificationScore],
        matrix: CorrelationMatrix,
        threshold: float,
        target_count: int
    ) -> SelectionResult:
        """
        최적 종목 선택

        Args:
            scores: 분산 점수 내림차순으로 정렬된 목록
            matrix: 상관관계 매트릭스
            threshold: 높은 상관관계 기준
            target_count: 목표 종목 수

        Returns:
            SelectionResult: 선택/제외 결과와 포트폴리오 지표
        """
        annotated: List[DiversificationScore] = []
        selected: List[DiversificationScore] = []

        for score in scores:
            if len(selected) >= target_count:
                annotated.append(score)
                continue

            conflict = self._find_conflict(score.ticker, selected, matrix, threshold)
            if conflict is not None:
                other, correlation = conflict
                annotated.append(replace(
                    score,
                    selected=False,
                    selection_rank=None,
                    exclusion_reason=f"종목 {other}와 높은 상관관계({correlation:.4f})",
                ))
                continue

            accepted = replace(
                score,
                selected=True,
                selection_rank=len(selected) + 1,
                exclusion_reason=None,
            )
            annotated.append(accepted)
            selected.append(accepted)

            logger.info(
                f"종목 선택: {accepted.ticker} [{accepted.stock_name}] "
                f"(분산점수: {accepted.diversification_score:.4f}, "
                f"평균상관계수: {accepted.avg_correlation:.4f})"
            )

        if len(selected) < target_count:
            logger.warning(
                f"목표 개수({target_count})에 미달하여 {len(selected)}개 종목만 선택되었습니다."
            )

        portfolio_avg = matrix.submatrix(score.ticker for score in selected).mean_abs_off_diagonal()

        return SelectionResult(
            all_scores=annotated,
            selected=selected,
            target_count=target_count,
            portfolio_avg_correlation=portfolio_avg,
        )

    @staticmethod
    def _find_conflict(ticker, selected, matrix, threshold):
        """이미 선택된 종목 중 처음으로 고상관인 (종목, 상관계수)"""
        for chosen in selected:
            correlation = matrix.value(ticker, chosen.ticker)
            if abs(correlation) >= threshold:
                return chosen.ticker, correlation
        return None
