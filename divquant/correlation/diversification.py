"""
분산 투자 최적화 서비스

저장된 상관관계 분석 결과를 바탕으로 종목별 분산 점수를 계산하고,
서로 높은 상관관계가 없는 종목을 목표 개수만큼 선택합니다.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from divquant.config.correlation_config import OPTIMIZATION_ALGORITHM
from divquant.exceptions import NoDataError
from divquant.models import validators
from divquant.utils.log_utils import TraceIdContext, get_logger
from .diversification_score import DiversificationScorer
from .matrix import CorrelationMatrix, CorrelationMatrixBuilder
from .models import AnalysisWindow, CorrelationRecord, DiversificationScore, tickers_of
from .providers import CorrelationDataProvider
from .selector import GreedyDiversificationSelector, SelectionResult
from .store import CorrelationRecordStore

logger = get_logger(__name__)


@dataclass
class OptimizationSummary:
    """최적화 요약"""
    input_stock_count: int
    output_stock_count: int
    removed_stock_count: int
    high_correlation_threshold: float
    analysis_period: str
    target_stock_count: int
    shortfall: int = 0
    optimization_algorithm: str = OPTIMIZATION_ALGORITHM

    def to_dict(self) -> Dict:
        return {
            'input_stock_count': self.input_stock_count,
            'output_stock_count': self.output_stock_count,
            'removed_stock_count': self.removed_stock_count,
            'high_correlation_threshold': self.high_correlation_threshold,
            'analysis_period': self.analysis_period,
            'optimization_algorithm': self.optimization_algorithm,
            'target_stock_count': self.target_stock_count,
            'shortfall': self.shortfall,
        }


@dataclass
class DiversificationResult:
    """분산 최적화 결과"""
    session_id: str
    analysis_window: AnalysisWindow
    analysis_date: date
    selection: SelectionResult
    correlation_matrix: CorrelationMatrix
    summary: OptimizationSummary
    skipped_tickers: List[str] = field(default_factory=list)

    @property
    def selected_stocks(self) -> List[DiversificationScore]:
        return self.selection.selected

    @property
    def excluded_stocks(self) -> List[DiversificationScore]:
        return self.selection.excluded

    @property
    def portfolio_avg_correlation(self) -> float:
        return self.selection.portfolio_avg_correlation

    @property
    def portfolio_diversification_score(self) -> float:
        return self.selection.portfolio_diversification_score

    def to_dict(self) -> Dict:
        return {
            'session_id': self.session_id,
            'analysis_window': self.analysis_window.value,
            'analysis_date': self.analysis_date.isoformat(),
            'selected_stocks': [score.to_dict() for score in self.selected_stocks],
            'excluded_stocks': [score.to_dict() for score in self.excluded_stocks],
            'portfolio_avg_correlation': self.portfolio_avg_correlation,
            'portfolio_diversification_score': self.portfolio_diversification_score,
            'correlation_matrix': self.correlation_matrix.to_dict(),
            'optimization_summary': self.summary.to_dict(),
            'skipped_tickers': list(self.skipped_tickers),
        }


class DiversificationService:
    """
    분산 투자 최적화 서비스

    처리 흐름:
    1. 요청 종목끼리의 분석 레코드 조회
    2. 분석 기간 상관관계 매트릭스 생성
    3. 종목별 분산 점수 계산
    4. 그리디 알고리즘으로 저상관 종목 선택
    """

    def __init__(
        self,
        store: CorrelationRecordStore,
        provider: Optional[CorrelationDataProvider] = None,
        matrix_builder: Optional[CorrelationMatrixBuilder] = None,
        scorer: Optional[DiversificationScorer] = None,
        selector: Optional[GreedyDiversificationSelector] = None,
    ):
        """
        Args:
            store: 분석 결과 저장소
            provider: 종목명 조회용 제공자 (없으면 종목명은 '알 수 없음')
        """
        self.store = store
        self.provider = provider
        self.matrix_builder = matrix_builder or CorrelationMatrixBuilder()
        self.scorer = scorer or DiversificationScorer()
        self.selector = selector or GreedyDiversificationSelector()

    def optimize(
        self,
        request: Optional["validators.DiversificationRequest"] = None,
        **kwargs
    ) -> DiversificationResult:
        """
        분산 투자 최적화

        Args:
            request: DiversificationRequest (없으면 kwargs로 생성)
            **kwargs: session_id, tickers, high_correlation_threshold,
                target_stock_count, analysis_window

        Returns:
            DiversificationResult: 선택/제외 종목과 포트폴리오 지표

        Raises:
            InvalidRequestError: 요청 검증 실패
            NoDataError: 요청 종목 간 분석 결과가 없을 때
        """
        if request is None:
            request = validators.parse_request(validators.DiversificationRequest, **kwargs)

        with TraceIdContext(session_id=request.session_id):
            return self._optimize(request)

    def _optimize(self, request: "validators.DiversificationRequest") -> DiversificationResult:
        logger.info(
            f"분산 투자 최적화 시작 - 세션: {request.session_id}, "
            f"입력 종목 수: {len(request.tickers)}, 목표: {request.target_stock_count}"
        )

        records = self._find_pair_records(request.session_id, request.tickers)
        if not records:
            logger.warning(f"상관관계 분석 데이터가 없습니다. 세션: {request.session_id}")
            raise NoDataError(session_id=request.session_id)

        analyzed = set(tickers_of(records))
        tickers = [ticker for ticker in request.tickers if ticker in analyzed]
        skipped = [ticker for ticker in request.tickers if ticker not in analyzed]
        if skipped:
            logger.warning(f"분석 결과가 없어 제외된 종목: {', '.join(skipped)}")

        threshold = request.high_correlation_threshold
        matrix = self.matrix_builder.build(tickers, records, request.analysis_window)
        scores = self.scorer.score(tickers, matrix, threshold, self._display_names(tickers))
        selection = self.selector.select(scores, matrix, threshold, request.target_stock_count)

        summary = OptimizationSummary(
            input_stock_count=len(request.tickers),
            output_stock_count=len(selection.selected),
            removed_stock_count=len(request.tickers) - len(selection.selected),
            high_correlation_threshold=threshold,
            analysis_period=request.analysis_window.value,
            target_stock_count=request.target_stock_count,
            shortfall=selection.shortfall,
        )

        logger.info(
            f"분산 투자 최적화 완료 - 선택 종목 수: {summary.output_stock_count}, "
            f"포트폴리오 평균 상관계수: {selection.portfolio_avg_correlation:.4f}"
        )

        return DiversificationResult(
            session_id=request.session_id,
            analysis_window=request.analysis_window,
            analysis_date=date.today(),
            selection=selection,
            correlation_matrix=matrix.submatrix(selection.selected_tickers),
            summary=summary,
            skipped_tickers=skipped,
        )

    def _find_pair_records(self, session_id: str, tickers: List[str]) -> List[CorrelationRecord]:
        """양쪽 종목이 모두 요청 목록에 있는 레코드만 조회"""
        requested = set(tickers)
        return [
            record for record in self.store.find_records(session_id)
            if record.ticker1 in requested and record.ticker2 in requested
        ]

    def _display_names(self, tickers: List[str]) -> Dict[str, str]:
        if self.provider is None:
            return {}
        try:
            return self.provider.display_names(tickers)
        except Exception as e:
            logger.warning(f"종목명 조회 실패: {e}")
            return {}
