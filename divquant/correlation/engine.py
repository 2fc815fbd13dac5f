"""
상관관계 분석 엔진

종목 쌍별/기간별 상관계수를 계산해 저장하고,
저장된 결과로부터 매트릭스, 고상관 종목 쌍, 분산투자 가이드를 구성합니다.
"""

import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from divquant.config.correlation_config import DEFAULT_HIGH_CORRELATION_THRESHOLD
from divquant.exceptions import DivQuantException, NoDataError, wrap_exception
from divquant.models import validators
from divquant.utils.log_utils import TraceIdContext, get_logger
from .guide import DiversificationGuide, DiversificationGuideGenerator
from .heatmap import HeatmapBuilder, HeatmapData
from .matrix import CorrelationMatrix, CorrelationMatrixBuilder
from .models import (
    CONCRETE_WINDOWS,
    AnalysisWindow,
    CorrelationRecord,
    RiskLevel,
    average_correlation,
    risk_level,
    tickers_of,
)
from .providers import CorrelationDataProvider
from .store import CorrelationRecordStore

logger = get_logger(__name__)


@dataclass
class HighCorrelationPair:
    """높은 상관관계 종목 쌍"""
    ticker1: str
    ticker2: str
    stock_name1: Optional[str]
    stock_name2: Optional[str]
    correlation_3m: Optional[float]
    correlation_6m: Optional[float]
    correlation_1y: Optional[float]
    average_correlation: Optional[float]
    risk_level: RiskLevel

    def to_dict(self) -> Dict:
        return {
            'ticker1': self.ticker1,
            'ticker2': self.ticker2,
            'stock_name1': self.stock_name1,
            'stock_name2': self.stock_name2,
            'correlation_3m': self.correlation_3m,
            'correlation_6m': self.correlation_6m,
            'correlation_1y': self.correlation_1y,
            'average_correlation': self.average_correlation,
            'risk_level': self.risk_level.value,
        }


@dataclass
class AnalysisResult:
    """상관관계 분석 결과"""
    session_id: str
    analysis_date: date
    tickers: List[str] = field(default_factory=list)
    analysis_start_date: Optional[date] = None
    analysis_end_date: Optional[date] = None
    correlation_matrix: Dict[AnalysisWindow, CorrelationMatrix] = field(default_factory=dict)
    high_correlation_pairs: List[HighCorrelationPair] = field(default_factory=list)
    diversification_guide: Optional[DiversificationGuide] = None

    @property
    def is_empty(self) -> bool:
        return not self.tickers

    def to_dict(self) -> Dict:
        return {
            'session_id': self.session_id,
            'analysis_date': self.analysis_date.isoformat(),
            'analysis_start_date': self.analysis_start_date.isoformat() if self.analysis_start_date else None,
            'analysis_end_date': self.analysis_end_date.isoformat() if self.analysis_end_date else None,
            'tickers': list(self.tickers),
            'correlation_matrix': {
                window.value: matrix.to_dict()
                for window, matrix in self.correlation_matrix.items()
            },
            'high_correlation_pairs': [pair.to_dict() for pair in self.high_correlation_pairs],
            'diversification_guide': (
                self.diversification_guide.to_dict() if self.diversification_guide else None
            ),
        }


class SessionLockRegistry:
    """세션별 잠금

    같은 세션의 삭제, 재저장, 결과 재조회가 동시에 실행되지 않도록 직렬화합니다.
    잠금은 대기 중이거나 사용 중인 호출이 있는 동안만 보관됩니다.
    """

    def __init__(self):
        # session_id -> [잠금, 사용자 수]
        self._locks: Dict[str, list] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(session_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[session_id]


class CorrelationAnalysisEngine:
    """
    상관관계 분석 엔진

    데이터 제공자와 저장소를 주입받으며 그 외 전역 상태는 갖지 않습니다.
    """

    def __init__(
        self,
        provider: CorrelationDataProvider,
        store: CorrelationRecordStore,
        matrix_builder: Optional[CorrelationMatrixBuilder] = None,
        heatmap_builder: Optional[HeatmapBuilder] = None,
        guide_generator: Optional[DiversificationGuideGenerator] = None,
        session_locks: Optional[SessionLockRegistry] = None,
    ):
        """
        Args:
            provider: 상관계수 데이터 제공자
            store: 분석 결과 저장소
            session_locks: 엔진 인스턴스 간 공유할 세션 잠금 (없으면 새로 생성)
        """
        self.provider = provider
        self.store = store
        self.matrix_builder = matrix_builder or CorrelationMatrixBuilder()
        self.heatmap_builder = heatmap_builder or HeatmapBuilder()
        self.guide_generator = guide_generator or DiversificationGuideGenerator()
        self.session_locks = session_locks if session_locks is not None else SessionLockRegistry()

    # ========== 분석 수행 ==========

    def analyze(
        self,
        session_id: str,
        tickers: Sequence[str],
        window=AnalysisWindow.ALL,
        high_correlation_threshold: float = DEFAULT_HIGH_CORRELATION_THRESHOLD,
        end_date: Optional[date] = None,
    ) -> AnalysisResult:
        """
        상관관계 분석 수행

        세션의 기존 분석 결과는 모두 삭제되고 새 결과로 대체됩니다.

        Args:
            session_id: 분석 세션 ID
            tickers: 분석할 종목 (2~10개, 중복 불가)
            window: 분석 기간 (3M, 6M, 1Y, ALL)
            high_correlation_threshold: 높은 상관관계 기준 (0~1)
            end_date: 분석 종료일 (기본: 오늘)

        Returns:
            AnalysisResult: 저장소에서 다시 읽어 구성한 분석 결과

        Raises:
            InvalidRequestError: 요청 검증 실패 (저장소 변경 없음)
            PersistenceError: 저장소 삭제/저장 실패
        """
        request = validators.parse_request(
            validators.CorrelationAnalysisRequest,
            tickers=list(tickers),
            window=window,
            high_correlation_threshold=high_correlation_threshold,
        )

        with TraceIdContext(session_id=session_id):
            logger.info(f"상관관계 분석 시작 - 세션: {session_id}, 종목수: {len(request.tickers)}")

            try:
                with self.session_locks.hold(session_id):
                    self.store.delete_records(session_id)
                    records = self._compute_records(
                        session_id,
                        request.tickers,
                        request.window,
                        end_date or date.today(),
                    )
                    self.store.insert_records(records)
                    return self._build_result(session_id, request.high_correlation_threshold)

            except DivQuantException:
                raise
            except Exception as e:
                logger.error(f"상관관계 분석 중 오류 발생: {e}", exc_info=True)
                raise wrap_exception(e, message=f"상관관계 분석 중 오류가 발생했습니다: {e}") from e

    def _compute_records(
        self,
        session_id: str,
        tickers: List[str],
        window: AnalysisWindow,
        end_date: date,
    ) -> List[CorrelationRecord]:
        windows = window.expand()
        start_dates = {w: self._window_start(end_date, w) for w in windows}
        records = []

        for i, ticker1 in enumerate(tickers):
            for ticker2 in tickers[i + 1:]:
                values = {
                    w: self._safe_pearson(ticker1, ticker2, start_dates[w], end_date)
                    for w in windows
                }
                record = CorrelationRecord(
                    session_id=session_id,
                    ticker1=ticker1,
                    ticker2=ticker2,
                    correlation_3m=values.get(AnalysisWindow.THREE_MONTH),
                    correlation_6m=values.get(AnalysisWindow.SIX_MONTH),
                    correlation_1y=values.get(AnalysisWindow.ONE_YEAR),
                    analysis_start_date=min(start_dates.values()),
                    analysis_end_date=end_date,
                    analysis_date=date.today(),
                )
                records.append(record)
                logger.debug(
                    f"상관계수 계산 완료: {ticker1} vs {ticker2} = {average_correlation(record)}"
                )

        return records

    @staticmethod
    def _window_start(end_date: date, window: AnalysisWindow) -> date:
        return (pd.Timestamp(end_date) - pd.DateOffset(months=window.months)).date()

    def _safe_pearson(
        self,
        ticker1: str,
        ticker2: str,
        start_date: date,
        end_date: date,
    ) -> Optional[float]:
        """제공자 호출 실패/무효값은 None으로 기록하고 배치는 계속 진행"""
        try:
            value = self.provider.pearson_correlation(ticker1, ticker2, start_date, end_date)
            if value is None:
                return None
            value = float(value)
        except Exception as e:
            logger.warning(f"상관계수 계산 실패: {ticker1} vs {ticker2} ({start_date}~{end_date}) - {e}")
            return None

        if not math.isfinite(value):
            logger.warning(f"유효하지 않은 상관계수: {ticker1} vs {ticker2} = {value}")
            return None
        return float(np.clip(value, -1.0, 1.0))

    # ========== 결과 조회 ==========

    def get_results(
        self,
        session_id: str,
        threshold: float = DEFAULT_HIGH_CORRELATION_THRESHOLD,
    ) -> AnalysisResult:
        """저장된 분석 결과 조회 (결과가 없으면 빈 결과)"""
        threshold = self._validate_threshold(threshold)
        logger.info(f"상관관계 분석 결과 조회 - 세션: {session_id}")
        return self._build_result(session_id, threshold)

    def get_high_correlation_pairs(
        self,
        session_id: str,
        threshold: float = DEFAULT_HIGH_CORRELATION_THRESHOLD,
    ) -> List[HighCorrelationPair]:
        """높은 상관관계 종목 쌍 조회 (|평균 상관계수| 내림차순)"""
        threshold = self._validate_threshold(threshold)
        logger.info(f"높은 상관관계 종목 쌍 조회 - 세션: {session_id}, 임계값: {threshold}")
        return self._high_correlation_pairs(session_id, threshold)

    def generate_diversification_guide(
        self,
        session_id: str,
        threshold: float = DEFAULT_HIGH_CORRELATION_THRESHOLD,
    ) -> DiversificationGuide:
        """분산투자 가이드라인 생성"""
        threshold = self._validate_threshold(threshold)
        logger.info(f"분산투자 가이드라인 생성 - 세션: {session_id}, 임계값: {threshold}")
        return self.guide_generator.generate_guide(self.store.find_records(session_id), threshold)

    def generate_heatmap(
        self,
        session_id: str,
        tickers: Optional[Sequence[str]] = None,
    ) -> HeatmapData:
        """
        히트맵 데이터 생성

        Args:
            session_id: 분석 세션 ID
            tickers: 축 종목 (없으면 분석된 종목 전체)

        Raises:
            NoDataError: 분석 결과가 없을 때
        """
        records = self.store.find_records(session_id)
        if not records:
            logger.warning(f"히트맵 생성을 위한 상관관계 데이터가 없습니다. 세션: {session_id}")
            raise NoDataError(session_id=session_id)

        labels = list(tickers) if tickers else tickers_of(records)
        logger.info(f"히트맵 데이터 생성 - 세션: {session_id}, 종목수: {len(labels)}")
        return self.heatmap_builder.build_heatmap(labels, records)

    def clear_results(self, session_id: str) -> None:
        """분석 결과 삭제"""
        logger.info(f"상관관계 분석 결과 삭제 - 세션: {session_id}")
        with self.session_locks.hold(session_id):
            self.store.delete_records(session_id)

    # ========== 내부 ==========

    @staticmethod
    def _validate_threshold(threshold: float) -> float:
        query = validators.parse_request(
            validators.ThresholdQuery,
            high_correlation_threshold=threshold,
        )
        return query.high_correlation_threshold

    def _high_correlation_pairs(self, session_id: str, threshold: float) -> List[HighCorrelationPair]:
        records = self.store.find_high_correlation(session_id, threshold)
        if not records:
            return []

        names = self._display_names(tickers_of(records))
        pairs = [
            HighCorrelationPair(
                ticker1=record.ticker1,
                ticker2=record.ticker2,
                stock_name1=names.get(record.ticker1),
                stock_name2=names.get(record.ticker2),
                correlation_3m=record.correlation_3m,
                correlation_6m=record.correlation_6m,
                correlation_1y=record.correlation_1y,
                average_correlation=average_correlation(record),
                risk_level=risk_level(record, threshold),
            )
            for record in records
        ]
        return sorted(pairs, key=lambda p: abs(p.average_correlation), reverse=True)

    def _build_result(self, session_id: str, threshold: float) -> AnalysisResult:
        records = self.store.find_records(session_id)
        today = date.today()

        if not records:
            logger.warning(f"상관관계 분석 결과가 없습니다. 세션: {session_id}")
            return AnalysisResult(session_id=session_id, analysis_date=today)

        tickers = tickers_of(records)
        start_dates = [r.analysis_start_date for r in records if r.analysis_start_date]
        end_dates = [r.analysis_end_date for r in records if r.analysis_end_date]

        return AnalysisResult(
            session_id=session_id,
            analysis_date=today,
            tickers=tickers,
            analysis_start_date=min(start_dates) if start_dates else None,
            analysis_end_date=max(end_dates) if end_dates else None,
            correlation_matrix=self.matrix_builder.build_all(tickers, records, CONCRETE_WINDOWS),
            high_correlation_pairs=self._high_correlation_pairs(session_id, threshold),
            diversification_guide=self.guide_generator.generate_guide(records, threshold),
        )

    def _display_names(self, tickers: List[str]) -> Dict[str, str]:
        try:
            return self.provider.display_names(tickers)
        except Exception as e:
            logger.warning(f"종목명 조회 실패: {e}")
            return {}
