"""
상관관계 분석 및 분산 투자 모듈

주요 기능:
- 종목 쌍별 기간 상관계수 분석 및 저장
- 기간별 상관관계 매트릭스/히트맵
- 분산투자 가이드 생성
- 분산 점수 기반 그리디 종목 선택
"""

from .models import (
    AnalysisWindow,
    CONCRETE_WINDOWS,
    CorrelationRecord,
    DiversificationScore,
    RiskLevel,
    average_correlation,
    is_high_correlation,
    risk_level,
    tickers_of,
    window_value,
)
from .matrix import CorrelationMatrix, CorrelationMatrixBuilder
from .heatmap import ColorScale, HeatmapBuilder, HeatmapData, HeatmapPeriodData
from .guide import DiversificationGuide, DiversificationGuideGenerator, RiskAssessment
from .diversification_score import DiversificationScorer
from .selector import GreedyDiversificationSelector, SelectionResult
from .store import CorrelationRecordStore, InMemoryCorrelationStore
from .providers import (
    CorrelationDataProvider,
    DatabaseCorrelationProvider,
    PriceFrameCorrelationProvider,
    pearson_from_closes,
)
from .engine import AnalysisResult, CorrelationAnalysisEngine, HighCorrelationPair, SessionLockRegistry
from .diversification import DiversificationResult, DiversificationService, OptimizationSummary

__all__ = [
    'AnalysisWindow',
    'CONCRETE_WINDOWS',
    'CorrelationRecord',
    'DiversificationScore',
    'RiskLevel',
    'average_correlation',
    'is_high_correlation',
    'risk_level',
    'tickers_of',
    'window_value',
    'CorrelationMatrix',
    'CorrelationMatrixBuilder',
    'ColorScale',
    'HeatmapBuilder',
    'HeatmapData',
    'HeatmapPeriodData',
    'DiversificationGuide',
    'DiversificationGuideGenerator',
    'RiskAssessment',
    'DiversificationScorer',
    'GreedyDiversificationSelector',
    'SelectionResult',
    'CorrelationRecordStore',
    'InMemoryCorrelationStore',
    'CorrelationDataProvider',
    'DatabaseCorrelationProvider',
    'PriceFrameCorrelationProvider',
    'pearson_from_closes',
    'AnalysisResult',
    'CorrelationAnalysisEngine',
    'HighCorrelationPair',
    'SessionLockRegistry',
    'DiversificationResult',
    'DiversificationService',
    'OptimizationSummary',
]
