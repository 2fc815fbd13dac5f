"""
데이터베이스 모듈

SQLAlchemy 기반 데이터베이스 관리

포함:
- 세션 관리
- 모델 (Stock, Price, CorrelationAnalysisRow)
- 상관관계 분석 결과 리포지토리
"""

from .session import DatabaseSession
from .models import (
    Base,
    Stock,
    Price,
    CorrelationAnalysisRow,
)
from .repository import SqlCorrelationRepository

__all__ = [
    'DatabaseSession',
    'Base',
    'Stock',
    'Price',
    'CorrelationAnalysisRow',
    'SqlCorrelationRepository',
]
