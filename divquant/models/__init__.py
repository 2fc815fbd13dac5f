"""
요청 검증 모델 패키지
"""

from .validators import CorrelationAnalysisRequest, DiversificationRequest, parse_request

__all__ = [
    'CorrelationAnalysisRequest',
    'DiversificationRequest',
    'parse_request',
]
