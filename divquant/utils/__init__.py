"""Utility facade for logging functions.

통합 로깅 진입점은 log_utils 모듈로 일원화합니다.
"""

from .log_utils import get_logger, setup_logging, setup_json_logging, TraceIdContext

__all__ = [
    'get_logger',
    'setup_logging',
    'setup_json_logging',
    'TraceIdContext',
]
