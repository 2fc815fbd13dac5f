"""
Configuration package for divquant
"""

from divquant.config.correlation_config import (
    MIN_TICKERS,
    MAX_TICKERS,
    DEFAULT_HIGH_CORRELATION_THRESHOLD,
    DEFAULT_TARGET_STOCK_COUNT,
    DEFAULT_ANALYSIS_WINDOW,
)

__all__ = [
    'MIN_TICKERS',
    'MAX_TICKERS',
    'DEFAULT_HIGH_CORRELATION_THRESHOLD',
    'DEFAULT_TARGET_STOCK_COUNT',
    'DEFAULT_ANALYSIS_WINDOW',
]
