"""
DivQuant - 상관관계 기반 분산투자 분석 엔진
"""

__version__ = "1.0.0"
