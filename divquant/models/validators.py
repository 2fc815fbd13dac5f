# -*- coding: utf-8 -*-
"""
Pydantic 요청 검증 모델

기능:
- 상관관계 분석 요청 검증 (종목 2~10개, 중복 불가, 임계값 0~1)
- 결과 조회 임계값 검증 (0~1)
- 분산 최적화 요청 검증 (목표 종목 수, 분석 기간)
- 검증 실패를 InvalidRequestError로 변환

잘못된 요청은 계산/저장 전에 거부됩니다.
"""

from typing import List, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from divquant.config import correlation_config as cfg
from divquant.correlation.models import AnalysisWindow
from divquant.exceptions import InvalidRequestError
from divquant.utils.log_utils import get_logger

logger = get_logger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


def _clean_tickers(tickers: List[str]) -> List[str]:
    cleaned = [str(ticker).strip() for ticker in tickers]
    if any(not ticker for ticker in cleaned):
        raise ValueError('빈 종목코드는 허용되지 않습니다')
    return cleaned


class CorrelationAnalysisRequest(BaseModel):
    """상관관계 분석 요청

    분석할 종목은 최소 2개, 최대 10개이며 중복될 수 없습니다.
    """
    tickers: List[str] = Field(
        ...,
        min_length=cfg.MIN_TICKERS,
        max_length=cfg.MAX_TICKERS,
        description="분석할 종목 티커 목록",
    )
    window: AnalysisWindow = Field(default=AnalysisWindow.ALL, description="분석 기간")
    high_correlation_threshold: float = Field(
        default=cfg.DEFAULT_HIGH_CORRELATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        allow_inf_nan=False,
        description="높은 상관관계 임계값",
    )

    @field_validator('tickers')
    @classmethod
    def validate_tickers(cls, v: List[str]) -> List[str]:
        """종목코드 공백/중복 검증"""
        cleaned = _clean_tickers(v)
        duplicates = sorted({ticker for ticker in cleaned if cleaned.count(ticker) > 1})
        if duplicates:
            raise ValueError(f'중복된 종목이 있습니다: {", ".join(duplicates)}')
        return cleaned

    @field_validator('window', mode='before')
    @classmethod
    def validate_window(cls, v):
        return AnalysisWindow.from_code(v)


class ThresholdQuery(BaseModel):
    """결과 조회 임계값"""
    high_correlation_threshold: float = Field(
        default=cfg.DEFAULT_HIGH_CORRELATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        allow_inf_nan=False,
    )


class DiversificationRequest(BaseModel):
    """분산 최적화 요청"""
    session_id: str = Field(..., min_length=1, description="세션 ID")
    tickers: List[str] = Field(..., min_length=1, description="분석 대상 티커 목록")
    high_correlation_threshold: float = Field(
        default=cfg.DEFAULT_HIGH_CORRELATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        allow_inf_nan=False,
    )
    target_stock_count: int = Field(
        default=cfg.DEFAULT_TARGET_STOCK_COUNT,
        ge=1,
        description="최종 선택할 종목 개수",
    )
    analysis_window: AnalysisWindow = Field(
        default=AnalysisWindow(cfg.DEFAULT_ANALYSIS_WINDOW),
        description="분석 기간 (3M, 6M, 1Y)",
    )

    @field_validator('tickers')
    @classmethod
    def validate_tickers(cls, v: List[str]) -> List[str]:
        """공백 검증 후 중복은 최초 등장만 유지"""
        return list(dict.fromkeys(_clean_tickers(v)))

    @field_validator('analysis_window', mode='before')
    @classmethod
    def validate_window(cls, v):
        window = AnalysisWindow.from_code(v)
        if window is AnalysisWindow.ALL:
            raise ValueError('분산 최적화는 3M, 6M, 1Y 중 하나의 기간을 사용해야 합니다')
        return window


def parse_request(model: Type[ModelT], **data) -> ModelT:
    """요청 모델 생성 및 검증

    Raises:
        InvalidRequestError: 검증 실패 시
    """
    try:
        return model(**data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        logger.warning(f"잘못된 요청 ({model.__name__}): {errors}")
        raise InvalidRequestError(
            "; ".join(errors),
            validation_errors=errors,
            original_error=e,
        ) from e
