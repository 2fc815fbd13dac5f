"""
Pydantic 요청 검증 모델 테스트

1. 상관관계 분석 요청 검증
2. 분산 최적화 요청 검증
3. 검증 실패 -> InvalidRequestError 변환
"""

import pytest
from pydantic import ValidationError

from divquant.correlation.models import AnalysisWindow
from divquant.exceptions import InvalidRequestError
from divquant.models.validators import (
    CorrelationAnalysisRequest,
    DiversificationRequest,
    parse_request,
)


class TestCorrelationAnalysisRequest:
    """상관관계 분석 요청 테스트"""

    def test_valid_request(self):
        request = CorrelationAnalysisRequest(tickers=["005930", " 000660 "])
        assert request.tickers == ["005930", "000660"]
        assert request.window is AnalysisWindow.ALL
        assert request.high_correlation_threshold == 0.7

    def test_window_code(self):
        request = CorrelationAnalysisRequest(tickers=["A", "B"], window="6m")
        assert request.window is AnalysisWindow.SIX_MONTH

    def test_too_few_tickers(self):
        with pytest.raises(ValidationError):
            CorrelationAnalysisRequest(tickers=["005930"])

    def test_too_many_tickers(self):
        with pytest.raises(ValidationError):
            CorrelationAnalysisRequest(tickers=[f"{i:06d}" for i in range(11)])

    def test_duplicate_tickers(self):
        with pytest.raises(ValidationError) as exc_info:
            CorrelationAnalysisRequest(tickers=["005930", "000660", "005930"])
        assert "005930" in str(exc_info.value)

    @pytest.mark.parametrize("threshold", [-0.01, 1.01, float("inf")])
    def test_threshold_range(self, threshold):
        with pytest.raises(ValidationError):
            CorrelationAnalysisRequest(tickers=["A", "B"], high_correlation_threshold=threshold)

    @pytest.mark.parametrize("threshold", [0.0, 1.0])
    def test_threshold_bounds(self, threshold):
        request = CorrelationAnalysisRequest(tickers=["A", "B"], high_correlation_threshold=threshold)
        assert request.high_correlation_threshold == threshold


class TestDiversificationRequest:
    """분산 최적화 요청 테스트"""

    def test_defaults(self):
        request = DiversificationRequest(session_id="s1", tickers=["A", "B"])
        assert request.target_stock_count == 5
        assert request.analysis_window is AnalysisWindow.ONE_YEAR

    def test_dedup_tickers(self):
        request = DiversificationRequest(session_id="s1", tickers=["B", "A", "B"])
        assert request.tickers == ["B", "A"]

    def test_all_window_rejected(self):
        with pytest.raises(ValidationError):
            DiversificationRequest(session_id="s1", tickers=["A"], analysis_window="ALL")

    def test_invalid_target(self):
        with pytest.raises(ValidationError):
            DiversificationRequest(session_id="s1", tickers=["A"], target_stock_count=0)

    def test_empty_session(self):
        with pytest.raises(ValidationError):
            DiversificationRequest(session_id="", tickers=["A"])


class TestParseRequest:
    """parse_request 테스트"""

    def test_success(self):
        request = parse_request(CorrelationAnalysisRequest, tickers=["A", "B"], window="1Y")
        assert request.window is AnalysisWindow.ONE_YEAR

    def test_failure_converted(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_request(CorrelationAnalysisRequest, tickers=["A"], high_correlation_threshold=2)

        errors = exc_info.value.validation_errors
        assert len(errors) == 2
        assert any(error.startswith("tickers") for error in errors)
        assert any(error.startswith("high_correlation_threshold") for error in errors)
        assert isinstance(exc_info.value.original_error, ValidationError)
