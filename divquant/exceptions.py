"""
DivQuant 통합 예외 클래스 정의

이 모듈은 상관관계/분산투자 분석 엔진 전체에서 사용하는 예외 계층을 정의합니다.
모든 도메인별 예외는 DivQuantException을 상속받습니다.

사용자 응답 매핑:
    InvalidRequestError, NoDataError -> 400 (구분 가능한 에러 코드)
    PersistenceError, 기타 예외      -> 500 (ANALYSIS_ERROR)
"""

import traceback
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Type


class ErrorSeverity(Enum):
    """에러 심각도"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """에러 카테고리"""
    VALIDATION = "VALIDATION"  # 요청 유효성 검증
    DATA = "DATA"              # 데이터 관련
    DATABASE = "DATABASE"      # 저장소 관련
    SYSTEM = "SYSTEM"          # 시스템 관련
    UNKNOWN = "UNKNOWN"


class DivQuantException(Exception):
    """
    DivQuant 기본 예외 클래스

    error_code와 context 필드를 포함하여 에러 추적을 지원합니다.

    Attributes:
        error_code: 에러 식별 코드 (예: "INVALID_REQUEST", "NO_DATA")
        context: 에러 발생 컨텍스트 정보
        severity: 에러 심각도
        category: 에러 카테고리
        timestamp: 에러 발생 시각
        original_error: 원본 예외 (있는 경우)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category  # _generate_error_code()보다 먼저 설정
        self.severity = severity
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()
        self.original_error = original_error
        self._traceback = traceback.format_exc() if original_error else None

    def _generate_error_code(self) -> str:
        """클래스명 기반 기본 에러 코드 생성"""
        return f"{self.category.value}_{self.__class__.__name__.upper()}"

    def to_dict(self) -> Dict[str, Any]:
        """에러 정보를 딕셔너리로 변환"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def with_context(self, **kwargs) -> "DivQuantException":
        """추가 컨텍스트 정보 추가"""
        self.context.update(kwargs)
        return self

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" (context: {context_str})")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"severity={self.severity.value})"
        )


# ============================================================================
# 요청 검증 예외
# ============================================================================

class InvalidRequestError(DivQuantException):
    """잘못된 분석 요청 (종목 수, 중복 종목, 임계값 범위 등)"""

    def __init__(
        self,
        message: str = "잘못된 분석 요청입니다.",
        validation_errors: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="INVALID_REQUEST",
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )
        self.validation_errors = validation_errors or []
        if validation_errors:
            self.context["validation_errors"] = validation_errors


# ============================================================================
# 데이터 관련 예외
# ============================================================================

class NoDataError(DivQuantException):
    """세션에 저장된 상관관계 분석 결과가 없음"""

    def __init__(
        self,
        message: str = "상관관계 분석 결과가 없습니다. 먼저 분석을 수행해주세요.",
        session_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="NO_DATA",
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.DATA,
            **kwargs
        )
        self.session_id = session_id
        if session_id:
            self.context["session_id"] = session_id


class PairComputationError(DivQuantException):
    """종목 쌍 상관계수 계산 실패 (엔진 내부에서 None으로 복구됨)"""

    def __init__(
        self,
        message: str = "상관계수 계산 실패",
        ticker1: Optional[str] = None,
        ticker2: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="PAIR_COMPUTATION_FAILED",
            category=ErrorCategory.DATA,
            **kwargs
        )
        if ticker1:
            self.context["ticker1"] = ticker1
        if ticker2:
            self.context["ticker2"] = ticker2


# ============================================================================
# 저장소 / 시스템 예외
# ============================================================================

class PersistenceError(DivQuantException):
    """저장소 삭제/저장/조회 실패"""

    def __init__(
        self,
        message: str = "분석 결과 저장소 오류",
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="PERSISTENCE_FAILED",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.DATABASE,
            **kwargs
        )
        if operation:
            self.context["operation"] = operation


class AnalysisError(DivQuantException):
    """예상하지 못한 분석 오류"""

    def __init__(self, message: str = "상관관계 분석 중 오류가 발생했습니다.", **kwargs):
        super().__init__(
            message,
            error_code="ANALYSIS_ERROR",
            category=ErrorCategory.SYSTEM,
            **kwargs
        )


# ============================================================================
# 유틸리티 함수
# ============================================================================

CLIENT_ERROR_CODES = ("INVALID_REQUEST", "NO_DATA")


def wrap_exception(
    original: Exception,
    exception_class: Type[DivQuantException] = AnalysisError,
    message: Optional[str] = None,
    **kwargs
) -> DivQuantException:
    """
    표준 예외를 DivQuantException으로 래핑

    Args:
        original: 원본 예외
        exception_class: 래핑할 예외 클래스
        message: 추가 메시지 (없으면 원본 메시지 사용)
        **kwargs: 추가 인자

    Returns:
        DivQuantException: 래핑된 예외
    """
    msg = message or str(original)
    return exception_class(
        message=msg,
        original_error=original,
        **kwargs
    )


def get_error_code(error: Exception) -> Optional[str]:
    """예외에서 에러 코드 추출"""
    if isinstance(error, DivQuantException):
        return error.error_code
    return None


def is_client_error(error: Exception) -> bool:
    """요청자 측 에러(4xx)인지 확인"""
    return get_error_code(error) in CLIENT_ERROR_CODES


def to_error_response(error: Exception) -> Dict[str, Any]:
    """예외를 전송 계층 독립적인 에러 응답으로 변환

    InvalidRequestError/NoDataError는 고유 코드와 메시지를 그대로 노출하고,
    그 외 모든 예외는 구분 없이 ANALYSIS_ERROR로 응답합니다.
    """
    if is_client_error(error):
        return {
            "success": False,
            "status": 400,
            "error_code": error.error_code,
            "message": error.message,
        }

    return {
        "success": False,
        "status": 500,
        "error_code": "ANALYSIS_ERROR",
        "message": "상관관계 분석 중 오류가 발생했습니다.",
    }
