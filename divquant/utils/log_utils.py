"""
로깅 유틸리티

콘솔/파일 로깅과 JSON 파일 로깅을 설정합니다.
TraceIdContext 블록 안에서 남긴 로그는 JSON 출력에 trace_id와 session_id가 함께 기록되어
분석 요청 단위로 모아 볼 수 있습니다.
"""

import json
import logging
import logging.handlers
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import List, Optional

_trace_id: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)
_session_id: ContextVar[Optional[str]] = ContextVar('session_id', default=None)

CONSOLE_FORMAT = '%(levelname)s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str) -> logging.Logger:
    """모듈 로거 (보통 __name__ 사용)"""
    return logging.getLogger(name)


class TraceIdContext:
    """분석 요청 추적 컨텍스트

    블록을 벗어나면 바깥 컨텍스트의 값으로 돌아갑니다.
    session_id를 생략하면 바깥 세션을 그대로 이어받습니다.

    Example:
        with TraceIdContext(session_id='s1') as trace_id:
            engine.analyze(...)
    """

    def __init__(self, trace_id: Optional[str] = None, session_id: Optional[str] = None):
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self.session_id = session_id
        self._tokens = None

    def __enter__(self) -> str:
        session_id = self.session_id if self.session_id is not None else _session_id.get()
        self._tokens = (_trace_id.set(self.trace_id), _session_id.set(session_id))
        return self.trace_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        trace_token, session_token = self._tokens
        _session_id.reset(session_token)
        _trace_id.reset(trace_token)


class JSONFormatter(logging.Formatter):
    """한 줄에 JSON 객체 하나씩 출력하는 포맷터

    trace_id/session_id는 extra로 넘긴 값이 우선이고, 없으면 현재 TraceIdContext 값을 씁니다.
    """

    CONTEXT_FIELDS = {'trace_id': _trace_id, 'session_id': _session_id}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, var in self.CONTEXT_FIELDS.items():
            value = getattr(record, key, None) or var.get()
            if value:
                payload[key] = value

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _install_handlers(handlers: List[logging.Handler], level: int) -> logging.Logger:
    """루트 로거의 기존 핸들러를 교체"""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    return root_logger


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """텍스트 로깅 설정

    Args:
        log_file: 로그 파일 경로 (콘솔만 사용 시 None)
        level: 로깅 레벨
    """
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers = [console_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    return _install_handlers(handlers, level)


def setup_json_logging(
    log_file: str,
    level: int = logging.INFO,
    backup_count: int = 30,
    add_console: bool = True,
) -> logging.Logger:
    """JSON 파일 로깅 설정 (자정마다 로테이션)

    Args:
        log_file: 로그 파일 경로
        level: 로깅 레벨
        backup_count: 보관할 일별 파일 수
        add_console: 콘솔 텍스트 출력 추가 여부
    """
    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_file,
        when='midnight',
        backupCount=backup_count,
        encoding='utf-8',
    )
    file_handler.setFormatter(JSONFormatter())
    handlers = [file_handler]

    if add_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(console_handler)

    return _install_handlers(handlers, level)
