"""
로깅 유틸리티 테스트

테스트 항목:
1. JSONFormatter JSON 출력
2. TraceIdContext (trace_id, session_id)
3. 로그 로테이션 설정
"""

import json
import logging
import logging.handlers
import sys
from datetime import date

import pytest

from divquant.correlation.engine import CorrelationAnalysisEngine
from divquant.utils.log_utils import (
    JSONFormatter,
    TraceIdContext,
    get_logger,
    setup_json_logging,
    setup_logging,
)


def _record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """루트 로거 핸들러 복원"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestJSONFormatter:
    """JSONFormatter 테스트"""

    def test_basic_format(self):
        data = json.loads(JSONFormatter().format(_record("분석 시작")))

        assert data['level'] == 'INFO'
        assert data['logger'] == 'test_logger'
        assert data['message'] == '분석 시작'
        assert 'timestamp' in data
        assert 'trace_id' not in data
        assert 'session_id' not in data

    def test_format_with_trace_context(self):
        with TraceIdContext("test123", session_id="s1"):
            data = json.loads(JSONFormatter().format(_record("msg")))
        assert data['trace_id'] == 'test123'
        assert data['session_id'] == 's1'

    def test_extra_session_id_우선(self):
        with TraceIdContext(session_id="s1"):
            data = json.loads(JSONFormatter().format(_record("msg", session_id="s2")))
        assert data['session_id'] == 's2'

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("실패", level=logging.ERROR)
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert 'ValueError: boom' in data['exception']


class TestTraceIdContext:
    """추적 컨텍스트 테스트"""

    def test_중첩_후_복원(self):
        formatter = JSONFormatter()
        with TraceIdContext("outer", session_id="s1") as outer:
            assert outer == "outer"
            with TraceIdContext() as inner:
                assert len(inner) == 8
                data = json.loads(formatter.format(_record("inner")))
                assert data['trace_id'] == inner
                assert data['session_id'] == 's1'
            data = json.loads(formatter.format(_record("outer")))
            assert data['trace_id'] == 'outer'

        assert 'trace_id' not in json.loads(formatter.format(_record("after")))

    def test_분석_로그에_세션_기록(self, tmp_path, restore_root_logger, stub_provider, store):
        log_file = tmp_path / 'divquant.json.log'
        setup_json_logging(str(log_file), add_console=False)

        CorrelationAnalysisEngine(stub_provider, store).analyze(
            's1', ['X', 'Y'], end_date=date(2025, 1, 2)
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text(encoding='utf-8').splitlines()]
        engine_lines = [line for line in lines if line['logger'] == 'divquant.correlation.engine']
        assert engine_lines
        assert all(line['session_id'] == 's1' for line in engine_lines)
        assert len({line['trace_id'] for line in engine_lines}) == 1


class TestSetup:
    """로깅 설정 테스트"""

    def test_setup_json_logging(self, tmp_path, restore_root_logger):
        log_file = tmp_path / 'divquant.json.log'
        root = setup_json_logging(str(log_file), add_console=False)

        handlers = [h for h in root.handlers if isinstance(h, logging.handlers.TimedRotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].backupCount == 30

        get_logger("divquant.test").info("json 로그")
        handlers[0].flush()
        line = log_file.read_text(encoding='utf-8').strip().splitlines()[-1]
        assert json.loads(line)['message'] == "json 로그"

    def test_setup_logging_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / 'divquant.log'
        setup_logging(str(log_file), level=logging.DEBUG)

        get_logger("divquant.test").debug("디버그 로그")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "디버그 로그" in log_file.read_text(encoding='utf-8')
