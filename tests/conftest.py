"""
Pytest configuration file.
"""

import os
import sys
from datetime import date
from pathlib import Path

import pytest

# 프로젝트 루트 디렉토리를 Python 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from divquant.correlation.models import AnalysisWindow, CorrelationRecord  # noqa: E402
from divquant.correlation.providers import CorrelationDataProvider  # noqa: E402
from divquant.correlation.store import InMemoryCorrelationStore  # noqa: E402


# 테스트용 데이터베이스 설정
@pytest.fixture(autouse=True)
def test_db(tmp_path, monkeypatch):
    """테스트용 데이터베이스 설정 (테스트마다 임시 SQLite)"""
    monkeypatch.setenv('DB_PATH', str(tmp_path / 'test.db'))
    monkeypatch.setenv('DATABASE_URL', f"sqlite:///{tmp_path / 'test.db'}")
    yield


class StubProvider(CorrelationDataProvider):
    """
    고정 상관계수를 반환하는 테스트용 제공자

    values: {(ticker1, ticker2): 값}
        값은 float/None (모든 기간 동일), {AnalysisWindow: 값} (기간별),
        또는 Exception 인스턴스 (호출 시 발생)
    """

    def __init__(self, values=None, names=None):
        self.values = {frozenset(pair): value for pair, value in (values or {}).items()}
        self.names = dict(names or {})
        self.calls = []

    @staticmethod
    def window_of(start_date: date, end_date: date) -> AnalysisWindow:
        days = (end_date - start_date).days
        if days <= 100:
            return AnalysisWindow.THREE_MONTH
        if days <= 200:
            return AnalysisWindow.SIX_MONTH
        return AnalysisWindow.ONE_YEAR

    def pearson_correlation(self, ticker1, ticker2, start_date, end_date):
        window = self.window_of(start_date, end_date)
        self.calls.append((ticker1, ticker2, window))

        value = self.values.get(frozenset((ticker1, ticker2)))
        if isinstance(value, Exception):
            raise value
        if isinstance(value, dict):
            value = value.get(window)
            if isinstance(value, Exception):
                raise value
        return value

    def display_names(self, tickers):
        return {ticker: self.names[ticker] for ticker in tickers if ticker in self.names}


def make_record(ticker1, ticker2, c3m=None, c6m=None, c1y=None, session_id='s1'):
    """테스트용 레코드 생성"""
    return CorrelationRecord(
        session_id=session_id,
        ticker1=ticker1,
        ticker2=ticker2,
        correlation_3m=c3m,
        correlation_6m=c6m,
        correlation_1y=c1y,
        analysis_start_date=date(2024, 1, 2),
        analysis_end_date=date(2025, 1, 2),
        analysis_date=date(2025, 1, 2),
    )


@pytest.fixture
def store():
    """메모리 저장소"""
    return InMemoryCorrelationStore()


@pytest.fixture
def scenario_values():
    """X-Y 고상관(0.85), X-Z/Y-Z 저상관"""
    return {
        ('X', 'Y'): 0.85,
        ('X', 'Z'): 0.2,
        ('Y', 'Z'): 0.3,
    }


@pytest.fixture
def stub_provider(scenario_values):
    return StubProvider(scenario_values, names={'X': '엑스', 'Y': '와이', 'Z': '제트'})


@pytest.fixture
def scenario_records():
    """세 기간 모두 같은 값을 갖는 X/Y/Z 레코드"""
    return [
        make_record('X', 'Y', 0.85, 0.85, 0.85),
        make_record('X', 'Z', 0.2, 0.2, 0.2),
        make_record('Y', 'Z', 0.3, 0.3, 0.3),
    ]
