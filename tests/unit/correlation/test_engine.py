"""
상관관계 분석 엔진 단위 테스트
"""

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from unittest.mock import MagicMock

import pytest

from divquant.correlation.engine import CorrelationAnalysisEngine, SessionLockRegistry
from divquant.correlation.guide import NO_ANALYSIS_RECOMMENDATION, RiskAssessment
from divquant.correlation.models import CONCRETE_WINDOWS, AnalysisWindow, RiskLevel
from divquant.correlation.store import CorrelationRecordStore, InMemoryCorrelationStore
from divquant.exceptions import (
    AnalysisError,
    InvalidRequestError,
    NoDataError,
    PairComputationError,
    PersistenceError,
)
from conftest import StubProvider

END_DATE = date(2025, 1, 2)


@pytest.fixture
def engine(stub_provider, store):
    return CorrelationAnalysisEngine(stub_provider, store)


class TestAnalyze:
    """분석 수행 테스트"""

    def test_전체_기간_분석(self, engine, store):
        result = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        assert result.session_id == 's1'
        assert result.tickers == ['X', 'Y', 'Z']
        assert result.analysis_end_date == END_DATE
        assert result.analysis_start_date == date(2024, 1, 2)
        assert set(result.correlation_matrix) == set(CONCRETE_WINDOWS)
        assert len(store.find_records('s1')) == 3

        record = store.find_records('s1')[0]
        assert (record.ticker1, record.ticker2) == ('X', 'Y')
        assert record.correlation_3m == record.correlation_6m == record.correlation_1y == 0.85

    def test_고상관_쌍과_가이드(self, engine):
        result = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        assert len(result.high_correlation_pairs) == 1
        pair = result.high_correlation_pairs[0]
        assert (pair.ticker1, pair.ticker2) == ('X', 'Y')
        assert (pair.stock_name1, pair.stock_name2) == ('엑스', '와이')
        assert pair.risk_level is RiskLevel.HIGH

        guide = result.diversification_guide
        assert guide.highly_correlated_pair_count == 1
        # (1 - 1/3) * 70 + (1 - 0.45) * 30
        assert guide.overall_diversification_score == pytest.approx(63.17, abs=0.01)
        assert guide.risk_assessment is RiskAssessment.GOOD

    def test_매트릭스_불변조건(self, engine):
        result = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        for matrix in result.correlation_matrix.values():
            for a in matrix.tickers:
                assert matrix.value(a, a) == 1.0
                for b in matrix.tickers:
                    assert matrix.value(a, b) == matrix.value(b, a)
                    assert -1.0 <= matrix.value(a, b) <= 1.0

    def test_단일_기간_분석(self, stub_provider, store):
        engine = CorrelationAnalysisEngine(stub_provider, store)
        result = engine.analyze('s1', ['X', 'Y'], window='3M', end_date=END_DATE)

        assert {call[2] for call in stub_provider.calls} == {AnalysisWindow.THREE_MONTH}
        record = store.find_records('s1')[0]
        assert record.correlation_3m == 0.85
        assert record.correlation_6m is None
        assert record.correlation_1y is None
        assert result.analysis_start_date == date(2024, 10, 2)

    def test_재분석은_기존_결과_대체(self, engine, store):
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)
        assert len(store.find_records('s1')) == 3

        engine.analyze('s1', ['X', 'Y'], end_date=END_DATE)
        assert len(store.find_records('s1')) == 1

    def test_세션_분리(self, engine, store):
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)
        engine.analyze('s2', ['X', 'Z'], end_date=END_DATE)

        assert len(store.find_records('s1')) == 3
        assert engine.get_results('s2').tickers == ['X', 'Z']
        assert engine.get_results('s1').tickers == ['X', 'Y', 'Z']

    def test_동시_분석(self, engine, store):
        """같은 세션 동시 재분석 후에도 한 번 분석한 결과와 같은 건수"""
        with ThreadPoolExecutor(max_workers=4) as executor:
            futures = [
                executor.submit(engine.analyze, 's1', ['X', 'Y', 'Z'], 'ALL', 0.7, END_DATE)
                for _ in range(8)
            ]
            for future in futures:
                future.result()

        assert len(store.find_records('s1')) == 3


class TestAnalyzeValidation:
    """요청 검증 테스트 (저장소 변경 없음)"""

    @pytest.fixture
    def mock_store(self):
        return MagicMock(spec=CorrelationRecordStore)

    @pytest.mark.parametrize("tickers,kwargs", [
        (['X'], {}),
        ([f'T{i}' for i in range(11)], {}),
        (['X', 'Y', 'X'], {}),
        (['X', ' '], {}),
        (['X', 'Y'], {'high_correlation_threshold': 1.5}),
        (['X', 'Y'], {'high_correlation_threshold': -0.1}),
        (['X', 'Y'], {'high_correlation_threshold': math.nan}),
        (['X', 'Y'], {'window': '2Y'}),
    ])
    def test_잘못된_요청(self, stub_provider, mock_store, tickers, kwargs):
        engine = CorrelationAnalysisEngine(stub_provider, mock_store)

        with pytest.raises(InvalidRequestError) as exc_info:
            engine.analyze('s1', tickers, **kwargs)

        assert exc_info.value.error_code == "INVALID_REQUEST"
        assert exc_info.value.validation_errors
        mock_store.delete_records.assert_not_called()
        mock_store.insert_records.assert_not_called()
        assert stub_provider.calls == []

    def test_최대_10개_허용(self, store):
        tickers = [f'T{i}' for i in range(10)]
        engine = CorrelationAnalysisEngine(StubProvider(), store)

        result = engine.analyze('s1', tickers, end_date=END_DATE)

        assert len(store.find_records('s1')) == 45
        assert result.tickers == tickers


class TestPairFailures:
    """종목 쌍 계산 실패 테스트"""

    def test_제공자_예외는_None으로_기록(self, store):
        provider = StubProvider({
            ('X', 'Y'): RuntimeError("boom"),
            ('X', 'Z'): PairComputationError(ticker1='X', ticker2='Z'),
            ('Y', 'Z'): 0.4,
        })
        engine = CorrelationAnalysisEngine(provider, store)

        result = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        records = {(r.ticker1, r.ticker2): r for r in store.find_records('s1')}
        assert len(records) == 3
        assert records[('X', 'Y')].correlation_1y is None
        assert records[('X', 'Z')].correlation_3m is None
        assert records[('Y', 'Z')].correlation_6m == 0.4
        assert result.correlation_matrix[AnalysisWindow.ONE_YEAR].value('X', 'Y') == 0.0

    def test_일부_기간만_실패(self, store):
        provider = StubProvider({
            ('X', 'Y'): {
                AnalysisWindow.THREE_MONTH: ValueError("short"),
                AnalysisWindow.SIX_MONTH: 0.5,
                AnalysisWindow.ONE_YEAR: 0.7,
            },
        })
        CorrelationAnalysisEngine(provider, store).analyze('s1', ['X', 'Y'], end_date=END_DATE)

        record = store.find_records('s1')[0]
        assert record.correlation_3m is None
        assert record.correlation_6m == 0.5
        assert record.correlation_1y == 0.7

    def test_유효하지_않은_값(self, store):
        provider = StubProvider({
            ('X', 'Y'): math.nan,
            ('X', 'Z'): 1.0000001,
            ('Y', 'Z'): -math.inf,
        })
        CorrelationAnalysisEngine(provider, store).analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        records = {(r.ticker1, r.ticker2): r for r in store.find_records('s1')}
        assert records[('X', 'Y')].correlation_3m is None
        assert records[('X', 'Z')].correlation_3m == 1.0
        assert records[('Y', 'Z')].correlation_1y is None

    def test_숫자가_아닌_값은_None으로_기록(self, store):
        provider = StubProvider({
            ('X', 'Y'): 'unavailable',
            ('X', 'Z'): [0.3],
            ('Y', 'Z'): '0.4',
        })
        engine = CorrelationAnalysisEngine(provider, store)

        result = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        records = {(r.ticker1, r.ticker2): r for r in store.find_records('s1')}
        assert len(records) == 3
        assert records[('X', 'Y')].correlation_3m is None
        assert records[('X', 'Z')].correlation_6m is None
        assert records[('Y', 'Z')].correlation_1y == pytest.approx(0.4)
        assert result.tickers == ['X', 'Y', 'Z']


class TestStoreFailures:
    """저장소 오류 전파 테스트"""

    def test_저장_실패_전파(self, stub_provider):
        store = MagicMock(spec=CorrelationRecordStore)
        store.insert_records.side_effect = PersistenceError("disk full", operation="insert")
        engine = CorrelationAnalysisEngine(stub_provider, store)

        with pytest.raises(PersistenceError):
            engine.analyze('s1', ['X', 'Y'], end_date=END_DATE)

    def test_예상치_못한_오류는_AnalysisError(self, stub_provider):
        store = MagicMock(spec=CorrelationRecordStore)
        store.delete_records.side_effect = RuntimeError("unexpected")
        engine = CorrelationAnalysisEngine(stub_provider, store)

        with pytest.raises(AnalysisError) as exc_info:
            engine.analyze('s1', ['X', 'Y'], end_date=END_DATE)

        assert exc_info.value.error_code == "ANALYSIS_ERROR"
        assert isinstance(exc_info.value.original_error, RuntimeError)


class TestQueries:
    """결과 조회 테스트"""

    def test_결과_없음은_빈_결과(self, engine):
        result = engine.get_results('unknown')

        assert result.tickers == []
        assert result.correlation_matrix == {}
        assert result.high_correlation_pairs == []
        assert result.diversification_guide is None
        assert result.is_empty

    def test_고상관_쌍_정렬(self, store):
        provider = StubProvider({('X', 'Y'): 0.75, ('X', 'Z'): -0.95, ('Y', 'Z'): 0.8})
        engine = CorrelationAnalysisEngine(provider, store)
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        pairs = engine.get_high_correlation_pairs('s1', 0.7)

        assert [(p.ticker1, p.ticker2) for p in pairs] == [('X', 'Z'), ('Y', 'Z'), ('X', 'Y')]
        assert pairs[0].stock_name1 is None
        assert engine.get_high_correlation_pairs('s1', 0.99) == []

    def test_가이드_결과_없음(self, engine):
        guide = engine.generate_diversification_guide('unknown')
        assert guide.recommendations == [NO_ANALYSIS_RECOMMENDATION]
        assert guide.overall_diversification_score == 0.0

    def test_히트맵(self, engine):
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        heatmap = engine.generate_heatmap('s1')
        assert heatmap.labels == ['X', 'Y', 'Z']
        assert heatmap.period('1Y').matrix[0][1] == 0.85

        subset = engine.generate_heatmap('s1', ['Z', 'X'])
        assert subset.labels == ['Z', 'X']
        assert subset.period('3M').matrix[0][1] == 0.2

    def test_히트맵_결과_없음(self, engine):
        with pytest.raises(NoDataError) as exc_info:
            engine.generate_heatmap('unknown')
        assert exc_info.value.error_code == "NO_DATA"

    def test_결과_삭제(self, engine, store):
        engine.analyze('s1', ['X', 'Y'], end_date=END_DATE)
        engine.clear_results('s1')

        assert store.find_records('s1') == []
        assert engine.get_results('s1').is_empty

    def test_to_dict(self, engine):
        data = engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE).to_dict()

        assert data['tickers'] == ['X', 'Y', 'Z']
        assert set(data['correlation_matrix']) == {'3M', '6M', '1Y'}
        assert data['correlation_matrix']['1Y']['X']['Y'] == 0.85
        assert data['high_correlation_pairs'][0]['risk_level'] == 'HIGH'
        assert data['diversification_guide']['risk_assessment'] == 'GOOD'


class PausingStore(InMemoryCorrelationStore):
    """첫 번째 결과 조회를 resume 신호가 올 때까지 멈추는 저장소"""

    def __init__(self):
        super().__init__()
        self.reading = threading.Event()
        self.resume = threading.Event()

    def find_records(self, session_id):
        if not self.reading.is_set():
            self.reading.set()
            self.resume.wait(timeout=5)
        return super().find_records(session_id)


class TestSessionLocking:
    """세션 잠금 테스트"""

    def test_결과_조회까지_세션_잠금_유지(self):
        store = PausingStore()
        engine = CorrelationAnalysisEngine(StubProvider(), store)

        with ThreadPoolExecutor(max_workers=2) as executor:
            first = executor.submit(engine.analyze, 's1', ['A', 'B'], 'ALL', 0.7, END_DATE)
            assert store.reading.wait(timeout=5)

            second = executor.submit(engine.analyze, 's1', ['C', 'D'], 'ALL', 0.7, END_DATE)
            time.sleep(0.2)
            assert not second.done()

            store.resume.set()
            assert first.result(timeout=5).tickers == ['A', 'B']
            assert second.result(timeout=5).tickers == ['C', 'D']

    def test_사용이_끝난_잠금은_제거(self, engine):
        engine.analyze('s1', ['X', 'Y'], end_date=END_DATE)
        engine.analyze('s2', ['X', 'Z'], end_date=END_DATE)
        engine.clear_results('s1')

        assert len(engine.session_locks) == 0

    def test_대기_중에는_잠금_유지(self):
        registry = SessionLockRegistry()
        entered = threading.Event()
        release = threading.Event()

        def hold_s1():
            with registry.hold('s1'):
                entered.set()
                release.wait(timeout=5)

        with ThreadPoolExecutor(max_workers=2) as executor:
            holder = executor.submit(hold_s1)
            assert entered.wait(timeout=5)
            waiter = executor.submit(hold_s1)
            time.sleep(0.1)
            assert len(registry) == 1

            release.set()
            holder.result(timeout=5)
            waiter.result(timeout=5)

        assert len(registry) == 0

    def test_공유_레지스트리(self, stub_provider, store):
        registry = SessionLockRegistry()
        engine = CorrelationAnalysisEngine(stub_provider, store, session_locks=registry)
        assert engine.session_locks is registry


class TestThresholdValidation:
    """조회 임계값 검증 테스트"""

    @pytest.mark.parametrize("threshold", [1.5, -0.1, math.nan, math.inf])
    @pytest.mark.parametrize("method", [
        'get_results',
        'get_high_correlation_pairs',
        'generate_diversification_guide',
    ])
    def test_잘못된_임계값(self, stub_provider, method, threshold):
        store = MagicMock(spec=CorrelationRecordStore)
        engine = CorrelationAnalysisEngine(stub_provider, store)

        with pytest.raises(InvalidRequestError) as exc_info:
            getattr(engine, method)('s1', threshold)

        assert exc_info.value.error_code == "INVALID_REQUEST"
        store.find_records.assert_not_called()
        store.find_high_correlation.assert_not_called()

    def test_경계값_허용(self, engine):
        engine.analyze('s1', ['X', 'Y', 'Z'], end_date=END_DATE)

        assert len(engine.get_high_correlation_pairs('s1', 0.0)) == 3
        assert engine.get_high_correlation_pairs('s1', 1.0) == []
        assert engine.get_results('s1', 1.0).diversification_guide.highly_correlated_pair_count == 0
