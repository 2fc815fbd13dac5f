"""
상관계수 데이터 제공자

두 종목의 기간 내 일수익률 피어슨 상관계수와 종목명을 제공합니다.
"""

import logging  # tenacity의 before_sleep_log에서 logging.WARNING 사용
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Iterable, Optional

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from divquant.config.correlation_config import (
    MIN_OBSERVATIONS,
    PROVIDER_MAX_RETRIES,
    PROVIDER_RETRY_WAIT,
)
from divquant.exceptions import PairComputationError
from divquant.utils.log_utils import get_logger

logger = get_logger(__name__)


class CorrelationDataProvider(ABC):
    """상관계수 데이터 제공자 인터페이스"""

    @abstractmethod
    def pearson_correlation(
        self,
        ticker1: str,
        ticker2: str,
        start_date: date,
        end_date: date
    ) -> Optional[float]:
        """기간 내 피어슨 상관계수 (데이터 부족 시 None)"""
        pass

    @abstractmethod
    def display_names(self, tickers: Iterable[str]) -> Dict[str, str]:
        """{종목코드: 종목명} (모르는 종목은 생략)"""
        pass


def pearson_from_closes(
    closes1: pd.Series,
    closes2: pd.Series,
    min_observations: int = MIN_OBSERVATIONS
) -> Optional[float]:
    """종가 시계열 두 개로부터 일수익률 상관계수 계산

    공통 거래일의 수익률이 min_observations 미만이면 None.
    """
    aligned = pd.DataFrame({
        'stock1': closes1.pct_change(fill_method=None),
        'stock2': closes2.pct_change(fill_method=None),
    }).dropna()

    if len(aligned) < min_observations:
        return None

    corr = aligned['stock1'].corr(aligned['stock2'])
    if pd.isna(corr):
        return None
    return float(corr)


class PriceFrameCorrelationProvider(CorrelationDataProvider):
    """
    종가 DataFrame 기반 제공자

    index는 날짜, 컬럼은 종목코드인 wide 형식 종가 데이터를 사용합니다.
    """

    def __init__(
        self,
        prices: pd.DataFrame,
        names: Optional[Dict[str, str]] = None,
        min_observations: int = MIN_OBSERVATIONS
    ):
        """
        Args:
            prices: 종가 DataFrame (index: 날짜, columns: 종목코드)
            names: {종목코드: 종목명}
            min_observations: 최소 공통 수익률 관측치
        """
        frame = prices.copy()
        frame.index = pd.to_datetime(frame.index)
        self.prices = frame.sort_index()
        self.names = dict(names or {})
        self.min_observations = min_observations

    @classmethod
    def from_csv(cls, path: str, **kwargs) -> "PriceFrameCorrelationProvider":
        """첫 컬럼이 날짜인 CSV 파일에서 생성"""
        prices = pd.read_csv(path, index_col=0, parse_dates=True)
        prices.columns = [str(column) for column in prices.columns]
        return cls(prices, **kwargs)

    def pearson_correlation(self, ticker1, ticker2, start_date, end_date):
        if ticker1 not in self.prices.columns or ticker2 not in self.prices.columns:
            logger.debug(f"가격 데이터 없음: {ticker1} / {ticker2}")
            return None

        window = self.prices.loc[pd.Timestamp(start_date):pd.Timestamp(end_date), [ticker1, ticker2]]
        return pearson_from_closes(window[ticker1], window[ticker2], self.min_observations)

    def display_names(self, tickers):
        return {ticker: self.names[ticker] for ticker in tickers if ticker in self.names}


class DatabaseCorrelationProvider(CorrelationDataProvider):
    """
    DB 가격 테이블 기반 제공자

    stocks/prices 테이블에서 종가를 읽어 상관계수를 계산합니다.
    일시적인 DB 오류는 재시도하고, 재시도 실패 시 PairComputationError를 발생시킵니다.
    """

    def __init__(self, db_session, min_observations: int = MIN_OBSERVATIONS):
        """
        Args:
            db_session: DatabaseSession
            min_observations: 최소 공통 수익률 관측치
        """
        self.db = db_session
        self.min_observations = min_observations

    def pearson_correlation(self, ticker1, ticker2, start_date, end_date):
        try:
            closes1 = self._load_closes(ticker1, start_date, end_date)
            closes2 = self._load_closes(ticker2, start_date, end_date)
        except SQLAlchemyError as e:
            raise PairComputationError(
                f"가격 데이터 조회 실패: {e}",
                ticker1=ticker1,
                ticker2=ticker2,
                original_error=e,
            ) from e

        if closes1.empty or closes2.empty:
            return None

        return pearson_from_closes(closes1, closes2, self.min_observations)

    def display_names(self, tickers):
        from divquant.database.models import Stock

        codes = list(tickers)
        if not codes:
            return {}

        try:
            with self.db.get_session() as session:
                rows = session.execute(
                    select(Stock.code, Stock.name).where(Stock.code.in_(codes))
                ).all()
        except SQLAlchemyError as e:
            logger.error(f"종목명 조회 중 오류 발생: {str(e)}")
            return {}

        return {code: name for code, name in rows}

    @retry(
        stop=stop_after_attempt(PROVIDER_MAX_RETRIES),
        wait=wait_exponential(multiplier=PROVIDER_RETRY_WAIT, max=5),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _load_closes(self, ticker: str, start_date: date, end_date: date) -> pd.Series:
        """기간 내 종가 시계열 (날짜 오름차순)"""
        from divquant.database.models import Price, Stock

        with self.db.get_session() as session:
            rows = session.execute(
                select(Price.date, Price.close_price)
                .join(Stock, Price.stock_id == Stock.id)
                .where(
                    Stock.code == ticker,
                    Price.date >= start_date,
                    Price.date <= end_date,
                )
                .order_by(Price.date)
            ).all()

        if not rows:
            return pd.Series(dtype=float)

        return pd.Series(
            [float(close) for _, close in rows],
            index=pd.to_datetime([day for day, _ in rows]),
            dtype=float,
        )
