"""
Database models for DivQuant.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, Date, Numeric
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


class Stock(Base):
    """주식 종목 정보"""
    __tablename__ = 'stocks'

    id = Column(Integer, primary_key=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    market = Column(String(20))
    sector = Column(String(50))  # 섹터
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    prices = relationship('Price', back_populates='stock')

    def __repr__(self):
        return f"<Stock(code='{self.code}', name='{self.name}')>"


class Price(Base):
    """일별 종가 정보"""
    __tablename__ = 'prices'

    id = Column(Integer, primary_key=True)
    stock_id = Column(Integer, ForeignKey('stocks.id'), nullable=False)
    date = Column(Date, nullable=False)
    close_price = Column(Numeric(14, 2), nullable=False)
    volume = Column(Integer)

    stock = relationship('Stock', back_populates='prices')

    __table_args__ = (
        Index('ix_prices_stock_date', 'stock_id', 'date', unique=True),
    )


class CorrelationAnalysisRow(Base):
    """종목 쌍 상관관계 분석 결과"""
    __tablename__ = 'correlation_analysis'

    correlation_id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(64), nullable=False)
    ticker1 = Column(String(20), nullable=False)
    ticker2 = Column(String(20), nullable=False)

    # 기간별 상관계수 (데이터 부족 시 NULL)
    correlation_3m = Column(Float)
    correlation_6m = Column(Float)
    correlation_1y = Column(Float)

    analysis_start_date = Column(Date)
    analysis_end_date = Column(Date)
    analysis_date = Column(Date)
    created_at = Column(DateTime, default=datetime.now)

    __table_args__ = (
        Index('ix_correlation_session', 'session_id'),
        Index('ix_correlation_session_pair', 'session_id', 'ticker1', 'ticker2'),
    )

    def __repr__(self):
        return (
            f"<CorrelationAnalysisRow(session_id='{self.session_id}', "
            f"pair='{self.ticker1}-{self.ticker2}')>"
        )
