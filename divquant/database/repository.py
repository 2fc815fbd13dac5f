"""데이터베이스 저장소 모듈"""

from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from divquant.correlation.models import CorrelationRecord
from divquant.correlation.store import CorrelationRecordStore
from divquant.exceptions import PersistenceError
from divquant.utils import get_logger
from .models import CorrelationAnalysisRow
from .session import DatabaseSession

logger = get_logger(__name__)


def _to_row(record: CorrelationRecord) -> CorrelationAnalysisRow:
    return CorrelationAnalysisRow(
        session_id=record.session_id,
        ticker1=record.ticker1,
        ticker2=record.ticker2,
        correlation_3m=record.correlation_3m,
        correlation_6m=record.correlation_6m,
        correlation_1y=record.correlation_1y,
        analysis_start_date=record.analysis_start_date,
        analysis_end_date=record.analysis_end_date,
        analysis_date=record.analysis_date,
    )


def _to_record(row: CorrelationAnalysisRow) -> CorrelationRecord:
    return CorrelationRecord(
        session_id=row.session_id,
        ticker1=row.ticker1,
        ticker2=row.ticker2,
        correlation_3m=row.correlation_3m,
        correlation_6m=row.correlation_6m,
        correlation_1y=row.correlation_1y,
        analysis_start_date=row.analysis_start_date,
        analysis_end_date=row.analysis_end_date,
        analysis_date=row.analysis_date,
    )


class SqlCorrelationRepository(CorrelationRecordStore):
    """상관관계 분석 결과 저장소 (SQLAlchemy)

    모든 DB 오류는 PersistenceError로 변환되어 호출자에게 전파됩니다.
    """

    def __init__(self, db: DatabaseSession):
        self.db = db

    def delete_records(self, session_id: str) -> None:
        """세션 분석 결과 삭제"""
        try:
            with self.db.get_session() as session:
                result = session.execute(
                    delete(CorrelationAnalysisRow)
                    .where(CorrelationAnalysisRow.session_id == session_id)
                )
            logger.debug(f"분석 결과 삭제 - 세션: {session_id}, {result.rowcount}건")
        except SQLAlchemyError as e:
            logger.error(f"분석 결과 삭제 중 오류 발생: {str(e)}")
            raise PersistenceError(
                f"분석 결과 삭제 실패: {e}", operation="delete", original_error=e
            ) from e

    def insert_record(self, record: CorrelationRecord) -> None:
        self.insert_records([record])

    def insert_records(self, records: Iterable[CorrelationRecord]) -> None:
        """분석 결과 일괄 저장 (단일 트랜잭션)"""
        rows = [_to_row(record) for record in records]
        if not rows:
            return

        try:
            with self.db.get_session() as session:
                session.add_all(rows)
            logger.debug(f"분석 결과 저장: {len(rows)}건")
        except SQLAlchemyError as e:
            logger.error(f"분석 결과 저장 중 오류 발생: {str(e)}")
            raise PersistenceError(
                f"분석 결과 저장 실패: {e}", operation="insert", original_error=e
            ) from e

    def find_records(self, session_id: str) -> List[CorrelationRecord]:
        """세션 분석 결과 조회 (저장 순서)"""
        try:
            with self.db.get_session() as session:
                rows = session.scalars(
                    select(CorrelationAnalysisRow)
                    .where(CorrelationAnalysisRow.session_id == session_id)
                    .order_by(CorrelationAnalysisRow.correlation_id)
                ).all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"분석 결과 조회 중 오류 발생: {str(e)}")
            raise PersistenceError(
                f"분석 결과 조회 실패: {e}", operation="find", original_error=e
            ) from e
