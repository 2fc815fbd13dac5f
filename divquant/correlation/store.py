"""
상관관계 레코드 저장소 인터페이스

엔진은 이 인터페이스에만 의존하며, 구현체는 생성 시 주입됩니다.
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List

from divquant.utils.log_utils import get_logger
from .models import CorrelationRecord, is_high_correlation

logger = get_logger(__name__)


class CorrelationRecordStore(ABC):
    """상관관계 레코드 저장소 인터페이스

    구현체는 세션 간 레코드가 섞이지 않도록 보장해야 하며,
    저장소 장애는 PersistenceError로 알려야 합니다.
    """

    @abstractmethod
    def delete_records(self, session_id: str) -> None:
        """세션의 분석 결과 전체 삭제"""
        pass

    @abstractmethod
    def insert_record(self, record: CorrelationRecord) -> None:
        """레코드 1건 저장"""
        pass

    def insert_records(self, records: Iterable[CorrelationRecord]) -> None:
        """레코드 일괄 저장"""
        for record in records:
            self.insert_record(record)

    @abstractmethod
    def find_records(self, session_id: str) -> List[CorrelationRecord]:
        """세션의 레코드 조회 (저장 순서)"""
        pass

    def find_high_correlation(self, session_id: str, threshold: float) -> List[CorrelationRecord]:
        """평균 |상관계수| >= threshold 인 레코드 조회"""
        return [
            record for record in self.find_records(session_id)
            if is_high_correlation(record, threshold)
        ]


class InMemoryCorrelationStore(CorrelationRecordStore):
    """메모리 기반 저장소 (테스트, 단일 프로세스 CLI용)"""

    def __init__(self):
        self._records: Dict[str, List[CorrelationRecord]] = defaultdict(list)
        self._lock = threading.Lock()

    def delete_records(self, session_id: str) -> None:
        with self._lock:
            removed = len(self._records.pop(session_id, []))
        logger.debug(f"분석 결과 삭제 - 세션: {session_id}, {removed}건")

    def insert_record(self, record: CorrelationRecord) -> None:
        with self._lock:
            self._records[record.session_id].append(record)

    def find_records(self, session_id: str) -> List[CorrelationRecord]:
        with self._lock:
            return list(self._records.get(session_id, []))
