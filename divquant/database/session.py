"""
Database session management module.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from divquant.config import settings
from divquant.utils import get_logger
from .models import Base

logger = get_logger(__name__)


class DatabaseSession:
    """데이터베이스 세션 관리"""

    def __init__(self, database_url: Optional[str] = None):
        """
        Args:
            database_url: SQLAlchemy URL (없으면 settings.get_database_url())
        """
        self.database_url = database_url or settings.get_database_url()
        self._init_database()
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _init_database(self):
        """데이터베이스 초기화"""
        try:
            url = make_url(self.database_url)
            connect_args = {}

            if url.get_backend_name() == 'sqlite':
                connect_args['check_same_thread'] = False
                if url.database and url.database != ':memory:':
                    Path(url.database).parent.mkdir(parents=True, exist_ok=True)

            self.engine = create_engine(self.database_url, connect_args=connect_args)

            Base.metadata.create_all(self.engine)
            logger.info(f"데이터베이스 연결 완료 - {self.database_url}")

        except SQLAlchemyError as e:
            logger.error(f"데이터베이스 오류 발생: {str(e)}")
            raise

    @contextmanager
    def get_session(self) -> Session:
        """
        세션 컨텍스트 매니저

        Yields:
            Session: SQLAlchemy 세션
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self):
        """데이터베이스 연결 종료"""
        self.engine.dispose()
        logger.info("데이터베이스 연결 종료")
