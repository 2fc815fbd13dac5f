"""
Configuration management module.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()

# 프로젝트 디렉토리 설정
ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv('DIVQUANT_DATA_DIR', ROOT_DIR / 'data'))

DB_DIR = DATA_DIR / 'db'
LOG_DIR = Path(os.getenv('LOG_DIR', ROOT_DIR / 'logs'))

# 데이터베이스 설정
# 환경변수 DATABASE_URL이 있으면 사용 (PostgreSQL 등)
# 없으면 기본 SQLite 사용 (로컬 개발용)
DB_FILENAME = 'correlation.db'
DB_PATH = Path(os.getenv('DB_PATH', DB_DIR / DB_FILENAME))
SQLITE_URL = f"sqlite:///{DB_PATH.absolute()}"


def get_database_url() -> str:
    """DATABASE_URL 반환 (환경변수 우선, 기본 SQLite)"""
    return os.getenv('DATABASE_URL', '') or SQLITE_URL


# 로깅 설정
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
JSON_LOGGING = os.getenv('JSON_LOGGING', 'false').lower() in ('1', 'true', 'yes')
