"""
상관관계 분석 설정

분석 요청 검증, 분산투자 가이드, 그리디 선택에서 공통으로 사용하는 상수입니다.
"""

# 분석 대상 종목 수
MIN_TICKERS = 2
MAX_TICKERS = 10

# 높은 상관관계 기준
DEFAULT_HIGH_CORRELATION_THRESHOLD = 0.7
MEDIUM_RISK_FACTOR = 0.7  # threshold * 0.7 이상이면 MEDIUM

# 분산 최적화 기본값
DEFAULT_TARGET_STOCK_COUNT = 5
DEFAULT_ANALYSIS_WINDOW = '1Y'
OPTIMIZATION_ALGORITHM = "Greedy Algorithm with Correlation Threshold"

# 분산투자 가이드 점수 (0~100)
GUIDE_RATIO_WEIGHT = 70.0       # (1 - 고상관 비율) 가중치
GUIDE_CORRELATION_WEIGHT = 30.0  # (1 - 평균 |상관계수|) 가중치
EXCELLENT_SCORE = 80.0
GOOD_SCORE = 60.0
FAIR_SCORE = 40.0
CROWDED_PAIR_RATIO = 0.5  # 고상관 쌍 비율이 이보다 크면 추가 권고

# 경고 기준
VERY_HIGH_CORRELATION = 0.9
NEGATIVE_CORRELATION = -0.3

# 데이터 제공자
MIN_OBSERVATIONS = 10     # 최소 공통 수익률 관측치
PROVIDER_MAX_RETRIES = 3  # DB 조회 최대 재시도 횟수
PROVIDER_RETRY_WAIT = 0.5  # 재시도 기본 대기 (초)

UNKNOWN_STOCK_NAME = "알 수 없음"
