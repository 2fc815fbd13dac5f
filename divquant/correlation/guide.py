"""
분산투자 가이드 모듈

종목 쌍 통계로부터 포트폴리오 분산 점수, 위험 평가, 권고/경고 문구를 생성합니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence

import numpy as np

from divquant.config import correlation_config as cfg
from divquant.utils.log_utils import get_logger
from .models import CorrelationRecord, average_correlation, is_high_correlation

logger = get_logger(__name__)


class RiskAssessment(str, Enum):
    """분산투자 등급"""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"

    @classmethod
    def from_score(cls, score: float) -> "RiskAssessment":
        if score >= cfg.EXCELLENT_SCORE:
            return cls.EXCELLENT
        elif score >= cfg.GOOD_SCORE:
            return cls.GOOD
        elif score >= cfg.FAIR_SCORE:
            return cls.FAIR
        return cls.POOR


NO_ANALYSIS_RECOMMENDATION = "상관관계 분석을 먼저 수행해주세요."

RECOMMENDATIONS = {
    RiskAssessment.EXCELLENT: [
        "우수한 분산투자 포트폴리오입니다. 현재 구성을 유지하세요.",
    ],
    RiskAssessment.GOOD: [
        "양호한 분산투자 수준입니다. 일부 종목 조정을 고려해보세요.",
    ],
    RiskAssessment.FAIR: [
        "분산투자 효과가 제한적입니다. 상관관계가 낮은 종목으로 교체를 검토하세요.",
        "다양한 업종의 종목을 추가로 고려해보세요.",
    ],
    RiskAssessment.POOR: [
        "분산투자 수준이 낮습니다. 포트폴리오 재구성이 필요합니다.",
        "상관관계가 높은 종목들을 서로 다른 업종의 종목으로 교체하세요.",
        "국내외 다양한 시장의 자산을 고려해보세요.",
    ],
}

CROWDED_RECOMMENDATION = "높은 상관관계 종목 쌍이 많습니다. 포트폴리오 다각화를 강화하세요."


@dataclass
class DiversificationGuide:
    """분산투자 가이드라인"""
    overall_diversification_score: float = 0.0  # 0~100점
    risk_assessment: RiskAssessment = RiskAssessment.POOR
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    highly_correlated_pair_count: int = 0
    average_correlation: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'overall_diversification_score': self.overall_diversification_score,
            'risk_assessment': self.risk_assessment.value,
            'recommendations': list(self.recommendations),
            'warnings': list(self.warnings),
            'highly_correlated_pair_count': self.highly_correlated_pair_count,
            'average_correlation': self.average_correlation,
        }


class DiversificationGuideGenerator:
    """
    분산투자 가이드 생성기

    점수 = (1 - 고상관 쌍 비율) x 70 + (1 - 평균 |상관계수|) x 30, 0~100으로 제한
    """

    def generate_guide(
        self,
        records: Sequence[CorrelationRecord],
        threshold: float
    ) -> DiversificationGuide:
        """
        분산투자 가이드 생성

        Args:
            records: 세션의 종목 쌍 레코드
            threshold: 높은 상관관계 기준

        Returns:
            DiversificationGuide: 가이드라인 (레코드가 없으면 분석 요청 안내)
        """
        if not records:
            return DiversificationGuide(
                overall_diversification_score=0.0,
                risk_assessment=RiskAssessment.POOR,
                recommendations=[NO_ANALYSIS_RECOMMENDATION],
                warnings=[],
            )

        high_count = sum(1 for record in records if is_high_correlation(record, threshold))
        high_ratio = high_count / len(records)
        mean_abs = self._mean_abs_average(records)

        score = self.calculate_score(high_ratio, mean_abs)
        assessment = RiskAssessment.from_score(score)

        logger.debug(
            f"분산투자 가이드: 점수={score:.2f}, 등급={assessment.value}, "
            f"고상관 {high_count}/{len(records)}쌍"
        )

        return DiversificationGuide(
            overall_diversification_score=round(score, 2),
            risk_assessment=assessment,
            recommendations=self._generate_recommendations(assessment, high_ratio),
            warnings=self._generate_warnings(records),
            highly_correlated_pair_count=high_count,
            average_correlation=round(mean_abs, 3),
        )

    @staticmethod
    def calculate_score(high_ratio: float, mean_abs_correlation: float) -> float:
        """분산점수 계산 (0~100점)"""
        base_score = (1.0 - high_ratio) * cfg.GUIDE_RATIO_WEIGHT
        bonus_score = (1.0 - mean_abs_correlation) * cfg.GUIDE_CORRELATION_WEIGHT
        return float(np.clip(base_score + bonus_score, 0.0, 100.0))

    @staticmethod
    def _mean_abs_average(records: Sequence[CorrelationRecord]) -> float:
        """평균 상관계수가 있는 레코드의 |평균| 평균 (없으면 0.0)"""
        values = [abs(avg) for avg in map(average_correlation, records) if avg is not None]
        if not values:
            return 0.0
        return float(np.mean(values))

    @staticmethod
    def _generate_recommendations(assessment: RiskAssessment, high_ratio: float) -> List[str]:
        recommendations = list(RECOMMENDATIONS[assessment])
        if high_ratio > cfg.CROWDED_PAIR_RATIO:
            recommendations.append(CROWDED_RECOMMENDATION)
        return recommendations

    @staticmethod
    def _generate_warnings(records: Sequence[CorrelationRecord]) -> List[str]:
        warnings = []
        averages = [avg for avg in map(average_correlation, records) if avg is not None]

        very_high = sum(1 for avg in averages if abs(avg) >= cfg.VERY_HIGH_CORRELATION)
        if very_high > 0:
            warnings.append(
                f"매우 높은 상관관계({cfg.VERY_HIGH_CORRELATION} 이상) 종목 쌍이 {very_high}개 있습니다. "
                f"중복 리스크가 높습니다."
            )

        negative = sum(1 for avg in averages if avg <= cfg.NEGATIVE_CORRELATION)
        if negative > 0:
            warnings.append(
                f"음의 상관관계 종목 쌍이 {negative}개 있습니다. 헤지 효과를 기대할 수 있습니다."
            )

        return warnings
