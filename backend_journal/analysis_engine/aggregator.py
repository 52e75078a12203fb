"""
Overall metrics: weighted probability, confidence and risk across timeframes.

Higher timeframes carry more weight; confidence rewards timeframes that agree
on direction, and risk combines agreement with the weighted probability.
"""

from __future__ import annotations

from typing import Iterable

from backend_journal.analysis_engine.models import (
    OverallMetrics,
    RiskLevel,
    Sentiment,
    TimeframeResult,
)
from backend_journal.analysis_engine.scorer import NEUTRAL_SCORE, round_half_up

TIMEFRAME_WEIGHTS: dict[str, float] = {
    "DAILY": 0.35,
    "W1": 0.25,
    "H4": 0.20,
    "H1": 0.10,
    "M15": 0.05,
    "H8": 0.15,
    "H2": 0.15,
    "M30": 0.08,
    "M10": 0.03,
    "MN1": 0.30,
}
DEFAULT_TIMEFRAME_WEIGHT = 0.10

CONSISTENCY_BONUS = 30
LOW_RISK_MIN_CONSISTENCY = 0.8
LOW_RISK_MIN_PROBABILITY = 70
HIGH_RISK_MAX_CONSISTENCY = 0.5
HIGH_RISK_MAX_PROBABILITY = 30


def timeframe_weight(timeframe: str) -> float:
    return TIMEFRAME_WEIGHTS.get(timeframe, DEFAULT_TIMEFRAME_WEIGHT)


def classify_risk(sentiment_consistency: float, overall_probability: float) -> RiskLevel:
    """LOW is checked first, then HIGH; everything else is MEDIUM."""
    if sentiment_consistency > LOW_RISK_MIN_CONSISTENCY and overall_probability > LOW_RISK_MIN_PROBABILITY:
        return RiskLevel.LOW
    if sentiment_consistency < HIGH_RISK_MAX_CONSISTENCY or overall_probability < HIGH_RISK_MAX_PROBABILITY:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def aggregate(results: Iterable[TimeframeResult]) -> OverallMetrics:
    """
    Combine timeframe results into overall metrics.

    Empty input yields probability 50, confidence 50 and HIGH risk
    (zero consistency).
    """
    results = list(results)
    total_weight = 0.0
    weighted_sum = 0.0
    bullish_count = 0
    bearish_count = 0

    for result in results:
        weight = timeframe_weight(result.timeframe)
        total_weight += weight
        weighted_sum += result.score * weight
        if result.sentiment == Sentiment.BULLISH:
            bullish_count += 1
        elif result.sentiment == Sentiment.BEARISH:
            bearish_count += 1

    overall_probability = (
        round_half_up(weighted_sum / total_weight) if total_weight > 0 else NEUTRAL_SCORE
    )
    total_timeframes = len(results)
    sentiment_consistency = (
        max(bullish_count, bearish_count) / total_timeframes if total_timeframes > 0 else 0.0
    )
    confidence_level = round_half_up(overall_probability + sentiment_consistency * CONSISTENCY_BONUS)
    confidence_level = max(0.0, min(100.0, confidence_level))

    return OverallMetrics(
        overall_probability=overall_probability,
        confidence_level=confidence_level,
        risk_level=classify_risk(sentiment_consistency, overall_probability),
        details={
            "total_weight": total_weight,
            "bullish_count": bullish_count,
            "bearish_count": bearish_count,
            "sentiment_consistency": sentiment_consistency,
        },
    )
