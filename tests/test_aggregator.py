"""
Overall metrics: weighted probability, confidence bonus and risk thresholds.
"""

from __future__ import annotations

import pytest

from backend_journal.analysis_engine import RiskLevel, Sentiment, TimeframeResult, aggregate
from backend_journal.analysis_engine.aggregator import classify_risk, timeframe_weight


def _r(timeframe: str, score: float, sentiment: Sentiment) -> TimeframeResult:
    return TimeframeResult(timeframe=timeframe, score=score, sentiment=sentiment, strength=0.0)


def test_empty_input():
    m = aggregate([])
    assert m.overall_probability == 50.0
    assert m.confidence_level == 50.0
    assert m.risk_level == RiskLevel.HIGH


def test_single_timeframe():
    m = aggregate([_r("DAILY", 70.0, Sentiment.BULLISH)])
    assert m.overall_probability == 70.0
    assert m.confidence_level == 100.0
    # probability must be strictly above 70 for LOW
    assert m.risk_level == RiskLevel.MEDIUM


def test_weighted_agreeing_timeframes():
    m = aggregate([_r("DAILY", 80.0, Sentiment.BULLISH), _r("H4", 60.0, Sentiment.BULLISH)])
    # (0.35*80 + 0.20*60) / 0.55
    assert m.overall_probability == pytest.approx(72.7)
    assert m.confidence_level == 100.0
    assert m.risk_level == RiskLevel.LOW
    assert m.details["sentiment_consistency"] == 1.0


def test_disagreeing_timeframes():
    m = aggregate([_r("DAILY", 80.0, Sentiment.BULLISH), _r("H1", 30.0, Sentiment.BEARISH)])
    # (28 + 3) / 0.45
    assert m.overall_probability == pytest.approx(68.9)
    assert m.confidence_level == pytest.approx(83.9)
    assert m.risk_level == RiskLevel.MEDIUM


def test_unknown_timeframe_uses_default_weight():
    assert timeframe_weight("H12") == 0.10
    m = aggregate([_r("H12", 40.0, Sentiment.BEARISH), _r("M5", 60.0, Sentiment.BULLISH)])
    assert m.overall_probability == pytest.approx(50.0)
    assert m.confidence_level == pytest.approx(65.0)


def test_neutral_timeframes_lower_consistency():
    m = aggregate(
        [
            _r("DAILY", 60.0, Sentiment.BULLISH),
            _r("H4", 45.0, Sentiment.BEARISH),
            _r("H1", 50.0, Sentiment.NEUTRAL),
        ]
    )
    assert m.details["sentiment_consistency"] == pytest.approx(1 / 3)
    assert m.risk_level == RiskLevel.HIGH


def test_metrics_dict_shape():
    m = aggregate([_r("DAILY", 70.0, Sentiment.BULLISH)])
    assert m.to_dict() == {"overall_probability": 70.0, "confidence_level": 100.0, "risk_level": "MEDIUM"}


@pytest.mark.parametrize(
    "consistency, probability, expected",
    [
        (0.9, 71, RiskLevel.LOW),
        (0.8, 80, RiskLevel.MEDIUM),
        (0.9, 70, RiskLevel.MEDIUM),
        (0.49, 90, RiskLevel.HIGH),
        (0.5, 29.9, RiskLevel.HIGH),
        (0.5, 30, RiskLevel.MEDIUM),
    ],
)
def test_classify_risk(consistency, probability, expected):
    assert classify_risk(consistency, probability) == expected


def test_daily_and_h1_example():
    m = aggregate([_r("DAILY", 70.0, Sentiment.BULLISH), _r("H1", 30.0, Sentiment.BEARISH)])
    # (70*0.35 + 30*0.10) / 0.45 = 61.11
    assert m.overall_probability == pytest.approx(61.1)
