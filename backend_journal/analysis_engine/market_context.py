"""
Market context: compare an analysis with the external daily trend.

Alignment measures how far the timeframe sentiments agree with the market's
direction; adjusted metrics move probability by alignment and confidence/risk
by the day's volatility.
"""

from __future__ import annotations

from typing import Any, Iterable

from backend_journal.analysis_engine.models import (
    MarketSnapshot,
    OverallMetrics,
    RiskLevel,
    Sentiment,
    TimeframeResult,
)
from backend_journal.analysis_engine.scorer import round_half_up

NEUTRAL_ALIGNMENT = 0.5
ALIGNED_FLOOR = 0.7
OPPOSED_CEILING = 0.3

PROBABILITY_ADJUSTMENT = 10
HIGH_VOLATILITY_PCT = 2.0
LOW_VOLATILITY_PCT = 0.5
HIGH_VOLATILITY_CONFIDENCE_PENALTY = 15
LOW_VOLATILITY_CONFIDENCE_BONUS = 10

STRONG_MOVE_PCT = 1.0
MODERATE_MOVE_PCT = 0.5


def market_alignment(results: Iterable[TimeframeResult], snapshot: MarketSnapshot | None) -> float:
    """
    Agreement between the analysis direction and the market trend, 0-1.

    0.5 when there is no market data or nothing to compare.
    """
    if snapshot is None:
        return NEUTRAL_ALIGNMENT
    results = list(results)
    total = len(results)
    if total == 0:
        return NEUTRAL_ALIGNMENT
    bullish = sum(1 for r in results if r.sentiment == Sentiment.BULLISH)
    bearish = sum(1 for r in results if r.sentiment == Sentiment.BEARISH)
    analysis_trend = Sentiment.BULLISH if bullish > bearish else Sentiment.BEARISH
    if snapshot.market_trend == analysis_trend:
        return max(ALIGNED_FLOOR, max(bullish, bearish) / total)
    return min(OPPOSED_CEILING, min(bullish, bearish) / total)


def market_adjusted_metrics(
    base: OverallMetrics,
    results: Iterable[TimeframeResult],
    snapshot: MarketSnapshot | None,
) -> OverallMetrics:
    """Return base metrics adjusted for market alignment and volatility; base is not modified."""
    probability = base.overall_probability
    confidence = base.confidence_level
    risk = base.risk_level
    alignment = NEUTRAL_ALIGNMENT

    if snapshot is not None:
        alignment = market_alignment(results, snapshot)
        if alignment > ALIGNED_FLOOR:
            probability = min(100.0, probability + PROBABILITY_ADJUSTMENT)
        elif alignment < OPPOSED_CEILING:
            probability = max(0.0, probability - PROBABILITY_ADJUSTMENT)

        volatility = abs(snapshot.daily_change_percent)
        if volatility > HIGH_VOLATILITY_PCT:
            confidence = max(0.0, confidence - HIGH_VOLATILITY_CONFIDENCE_PENALTY)
            risk = RiskLevel.HIGH
        elif volatility < LOW_VOLATILITY_PCT:
            confidence = min(100.0, confidence + LOW_VOLATILITY_CONFIDENCE_BONUS)
            risk = RiskLevel.LOW

    return OverallMetrics(
        overall_probability=round_half_up(probability),
        confidence_level=round_half_up(confidence),
        risk_level=risk,
        details={"market_alignment": alignment},
    )


def describe_market(snapshot: MarketSnapshot) -> dict[str, Any]:
    """Volatility, momentum and a one-line description of the day's move."""
    change_pct = snapshot.daily_change_percent
    volatility = abs(change_pct)
    momentum = "positive" if change_pct > 0 else "negative"
    if volatility > STRONG_MOVE_PCT:
        strength = "strong"
    elif volatility > MODERATE_MOVE_PCT:
        strength = "moderate"
    else:
        strength = "weak"

    if volatility > HIGH_VOLATILITY_PCT:
        sentiment = f"The market is experiencing high volatility with a {strength} {momentum} momentum."
    elif volatility > STRONG_MOVE_PCT:
        sentiment = f"Moderate volatility observed with {momentum} price movement."
    else:
        sentiment = "Low volatility environment with minimal price movement."

    change = snapshot.daily_change
    return {
        **snapshot.to_dict(),
        "volatility": volatility,
        "momentum": momentum,
        "strength": strength,
        "market_sentiment": sentiment,
        "price_context": (
            f"Current price at {snapshot.current_price:.5f} with {'gain' if change > 0 else 'loss'} "
            f"of {abs(change):.5f} ({volatility:.2f}%)"
        ),
        "range_context": f"Trading range: {snapshot.low:.5f} - {snapshot.high:.5f}",
        "trend_context": f"{snapshot.market_trend.value.lower()} trend with {strength} momentum",
    }
