"""
Trade recommendation and plain-text summary for a completed analysis.

The direction comes from the DAILY timeframe; the overall probability decides
whether the setup is worth taking at all.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from backend_journal.analysis_engine.models import (
    Sentiment,
    TimeframeResult,
    TradeRecommendation,
)

DIRECTIONAL_MIN_PROBABILITY = 60
NEUTRAL_MIN_PROBABILITY = 45

# Timeframes named in summaries, with their display labels
KEY_TIMEFRAMES: tuple[tuple[str, str], ...] = (
    ("DAILY", "Daily"),
    ("W1", "Weekly"),
    ("H4", "4H"),
    ("H1", "1H"),
    ("M15", "15M"),
)


def recommend(overall_probability: float, daily_sentiment: Sentiment | None) -> TradeRecommendation:
    if overall_probability >= DIRECTIONAL_MIN_PROBABILITY:
        return TradeRecommendation.LONG if daily_sentiment == Sentiment.BULLISH else TradeRecommendation.SHORT
    if overall_probability >= NEUTRAL_MIN_PROBABILITY:
        return TradeRecommendation.NEUTRAL
    return TradeRecommendation.AVOID


def build_summary(
    currency_pair: str,
    overall_probability: float,
    recommendation: TradeRecommendation,
    sentiments: Mapping[str, Sentiment],
) -> str:
    """One-paragraph summary; timeframes missing from sentiments read as neutral."""
    if recommendation == TradeRecommendation.LONG:
        direction = "bullish"
    elif recommendation == TradeRecommendation.SHORT:
        direction = "bearish"
    else:
        direction = "neutral"

    key = ", ".join(
        f"{label} ({sentiments.get(tf, Sentiment.NEUTRAL).value.lower()})" for tf, label in KEY_TIMEFRAMES
    )
    if recommendation == TradeRecommendation.AVOID:
        advice = "Avoid trading at this time"
    else:
        advice = f"Consider {recommendation.value.lower()} position"

    return (
        f"Top Down Analysis for {currency_pair} shows a {overall_probability:.1f}% probability "
        f"of a {direction} move. Key timeframes: {key}. Recommendation: {advice}."
    )


def build_reasoning(results: Iterable[TimeframeResult]) -> str:
    by_timeframe = {r.timeframe: r for r in results}
    parts = []
    for tf, label in KEY_TIMEFRAMES:
        result = by_timeframe.get(tf)
        if result is None:
            continue
        detail = result.reasoning or "no directional signals"
        parts.append(
            f"{label} timeframe ({result.score:.1f}% probability, "
            f"{result.sentiment.value.lower()}) - {detail}."
        )
    parts.append(
        "The weighted analysis prioritizes larger timeframes for trend direction "
        "and smaller timeframes for entry timing."
    )
    return "Analysis breakdown: " + " ".join(parts)
