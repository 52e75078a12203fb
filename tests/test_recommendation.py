"""
Trade recommendation, summary and reasoning text.
"""

from __future__ import annotations

from backend_journal.analysis_engine import (
    Sentiment,
    TimeframeResult,
    TradeRecommendation,
    build_reasoning,
    build_summary,
    recommend,
)


def test_recommend_thresholds():
    assert recommend(60, Sentiment.BULLISH) == TradeRecommendation.LONG
    assert recommend(85, Sentiment.BEARISH) == TradeRecommendation.SHORT
    assert recommend(60, None) == TradeRecommendation.SHORT
    assert recommend(59.9, Sentiment.BULLISH) == TradeRecommendation.NEUTRAL
    assert recommend(45, Sentiment.BULLISH) == TradeRecommendation.NEUTRAL
    assert recommend(44.9, Sentiment.BULLISH) == TradeRecommendation.AVOID


def test_summary_long():
    text = build_summary(
        "EURUSD",
        72.5,
        TradeRecommendation.LONG,
        {"DAILY": Sentiment.BULLISH, "H4": Sentiment.BEARISH},
    )
    assert text.startswith("Top Down Analysis for EURUSD shows a 72.5% probability of a bullish move.")
    assert "Daily (bullish)" in text
    assert "4H (bearish)" in text
    assert "Weekly (neutral)" in text
    assert text.endswith("Recommendation: Consider long position.")


def test_summary_avoid():
    text = build_summary("GBPUSD", 30.0, TradeRecommendation.AVOID, {})
    assert "of a neutral move" in text
    assert text.endswith("Recommendation: Avoid trading at this time.")


def test_reasoning_lists_only_present_key_timeframes():
    text = build_reasoning(
        [
            TimeframeResult("H1", 55.0, Sentiment.BULLISH, 20.0, "Positive confirmation for Above Pivot"),
            TimeframeResult("M30", 40.0, Sentiment.BEARISH, 20.0, "ignored"),
        ]
    )
    assert text.startswith(
        "Analysis breakdown: 1H timeframe (55.0% probability, bullish) - Positive confirmation for Above Pivot."
    )
    assert "Daily timeframe" not in text
    assert "ignored" not in text
    assert text.endswith("smaller timeframes for entry timing.")


def test_reasoning_without_signals():
    text = build_reasoning([TimeframeResult("DAILY", 50.0, Sentiment.NEUTRAL, 0.0, "")])
    assert "Daily timeframe (50.0% probability, neutral) - no directional signals." in text
