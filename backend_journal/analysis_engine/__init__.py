"""
Analysis engine package: timeframe sentiment scoring and overall metrics.

Consumes a top-down analysis's answers and the question bank, applies fixed
scoring rules per question type, and produces per-timeframe sentiment plus a
weighted overall probability, confidence and risk level. Pure functions; no I/O.
"""

from backend_journal.analysis_engine.aggregator import (
    TIMEFRAME_WEIGHTS,
    aggregate,
    classify_risk,
    timeframe_weight,
)
from backend_journal.analysis_engine.market_context import (
    describe_market,
    market_adjusted_metrics,
    market_alignment,
)
from backend_journal.analysis_engine.models import (
    AnalysisStatus,
    Answer,
    MarketSnapshot,
    OverallMetrics,
    Question,
    QuestionType,
    RiskLevel,
    Sentiment,
    TimeframeResult,
    TimeframeType,
    TradeRecommendation,
)
from backend_journal.analysis_engine.recommendation import (
    build_reasoning,
    build_summary,
    recommend,
)
from backend_journal.analysis_engine.scorer import (
    classify_sentiment,
    round_half_up,
    score_timeframe,
)

__all__ = [
    "TIMEFRAME_WEIGHTS",
    "aggregate",
    "classify_risk",
    "timeframe_weight",
    "describe_market",
    "market_adjusted_metrics",
    "market_alignment",
    "AnalysisStatus",
    "Answer",
    "MarketSnapshot",
    "OverallMetrics",
    "Question",
    "QuestionType",
    "RiskLevel",
    "Sentiment",
    "TimeframeResult",
    "TimeframeType",
    "TradeRecommendation",
    "build_reasoning",
    "build_summary",
    "recommend",
    "classify_sentiment",
    "round_half_up",
    "score_timeframe",
]
