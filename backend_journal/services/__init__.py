"""
Service layer: scoring runs over persisted analyses.
"""

from backend_journal.services.analysis_service import (
    ScoringRun,
    answers_for_timeframe,
    complete_analysis,
    enhanced_analysis,
    recalculate_sentiments,
)

__all__ = [
    "ScoringRun",
    "answers_for_timeframe",
    "complete_analysis",
    "enhanced_analysis",
    "recalculate_sentiments",
]
