"""
Analysis orchestration: load answers and questions, score each timeframe,
persist results, aggregate overall metrics.

Shared by the API routes and the CLI tools. Scoring itself is pure
(analysis_engine); everything here is I/O around it. Timeframes are scored and
persisted one at a time; a failed write for one timeframe is logged and
reported without stopping the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable

from backend_journal.analysis_engine import (
    Answer,
    MarketSnapshot,
    OverallMetrics,
    Question,
    RiskLevel,
    Sentiment,
    TimeframeResult,
    aggregate,
    build_reasoning,
    build_summary,
    describe_market,
    market_adjusted_metrics,
    recommend,
    score_timeframe,
)
from backend_journal.config import get_settings
from backend_journal.core.exceptions import AnalysisNotFoundError, PersistenceError
from backend_journal.database import repositories
from backend_journal.journal_logging import bind_analysis
from backend_journal.market_data import fetch_historical_snapshot, fetch_latest_snapshot

DEFAULT_REASONING = "Analysis completed based on user input and market conditions."

MarketFetcher = Callable[[str, "date | None"], "MarketSnapshot | None"]


@dataclass
class ScoringRun:
    """Outcome of scoring and persisting a set of timeframes."""

    analysis_id: str
    updated_timeframes: list[TimeframeResult] = field(default_factory=list)
    failed_timeframes: list[dict[str, str]] = field(default_factory=list)
    overall_metrics: OverallMetrics | None = None
    metrics_saved: bool = False
    market: MarketSnapshot | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Sentiments recalculated successfully",
            "updatedTimeframes": [r.to_dict() for r in self.updated_timeframes],
            "failedTimeframes": self.failed_timeframes,
            "overallMetrics": self.overall_metrics.to_dict() if self.overall_metrics else None,
        }


def _load(analysis_id: str, user_id: str) -> tuple[dict[str, Any], list[Answer], list[Question]]:
    analysis = repositories.get_analysis(analysis_id, user_id)
    if analysis is None:
        raise AnalysisNotFoundError(analysis_id)
    answers = [Answer.from_mapping(a) for a in repositories.list_answers(analysis_id)]
    questions = [Question.from_mapping(q) for q in repositories.list_active_questions()]
    return analysis, answers, questions


def answers_for_timeframe(timeframe: str, answers: Iterable[Answer], questions: Iterable[Question]) -> list[Answer]:
    """Answers whose question belongs to timeframe."""
    question_timeframes = {q.id: q.timeframe for q in questions}
    return [a for a in answers if question_timeframes.get(a.question_id) == timeframe]


def _answered_timeframes(answers: list[Answer], questions: list[Question]) -> list[str]:
    question_timeframes = {q.id: q.timeframe for q in questions}
    seen: list[str] = []
    for a in answers:
        tf = question_timeframes.get(a.question_id)
        if tf and tf not in seen:
            seen.append(tf)
    return seen


def _completed_on(analysis: dict[str, Any]) -> date | None:
    completed_at = analysis.get("completed_at")
    if not completed_at:
        return None
    try:
        return date.fromisoformat(str(completed_at)[:10])
    except ValueError:
        return None


def _score_and_persist(
    run: ScoringRun,
    timeframes: Iterable[str],
    answers: list[Answer],
    questions: list[Question],
) -> None:
    log = bind_analysis(run.analysis_id)
    for timeframe in timeframes:
        result = score_timeframe(
            timeframe,
            answers_for_timeframe(timeframe, answers, questions),
            questions,
            run.market,
        )
        try:
            repositories.save_timeframe_result(run.analysis_id, result)
        except PersistenceError as e:
            log.error("timeframe_persist_failed", timeframe=timeframe, error=str(e))
            run.failed_timeframes.append({"timeframe": timeframe, "error": str(e)})
            continue
        run.updated_timeframes.append(result)
        log.info(
            "timeframe_updated",
            timeframe=timeframe,
            score=result.score,
            sentiment=result.sentiment.value,
            strength=result.strength,
        )


def recalculate_sentiments(
    analysis_id: str,
    user_id: str,
    *,
    market_fetcher: MarketFetcher | None = None,
) -> ScoringRun:
    """
    Re-score every selected timeframe of an analysis and store the results.

    Uses the historical market snapshot for the analysis completion date when
    market data is configured. Overall metrics are aggregated from the
    timeframes that were saved successfully.

    Raises:
        AnalysisNotFoundError: unknown analysis or not owned by user_id.
    """
    analysis, answers, questions = _load(analysis_id, user_id)
    log = bind_analysis(analysis_id)

    market = None
    if market_fetcher is not None or get_settings().market_data_enabled:
        fetch = market_fetcher or fetch_historical_snapshot
        market = fetch(analysis["currency_pair"], _completed_on(analysis))

    run = ScoringRun(analysis_id=analysis_id, market=market)
    timeframes = analysis.get("selected_timeframes") or []
    _score_and_persist(run, timeframes, answers, questions)

    run.overall_metrics = aggregate(run.updated_timeframes)
    try:
        repositories.save_overall_metrics(
            analysis_id,
            run.overall_metrics,
            action="RECALCULATED",
            performed_by=user_id,
        )
        run.metrics_saved = True
    except PersistenceError as e:
        log.error("overall_metrics_persist_failed", error=str(e))

    log.info(
        "sentiments_recalculated",
        updated=len(run.updated_timeframes),
        failed=len(run.failed_timeframes),
        market_trend=market.market_trend.value if market else None,
        **run.overall_metrics.to_dict(),
    )
    return run


def complete_analysis(analysis_id: str, user_id: str) -> dict[str, Any]:
    """
    Score the analysis, derive a trade recommendation and mark it COMPLETED.

    Scores the selected timeframes, or every answered timeframe when none are
    selected. No market nudge is applied.

    Raises:
        AnalysisNotFoundError: unknown analysis or not owned by user_id.
        PersistenceError: the analysis row could not be updated.
    """
    analysis, answers, questions = _load(analysis_id, user_id)
    timeframes = analysis.get("selected_timeframes") or _answered_timeframes(answers, questions)

    run = ScoringRun(analysis_id=analysis_id)
    _score_and_persist(run, timeframes, answers, questions)
    metrics = aggregate(run.updated_timeframes)

    sentiments = {r.timeframe: r.sentiment for r in run.updated_timeframes}
    recommendation = recommend(metrics.overall_probability, sentiments.get("DAILY"))
    summary = build_summary(analysis["currency_pair"], metrics.overall_probability, recommendation, sentiments)
    reasoning = build_reasoning(run.updated_timeframes)

    stored = repositories.save_overall_metrics(
        analysis_id,
        metrics,
        action="COMPLETED",
        performed_by=user_id,
        extra={
            "status": "COMPLETED",
            "trade_recommendation": recommendation.value,
            "ai_summary": summary,
            "ai_reasoning": reasoning,
        },
    )
    bind_analysis(analysis_id).info(
        "analysis_completed",
        trade_recommendation=recommendation.value,
        timeframes=len(run.updated_timeframes),
        **metrics.to_dict(),
    )
    return {
        "analysis": stored,
        "timeframe_breakdown": {r.timeframe: r.to_dict() for r in run.updated_timeframes},
        "failedTimeframes": run.failed_timeframes,
        "message": "Analysis completed successfully",
    }


def _stored_result(row: dict[str, Any]) -> TimeframeResult:
    try:
        sentiment = Sentiment(row.get("timeframe_sentiment") or Sentiment.NEUTRAL.value)
    except ValueError:
        sentiment = Sentiment.NEUTRAL
    data = row.get("analysis_data") or {}
    return TimeframeResult(
        timeframe=row["timeframe"],
        score=float(row.get("timeframe_probability") or 50.0),
        sentiment=sentiment,
        strength=float(row.get("timeframe_strength") or 0.0),
        reasoning=data.get("ai_reasoning") or data.get("reasoning") or DEFAULT_REASONING,
    )


def _stored_metrics(analysis: dict[str, Any]) -> OverallMetrics:
    try:
        risk = RiskLevel(analysis.get("risk_level") or RiskLevel.MEDIUM.value)
    except ValueError:
        risk = RiskLevel.MEDIUM
    return OverallMetrics(
        overall_probability=float(analysis.get("overall_probability") or 50.0),
        confidence_level=float(analysis.get("confidence_level") or 50.0),
        risk_level=risk,
    )


def enhanced_analysis(
    analysis_id: str,
    user_id: str,
    currency_pair: str,
    *,
    market_fetcher: Callable[[str], MarketSnapshot | None] | None = None,
) -> dict[str, Any]:
    """
    Compare the stored analysis with today's market: per-timeframe reasoning,
    market-adjusted metrics and the market description. Nothing is persisted.

    Raises:
        AnalysisNotFoundError: unknown analysis or not owned by user_id.
    """
    analysis = repositories.get_analysis(analysis_id, user_id)
    if analysis is None:
        raise AnalysisNotFoundError(analysis_id)
    results = [_stored_result(row) for row in repositories.list_timeframe_analyses(analysis_id)]
    snapshot = (market_fetcher or fetch_latest_snapshot)(currency_pair)
    updated = market_adjusted_metrics(_stored_metrics(analysis), results, snapshot)
    bind_analysis(analysis_id).info(
        "enhanced_analysis",
        currency_pair=currency_pair,
        market_available=snapshot is not None,
        market_alignment=updated.details.get("market_alignment"),
    )
    return {
        "enhancedReasoning": [{"timeframe": r.timeframe, "reasoning": r.reasoning} for r in results],
        "updatedMetrics": updated.to_dict(),
        "marketData": describe_market(snapshot) if snapshot is not None else None,
    }
