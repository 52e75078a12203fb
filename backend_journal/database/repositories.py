"""
Repository functions over the journal tables.

Every function opens its own session via session_scope() and returns plain
dicts, so callers never hold ORM objects past the session. Analysis lookups
are always scoped to the owning user_id.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError

from backend_journal.analysis_engine.models import (
    AnalysisStatus,
    OverallMetrics,
    TimeframeResult,
)
from backend_journal.core.exceptions import PersistenceError
from backend_journal.database.models import (
    TDAAnalysisHistory,
    TDAAnswer,
    TDAQuestion,
    TDATimeframeAnalysis,
    TopDownAnalysis,
)
from backend_journal.database.session import session_scope
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)

# Fields a client may change through update_analysis
EDITABLE_ANALYSIS_FIELDS = frozenset({
    "currency_pair",
    "analysis_date",
    "analysis_time",
    "status",
    "selected_timeframes",
    "notes",
    "tags",
})


def _now() -> int:
    return int(time.time())


def _new_id() -> str:
    return str(uuid.uuid4())


def _owned_analysis(session, analysis_id: str, user_id: str) -> TopDownAnalysis | None:
    return (
        session.query(TopDownAnalysis)
        .filter(TopDownAnalysis.id == analysis_id, TopDownAnalysis.user_id == user_id)
        .first()
    )


def _add_history(session, analysis_id: str, action: str, changes: dict[str, Any] | None, performed_by: str | None) -> None:
    session.add(
        TDAAnalysisHistory(
            analysis_id=analysis_id,
            action=action,
            changes=changes,
            performed_by=performed_by,
            created_at=_now(),
        )
    )


# -----------------------------------------------------------------------------
# Analyses
# -----------------------------------------------------------------------------


def create_analysis(
    user_id: str,
    currency_pair: str,
    *,
    notes: str | None = None,
    analysis_date: str | None = None,
    analysis_time: str | None = None,
    selected_timeframes: list[str] | None = None,
) -> dict[str, Any]:
    """Insert a DRAFT analysis and its CREATED history row. Returns the analysis dict."""
    now = _now()
    with session_scope() as session:
        analysis = TopDownAnalysis(
            id=_new_id(),
            user_id=user_id,
            currency_pair=currency_pair.strip().upper(),
            analysis_date=analysis_date or datetime.now(timezone.utc).date().isoformat(),
            analysis_time=analysis_time,
            status=AnalysisStatus.DRAFT.value,
            selected_timeframes=list(selected_timeframes or []),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        session.add(analysis)
        _add_history(session, analysis.id, "CREATED", None, user_id)
        session.flush()
        out = analysis.to_dict()
    logger.info("analysis_created", analysis_id=out["id"], currency_pair=out["currency_pair"])
    return out


def get_analysis(analysis_id: str, user_id: str) -> dict[str, Any] | None:
    with session_scope() as session:
        analysis = _owned_analysis(session, analysis_id, user_id)
        return analysis.to_dict() if analysis else None


def list_analyses(
    user_id: str,
    *,
    status: str | None = None,
    currency_pair: str | None = None,
) -> list[dict[str, Any]]:
    """Return the user's analyses, newest first, optionally filtered."""
    with session_scope() as session:
        q = session.query(TopDownAnalysis).filter(TopDownAnalysis.user_id == user_id)
        if status:
            q = q.filter(TopDownAnalysis.status == status)
        if currency_pair:
            q = q.filter(TopDownAnalysis.currency_pair == currency_pair.strip().upper())
        rows = q.order_by(TopDownAnalysis.created_at.desc(), TopDownAnalysis.id).all()
        return [r.to_dict() for r in rows]


def update_analysis(analysis_id: str, user_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    """
    Apply editable fields from updates and log an UPDATED history row.
    Unknown keys are ignored. Returns None when the analysis is not owned by user_id.
    """
    changes = {k: v for k, v in updates.items() if k in EDITABLE_ANALYSIS_FIELDS}
    if "currency_pair" in changes and changes["currency_pair"]:
        changes["currency_pair"] = str(changes["currency_pair"]).strip().upper()
    with session_scope() as session:
        analysis = _owned_analysis(session, analysis_id, user_id)
        if analysis is None:
            return None
        for key, value in changes.items():
            setattr(analysis, key, value)
        analysis.updated_at = _now()
        if changes.get("status") == AnalysisStatus.COMPLETED.value and analysis.completed_at is None:
            analysis.completed_at = analysis.updated_at
        _add_history(session, analysis_id, "UPDATED", changes, user_id)
        session.flush()
        return analysis.to_dict()


def _delete_dependents(session, analysis_ids: list[str]) -> None:
    if not analysis_ids:
        return
    for model in (TDAAnswer, TDATimeframeAnalysis, TDAAnalysisHistory):
        session.query(model).filter(model.analysis_id.in_(analysis_ids)).delete(synchronize_session=False)


def delete_analysis(analysis_id: str, user_id: str) -> bool:
    """Delete an analysis and all its answers, timeframe rows and history. False if not owned."""
    with session_scope() as session:
        analysis = _owned_analysis(session, analysis_id, user_id)
        if analysis is None:
            return False
        _delete_dependents(session, [analysis_id])
        session.delete(analysis)
    logger.info("analysis_deleted", analysis_id=analysis_id)
    return True


def delete_drafts(user_id: str) -> int:
    """Delete all of the user's DRAFT analyses with their dependents. Returns the count."""
    with session_scope() as session:
        ids = [
            r[0]
            for r in session.query(TopDownAnalysis.id)
            .filter(TopDownAnalysis.user_id == user_id, TopDownAnalysis.status == AnalysisStatus.DRAFT.value)
            .all()
        ]
        _delete_dependents(session, ids)
        if ids:
            session.query(TopDownAnalysis).filter(TopDownAnalysis.id.in_(ids)).delete(synchronize_session=False)
    logger.info("drafts_deleted", user_id=user_id, count=len(ids))
    return len(ids)


def list_history(analysis_id: str) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = (
            session.query(TDAAnalysisHistory)
            .filter(TDAAnalysisHistory.analysis_id == analysis_id)
            .order_by(TDAAnalysisHistory.id)
            .all()
        )
        return [r.to_dict() for r in rows]


# -----------------------------------------------------------------------------
# Questions
# -----------------------------------------------------------------------------


def list_active_questions() -> list[dict[str, Any]]:
    """Active questions ordered by timeframe, then order_index."""
    with session_scope() as session:
        rows = (
            session.query(TDAQuestion)
            .filter(TDAQuestion.is_active.is_(True))
            .order_by(TDAQuestion.timeframe, TDAQuestion.order_index)
            .all()
        )
        return [r.to_dict() for r in rows]


def upsert_questions(questions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Insert or update questions keyed by (timeframe, order_index). Returns the stored rows."""
    now = _now()
    stored: list[dict[str, Any]] = []
    with session_scope() as session:
        for q in questions:
            timeframe = str(q["timeframe"])
            order_index = int(q["order_index"])
            row = (
                session.query(TDAQuestion)
                .filter(TDAQuestion.timeframe == timeframe, TDAQuestion.order_index == order_index)
                .first()
            )
            if row is None:
                row = TDAQuestion(
                    id=str(q.get("id") or _new_id()),
                    timeframe=timeframe,
                    order_index=order_index,
                    created_at=now,
                )
                session.add(row)
            row.question_text = q["question_text"]
            row.question_type = q["question_type"]
            row.options = q.get("options")
            row.required = bool(q.get("required", False))
            row.is_active = bool(q.get("is_active", True))
            session.flush()
            stored.append(row.to_dict())
    logger.info("questions_upserted", count=len(stored))
    return stored


# -----------------------------------------------------------------------------
# Answers
# -----------------------------------------------------------------------------


def list_answers(analysis_id: str) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = session.query(TDAAnswer).filter(TDAAnswer.analysis_id == analysis_id).all()
        return [r.to_dict() for r in rows]


def upsert_answers(analysis_id: str, answers: Iterable[dict[str, Any]]) -> int:
    """Insert or update answers keyed by (analysis_id, question_id). Returns the number written."""
    now = _now()
    count = 0
    with session_scope() as session:
        for a in answers:
            question_id = str(a["question_id"])
            row = (
                session.query(TDAAnswer)
                .filter(TDAAnswer.analysis_id == analysis_id, TDAAnswer.question_id == question_id)
                .first()
            )
            if row is None:
                row = TDAAnswer(id=_new_id(), analysis_id=analysis_id, question_id=question_id, created_at=now)
                session.add(row)
            row.answer_text = a.get("answer_text")
            row.answer_value = a.get("answer_value")
            session.flush()
            count += 1
    logger.info("answers_upserted", analysis_id=analysis_id, count=count)
    return count


# -----------------------------------------------------------------------------
# Timeframe analyses
# -----------------------------------------------------------------------------


def list_timeframe_analyses(analysis_id: str) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = (
            session.query(TDATimeframeAnalysis)
            .filter(TDATimeframeAnalysis.analysis_id == analysis_id)
            .order_by(TDATimeframeAnalysis.timeframe)
            .all()
        )
        return [r.to_dict() for r in rows]


def _get_or_create_timeframe(session, analysis_id: str, timeframe: str, now: int) -> TDATimeframeAnalysis:
    row = (
        session.query(TDATimeframeAnalysis)
        .filter(TDATimeframeAnalysis.analysis_id == analysis_id, TDATimeframeAnalysis.timeframe == timeframe)
        .first()
    )
    if row is None:
        row = TDATimeframeAnalysis(
            id=_new_id(),
            analysis_id=analysis_id,
            timeframe=timeframe,
            analysis_data={},
            created_at=now,
            updated_at=now,
        )
        session.add(row)
    return row


def upsert_timeframe_analyses(analysis_id: str, rows: Iterable[dict[str, Any]]) -> int:
    """Insert or update client-supplied timeframe rows keyed by (analysis_id, timeframe)."""
    now = _now()
    count = 0
    with session_scope() as session:
        for r in rows:
            row = _get_or_create_timeframe(session, analysis_id, str(r["timeframe"]), now)
            if "analysis_data" in r:
                row.analysis_data = dict(r.get("analysis_data") or {})
            for key in ("timeframe_probability", "timeframe_sentiment", "timeframe_strength"):
                if key in r:
                    setattr(row, key, r[key])
            row.updated_at = now
            session.flush()
            count += 1
    return count


def save_timeframe_result(analysis_id: str, result: TimeframeResult) -> dict[str, Any]:
    """
    Persist one scored timeframe, keeping existing analysis_data keys and
    setting ai_reasoning and recalculated_at. Raises PersistenceError.
    """
    now = _now()
    try:
        with session_scope() as session:
            row = _get_or_create_timeframe(session, analysis_id, result.timeframe, now)
            data = dict(row.analysis_data or {})
            data["ai_reasoning"] = result.reasoning
            data["recalculated_at"] = datetime.fromtimestamp(now, tz=timezone.utc).isoformat()
            row.analysis_data = data
            row.timeframe_probability = result.score
            row.timeframe_sentiment = result.sentiment.value
            row.timeframe_strength = result.strength
            row.updated_at = now
            session.flush()
            return row.to_dict()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to save timeframe {result.timeframe}: {e}") from e


def save_overall_metrics(
    analysis_id: str,
    metrics: OverallMetrics,
    *,
    action: str,
    performed_by: str | None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Store overall metrics (plus optional extra columns such as status or
    trade_recommendation) on the analysis and append a history row.
    Raises PersistenceError.
    """
    now = _now()
    values: dict[str, Any] = {
        "overall_probability": metrics.overall_probability,
        "confidence_level": metrics.confidence_level,
        "risk_level": metrics.risk_level.value,
    }
    values.update(extra or {})
    try:
        with session_scope() as session:
            analysis = session.query(TopDownAnalysis).filter(TopDownAnalysis.id == analysis_id).first()
            if analysis is None:
                raise PersistenceError(f"Analysis vanished before metrics were saved: {analysis_id}")
            for key, value in values.items():
                setattr(analysis, key, value)
            analysis.updated_at = now
            if values.get("status") == AnalysisStatus.COMPLETED.value:
                analysis.completed_at = now
            _add_history(session, analysis_id, action, metrics.to_dict(), performed_by)
            session.flush()
            return analysis.to_dict()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to save overall metrics for {analysis_id}: {e}") from e
