"""
FastAPI router for top-down analyses: /api/tda.

CRUD over analyses, questions, answers and timeframe rows, plus the scoring
endpoints (fix-sentiments, complete, enhanced-analysis). Every analysis route
is scoped to the caller; a foreign or unknown id is a 404.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from backend_journal.api_server.auth import get_current_user
from backend_journal.core.exceptions import AnalysisNotFoundError, JournalError
from backend_journal.database import repositories
from backend_journal.journal_logging import get_logger
from backend_journal.services import complete_analysis, enhanced_analysis, recalculate_sentiments

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tda", tags=["tda"])


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------


class CreateAnalysisRequest(BaseModel):
    """POST /api/tda body."""

    currency_pair: str = Field(..., min_length=1, description="e.g. EURUSD")
    notes: str | None = None
    analysis_date: str | None = Field(None, description="YYYY-MM-DD; defaults to today (UTC)")
    analysis_time: str | None = None
    selected_timeframes: list[str] = Field(default_factory=list)


class UpdateAnalysisRequest(BaseModel):
    """PUT /api/tda/{id} body. Only fields that are sent are applied."""

    currency_pair: str | None = None
    analysis_date: str | None = None
    analysis_time: str | None = None
    status: str | None = None
    selected_timeframes: list[str] | None = None
    notes: str | None = None
    tags: list[str] | None = None


class QuestionIn(BaseModel):
    timeframe: str
    question_text: str
    question_type: str
    order_index: int = 0
    options: list[str] | None = None
    required: bool = False
    is_active: bool = True


class QuestionsRequest(BaseModel):
    questions: list[QuestionIn]


class AnswerIn(BaseModel):
    question_id: str
    answer_text: str | None = None
    answer_value: Any = None


class AnswersRequest(BaseModel):
    answers: list[AnswerIn]


class TimeframeAnalysisIn(BaseModel):
    timeframe: str
    analysis_data: dict[str, Any] | None = None
    timeframe_probability: float | None = None
    timeframe_sentiment: str | None = None
    timeframe_strength: float | None = None


class TimeframeAnalysesRequest(BaseModel):
    timeframe_analyses: list[TimeframeAnalysisIn]


class FixSentimentsRequest(BaseModel):
    """POST /api/tda/fix-sentiments body."""

    analysis_id: str | None = Field(None, alias="analysisId")


class EnhancedAnalysisRequest(BaseModel):
    """POST /api/tda/enhanced-analysis body."""

    analysis_id: str | None = Field(None, alias="analysisId")
    currency_pair: str | None = Field(None, alias="currencyPair")


def _require_analysis(analysis_id: str, user_id: str) -> dict[str, Any]:
    analysis = repositories.get_analysis(analysis_id, user_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


# -----------------------------------------------------------------------------
# Analyses (static paths are registered before /{analysis_id})
# -----------------------------------------------------------------------------


@router.get("")
def list_analyses(
    status: str | None = None,
    currency_pair: str | None = None,
    user_id: str = Depends(get_current_user),
) -> dict[str, Any]:
    return {"analyses": repositories.list_analyses(user_id, status=status, currency_pair=currency_pair)}


@router.post("", status_code=201)
def create_analysis(body: CreateAnalysisRequest, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    if not body.currency_pair.strip():
        raise HTTPException(status_code=400, detail="Currency pair is required")
    analysis = repositories.create_analysis(
        user_id,
        body.currency_pair,
        notes=body.notes,
        analysis_date=body.analysis_date,
        analysis_time=body.analysis_time,
        selected_timeframes=body.selected_timeframes,
    )
    return {"analysis": analysis}


@router.delete("/drafts")
def delete_drafts(user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    """Delete all of the caller's DRAFT analyses."""
    count = repositories.delete_drafts(user_id)
    return {"success": True, "deletedCount": count}


# -----------------------------------------------------------------------------
# Questions
# -----------------------------------------------------------------------------


@router.get("/questions")
def get_questions(user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"questions": repositories.list_active_questions()}


@router.post("/questions")
def upsert_questions(body: QuestionsRequest, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    stored = repositories.upsert_questions(q.model_dump() for q in body.questions)
    return {"questions": stored}


# -----------------------------------------------------------------------------
# Scoring
# -----------------------------------------------------------------------------


@router.post("/fix-sentiments")
def fix_sentiments(body: FixSentimentsRequest, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    """
    Recalculate every selected timeframe of an analysis with the current
    scorer, persist each result and the aggregated overall metrics.
    Timeframes that fail to save are listed in failedTimeframes.
    """
    if not body.analysis_id:
        raise HTTPException(status_code=400, detail="Analysis ID is required")
    try:
        run = recalculate_sentiments(body.analysis_id, user_id)
    except AnalysisNotFoundError as e:
        raise HTTPException(status_code=404, detail="Analysis not found") from e
    except JournalError as e:
        logger.exception("fix_sentiments_failed", analysis_id=body.analysis_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error") from e
    return run.to_dict()


@router.post("/enhanced-analysis")
def post_enhanced_analysis(body: EnhancedAnalysisRequest, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    """Stored reasoning per timeframe with metrics adjusted to today's market."""
    if not body.analysis_id or not body.currency_pair:
        raise HTTPException(status_code=400, detail="Analysis ID and currency pair are required")
    try:
        return enhanced_analysis(body.analysis_id, user_id, body.currency_pair)
    except AnalysisNotFoundError as e:
        raise HTTPException(status_code=404, detail="Analysis not found") from e


# -----------------------------------------------------------------------------
# Single analysis
# -----------------------------------------------------------------------------


@router.get("/{analysis_id}")
def get_analysis(analysis_id: str, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    """Analysis with its timeframe rows, answers and the active question bank."""
    analysis = _require_analysis(analysis_id, user_id)
    return {
        "analysis": analysis,
        "timeframeAnalyses": repositories.list_timeframe_analyses(analysis_id),
        "answers": repositories.list_answers(analysis_id),
        "questions": repositories.list_active_questions(),
    }


@router.put("/{analysis_id}")
def update_analysis(
    analysis_id: str,
    body: UpdateAnalysisRequest,
    user_id: str = Depends(get_current_user),
) -> dict[str, Any]:
    analysis = repositories.update_analysis(analysis_id, user_id, body.model_dump(exclude_unset=True))
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"analysis": analysis}


@router.delete("/{analysis_id}")
def delete_analysis(analysis_id: str, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    if not repositories.delete_analysis(analysis_id, user_id):
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"success": True}


@router.get("/{analysis_id}/answers")
def get_answers(analysis_id: str, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_analysis(analysis_id, user_id)
    return {"answers": repositories.list_answers(analysis_id)}


@router.post("/{analysis_id}/answers")
def save_answers(analysis_id: str, body: AnswersRequest, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_analysis(analysis_id, user_id)
    count = repositories.upsert_answers(analysis_id, (a.model_dump() for a in body.answers))
    return {"success": True, "count": count}


@router.get("/{analysis_id}/timeframe-analyses")
def get_timeframe_analyses(analysis_id: str, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    _require_analysis(analysis_id, user_id)
    return {"timeframeAnalyses": repositories.list_timeframe_analyses(analysis_id)}


@router.post("/{analysis_id}/timeframe-analyses")
def save_timeframe_analyses(
    analysis_id: str,
    body: TimeframeAnalysesRequest,
    user_id: str = Depends(get_current_user),
) -> dict[str, Any]:
    _require_analysis(analysis_id, user_id)
    rows = (r.model_dump(exclude_unset=True) for r in body.timeframe_analyses)
    count = repositories.upsert_timeframe_analyses(analysis_id, rows)
    return {"success": True, "count": count}


@router.post("/{analysis_id}/complete")
def post_complete(analysis_id: str, user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    """Score, recommend and mark the analysis COMPLETED."""
    try:
        return complete_analysis(analysis_id, user_id)
    except AnalysisNotFoundError as e:
        raise HTTPException(status_code=404, detail="Analysis not found") from e
    except JournalError as e:
        logger.exception("complete_analysis_failed", analysis_id=analysis_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to complete analysis") from e
