"""
SQLAlchemy models for top-down analyses, the question bank, answers,
per-timeframe results and the analysis audit trail.

Timestamps are Unix seconds; to_dict() renders them as ISO 8601 UTC strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, Column, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def iso_timestamp(ts: int | None) -> str | None:
    """Unix seconds to ISO 8601 UTC string; None stays None."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class TopDownAnalysis(Base):
    """One user's top-down analysis of a currency pair."""

    __tablename__ = "top_down_analyses"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    currency_pair = Column(String(16), nullable=False, index=True)
    analysis_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    analysis_time = Column(String(8), nullable=True)  # HH:MM[:SS]
    status = Column(String(16), nullable=False, default="DRAFT", index=True)
    selected_timeframes = Column(JSON, nullable=True)  # list of timeframe labels

    overall_probability = Column(Float, nullable=True)
    trade_recommendation = Column(String(16), nullable=True)
    confidence_level = Column(Float, nullable=True)
    risk_level = Column(String(16), nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_reasoning = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)

    created_at = Column(Integer, nullable=False)
    updated_at = Column(Integer, nullable=False)
    completed_at = Column(Integer, nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "currency_pair": self.currency_pair,
            "analysis_date": self.analysis_date,
            "analysis_time": self.analysis_time,
            "status": self.status,
            "selected_timeframes": list(self.selected_timeframes or []),
            "overall_probability": self.overall_probability,
            "trade_recommendation": self.trade_recommendation,
            "confidence_level": self.confidence_level,
            "risk_level": self.risk_level,
            "ai_summary": self.ai_summary,
            "ai_reasoning": self.ai_reasoning,
            "notes": self.notes,
            "tags": list(self.tags or []),
            "created_at": iso_timestamp(self.created_at),
            "updated_at": iso_timestamp(self.updated_at),
            "completed_at": iso_timestamp(self.completed_at),
        }


class TDAQuestion(Base):
    """Question bank entry; (timeframe, order_index) is unique."""

    __tablename__ = "tda_questions"
    __table_args__ = (UniqueConstraint("timeframe", "order_index", name="uq_tda_questions_timeframe_order"),)

    id = Column(String(36), primary_key=True)
    timeframe = Column(String(8), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(32), nullable=False)
    options = Column(JSON(none_as_null=True), nullable=True)
    required = Column(Boolean, nullable=False, default=False)
    order_index = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(Integer, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timeframe": self.timeframe,
            "question_text": self.question_text,
            "question_type": self.question_type,
            "options": self.options,
            "required": self.required,
            "order_index": self.order_index,
            "is_active": self.is_active,
            "created_at": iso_timestamp(self.created_at),
        }


class TDAAnswer(Base):
    """Answer to one question within one analysis; (analysis_id, question_id) is unique."""

    __tablename__ = "tda_answers"
    __table_args__ = (UniqueConstraint("analysis_id", "question_id", name="uq_tda_answers_analysis_question"),)

    id = Column(String(36), primary_key=True)
    analysis_id = Column(String(36), nullable=False, index=True)
    question_id = Column(String(36), nullable=False, index=True)
    answer_text = Column(Text, nullable=True)
    answer_value = Column(JSON(none_as_null=True), nullable=True)  # bool, number or string
    created_at = Column(Integer, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "analysis_id": self.analysis_id,
            "question_id": self.question_id,
            "answer_text": self.answer_text,
            "answer_value": self.answer_value,
            "created_at": iso_timestamp(self.created_at),
        }


class TDATimeframeAnalysis(Base):
    """Persisted timeframe result; (analysis_id, timeframe) is unique."""

    __tablename__ = "tda_timeframe_analyses"
    __table_args__ = (UniqueConstraint("analysis_id", "timeframe", name="uq_tda_timeframe_analysis"),)

    id = Column(String(36), primary_key=True)
    analysis_id = Column(String(36), nullable=False, index=True)
    timeframe = Column(String(8), nullable=False)
    analysis_data = Column(JSON, nullable=True)  # includes ai_reasoning, recalculated_at
    timeframe_probability = Column(Float, nullable=True)
    timeframe_sentiment = Column(String(16), nullable=True)
    timeframe_strength = Column(Float, nullable=True)
    created_at = Column(Integer, nullable=False)
    updated_at = Column(Integer, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "analysis_id": self.analysis_id,
            "timeframe": self.timeframe,
            "analysis_data": dict(self.analysis_data or {}),
            "timeframe_probability": self.timeframe_probability,
            "timeframe_sentiment": self.timeframe_sentiment,
            "timeframe_strength": self.timeframe_strength,
            "created_at": iso_timestamp(self.created_at),
            "updated_at": iso_timestamp(self.updated_at),
        }


class TDAAnalysisHistory(Base):
    """Append-only audit trail: CREATED, UPDATED, COMPLETED, RECALCULATED."""

    __tablename__ = "tda_analysis_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    analysis_id = Column(String(36), nullable=False, index=True)
    action = Column(String(32), nullable=False)
    changes = Column(JSON, nullable=True)
    performed_by = Column(String(64), nullable=True)
    created_at = Column(Integer, nullable=False, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "analysis_id": self.analysis_id,
            "action": self.action,
            "changes": self.changes,
            "performed_by": self.performed_by,
            "created_at": iso_timestamp(self.created_at),
        }
