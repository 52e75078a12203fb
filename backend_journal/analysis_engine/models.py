"""
Data models for analysis engine input and output.

Questions and answers come from the database layer as plain dicts and are
converted here; TimeframeResult and OverallMetrics are computed on demand and
never the authoritative stored state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class TimeframeType(str, Enum):
    M10 = "M10"
    M15 = "M15"
    M30 = "M30"
    H1 = "H1"
    H2 = "H2"
    H4 = "H4"
    H8 = "H8"
    W1 = "W1"
    MN1 = "MN1"
    DAILY = "DAILY"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    RATING = "RATING"
    BOOLEAN = "BOOLEAN"
    TEXT = "TEXT"
    ANNOUNCEMENTS = "ANNOUNCEMENTS"

    @classmethod
    def parse(cls, value: Any) -> QuestionType | None:
        """Return the member for value, or None for unknown types."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


class Sentiment(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AnalysisStatus(str, Enum):
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class TradeRecommendation(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    NEUTRAL = "NEUTRAL"
    AVOID = "AVOID"


@dataclass
class Question:
    """Reference question for one timeframe."""

    id: str
    timeframe: str
    question_text: str
    question_type: QuestionType | None
    """None when the stored type is not one the scorer knows."""
    order_index: int = 0
    options: list[str] | None = None
    is_active: bool = True

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Question:
        return cls(
            id=str(row["id"]),
            timeframe=str(row.get("timeframe") or ""),
            question_text=str(row.get("question_text") or ""),
            question_type=QuestionType.parse(row.get("question_type")),
            order_index=int(row.get("order_index") or 0),
            options=row.get("options"),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass
class Answer:
    """User answer to one question within one analysis."""

    id: str
    analysis_id: str
    question_id: str
    answer_text: str | None = None
    answer_value: Any = None

    @property
    def value(self) -> Any:
        """Effective value: answer_text when non-empty, else answer_value."""
        return self.answer_text or self.answer_value

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Answer:
        return cls(
            id=str(row.get("id") or ""),
            analysis_id=str(row.get("analysis_id") or ""),
            question_id=str(row["question_id"]),
            answer_text=row.get("answer_text"),
            answer_value=row.get("answer_value"),
        )


@dataclass
class MarketSnapshot:
    """
    One day of external FX market data for a currency pair.

    market_trend compares the close of the target bar with the previous bar.
    """

    currency_pair: str
    current_price: float
    previous_price: float
    high: float
    low: float
    volume: float
    target_date: str
    data_source: str = "live"
    """'historical' when looked up for a past analysis date, else 'live'."""

    @property
    def daily_change(self) -> float:
        return self.current_price - self.previous_price

    @property
    def daily_change_percent(self) -> float:
        if self.previous_price == 0:
            return 0.0
        return (self.daily_change / self.previous_price) * 100

    @property
    def market_trend(self) -> Sentiment:
        return Sentiment.BULLISH if self.current_price > self.previous_price else Sentiment.BEARISH

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency_pair": self.currency_pair,
            "current_price": self.current_price,
            "previous_price": self.previous_price,
            "daily_change": self.daily_change,
            "daily_change_percent": self.daily_change_percent,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
            "market_trend": self.market_trend.value,
            "data_source": self.data_source,
            "target_date": self.target_date,
        }


@dataclass
class TimeframeResult:
    """Scored sentiment for a single timeframe."""

    timeframe: str
    score: float
    """Bullish probability, 0-100."""
    sentiment: Sentiment
    strength: float
    """Signal consistency plus distance from neutral, 0-100."""
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "score": self.score,
            "sentiment": self.sentiment.value,
            "strength": self.strength,
            "reasoning": self.reasoning,
        }


@dataclass
class OverallMetrics:
    overall_probability: float
    confidence_level: float
    risk_level: RiskLevel
    details: dict[str, Any] = field(default_factory=dict)
    """Intermediate values (weights, consistency) for logging; not part of the API shape."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_probability": self.overall_probability,
            "confidence_level": self.confidence_level,
            "risk_level": self.risk_level.value,
        }
