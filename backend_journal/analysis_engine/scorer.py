"""
Timeframe sentiment scoring: rule-based, explainable, pure.

Starts every timeframe at the neutral midpoint (50) and moves the score by a
fixed amount per answer signal, dispatched on the question type. Each signal
adds a human-readable reasoning line. An optional market snapshot nudges
close calls toward (or away from) the external daily trend.

Malformed answers are skipped; the scorer never raises.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from backend_journal.analysis_engine.models import (
    Answer,
    MarketSnapshot,
    Question,
    QuestionType,
    Sentiment,
    TimeframeResult,
)
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)

NEUTRAL_SCORE = 50.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Score deltas per question type
MULTIPLE_CHOICE_DELTA = 20
RATING_DELTA = 15
BOOLEAN_DELTA = 12
TEXT_DELTA = 8

RATING_BULLISH_MIN = 4
RATING_BEARISH_MAX = 2

BOOLEAN_TRUE_VALUES = ("true", "yes", "Yes")
BOOLEAN_FALSE_VALUES = ("false", "no", "No")

BULLISH_KEYWORDS = ("bullish", "strong", "support", "uptrend", "buy", "long", "positive", "good", "stronger")
BEARISH_KEYWORDS = ("bearish", "weak", "resistance", "downtrend", "sell", "short", "negative", "bad", "weaker")

# Sentiment thresholds (signal majority must also agree)
BULLISH_SCORE_MIN = 52
BEARISH_SCORE_MAX = 48

# Market nudge: aligned trend strengthens weak signals, opposing trend decides near-ties
ALIGNED_NUDGE_WINDOW = 10
ALIGNED_NUDGE = 5
OPPOSED_NUDGE_WINDOW = 5
OPPOSED_NUDGE = 3

TEXT_EXCERPT_LEN = 50

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class _Signal:
    delta: float = 0.0
    direction: Sentiment | None = None
    """BULLISH / BEARISH when the answer counts as a signal; None otherwise."""
    reason: str | None = None


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like Math.round(value * 10) / 10 (halves go up, not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def parse_rating(value: Any) -> int | None:
    """Integer prefix of the value ("4", "4.5", 4 -> 4); None when there is none."""
    if isinstance(value, bool) or value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def _multiple_choice(value: Any, question: Question) -> _Signal:
    choice = str(value).lower() if value is not None else ""
    if choice == "bullish":
        return _Signal(MULTIPLE_CHOICE_DELTA, Sentiment.BULLISH, f"Strong bullish signal from {question.question_text}")
    if choice == "bearish":
        return _Signal(-MULTIPLE_CHOICE_DELTA, Sentiment.BEARISH, f"Strong bearish signal from {question.question_text}")
    if choice == "sideways":
        return _Signal(0, None, f"Neutral/sideways signal from {question.question_text}")
    return _Signal()


def _rating(value: Any, question: Question) -> _Signal:
    rating = parse_rating(value)
    if rating is None:
        return _Signal()
    if rating >= RATING_BULLISH_MIN:
        return _Signal(RATING_DELTA, Sentiment.BULLISH, f"High confidence ({rating}/5) in {question.question_text}")
    if rating <= RATING_BEARISH_MAX:
        return _Signal(-RATING_DELTA, Sentiment.BEARISH, f"Low confidence ({rating}/5) in {question.question_text}")
    return _Signal(0, None, f"Moderate confidence ({rating}/5) in {question.question_text}")


def _boolean(value: Any, question: Question) -> _Signal:
    if value is True or value in BOOLEAN_TRUE_VALUES:
        return _Signal(BOOLEAN_DELTA, Sentiment.BULLISH, f"Positive confirmation for {question.question_text}")
    if value is False or value in BOOLEAN_FALSE_VALUES:
        return _Signal(-BOOLEAN_DELTA, Sentiment.BEARISH, f"Negative confirmation for {question.question_text}")
    return _Signal()


def _text(value: Any, question: Question) -> _Signal:
    text = str(value).lower() if value is not None else ""
    bullish_matches = sum(1 for keyword in BULLISH_KEYWORDS if keyword in text)
    bearish_matches = sum(1 for keyword in BEARISH_KEYWORDS if keyword in text)
    excerpt = text[:TEXT_EXCERPT_LEN]
    if bullish_matches > bearish_matches:
        return _Signal(TEXT_DELTA, Sentiment.BULLISH, f"Positive text analysis: {excerpt}...")
    if bearish_matches > bullish_matches:
        return _Signal(-TEXT_DELTA, Sentiment.BEARISH, f"Negative text analysis: {excerpt}...")
    return _Signal()


_HANDLERS: dict[QuestionType, Callable[[Any, Question], _Signal]] = {
    QuestionType.MULTIPLE_CHOICE: _multiple_choice,
    QuestionType.RATING: _rating,
    QuestionType.BOOLEAN: _boolean,
    QuestionType.TEXT: _text,
}


def classify_sentiment(score: float, bullish_signals: int, bearish_signals: int) -> Sentiment:
    """
    Ordered rule chain; later rules apply only when earlier ones do not match.

    Signal majority plus a score margin wins first; an exact tie at 50 is
    NEUTRAL; otherwise the side of 50 decides.
    """
    if bullish_signals > bearish_signals and score >= BULLISH_SCORE_MIN:
        return Sentiment.BULLISH
    if bearish_signals > bullish_signals and score <= BEARISH_SCORE_MAX:
        return Sentiment.BEARISH
    if bullish_signals == bearish_signals and score == NEUTRAL_SCORE:
        return Sentiment.NEUTRAL
    if score > NEUTRAL_SCORE:
        return Sentiment.BULLISH
    if score < NEUTRAL_SCORE:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def _apply_market_trend(
    score: float,
    sentiment: Sentiment,
    market: MarketSnapshot,
) -> tuple[float, Sentiment]:
    # After an aligned nudge the sentiment follows the score's side of 50 only;
    # signal counts are not consulted again.
    trend = market.market_trend
    deviation = abs(score - NEUTRAL_SCORE)
    if trend == sentiment:
        if deviation < ALIGNED_NUDGE_WINDOW:
            score += ALIGNED_NUDGE
            if score > NEUTRAL_SCORE:
                sentiment = Sentiment.BULLISH
            elif score < NEUTRAL_SCORE:
                sentiment = Sentiment.BEARISH
    elif deviation < OPPOSED_NUDGE_WINDOW:
        if trend == Sentiment.BULLISH:
            sentiment = Sentiment.BULLISH
            score += OPPOSED_NUDGE
        else:
            sentiment = Sentiment.BEARISH
            score -= OPPOSED_NUDGE
    return score, sentiment


def score_timeframe(
    timeframe: str,
    answers: Iterable[Answer],
    questions: Iterable[Question],
    market: MarketSnapshot | None = None,
) -> TimeframeResult:
    """
    Score one timeframe from its answers.

    Args:
        timeframe: Timeframe label (e.g. "H4"); copied to the result.
        answers: Answers for this timeframe. Answers whose question is not in
            questions are skipped.
        questions: Question bank used to resolve answer.question_id.
        market: Optional daily market snapshot; its trend nudges near-neutral scores.

    Returns:
        TimeframeResult with score and strength in [0, 100], rounded to one decimal.
    """
    by_id = {q.id: q for q in questions}
    score = NEUTRAL_SCORE
    bullish_signals = 0
    bearish_signals = 0
    total_signals = 0
    reasoning: list[str] = []

    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            continue
        total_signals += 1
        handler = _HANDLERS.get(question.question_type)
        if handler is None:
            continue
        signal = handler(answer.value, question)
        score += signal.delta
        if signal.direction == Sentiment.BULLISH:
            bullish_signals += 1
        elif signal.direction == Sentiment.BEARISH:
            bearish_signals += 1
        if signal.reason:
            reasoning.append(signal.reason)

    score = max(MIN_SCORE, min(MAX_SCORE, score))
    sentiment = classify_sentiment(score, bullish_signals, bearish_signals)

    if market is not None:
        score, sentiment = _apply_market_trend(score, sentiment, market)
        reasoning.append(
            f"Market trend: {market.market_trend.value.lower()} "
            f"({market.data_source} data from {market.target_date})"
        )

    signal_strength = (
        max(bullish_signals, bearish_signals) / total_signals * 100 if total_signals > 0 else 0.0
    )
    score_deviation = abs(score - NEUTRAL_SCORE) * 2
    strength = min(MAX_SCORE, (signal_strength + score_deviation) / 2)

    result = TimeframeResult(
        timeframe=timeframe,
        score=round_half_up(score),
        sentiment=sentiment,
        strength=round_half_up(strength),
        reasoning="; ".join(reasoning),
    )
    logger.debug(
        "timeframe_scored",
        timeframe=timeframe,
        score=result.score,
        sentiment=result.sentiment.value,
        strength=result.strength,
        bullish_signals=bullish_signals,
        bearish_signals=bearish_signals,
        total_signals=total_signals,
    )
    return result
