"""
Seed the default question bank (DAILY, H1, M15) into tda_questions.

Existing questions are updated in place, keyed by (timeframe, order_index).

Usage:
  py -m backend_journal.tools.populate_questions
  py -m backend_journal.tools.populate_questions --dry-run
"""

from __future__ import annotations

import argparse
from typing import Any

from backend_journal.database import init_db
from backend_journal.database.repositories import upsert_questions
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)

SENTIMENT = ["Bullish", "Bearish", "Neutral"]
MOVEMENT = ["Rising", "Falling", "Sideways"]
POSITION = ["Positive", "Negative", "Zero"]
CONDITION = ["Overbought", "Oversold", "Neutral"]

# (question_text, options); options None means a free-text question.
INDICATOR_BLOCK: list[tuple[str, list[str] | None]] = [
    ("MACD Lines: Waterline", ["Above", "Below", "At"]),
    ("MACD Lines: Position", POSITION),
    ("MACD Lines: Movement", MOVEMENT),
    ("MACD Lines: Sentiment", SENTIMENT),
    ("MACD Lines: Notes", None),
    ("MACD Histogram: Position", POSITION),
    ("MACD Histogram: Movement", MOVEMENT),
    ("MACD Histogram: Sentiment", SENTIMENT),
    ("MACD Histogram: Notes", None),
    ("RSI: Condition", CONDITION),
    ("RSI: Direction", MOVEMENT),
    ("RSI: Position", ["Above 70", "Below 30", "Between 30-70"]),
    ("RSI: Sentiment", SENTIMENT),
    ("RSI: Notes", None),
    ("REI: Condition", CONDITION),
    ("REI: Direction", MOVEMENT),
    ("REI: Sentiment", SENTIMENT),
    ("REI: Notes", None),
    ("Analysis", None),
]

TIMEFRAME_HEADERS: dict[str, list[tuple[str, list[str] | None]]] = {
    "DAILY": [
        ("Current Daily Trend", ["Long", "Short", "Sideways"]),
        ("Today's Key Support / Resistance Levels", None),
        ("Cycle Pressure", ["Bullish", "Bearish"]),
        ("Notes", None),
        ("Previous Candle Colour", ["Red", "Green"]),
        ("Today's Pivot Point Range", ["MidS1 to MidR2", "MidS2 to MidR1"]),
        ("Notes", None),
        ("Candle / Chart Patterns", None),
        ("Fibonacci: Swing Low", None),
        ("Fibonacci: Swing High", None),
    ],
    "H1": [
        ("Trend Direction", ["Long", "Short", "Sideways"]),
        ("Key Levels", None),
        ("Cycle Pressure", ["Bullish", "Bearish"]),
        ("Notes", None),
    ],
    "M15": [
        ("Immediate Price Action", ["Bullish", "Bearish", "Sideways"]),
        ("Entry Signals", None),
        ("Current Volatility", ["Low", "Medium", "High"]),
        ("Notes", None),
        ("Most Relevant Trend Line", None),
        ("Price Location", ["Above Trend", "Below Trend", "At Trend"]),
        ("Drive/Exhaustion", ["Drive", "Exhaustion", "Neutral"]),
        ("Candle / Chart Patterns", None),
        ("Fibonacci: Swing Low", None),
        ("Fibonacci: Swing High", None),
    ],
}


def _question(timeframe: str, order_index: int, text: str, options: list[str] | None) -> dict[str, Any]:
    return {
        "timeframe": timeframe,
        "question_text": text,
        "question_type": "MULTIPLE_CHOICE" if options else "TEXT",
        "options": list(options) if options else None,
        "order_index": order_index,
        "required": False,
        "is_active": True,
    }


def build_default_questions() -> list[dict[str, Any]]:
    """Default bank: DAILY opens with Announcements, then each timeframe's header and the indicator block."""
    questions: list[dict[str, Any]] = [
        {
            "timeframe": "DAILY",
            "question_text": "Announcements",
            "question_type": "ANNOUNCEMENTS",
            "options": None,
            "order_index": 1,
            "required": False,
            "is_active": True,
        }
    ]
    for timeframe, header in TIMEFRAME_HEADERS.items():
        order = 2 if timeframe == "DAILY" else 1
        for text, options in header + INDICATOR_BLOCK:
            questions.append(_question(timeframe, order, text, options))
            order += 1
    return questions


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Seed the default top-down analysis question bank.")
    ap.add_argument("--dry-run", action="store_true", help="Print the question count per timeframe and exit")
    args = ap.parse_args(argv)

    questions = build_default_questions()
    counts: dict[str, int] = {}
    for q in questions:
        counts[q["timeframe"]] = counts.get(q["timeframe"], 0) + 1

    if args.dry_run:
        for timeframe, n in counts.items():
            print(f"{timeframe}: {n} questions")
        return 0

    init_db()
    stored = upsert_questions(questions)
    logger.info("questions_populated", total=len(stored), **{tf.lower(): n for tf, n in counts.items()})
    print(f"Populated {len(stored)} questions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
