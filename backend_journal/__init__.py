"""
Trader's Journal backend.

Top-down multi-timeframe analysis (TDA) for forex traders: question bank,
per-analysis answers, rule-based timeframe sentiment scoring, weighted overall
metrics, and a FastAPI server over a SQLAlchemy database.
"""

__version__ = "0.1.0"
