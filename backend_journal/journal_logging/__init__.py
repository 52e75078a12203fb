"""
Structured logging for the Trader's Journal backend.

JSON logs with timestamp, analysis_id, timeframe and event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_journal.journal_logging.logger import bind_analysis, get_logger

__all__ = ["bind_analysis", "get_logger"]
