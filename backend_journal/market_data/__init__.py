"""
External market data used to nudge near-neutral timeframe scores.
"""

from backend_journal.market_data.alpha_vantage import (
    fetch_daily_series,
    fetch_historical_snapshot,
    fetch_latest_snapshot,
    snapshot_from_series,
    split_pair,
)

__all__ = [
    "fetch_daily_series",
    "fetch_historical_snapshot",
    "fetch_latest_snapshot",
    "snapshot_from_series",
    "split_pair",
]
