"""
Daily FX market data from Alpha Vantage (FX_DAILY).

Fetches the daily series for a currency pair such as EURUSD and reduces it to
a MarketSnapshot: the target bar and the bar before it. Public functions
return None when the key is missing or the request/payload fails, so scoring
simply runs without the market-trend nudge.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any

import requests

from backend_journal.analysis_engine.models import MarketSnapshot
from backend_journal.config import get_settings
from backend_journal.core.exceptions import MarketDataError
from backend_journal.journal_logging import get_logger

logger = get_logger(__name__)

SERIES_KEY = "Time Series FX (Daily)"
MAX_RETRIES = 3
RETRY_DELAY_SEC = 2.0


def split_pair(currency_pair: str) -> tuple[str, str]:
    """'EURUSD' or 'eur/usd' -> ('EUR', 'USD'). Raises MarketDataError for anything shorter."""
    pair = (currency_pair or "").replace("/", "").strip().upper()
    if len(pair) < 6:
        raise MarketDataError(f"Invalid currency pair: {currency_pair!r}")
    return pair[:3], pair[3:6]


def _get(params: dict[str, str]) -> dict[str, Any]:
    settings = get_settings()
    last_error: Exception | None = None
    for attempt in range(MAX_RETRIES):
        try:
            r = requests.get(settings.alpha_vantage_url, params=params, timeout=settings.market_data_timeout_sec)
            if r.status_code == 429:
                logger.warning("market_data_rate_limited", attempt=attempt + 1, wait_sec=RETRY_DELAY_SEC)
                last_error = MarketDataError("rate limited (429)")
                if attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAY_SEC)
                continue
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            logger.warning("market_data_request_error", attempt=attempt + 1, error=str(e))
            last_error = e
            if attempt < MAX_RETRIES - 1:
                time.sleep(RETRY_DELAY_SEC)
        except ValueError as e:
            raise MarketDataError(f"Invalid JSON from market data API: {e}") from e
    raise MarketDataError(f"Market data request failed after {MAX_RETRIES} attempts: {last_error}")


def fetch_daily_series(currency_pair: str) -> dict[str, dict[str, str]]:
    """Return the raw FX_DAILY series keyed by ISO date. Raises MarketDataError."""
    settings = get_settings()
    if not settings.alpha_vantage_api_key:
        raise MarketDataError("ALPHA_VANTAGE_API_KEY not configured")
    from_symbol, to_symbol = split_pair(currency_pair)
    data = _get(
        {
            "function": "FX_DAILY",
            "from_symbol": from_symbol,
            "to_symbol": to_symbol,
            "apikey": settings.alpha_vantage_api_key,
        }
    )
    if not isinstance(data, dict):
        raise MarketDataError(f"Unexpected market data payload: {type(data).__name__}")
    series = data.get(SERIES_KEY)
    if not isinstance(series, dict) or not series:
        # Alpha Vantage reports errors and throttling as 200 with a "Note"/"Error Message" body
        raise MarketDataError(
            f"No daily series in response: {data.get('Error Message') or data.get('Note') or 'empty'}"
        )
    return series


def snapshot_from_series(
    currency_pair: str,
    series: dict[str, dict[str, str]],
    on_date: date | None = None,
    data_source: str = "live",
) -> MarketSnapshot:
    """
    Build a snapshot from a daily series.

    Target bar: newest bar dated on or before on_date (newest bar when on_date is
    None or no bar qualifies). Previous bar: the next older one, or the newest
    bar when the target is the oldest.
    """
    dates = sorted(series.keys(), reverse=True)
    if not dates:
        raise MarketDataError("Empty daily series")
    target = dates[0]
    if on_date is not None:
        cutoff = on_date.isoformat()
        target = next((d for d in dates if d <= cutoff), dates[0])
    index = dates.index(target)
    previous = dates[index + 1] if index + 1 < len(dates) else dates[0]
    latest = series[target]
    prior = series[previous]
    try:
        return MarketSnapshot(
            currency_pair=currency_pair,
            current_price=float(latest["4. close"]),
            previous_price=float(prior["4. close"]),
            high=float(latest["2. high"]),
            low=float(latest["3. low"]),
            volume=float(latest.get("5. volume") or 0),
            target_date=target,
            data_source=data_source,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MarketDataError(f"Malformed daily bar for {target}: {e}") from e


def fetch_latest_snapshot(currency_pair: str) -> MarketSnapshot | None:
    """Snapshot of the most recent trading day; None when unavailable."""
    try:
        series = fetch_daily_series(currency_pair)
        snapshot = snapshot_from_series(currency_pair, series, data_source="live")
    except MarketDataError as e:
        logger.warning("market_data_unavailable", currency_pair=currency_pair, error=str(e))
        return None
    logger.info(
        "market_data_fetched",
        currency_pair=currency_pair,
        target_date=snapshot.target_date,
        market_trend=snapshot.market_trend.value,
    )
    return snapshot


def fetch_historical_snapshot(currency_pair: str, on_date: date | None) -> MarketSnapshot | None:
    """Snapshot for the trading day at or before on_date; None when unavailable."""
    try:
        series = fetch_daily_series(currency_pair)
        snapshot = snapshot_from_series(currency_pair, series, on_date=on_date, data_source="historical")
    except MarketDataError as e:
        logger.warning("market_data_unavailable", currency_pair=currency_pair, error=str(e))
        return None
    logger.info(
        "market_data_fetched",
        currency_pair=currency_pair,
        target_date=snapshot.target_date,
        market_trend=snapshot.market_trend.value,
        requested_date=on_date.isoformat() if on_date else None,
    )
    return snapshot
