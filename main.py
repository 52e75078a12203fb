"""
Main entrypoint: create tables, then run the FastAPI server.

Env: JOURNAL_DB_URL / DATABASE_URL or DATABASE_PATH, ALPHA_VANTAGE_API_KEY, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_journal.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_journal.journal_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Initialise the database and serve the API in the main thread."""
    from backend_journal.config import get_settings
    from backend_journal.database import init_db

    settings = get_settings()
    init_db()
    if not settings.market_data_enabled:
        logger.warning("main_market_data_disabled", message="ALPHA_VANTAGE_API_KEY not set; scores use answers only")

    from backend_journal.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
