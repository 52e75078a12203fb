"""
Recalculate timeframe sentiments and overall metrics for one analysis.

Same service as POST /api/tda/fix-sentiments, without the HTTP layer.

Usage:
  py -m backend_journal.tools.recalculate_sentiments --analysis-id ID --user-id USER
"""

from __future__ import annotations

import argparse
import json

from backend_journal.core.exceptions import AnalysisNotFoundError
from backend_journal.database import init_db
from backend_journal.journal_logging import get_logger
from backend_journal.services import recalculate_sentiments

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Recalculate timeframe sentiments for an analysis.")
    ap.add_argument("--analysis-id", dest="analysis_id", required=True, help="Analysis id")
    ap.add_argument("--user-id", dest="user_id", required=True, help="Owner of the analysis")
    args = ap.parse_args(argv)

    init_db()
    try:
        run = recalculate_sentiments(args.analysis_id, args.user_id)
    except AnalysisNotFoundError:
        logger.error("analysis_not_found", analysis_id=args.analysis_id)
        print(f"Analysis not found: {args.analysis_id}")
        return 1

    print(json.dumps(run.to_dict(), indent=2))
    return 1 if run.failed_timeframes or not run.metrics_saved else 0


if __name__ == "__main__":
    raise SystemExit(main())
