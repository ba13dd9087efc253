import argparse
import logging
import sys
from typing import Optional

from backend.app.config import configure_logging
from backend.app.database import SessionLocal
from backend.app.services.budget_rollover_service import perform_monthly_rollover
from backend.app.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

def handler(month: Optional[int] = None, year: Optional[int] = None, session_factory=SessionLocal,
            clock: Optional[Clock] = None):
    """Scheduler entry point materializing every hub's budgets for a month (default: current)"""
    db = session_factory()
    try:
        result = perform_monthly_rollover(db, clock or SystemClock(), month, year)
        if not result.success:
            logger.error("Budget rollover failed: %s", result.message)
        return result
    finally:
        db.close()

def main(argv=None):
    parser = argparse.ArgumentParser(description="Materialize monthly budget instances for all hubs")
    parser.add_argument("--month", type=int, choices=range(1, 13), help="Target month (1-12)")
    parser.add_argument("--year", type=int, help="Target year")
    args = parser.parse_args(argv)

    configure_logging()
    result = handler(args.month, args.year)
    print(result.model_dump_json())
    return 0 if result.success else 1

if __name__ == "__main__":
    sys.exit(main())
