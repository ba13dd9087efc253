import json
import logging
import sys
from typing import Optional

from backend.app.config import configure_logging
from backend.app.database import SessionLocal
from backend.app.services.clock import Clock, SystemClock
from backend.app.services.notification_service import build_notifier
from backend.app.services.recurring_transaction_service import generate_recurring_transactions

logger = logging.getLogger(__name__)

def handler(session_factory=SessionLocal, clock: Optional[Clock] = None):
    """
    Scheduler entry point for recurring transaction generation.

    Meant to be invoked once per interval (e.g. daily) by cron or a managed
    scheduler, which keeps the returned stats for operational visibility.
    """
    db = session_factory()
    try:
        logger.info("Starting recurring transaction generation job...")
        result = generate_recurring_transactions(db, clock or SystemClock(), build_notifier(db))

        if result.success:
            logger.info(result.message)
            if result.stats.errors:
                logger.warning("Errors encountered: %s", [e.model_dump() for e in result.stats.errors])
        else:
            logger.error("Recurring transaction generation failed: %s", result.message)

        return {
            "statusCode": 200 if result.success else 500,
            "body": json.dumps(result.model_dump())
        }
    finally:
        db.close()

if __name__ == "__main__":
    configure_logging()
    response = handler()
    print(response["body"])
    sys.exit(0 if response["statusCode"] == 200 else 1)
