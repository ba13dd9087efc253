import logging
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.models.models import Hub
from backend.app.schemas.budgets import RolloverResult
from backend.app.services.budget_service import ensure_budget_instances
from backend.app.services.clock import Clock

logger = logging.getLogger(__name__)

def perform_monthly_rollover(db: Session, clock: Clock,
                             target_month: Optional[int] = None,
                             target_year: Optional[int] = None) -> RolloverResult:
    """
    Materialize the budget instances of every hub for a month, applying carry-over where enabled.

    Defaults to the clock's current month. A failing hub is counted and logged
    without stopping the others.
    """
    try:
        now = clock.now()
        month = target_month or now.month
        year = target_year or now.year

        logger.info("Starting budget rollover for %02d/%d", month, year)
        hubs = db.query(Hub.id, Hub.name).all()

        processed = 0
        failed = 0
        for hub_id, hub_name in hubs:
            try:
                ensure_budget_instances(db, hub_id, month, year)
                processed += 1
                logger.debug("Rolled over hub %s (%s)", hub_name, hub_id)
            except Exception:
                db.rollback()
                failed += 1
                logger.exception("Budget rollover failed for hub %s", hub_id)

        message = f"Budget rollover completed for {month}/{year}. Processed: {processed}, Failed: {failed}"
        logger.info(message)
        return RolloverResult(success=True, message=message, processed=processed, failed=failed)
    except Exception as exc:
        db.rollback()
        logger.exception("Critical error during budget rollover")
        return RolloverResult(success=False, message=str(exc) or "Critical error during budget rollover")
