from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from backend.app.models.models import RecurringTransactionTemplate, SkipReason, TemplateStatus

@dataclass(frozen=True)
class DueCheck:
    due: bool
    skip_reason: Optional[SkipReason] = None
    next_due_date: Optional[datetime] = None

def next_due_date(template: RecurringTransactionTemplate) -> datetime:
    """Date on which the template fires next, ignoring status and end date"""
    if template.last_generated_date is None:
        return template.start_date
    return template.last_generated_date + timedelta(days=template.frequency_days)

def is_due(template: RecurringTransactionTemplate, now: datetime) -> DueCheck:
    """
    Decide whether a recurring template should generate a transaction at `now`.

    Rules are applied in order:
        1. inactive or archived templates never fire
        2. templates starting in the future never fire
        3. a never-generated template fires as soon as it has started;
           otherwise it fires once `frequency_days` have elapsed since the
           last generation (the boundary itself counts as due)
        4. a template whose generation date would fall after its end date
           does not fire

    Args:
        template: The template to evaluate
        now: Evaluation instant, supplied by the caller's clock

    Returns:
        DueCheck with `due` set, or the SkipReason explaining why not
    """
    if template.status != TemplateStatus.ACTIVE or template.archived_at is not None:
        return DueCheck(due=False, skip_reason=SkipReason.NOT_ACTIVE)

    if template.start_date > now:
        return DueCheck(due=False, skip_reason=SkipReason.FUTURE_START, next_due_date=template.start_date)

    due_at = next_due_date(template)
    if template.last_generated_date is not None and now < due_at:
        return DueCheck(due=False, skip_reason=SkipReason.ALREADY_GENERATED_THIS_PERIOD, next_due_date=due_at)

    # The generation would be stamped with `now`
    if template.end_date is not None and now > template.end_date:
        return DueCheck(due=False, skip_reason=SkipReason.PAST_END_DATE)

    return DueCheck(due=True, next_due_date=due_at)
