import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.models.models import (
    RecurringTransactionTemplate, Transaction, FinancialAccount, Hub,
    TransactionType, TemplateStatus, NotificationType, FailureReason
)
from backend.app.schemas.recurring import (
    RecurringTemplateCreate, RecurringTemplateUpdate, GenerationStats, GenerationError, GenerationResult
)
from backend.app.services.account_service import get_account_in_hub, debit_account, credit_account
from backend.app.services.clock import Clock
from backend.app.services.due_date_service import is_due
from backend.app.services.notification_service import Notifier

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILED = "failed"
SKIPPED = "skipped"

# Blueprint fields that may be omitted from an update but never cleared
REQUIRED_TEMPLATE_FIELDS = ("financial_account_id", "amount", "frequency_days", "start_date", "status")

class GenerationFailure(Exception):
    """A due template could not be generated; recorded on the template and retried next run"""

    def __init__(self, reason: FailureReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __str__(self):
        return f"{self.reason.value}: {self.message}"

class AlreadyGenerated(Exception):
    """Another run claimed the template between evaluation and commit"""

# --- Template management ---

def _validate_accounts(db: Session, hub_id: str, tx_type: TransactionType,
                       account_id: str, destination_id: Optional[str]) -> None:
    get_account_in_hub(db, account_id, hub_id)
    if tx_type == TransactionType.TRANSFER:
        if not destination_id:
            raise HTTPException(status_code=400, detail="Transfers require a destination account")
        if destination_id == account_id:
            raise HTTPException(status_code=400, detail="Source and destination accounts must differ")
        get_account_in_hub(db, destination_id, hub_id)

def create_template(db: Session, template_data: RecurringTemplateCreate) -> RecurringTransactionTemplate:
    """Create a new recurring transaction template"""

    hub = db.query(Hub).filter(Hub.id == template_data.hub_id).first()
    if not hub:
        raise HTTPException(status_code=404, detail=f"Hub with id {template_data.hub_id} not found")

    _validate_accounts(db, template_data.hub_id, template_data.type,
                       template_data.financial_account_id, template_data.destination_account_id)

    template = RecurringTransactionTemplate(
        hub_id=template_data.hub_id,
        user_id=template_data.user_id,
        financial_account_id=template_data.financial_account_id,
        destination_account_id=template_data.destination_account_id if template_data.type == TransactionType.TRANSFER else None,
        category_id=template_data.category_id,
        type=template_data.type,
        source=template_data.source,
        amount=template_data.amount,
        note=template_data.note,
        frequency_days=template_data.frequency_days or get_settings().default_frequency_days,
        start_date=template_data.start_date,
        end_date=template_data.end_date,
        status=TemplateStatus.ACTIVE,
        consecutive_failures=0
    )

    db.add(template)
    db.commit()
    db.refresh(template)

    logger.info("Created recurring template %s for hub %s", template.id, template.hub_id)
    return template

def get_template(db: Session, template_id: str) -> RecurringTransactionTemplate:
    template = db.query(RecurringTransactionTemplate).filter(RecurringTransactionTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=404, detail=f"Recurring template with id {template_id} not found")
    return template

def get_templates(db: Session, hub_id: str, include_archived: bool = False) -> List[RecurringTransactionTemplate]:
    """Get the recurring templates of a hub"""
    query = db.query(RecurringTransactionTemplate).filter(RecurringTransactionTemplate.hub_id == hub_id)
    if not include_archived:
        query = query.filter(RecurringTransactionTemplate.archived_at.is_(None))
    return query.order_by(RecurringTransactionTemplate.created_at).all()

def update_template(db: Session, template_id: str, update: RecurringTemplateUpdate) -> RecurringTransactionTemplate:
    """
    Edit a template's blueprint fields.

    Generation tracking fields are owned by the generation engine and are not
    editable here.
    """
    template = get_template(db, template_id)
    update_data = update.model_dump(exclude_unset=True)

    missing = sorted(key for key in REQUIRED_TEMPLATE_FIELDS if key in update_data and update_data[key] is None)
    if missing:
        raise HTTPException(status_code=400, detail=f"Fields cannot be null: {', '.join(missing)}")

    account_id = update_data.get("financial_account_id", template.financial_account_id)
    destination_id = update_data.get("destination_account_id", template.destination_account_id)
    if "financial_account_id" in update_data or "destination_account_id" in update_data:
        _validate_accounts(db, template.hub_id, template.type, account_id, destination_id)

    start = update_data.get("start_date", template.start_date)
    end = update_data.get("end_date", template.end_date)
    if end is not None and end < start:
        raise HTTPException(status_code=400, detail="End date must not be before start date")

    for key, value in update_data.items():
        setattr(template, key, value)

    db.commit()
    db.refresh(template)
    return template

def archive_template(db: Session, template_id: str, now: datetime) -> RecurringTransactionTemplate:
    """Archive a template; archived templates are never evaluated for generation"""
    template = get_template(db, template_id)
    if template.archived_at is None:
        template.archived_at = now
        db.commit()
        db.refresh(template)
        logger.info("Archived recurring template %s", template_id)
    return template

def unarchive_template(db: Session, template_id: str) -> RecurringTransactionTemplate:
    template = get_template(db, template_id)
    if template.archived_at is not None:
        template.archived_at = None
        db.commit()
        db.refresh(template)
        logger.info("Unarchived recurring template %s", template_id)
    return template

# --- Generation engine ---

def balance_effects(template: RecurringTransactionTemplate) -> List[Tuple[str, float]]:
    """Signed balance change per account produced by one generation of the template"""
    amount = template.amount
    if template.type == TransactionType.EXPENSE:
        return [(template.financial_account_id, -amount)]
    elif template.type == TransactionType.INCOME:
        return [(template.financial_account_id, amount)]
    elif template.type == TransactionType.TRANSFER:
        return [(template.financial_account_id, -amount), (template.destination_account_id, amount)]
    raise ValueError(f"Unsupported transaction type: {template.type}")

def _claim_template(db: Session, template: RecurringTransactionTemplate, now: datetime) -> None:
    """
    Mark the template generated at `now`, provided nobody else did since it was read.

    Compare-and-swap on `last_generated_date`: an overlapping run that already
    generated this period makes the update match zero rows.
    """
    observed = template.last_generated_date
    query = db.query(RecurringTransactionTemplate).filter(
        RecurringTransactionTemplate.id == template.id,
        RecurringTransactionTemplate.status == TemplateStatus.ACTIVE,
        RecurringTransactionTemplate.archived_at.is_(None)
    )
    if observed is None:
        query = query.filter(RecurringTransactionTemplate.last_generated_date.is_(None))
    else:
        query = query.filter(RecurringTransactionTemplate.last_generated_date == observed)

    claimed = query.update({
        RecurringTransactionTemplate.last_generated_date: now,
        RecurringTransactionTemplate.consecutive_failures: 0,
        RecurringTransactionTemplate.last_failed_date: None,
        RecurringTransactionTemplate.failure_reason: None
    }, synchronize_session=False)

    if claimed != 1:
        raise AlreadyGenerated(template.id)

def _generate(db: Session, template: RecurringTransactionTemplate, now: datetime) -> Transaction:
    """All-or-nothing unit: claim, move money, write the ledger entry, commit"""
    _claim_template(db, template, now)

    effects = balance_effects(template)
    for account_id, _ in effects:
        account = db.query(FinancialAccount).filter(
            FinancialAccount.id == account_id,
            FinancialAccount.hub_id == template.hub_id
        ).first() if account_id else None
        if account is None:
            raise GenerationFailure(FailureReason.MISSING_ACCOUNT, f"Account {account_id} not found")

    for account_id, delta in effects:
        if delta < 0:
            if not debit_account(db, account_id, -delta):
                raise GenerationFailure(
                    FailureReason.INSUFFICIENT_FUNDS,
                    f"Account {account_id} has insufficient funds for {-delta:.2f}"
                )
        elif not credit_account(db, account_id, delta):
            raise GenerationFailure(FailureReason.MISSING_ACCOUNT, f"Account {account_id} not found")

    transaction = Transaction(
        hub_id=template.hub_id,
        user_id=template.user_id,
        financial_account_id=template.financial_account_id,
        destination_account_id=template.destination_account_id if template.type == TransactionType.TRANSFER else None,
        category_id=template.category_id,
        type=template.type,
        recurring_template_id=template.id,
        source=template.source,
        amount=template.amount,
        note=template.note,
        created_at=now
    )
    db.add(transaction)
    db.commit()
    return transaction

def _record_failure(db: Session, template_id: str, now: datetime, reason: FailureReason) -> None:
    """Stamp the failure on the template; `last_generated_date` stays untouched so it is retried"""
    try:
        db.query(RecurringTransactionTemplate).filter(
            RecurringTransactionTemplate.id == template_id
        ).update({
            RecurringTransactionTemplate.last_failed_date: now,
            RecurringTransactionTemplate.failure_reason: reason.value,
            RecurringTransactionTemplate.consecutive_failures: RecurringTransactionTemplate.consecutive_failures + 1
        }, synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record failure for recurring template %s", template_id)

def _request_notification(notifier: Notifier, hub_id: str, kind: NotificationType, payload: dict) -> None:
    try:
        notifier.notify(hub_id, kind, payload)
    except Exception:
        logger.exception("Notifier raised for hub %s; ignoring", hub_id)

def process_template(db: Session, template: RecurringTransactionTemplate, now: datetime,
                     notifier: Notifier) -> Tuple[str, Optional[str]]:
    """
    Evaluate one template and, when due, generate its transaction.

    Returns the outcome (success, failed or skipped) and the error message for
    failures.
    """
    check = is_due(template, now)
    if not check.due:
        logger.debug("Skipping recurring template %s: %s", template.id, check.skip_reason.value)
        return SKIPPED, None

    # Read before the unit of work; a rollback expires the instance
    template_id = template.id
    hub_id = template.hub_id
    user_id = template.user_id
    label = template.source or template.type.value
    amount = template.amount

    try:
        transaction = _generate(db, template, now)
    except AlreadyGenerated:
        db.rollback()
        logger.info("Recurring template %s was generated by a concurrent run", template_id)
        return SKIPPED, None
    except GenerationFailure as failure:
        db.rollback()
        error = failure
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Persistence error while generating recurring template %s", template_id)
        error = GenerationFailure(FailureReason.PERSISTENCE_ERROR, str(exc))
    else:
        logger.info("Generated transaction %s from recurring template %s", transaction.id, template_id)
        _request_notification(notifier, hub_id, NotificationType.SUCCESS, {
            "user_id": user_id,
            "title": "Recurring transaction created",
            "message": f"{label} of {amount:.2f} was recorded.",
            "template_id": template_id,
            "transaction_id": transaction.id,
            "amount": amount
        })
        return SUCCESS, None

    logger.warning("Recurring template %s failed: %s", template_id, error)
    _record_failure(db, template_id, now, error.reason)
    _request_notification(notifier, hub_id, NotificationType.WARNING, {
        "user_id": user_id,
        "title": "Recurring transaction failed",
        "message": f"{label} of {amount:.2f} could not be recorded ({error.reason.value}). It will be retried on the next run.",
        "template_id": template_id,
        "reason": error.reason.value,
        "amount": amount
    })
    return FAILED, str(error)

def run_batch(db: Session, now: datetime, notifier: Notifier) -> GenerationStats:
    """
    Generate transactions for every active, non-archived template that is due at `now`.

    Templates are processed one at a time, grouped by account, and each is its
    own unit of work: a failing template is recorded and counted but never
    stops the rest of the batch. Failed templates keep their
    `last_generated_date`, so they are retried on every run until they succeed
    or are deactivated by hand; there is no automatic deactivation after
    repeated failures.
    """
    stats = GenerationStats()

    templates = db.query(RecurringTransactionTemplate).filter(
        RecurringTransactionTemplate.status == TemplateStatus.ACTIVE,
        RecurringTransactionTemplate.archived_at.is_(None)
    ).order_by(
        RecurringTransactionTemplate.financial_account_id,
        RecurringTransactionTemplate.created_at
    ).all()

    logger.info("Evaluating %d recurring templates at %s", len(templates), now.isoformat())

    # Plain values are read up front; every commit or rollback below expires the instances
    pending = [(t.id, t.hub_id, t.user_id, t) for t in templates]
    for template_id, hub_id, user_id, template in pending:
        try:
            outcome, error = process_template(db, template, now, notifier)
        except Exception as exc:
            db.rollback()
            logger.exception("Unexpected error processing recurring template %s", template_id)
            _record_failure(db, template_id, now, FailureReason.UNEXPECTED_ERROR)
            _request_notification(notifier, hub_id, NotificationType.WARNING, {
                "user_id": user_id,
                "title": "Recurring transaction failed",
                "message": "A recurring transaction could not be recorded. It will be retried on the next run.",
                "template_id": template_id,
                "reason": FailureReason.UNEXPECTED_ERROR.value
            })
            outcome, error = FAILED, str(exc)

        if outcome == SUCCESS:
            stats.success += 1
        elif outcome == SKIPPED:
            stats.skipped += 1
        else:
            stats.failed += 1
            stats.errors.append(GenerationError(template_id=template_id, error=error))

    logger.info(
        "Recurring generation finished: success=%d failed=%d skipped=%d",
        stats.success, stats.failed, stats.skipped
    )
    return stats

def generate_recurring_transactions(db: Session, clock: Clock, notifier: Notifier) -> GenerationResult:
    """Run one batch at the clock's current time and summarise it; never raises"""
    try:
        stats = run_batch(db, clock.now(), notifier)
    except Exception as exc:
        db.rollback()
        logger.exception("Recurring transaction generation failed")
        return GenerationResult(success=False, message=str(exc) or "Unexpected error occurred", stats=GenerationStats())

    message = (
        f"Recurring transaction generation completed. "
        f"Success: {stats.success}, Failed: {stats.failed}, Skipped: {stats.skipped}"
    )
    return GenerationResult(success=True, message=message, stats=stats)
