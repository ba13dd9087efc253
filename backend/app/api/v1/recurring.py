from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.database import get_db_session
from backend.app.schemas.recurring import (
    RecurringTemplateCreate, RecurringTemplateUpdate, RecurringTemplateResponse, GenerationStats
)
from backend.app.services.clock import Clock, get_clock
from backend.app.services.notification_service import Notifier, get_notifier
from backend.app.services.recurring_transaction_service import (
    create_template, get_templates, update_template, archive_template, unarchive_template, run_batch
)

router = APIRouter()

@router.post("/", response_model=RecurringTemplateResponse)
def create_template_endpoint(
    template_data: RecurringTemplateCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a recurring transaction template.

    - The first transaction is generated on the first run at or after the start date
    - Transfers require a destination account in the same hub
    """
    return create_template(db, template_data)

@router.get("/", response_model=List[RecurringTemplateResponse])
def get_templates_endpoint(
    hub_id: str = Query(..., description="ID of the hub"),
    include_archived: bool = Query(False, description="Include archived templates"),
    db: Session = Depends(get_db_session)
):
    """
    Get the recurring templates of a hub, including their last generation and failure state
    """
    return get_templates(db, hub_id, include_archived)

@router.post("/generate", response_model=GenerationStats)
def generate_endpoint(
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Run one generation batch now. Intended for the scheduler and for manual retries.
    """
    return run_batch(db, clock.now(), notifier)

@router.put("/{template_id}", response_model=RecurringTemplateResponse)
def update_template_endpoint(
    template_id: str,
    template_update: RecurringTemplateUpdate,
    db: Session = Depends(get_db_session)
):
    """
    Update a recurring template's blueprint fields
    """
    return update_template(db, template_id, template_update)

@router.post("/{template_id}/archive", response_model=RecurringTemplateResponse)
def archive_template_endpoint(
    template_id: str,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock)
):
    """
    Archive a template so it is no longer generated
    """
    return archive_template(db, template_id, clock.now())

@router.post("/{template_id}/unarchive", response_model=RecurringTemplateResponse)
def unarchive_template_endpoint(
    template_id: str,
    db: Session = Depends(get_db_session)
):
    """
    Restore an archived template
    """
    return unarchive_template(db, template_id)
