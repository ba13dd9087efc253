import logging
from typing import Any, Dict

from fastapi import HTTPException
from sqlalchemy.orm import Session

from backend.app.models.models import Hub
from backend.app.schemas.hubs import HubCreate, HubSettingsUpdate

logger = logging.getLogger(__name__)

def create_hub(db: Session, hub_data: HubCreate) -> Hub:
    """Create a new hub"""
    hub = Hub(
        name=hub_data.name,
        user_id=hub_data.user_id,
        budget_carry_over=hub_data.budget_carry_over,
        budget_email_warnings=hub_data.budget_email_warnings
    )
    db.add(hub)
    db.commit()
    db.refresh(hub)
    return hub

def get_hub(db: Session, hub_id: str) -> Hub:
    hub = db.query(Hub).filter(Hub.id == hub_id).first()
    if not hub:
        raise HTTPException(status_code=404, detail=f"Hub with id {hub_id} not found")
    return hub

def get_carry_over_enabled(db: Session, hub_id: str) -> bool:
    """Whether budget surpluses/deficits roll into the next month for this hub"""
    hub = db.query(Hub).filter(Hub.id == hub_id).first()
    if not hub:
        logger.warning("Hub %s not found while resolving carry-over setting, defaulting to disabled", hub_id)
        return False
    return bool(hub.budget_carry_over)

def get_hub_settings(db: Session, hub_id: str) -> Dict[str, Any]:
    hub = get_hub(db, hub_id)
    return {
        "hub_id": hub.id,
        "budget_carry_over": hub.budget_carry_over,
        "budget_email_warnings": hub.budget_email_warnings
    }

def update_hub_settings(db: Session, hub_id: str, settings_update: HubSettingsUpdate) -> Dict[str, Any]:
    """Update budget settings for a hub"""
    hub = get_hub(db, hub_id)

    for key, value in settings_update.model_dump(exclude_unset=True).items():
        setattr(hub, key, value)

    db.commit()
    db.refresh(hub)
    logger.info("Updated settings for hub %s", hub_id)
    return get_hub_settings(db, hub_id)
