from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.database import get_db_session
from backend.app.schemas.hubs import HubCreate, HubResponse, HubSettingsUpdate, HubSettingsResponse
from backend.app.services.hub_service import create_hub, get_hub_settings, update_hub_settings

router = APIRouter()

@router.post("/", response_model=HubResponse)
def create_hub_endpoint(hub_data: HubCreate, db: Session = Depends(get_db_session)):
    """
    Create a new hub
    """
    return create_hub(db, hub_data)

@router.get("/{hub_id}/settings", response_model=HubSettingsResponse)
def get_settings_endpoint(hub_id: str, db: Session = Depends(get_db_session)):
    """
    Get the budget settings of a hub
    """
    return get_hub_settings(db, hub_id)

@router.put("/{hub_id}/settings", response_model=HubSettingsResponse)
def update_settings_endpoint(
    hub_id: str,
    settings_update: HubSettingsUpdate,
    db: Session = Depends(get_db_session)
):
    """
    Update the budget settings of a hub.

    - budget_carry_over: roll each budget's surplus or deficit into the next month
    """
    return update_hub_settings(db, hub_id, settings_update)
