from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.database import get_db_session
from backend.app.schemas.notifications import NotificationResponse
from backend.app.services.notification_service import get_notifications

router = APIRouter()

@router.get("/", response_model=List[NotificationResponse])
def get_notifications_endpoint(
    hub_id: str = Query(..., description="ID of the hub"),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db_session)
):
    """
    Get the notifications of a hub, newest first
    """
    return get_notifications(db, hub_id, unread_only, limit)
