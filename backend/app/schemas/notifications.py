from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel

from backend.app.models.models import NotificationType

class NotificationResponse(BaseModel):
    id: str
    hub_id: str
    user_id: Optional[str] = None
    type: NotificationType
    title: str
    message: str
    notification_metadata: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
