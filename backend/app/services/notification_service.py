import logging
from typing import Any, Dict, Optional, Protocol

from fastapi import Depends
from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.database import get_db_session
from backend.app.models.models import Notification, NotificationType

logger = logging.getLogger(__name__)

class Notifier(Protocol):
    def notify(self, hub_id: str, kind: NotificationType, payload: Dict[str, Any]) -> None:
        ...

class NullNotifier:
    """Drops every request; used when notifications are disabled"""

    def notify(self, hub_id: str, kind: NotificationType, payload: Dict[str, Any]) -> None:
        logger.debug("Notification dropped for hub %s (%s)", hub_id, kind)

class DatabaseNotifier:
    """
    Stores notification requests as rows in the notifications table.

    Fire-and-forget: callers invoke it only after their own unit of work has
    committed, and any failure here is logged and swallowed so it can never
    fail a generation or a materialization.
    """

    def __init__(self, db: Session):
        self.db = db

    def notify(self, hub_id: str, kind: NotificationType, payload: Dict[str, Any]) -> None:
        try:
            metadata = {k: v for k, v in payload.items() if k not in ("title", "message", "user_id")}
            notification = Notification(
                hub_id=hub_id,
                user_id=payload.get("user_id"),
                type=kind,
                title=payload.get("title") or kind.value.capitalize(),
                message=payload.get("message") or "",
                notification_metadata=metadata or None,
            )
            self.db.add(notification)
            self.db.commit()
        except Exception:
            logger.exception("Failed to store %s notification for hub %s", kind.value, hub_id)
            try:
                self.db.rollback()
            except Exception:
                logger.exception("Rollback after notification failure also failed")

def get_notifications(db: Session, hub_id: str, unread_only: bool = False, limit: int = 50):
    """Notifications for a hub, newest first"""
    query = db.query(Notification).filter(Notification.hub_id == hub_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return query.order_by(Notification.created_at.desc()).limit(limit).all()

def build_notifier(db: Session, enabled: Optional[bool] = None) -> Notifier:
    """Notifier honouring `notifications_enabled` unless overridden"""
    if enabled is None:
        enabled = get_settings().notifications_enabled
    return DatabaseNotifier(db) if enabled else NullNotifier()

def get_notifier(db: Session = Depends(get_db_session)) -> Notifier:
    """Dependency returning the notifier for a request"""
    return build_notifier(db)
