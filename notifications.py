import logging
from datetime import datetime, timedelta
from typing import Optional, List, Any
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from models import Notification, NotificationType, NotificationPriority, NotificationStatus
from config import get_settings
from errors import NotFound, NotificationError

logger = logging.getLogger("ridepool.notifications")

TYPES = {t.value for t in NotificationType}
PRIORITIES = {p.value for p in NotificationPriority}
USER_REQUIRED_TYPES = {
    NotificationType.RIDE_JOIN.value,
    NotificationType.RIDE_CANCEL.value,
    NotificationType.RIDE_UPDATE.value,
    NotificationType.RIDE_REQUEST.value,
    NotificationType.RIDE_CONFIRMATION.value,
    NotificationType.RIDE_REJECTION.value,
    NotificationType.USER_PROFILE_UPDATE.value,
}
MAX_MESSAGE_LENGTH = 500


def create_notification(session, recipient_id: Optional[int], type, message: str,
                        ride_id: Optional[int] = None, user_id: Optional[int] = None,
                        context: Any = None, priority=NotificationPriority.LOW,
                        expires_at: Optional[datetime] = None) -> Notification:
    """Validate and persist one notification.

    Raises NotificationError when the recipient or type is missing/unknown, when
    a RIDE_* notification has no ride, when a type that names its trigger has
    no user, or when the message is empty or too long.
    """
    if not recipient_id:
        raise NotificationError("Recipient is required")
    type = getattr(type, "value", type)
    if type not in TYPES:
        raise NotificationError(f"Invalid notification type: {type}")
    priority = getattr(priority, "value", priority)
    if priority not in PRIORITIES:
        raise NotificationError(f"Invalid notification priority: {priority}")
    if type.startswith("RIDE_") and ride_id is None:
        raise NotificationError(f"Ride is required for notification type: {type}")
    if type in USER_REQUIRED_TYPES and user_id is None:
        raise NotificationError(f"User is required for notification type: {type}")
    message = (message or "").strip()
    if not message:
        raise NotificationError("Message is required")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise NotificationError(f"Message is longer than {MAX_MESSAGE_LENGTH} characters")
    if context is not None and not isinstance(context, dict):
        context = {"data": context}
    if priority == NotificationPriority.CRITICAL.value and expires_at is None:
        expires_at = datetime.utcnow() + timedelta(days=get_settings().critical_ttl_days)

    n = Notification(
        recipient_id=recipient_id,
        type=type,
        ride_id=ride_id,
        user_id=user_id,
        message=message,
        context=context,
        priority=priority,
        expires_at=expires_at,
    )
    session.add(n)
    session.commit()
    session.refresh(n)
    return n


def notify(session, recipient_id, type, message, **kwargs) -> Optional[Notification]:
    """Fire-and-forget variant used by ride mutations: failures are logged only."""
    try:
        return create_notification(session, recipient_id, type, message, **kwargs)
    except (NotificationError, SQLAlchemyError) as e:
        session.rollback()
        logger.warning("failed to create %s notification for user %s (ride %s): %s",
                       getattr(type, "value", type), recipient_id, kwargs.get("ride_id"), e)
        return None


def purge_expired(session, now: Optional[datetime] = None) -> int:
    """Delete notifications past their TTL or explicit expiry. Returns the count removed."""
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=get_settings().notification_ttl_days)
    removed = session.query(Notification).filter(
        or_(
            Notification.created_at < cutoff,
            Notification.expires_at < now,
        )
    ).delete(synchronize_session=False)
    session.commit()
    if removed:
        logger.info("purged %d expired notifications", removed)
    return removed


def list_notifications(session, recipient_id: int, limit: Optional[int] = None) -> List[Notification]:
    purge_expired(session)
    limit = limit or get_settings().notification_limit
    return (
        session.query(Notification)
        .filter(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_as_read(session, notification_id: int, recipient_id: int) -> Notification:
    n = (
        session.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == recipient_id)
        .first()
    )
    if not n:
        raise NotFound("Notification not found")
    n.status = NotificationStatus.READ.value
    n.updated_at = datetime.utcnow()
    session.add(n)
    session.commit()
    session.refresh(n)
    return n
