"""Route Notifiche in-app / In-app notification routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import get_current_user
from null_backend.database import get_db
from null_backend.errors import NotFoundError
from null_backend.models.notification import Notification
from null_backend.models.user import User
from null_backend.schemas.common import envelope
from null_backend.schemas.notification import NotificationRead
from null_backend.services.notifier import list_for_user
from null_backend.utils.clock import utcnow

router = APIRouter()


@router.get("")
async def list_notifications(
    unread: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    items = await list_for_user(db, user.id, unread_only=unread)
    return envelope(
        notifications=[NotificationRead.model_validate(n).dump() for n in items],
        total=len(items),
    )


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != user.id:
        raise NotFoundError(f"Notification {notification_id} not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        await db.flush()
    return envelope(notification=NotificationRead.model_validate(notification).dump())
