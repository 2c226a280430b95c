"""Schemi Notifica / Notification schemas."""

from datetime import datetime

from null_backend.models.notification import NotificationKind
from null_backend.schemas.common import CamelModel


class NotificationRead(CamelModel):
    id: int
    notification_code: str | None
    kind: NotificationKind
    title: str
    message: str
    payload: dict | None
    is_read: bool
    created_at: datetime | None
    read_at: datetime | None
