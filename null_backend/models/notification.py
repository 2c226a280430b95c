"""Modello Notifica in-app / In-app notification model."""

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from null_backend.database import Base, enum_values
from null_backend.utils.clock import utcnow


class NotificationKind(str, enum.Enum):
    """Tipo di notifica / Notification kind."""
    CELL_ACCESS = "cell_access"
    TEMPORARY_CLOSURE = "temporary_closure"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    notification_code: Mapped[str | None] = mapped_column(String(20), unique=True)  # NOT-001
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    kind: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind, values_callable=enum_values, native_enum=False, length=30), nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow)
    read_at: Mapped[datetime | None] = mapped_column(DateTime)
