"""Modello Utente / User model."""

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from null_backend.database import Base, enum_values
from null_backend.utils.clock import utcnow


class UserRole(str, enum.Enum):
    """Ruolo applicativo / Application role."""
    USER = "user"
    OPERATOR = "operator"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(200))
    hashed_password: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=UserRole.USER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # {"cell_access": false} disattiva un tipo di notifica / disables one notification kind
    notification_prefs: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_operator(self) -> bool:
        return self.role in (UserRole.OPERATOR, UserRole.ADMIN)

    def wants_notification(self, kind: str) -> bool:
        """Preferenza assente = abilitata / Missing preference means enabled."""
        return bool((self.notification_prefs or {}).get(kind, True))

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role.value})>"
