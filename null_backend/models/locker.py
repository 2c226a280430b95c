"""Modello Locker / Locker model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from null_backend.database import Base, enum_values
from null_backend.utils.clock import utcnow


class LockerState(str, enum.Enum):
    """Stato operativo / Operational state."""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    DISABLED = "disabled"


class LockerSize(str, enum.Enum):
    """Taglia del locker / Locker size class."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Locker(Base):
    """Armadietto con più celle / Cabinet holding several cells."""
    __tablename__ = "lockers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    locker_code: Mapped[str | None] = mapped_column(String(20), unique=True)  # LCK-001, assegnato dopo il flush
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(String(300))
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    state: Mapped[LockerState] = mapped_column(
        Enum(LockerState, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=LockerState.ACTIVE,
    )
    online: Mapped[bool] = mapped_column(Boolean, default=True)
    category: Mapped[str | None] = mapped_column(String(30))  # sportivi, personali, petFriendly...
    size: Mapped[LockerSize] = mapped_column(
        Enum(LockerSize, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=LockerSize.MEDIUM,
    )
    description: Mapped[str | None] = mapped_column(Text)

    # Manutenzione / Maintenance
    in_maintenance: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_reason: Mapped[str | None] = mapped_column(Text)
    maintenance_expected_end: Mapped[datetime | None] = mapped_column(DateTime)
    last_maintenance_at: Mapped[datetime | None] = mapped_column(DateTime)
    restored_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def accepts_sessions(self) -> bool:
        """Nuove sessioni solo se attivo e online / New sessions only when active and online."""
        return self.state == LockerState.ACTIVE and bool(self.online)

    def __repr__(self) -> str:
        return f"<Locker {self.locker_code} {self.state.value}>"
