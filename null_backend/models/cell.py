"""Modello Cella / Cell model."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, DateTime, Enum, Float, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from null_backend.database import Base, enum_values
from null_backend.utils.clock import utcnow


class CellPurpose(str, enum.Enum):
    """Uso della cella / Cell purpose."""
    DEPOSIT = "deposit"
    BORROW = "borrow"
    PICKUP = "pickup"
    COMMERCIAL = "commercial"


class CellState(str, enum.Enum):
    """Occupazione / Occupancy state."""
    FREE = "free"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class CellSize(str, enum.Enum):
    """Taglia della cella / Cell size class."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"


class Cell(Base):
    """Vano indirizzabile di un locker / Addressable compartment of a locker."""
    __tablename__ = "cells"
    __table_args__ = (UniqueConstraint("locker_id", "number", name="uq_cells_locker_number"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cell_code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)  # CEL-{locker}-{n}
    locker_id: Mapped[int] = mapped_column(ForeignKey("lockers.id"), nullable=False, index=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based nel locker
    purpose: Mapped[CellPurpose] = mapped_column(
        Enum(CellPurpose, values_callable=enum_values, native_enum=False, length=20), nullable=False,
    )
    state: Mapped[CellState] = mapped_column(
        Enum(CellState, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=CellState.FREE,
    )
    size: Mapped[CellSize] = mapped_column(
        Enum(CellSize, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=CellSize.MEDIUM,
    )
    photo_required: Mapped[bool] = mapped_column(Boolean, default=False)
    price_hint: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))  # EUR/h mostrato al cliente

    # Prestito / Borrow
    category: Mapped[str | None] = mapped_column(String(50))
    item_photo_url: Mapped[str | None] = mapped_column(String(300))
    weight_kg: Mapped[float | None] = mapped_column(Float)

    # Assegnazione commerciale / Commercial assignment
    shop_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    assigned_from: Mapped[datetime | None] = mapped_column(DateTime)
    assigned_until: Mapped[datetime | None] = mapped_column(DateTime)
    assignment_notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow)

    # Relations
    locker: Mapped["Locker"] = relationship(lazy="selectin")

    @property
    def label(self) -> str:
        """Etichetta leggibile / Display label ("Cella 3")."""
        return f"Cella {self.number}"

    def __repr__(self) -> str:
        return f"<Cell {self.cell_code} {self.purpose.value}/{self.state.value}>"
