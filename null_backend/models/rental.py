"""Modello Noleggio / Rental session model."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from null_backend.database import Base, enum_values
from null_backend.utils.clock import utcnow


class RentalType(str, enum.Enum):
    """Tipo di sessione / Session type."""
    DEPOSIT = "deposit"
    BORROW = "borrow"
    PICKUP = "pickup"


class RentalState(str, enum.Enum):
    """Stato della sessione / Session state."""
    ACTIVE = "active"
    ENDED = "ended"
    CANCELLED = "cancelled"


class Rental(Base):
    """Sessione di occupazione di una cella / Cell occupancy session."""
    __tablename__ = "rentals"
    __table_args__ = (
        # Al massimo una sessione attiva per cella / At most one active session per cell
        Index(
            "uq_rentals_active_cell",
            "cell_id",
            unique=True,
            sqlite_where=text("state = 'active'"),
            postgresql_where=text("state = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    rental_code: Mapped[str | None] = mapped_column(String(20), unique=True)  # NOL-001, assegnato dopo il flush
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    cell_id: Mapped[int] = mapped_column(ForeignKey("cells.id"), nullable=False)
    locker_id: Mapped[int] = mapped_column(ForeignKey("lockers.id"), nullable=False)
    rental_type: Mapped[RentalType] = mapped_column(
        Enum(RentalType, values_callable=enum_values, native_enum=False, length=20), nullable=False,
    )
    state: Mapped[RentalState] = mapped_column(
        Enum(RentalState, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=RentalState.ACTIVE,
    )

    # Finestra temporale / Time window (UTC)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    start_clock: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM locale
    expected_end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime)  # null finché attivo
    end_clock: Mapped[str | None] = mapped_column(String(5))
    door_closed_at: Mapped[datetime | None] = mapped_column(DateTime)

    cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    # Token di accesso / Access tokens
    qr_payload: Mapped[str | None] = mapped_column(Text)  # emessi dopo il flush, stessa transazione
    bluetooth_token: Mapped[str | None] = mapped_column(String(36), unique=True)

    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    anomaly_photo_url: Mapped[str | None] = mapped_column(String(300))
    error_message: Mapped[str | None] = mapped_column(Text)  # interno, mai serializzato

    # Prestito / Borrow
    item_type: Mapped[str | None] = mapped_column(String(100))
    item_description: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relations
    cell: Mapped["Cell"] = relationship(lazy="selectin")
    locker: Mapped["Locker"] = relationship(lazy="selectin")

    @property
    def is_active(self) -> bool:
        return self.state == RentalState.ACTIVE

    def __repr__(self) -> str:
        return f"<Rental {self.rental_code} {self.rental_type.value}/{self.state.value}>"
