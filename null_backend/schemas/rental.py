"""Schemi Noleggio, accesso celle e pagamenti / Rental, cell access and payment schemas."""

from datetime import datetime

from pydantic import Field, StrictBool

from null_backend.models.rental import Rental
from null_backend.schemas.common import CamelModel
from null_backend.utils.clock import utcnow


class _Geo(CamelModel):
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class DepositCreate(_Geo):
    locker_id: str
    duration: str | None = None  # "{N}h" | "{N}d", default "1h"
    cell_id: str | None = None
    photo: str | None = None


class DepositExtend(CamelModel):
    duration: str


class PhotoBody(CamelModel):
    """Corpo opzionale di chiusura / Optional closing body."""
    photo: str | None = None


class BorrowCreate(_Geo):
    locker_id: str
    duration: str | None = None  # "{N}d", default "7d"
    cell_id: str | None = None
    item_type: str | None = None
    item_description: str | None = None
    photo: str | None = None


class CellRequest(_Geo):
    locker_id: str
    type: str  # deposited | deposit | borrow | pickup
    duration: str | None = None
    cell_id: str | None = None
    photo: str | None = None


class CellOpen(_Geo):
    cell_id: str
    photo: str | None = None
    qr_code: str | None = None
    bluetooth_token: str | None = None


class CellClose(CamelModel):
    cell_id: str
    door_closed: StrictBool | None = None


class CellReturn(CamelModel):
    cell_id: str | None = None
    rental_id: str | None = None
    photo: str | None = None


class PaymentRequest(CamelModel):
    rental_id: str
    amount: float | None = Field(default=None, allow_inf_nan=False)
    method: str = "mock_card"


class RentalRead(CamelModel):
    rental_id: str
    type: str
    state: str
    locker_id: str
    locker_name: str
    cell_id: str
    cell_label: str
    start_time: datetime
    start_clock: str
    expected_end_time: datetime
    end_time: datetime | None
    end_clock: str | None
    cost: float
    qr_payload: str | None
    bluetooth_token: str | None
    latitude: float | None = None
    longitude: float | None = None
    anomaly_photo_url: str | None = None
    door_closed_at: datetime | None = None
    item_type: str | None = None
    item_description: str | None = None
    remaining_time: int | None = None  # ms

    @classmethod
    def from_rental(cls, rental: Rental) -> "RentalRead":
        remaining = None
        if rental.is_active:
            remaining = max(0, int((rental.expected_end_at - utcnow()).total_seconds() * 1000))
        return cls(
            rental_id=rental.rental_code,
            type=rental.rental_type.value,
            state=rental.state.value,
            locker_id=rental.locker.locker_code,
            locker_name=rental.locker.name,
            cell_id=rental.cell.cell_code,
            cell_label=rental.cell.label,
            start_time=rental.started_at,
            start_clock=rental.start_clock,
            expected_end_time=rental.expected_end_at,
            end_time=rental.ended_at,
            end_clock=rental.end_clock,
            cost=float(rental.cost),
            qr_payload=rental.qr_payload,
            bluetooth_token=rental.bluetooth_token,
            latitude=rental.latitude,
            longitude=rental.longitude,
            anomaly_photo_url=rental.anomaly_photo_url,
            door_closed_at=rental.door_closed_at,
            item_type=rental.item_type,
            item_description=rental.item_description,
            remaining_time=remaining,
        )
