"""Schemi Locker e Celle / Locker and cell schemas."""

from datetime import datetime

from pydantic import Field

from null_backend.models.cell import Cell, CellPurpose, CellSize
from null_backend.models.locker import Locker, LockerSize
from null_backend.schemas.common import CamelModel
from null_backend.services.pricing import PricingEngine


class LockerRead(CamelModel):
    locker_id: str
    name: str
    address: str | None
    latitude: float
    longitude: float
    state: str
    online: bool
    category: str | None
    size: str
    description: str | None
    in_maintenance: bool
    maintenance_reason: str | None
    maintenance_expected_end: datetime | None
    availability: dict | None = None
    distance_m: int | None = None
    distance_km: float | None = None

    @classmethod
    def from_locker(cls, locker: Locker, availability: dict | None = None, distance_m: float | None = None) -> "LockerRead":
        return cls(
            locker_id=locker.locker_code,
            name=locker.name,
            address=locker.address,
            latitude=locker.latitude,
            longitude=locker.longitude,
            state=locker.state.value,
            online=bool(locker.online),
            category=locker.category,
            size=locker.size.value,
            description=locker.description,
            in_maintenance=bool(locker.in_maintenance),
            maintenance_reason=locker.maintenance_reason,
            maintenance_expected_end=locker.maintenance_expected_end,
            availability=availability,
            distance_m=int(distance_m) if distance_m is not None else None,
            distance_km=round(distance_m / 1000, 2) if distance_m is not None else None,
        )


class CellRead(CamelModel):
    cell_id: str
    locker_id: str
    number: int
    label: str
    type: str
    state: str
    size: str
    photo_required: bool
    price: dict
    category: str | None = None
    item_photo_url: str | None = None
    weight_kg: float | None = None
    # Assegnazione commerciale / Commercial assignment
    shop_id: int | None = None
    assigned_from: datetime | None = None
    assigned_until: datetime | None = None
    assignment_notes: str | None = None

    @classmethod
    def from_cell(cls, cell: Cell) -> "CellRead":
        return cls(
            cell_id=cell.cell_code,
            locker_id=cell.locker.locker_code,
            number=cell.number,
            label=cell.label,
            type=cell.purpose.value,
            state=cell.state.value,
            size=cell.size.value,
            photo_required=bool(cell.photo_required),
            price=PricingEngine.price_for_cell(cell.size, cell.price_hint),
            category=cell.category,
            item_photo_url=cell.item_photo_url,
            weight_kg=cell.weight_kg,
            shop_id=cell.shop_user_id,
            assigned_from=cell.assigned_from,
            assigned_until=cell.assigned_until,
            assignment_notes=cell.assignment_notes,
        )


# --- Amministrazione / Administration ---

class CellBatch(CamelModel):
    """Gruppo di celle da creare / Group of cells to provision."""
    type: CellPurpose
    size: CellSize = CellSize.MEDIUM
    count: int = Field(default=1, ge=1, le=50)
    photo_required: bool = False
    price_hint: float | None = Field(default=None, ge=0)
    category: str | None = None

    def as_spec(self) -> dict:
        return {
            "purpose": self.type.value,
            "size": self.size.value,
            "count": self.count,
            "photo_required": self.photo_required,
            "price_hint": self.price_hint,
            "category": self.category,
        }


class LockerCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    size: LockerSize = LockerSize.MEDIUM
    category: str | None = None
    address: str | None = None
    description: str | None = None
    cells: list[CellBatch] = []


class LockerStatusUpdate(CamelModel):
    status: str


class LockerMaintenanceUpdate(CamelModel):
    in_maintenance: bool
    reason: str | None = None
    expected_end: datetime | None = None


class CommercialAssign(CamelModel):
    cell_id: str
    locker_id: str
    shop_id: int
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None


class CommercialAssignmentUpdate(CamelModel):
    shop_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None
