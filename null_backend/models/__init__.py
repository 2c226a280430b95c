"""
Modelli SQLAlchemy / SQLAlchemy models.
Importare qui tutti i modelli perché il metadata li registri.
Import all models here so the metadata registers them.
"""

from null_backend.models.user import User, UserRole
from null_backend.models.locker import Locker, LockerSize, LockerState
from null_backend.models.cell import Cell, CellPurpose, CellSize, CellState
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.models.notification import Notification, NotificationKind
from null_backend.models.audit import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Locker",
    "LockerSize",
    "LockerState",
    "Cell",
    "CellPurpose",
    "CellSize",
    "CellState",
    "Rental",
    "RentalState",
    "RentalType",
    "Notification",
    "NotificationKind",
    "AuditLog",
]
