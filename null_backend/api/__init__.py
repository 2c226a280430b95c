"""Route API / API routes."""

from fastapi import APIRouter

from null_backend.api import (
    admin_cells,
    admin_lockers,
    audit,
    auth,
    borrows,
    cells,
    deposits,
    exports,
    lockers,
    notifications,
)
from null_backend.config import settings

api_router = APIRouter(prefix=settings.API_PREFIX)

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(lockers.router, prefix="/lockers", tags=["lockers"])
api_router.include_router(deposits.router, prefix="/deposits", tags=["deposits"])
api_router.include_router(borrows.router, prefix="/borrows", tags=["borrows"])
api_router.include_router(cells.router, prefix="/cells", tags=["cells"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin_lockers.router, prefix="/admin/lockers", tags=["admin"])
api_router.include_router(admin_cells.router, prefix="/admin/commercial-cells", tags=["admin"])
api_router.include_router(exports.router, prefix="/admin/rentals", tags=["admin"])
api_router.include_router(audit.router, prefix="/admin/audit", tags=["admin"])
