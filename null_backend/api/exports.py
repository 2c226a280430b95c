"""Route export noleggi / Rental export routes."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from null_backend.api.deps import require_operator
from null_backend.database import get_db
from null_backend.errors import ValidationError
from null_backend.models.rental import Rental, RentalState, RentalType
from null_backend.models.user import User
from null_backend.services.export_service import RENTAL_FIELDS, ExportService
from null_backend.utils.clock import utcnow

router = APIRouter()


@router.get("/export")
async def export_rentals(
    format: str = Query(default="csv"),
    rental_type: str | None = Query(default=None, alias="type"),
    state: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_operator),
):
    """Export dei noleggi in CSV o XLSX / Export rentals to CSV or XLSX."""
    if format not in ("csv", "xlsx"):
        raise ValidationError('format must be "csv" or "xlsx"')

    query = select(Rental).order_by(Rental.id)
    try:
        if rental_type:
            query = query.where(Rental.rental_type == RentalType(rental_type))
        if state:
            query = query.where(Rental.state == RentalState(state))
    except ValueError:
        raise ValidationError("Invalid type or state filter")

    result = await db.execute(query)
    rows = [ExportService.rental_to_row(r) for r in result.scalars().all()]
    stamp = utcnow().strftime("%Y%m%d")

    if format == "xlsx":
        content = ExportService.to_xlsx(rows, RENTAL_FIELDS)
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        content = ExportService.to_csv(rows, RENTAL_FIELDS)
        media_type = "text/csv; charset=utf-8"

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="rentals_{stamp}.{format}"'},
    )
