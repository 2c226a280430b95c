"""
Servizio di export CSV/Excel / CSV/Excel export service.
Genera file CSV e XLSX dello storico noleggi per gli operatori.
Builds CSV and XLSX files of the rental history for operators.
"""

import csv
import io
from datetime import datetime
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.styles import Font

from null_backend.models.rental import Rental

RENTAL_FIELDS = [
    "rental_code",
    "rental_type",
    "state",
    "user_id",
    "locker_code",
    "cell_code",
    "started_at",
    "expected_end_at",
    "ended_at",
    "cost",
]


class ExportService:
    """Export dei noleggi verso CSV/XLSX / Rental export to CSV/XLSX."""

    @staticmethod
    def rental_to_row(rental: Rental) -> dict:
        """Riga piatta per un noleggio / Flat row for one rental."""
        row = {
            "rental_code": rental.rental_code,
            "rental_type": rental.rental_type.value,
            "state": rental.state.value,
            "user_id": rental.user_id,
            "locker_code": rental.locker.locker_code if rental.locker else None,
            "cell_code": rental.cell.cell_code if rental.cell else None,
            "started_at": rental.started_at,
            "expected_end_at": rental.expected_end_at,
            "ended_at": rental.ended_at,
            "cost": rental.cost,
        }
        for key, val in row.items():
            if isinstance(val, datetime):
                row[key] = val.isoformat(timespec="seconds")
            elif isinstance(val, Decimal):
                row[key] = float(val)
        return row

    @staticmethod
    def to_csv(rows: list[dict], fields: list[str]) -> bytes:
        """CSV UTF-8 BOM con separatore ';' / UTF-8 BOM CSV with ';' separator."""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=fields, delimiter=";", extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({f: row.get(f, "") for f in fields})
        return ("\ufeff" + output.getvalue()).encode("utf-8")

    @staticmethod
    def to_xlsx(rows: list[dict], fields: list[str], sheet_name: str = "Noleggi") -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        ws.append(fields)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in rows:
            ws.append([row.get(f) for f in fields])

        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
