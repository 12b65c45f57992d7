import io
from typing import Iterable, Tuple
import pandas as pd
from money_tracker.core.errors import ValidationFailed
from money_tracker.models.transaction import Transaction
from money_tracker.schemas.transaction import as_utc

EXPORT_COLUMNS = ["id", "name", "description", "price", "datetime"]

# format -> (media type, file extension)
EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "xlsx": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
}


class ExportService:
    @staticmethod
    def to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
        """Build a DataFrame with one row per transaction"""
        rows = [
            {
                "id": t.id,
                "name": t.name,
                "description": t.description,
                "price": t.price,
                # Excel can't store tz-aware datetimes, so the column is naive UTC
                "datetime": as_utc(t.datetime).replace(tzinfo=None),
            }
            for t in transactions
        ]
        return pd.DataFrame(rows, columns=EXPORT_COLUMNS)

    @staticmethod
    def export(transactions: Iterable[Transaction], fmt: str) -> Tuple[bytes, str, str]:
        """Serialize transactions; returns (payload, media_type, filename)"""
        if fmt not in EXPORT_FORMATS:
            raise ValidationFailed(
                [{"field": "format", "message": f"Format must be one of: {', '.join(EXPORT_FORMATS)}"}],
                detail="Invalid export format",
            )
        media_type, extension = EXPORT_FORMATS[fmt]
        df = ExportService.to_frame(transactions)

        output = io.BytesIO()
        if fmt == "csv":
            df.to_csv(output, index=False, encoding="utf-8")
        else:
            df.to_excel(output, index=False, sheet_name="Transactions", engine="openpyxl")
        output.seek(0)

        return output.read(), media_type, f"transactions.{extension}"


export_service = ExportService()
