"""
Collection Exporter for Price Collector.
Renders the saved product collection as CSV or JSON for download.
"""
import csv
import io
import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from price_collector.models.product import ExportFormat, ProductDraft
from price_collector.utils.logger import LayerLogger


# (header, draft field) in column order
CSV_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("Title", "title"),
    ("Price", "price"),
    ("Currency", "currency"),
    ("Site", "site"),
    ("ASIN", "asin"),
    ("URL", "url"),
    ("Image", "image"),
    ("Notes", "notes"),
    ("Timestamp", "timestamp"),
)

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
}


def to_csv(products: Sequence[ProductDraft]) -> str:
    """CSV with a header row; fields containing commas, quotes or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for product in products:
        writer.writerow([getattr(product, name) or "" for _, name in CSV_COLUMNS])
    return buffer.getvalue().rstrip("\n")


def to_json(products: Sequence[ProductDraft]) -> str:
    return json.dumps([product.model_dump() for product in products], indent=2, ensure_ascii=False)


def export_filename(export_format: ExportFormat, today: Optional[datetime] = None) -> str:
    """Dated download name, e.g. ``products_2024-05-01.csv``."""
    today = today or datetime.now(timezone.utc)
    return f"products_{today.strftime('%Y-%m-%d')}.{ExportFormat(export_format).value}"


class CollectionExporter:
    """Export the product collection in the configured format."""

    def __init__(self):
        self.logger = LayerLogger("exporter")

    def export(
        self,
        products: List[ProductDraft],
        export_format: ExportFormat = ExportFormat.CSV,
        today: Optional[datetime] = None,
    ) -> Tuple[str, str, str]:
        """
        Render products for download.

        Returns:
            (body, filename, media type)
        """
        export_format = ExportFormat(export_format)
        body = to_csv(products) if export_format == ExportFormat.CSV else to_json(products)
        filename = export_filename(export_format, today)

        self.logger.log_action(
            "export",
            "completed",
            format=export_format.value,
            count=len(products),
            filename=filename,
        )
        return body, filename, MEDIA_TYPES[export_format]
