"""Models package initialization."""
from price_collector.models.product import (
    ExportFormat,
    PartialDraft,
    ProductDraft,
    SelectionResult,
    Settings,
    StoredProducts,
    merge_partials,
)
from price_collector.models.site import SITE_LABELS, SiteFamily

__all__ = [
    "ExportFormat",
    "PartialDraft",
    "ProductDraft",
    "SelectionResult",
    "Settings",
    "SiteFamily",
    "SITE_LABELS",
    "StoredProducts",
    "merge_partials",
]
