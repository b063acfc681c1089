"""
Product models for Price Collector.
A ProductDraft is the value produced by one extraction; PartialDraft is what a
single source contributes before the drafts are merged.
"""
import re
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


PRICE_PATTERN = re.compile(r"^\d+(\.\d+)?$")

# Fields a source can contribute, in the order they are reported
CONTENT_FIELDS = ("title", "price", "currency", "image", "asin", "item_id")


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


def _check_price(value: Optional[str]) -> Optional[str]:
    if value is not None and not PRICE_PATTERN.match(value):
        raise ValueError(f"price must be digits with at most one decimal point, got {value!r}")
    return value


class ExportFormat(str, Enum):
    """Collection export format."""
    CSV = "csv"
    JSON = "json"


class PartialDraft(BaseModel):
    """
    Fields found by one extraction source.

    Every field is optional; absence means "this source found nothing".
    """
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None
    image: Optional[str] = None
    asin: Optional[str] = None
    item_id: Optional[str] = None

    @field_validator(*CONTENT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: Optional[str]) -> Optional[str]:
        return _check_price(value)

    def present_fields(self) -> List[str]:
        """Return the names of fields this source populated."""
        return [name for name in CONTENT_FIELDS if getattr(self, name) is not None]

    def is_empty(self) -> bool:
        return not self.present_fields()


def merge_partials(*partials: Optional[PartialDraft]) -> PartialDraft:
    """
    Merge partial drafts in priority order.

    For each field the first non-absent value wins. ``None`` entries are
    skipped so callers can pass the result of a source that failed outright.
    """
    merged = {}
    for partial in partials:
        if partial is None:
            continue
        for name in CONTENT_FIELDS:
            if merged.get(name) is None:
                value = getattr(partial, name)
                if value is not None:
                    merged[name] = value
    return PartialDraft(**merged)


class ProductDraft(BaseModel):
    """
    The structured result of one extraction attempt.

    Immutable once built; storage and export treat it as a plain value.
    """
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None
    image: Optional[str] = None
    site: str = "Unknown"
    url: str
    timestamp: str
    asin: Optional[str] = None
    item_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator(*CONTENT_FIELDS, "notes", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: Optional[str]) -> Optional[str]:
        return _check_price(value)

    @classmethod
    def from_partial(
        cls,
        partial: PartialDraft,
        site: str,
        url: str,
        timestamp: str,
    ) -> "ProductDraft":
        """Build a draft from merged source fields plus page context."""
        return cls(site=site, url=url, timestamp=timestamp, **partial.model_dump())

    def with_notes(self, notes: Optional[str]) -> "ProductDraft":
        """Return a copy carrying user notes."""
        return self.model_copy(update={"notes": _blank_to_none(notes)})

    def get_present_fields(self) -> List[str]:
        return [name for name in CONTENT_FIELDS if getattr(self, name) is not None]

    def get_missing_fields(self) -> List[str]:
        return [name for name in CONTENT_FIELDS if getattr(self, name) is None]

    def is_collectable(self) -> bool:
        """The remote table requires both a title and a price."""
        return bool(self.title and self.price)


class SelectionResult(BaseModel):
    """Title/price pair reconstructed from freeform selected text."""
    raw: str = ""
    title: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None

    @field_validator("title", "price", "currency", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: Optional[str]) -> Optional[str]:
        return _check_price(value)


class Settings(BaseModel):
    """Synced settings record."""
    export_format: ExportFormat = ExportFormat.CSV
    api_endpoint: Optional[str] = None
    api_key: Optional[str] = None
    enable_database: bool = False
    backfill_with_generic: bool = True

    def is_api_ready(self) -> bool:
        return bool(self.enable_database and self.api_endpoint and self.api_key)


class StoredProducts(BaseModel):
    """The local product collection."""
    products: List[ProductDraft] = Field(default_factory=list)
