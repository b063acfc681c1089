import pytest

from price_collector.adapters.dom import SoupDocument
from price_collector.adapters.storage import LocalStore


@pytest.fixture
def make_document():
    """Build a document from inline HTML; the URL decides the site family."""

    def _make(html: str, url: str = "https://www.example.com/products/widget") -> SoupDocument:
        return SoupDocument.from_html(url, html)

    return _make


@pytest.fixture
def memory_store() -> LocalStore:
    return LocalStore()
