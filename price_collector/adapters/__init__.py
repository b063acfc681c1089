"""Adapters package initialization."""
from price_collector.adapters.dom import Document, Element, SoupDocument
from price_collector.adapters.page_fetcher import PageFetcher, PageUnavailableError
from price_collector.adapters.api_client import ProductApiClient, ProductApiError
from price_collector.adapters.storage import LocalStore

__all__ = [
    "Document",
    "Element",
    "SoupDocument",
    "PageFetcher",
    "PageUnavailableError",
    "ProductApiClient",
    "ProductApiError",
    "LocalStore",
]
