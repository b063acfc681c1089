"""
Page Fetcher Adapter for Price Collector.
Downloads a product page when the caller supplies only its URL.
"""
from typing import Optional

import httpx

from price_collector.adapters.dom import SoupDocument
from price_collector.config import config
from price_collector.utils.logger import LayerLogger


class PageUnavailableError(Exception):
    """The page could not be fetched; no response to extract from."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"No response from {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class PageFetcher:
    """
    Fetches page HTML over HTTP and parses it into a Document.

    Single attempt, no retries. Any transport error or non-2xx status is
    reported as ``PageUnavailableError``.
    """

    def __init__(self, timeout: Optional[int] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.transport = transport
        self.logger = LayerLogger("page_fetcher")

    async def fetch(self, url: str) -> str:
        """
        Fetch raw HTML for a URL.

        Raises:
            PageUnavailableError: on transport errors or non-2xx responses
        """
        self.logger.log_action("fetch_html", "started", url=url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=self._get_headers())
                self.logger.log_http_probe(
                    url=url,
                    endpoint="page",
                    status_code=response.status_code,
                    result="ok" if response.is_success else "failed",
                )
                response.raise_for_status()
                html = response.text

        except httpx.HTTPStatusError as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="http_status",
                url=url,
            )
            raise PageUnavailableError(url, str(e), e.response.status_code) from e
        except httpx.HTTPError as e:
            self.logger.log_error(
                f"Failed to fetch URL: {str(e)}",
                error_type="http_error",
                url=url,
            )
            raise PageUnavailableError(url, str(e) or type(e).__name__) from e

        self.logger.log_action(
            "fetch_html",
            "completed",
            url=url,
            status_code=response.status_code,
            content_length=len(html),
        )
        return html

    async def fetch_document(self, url: str) -> SoupDocument:
        """Fetch a page and parse it; the document keeps the requested URL."""
        html = await self.fetch(url)
        return SoupDocument.from_html(url, html)

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
