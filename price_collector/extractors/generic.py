"""
Generic extractor for sites without a profile.

Title and price come from increasingly loose sources: meta tags, microdata,
headings and the document title for the name; structured data, price meta
tags and finally a scan of visible text for currency-prefixed numbers. The
text scan prefers the candidate rendered closest to the product title.
"""
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from price_collector.adapters.dom import Document, Element
from price_collector.config import config
from price_collector.extractors.base import guarded
from price_collector.extractors.images import find_main_image
from price_collector.extractors.price import CURRENCY_SYMBOLS, find_currency_numbers, normalize_price_number
from price_collector.extractors.selectors import Probe, attr_of, content_or_text, first_value, non_empty
from price_collector.extractors.structured_data import StructuredDataReader
from price_collector.extractors.visibility import is_visible
from price_collector.models.product import PartialDraft
from price_collector.utils.logger import LayerLogger


META_TITLE_PROBES = (
    Probe("meta[name='title']", attr_of("content")),
    Probe("meta[property='og:title']", attr_of("content")),
    Probe("meta[name='og:title']", attr_of("content")),
    Probe("meta[name='twitter:title']", attr_of("content")),
    Probe("meta[property='twitter:title']", attr_of("content")),
)

# Titles read from rendered elements; these double as the proximity anchor
ON_PAGE_TITLE_PROBES = (
    Probe("[itemtype*='Product'] [itemprop='name']", content_or_text),
    Probe("[itemprop='name']", content_or_text),
    Probe("[itemprop='headline']", content_or_text),
    Probe("h1"),
)

ANCHOR_SELECTORS = ("[itemtype*='Product'] [itemprop='name']", "[itemprop='name']", "h1")

TITLE_SEPARATORS = (" | ", " - ", ": ", " – ", " — ")

META_PRICE_PROBES = (
    Probe("meta[property='product:price:amount']", attr_of("content")),
    Probe("meta[property='og:price:amount']", attr_of("content")),
    Probe("meta[name='product:price:amount']", attr_of("content")),
    Probe("meta[name='og:price:amount']", attr_of("content")),
)

META_CURRENCY_PROBES = (
    Probe("meta[property='product:price:currency']", attr_of("content")),
    Probe("meta[property='og:price:currency']", attr_of("content")),
    Probe("meta[name='product:price:currency']", attr_of("content")),
    Probe("meta[name='og:price:currency']", attr_of("content")),
)

ITEMPROP_PRICE_PROBES = (Probe("[itemprop='price']", content_or_text),)
ITEMPROP_CURRENCY_PROBES = (Probe("[itemprop='priceCurrency']", content_or_text),)


@dataclass
class PriceCandidate:
    """A currency-prefixed number found in visible text."""
    price: str
    currency: str
    top: float
    order: int


def strip_title_suffix(title: Optional[str]) -> Optional[str]:
    """
    Drop the trailing site-name segment of a document title.

    "Blue Mug | Example Shop" -> "Blue Mug". The last separator wins; a title
    that would become empty is returned unchanged.
    """
    if not title:
        return None
    title = title.strip()
    cut = -1
    for separator in TITLE_SEPARATORS:
        cut = max(cut, title.rfind(separator))
    if cut > 0:
        head = title[:cut].strip()
        if head:
            return head
    return title or None


# Symbol with an optional partial number at the end of a text run
PRICE_HEAD = re.compile(rf"[{CURRENCY_SYMBOLS}]\s?(\d[\d,.]*)?$")
DECIMAL_TAIL = re.compile(r"[.,]\d")


def _continues_price(head: str, tail: str) -> bool:
    """True when ``tail`` carries on a price that ``head`` ends with mid-way."""
    match = PRICE_HEAD.search(head)
    if not match:
        return False
    number = match.group(1)
    if not number or number[-1] in ".,":
        return tail[:1].isdigit()
    return bool(DECIMAL_TAIL.match(tail))


def _common_ancestor(first: Element, second: Element) -> Element:
    lineage = [first, *first.ancestors()]
    for node in [second, *second.ancestors()]:
        if node in lineage:
            return node
    return first


def iter_text_runs(document: Document) -> Iterator[Tuple[str, Element, List[Element]]]:
    """
    Yield rendered text with prices split across elements joined back up.

    ``<span>$</span>79.99`` and ``$<span>79</span><sup>.99</sup>`` each come
    out as one run. Each run carries the smallest element holding all of
    its pieces and the parents of the pieces themselves.
    """
    text: Optional[str] = None
    element: Optional[Element] = None
    parts: List[Element] = []
    for node_text, parent in document.iter_text_nodes():
        if text is not None and _continues_price(text, node_text):
            text += node_text
            element = _common_ancestor(element, parent)
            parts.append(parent)
            continue
        if text is not None:
            yield text, element, parts
        text, element, parts = node_text, parent, [parent]
    if text is not None:
        yield text, element, parts


class GenericExtractor:
    """
    Heuristic extractor for pages from unrecognized hosts.

    Also used to back-fill fields a site profile missed.
    """

    def __init__(self):
        self.logger = LayerLogger("generic_extractor")

    def extract(self, document: Document, reader: Optional[StructuredDataReader] = None) -> PartialDraft:
        reader = reader or StructuredDataReader(document)
        context = {"site": "generic", "url": document.url}

        title, anchor = guarded(self.logger, "title", lambda: self.find_title(document), **context) or (None, None)
        if anchor is None:
            anchor = guarded(self.logger, "anchor", lambda: self._fallback_anchor(document), **context)
        price, currency = guarded(
            self.logger, "price", lambda: self.find_price(document, reader, anchor), **context
        ) or (None, None)
        image = guarded(self.logger, "image", lambda: find_main_image(document, (), reader), **context)

        return PartialDraft(title=title, price=price, currency=currency, image=image)

    # ==================== Title ====================

    def find_title(self, document: Document) -> Optional[Tuple[str, Optional[Element]]]:
        """Return the title and, when it came from a rendered element, that element."""
        found = first_value(document, META_TITLE_PROBES, non_empty)
        if found:
            self.logger.log_step("title", "found", selector=found[0].selector)
            return found[2], None

        found = first_value(document, ON_PAGE_TITLE_PROBES, non_empty)
        if found:
            probe, element, title = found
            self.logger.log_step("title", "found", selector=probe.selector)
            return title, element

        title = strip_title_suffix(document.title())
        if title:
            self.logger.log_step("title", "found", selector="title")
            return title, None
        return None

    def _fallback_anchor(self, document: Document) -> Optional[Element]:
        for selector in ANCHOR_SELECTORS:
            element = document.select_one(selector)
            if element is not None:
                return element
        return None

    # ==================== Price ====================

    def find_price(
        self,
        document: Document,
        reader: StructuredDataReader,
        anchor: Optional[Element] = None,
    ) -> Optional[Tuple[str, Optional[str]]]:
        structured = reader.find_price()
        if structured:
            self.logger.log_step("price", "found", source="structured_data")
            return structured

        for price_probes, currency_probes, source in (
            (META_PRICE_PROBES, META_CURRENCY_PROBES, "meta_tags"),
            (ITEMPROP_PRICE_PROBES, ITEMPROP_CURRENCY_PROBES, "itemprop"),
        ):
            found = first_value(document, price_probes, normalize_price_number)
            if found:
                currency = first_value(document, currency_probes, non_empty)
                self.logger.log_step("price", "found", source=source)
                return found[2], (currency[2] if currency else None)

        self.logger.log_fallback(
            from_source="price_tags",
            to_source="text_scan",
            reason="no structured or tagged price",
            url=document.url,
        )
        candidates = self.scan_text_prices(document)
        best = self.pick_candidate(candidates, anchor)
        if best is None:
            return None
        return best.price, best.currency

    def scan_text_prices(self, document: Document, limit: Optional[int] = None) -> List[PriceCandidate]:
        """Collect currency-prefixed numbers from visible text, in page order."""
        limit = config.PRICE_SCAN_LIMIT if limit is None else limit
        candidates: List[PriceCandidate] = []
        for text, element, parts in iter_text_runs(document):
            if len(candidates) >= limit:
                break
            matches = list(find_currency_numbers(text))
            if not matches or not all(is_visible(part) for part in parts):
                continue
            top = element.box().top
            for match in matches:
                if len(candidates) >= limit:
                    break
                price = normalize_price_number(match.group(0)[len(match.group(1)):])
                if price is None:
                    continue
                candidates.append(PriceCandidate(price, match.group(1), top, len(candidates)))
        self.logger.log_step("text_scan", "scanned", candidates=len(candidates))
        return candidates

    @staticmethod
    def pick_candidate(
        candidates: List[PriceCandidate],
        anchor: Optional[Element] = None,
    ) -> Optional[PriceCandidate]:
        """Nearest to the anchor (earlier wins ties), or simply the first."""
        if not candidates:
            return None
        if anchor is None:
            return candidates[0]
        anchor_top = anchor.box().top
        return min(candidates, key=lambda c: (abs(c.top - anchor_top), c.order))
