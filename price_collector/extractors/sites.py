"""
Per-site extractors.

Each store family is described by a ``SiteProfile``: ordered title and price
probes, an optional fixed currency, an optional catalog-code pattern and the
image selectors tuned to its markup. ``SiteExtractor`` interprets a profile.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern, Tuple

from price_collector.adapters.dom import Document, Element
from price_collector.extractors.base import guarded
from price_collector.extractors.images import find_main_image
from price_collector.extractors.price import parse_price_text
from price_collector.extractors.selectors import Probe, content_or_text, first_value, non_empty
from price_collector.extractors.structured_data import StructuredDataReader
from price_collector.models.product import PartialDraft
from price_collector.models.site import SiteFamily, SITE_LABELS
from price_collector.utils.logger import LayerLogger


def amazon_split_price(element: Element) -> Optional[str]:
    """
    Rebuild "$19.99" from Amazon's split ``a-price-whole``/``a-price-fraction``
    spans, reading the symbol and fraction from the same price block.
    """
    whole = re.sub(r"[,.\s]", "", element.text())
    if not whole:
        return None
    block = element.parent()
    fraction_el = block.select_one(".a-price-fraction") if block is not None else None
    symbol_el = block.select_one(".a-price-symbol") if block is not None else None
    fraction = fraction_el.text().strip() if fraction_el is not None else "00"
    symbol = symbol_el.text().strip() if symbol_el is not None else ""
    return f"{symbol}{whole}.{fraction or '00'}"


@dataclass(frozen=True)
class CatalogCode:
    """Where a catalog code lives in the URL and which draft field gets it."""
    field_name: str
    pattern: Pattern


@dataclass(frozen=True)
class SiteProfile:
    family: SiteFamily
    title_probes: Tuple[Probe, ...]
    price_probes: Tuple[Probe, ...]
    image_selectors: Tuple[str, ...] = ()
    default_currency: Optional[str] = None
    catalog_code: Optional[CatalogCode] = None
    structured_price_fallback: bool = True

    @property
    def label(self) -> str:
        return SITE_LABELS[self.family]


def _probes(*selectors: str, accessor=None) -> Tuple[Probe, ...]:
    if accessor is None:
        return tuple(Probe(s) for s in selectors)
    return tuple(Probe(s, accessor) for s in selectors)


AMAZON = SiteProfile(
    family=SiteFamily.AMAZON,
    title_probes=_probes(
        "#productTitle",
        "#title",
        "h1.product-title",
        "span#productTitle",
        "[data-feature-name='title'] h1",
    ),
    price_probes=_probes(
        ".a-price .a-offscreen",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        "#price_inside_buybox",
    ) + (Probe(".a-price-whole", amazon_split_price),) + _probes(
        "span.a-price[data-a-size='xl'] .a-offscreen",
        "span.a-price[data-a-size='l'] .a-offscreen",
        "#corePrice_feature_div .a-offscreen",
        ".priceToPay .a-offscreen",
    ),
    image_selectors=(
        "#landingImage",
        "#imgBlkFront",
        "#imgTagWrapperId img",
        "img[data-old-hires]",
        "#main-image",
    ),
    catalog_code=CatalogCode("asin", re.compile(r"/dp/([A-Z0-9]{10})|/gp/product/([A-Z0-9]{10})")),
    structured_price_fallback=False,
)

ETSY = SiteProfile(
    family=SiteFamily.ETSY,
    title_probes=_probes(
        "h1[data-buy-box-listing-title]",
        "h1.wt-text-body-01",
        "h1[data-product-title]",
        ".listing-page-title-component h1",
    ),
    price_probes=_probes(
        "p[data-buy-box-region='price'] .wt-text-title-03",
        ".wt-text-title-03",
        "p.wt-text-title-03",
        "[data-buy-box-region='price']",
    ),
    image_selectors=(
        ".listing-page-image-carousel-component img",
        "[data-carousel-first-image] img",
        "img.carousel-image",
        ".image-carousel-container img",
    ),
)

MACYS = SiteProfile(
    family=SiteFamily.MACYS,
    title_probes=_probes(
        "h1.product-name",
        "h1[data-auto='product-name']",
        ".product-title h1",
    ),
    price_probes=_probes(
        ".price .price-value",
        "span[data-auto='product-price']",
        ".sale-price",
        ".regular-price",
    ),
    image_selectors=(
        "[data-auto='main-image'] img",
        ".main-image img",
        ".product-image-container img",
    ),
    default_currency="$",
)

WALMART = SiteProfile(
    family=SiteFamily.WALMART,
    title_probes=_probes(
        "h1[itemprop='name']",
        "h1.prod-ProductTitle",
        "h1[data-automation='product-title']",
    ),
    price_probes=(Probe("span[itemprop='price']", content_or_text),) + _probes(
        "[data-automation='product-price'] span",
        ".price-characteristic[itemprop='price']",
        "span.price-group span:not(.ml2)",
    ),
    image_selectors=(
        "[data-testid='hero-image'] img",
        "img[data-testid='hero-image']",
        ".prod-hero-image img",
    ),
    default_currency="$",
    catalog_code=CatalogCode("item_id", re.compile(r"/ip/(?:[^/?#]+/)?(\d+)")),
)

TARGET = SiteProfile(
    family=SiteFamily.TARGET,
    title_probes=_probes(
        "h1[data-test='product-title']",
        "h1.Heading__StyledHeading",
        ".ProductTitle h1",
    ),
    price_probes=_probes(
        "[data-test='product-price']",
        "span[data-test='product-price'] span",
        ".ProductPrice span",
    ),
    image_selectors=(
        "[data-test='product-image'] img",
        "[data-test='image-gallery-item-0'] img",
        ".slide--active img",
    ),
    default_currency="$",
)

SHOPIFY = SiteProfile(
    family=SiteFamily.SHOPIFY,
    title_probes=_probes(
        "h1.product-title",
        "h1.product__title",
        "h1[itemprop='name']",
        ".product-single__title",
        "h1.product_name",
    ),
    price_probes=_probes(
        ".product-price",
        ".price",
        "span.money",
        "[data-product-price]",
    ) + (Probe("span[itemprop='price']", content_or_text),) + _probes(
        ".product__price",
    ),
    image_selectors=(
        ".product__media img",
        ".product-single__photo img",
        "img.product-featured-img",
        "img.product__image",
    ),
)

PRINTIFY = SiteProfile(
    family=SiteFamily.PRINTIFY,
    title_probes=_probes(
        "h1.product-title",
        "h1[data-testid='product-title']",
        ".product-name h1",
    ),
    price_probes=_probes(
        ".product-price",
        "[data-testid='product-price']",
        ".price-display",
    ),
    image_selectors=(
        "[data-testid='product-image'] img",
        ".product-image img",
        ".gallery img",
    ),
    default_currency="$",
)

SITE_PROFILES: Dict[SiteFamily, SiteProfile] = {
    profile.family: profile
    for profile in (AMAZON, ETSY, MACYS, WALMART, TARGET, SHOPIFY, PRINTIFY)
}


def _accept_price(raw: str) -> Optional[Tuple[str, Optional[str]]]:
    price, currency = parse_price_text(raw)
    if price is None:
        return None
    return price, currency


class SiteExtractor:
    """Runs one ``SiteProfile`` against a document."""

    def __init__(self, profile: SiteProfile):
        self.profile = profile
        self.logger = LayerLogger("site_extractor")

    def extract(self, document: Document, reader: Optional[StructuredDataReader] = None) -> PartialDraft:
        reader = reader or StructuredDataReader(document)
        context = {"site": self.profile.family.value, "url": document.url}

        title = guarded(self.logger, "title", lambda: self._title(document), **context)
        price, currency = guarded(self.logger, "price", lambda: self._price(document, reader), **context) or (None, None)
        image = guarded(
            self.logger,
            "image",
            lambda: find_main_image(document, self.profile.image_selectors, reader),
            **context,
        )
        codes = guarded(self.logger, "catalog_code", lambda: self._catalog_code(document.url), **context) or {}

        return PartialDraft(title=title, price=price, currency=currency, image=image, **codes)

    def _title(self, document: Document) -> Optional[str]:
        found = first_value(document, self.profile.title_probes, non_empty)
        return found[2] if found else None

    def _price(self, document: Document, reader: StructuredDataReader) -> Optional[Tuple[str, Optional[str]]]:
        found = first_value(document, self.profile.price_probes, _accept_price)
        if found:
            probe, _, (price, currency) = found
            self.logger.log_step("price", "found", selector=probe.selector)
            return price, currency or self.profile.default_currency

        if not self.profile.structured_price_fallback:
            return None

        self.logger.log_fallback(
            from_source="site_selectors",
            to_source="structured_data",
            reason="no price selector matched",
            site=self.profile.family.value,
        )
        structured = reader.find_price()
        if structured:
            price, currency = structured
            return price, currency or self.profile.default_currency
        return None

    def _catalog_code(self, url: str) -> Optional[Dict[str, str]]:
        code = self.profile.catalog_code
        if code is None:
            return None
        match = code.pattern.search(url or "")
        if not match:
            return None
        value = next((g for g in match.groups() if g), None)
        return {code.field_name: value} if value else None


def extractor_for(family: SiteFamily) -> Optional[SiteExtractor]:
    profile = SITE_PROFILES.get(family)
    return SiteExtractor(profile) if profile else None
