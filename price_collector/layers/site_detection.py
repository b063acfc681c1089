"""
Site Detection Layer for Price Collector.
Classifies a page's hostname into one of the supported store families.
"""
import re
from dataclasses import dataclass
from typing import Dict, Pattern, Tuple
from urllib.parse import urlparse

from price_collector.models.site import SiteFamily, SITE_LABELS
from price_collector.utils.logger import LayerLogger


# Checked in this order; first containing fragment wins
HOSTNAME_FRAGMENTS: Tuple[Tuple[str, SiteFamily], ...] = (
    ("amazon.", SiteFamily.AMAZON),
    ("etsy.", SiteFamily.ETSY),
    ("macys.", SiteFamily.MACYS),
    ("walmart.", SiteFamily.WALMART),
    ("target.", SiteFamily.TARGET),
    ("shopify.", SiteFamily.SHOPIFY),
    ("myshopify.", SiteFamily.SHOPIFY),
    ("printify.", SiteFamily.PRINTIFY),
)

PRODUCT_PATHS: Dict[SiteFamily, Pattern] = {
    SiteFamily.AMAZON: re.compile(r"/dp/|/gp/product/"),
    SiteFamily.ETSY: re.compile(r"/listing/"),
    SiteFamily.MACYS: re.compile(r"/shop/product/"),
    SiteFamily.WALMART: re.compile(r"/ip/"),
    SiteFamily.TARGET: re.compile(r"/p/"),
    SiteFamily.SHOPIFY: re.compile(r"/products/"),
    SiteFamily.PRINTIFY: re.compile(r"/product/"),
}


def identify_site(hostname: str) -> SiteFamily:
    """Map a hostname to its store family; anything else is UNKNOWN."""
    hostname = (hostname or "").lower()
    for fragment, family in HOSTNAME_FRAGMENTS:
        if fragment in hostname:
            return family
    return SiteFamily.UNKNOWN


def site_label(family: SiteFamily, hostname: str = "") -> str:
    """Human-readable label; unknown sites are labelled by their hostname."""
    if family != SiteFamily.UNKNOWN:
        return SITE_LABELS[family]
    hostname = (hostname or "").lower()
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname or SITE_LABELS[SiteFamily.UNKNOWN]


def is_product_page(url: str, family: SiteFamily) -> bool:
    """Whether the URL looks like a product detail page for its family."""
    pattern = PRODUCT_PATHS.get(family)
    return bool(pattern and pattern.search(url or ""))


@dataclass
class SiteDetectionResult:
    """Result of site detection."""
    family: SiteFamily
    label: str
    hostname: str
    is_product_page: bool


class SiteDetectionLayer:
    """
    Site Detection Layer - decides which extractor handles a page.

    Detection is hostname-only and never fails: unrecognized origins are
    reported as UNKNOWN and handled by the generic extractor.
    """

    def __init__(self):
        self.logger = LayerLogger("site_detection")

    def detect(self, url: str) -> SiteDetectionResult:
        hostname = (urlparse(url or "").hostname or "").lower()
        family = identify_site(hostname)
        result = SiteDetectionResult(
            family=family,
            label=site_label(family, hostname),
            hostname=hostname,
            is_product_page=is_product_page(url, family),
        )

        self.logger.log_decision(
            decision=f"site_{family.value}",
            reason="hostname_fragment_match" if family != SiteFamily.UNKNOWN else "no_fragment_matched",
            url=url,
            product_page=result.is_product_page,
        )
        return result
