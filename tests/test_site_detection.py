"""Tests for hostname classification and product-page recognition."""

import pytest

from price_collector.layers.site_detection import (
    SiteDetectionLayer,
    identify_site,
    is_product_page,
    site_label,
)
from price_collector.models.site import SiteFamily


@pytest.mark.parametrize(
    ("hostname", "family"),
    [
        ("www.amazon.com", SiteFamily.AMAZON),
        ("smile.amazon.co.uk", SiteFamily.AMAZON),
        ("www.etsy.com", SiteFamily.ETSY),
        ("www.macys.com", SiteFamily.MACYS),
        ("www.walmart.com", SiteFamily.WALMART),
        ("www.target.com", SiteFamily.TARGET),
        ("cool-tees.myshopify.com", SiteFamily.SHOPIFY),
        ("printify.com", SiteFamily.PRINTIFY),
        ("WWW.AMAZON.DE", SiteFamily.AMAZON),
        ("shop.example.org", SiteFamily.UNKNOWN),
        ("", SiteFamily.UNKNOWN),
    ],
)
def test_identify_site(hostname: str, family: SiteFamily) -> None:
    assert identify_site(hostname) == family


def test_site_label_for_known_and_unknown_sites() -> None:
    assert site_label(SiteFamily.MACYS) == "Macy's"
    assert site_label(SiteFamily.SHOPIFY, "cool-tees.myshopify.com") == "Shopify Store"
    assert site_label(SiteFamily.UNKNOWN, "www.example.com") == "example.com"
    assert site_label(SiteFamily.UNKNOWN, "shop.example.com") == "shop.example.com"
    assert site_label(SiteFamily.UNKNOWN, "") == "Unknown"


@pytest.mark.parametrize(
    ("url", "family", "expected"),
    [
        ("https://www.amazon.com/Acme-Widget/dp/B012345678", SiteFamily.AMAZON, True),
        ("https://www.amazon.com/gp/product/B012345678", SiteFamily.AMAZON, True),
        ("https://www.amazon.com/s?k=widget", SiteFamily.AMAZON, False),
        ("https://www.etsy.com/listing/123456/handmade-mug", SiteFamily.ETSY, True),
        ("https://www.macys.com/shop/product/sweater?ID=1", SiteFamily.MACYS, True),
        ("https://www.walmart.com/ip/Widget/123456789", SiteFamily.WALMART, True),
        ("https://www.target.com/p/lamp/-/A-1234", SiteFamily.TARGET, True),
        ("https://cool-tees.myshopify.com/products/tee", SiteFamily.SHOPIFY, True),
        ("https://cool-tees.myshopify.com/collections/all", SiteFamily.SHOPIFY, False),
        ("https://printify.com/app/product/42", SiteFamily.PRINTIFY, True),
        ("https://www.example.com/products/widget", SiteFamily.UNKNOWN, False),
    ],
)
def test_is_product_page(url: str, family: SiteFamily, expected: bool) -> None:
    assert is_product_page(url, family) is expected


def test_detection_layer_reports_family_label_and_page_kind() -> None:
    result = SiteDetectionLayer().detect("https://www.walmart.com/ip/Widget-Pro/123456789")

    assert result.family == SiteFamily.WALMART
    assert result.label == "Walmart"
    assert result.hostname == "www.walmart.com"
    assert result.is_product_page is True


def test_detection_layer_handles_unparseable_url() -> None:
    result = SiteDetectionLayer().detect("not a url")

    assert result.family == SiteFamily.UNKNOWN
    assert result.label == "Unknown"
    assert result.is_product_page is False
