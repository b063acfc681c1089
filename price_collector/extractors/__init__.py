"""Extractors package initialization."""
from price_collector.extractors.generic import GenericExtractor
from price_collector.extractors.images import find_main_image, normalize_image_url
from price_collector.extractors.price import normalize_price_number, parse_price_text
from price_collector.extractors.selection import parse_selection
from price_collector.extractors.sites import SITE_PROFILES, SiteExtractor, SiteProfile, extractor_for
from price_collector.extractors.structured_data import StructuredDataReader

__all__ = [
    "GenericExtractor",
    "SITE_PROFILES",
    "SiteExtractor",
    "SiteProfile",
    "StructuredDataReader",
    "extractor_for",
    "find_main_image",
    "normalize_image_url",
    "normalize_price_number",
    "parse_price_text",
    "parse_selection",
]
