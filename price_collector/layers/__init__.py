"""Layers package initialization."""
from price_collector.layers.site_detection import SiteDetectionLayer, SiteDetectionResult
from price_collector.layers.extraction import ExtractionLayer

__all__ = [
    "SiteDetectionLayer",
    "SiteDetectionResult",
    "ExtractionLayer",
]
