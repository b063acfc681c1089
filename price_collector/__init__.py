"""Price Collector: product data extraction from e-commerce pages."""

__version__ = "1.0.0"
