"""Generators package initialization."""
from price_collector.generators.export import CollectionExporter, export_filename, to_csv, to_json

__all__ = ["CollectionExporter", "export_filename", "to_csv", "to_json"]
