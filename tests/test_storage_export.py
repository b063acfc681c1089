"""Tests for the local store and collection export."""

import csv
import io
import json
from datetime import datetime

import pytest

from price_collector.adapters.storage import LOCAL, SYNC, LocalStore
from price_collector.config import Config
from price_collector.generators.export import CollectionExporter, export_filename, to_csv, to_json
from price_collector.models.product import ExportFormat, ProductDraft, Settings


def _draft(**overrides) -> ProductDraft:
    values = {
        "title": "Blue Mug",
        "price": "8.50",
        "currency": "$",
        "site": "example.com",
        "url": "https://www.example.com/mug",
        "timestamp": "2024-05-01T12:00:00.000Z",
    }
    values.update(overrides)
    return ProductDraft(**values)


def test_memory_store_collection(memory_store: LocalStore) -> None:
    assert memory_store.list_products() == []

    memory_store.add_product(_draft())
    products = memory_store.add_product(_draft(title="Red Mug"))

    assert [p.title for p in products] == ["Blue Mug", "Red Mug"]
    assert memory_store.list_products() == products

    memory_store.clear_products()
    assert memory_store.list_products() == []


def test_file_store_persists(tmp_path) -> None:
    path = tmp_path / "data" / "store.json"
    LocalStore(str(path)).add_product(_draft(notes="gift"))

    reopened = LocalStore(str(path))
    stored = json.loads(path.read_text(encoding="utf-8"))

    assert reopened.list_products() == [_draft(notes="gift")]
    assert set(stored) == {LOCAL, SYNC}


def test_unreadable_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text("not json", encoding="utf-8")

    assert LocalStore(str(path)).list_products() == []


def test_key_value_access(memory_store: LocalStore) -> None:
    memory_store.set(SYNC, "lastSelection", {"title": "Mug"})
    assert memory_store.get(SYNC, "lastSelection") == {"title": "Mug"}

    memory_store.remove(SYNC, "lastSelection")
    assert memory_store.get(SYNC, "lastSelection", "missing") == "missing"

    with pytest.raises(KeyError):
        memory_store.get("session", "anything")


def test_settings_round_trip(memory_store: LocalStore) -> None:
    settings = Settings(
        export_format=ExportFormat.JSON,
        api_endpoint="https://db.example.com/api",
        api_key="secret-key",
        enable_database=True,
        backfill_with_generic=False,
    )

    memory_store.save_settings(settings)

    assert memory_store.get_settings() == settings
    assert memory_store.get(SYNC, "settings")["export_format"] == "json"


def test_default_settings(memory_store: LocalStore, monkeypatch) -> None:
    monkeypatch.setattr(Config, "API_ENDPOINT", None)
    monkeypatch.setattr(Config, "API_KEY", None)

    settings = memory_store.get_settings()

    assert settings.export_format == ExportFormat.CSV
    assert settings.enable_database is False


def test_default_settings_use_environment_credentials(memory_store: LocalStore, monkeypatch) -> None:
    """Endpoint and key from the environment enable database export until settings are saved."""
    monkeypatch.setattr(Config, "API_ENDPOINT", "https://db.example.com/api")
    monkeypatch.setattr(Config, "API_KEY", "env-key")

    settings = memory_store.get_settings()

    assert settings.api_endpoint == "https://db.example.com/api"
    assert settings.enable_database is True
    assert settings.is_api_ready()


def test_csv_export_quotes_fields() -> None:
    text = to_csv([_draft(title='Mug, "Large"', notes="line one\nline two"), _draft(price=None)])
    lines = text.split("\n")

    assert lines[0] == "Title,Price,Currency,Site,ASIN,URL,Image,Notes,Timestamp"
    assert lines[1].startswith('"Mug, ""Large""",8.50,$,example.com,,https://www.example.com/mug,,')

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1][0] == 'Mug, "Large"'
    assert rows[1][7] == "line one\nline two"
    assert rows[2][1] == ""
    assert len(rows) == 3


def test_json_export_is_pretty_printed() -> None:
    text = to_json([_draft()])

    assert text.startswith('[\n  {\n    "title": "Blue Mug"')
    assert json.loads(text)[0]["price"] == "8.50"


def test_export_filename() -> None:
    day = datetime(2024, 5, 1, 23, 59)

    assert export_filename(ExportFormat.CSV, day) == "products_2024-05-01.csv"
    assert export_filename(ExportFormat.JSON, day) == "products_2024-05-01.json"


def test_exporter_returns_body_name_and_media_type() -> None:
    body, filename, media_type = CollectionExporter().export([_draft()], ExportFormat.JSON, datetime(2024, 5, 1))

    assert json.loads(body)[0]["title"] == "Blue Mug"
    assert filename == "products_2024-05-01.json"
    assert media_type == "application/json"
