"""
Local Storage Adapter for Price Collector.
Key-value store holding the product collection and the synced settings.
"""
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from price_collector.config import config
from price_collector.models.product import ProductDraft, Settings
from price_collector.utils.logger import LayerLogger


LOCAL = "local"
SYNC = "sync"
NAMESPACES = (LOCAL, SYNC)

PRODUCTS_KEY = "products"
SETTINGS_KEY = "settings"


class LocalStore:
    """
    Two-namespace key-value store.

    ``local`` keeps the product collection, ``sync`` keeps settings. With a
    path the whole store is one JSON file rewritten on every change;
    without one it lives in memory.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self.logger = LayerLogger("local_store")
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = self._load()

    @classmethod
    def from_config(cls) -> "LocalStore":
        return cls(config.STORAGE_PATH)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        data: Dict[str, Dict[str, Any]] = {namespace: {} for namespace in NAMESPACES}
        if self.path is None or not self.path.exists():
            return data

        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.log_error(
                f"Could not read store: {str(e)}",
                error_type="store_unreadable",
                path=str(self.path),
            )
            return data

        if isinstance(stored, dict):
            for namespace in NAMESPACES:
                if isinstance(stored.get(namespace), dict):
                    data[namespace] = stored[namespace]
        return data

    def _save(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    @staticmethod
    def _check_namespace(namespace: str):
        if namespace not in NAMESPACES:
            raise KeyError(f"Unknown storage namespace: {namespace}")

    # ==================== Key-value access ====================

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        self._check_namespace(namespace)
        with self._lock:
            return self._data[namespace].get(key, default)

    def set(self, namespace: str, key: str, value: Any):
        """Replace a key's value wholesale."""
        self._check_namespace(namespace)
        with self._lock:
            self._data[namespace][key] = value
            self._save()

    def remove(self, namespace: str, key: str):
        self._check_namespace(namespace)
        with self._lock:
            self._data[namespace].pop(key, None)
            self._save()

    # ==================== Product collection ====================

    def list_products(self) -> List[ProductDraft]:
        return [ProductDraft.model_validate(item) for item in self.get(LOCAL, PRODUCTS_KEY, [])]

    def add_product(self, draft: ProductDraft) -> List[ProductDraft]:
        """Append a draft and return the new collection."""
        products = self.list_products()
        products.append(draft)
        self.set(LOCAL, PRODUCTS_KEY, [product.model_dump() for product in products])

        self.logger.log_action("product_saved", "completed", site=draft.site, count=len(products))
        return products

    def clear_products(self):
        self.set(LOCAL, PRODUCTS_KEY, [])
        self.logger.log_action("products_cleared", "completed")

    # ==================== Settings ====================

    def get_settings(self) -> Settings:
        stored = self.get(SYNC, SETTINGS_KEY)
        if not stored:
            # Environment credentials switch database export on until settings are saved
            return Settings(
                api_endpoint=config.API_ENDPOINT,
                api_key=config.API_KEY,
                enable_database=config.is_api_configured(),
                backfill_with_generic=config.BACKFILL_WITH_GENERIC,
            )
        return Settings.model_validate(stored)

    def save_settings(self, settings: Settings) -> Settings:
        self.set(SYNC, SETTINGS_KEY, settings.model_dump(mode="json"))
        self.logger.log_action("settings_saved", "completed", enable_database=settings.enable_database)
        return settings
