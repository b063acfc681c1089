"""Store family identifiers."""
from enum import Enum
from typing import Dict


class SiteFamily(str, Enum):
    """Supported store families."""
    AMAZON = "amazon"
    ETSY = "etsy"
    MACYS = "macys"
    WALMART = "walmart"
    TARGET = "target"
    SHOPIFY = "shopify"
    PRINTIFY = "printify"
    UNKNOWN = "unknown"


SITE_LABELS: Dict[SiteFamily, str] = {
    SiteFamily.AMAZON: "Amazon",
    SiteFamily.ETSY: "Etsy",
    SiteFamily.MACYS: "Macy's",
    SiteFamily.WALMART: "Walmart",
    SiteFamily.TARGET: "Target",
    SiteFamily.SHOPIFY: "Shopify Store",
    SiteFamily.PRINTIFY: "Printify",
    SiteFamily.UNKNOWN: "Unknown",
}
