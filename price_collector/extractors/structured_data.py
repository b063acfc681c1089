"""
Structured-data reader for schema.org JSON-LD product descriptors.

Blocks are parsed through an explicit chain of attempts (strict, then
recovery of concatenated objects). Every object found, including those nested
under ``@graph``, becomes a candidate for the image and price lookups.
Absence is the common case and is reported as ``None``.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from price_collector.adapters.dom import Document
from price_collector.extractors.price import normalize_price_number
from price_collector.utils.logger import LayerLogger


logger = LayerLogger("structured_data")

# Sibling objects glued together: "}{", "}\n{", "} , {" and "][", "];["
_SIBLING_OBJECTS = re.compile(r"}\s*,?\s*{")
_SIBLING_ARRAYS = re.compile(r"]\s*[,;]?\s*\[")


@dataclass(frozen=True)
class ParseAttempt:
    """Outcome of one parsing strategy applied to one block."""
    strategy: str
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _strict(text: str) -> ParseAttempt:
    try:
        return ParseAttempt("strict", data=json.loads(text))
    except ValueError as e:
        return ParseAttempt("strict", error=str(e))


def _concatenated(text: str) -> ParseAttempt:
    stripped = text.strip().rstrip(";")
    if stripped.startswith("["):
        joined = "[" + _SIBLING_ARRAYS.sub(",", stripped[1:-1]) + "]"
    else:
        joined = "[" + _SIBLING_OBJECTS.sub("},{", stripped) + "]"
    try:
        data = json.loads(joined)
    except ValueError as e:
        return ParseAttempt("concatenated", error=str(e))
    return ParseAttempt("concatenated", data=data)


PARSE_STRATEGIES: Tuple[Callable[[str], ParseAttempt], ...] = (_strict, _concatenated)


def parse_block(text: str) -> ParseAttempt:
    """Run the parse strategies in order; return the first success or the last failure."""
    attempt = ParseAttempt("empty", error="empty block")
    if not text or not text.strip():
        return attempt
    for strategy in PARSE_STRATEGIES:
        attempt = strategy(text)
        if attempt.ok:
            return attempt
    return attempt


def flatten_nodes(data: Any) -> List[Dict[str, Any]]:
    """
    Flatten a parsed block into schema objects.

    Handles a single object, arrays of objects and ``@graph`` containers.
    """
    nodes = []
    if isinstance(data, dict):
        nodes.append(data)
        graph = data.get("@graph")
        if isinstance(graph, (list, dict)):
            nodes.extend(flatten_nodes(graph))
    elif isinstance(data, list):
        for item in data:
            nodes.extend(flatten_nodes(item))
    return nodes


def type_label(node: Dict[str, Any]) -> str:
    """``@type`` as one lower-cased string (list types are joined)."""
    value = node.get("@type") or node.get("type") or ""
    if isinstance(value, list):
        value = " ".join(str(v) for v in value)
    return str(value).lower()


def resolve_image(value: Any) -> Optional[str]:
    """
    Resolve a schema.org ``image`` value to one URL.

    Accepts a string, a list of strings, a list of ImageObjects or a single
    ImageObject.
    """
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for item in value:
            resolved = resolve_image(item)
            if resolved:
                return resolved
        return None
    if isinstance(value, dict):
        for key in ("url", "contentUrl", "@id"):
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    return None


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _price_from_offer(offer: Any) -> Optional[Tuple[str, Optional[str]]]:
    if not isinstance(offer, dict):
        return None
    currency = offer.get("priceCurrency")
    for key in ("price", "lowPrice"):
        price = normalize_price_number(offer.get(key))
        if price:
            return price, currency or None
    spec = _first(offer.get("priceSpecification"))
    if isinstance(spec, dict):
        price = normalize_price_number(spec.get("price"))
        if price:
            return price, spec.get("priceCurrency") or currency or None
    return None


class StructuredDataReader:
    """Reads JSON-LD blocks from one document."""

    def __init__(self, document: Document):
        self.document = document
        self._nodes: Optional[List[Dict[str, Any]]] = None

    def nodes(self) -> List[Dict[str, Any]]:
        """All schema objects on the page, in page order. Parsed once."""
        if self._nodes is None:
            self._nodes = self._parse_all()
        return self._nodes

    def _parse_all(self) -> List[Dict[str, Any]]:
        nodes = []
        for script in self.document.select("script[type]"):
            if "ld+json" not in (script.attr("type") or "").lower():
                continue
            attempt = parse_block(script.raw_text())
            if not attempt.ok:
                logger.log_step("jsonld_block", "abandoned", error=attempt.error)
                continue
            if attempt.strategy != "strict":
                logger.log_step("jsonld_block", "recovered", strategy=attempt.strategy)
            nodes.extend(flatten_nodes(attempt.data))
        return nodes

    def find_image(self) -> Optional[str]:
        """First resolvable image, product-typed objects first."""
        nodes = self.nodes()
        products = [n for n in nodes if "product" in type_label(n)]
        others = [n for n in nodes if "product" not in type_label(n)]
        for node in products + others:
            image = resolve_image(node.get("image"))
            if image:
                return image
        return None

    def find_price(self) -> Optional[Tuple[str, Optional[str]]]:
        """First ``(price, currency)`` in page order; offers before bare Offer objects."""
        nodes = self.nodes()
        for node in nodes:
            found = _price_from_offer(_first(node.get("offers")))
            if found:
                return found
        for node in nodes:
            if "offer" in type_label(node):
                found = _price_from_offer(node)
                if found:
                    return found
        return None
