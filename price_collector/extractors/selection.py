"""Recover a title and price from freeform text the user selected on a page."""
import re
from typing import List, Optional, Tuple

from price_collector.extractors.price import CURRENCY_NUMBER, normalize_price_number
from price_collector.models.product import SelectionResult


SELECTION_SEPARATORS = re.compile(r"\s(?:-|–|—|\|)\s")

# Without any structure the selection is probably a product name
MAX_TITLE_LENGTH = 120


def _price_in(text: str) -> Optional[Tuple[str, Optional[str]]]:
    match = CURRENCY_NUMBER.search(text)
    if not match:
        return None
    return match.group(0), match.group(1)


def _classify(parts: List[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """First part without a price is the title, first part with one is the price."""
    title = price = currency = None
    for part in parts:
        found = _price_in(part)
        if found:
            if price is None:
                price, currency = found
        elif title is None:
            title = part
    return title, price, currency


def parse_selection(text: Optional[str]) -> SelectionResult:
    """
    Split selected text into title and price.

    Multi-line selections are classified line by line, single lines are
    split on dash and pipe separators, and a bare line has its price
    substring cut out. Whatever is left becomes the title.
    """
    raw = (text or "").strip()
    if not raw:
        return SelectionResult(raw="")

    lines = [line.strip() for line in re.split(r"\r?\n", raw) if line.strip()]
    if len(lines) > 1:
        title, price, currency = _classify(lines)
    else:
        parts = [part.strip() for part in SELECTION_SEPARATORS.split(raw) if part.strip()]
        if len(parts) > 1:
            title, price, currency = _classify(parts)
            title = title or parts[0]
        else:
            found = _price_in(raw)
            if found:
                price, currency = found
                title = re.sub(r"\s+", " ", raw.replace(price, " ", 1)).strip().strip("-: ")
            else:
                title, price, currency = raw[:MAX_TITLE_LENGTH], None, None

    number = normalize_price_number(price[len(currency):]) if price else None
    return SelectionResult(
        raw=raw,
        title=title,
        price=number,
        currency=currency if number else None,
    )
