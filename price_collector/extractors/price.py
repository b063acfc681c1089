"""
Price text parsing shared by every extractor.

Prices leave this module as plain numeric strings: digits and at most one
decimal point, no grouping separators and no currency symbol.
"""
import re
from typing import Any, Optional, Tuple


CURRENCY_SYMBOLS = "£$€¥₹"

# Leading symbol run, e.g. "$", "£", "$$" on odd markup
LEADING_SYMBOL = re.compile(rf"^\s*([{CURRENCY_SYMBOLS}]+)")
# ISO-like codes written around the number, e.g. "USD 19.99" or "19,99 EUR"
LEADING_CODE = re.compile(r"^\s*([A-Z]{3})(?=[\s\d])")
TRAILING_CODE = re.compile(r"(?<=[\d\s])([A-Z]{3})\s*$")
TRAILING_SYMBOL = re.compile(rf"\d\s*([{CURRENCY_SYMBOLS}])\s*$")

# A currency symbol followed by a number, as it appears in visible text.
# Spaces only group thousands ("£1 299,00"), so "$14.99 12 oz" stops at 14.99.
CURRENCY_NUMBER = re.compile(
    rf"([{CURRENCY_SYMBOLS}])\s?(?:\d{{1,3}}(?:\s\d{{3}})+(?!\d)(?:[.,]\d+)?|\d[\d,.]*)"
)
CURRENCY_NUMBER_COMPACT = re.compile(rf"([{CURRENCY_SYMBOLS}])\s?\d[\d,.]*")


def normalize_price_number(raw: Any) -> Optional[str]:
    """
    Reduce a price-like value to digits and one decimal point.

    Commas are grouping separators unless they are the last separator and
    are followed by exactly two digits (``12,50``, ``1.234,56``).
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        raw = f"{raw}"
    text = re.sub(r"[^\d.,]", "", str(raw))
    if not re.search(r"\d", text):
        return None

    last_comma = text.rfind(",")
    last_dot = text.rfind(".")
    if last_comma > last_dot and re.fullmatch(r"\d{2}", text[last_comma + 1:]):
        # Decimal comma: dots before it are grouping
        text = text[:last_comma].replace(".", "").replace(",", "") + "." + text[last_comma + 1:]
    else:
        text = text.replace(",", "")

    if text.count(".") > 1:
        # Keep only the final point as the decimal separator
        head, _, tail = text.rpartition(".")
        text = head.replace(".", "") + "." + tail

    text = text.rstrip(".")
    if text.startswith("."):
        text = "0" + text
    if not text or not re.fullmatch(r"\d+(\.\d+)?", text):
        return None
    return text


def detect_currency(text: str) -> Optional[str]:
    """Find a currency symbol or ISO-like code written next to a price."""
    if not text:
        return None
    for pattern in (LEADING_SYMBOL, LEADING_CODE, TRAILING_CODE, TRAILING_SYMBOL):
        match = pattern.search(text.strip())
        if match:
            return match.group(1)
    return None


def parse_price_text(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a price span into ``(price, currency)``.

    Either side is ``None`` when it cannot be recovered.
    """
    if not text:
        return None, None
    text = text.strip()
    currency = detect_currency(text)
    body = text.replace(currency, " ") if currency else text
    # Ranges like "$19.99 - $29.99" keep their first figure
    number = re.search(r"\d[\d.,]*", body)
    if not number:
        return None, currency
    return normalize_price_number(number.group()), currency


def find_currency_numbers(text: str):
    """Iterate over currency-prefixed numbers in free text."""
    return CURRENCY_NUMBER_COMPACT.finditer(text or "")
