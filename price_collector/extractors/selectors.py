"""
Ordered selector cascades.

Site tuning lives in data: a cascade is a tuple of ``Probe`` objects, each a
CSS selector plus an accessor that turns the matched element into a raw
string. ``first_value`` walks the probes in order and returns the first value
the caller's ``accept`` function takes.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple, TypeVar

from soupsieve import SelectorSyntaxError

from price_collector.adapters.dom import Document, Element


T = TypeVar("T")

Accessor = Callable[[Element], Optional[str]]


def text_of(element: Element) -> Optional[str]:
    return element.text() or None


def attr_of(name: str) -> Accessor:
    def accessor(element: Element) -> Optional[str]:
        return element.attr(name)
    return accessor


def content_or_text(element: Element) -> Optional[str]:
    """Microdata elements often carry the machine value in ``content``."""
    return element.attr("content") or element.text() or None


@dataclass(frozen=True)
class Probe:
    """One step of a cascade: where to look and what to read."""
    selector: str
    accessor: Accessor = text_of


def _candidates(document: Document, probe: Probe) -> Iterable[Element]:
    try:
        element = document.select_one(probe.selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return []
    return [element] if element is not None else []


def first_value(
    document: Document,
    probes: Iterable[Probe],
    accept: Callable[[str], Optional[T]],
) -> Optional[Tuple[Probe, Element, T]]:
    """
    Evaluate probes in order and return the first accepted value.

    ``accept`` maps the raw accessor output to a parsed value or ``None``;
    a ``None`` moves the cascade on to the next element or probe.
    """
    for probe in probes:
        for element in _candidates(document, probe):
            raw = probe.accessor(element)
            if raw is None:
                continue
            value = accept(raw.strip())
            if value is not None:
                return probe, element, value
    return None


def non_empty(raw: str) -> Optional[str]:
    return raw or None
