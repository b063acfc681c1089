"""
DOM access adapter for Price Collector.

Extractors only talk to the small ``Document``/``Element`` interface below so
the pipeline can run against any tree that can answer selector queries, text,
attributes, style and geometry. ``SoupDocument`` implements it over a static
BeautifulSoup parse.
"""
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag


# Elements whose text never renders
NON_RENDERED_TAGS = {"script", "style", "noscript", "template", "head", "title", "meta", "link"}


class Box(NamedTuple):
    """Element geometry. ``None`` width/height means the size is unknown."""
    top: float
    width: Optional[float]
    height: Optional[float]


class Element(ABC):
    """Read-only view of one element."""

    @property
    @abstractmethod
    def tag(self) -> str:
        ...

    @abstractmethod
    def text(self) -> str:
        """Whitespace-collapsed text content."""

    @abstractmethod
    def raw_text(self) -> str:
        """Unmodified text content (script bodies, noscript markup)."""

    @abstractmethod
    def attr(self, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def classes(self) -> List[str]:
        ...

    @abstractmethod
    def select(self, selector: str) -> List["Element"]:
        ...

    @abstractmethod
    def select_one(self, selector: str) -> Optional["Element"]:
        ...

    @abstractmethod
    def parent(self) -> Optional["Element"]:
        ...

    @abstractmethod
    def style(self, prop: str) -> Optional[str]:
        """Computed value of a CSS property, lower-cased, or None."""

    @abstractmethod
    def box(self) -> Box:
        ...

    @abstractmethod
    def natural_width(self) -> Optional[int]:
        """Intrinsic width of an image element, if known."""

    def has_attr(self, name: str) -> bool:
        return self.attr(name) is not None

    def ancestors(self) -> Iterator["Element"]:
        node = self.parent()
        while node is not None:
            yield node
            node = node.parent()


class Document(ABC):
    """Read-only view of a page."""

    @property
    @abstractmethod
    def url(self) -> str:
        ...

    @abstractmethod
    def select(self, selector: str) -> List[Element]:
        ...

    @abstractmethod
    def select_one(self, selector: str) -> Optional[Element]:
        ...

    @abstractmethod
    def title(self) -> Optional[str]:
        """The document's <title> text."""

    @abstractmethod
    def iter_text_nodes(self) -> Iterator[Tuple[str, Element]]:
        """Yield (text, parent element) for every rendered text node in order."""


def parse_inline_style(style: Optional[str]) -> Dict[str, str]:
    """Parse a ``style`` attribute into a property map."""
    declarations = {}
    if not style:
        return declarations
    for declaration in style.split(";"):
        if ":" not in declaration:
            continue
        prop, value = declaration.split(":", 1)
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip()
        if prop:
            declarations[prop] = value
    return declarations


def parse_px(value: Optional[str]) -> Optional[float]:
    """Parse ``"120"``, ``"120px"`` or ``"0"``; other units are unknown."""
    if value is None:
        return None
    match = re.match(r"^\s*(-?\d+(?:\.\d+)?)\s*(px)?\s*$", str(value))
    if not match:
        return None
    return float(match.group(1))


class SoupElement(Element):
    """Element backed by a BeautifulSoup tag."""

    def __init__(self, tag: Tag, document: "SoupDocument"):
        self._tag = tag
        self._document = document

    def __eq__(self, other):
        return isinstance(other, SoupElement) and other._tag is self._tag

    def __hash__(self):
        return id(self._tag)

    def __repr__(self):
        return f"<SoupElement {self._tag.name}>"

    @property
    def tag(self) -> str:
        return self._tag.name.lower()

    def text(self) -> str:
        return re.sub(r"\s+", " ", self._tag.get_text(" ")).strip()

    def raw_text(self) -> str:
        return self._tag.get_text()

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return value

    def classes(self) -> List[str]:
        value = self._tag.get("class") or []
        if isinstance(value, str):
            value = value.split()
        return list(value)

    def select(self, selector: str) -> List[Element]:
        return [self._document.wrap(t) for t in self._tag.select(selector)]

    def select_one(self, selector: str) -> Optional[Element]:
        found = self._tag.select_one(selector)
        return self._document.wrap(found) if found is not None else None

    def parent(self) -> Optional[Element]:
        parent = self._tag.parent
        if parent is None or not isinstance(parent, Tag) or parent.name == "[document]":
            return None
        return self._document.wrap(parent)

    def style(self, prop: str) -> Optional[str]:
        value = parse_inline_style(self.attr("style")).get(prop.lower())
        return value.lower() if value is not None else None

    def box(self) -> Box:
        width = parse_px(self.style("width"))
        if width is None:
            width = parse_px(self.attr("width"))
        height = parse_px(self.style("height"))
        if height is None:
            height = parse_px(self.attr("height"))
        return Box(top=float(self._document.order_of(self._tag)), width=width, height=height)

    def natural_width(self) -> Optional[int]:
        for value in (self.attr("width"), self.attr("data-width"), self.style("width")):
            width = parse_px(value)
            if width is not None:
                return int(width)
        return None


class SoupDocument(Document):
    """
    Document backed by BeautifulSoup.

    Static HTML has no layout engine, so ``Box.top`` is the element's index
    in document order. It is monotone in reading order, which is what the
    proximity heuristics need.
    """

    def __init__(self, url: str, soup: BeautifulSoup):
        self._url = url
        self._soup = soup
        self._order: Optional[Dict[int, int]] = None

    @classmethod
    def from_html(cls, url: str, html: str, parser: str = "lxml") -> "SoupDocument":
        return cls(url, BeautifulSoup(html or "", parser))

    @property
    def url(self) -> str:
        return self._url

    def wrap(self, tag: Tag) -> SoupElement:
        return SoupElement(tag, self)

    def order_of(self, tag: Tag) -> int:
        if self._order is None:
            self._order = {id(t): index for index, t in enumerate(self._soup.find_all(True))}
        return self._order.get(id(tag), 0)

    def select(self, selector: str) -> List[Element]:
        return [self.wrap(t) for t in self._soup.select(selector)]

    def select_one(self, selector: str) -> Optional[Element]:
        found = self._soup.select_one(selector)
        return self.wrap(found) if found is not None else None

    def title(self) -> Optional[str]:
        title_tag = self._soup.find("title")
        if title_tag is None:
            return None
        text = re.sub(r"\s+", " ", title_tag.get_text()).strip()
        return text or None

    def iter_text_nodes(self) -> Iterator[Tuple[str, Element]]:
        root = self._soup.body or self._soup
        for node in root.descendants:
            if not isinstance(node, NavigableString) or isinstance(node, Comment):
                continue
            parent = node.parent
            if parent is None or not isinstance(parent, Tag):
                continue
            if parent.name in NON_RENDERED_TAGS:
                continue
            if any(p.name in NON_RENDERED_TAGS for p in parent.parents if isinstance(p, Tag)):
                continue
            text = str(node).strip()
            if text:
                yield text, self.wrap(parent)
