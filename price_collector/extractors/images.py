"""
Main product image discovery.

``normalize_image_url`` canonicalizes one candidate reference.
``find_main_image`` runs the ordered image waterfall: embedded product JSON,
JSON-LD, noscript fallbacks, social meta tags, link hints, microdata,
<picture> sources, site-tuned selectors and finally the widest visible image
in the main content region. Every candidate is normalized before it is
accepted.
"""
import json
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from price_collector.adapters.dom import Document, Element
from price_collector.config import config
from price_collector.extractors.structured_data import StructuredDataReader
from price_collector.extractors.visibility import is_visible
from price_collector.utils.logger import LayerLogger


logger = LayerLogger("image_cascade")

PLACEHOLDER_TOKENS = ("{width}", "{height}", "%7Bwidth%7D", "%7Bheight%7D", "%7bwidth%7d", "%7bheight%7d")

LAZY_ATTRIBUTES = (
    "data-src",
    "data-lazy-src",
    "data-original",
    "data-old-hires",
    "data-zoom-image",
    "data-large_image",
    "data-srcset",
)

# Containers whose <picture> most likely holds the product shot
MEDIA_CONTAINER = re.compile(r"product|gallery|media|hero|main", re.I)

# Shorter resolved URLs are almost always icons or spacers
MIN_IMAGE_URL_LENGTH = 20

# Fallback selectors shared by every site, after the family's own
SHARED_IMAGE_SELECTORS = (
    "img#main-image",
    "img[data-testid='hero-image']",
    ".product-gallery img",
    ".product__media img",
    ".product-single__photo img",
    ".product-image img",
    "img.product-image",
    ".woocommerce-product-gallery__image img",
    "[class*='product-image'] img",
    "[class*='gallery'] img",
    "[data-zoom-image]",
)

MAIN_REGION_SELECTORS = ("main", "[role='main']", "#main", "#content", "article", "body")

BACKGROUND_URL = re.compile(r"url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")
NOSCRIPT_IMG_SRC = re.compile(r"<img[^>]+src\s*=\s*['\"]([^'\"]+)['\"]", re.I)


def normalize_image_url(raw: Optional[str], page_url: Optional[str] = None) -> Optional[str]:
    """
    Canonicalize a candidate image reference.

    Takes the first entry of a srcset-style list and drops its descriptor,
    fills width/height template placeholders, gives protocol-relative URLs
    the https scheme, upgrades http on https pages and resolves relative
    references. Idempotent.
    """
    if raw is None:
        return None
    url = raw.strip()
    if not url:
        return None

    if "," in url and not url.lower().startswith("data:"):
        url = url.split(",", 1)[0].strip()
    if not url.lower().startswith("data:"):
        # "image.jpg 300w" / "image.jpg 2x"
        url = url.split()[0] if url.split() else ""
    if not url:
        return None

    size = str(config.IMAGE_PLACEHOLDER_SIZE)
    for token in PLACEHOLDER_TOKENS:
        url = url.replace(token, size)

    if url.startswith("//"):
        url = "https:" + url

    page_is_secure = bool(page_url) and urlparse(page_url).scheme.lower() == "https"
    if url.lower().startswith("http://") and page_is_secure:
        url = "https://" + url[len("http://"):]

    if page_url and not re.match(r"^[a-z][a-z0-9+.-]*:", url, re.I):
        url = urljoin(page_url, url)

    return url


def _accept(raw: Optional[str], page_url: str) -> Optional[str]:
    url = normalize_image_url(raw, page_url)
    if not url or url.lower().startswith("data:"):
        return None
    return url


def _from_element(element: Element) -> Iterable[Optional[str]]:
    """Raw image candidates carried by one element, in preference order."""
    yield element.attr("src")
    for name in LAZY_ATTRIBUTES:
        yield element.attr(name)
    dynamic = element.attr("data-a-dynamic-image")
    if dynamic:
        # {"https://...jpg": [width, height], ...}
        yield _first_key(dynamic)
    yield element.attr("srcset")
    background = element.style("background-image")
    if background:
        match = BACKGROUND_URL.search(background)
        yield match.group(1) if match else None


def _first_key(value: str) -> Optional[str]:
    try:
        data = json.loads(value)
    except ValueError:
        return None
    if isinstance(data, dict) and data:
        return next(iter(data))
    return None


# -- waterfall steps -------------------------------------------------------

def _embedded_product_json(document: Document) -> Optional[str]:
    selectors = (
        "script[data-product-json]",
        "script[id^='ProductJson']",
        "script#product-json",
        "script[type='application/json'][id*='product' i]",
    )
    for selector in selectors:
        for script in document.select(selector):
            try:
                data = json.loads(script.raw_text())
            except ValueError:
                continue
            if isinstance(data, dict) and isinstance(data.get("product"), dict):
                data = data["product"]
            if not isinstance(data, dict):
                continue
            featured = data.get("featured_image")
            if isinstance(featured, dict):
                featured = featured.get("src")
            if isinstance(featured, str) and featured:
                return featured
            images = data.get("images")
            if isinstance(images, list) and images:
                first = images[0]
                if isinstance(first, dict):
                    first = first.get("src")
                if isinstance(first, str) and first:
                    return first
            media = data.get("media")
            if isinstance(media, list):
                for item in media:
                    if isinstance(item, dict) and isinstance(item.get("src"), str):
                        return item["src"]
    return None


def _noscript(document: Document) -> Optional[str]:
    for noscript in document.select("noscript"):
        img = noscript.select_one("img[src]")
        if img is not None:
            return img.attr("src")
        match = NOSCRIPT_IMG_SRC.search(noscript.raw_text())
        if match:
            return match.group(1)
    return None


def _meta_image(document: Document) -> Optional[str]:
    selectors = (
        "meta[property='og:image:secure_url']",
        "meta[property='og:image']",
        "meta[name='og:image']",
        "meta[name='twitter:image']",
        "meta[name='twitter:image:src']",
        "meta[property='twitter:image']",
    )
    for selector in selectors:
        element = document.select_one(selector)
        if element is not None and element.attr("content"):
            return element.attr("content")
    return None


def _link_image(document: Document) -> Optional[str]:
    element = document.select_one("link[rel='image_src']")
    return element.attr("href") if element is not None else None


def _itemprop_image(document: Document) -> Optional[str]:
    for element in document.select("[itemprop='image']"):
        value = element.attr("src") or element.attr("content") or element.attr("href")
        if value:
            return value
    return None


def _picture_sources(document: Document) -> List[str]:
    preferred, others = [], []
    for picture in document.select("picture"):
        container_classes = " ".join(
            " ".join(node.classes()) for node in [picture, *picture.ancestors()]
        )
        bucket = preferred if MEDIA_CONTAINER.search(container_classes) else others
        for source in picture.select("source[srcset], source[data-srcset], img"):
            value = source.attr("srcset") or source.attr("data-srcset") or source.attr("src")
            if value:
                bucket.append(value)
    return preferred + others


def _site_selectors(document: Document, selectors: Sequence[str]) -> Iterable[Optional[str]]:
    for selector in selectors:
        try:
            elements = document.select(selector)
        except Exception as e:
            logger.log_step("site_selector", "invalid", selector=selector, error=str(e))
            continue
        for element in elements:
            yield from _from_element(element)


def _main_region_images(document: Document) -> List[str]:
    region = None
    for selector in MAIN_REGION_SELECTORS:
        region = document.select_one(selector)
        if region is not None:
            break
    images = region.select("img") if region is not None else document.select("img")
    visible = [img for img in images if is_visible(img)]
    # sorted() is stable, so equal widths keep document order
    visible = sorted(visible, key=lambda img: -(img.natural_width() or 0))
    candidates = []
    for img in visible:
        for raw in _from_element(img):
            if raw and not raw.strip().lower().startswith("data:"):
                candidates.append(raw)
                break
    return candidates


def find_main_image(
    document: Document,
    site_selectors: Sequence[str] = (),
    reader: Optional[StructuredDataReader] = None,
) -> Optional[str]:
    """Return the page's main product image URL, or None."""
    reader = reader or StructuredDataReader(document)
    page_url = document.url
    selectors = tuple(site_selectors) + tuple(s for s in SHARED_IMAGE_SELECTORS if s not in site_selectors)

    steps: Tuple[Tuple[str, Callable[[], Iterable[Optional[str]]]], ...] = (
        ("embedded_product_json", lambda: [_embedded_product_json(document)]),
        ("structured_data", lambda: [reader.find_image()]),
        ("noscript", lambda: [_noscript(document)]),
        ("meta_image", lambda: [_meta_image(document)]),
        ("link_image_src", lambda: [_link_image(document)]),
        ("itemprop_image", lambda: [_itemprop_image(document)]),
        ("picture_source", lambda: _picture_sources(document)),
        ("site_selectors", lambda: _site_selectors(document, selectors)),
    )

    for name, step in steps:
        try:
            for raw in step():
                url = _accept(raw, page_url)
                if url:
                    logger.log_step(name, "found", image=url)
                    return url
        except Exception as e:
            logger.log_error(str(e), error_type="image_step_failed", step=name)
        logger.log_step(name, "empty")

    try:
        for raw in _main_region_images(document):
            url = _accept(raw, page_url)
            if url and len(url) > MIN_IMAGE_URL_LENGTH:
                logger.log_step("main_region_images", "found", image=url)
                return url
    except Exception as e:
        logger.log_error(str(e), error_type="image_step_failed", step="main_region_images")

    return None
