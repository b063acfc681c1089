"""Tests for the generic heuristic extractor."""

import pytest

from price_collector.config import config
from price_collector.extractors.generic import GenericExtractor, strip_title_suffix


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Blue Mug | Example Shop", "Blue Mug"),
        ("Blue Mug - Example Shop", "Blue Mug"),
        ("Blue Mug – Example Shop", "Blue Mug"),
        ("Blue Mug — Example Shop", "Blue Mug"),
        ("Example Shop: Blue Mug", "Example Shop"),
        ("Mugs: Blue Mug | Example Shop", "Mugs: Blue Mug"),
        ("Blue Mug", "Blue Mug"),
        ("", None),
        (None, None),
    ],
)
def test_strip_title_suffix(title, expected) -> None:
    assert strip_title_suffix(title) == expected


def test_title_only_from_document_title(make_document) -> None:
    html = "<html><head><title>Blue Mug | Example Shop</title></head><body><p>No price here</p></body></html>"

    partial = GenericExtractor().extract(make_document(html))

    assert partial.title == "Blue Mug"
    assert partial.price is None
    assert partial.currency is None
    assert partial.image is None


def test_meta_title_preferred(make_document) -> None:
    html = """
    <html><head>
      <title>Page | Shop</title>
      <meta property="og:title" content="OG Mug">
    </head><body><h1>Heading Mug</h1></body></html>
    """

    assert GenericExtractor().extract(make_document(html)).title == "OG Mug"


def test_price_from_meta_tags(make_document) -> None:
    html = """
    <html><head>
      <meta property="product:price:amount" content="39.95">
      <meta property="product:price:currency" content="USD">
    </head><body><h1>Lamp</h1><p>$5.00 shipping</p></body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("39.95", "USD")


def test_price_from_itemprop(make_document) -> None:
    html = """
    <html><body>
      <h1>Lamp</h1>
      <span itemprop="price" content="15.00">$15</span>
      <meta itemprop="priceCurrency" content="CAD">
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("15.00", "CAD")


def test_structured_data_beats_visible_text(make_document) -> None:
    html = """
    <html><head>
      <script type="application/ld+json">{"@type": "Product", "offers": {"price": "99.00", "priceCurrency": "USD"}}</script>
    </head><body><h1>Lamp</h1><p>$5.00</p></body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("99.00", "USD")


def test_text_scan_prefers_price_near_title(make_document) -> None:
    html = """
    <html><body>
      <nav><span>$5.00 flat shipping</span><a>Home</a><a>Lamps</a><a>Sale</a></nav>
      <h1>Fancy Lamp</h1>
      <p>$79.99</p>
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert partial.title == "Fancy Lamp"
    assert (partial.price, partial.currency) == ("79.99", "$")


def test_text_scan_without_anchor_takes_first(make_document) -> None:
    html = "<html><head><title>Lamp</title></head><body><p>£5.00</p><p>£79.99</p></body></html>"

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("5.00", "£")


def test_hidden_prices_are_ignored(make_document) -> None:
    html = """
    <html><body>
      <h1>Lamp</h1>
      <p style="display: none">$1.00</p>
      <div hidden><p>$2.00</p></div>
      <p style="visibility:hidden">$3.00</p>
      <p style="opacity: 0">$4.00</p>
      <p>$25.00</p>
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert partial.price == "25.00"


def test_script_text_is_not_scanned(make_document) -> None:
    html = """
    <html><body>
      <script>var price = "$1.00";</script>
      <h1>Lamp</h1><p>$12.50</p>
    </body></html>
    """

    assert GenericExtractor().extract(make_document(html)).price == "12.50"


def test_scan_is_capped(make_document) -> None:
    prices = "".join(f"<p>${i}.00</p>" for i in range(1, config.PRICE_SCAN_LIMIT + 11))
    html = f"<html><body>{prices}<h1>Lamp</h1></body></html>"
    document = make_document(html)
    extractor = GenericExtractor()

    assert len(extractor.scan_text_prices(document)) == config.PRICE_SCAN_LIMIT
    # The nearest price beyond the cap is never considered
    assert extractor.extract(document).price == f"{config.PRICE_SCAN_LIMIT}.00"


def test_generic_image(make_document) -> None:
    html = '<html><head><meta property="og:image" content="//cdn.example.com/lamp.jpg"></head><body></body></html>'

    assert GenericExtractor().extract(make_document(html)).image == "https://cdn.example.com/lamp.jpg"


def test_text_scan_joins_split_symbol_and_amount(make_document) -> None:
    html = """
    <html><body>
      <h1>Lamp</h1>
      <p class="price"><span class="woocommerce-Price-amount amount"><bdi><span class="woocommerce-Price-currencySymbol">$</span>79.99</bdi></span></p>
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("79.99", "$")


def test_text_scan_joins_whole_and_fraction(make_document) -> None:
    html = """
    <html><body>
      <h1>Lamp</h1>
      <div class="price">£<span class="whole">1,249</span><sup>.50</sup></div>
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert (partial.price, partial.currency) == ("1249.50", "£")


def test_split_prices_use_the_nearest_one(make_document) -> None:
    html = """
    <html><body>
      <div class="promo"><span>$</span>5.00</div>
      <p>Free returns</p><p>Gift wrap</p><p>Members save</p>
      <h1>Fancy Lamp</h1>
      <div class="price"><span>$</span>64.00</div>
    </body></html>
    """
    document = make_document(html)
    extractor = GenericExtractor()

    assert [c.price for c in extractor.scan_text_prices(document)] == ["5.00", "64.00"]
    assert extractor.extract(document).price == "64.00"


def test_adjacent_prices_stay_separate(make_document) -> None:
    html = "<html><body><h1>Lamp</h1><span>$5.00</span><span>$7.00</span></body></html>"

    prices = [c.price for c in GenericExtractor().scan_text_prices(make_document(html))]
    assert prices == ["5.00", "7.00"]


def test_product_microdata_name_beats_breadcrumbs(make_document) -> None:
    html = """
    <html><body>
      <ol itemscope itemtype="https://schema.org/BreadcrumbList">
        <li itemprop="itemListElement" itemscope itemtype="https://schema.org/ListItem">
          <a itemprop="item" href="/"><span itemprop="name">Home</span></a>
        </li>
      </ol>
      <div itemscope itemtype="https://schema.org/Product">
        <h2 itemprop="name">Fancy Lamp</h2>
        <p>$79.99</p>
      </div>
    </body></html>
    """

    partial = GenericExtractor().extract(make_document(html))
    assert partial.title == "Fancy Lamp"
    assert partial.price == "79.99"
