"""Tests for the JSON-LD reader."""

from price_collector.extractors.structured_data import (
    StructuredDataReader,
    flatten_nodes,
    parse_block,
    resolve_image,
)


def _ld(body: str) -> str:
    return f'<html><head><script type="application/ld+json">{body}</script></head><body></body></html>'


def test_product_offer_price_and_image(make_document) -> None:
    document = make_document(
        _ld(
            '{"@context": "https://schema.org", "@type": "Product", "name": "Mug",'
            ' "image": "https://cdn.example.com/mug.jpg",'
            ' "offers": {"@type": "Offer", "price": "19.99", "priceCurrency": "USD"}}'
        )
    )
    reader = StructuredDataReader(document)

    assert reader.find_price() == ("19.99", "USD")
    assert reader.find_image() == "https://cdn.example.com/mug.jpg"


def test_concatenated_objects_are_recovered(make_document) -> None:
    document = make_document(
        _ld(
            '{"@type": "Organization", "name": "Shop"}\n'
            '{"@type": "Product", "offers": {"price": 5, "priceCurrency": "EUR"}}'
        )
    )

    assert StructuredDataReader(document).find_price() == ("5", "EUR")


def test_parse_block_reports_strategy() -> None:
    assert parse_block('{"a": 1}').strategy == "strict"

    recovered = parse_block('{"a": 1}{"b": 2}')
    assert recovered.ok
    assert recovered.strategy == "concatenated"
    assert recovered.data == [{"a": 1}, {"b": 2}]

    broken = parse_block("{not json")
    assert not broken.ok
    assert broken.error

    assert not parse_block("   ").ok


def test_unparseable_block_is_skipped(make_document) -> None:
    html = (
        '<html><head><script type="application/ld+json">{not json</script>'
        '<script type="application/ld+json">{"@type": "Product", "image": "https://cdn.example.com/a.jpg"}</script>'
        "</head><body></body></html>"
    )
    reader = StructuredDataReader(make_document(html))

    assert reader.find_image() == "https://cdn.example.com/a.jpg"
    assert reader.find_price() is None


def test_graph_nodes_and_product_image_preference(make_document) -> None:
    document = make_document(
        _ld(
            '{"@context": "https://schema.org", "@graph": ['
            '{"@type": "WebPage", "image": "https://example.com/page.png"},'
            '{"@type": "Product", "image": [{"@type": "ImageObject", "url": "https://example.com/product.jpg"}]}'
            "]}"
        )
    )

    assert StructuredDataReader(document).find_image() == "https://example.com/product.jpg"


def test_price_specification_fallback(make_document) -> None:
    document = make_document(
        _ld(
            '{"@type": "Product", "offers": [{"@type": "Offer",'
            ' "priceSpecification": {"price": "49.00", "priceCurrency": "GBP"}}]}'
        )
    )

    assert StructuredDataReader(document).find_price() == ("49.00", "GBP")


def test_aggregate_offer_low_price(make_document) -> None:
    document = make_document(
        _ld(
            '{"@type": "Product", "offers": {"@type": "AggregateOffer",'
            ' "lowPrice": "10.5", "highPrice": "20", "priceCurrency": "USD"}}'
        )
    )

    assert StructuredDataReader(document).find_price() == ("10.5", "USD")


def test_standalone_offer_object(make_document) -> None:
    document = make_document(_ld('[{"@type": "Offer", "price": "7.25", "priceCurrency": "CAD"}]'))

    assert StructuredDataReader(document).find_price() == ("7.25", "CAD")


def test_no_structured_data(make_document) -> None:
    reader = StructuredDataReader(make_document("<html><body><p>Plain page</p></body></html>"))

    assert reader.nodes() == []
    assert reader.find_price() is None
    assert reader.find_image() is None


def test_flatten_nodes_and_resolve_image() -> None:
    nodes = flatten_nodes({"@graph": [{"@type": "A"}, [{"@type": "B"}]]})
    assert [n.get("@type") for n in nodes] == [None, "A", "B"]

    assert resolve_image(["", {"contentUrl": "https://example.com/c.jpg"}]) == "https://example.com/c.jpg"
    assert resolve_image({"@type": "ImageObject"}) is None
    assert resolve_image(None) is None
