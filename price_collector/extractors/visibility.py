"""Visibility checks shared by the price scan and the image fallback."""
from price_collector.adapters.dom import Element, parse_px


def _hides_itself(element: Element) -> bool:
    if element.has_attr("hidden"):
        return True
    if element.style("display") == "none":
        return True
    if element.style("visibility") in ("hidden", "collapse"):
        return True
    opacity = parse_px(element.style("opacity"))
    if opacity is not None and opacity <= 0:
        return True
    box = element.box()
    if box.width == 0 or box.height == 0:
        return True
    return False


def is_visible(element: Element) -> bool:
    """
    False when the element or an ancestor is hidden by attribute, style or
    an explicit zero size.
    """
    if _hides_itself(element):
        return False
    return not any(_hides_itself(ancestor) for ancestor in element.ancestors())
