"""Indented one-line-per-element dump of a tree, for eyeballing documents."""

from typing import List

from .nodes import Element, Text

INDENT = "---"


def format_element_line(element: Element, depth: int) -> str:
    parts = [f"{INDENT * depth}<{element.qualified_name}>"]
    for attr in element.attributes:
        parts.append(f" [{attr.name} = {attr.value}] ")
    for node in element.nodes:
        if isinstance(node, Text):
            parts.append(f" <<{node.value}>> ")
    return "".join(parts)


def render_outline(element: Element) -> str:
    """Render ``element`` and its descendants, one line each.

    Example:
        >>> print(render_outline(document.root))
        <w:document>
        ---<w:body>
        ------<w:p> [w:rsidR = 00A1]
    """
    lines: List[str] = [
        format_element_line(child, depth)
        for child, depth in element.iter_with_depth()
    ]
    return "\n".join(lines)
