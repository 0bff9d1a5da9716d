"""
Compile-time escaping of static content.

Static text and static attribute values are rewritten into their
HTML-escaped form once, before emission. Dynamic content is left untouched
and only tagged with whether the runtime must escape it.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..markup.nodes import (
    Attribute, Block, Element, Expr, MarkupTree, Node, StaticString, StaticText,
)

logger = logging.getLogger(__name__)

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})


def escape_html(text: str) -> str:
    """
    Replaces the five HTML-significant characters with entities.

    Single left-to-right pass: entities produced for one character are never
    escaped again, so `&` becomes `&amp;` and not `&amp;amp;`.
    """
    return text.translate(_HTML_ESCAPES)


class EscapeResolver:
    """
    Pass producing a resolved copy of a MarkupTree.

    Pure and total: it never fails and the input tree is not modified.
    """

    def resolve(self, tree: MarkupTree) -> MarkupTree:
        resolved = tree.map(self._resolve_node, resolved=True)
        logger.debug(f"Resolved escaping for {len(resolved)} nodes")
        return resolved

    def _resolve_node(self, node: Node) -> Node:
        if isinstance(node, StaticText):
            if node.escaped:
                return node
            return replace(node, text=escape_html(node.text), escaped=True)

        if isinstance(node, (Expr, Block)):
            return replace(node, needs_escaping=not node.raw)

        if isinstance(node, Element) and node.attributes:
            return replace(node, attributes=tuple(self._resolve_attribute(a) for a in node.attributes))

        return node

    def _resolve_attribute(self, attribute: Attribute) -> Attribute:
        value = attribute.value
        if isinstance(value, StaticString) and not value.escaped:
            return replace(attribute, value=StaticString(escape_html(value.text), escaped=True))
        return attribute


def resolve_escapes(tree: MarkupTree) -> MarkupTree:
    """Convenience wrapper around EscapeResolver."""
    return EscapeResolver().resolve(tree)


__all__ = ["escape_html", "EscapeResolver", "resolve_escapes"]
