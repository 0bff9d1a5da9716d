"""
Renderable capability targeted by generated code.

Generated render functions receive an output sink and call four methods on
it: write_literal (pre-escaped text), write (escaped value), write_raw
(trusted value) and write_attr (dynamic attribute). HtmlBuffer is the
default sink; any object with the same methods can be used instead.

Rendering rules for values:
- objects with `write_to(sink)` (bound fragments) stream into the sink
- objects with `__html__()` are trusted markup and written as-is
- None renders nothing, booleans render "true" / "false"
- everything else is converted with str() and escaped
"""

from __future__ import annotations

from typing import Any, List

from .compiler.escape import escape_html


class Html(str):
    """Markup that is safe to write without escaping."""

    __slots__ = ()

    def __html__(self) -> Html:
        return self

    def __repr__(self) -> str:
        return f"Html({str.__repr__(self)})"


def raw(value: Any) -> Html:
    """
    Marks text as already-safe markup.

    Static string literals in templates are escaped at compile time; wrap
    only content that is trusted markup produced elsewhere.
    """
    return value if isinstance(value, Html) else Html(value)


def to_text(value: Any) -> str:
    """Rendered form of a dynamic value, before escaping."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    html = getattr(value, "__html__", None)
    if html is not None:
        return str(html())
    return str(value)


def to_html(value: Any) -> str:
    """Rendered, escaped form of a dynamic value."""
    text = to_text(value)
    if getattr(value, "__html__", None) is not None:
        return text
    return escape_html(text)


class HtmlBuffer:
    """
    Output sink accumulating rendered fragments.

    Fragments are appended to a list and joined once in getvalue().
    """

    def __init__(self) -> None:
        self._parts: List[str] = []

    def write_literal(self, text: str) -> None:
        self._parts.append(text)

    def write(self, value: Any) -> None:
        writer = getattr(value, "write_to", None)
        if writer is not None:
            writer(self)
            return
        self._parts.append(to_html(value))

    def write_raw(self, value: Any) -> None:
        writer = getattr(value, "write_to", None)
        if writer is not None:
            writer(self)
        else:
            self._parts.append(to_text(value))

    def write_attr(self, name: str, value: Any) -> None:
        """
        Dynamic attribute: ` name="value"`.

        True writes the bare name, False and None omit the attribute.
        """
        if value is None or value is False:
            return
        if value is True:
            self._parts.append(f" {name}")
            return
        self._parts.append(f' {name}="')
        self.write(value)
        self._parts.append('"')

    def getvalue(self) -> Html:
        return Html("".join(self._parts))


__all__ = ["Html", "raw", "to_text", "to_html", "HtmlBuffer"]
