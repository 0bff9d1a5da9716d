"""
Error taxonomy of the template compiler.

All expected errors that should be displayed to the user as clean messages
(without stack traces) inherit from TemplateError. Compile errors carry the
source span of the offending markup.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """
    Location of a fragment in the template source.

    Offsets are 0-based indexes into the source text (end is exclusive),
    line and column are 1-based and point at the first character.
    """
    start: int
    end: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"

    def to(self, other: Span) -> Span:
        """Span covering this one up to the end of `other`."""
        return Span(self.start, other.end, self.line, self.column)


class TemplateError(Exception):
    """
    Base class for all user-facing errors of avosetta.

    These errors indicate problems the user can fix: malformed markup,
    unsupported constructs, invalid configuration.
    """
    pass


class TemplateCompileError(TemplateError):
    """Compilation failure located at a span of the template source."""

    def __init__(self, message: str, span: Span):
        super().__init__(f"{message} at {span.line}:{span.column}")
        self.message = message
        self.span = span
        self.line = span.line
        self.column = span.column


class TemplateSyntaxError(TemplateCompileError):
    """Grammar violation: unterminated block, stray punctuation, void element with a body."""
    pass


class UnsupportedConstructError(TemplateCompileError):
    """A recognized construct used where it cannot be resolved at compile time."""
    pass


class ConfigError(TemplateError):
    """Invalid compiler configuration or template frontmatter."""
    pass


__all__ = [
    "Span",
    "TemplateError",
    "TemplateCompileError",
    "TemplateSyntaxError",
    "UnsupportedConstructError",
    "ConfigError",
]
