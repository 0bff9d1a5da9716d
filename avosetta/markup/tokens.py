"""
Lexical types of the markup notation.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..errors import Span


class TokenType(enum.Enum):
    """Token classes produced by the markup lexer."""
    IDENT = "IDENT"            # element / attribute names
    KEYWORD = "KEYWORD"        # if, else, for, in, match (only after '@' or an if body)
    STRING = "STRING"          # decoded string literal
    PUNCT = "PUNCT"            # { } [ ] ( ) ; , = @ ! =>
    HOST_EXPR = "HOST_EXPR"    # opaque host-language source span
    EOF = "EOF"


PUNCTUATION = frozenset({"{", "}", "[", "]", "(", ")", ";", ",", "=", "@", "!", "=>"})

KEYWORDS = frozenset({"if", "else", "for", "in", "match"})


@dataclass(frozen=True)
class Token:
    """
    Token with positional information for precise diagnostics.
    """
    type: TokenType
    value: str
    span: Span

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    def is_punct(self, value: str) -> bool:
        return self.type is TokenType.PUNCT and self.value == value

    def is_keyword(self, value: str) -> bool:
        return self.type is TokenType.KEYWORD and self.value == value

    def describe(self) -> str:
        """Human readable form used in error messages."""
        if self.type is TokenType.EOF:
            return "end of template"
        if self.type is TokenType.STRING:
            return f"string {self.value!r}"
        if self.type is TokenType.HOST_EXPR:
            return f"expression {self.value!r}"
        return f"'{self.value}'"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.span.line}:{self.span.column})"


__all__ = ["TokenType", "Token", "PUNCTUATION", "KEYWORDS"]
