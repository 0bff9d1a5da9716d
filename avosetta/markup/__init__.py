"""
Markup front end: tokens, lexer, arena tree and parser.
"""

from __future__ import annotations

from .lexer import MarkupLexer, tokenize_markup
from .nodes import MarkupTree
from .parser import MarkupParser, parse_markup
from .tokens import Token, TokenType

__all__ = [
    "MarkupLexer",
    "MarkupParser",
    "MarkupTree",
    "Token",
    "TokenType",
    "parse_markup",
    "tokenize_markup",
]
