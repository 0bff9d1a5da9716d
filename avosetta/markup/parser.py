"""
Recursive descent parser for the markup notation.

Turns the token list produced by MarkupLexer into a MarkupTree. Parsing is
atomic: the first malformed construct aborts with a span-located error and
no partial tree is returned.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..errors import Span, TemplateSyntaxError, UnsupportedConstructError
from .lexer import MarkupLexer
from .nodes import (
    Attribute, AttrValue, Block, DynamicExpr, Element, ElementKind, Expr, For, If,
    IfBranch, Interpolation, MarkupTree, Match, MatchArm, Node, StaticBool,
    StaticString, StaticText,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

# Characters that would break the emitted tag syntax if used in a name.
_INVALID_NAME = re.compile(r"""[\s"'<>/=]""")


class MarkupParser:
    """
    Recursive parser for templates.

    Walks the token list once, allocating every sibling group in the arena
    after all of its members have been parsed.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0
        self.tree = MarkupTree()

    def parse(self) -> MarkupTree:
        """
        Parses the whole token list.

        Returns:
            Tree with `roots` covering the top-level nodes

        Raises:
            TemplateSyntaxError: On grammar violations
            UnsupportedConstructError: On constructs that cannot be resolved statically
        """
        roots = self._parse_nodes(until_close=False)
        self.tree.roots = self.tree.alloc(roots)
        logger.debug(f"Parsed template into {len(self.tree)} nodes ({len(roots)} top-level)")
        return self.tree

    # ---- node sequences ----

    def _parse_nodes(self, until_close: bool) -> List[Node]:
        """Parses nodes up to '}' (when inside a block) or EOF."""
        nodes: List[Node] = []
        while True:
            current = self._current_token()
            if current.type is TokenType.EOF:
                if until_close:
                    raise TemplateSyntaxError("Unterminated block", current.span)
                return nodes
            if current.is_punct("}"):
                if not until_close:
                    raise TemplateSyntaxError("Unmatched '}'", current.span)
                return nodes
            nodes.append(self._parse_node())

    def _parse_block(self, what: str) -> range:
        """'{' node* '}': returns the range of the allocated body."""
        self._consume_punct("{", f"Expected '{{' to open {what}")
        body = self._parse_nodes(until_close=True)
        self._consume_punct("}", f"Expected '}}' to close {what}")
        return self.tree.alloc(body)

    def _parse_node(self) -> Node:
        current = self._current_token()

        if current.type in (TokenType.IDENT, TokenType.STRING):
            following = self._peek(1)
            if following.type is TokenType.PUNCT and following.value in ("{", "[", ";"):
                return self._parse_element()
            if current.type is TokenType.STRING:
                self._advance()
                return StaticText(span=current.span, text=current.value)
            raise TemplateSyntaxError(
                f"Expected '{{', '[' or ';' after element name '{current.value}'", following.span
            )

        if current.is_punct("@"):
            return self._parse_interpolation()

        if current.is_punct("{"):
            raise TemplateSyntaxError("Unexpected '{': a block must follow an element name", current.span)

        raise TemplateSyntaxError(f"Unexpected {current.describe()}", current.span)

    # ---- elements ----

    def _parse_element(self) -> Element:
        name_token = self._advance()
        name = self._static_name(name_token, "Element")

        attributes: Tuple[Attribute, ...] = ()
        if self._current_token().is_punct("["):
            attributes = self._parse_attributes()

        current = self._current_token()
        if current.is_punct(";"):
            self._advance()
            following = self._current_token()
            if following.is_punct("{"):
                raise TemplateSyntaxError(f"Void element '{name}' cannot have a body", following.span)
            return Element(
                span=name_token.span.to(current.span),
                name=name,
                attributes=attributes,
                kind=ElementKind.VOID,
            )

        if current.is_punct("{"):
            children = self._parse_block(f"element '{name}'")
            return Element(
                span=name_token.span.to(self._previous().span),
                name=name,
                attributes=attributes,
                kind=ElementKind.NORMAL,
                children=children,
            )

        raise TemplateSyntaxError(
            f"Expected '{{' or ';' after element '{name}', got {current.describe()}", current.span
        )

    def _parse_attributes(self) -> Tuple[Attribute, ...]:
        """'[' attr (',' attr)* ','? ']'"""
        self._consume_punct("[", "Expected '['")
        attributes: List[Attribute] = []

        while not self._current_token().is_punct("]"):
            attributes.append(self._parse_attribute())
            current = self._current_token()
            if current.is_punct(","):
                self._advance()
            elif not current.is_punct("]"):
                raise TemplateSyntaxError(
                    f"Expected ',' or ']' in attribute list, got {current.describe()}", current.span
                )

        self._consume_punct("]", "Expected ']'")
        return tuple(attributes)

    def _parse_attribute(self) -> Attribute:
        name_token = self._current_token()

        if name_token.is_punct("{"):
            raise UnsupportedConstructError("Attribute names must be static", name_token.span)
        if name_token.is_punct("@"):
            raise UnsupportedConstructError("Interpolation is not allowed in an attribute list", name_token.span)
        if name_token.type not in (TokenType.IDENT, TokenType.STRING):
            raise TemplateSyntaxError(f"Expected attribute name, got {name_token.describe()}", name_token.span)

        self._advance()
        name = self._static_name(name_token, "Attribute")

        value: Optional[AttrValue] = None
        if self._current_token().is_punct("="):
            self._advance()
            value = self._parse_attribute_value(name)

        return Attribute(name=name, value=value, span=name_token.span.to(self._previous().span))

    def _parse_attribute_value(self, name: str) -> AttrValue:
        current = self._current_token()

        if current.type is TokenType.STRING:
            self._advance()
            return StaticString(current.value)

        if current.type is TokenType.IDENT and current.value in ("true", "false"):
            self._advance()
            return StaticBool(current.value == "true")

        if current.is_punct("{"):
            self._advance()
            code = self._consume(TokenType.HOST_EXPR, "Expected expression").value
            self._consume_punct("}", "Expected '}'")
            return DynamicExpr(code)

        if current.is_punct("@"):
            raise UnsupportedConstructError(
                f"Attribute '{name}' takes a dynamic value as {{expr}}, not '@'", current.span
            )

        raise TemplateSyntaxError(
            f"Attribute '{name}' value must be a string literal, true, false or {{expr}}", current.span
        )

    def _static_name(self, token: Token, what: str) -> str:
        name = token.value
        if not name or _INVALID_NAME.search(name):
            raise UnsupportedConstructError(f"{what} name {name!r} cannot be emitted as markup", token.span)
        return name

    # ---- interpolations ----

    def _parse_interpolation(self) -> Interpolation:
        at = self._consume_punct("@", "Expected '@'")
        current = self._current_token()

        if current.is_keyword("if"):
            return self._parse_if(at)
        if current.is_keyword("for"):
            return self._parse_for(at)
        if current.is_keyword("match"):
            return self._parse_match(at)

        raw = False
        if current.is_punct("!"):
            self._advance()
            raw = True

        current = self._current_token()
        if current.is_punct("{"):
            self._advance()
            code = self._consume(TokenType.HOST_EXPR, "Expected expression").value
            self._consume_punct("}", "Expected '}'")
            node: Interpolation = Block(span=at.span.to(self._previous().span), code=code, raw=raw)
        elif current.type is TokenType.HOST_EXPR:
            self._advance()
            node = Expr(span=at.span.to(current.span), code=current.value, raw=raw)
        else:
            raise TemplateSyntaxError(f"Expected expression after '@', got {current.describe()}", current.span)

        following = self._current_token()
        if following.type is TokenType.PUNCT and following.value in ("{", "[", ";"):
            raise UnsupportedConstructError(
                "Element names must be static; an interpolation cannot name an element", node.span
            )
        return node

    def _parse_if(self, at: Token) -> If:
        branches: List[IfBranch] = []
        else_body: Optional[range] = None

        keyword = self._consume_keyword("if")
        condition = self._consume(TokenType.HOST_EXPR, "Expected condition after 'if'").value
        body = self._parse_block("if branch")
        branches.append(IfBranch(condition=condition, body=body, span=keyword.span.to(self._previous().span)))

        while self._current_token().is_keyword("else"):
            else_token = self._advance()
            if self._current_token().is_keyword("if"):
                self._advance()
                condition = self._consume(TokenType.HOST_EXPR, "Expected condition after 'else if'").value
                body = self._parse_block("else-if branch")
                branches.append(IfBranch(condition=condition, body=body, span=else_token.span.to(self._previous().span)))
            else:
                else_body = self._parse_block("else branch")
                break

        return If(span=at.span.to(self._previous().span), branches=tuple(branches), else_body=else_body)

    def _parse_for(self, at: Token) -> For:
        self._consume_keyword("for")
        binding = self._consume(TokenType.HOST_EXPR, "Expected loop binding after 'for'").value
        self._consume_keyword("in")
        iterable = self._consume(TokenType.HOST_EXPR, "Expected iterable after 'in'").value
        body = self._parse_block("for loop body")
        return For(span=at.span.to(self._previous().span), binding=binding, iterable=iterable, body=body)

    def _parse_match(self, at: Token) -> Match:
        keyword = self._consume_keyword("match")
        subject = self._consume(TokenType.HOST_EXPR, "Expected subject after 'match'").value
        self._consume_punct("{", "Expected '{' after match subject")

        arms: List[MatchArm] = []
        while not self._current_token().is_punct("}"):
            arms.append(self._parse_arm())
            if self._current_token().is_punct(","):
                self._advance()

        close = self._consume_punct("}", "Expected '}' to close match")
        if not arms:
            raise TemplateSyntaxError("Match requires at least one arm", keyword.span.to(close.span))
        return Match(span=at.span.to(close.span), subject=subject, arms=tuple(arms))

    def _parse_arm(self) -> MatchArm:
        pattern = self._consume(TokenType.HOST_EXPR, "Expected match pattern")
        self._consume_punct("=>", "Expected '=>' after match pattern")

        current = self._current_token()
        if current.type is TokenType.STRING:
            # A bare string literal arm is shorthand for a block holding that text.
            self._advance()
            body = self.tree.alloc([StaticText(span=current.span, text=current.value)])
        elif current.is_punct("{"):
            body = self._parse_block("match arm")
        else:
            raise TemplateSyntaxError("Match arm body must be a block or a string literal", current.span)

        return MatchArm(pattern=pattern.value, body=body, span=pattern.span.to(self._previous().span))

    # ---- token helpers ----

    def _current_token(self) -> Token:
        """Returns the current token (EOF once the list is exhausted)."""
        return self._peek(0)

    def _peek(self, offset: int) -> Token:
        index = self.position + offset
        if index >= len(self.tokens):
            last = self.tokens[-1] if self.tokens else None
            span = last.span if last else Span(0, 0, 1, 1)
            return Token(TokenType.EOF, "", Span(span.end, span.end, span.line, span.column))
        return self.tokens[index]

    def _previous(self) -> Token:
        return self.tokens[self.position - 1]

    def _advance(self) -> Token:
        """Moves to the next token and returns the previous one."""
        current = self._current_token()
        if current.type is not TokenType.EOF:
            self.position += 1
        return current

    def _consume(self, expected: TokenType, message: str) -> Token:
        current = self._current_token()
        if current.type is not expected:
            raise TemplateSyntaxError(f"{message}, got {current.describe()}", current.span)
        return self._advance()

    def _consume_punct(self, value: str, message: str) -> Token:
        current = self._current_token()
        if not current.is_punct(value):
            raise TemplateSyntaxError(f"{message}, got {current.describe()}", current.span)
        return self._advance()

    def _consume_keyword(self, value: str) -> Token:
        current = self._current_token()
        if not current.is_keyword(value):
            raise TemplateSyntaxError(f"Expected '{value}', got {current.describe()}", current.span)
        return self._advance()


def parse_markup(text: str, *, first_line: int = 1) -> MarkupTree:
    """
    Convenience function parsing template source into a tree.

    Raises:
        TemplateSyntaxError: On lexical or grammar errors
        UnsupportedConstructError: On constructs that cannot be resolved statically
    """
    tokens = MarkupLexer(text, first_line=first_line).tokenize()
    return MarkupParser(tokens).parse()


__all__ = ["MarkupParser", "parse_markup"]
