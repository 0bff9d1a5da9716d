"""
Context-sensitive lexer for the markup notation.

Splits template source into structural tokens. Host-language fragments
(conditions, loop bindings, interpolated expressions, dynamic attribute
values, match patterns) are never parsed: the lexer only finds where they
start and end and emits them as opaque HOST_EXPR tokens.

Which rules apply depends on the active lexical context, tracked on a stack:
- MARKUP: template root, element bodies, loop / else / arm bodies
- IF_BODY: body of an @if or else-if branch (an 'else' may follow it)
- ATTRS: inside an attribute list [...]
- ARMS: inside the braces of an @match
"""

from __future__ import annotations

import ast
import enum
import logging
import re
import warnings
from typing import List, Optional, Tuple

from ..errors import Span, TemplateSyntaxError
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)


class LexContext(enum.Enum):
    MARKUP = "markup"
    IF_BODY = "if-body"
    ATTRS = "attrs"
    ARMS = "arms"


_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"[0-9][0-9_]*(\.[0-9_]+)?([eE][+-]?[0-9_]+)?[jJ]?")
_WHITESPACE = re.compile(r"\s+")

_CLOSERS = {"(": ")", "[": "]", "{": "}"}

_UNTERMINATED = {
    LexContext.MARKUP: "Unterminated block",
    LexContext.IF_BODY: "Unterminated block",
    LexContext.ATTRS: "Unterminated attribute list",
    LexContext.ARMS: "Unterminated match block",
}

# (line, column, position)
_Mark = Tuple[int, int, int]


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class MarkupLexer:
    """
    Tokenizer for one template.

    A lexer instance is single-use: create one per source text.
    """

    def __init__(self, text: str, *, first_line: int = 1):
        self.text = text
        self.position = 0
        self.line = first_line
        self.column = 1
        self.length = len(text)

        self.tokens: List[Token] = []
        # Stack of open contexts together with the span of their opening token
        self.context_stack: List[Tuple[LexContext, Span]] = []
        # Context that the next '{' opens (set after if/for/match heads)
        self._pending: Optional[LexContext] = None

    # ---- public API ----

    def tokenize(self) -> List[Token]:
        """
        Tokenizes the whole source and returns the token list terminated by EOF.

        Raises:
            TemplateSyntaxError: On any lexical error
        """
        while True:
            self._skip_trivia()
            if self.position >= self.length:
                break

            context = self._context()
            if context is LexContext.ATTRS:
                self._lex_attrs()
            elif context is LexContext.ARMS:
                self._lex_arm()
            else:
                self._lex_markup()

        if self.context_stack:
            context, span = self.context_stack[-1]
            raise TemplateSyntaxError(_UNTERMINATED[context], span)

        self.tokens.append(Token(TokenType.EOF, "", self._span_from(self._mark())))
        logger.debug(f"Tokenized template into {len(self.tokens)} tokens")
        return self.tokens

    # ---- context rules ----

    def _lex_markup(self) -> None:
        ch = self.text[self.position]

        if ch == "{":
            token = self._emit_char(TokenType.PUNCT)
            self.context_stack.append((self._pending or LexContext.MARKUP, token.span))
            self._pending = None
        elif ch == "}":
            token = self._emit_char(TokenType.PUNCT)
            if not self.context_stack:
                raise TemplateSyntaxError("Unmatched '}'", token.span)
            context, _ = self.context_stack.pop()
            if context is LexContext.IF_BODY:
                self._lex_else_chain()
        elif ch == "[":
            token = self._emit_char(TokenType.PUNCT)
            self.context_stack.append((LexContext.ATTRS, token.span))
        elif ch == ";":
            self._emit_char(TokenType.PUNCT)
        elif ch == "@":
            self._emit_char(TokenType.PUNCT)
            self._lex_interpolation()
        elif ch in "\"'":
            self._lex_string()
        elif _IDENT.match(self.text, self.position):
            self._lex_ident()
        else:
            raise TemplateSyntaxError(f"Unexpected character {ch!r}", self._char_span())

    def _lex_else_chain(self) -> None:
        """After an if-body: picks up 'else' / 'else if <cond>' continuations."""
        self._skip_trivia()
        if not self._at_word("else"):
            return
        self._emit_word(TokenType.KEYWORD, "else")
        self._skip_trivia()
        if self._at_word("if"):
            self._emit_word(TokenType.KEYWORD, "if")
            self._skip_whitespace()
            self._emit_host_until("{", "Expected '{' after else-if condition")
            self._pending = LexContext.IF_BODY
        else:
            self._pending = LexContext.MARKUP

    def _lex_interpolation(self) -> None:
        """Lexes what follows '@': a control construct head or an expression."""
        if self.position < self.length and self.text[self.position] == "!":
            self._emit_char(TokenType.PUNCT)
            self._lex_expression()
            return

        for keyword in ("if", "for", "match"):
            if self._at_word(keyword):
                self._emit_word(TokenType.KEYWORD, keyword)
                self._skip_whitespace()
                if keyword == "if":
                    self._emit_host_until("{", "Expected '{' after if condition")
                    self._pending = LexContext.IF_BODY
                elif keyword == "for":
                    self._emit_host_until("in", "Expected 'in' in for loop")
                    self._emit_word(TokenType.KEYWORD, "in")
                    self._skip_whitespace()
                    self._emit_host_until("{", "Expected '{' after for iterable")
                    self._pending = LexContext.MARKUP
                else:
                    self._emit_host_until("{", "Expected '{' after match subject")
                    self._pending = LexContext.ARMS
                return

        self._lex_expression()

    def _lex_expression(self) -> None:
        """Lexes an interpolated expression in one of its delimited forms."""
        if self.position >= self.length:
            raise TemplateSyntaxError("Expected expression after '@'", self._char_span())

        ch = self.text[self.position]
        mark = self._mark()

        if ch == "{":
            self._emit_host_block()
            return

        if ch == "(":
            end = self._find_closing(self.position)
        elif ch in "\"'":
            end = self._find_string_end(self.position)
            if end is None:
                raise TemplateSyntaxError("Unterminated string literal", self._char_span())
        elif ch.isdigit():
            end = _NUMBER.match(self.text, self.position).end()
        elif _IDENT.match(self.text, self.position):
            end = self._find_implicit_end(self.position)
        else:
            raise TemplateSyntaxError("Expected expression after '@'", self._char_span())

        value = self.text[self.position:end]
        self._advance(end - self.position)
        self.tokens.append(Token(TokenType.HOST_EXPR, value, self._span_from(mark)))

    def _lex_attrs(self) -> None:
        ch = self.text[self.position]

        if ch == "]":
            self._emit_char(TokenType.PUNCT)
            self.context_stack.pop()
        elif ch in ",=@":
            self._emit_char(TokenType.PUNCT)
        elif ch == "{":
            self._emit_host_block()
        elif ch in "\"'":
            self._lex_string()
        elif _IDENT.match(self.text, self.position):
            self._lex_ident()
        else:
            raise TemplateSyntaxError(
                f"Unexpected character {ch!r} in attribute list", self._char_span()
            )

    def _lex_arm(self) -> None:
        ch = self.text[self.position]

        if ch == "}":
            self._emit_char(TokenType.PUNCT)
            self.context_stack.pop()
            return
        if ch == ",":
            self._emit_char(TokenType.PUNCT)
            return

        self._emit_host_until("=>", "Expected '=>' after match pattern")
        mark = self._mark()
        self._advance(2)
        self.tokens.append(Token(TokenType.PUNCT, "=>", self._span_from(mark)))

        self._skip_trivia()
        if self.position >= self.length:
            raise TemplateSyntaxError("Expected match arm body", self._char_span())
        ch = self.text[self.position]
        if ch == "{":
            token = self._emit_char(TokenType.PUNCT)
            self.context_stack.append((LexContext.MARKUP, token.span))
        elif ch in "\"'":
            self._lex_string()
        else:
            raise TemplateSyntaxError(
                "Match arm body must be a block or a string literal", self._char_span()
            )

    # ---- token producers ----

    def _lex_ident(self) -> None:
        match = _IDENT.match(self.text, self.position)
        self._emit_word(TokenType.IDENT, match.group(0))

    def _lex_string(self) -> None:
        mark = self._mark()
        end = self._find_string_end(self.position)
        if end is None:
            raise TemplateSyntaxError("Unterminated string literal", self._char_span())

        literal = self.text[self.position:end]
        self._advance(end - self.position)
        span = self._span_from(mark)
        self.tokens.append(Token(TokenType.STRING, _decode_string(literal, span), span))

    def _emit_host_block(self) -> None:
        """'{' host_expr '}', emitted as three tokens."""
        end = self._find_closing(self.position)
        self._emit_char(TokenType.PUNCT)
        self._skip_whitespace()
        inner_end = end - 1
        self._emit_host_span(inner_end, "Expected expression inside braces")
        self._skip_whitespace()
        self._emit_char(TokenType.PUNCT)

    def _emit_host_until(self, stop: str, message: str) -> None:
        """Emits a host expression running up to `stop` at bracket depth 0."""
        end = self._find_stop(self.position, stop, message)
        self._emit_host_span(end, "Expected expression")

    def _emit_host_span(self, end: int, empty_message: str) -> None:
        raw = self.text[self.position:end]
        value = raw.rstrip()
        if not value:
            raise TemplateSyntaxError(empty_message, self._char_span())
        mark = self._mark()
        self._advance(len(value))
        self.tokens.append(Token(TokenType.HOST_EXPR, value, self._span_from(mark)))
        self._advance(len(raw) - len(value))

    def _emit_char(self, token_type: TokenType) -> Token:
        mark = self._mark()
        value = self.text[self.position]
        self._advance(1)
        token = Token(token_type, value, self._span_from(mark))
        self.tokens.append(token)
        return token

    def _emit_word(self, token_type: TokenType, word: str) -> None:
        mark = self._mark()
        self._advance(len(word))
        self.tokens.append(Token(token_type, word, self._span_from(mark)))

    # ---- host expression scanning ----

    def _find_stop(self, start: int, stop: str, message: str) -> int:
        """
        Index of `stop` ('{', 'in' or '=>') at bracket depth 0, starting at `start`.

        Strings are skipped; a closing bracket without an opener is an error.
        """
        i = start
        while i < self.length:
            ch = self.text[i]
            if ch in "\"'":
                end = self._find_string_end(i)
                if end is None:
                    raise TemplateSyntaxError("Unterminated string literal", self._span_at(i))
                i = end
                continue
            if stop == "{" and ch == "{":
                return i
            if stop == "=>" and self.text.startswith("=>", i):
                return i
            if stop == "in" and self._word_at(i, "in"):
                return i
            if ch in _CLOSERS:
                i = self._find_closing(i)
                continue
            if ch in ")]}":
                raise TemplateSyntaxError(message, self._span_at(i))
            i += 1
        raise TemplateSyntaxError(message, self._span_at(start))

    def _find_closing(self, start: int) -> int:
        """Index just past the bracket that closes the one at `start`."""
        expected: List[str] = []
        i = start
        while i < self.length:
            ch = self.text[i]
            if ch in "\"'":
                end = self._find_string_end(i)
                if end is None:
                    raise TemplateSyntaxError("Unterminated string literal", self._span_at(i))
                i = end
                continue
            if ch in _CLOSERS:
                expected.append(_CLOSERS[ch])
            elif ch in ")]}":
                if ch != expected[-1]:
                    raise TemplateSyntaxError(f"Mismatched {ch!r}", self._span_at(i))
                expected.pop()
                if not expected:
                    return i + 1
            i += 1
        raise TemplateSyntaxError("Unterminated expression", self._span_at(start))

    def _find_implicit_end(self, start: int) -> int:
        """End of `name(.name | (...) | [...])*`."""
        i = _IDENT.match(self.text, start).end()
        while i < self.length:
            ch = self.text[i]
            if ch == "." and _IDENT.match(self.text, i + 1):
                i = _IDENT.match(self.text, i + 1).end()
            elif ch in "([":
                i = self._find_closing(i)
            else:
                break
        return i

    def _find_string_end(self, start: int) -> Optional[int]:
        """Index just past the string literal opened at `start`, None if unterminated."""
        quote = self.text[start]
        if self.text.startswith(quote * 3, start):
            i = start + 3
            while i < self.length:
                if self.text[i] == "\\":
                    i += 2
                elif self.text.startswith(quote * 3, i):
                    return i + 3
                else:
                    i += 1
            return None

        i = start + 1
        while i < self.length:
            ch = self.text[i]
            if ch == "\\":
                i += 2
            elif ch == quote:
                return i + 1
            elif ch == "\n":
                return None
            else:
                i += 1
        return None

    # ---- position helpers ----

    def _context(self) -> LexContext:
        return self.context_stack[-1][0] if self.context_stack else LexContext.MARKUP

    def _skip_whitespace(self) -> None:
        match = _WHITESPACE.match(self.text, self.position)
        if match:
            self._advance(match.end() - self.position)

    def _skip_trivia(self) -> None:
        """Skips whitespace and // line comments."""
        while True:
            self._skip_whitespace()
            if self.text.startswith("//", self.position):
                end = self.text.find("\n", self.position)
                self._advance((self.length if end < 0 else end) - self.position)
            else:
                return

    def _word_at(self, i: int, word: str) -> bool:
        if not self.text.startswith(word, i):
            return False
        if i > 0 and _is_ident_char(self.text[i - 1]):
            return False
        end = i + len(word)
        return end >= self.length or not _is_ident_char(self.text[end])

    def _at_word(self, word: str) -> bool:
        return self._word_at(self.position, word)

    def _advance(self, count: int) -> None:
        """Moves the position forward, keeping line and column numbers in sync."""
        chunk = self.text[self.position:self.position + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        self.position += len(chunk)

    def _mark(self) -> _Mark:
        return self.line, self.column, self.position

    def _span_from(self, mark: _Mark) -> Span:
        line, column, position = mark
        return Span(position, self.position, line, column)

    def _char_span(self) -> Span:
        return Span(self.position, min(self.position + 1, self.length), self.line, self.column)

    def _span_at(self, index: int) -> Span:
        """Span of the single character at `index` (line/column recomputed)."""
        before = self.text[:index]
        first_line = self.line - self.text[:self.position].count("\n")
        line = first_line + before.count("\n")
        column = index - before.rfind("\n")
        return Span(index, min(index + 1, self.length), line, column)


def _decode_string(literal: str, span: Span) -> str:
    """Decodes a quoted literal using Python string syntax; invalid escapes are errors."""
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            value = ast.literal_eval(literal)
    except (ValueError, SyntaxError, Warning) as e:
        raise TemplateSyntaxError(f"Invalid string literal: {e}", span) from e
    if not isinstance(value, str):
        raise TemplateSyntaxError("Invalid string literal", span)
    return value


def tokenize_markup(text: str, *, first_line: int = 1) -> List[Token]:
    """
    Convenience function tokenizing a template.

    Args:
        text: Template source
        first_line: Line number of the first source line (after frontmatter)

    Returns:
        Token list ending with EOF

    Raises:
        TemplateSyntaxError: On lexical errors
    """
    return MarkupLexer(text, first_line=first_line).tokenize()


__all__ = ["LexContext", "MarkupLexer", "tokenize_markup"]
