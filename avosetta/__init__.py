"""
Avosetta: compiles HTML markup templates into Python render functions.

Markup is tokenized, parsed into an arena tree, resolved for escaping,
lowered to write instructions, optimized and finally turned into the source
of a plain Python function that writes into an output sink.
"""

from __future__ import annotations

from .compiler.pipeline import CompiledTemplate, compile_markup
from .config import CompilerConfig
from .errors import (
    ConfigError,
    Span,
    TemplateCompileError,
    TemplateError,
    TemplateSyntaxError,
    UnsupportedConstructError,
)
from .runtime import Html, HtmlBuffer, raw
from .template import Fragment, Template

__all__ = [
    "compile_markup",
    "CompiledTemplate",
    "CompilerConfig",
    "Template",
    "Fragment",
    "Html",
    "HtmlBuffer",
    "raw",
    "Span",
    "TemplateError",
    "TemplateCompileError",
    "TemplateSyntaxError",
    "UnsupportedConstructError",
    "ConfigError",
]
