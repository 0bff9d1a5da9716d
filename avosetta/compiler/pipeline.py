"""
Front-to-back compilation pipeline.

source -> tokens -> tree -> resolved tree -> instructions -> optimized
instructions -> Python source. Every stage returns new data; a failure in
any stage aborts the whole compilation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import CompilerConfig
from ..markup.lexer import MarkupLexer
from ..markup.nodes import MarkupTree
from ..markup.parser import MarkupParser
from ..markup.tokens import Token
from .codegen import CodeGenerator
from .emitter import InstructionEmitter
from .escape import EscapeResolver
from .instructions import InstructionSeq
from .optimizer import PeepholeOptimizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledTemplate:
    """Output of every stage of one compilation."""
    source: str
    tokens: Tuple[Token, ...]
    tree: MarkupTree
    instructions: InstructionSeq   # as emitted
    optimized: InstructionSeq      # after the peephole pass (same as emitted when disabled)
    params: Tuple[str, ...]
    function_name: str
    code: str


def compile_markup(
    source: str,
    params: Optional[Sequence[str]] = None,
    *,
    config: Optional[CompilerConfig] = None,
    first_line: int = 1,
) -> CompiledTemplate:
    """
    Compiles template source into Python source of a render function.

    Args:
        source: Markup text
        params: Parameter names of the render function (defaults to config.params)
        config: Compiler options
        first_line: Line number of the first source line, for diagnostics

    Raises:
        TemplateSyntaxError, UnsupportedConstructError: On malformed markup
        ConfigError: On invalid parameter names
    """
    config = config or CompilerConfig()
    params = tuple(config.params if params is None else params)

    tokens = MarkupLexer(source, first_line=first_line).tokenize()
    tree = MarkupParser(tokens).parse()
    resolved = EscapeResolver().resolve(tree)
    instructions = InstructionEmitter(resolved).emit()

    if config.optimize:
        optimized = PeepholeOptimizer().run(instructions)
    else:
        optimized = instructions

    code = CodeGenerator(config).generate_function(optimized, params)
    logger.debug(f"Compiled template ({len(source)} chars) into {config.function_name}()")

    return CompiledTemplate(
        source=source,
        tokens=tuple(tokens),
        tree=resolved,
        instructions=instructions,
        optimized=optimized,
        params=params,
        function_name=config.function_name,
        code=code,
    )


def compile_instructions(source: str, *, optimize: bool = True) -> InstructionSeq:
    """Runs the pipeline up to (optionally optimized) instructions."""
    tokens: List[Token] = MarkupLexer(source).tokenize()
    resolved = EscapeResolver().resolve(MarkupParser(tokens).parse())
    instructions = InstructionEmitter(resolved).emit()
    return PeepholeOptimizer().run(instructions) if optimize else instructions


__all__ = ["CompiledTemplate", "compile_markup", "compile_instructions"]
