"""
Python code generation from optimized instructions.

Each instruction becomes a call on the output sink (see avosetta.runtime);
control constructs become the matching Python statements. Host code is
copied verbatim, wrapped in parentheses where it is used as an expression so
that multi-line fragments stay valid.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..config import CompilerConfig, is_identifier
from ..errors import ConfigError
from .instructions import ConstructKind, Enter, Instruction, WriteDynamic, WriteLiteral

logger = logging.getLogger(__name__)


class CodeBuilder:
    """Accumulates source lines at the current indentation level."""

    def __init__(self, indent_step: int = 4):
        self.lines: List[str] = []
        self.indent_level = 0
        self.indent_step = indent_step

    def add_line(self, line: str) -> None:
        """Adds a line; indentation is added for you."""
        self.lines.append(" " * self.indent_level + line)

    def indent(self) -> None:
        self.indent_level += self.indent_step

    def dedent(self) -> None:
        self.indent_level -= self.indent_step

    def __str__(self) -> str:
        return "\n".join(self.lines) + "\n"


class CodeGenerator:
    """
    Maps instructions to calls against the renderable capability.

    Structural translation only: every decision was already made by the
    emitter and the optimizer.
    """

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or CompilerConfig()

    @property
    def sink(self) -> str:
        return self.config.sink_name

    def generate_body(self, instructions: Sequence[Instruction]) -> List[str]:
        """Statements for a function body, unindented."""
        builder = CodeBuilder(self.config.indent)
        self._generate(builder, instructions)
        return builder.lines

    def generate_function(
        self,
        instructions: Sequence[Instruction],
        params: Optional[Sequence[str]] = None,
        *,
        name: Optional[str] = None,
    ) -> str:
        """
        Complete module source defining the render function.

        Signature: `def <name>(<sink>, <params...>)`.

        Raises:
            ConfigError: If a parameter is not a valid identifier or repeats
        """
        name = name or self.config.function_name
        params = tuple(self.config.params if params is None else params)
        self._check_params(name, params)

        builder = CodeBuilder(self.config.indent)
        builder.add_line(f"def {name}({', '.join((self.sink, *params))}):")
        builder.indent()
        self._generate(builder, instructions)
        builder.dedent()

        logger.debug(f"Generated {len(builder.lines)} lines for {name}()")
        return str(builder)

    def _check_params(self, name: str, params: Sequence[str]) -> None:
        if not is_identifier(name):
            raise ConfigError(f"Function name {name!r} is not a valid Python identifier")
        seen = {self.sink}
        for param in params:
            if not is_identifier(param):
                raise ConfigError(f"Parameter {param!r} is not a valid Python identifier")
            if param in seen:
                raise ConfigError(f"Duplicate parameter {param!r}")
            seen.add(param)

    def _generate(self, builder: CodeBuilder, instructions: Sequence[Instruction]) -> None:
        if not instructions:
            builder.add_line("pass")
            return

        for instruction in instructions:
            if isinstance(instruction, WriteLiteral):
                builder.add_line(f"{self.sink}.write_literal({instruction.text!r})")
            elif isinstance(instruction, WriteDynamic):
                builder.add_line(self._dynamic_call(instruction))
            elif isinstance(instruction, Enter):
                self._generate_construct(builder, instruction)
            else:
                raise TypeError(f"Cannot generate code for {instruction!r}")

    def _dynamic_call(self, instruction: WriteDynamic) -> str:
        if instruction.attribute is not None:
            return f"{self.sink}.write_attr({instruction.attribute!r}, ({instruction.code}))"
        method = "write" if instruction.needs_escaping else "write_raw"
        return f"{self.sink}.{method}(({instruction.code}))"

    def _generate_construct(self, builder: CodeBuilder, construct: Enter) -> None:
        if construct.kind is ConstructKind.IF:
            for i, branch in enumerate(construct.branches):
                if branch.guard is None:
                    builder.add_line("else:")
                else:
                    builder.add_line(f"{'if' if i == 0 else 'elif'} ({branch.guard}):")
                builder.indent()
                self._generate(builder, branch.body)
                builder.dedent()

        elif construct.kind is ConstructKind.FOR:
            builder.add_line(f"for {construct.binding} in ({construct.subject}):")
            builder.indent()
            self._generate(builder, construct.branches[0].body)
            builder.dedent()

        elif construct.kind is ConstructKind.MATCH:
            builder.add_line(f"match ({construct.subject}):")
            builder.indent()
            for branch in construct.branches:
                builder.add_line(f"case {branch.guard}:")
                builder.indent()
                self._generate(builder, branch.body)
                builder.dedent()
            builder.dedent()

        else:
            raise TypeError(f"Unknown construct kind: {construct.kind!r}")


__all__ = ["CodeBuilder", "CodeGenerator"]
