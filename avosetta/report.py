"""
Compilation reports for the `report` CLI command.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from pydantic import BaseModel, Field

from .compiler.instructions import Enter, Instruction, WriteDynamic, WriteLiteral, dump_instructions
from .compiler.pipeline import CompiledTemplate
from .version import tool_version


class InstructionCounts(BaseModel):
    """Instruction totals, nested branches included."""
    literal: int = 0
    dynamic: int = 0
    enter: int = 0

    @property
    def total(self) -> int:
        return self.literal + self.dynamic + self.enter

    @classmethod
    def of(cls, instructions: Sequence[Instruction]) -> InstructionCounts:
        counts = cls()
        _count_into(counts, instructions)
        return counts


def _count_into(counts: InstructionCounts, instructions: Sequence[Instruction]) -> None:
    for instruction in instructions:
        if isinstance(instruction, WriteLiteral):
            counts.literal += 1
        elif isinstance(instruction, WriteDynamic):
            counts.dynamic += 1
        elif isinstance(instruction, Enter):
            counts.enter += 1
            for branch in instruction.branches:
                _count_into(counts, branch.body)


class CompileReport(BaseModel):
    protocol: int = 1
    version: str
    source: str = Field(description="template file or '<string>'")
    function_name: str
    params: List[str] = Field(default_factory=list)
    tokens: int
    nodes: int
    emitted: InstructionCounts
    optimized: InstructionCounts
    instructions: List[Dict[str, Any]] = Field(default_factory=list)
    code: str


def build_report(compiled: CompiledTemplate, *, source_name: str = "<string>") -> CompileReport:
    """Summarizes every stage of one compilation."""
    return CompileReport(
        version=tool_version(),
        source=source_name,
        function_name=compiled.function_name,
        params=list(compiled.params),
        tokens=len(compiled.tokens),
        nodes=len(compiled.tree),
        emitted=InstructionCounts.of(compiled.instructions),
        optimized=InstructionCounts.of(compiled.optimized),
        instructions=dump_instructions(compiled.optimized),
        code=compiled.code,
    )


__all__ = ["InstructionCounts", "CompileReport", "build_report"]
