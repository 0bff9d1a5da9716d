"""
Peephole optimizer for instruction sequences.

Merges every run of consecutive literal writes inside one branch into a
single write and drops empty literals. Dynamic writes and control
constructs are never added, removed or reordered, so the pass is sound
(the concatenated literal output is unchanged) and idempotent.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .instructions import (
    Branch, Enter, Instruction, InstructionSeq, WriteLiteral, count_instructions,
)

logger = logging.getLogger(__name__)


def optimize(instructions: Sequence[Instruction]) -> InstructionSeq:
    """
    Returns an equivalent sequence with adjacent literals merged.

    Runs never cross an Enter boundary; branches are optimized recursively.
    """
    out: List[Instruction] = []
    pending: List[str] = []

    def flush() -> None:
        if pending:
            out.append(WriteLiteral("".join(pending)))
            pending.clear()

    for instruction in instructions:
        if isinstance(instruction, WriteLiteral):
            if instruction.text:
                pending.append(instruction.text)
            continue

        flush()
        if isinstance(instruction, Enter):
            branches = tuple(Branch(b.guard, optimize(b.body)) for b in instruction.branches)
            out.append(Enter(instruction.kind, branches, instruction.subject, instruction.binding))
        else:
            out.append(instruction)

    flush()
    return tuple(out)


class PeepholeOptimizer:
    """Stateful wrapper recording how much a run saved (used by reports and logs)."""

    def __init__(self) -> None:
        self.before = 0
        self.after = 0

    def run(self, instructions: Sequence[Instruction]) -> InstructionSeq:
        self.before = count_instructions(instructions)
        result = optimize(instructions)
        self.after = count_instructions(result)
        logger.debug(f"Peephole pass: {self.before} -> {self.after} instructions")
        return result


__all__ = ["optimize", "PeepholeOptimizer"]
