"""
Instruction set produced by the emitter.

A template lowers to a tuple of instructions. Control constructs carry one
nested instruction tuple per branch, so every possible output path has a
static shape known at compile time.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class WriteLiteral:
    """Append pre-escaped text."""
    text: str


@dataclass(frozen=True)
class WriteDynamic:
    """
    Evaluate a host expression and write its rendered form.

    `attribute` is set for dynamic attribute values: the runtime then renders
    the whole ` name="value"` pair (or nothing for False / None).
    """
    code: str
    needs_escaping: bool = True
    attribute: Optional[str] = None


class ConstructKind(enum.Enum):
    IF = "if"
    MATCH = "match"
    FOR = "for"


@dataclass(frozen=True)
class Branch:
    """
    One possible body of a control construct.

    `guard` is the if/elif condition or the match pattern; None for an else
    branch and for a loop body.
    """
    guard: Optional[str]
    body: Tuple["Instruction", ...]


@dataclass(frozen=True)
class Enter:
    """
    Control construct.

    `subject` is the match subject or the loop iterable, `binding` the loop
    target.
    """
    kind: ConstructKind
    branches: Tuple[Branch, ...]
    subject: Optional[str] = None
    binding: Optional[str] = None


Instruction = Union[WriteLiteral, WriteDynamic, Enter]
InstructionSeq = Tuple[Instruction, ...]


def count_instructions(instructions: Sequence[Instruction]) -> int:
    """Total number of instructions, nested branches included."""
    total = 0
    for instruction in instructions:
        total += 1
        if isinstance(instruction, Enter):
            for branch in instruction.branches:
                total += count_instructions(branch.body)
    return total


def static_text(instructions: Sequence[Instruction]) -> str:
    """Concatenation of every literal, in order, descending into every branch."""
    parts: List[str] = []
    for instruction in instructions:
        if isinstance(instruction, WriteLiteral):
            parts.append(instruction.text)
        elif isinstance(instruction, Enter):
            for branch in instruction.branches:
                parts.append(static_text(branch.body))
    return "".join(parts)


def dump_instructions(instructions: Sequence[Instruction]) -> List[Dict[str, Any]]:
    """JSON-friendly representation used by reports."""
    out: List[Dict[str, Any]] = []
    for instruction in instructions:
        if isinstance(instruction, WriteLiteral):
            out.append({"op": "write_literal", "text": instruction.text})
        elif isinstance(instruction, WriteDynamic):
            entry: Dict[str, Any] = {
                "op": "write_dynamic",
                "code": instruction.code,
                "needs_escaping": instruction.needs_escaping,
            }
            if instruction.attribute is not None:
                entry["attribute"] = instruction.attribute
            out.append(entry)
        elif isinstance(instruction, Enter):
            out.append({
                "op": "enter",
                "kind": instruction.kind.value,
                "subject": instruction.subject,
                "binding": instruction.binding,
                "branches": [
                    {"guard": branch.guard, "body": dump_instructions(branch.body)}
                    for branch in instruction.branches
                ],
            })
        else:
            raise TypeError(f"Unknown instruction: {instruction!r}")
    return out


__all__ = [
    "WriteLiteral", "WriteDynamic", "ConstructKind", "Branch", "Enter",
    "Instruction", "InstructionSeq",
    "count_instructions", "static_text", "dump_instructions",
]
