"""
Lowering of the resolved AST into an instruction sequence.
"""

from __future__ import annotations

import logging
from typing import List

from ..markup.nodes import (
    Attribute, Block, DynamicExpr, Element, Expr, For, If, MarkupTree, Match, Node,
    StaticBool, StaticString, StaticText,
)
from .instructions import (
    Branch, ConstructKind, Enter, Instruction, InstructionSeq, WriteDynamic, WriteLiteral,
)

logger = logging.getLogger(__name__)


class InstructionEmitter:
    """
    Emits instructions for a resolved MarkupTree in document order.

    Only the static shape of every branch is fixed here; which branch runs
    and how often a loop body repeats is decided when the generated code
    executes.
    """

    def __init__(self, tree: MarkupTree):
        if not tree.resolved:
            raise ValueError("MarkupTree must go through EscapeResolver before emission")
        self.tree = tree

    def emit(self) -> InstructionSeq:
        instructions = self._emit_range(self.tree.roots)
        logger.debug(f"Emitted {len(instructions)} top-level instructions")
        return instructions

    def _emit_range(self, indexes: range) -> InstructionSeq:
        out: List[Instruction] = []
        for node in self.tree.children(indexes):
            self._emit_node(node, out)
        return tuple(out)

    def _emit_node(self, node: Node, out: List[Instruction]) -> None:
        if isinstance(node, Element):
            self._emit_element(node, out)
        elif isinstance(node, StaticText):
            out.append(WriteLiteral(node.text))
        elif isinstance(node, (Expr, Block)):
            out.append(WriteDynamic(node.code, needs_escaping=bool(node.needs_escaping)))
        elif isinstance(node, If):
            branches = [Branch(b.condition, self._emit_range(b.body)) for b in node.branches]
            if node.else_body is not None:
                branches.append(Branch(None, self._emit_range(node.else_body)))
            out.append(Enter(ConstructKind.IF, tuple(branches)))
        elif isinstance(node, Match):
            branches = [Branch(arm.pattern, self._emit_range(arm.body)) for arm in node.arms]
            out.append(Enter(ConstructKind.MATCH, tuple(branches), subject=node.subject))
        elif isinstance(node, For):
            body = Branch(None, self._emit_range(node.body))
            out.append(Enter(ConstructKind.FOR, (body,), subject=node.iterable, binding=node.binding))
        else:
            raise TypeError(f"Cannot emit node of type {type(node).__name__}")

    def _emit_element(self, element: Element, out: List[Instruction]) -> None:
        out.append(WriteLiteral(f"<{element.name}"))
        for attribute in element.attributes:
            self._emit_attribute(attribute, out)
        out.append(WriteLiteral(">"))

        if element.is_void:
            return

        out.extend(self._emit_range(element.children))
        out.append(WriteLiteral(f"</{element.name}>"))

    def _emit_attribute(self, attribute: Attribute, out: List[Instruction]) -> None:
        value = attribute.value
        if value is None:
            out.append(WriteLiteral(f" {attribute.name}"))
        elif isinstance(value, StaticBool):
            if value.value:
                out.append(WriteLiteral(f" {attribute.name}"))
        elif isinstance(value, StaticString):
            out.append(WriteLiteral(f' {attribute.name}="{value.text}"'))
        elif isinstance(value, DynamicExpr):
            out.append(WriteDynamic(value.code, needs_escaping=True, attribute=attribute.name))
        else:
            raise TypeError(f"Unknown attribute value: {value!r}")


def emit_instructions(tree: MarkupTree) -> InstructionSeq:
    return InstructionEmitter(tree).emit()


__all__ = ["InstructionEmitter", "emit_instructions"]
