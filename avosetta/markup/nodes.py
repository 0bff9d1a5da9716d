"""
AST of the markup notation.

Nodes are immutable and live in an arena (MarkupTree). Composite nodes do
not hold their children directly: they hold a `range` of arena indexes. The
children of one parent are always allocated contiguously, so a range fully
describes a sibling group in document order.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from ..errors import Span

EMPTY = range(0)


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""
    span: Span


# ---- attributes ----

@dataclass(frozen=True)
class StaticString:
    """Quoted attribute value known at compile time."""
    text: str
    escaped: bool = False


@dataclass(frozen=True)
class StaticBool:
    """Attribute value written as a bare true / false."""
    value: bool


@dataclass(frozen=True)
class DynamicExpr:
    """Attribute value computed by a host expression: name={expr}."""
    code: str


AttrValue = Union[StaticString, StaticBool, DynamicExpr]


@dataclass(frozen=True)
class Attribute:
    """
    Attribute of an element.

    A missing value denotes a boolean attribute equal to true.
    """
    name: str
    value: Optional[AttrValue]
    span: Span


# ---- elements and text ----

class ElementKind(enum.Enum):
    NORMAL = "normal"
    VOID = "void"


@dataclass(frozen=True)
class Element(Node):
    name: str
    attributes: Tuple[Attribute, ...] = ()
    kind: ElementKind = ElementKind.NORMAL
    children: range = EMPTY

    @property
    def is_void(self) -> bool:
        return self.kind is ElementKind.VOID


@dataclass(frozen=True)
class StaticText(Node):
    """
    String literal written directly as content.

    After the escape pass `text` holds pre-escaped markup and `escaped` is set.
    """
    text: str
    escaped: bool = False


# ---- interpolations ----

@dataclass(frozen=True)
class Interpolation(Node):
    """Base class for everything introduced by '@'."""
    pass


@dataclass(frozen=True)
class Expr(Interpolation):
    """@name, @obj.attr(...), @"literal", @(expr)."""
    code: str
    raw: bool = False
    needs_escaping: Optional[bool] = None  # decided by the escape pass


@dataclass(frozen=True)
class Block(Interpolation):
    """@{ expr }: brace-delimited host code evaluating to renderable content."""
    code: str
    raw: bool = False
    needs_escaping: Optional[bool] = None


@dataclass(frozen=True)
class IfBranch:
    condition: str
    body: range
    span: Span


@dataclass(frozen=True)
class If(Interpolation):
    branches: Tuple[IfBranch, ...]
    else_body: Optional[range] = None


@dataclass(frozen=True)
class MatchArm:
    pattern: str
    body: range
    span: Span


@dataclass(frozen=True)
class Match(Interpolation):
    subject: str
    arms: Tuple[MatchArm, ...]


@dataclass(frozen=True)
class For(Interpolation):
    binding: str
    iterable: str
    body: range


# ---- arena ----

@dataclass
class MarkupTree:
    """
    Arena holding every node of one template.

    `roots` is the range of top-level nodes. `resolved` is set once the
    escape pass has run over the tree.
    """
    nodes: List[Node] = field(default_factory=list)
    roots: range = EMPTY
    resolved: bool = False

    def alloc(self, siblings: Sequence[Node]) -> range:
        """Appends a sibling group and returns its index range."""
        start = len(self.nodes)
        self.nodes.extend(siblings)
        return range(start, len(self.nodes))

    def __getitem__(self, index: int) -> Node:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    def children(self, indexes: range) -> List[Node]:
        return [self.nodes[i] for i in indexes]

    def top_level(self) -> List[Node]:
        return self.children(self.roots)

    def walk(self, indexes: Optional[range] = None) -> Iterator[Node]:
        """Yields nodes in document order (pre-order), starting at `indexes` or the roots."""
        for i in self.roots if indexes is None else indexes:
            node = self.nodes[i]
            yield node
            for body in child_ranges(node):
                yield from self.walk(body)

    def map(self, func: Callable[[Node], Node], *, resolved: bool) -> MarkupTree:
        """
        New tree with `func` applied to every node.

        Index ranges stay valid because the arena layout is unchanged.
        """
        return MarkupTree(nodes=[func(node) for node in self.nodes], roots=self.roots, resolved=resolved)


def child_ranges(node: Node) -> List[range]:
    """All child ranges of a node in document order."""
    if isinstance(node, Element):
        return [node.children]
    if isinstance(node, If):
        ranges = [branch.body for branch in node.branches]
        if node.else_body is not None:
            ranges.append(node.else_body)
        return ranges
    if isinstance(node, Match):
        return [arm.body for arm in node.arms]
    if isinstance(node, For):
        return [node.body]
    return []


__all__ = [
    "Node", "Attribute", "AttrValue", "StaticString", "StaticBool", "DynamicExpr",
    "ElementKind", "Element", "StaticText",
    "Interpolation", "Expr", "Block", "IfBranch", "If", "MatchArm", "Match", "For",
    "MarkupTree", "child_ranges", "EMPTY",
]
