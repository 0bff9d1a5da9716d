"""Tests for the peephole optimizer."""

import pytest

from avosetta.compiler.instructions import (
    Branch, ConstructKind, Enter, WriteDynamic, WriteLiteral, count_instructions, static_text,
)
from avosetta.compiler.optimizer import PeepholeOptimizer, optimize
from avosetta.compiler.pipeline import compile_instructions

L = WriteLiteral


def loop(*body):
    return Enter(ConstructKind.FOR, (Branch(None, tuple(body)),), subject="xs", binding="x")


class TestOptimize:

    def test_merges_adjacent_literals(self):
        assert optimize([L("<p"), L(">"), L("x"), L("</p>")]) == (L("<p>x</p>"),)

    def test_dynamic_write_splits_runs(self):
        seq = [L("a"), L("b"), WriteDynamic("x"), L("c"), L("d")]
        assert optimize(seq) == (L("ab"), WriteDynamic("x"), L("cd"))

    def test_runs_do_not_cross_constructs(self):
        seq = [L("<ul>"), loop(L("<li>"), L("</li>")), L("</ul>")]
        assert optimize(seq) == (L("<ul>"), loop(L("<li></li>")), L("</ul>"))

    def test_empty_literals_are_dropped(self):
        assert optimize([L(""), WriteDynamic("x"), L("")]) == (WriteDynamic("x"),)
        assert optimize([]) == ()

    def test_empty_branch_stays_empty(self):
        assert optimize([loop(L(""))]) == (loop(),)

    def test_idempotent(self):
        seq = [L("a"), L("b"), loop(L("c"), WriteDynamic("x"), L("d"), L("e")), L("f")]
        once = optimize(seq)
        assert optimize(once) == once

    def test_sound(self):
        """Concatenated literal output is unchanged."""
        seq = [
            L("<div"), L(' id="a"'), L(">"),
            Enter(ConstructKind.IF, (Branch("a", (L("x"), L("y"))), Branch(None, (L("z"),)))),
            WriteDynamic("v"), L("</div>"),
        ]
        assert static_text(optimize(seq)) == static_text(seq)

    def test_dynamic_writes_are_kept_in_order(self):
        seq = [WriteDynamic("a"), L("-"), WriteDynamic("b", needs_escaping=False)]
        assert [i for i in optimize(seq) if isinstance(i, WriteDynamic)] == [seq[0], seq[2]]


class TestPeepholeOptimizer:

    def test_records_counts(self):
        optimizer = PeepholeOptimizer()
        seq = [L("a"), L("b"), loop(L("c"), L("d"))]

        result = optimizer.run(seq)

        assert optimizer.before == count_instructions(seq) == 5
        assert optimizer.after == count_instructions(result) == 3


def dynamic_writes(instructions):
    """Dynamic writes in order, descending into every branch."""
    out = []
    for instruction in instructions:
        if isinstance(instruction, WriteDynamic):
            out.append(instruction)
        elif isinstance(instruction, Enter):
            for branch in instruction.branches:
                out.extend(dynamic_writes(branch.body))
    return out


def literal_runs_are_merged(instructions):
    """No empty literal and no two adjacent literals, at any depth."""
    previous = None
    for instruction in instructions:
        if isinstance(instruction, WriteLiteral):
            if not instruction.text or isinstance(previous, WriteLiteral):
                return False
        elif isinstance(instruction, Enter):
            if not all(literal_runs_are_merged(b.body) for b in instruction.branches):
                return False
        previous = instruction
    return True


class TestOptimizeEmittedTemplates:
    """The peephole pass over real emitter output with nested constructs."""

    TEMPLATES = [
        'div { @if a { "A" } else if b { "B" } else { "C" } }',
        'section { @match n { 1 => "one", _ => { b { "many" } } } }',
        'nav { @for x in xs { a[href={x}] { } } }',
        'ul { @for x in xs { li { "item" } } }',
        'div[id="a"] { @for row in rows { @if row { p { @row "!" } } else { hr; } } "end" }',
        'main { @match k { "a" => { @for x in xs { i { @!x } } } _ => { } } footer; }',
    ]

    @pytest.fixture(params=TEMPLATES)
    def emitted(self, request):
        return compile_instructions(request.param, optimize=False)

    def test_idempotent(self, emitted):
        once = optimize(emitted)
        assert optimize(once) == once

    def test_sound(self, emitted):
        result = optimize(emitted)
        assert static_text(result) == static_text(emitted)
        assert dynamic_writes(result) == dynamic_writes(emitted)

    def test_merges_every_run(self, emitted):
        result = optimize(emitted)
        assert literal_runs_are_merged(result)
        assert count_instructions(result) <= count_instructions(emitted)
