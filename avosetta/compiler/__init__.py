"""
Compiler back end: escape resolution, instruction emission, peephole
optimization and Python code generation.
"""

from __future__ import annotations

from .codegen import CodeGenerator
from .emitter import InstructionEmitter
from .escape import EscapeResolver, escape_html
from .optimizer import PeepholeOptimizer, optimize
from .pipeline import CompiledTemplate, compile_instructions, compile_markup

__all__ = [
    "CodeGenerator",
    "CompiledTemplate",
    "EscapeResolver",
    "InstructionEmitter",
    "PeepholeOptimizer",
    "compile_instructions",
    "compile_markup",
    "escape_html",
    "optimize",
]
