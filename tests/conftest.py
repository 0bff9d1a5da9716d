import textwrap
from pathlib import Path

import pytest

from avosetta.compiler.pipeline import compile_instructions

from .helpers import write


@pytest.fixture
def template_file(tmp_path: Path):
    """Writes a template file (dedented) into a temporary project and returns its path."""
    def _make(text: str, name: str = "page.av") -> Path:
        return write(tmp_path / name, textwrap.dedent(text).lstrip("\n"))
    return _make


@pytest.fixture
def lower():
    """Compiles markup down to (optionally optimized) instructions."""
    def _lower(source: str, optimize: bool = True):
        return compile_instructions(source, optimize=optimize)
    return _lower
