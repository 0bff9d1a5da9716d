"""
Frontmatter parser for template files.

A template file may start with a YAML block delimited by `---` lines that
declares how its render function is generated:

    ---
    name: page
    params: [title, items]
    ---
    html { head { title { @title } } }

The block is not part of the markup. Line numbers of the remaining text are
kept so diagnostics point into the original file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import is_identifier
from .errors import ConfigError

_yaml = YAML(typ="safe")

# Pattern for YAML frontmatter: starts with ---, ends with ---
_FRONTMATTER_PATTERN = re.compile(
    r'^---\s*\n(.*?)\n---\s*\n?',
    re.DOTALL
)


@dataclass
class TemplateFrontmatter:
    """Parsed frontmatter of a template file."""
    params: Tuple[str, ...] = field(default_factory=tuple)
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> TemplateFrontmatter:
        """Create from parsed YAML dictionary."""
        unknown = sorted(set(data) - {"params", "name"})
        if unknown:
            raise ConfigError(f"Unknown frontmatter keys: {', '.join(unknown)}")

        params = data.get("params", [])
        if isinstance(params, str):
            params = [p.strip() for p in params.split(",") if p.strip()]
        if not isinstance(params, list) or not all(isinstance(p, str) for p in params):
            raise ConfigError(f"Frontmatter 'params' must be a list of names, got {params!r}")
        for param in params:
            if not is_identifier(param):
                raise ConfigError(f"Frontmatter parameter {param!r} is not a valid Python identifier")

        name = data.get("name")
        if name is not None and (not isinstance(name, str) or not is_identifier(name)):
            raise ConfigError(f"Frontmatter 'name' must be a Python identifier, got {name!r}")

        return cls(params=tuple(params), name=name)


def parse_frontmatter(text: str) -> Tuple[Optional[TemplateFrontmatter], str, int]:
    """
    Split YAML frontmatter from template text.

    Args:
        text: Full text of the template file

    Returns:
        Tuple of (frontmatter, remaining_text, first_line):
        - frontmatter: Parsed TemplateFrontmatter or None if absent
        - remaining_text: Markup with the frontmatter removed
        - first_line: Line number of the first markup line in the file

    Raises:
        ConfigError: If the frontmatter is not valid YAML or has invalid keys

    Examples:
        >>> fm, text, line = parse_frontmatter("---\\nparams: [x]\\n---\\nh1 { @x }")
        >>> fm.params
        ('x',)
        >>> text, line
        ('h1 { @x }', 4)
    """
    if not text.startswith('---'):
        return None, text, 1

    match = _FRONTMATTER_PATTERN.match(text)
    if not match:
        # Starts with --- but no closing ---, treat as no frontmatter
        return None, text, 1

    yaml_content = match.group(1)
    remaining_text = text[match.end():]
    first_line = text[:match.end()].count("\n") + 1

    try:
        data = _yaml.load(yaml_content)
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in template frontmatter: {e}") from e

    if data is None:
        return TemplateFrontmatter(), remaining_text, first_line
    if not isinstance(data, dict):
        raise ConfigError("Template frontmatter must be a mapping")

    return TemplateFrontmatter.from_dict(data), remaining_text, first_line


__all__ = ["TemplateFrontmatter", "parse_frontmatter"]
