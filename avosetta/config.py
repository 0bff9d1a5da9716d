"""
Compiler configuration.

Options come from defaults, an optional `avosetta.yaml` file and explicit
overrides (CLI flags, template frontmatter), in that order of priority.
"""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")

CONFIG_FILENAME = "avosetta.yaml"


def is_identifier(name: str) -> bool:
    """True for names usable as Python variables."""
    return name.isidentifier() and not keyword.iskeyword(name)


@dataclass(frozen=True)
class CompilerConfig:
    function_name: str = "render"
    sink_name: str = "__out"     # name of the output sink parameter in generated code
    indent: int = 4
    optimize: bool = True        # run the peephole pass
    params: Tuple[str, ...] = ()  # default parameters of generated render functions

    def __post_init__(self) -> None:
        for option in ("function_name", "sink_name"):
            value = getattr(self, option)
            if not is_identifier(value):
                raise ConfigError(f"{option}: {value!r} is not a valid Python identifier")
        if self.indent < 1:
            raise ConfigError(f"indent: must be positive, got {self.indent}")
        for param in self.params:
            if not is_identifier(param):
                raise ConfigError(f"params: {param!r} is not a valid Python identifier")
        if self.sink_name in self.params:
            raise ConfigError(f"params: {self.sink_name!r} clashes with sink_name")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompilerConfig:
        """Creates a config from a parsed YAML mapping, rejecting unknown keys and wrong types."""
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("function_name", "sink_name"):
                if not isinstance(value, str):
                    raise ConfigError(f"{key}: expected string, got {value!r}")
            elif key == "indent":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"indent: expected integer, got {value!r}")
            elif key == "optimize":
                if not isinstance(value, bool):
                    raise ConfigError(f"optimize: expected boolean, got {value!r}")
            elif key == "params":
                value = _as_params(value, "params")
            kwargs[key] = value
        return cls(**kwargs)

    def merged(self, **overrides: Any) -> CompilerConfig:
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "params" in changes:
            changes["params"] = tuple(changes["params"])
        return replace(self, **changes) if changes else self


def _as_params(value: Any, where: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [p.strip() for p in value.split(",") if p.strip()]
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        raise ConfigError(f"{where}: expected a list of names, got {value!r}")
    return tuple(value)


def load_config(path: Path) -> CompilerConfig:
    """
    Reads a YAML configuration file.

    An empty file yields the default configuration.

    Raises:
        ConfigError: If the file cannot be read or holds invalid options
    """
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return CompilerConfig()
    try:
        config = CompilerConfig.from_dict(raw)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
    logger.debug(f"Loaded compiler config from {path}")
    return config


def find_config(start: Path) -> Optional[Path]:
    """Looks for avosetta.yaml in `start` and its parents."""
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


__all__ = ["CompilerConfig", "CONFIG_FILENAME", "load_config", "find_config", "is_identifier"]
