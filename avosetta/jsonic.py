from __future__ import annotations

import json
from typing import Any


def dumps(data: Any) -> str:
    """JSON for CLI output: UTF-8 text kept as-is, stable indentation, trailing newline."""
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


__all__ = ["dumps"]
