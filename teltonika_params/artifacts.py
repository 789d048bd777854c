from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import ParseError


def read_json(path: Path) -> Any:
    """Load a JSON artifact written by an earlier stage."""
    with path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ParseError(f"{path} is not valid JSON: {exc}") from exc


def write_json(data: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
