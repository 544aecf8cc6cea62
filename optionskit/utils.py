"""Generic helpers for identifiers and JSON files in the OptionsKit backend."""

from __future__ import annotations

import json
import os
import re
from typing import Any, Dict

from optionskit.logger import logger

_NON_FUNC_CHARS = re.compile(r"[^0-9A-Za-z_]")


def func_slug(identifier: Any) -> str:
    """Return the function-safe form of a panel identifier (``my-panel`` -> ``my_panel``)."""
    return _NON_FUNC_CHARS.sub("_", str(identifier or ""))


def read_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except Exception as exc:
        logger.warn(f"OptionsKit: Failed to read {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def write_json(path: str, data: Dict[str, Any]) -> bool:
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        os.replace(tmp_path, path)
    except Exception as exc:
        logger.warn(f"OptionsKit: Failed to write {path}: {exc}")
        return False
    return True


__all__ = [
    "func_slug",
    "read_json",
    "write_json",
]
