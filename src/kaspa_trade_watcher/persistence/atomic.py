# -*- coding: utf-8 -*-
"""Atomic JSON file helpers (write to temp file, then rename over the target)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def write_json_atomic(path: str | Path, data: Any, *, indent: int | None = None) -> None:
    """Serialize data to `path` so readers see either the old or the new file, never a partial one.

    The JSON is written and fsynced to `<path>.tmp`, then os.replace()d over `path`.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = _tmp_path(target)
    payload = json.dumps(data, indent=indent, ensure_ascii=False)
    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def load_json_safe(path: str | Path, fallback: Any) -> Any:
    """Return parsed JSON from `path`, or `fallback` when missing or unreadable."""
    target = Path(path)
    if not target.exists():
        return fallback
    try:
        with open(target, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return fallback
