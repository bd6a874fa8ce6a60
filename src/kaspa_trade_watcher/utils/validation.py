"""Validation helpers for addresses and token ids."""

from __future__ import annotations

import re
from typing import Any

ZERO_ADDRESS = "0x" + "0" * 40

_TOKEN_ID_RE = re.compile(r"^\d+$")


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x EVM address (42 chars)."""
    if not isinstance(addr, str):
        return False
    s = addr.strip()
    if len(s) != 42:
        return False
    if not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def is_zero_address(addr: Any) -> bool:
    """Return True if addr is missing or the all-zero address."""
    if not isinstance(addr, str) or not addr.strip():
        return True
    return addr.strip().lower() == ZERO_ADDRESS


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address comparison."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def normalize_token_id(value: Any) -> str | None:
    """Return a decimal NFT token id as string, or None if value is not one."""
    s = str(value if value is not None else "").strip()
    if not s or not _TOKEN_ID_RE.match(s):
        return None
    return s


def mask_address(addr: str | None) -> str:
    """Return a masked EVM address for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"


def short_kaspa_address(addr: str | None) -> str | None:
    """Shorten a kaspa: address for display (first 10 and last 6 chars)."""
    s = str(addr or "")
    if not s:
        return None
    if len(s) <= 14:
        return s
    return f"{s[:10]}…{s[-6:]}"
