"""Task identifiers: 24 hex chars, a 4-byte timestamp followed by 8 random bytes."""

from __future__ import annotations

import re
import secrets
import time

_TASK_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_task_id() -> str:
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


def is_valid_task_id(value: str | None) -> bool:
    if not value:
        return False
    return bool(_TASK_ID_RE.match(value))
