"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
import time


def utc_now_ms() -> int:
    return int(time.time() * 1000)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
