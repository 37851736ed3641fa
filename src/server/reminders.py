# src/server/reminders.py

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Iterable, List

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_times(times: Iterable[str]) -> List[str]:
    out: List[str] = []
    for t in times:
        t = (t or "").strip()
        if not _HHMM.match(t):
            raise ValueError(f"Invalid reminder time '{t}'. Use HH:MM (24h).")
        if t not in out:
            out.append(t)
    if not out:
        raise ValueError("At least one reminder time is required")
    return out


def due_medications(medications: Iterable[Dict[str, Any]], now: datetime | str) -> List[Dict[str, Any]]:
    """
    Active medications scheduled for the minute `now` (datetime or "HH:MM").

    The portal checks once a minute, so matching is on HH:MM only.
    """
    current = now if isinstance(now, str) else now.strftime("%H:%M")
    return [
        m for m in medications
        if m.get("status") == "active" and current in (m.get("times") or [])
    ]
