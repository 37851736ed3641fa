# src/diagnose/vitals.py

from __future__ import annotations

import re
from typing import Callable, Dict, List, Tuple

# \s matches Unicode whitespace (e.g. U+00A0); digits are ASCII [0-9].
_FLAGS = re.IGNORECASE

# (vital name, pattern, formatter for the first capture group), in display order.
VITAL_PATTERNS: List[Tuple[str, re.Pattern, Callable[[str], str]]] = [
    (
        "Blood Pressure",
        re.compile(r"(?:blood pressure|bp)[\s:]*([0-9]{2,3}/[0-9]{2,3})", _FLAGS),
        lambda v: v,
    ),
    (
        "Blood Glucose",
        re.compile(r"(?:glucose|blood sugar)[\s:]*([0-9]{1,3})\s*(?:mg/dl|mmol/l)?", _FLAGS),
        lambda v: f"{v} mg/dL",
    ),
    (
        "Temperature",
        re.compile(r"(?:temperature|temp)[\s:]*([0-9]{2,3}(?:\.[0-9])?)\s*(?:°f|°c|f|c)?", _FLAGS),
        lambda v: f"{v}°F",
    ),
    (
        "Hemoglobin",
        re.compile(r"(?:hemoglobin|hb)[\s:]*([0-9]{1,2}(?:\.[0-9])?)\s*(?:g/dl|gm/dl)?", _FLAGS),
        lambda v: f"{v} g/dL",
    ),
    (
        "Heart Rate",
        re.compile(r"(?:heart rate|pulse)[\s:]*([0-9]{2,3})\s*(?:bpm|/min)?", _FLAGS),
        lambda v: f"{v} BPM",
    ),
]


def extract_vitals(text: str) -> Dict[str, str]:
    """
    Pull vital-sign readings out of free report text.

    Each pattern is searched once; the first occurrence wins and a vital is
    only present in the result when its pattern matched.
    """
    vitals: Dict[str, str] = {}
    if not text:
        return vitals

    for name, pattern, fmt in VITAL_PATTERNS:
        m = pattern.search(text)
        if m:
            vitals[name] = fmt(m.group(1))
    return vitals


if __name__ == "__main__":
    s = "BP: 140/90, Glucose 210 mg/dL, Temp 101.2 F, Hb 9.5, Pulse 88 bpm"
    print(extract_vitals(s))
