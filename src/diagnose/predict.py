# src/diagnose/predict.py

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.diagnose.profiles import CONDITION_PROFILES
from src.diagnose.vitals import extract_vitals


@dataclass
class PredictionResult:
    """Value object built once per analysis; compared by value, not hashable. to_dict() returns copies."""

    diseases: List[str] = field(default_factory=list)
    vitals: Dict[str, str] = field(default_factory=dict)
    suggested_meds: List[str] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diseases": list(self.diseases),
            "vitals": dict(self.vitals),
            "suggested_meds": list(self.suggested_meds),
            "confidence": self.confidence,
        }


def predict_diseases(text: Optional[str]) -> PredictionResult:
    """
    Keyword classification + vital extraction over report text.

    Accepts any string (including empty or garbled OCR output) and always
    returns a well-formed result; an empty result means zero findings.
    """
    text = text or ""
    lower_text = text.lower()

    diseases: List[str] = []
    all_meds: List[str] = []
    total_hits = 0

    for profile in CONDITION_PROFILES:
        hits = sum(1 for kw in profile.keywords if kw in lower_text)
        if hits > 0:
            diseases.append(profile.display_name)
            all_meds.extend(profile.medications)
            total_hits += hits

    # dict.fromkeys keeps first-seen order
    suggested_meds = list(dict.fromkeys(all_meds))

    vitals = extract_vitals(text)

    confidence = min(total_hits / len(diseases), 1.0) if diseases else 0.0

    return PredictionResult(
        diseases=diseases,
        vitals=vitals,
        suggested_meds=suggested_meds,
        confidence=float(confidence),
    )


predict = predict_diseases


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print('Usage: python -m src.diagnose.predict "report text"')
        sys.exit(1)
    print(json.dumps(predict_diseases(" ".join(sys.argv[1:])).to_dict(), indent=2, ensure_ascii=False))
