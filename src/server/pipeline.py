# src/server/pipeline.py

from __future__ import annotations

from typing import Any, Dict

from src.diagnose.predict import predict_diseases
from src.qa.rules import run_qa
from src.summarize.build import build_summary


def run_report_pipeline(*, text: str) -> Dict[str, Any]:
    """
    Engine + flags + summary over already-acquired report text. No I/O.
    """
    prediction = predict_diseases(text)
    flags = run_qa(prediction)
    summary = build_summary(prediction)

    return {
        # Display-ready (what the dashboard shows)
        "diseases": list(prediction.diseases),
        "vitals": dict(prediction.vitals),
        "suggested_meds": list(prediction.suggested_meds),
        "confidence": prediction.confidence,
        "flags": flags,
        "summary": summary,
        # Full details
        "prediction": prediction.to_dict(),
        "text_chars": len(text or ""),
    }
