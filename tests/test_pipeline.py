from datetime import datetime

import pytest

import src.server.pipeline as pipeline
from src.server.reminders import due_medications, normalize_times


def test_pipeline_display_contract():
    out = pipeline.run_report_pipeline(text="Known diabetic. Glucose 210 mg/dL")
    assert out["diseases"] == ["Diabetes"]
    assert out["vitals"] == {"Blood Glucose": "210 mg/dL"}
    assert "Metformin" in out["suggested_meds"]
    assert out["confidence"] == 1.0
    assert out["flags"][0]["type"] == "high"
    assert out["summary"].startswith("=== Report Summary ===")
    assert out["prediction"]["diseases"] == out["diseases"]


def test_pipeline_uses_patched_collaborators(monkeypatch):
    monkeypatch.setattr(pipeline, "run_qa", lambda prediction: [])
    monkeypatch.setattr(pipeline, "build_summary", lambda prediction: "SUMMARY")

    out = pipeline.run_report_pipeline(text="")
    assert out["diseases"] == []
    assert out["confidence"] == 0.0
    assert out["flags"] == []
    assert out["summary"] == "SUMMARY"
    assert out["text_chars"] == 0


def test_normalize_times():
    assert normalize_times([" 08:00", "20:30", "08:00"]) == ["08:00", "20:30"]
    with pytest.raises(ValueError):
        normalize_times(["8am"])
    with pytest.raises(ValueError):
        normalize_times(["24:00"])
    with pytest.raises(ValueError):
        normalize_times([])


def test_due_medications_matches_current_minute():
    meds = [
        {"medication_id": "m1", "status": "active", "times": ["08:00", "20:00"]},
        {"medication_id": "m2", "status": "active", "times": ["09:00"]},
        {"medication_id": "m3", "status": "stopped", "times": ["08:00"]},
    ]
    due = due_medications(meds, datetime(2024, 1, 20, 8, 0, 42))
    assert [m["medication_id"] for m in due] == ["m1"]
    assert [m["medication_id"] for m in due_medications(meds, "09:00")] == ["m2"]
    assert due_medications(meds, "10:15") == []
