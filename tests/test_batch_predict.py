import json

import pandas as pd
import pytest

from src.server.config import DEFAULT_MAX_UPLOAD_BYTES, get_settings
from src.tools.batch_predict import infer_text_column, main, predict_frame


def test_batch_predict_writes_prediction_columns(tmp_path, sample_reports_csv, capsys):
    out_csv = tmp_path / "predictions.csv"
    assert main(["--input", str(sample_reports_csv), "--output", str(out_csv)]) == 0

    df = pd.read_csv(out_csv).fillna("")
    assert list(df["id"]) == [1, 2, 3, 4]
    assert df.loc[0, "diseases"] == "Diabetes"
    assert json.loads(df.loc[0, "vitals"]) == {"Blood Glucose": "210 mg/dL"}
    assert df.loc[1, "diseases"] == "Hypertension; Covid"
    assert df.loc[2, "diseases"] == ""
    assert df.loc[3, "confidence"] == 0.0

    err = capsys.readouterr().err
    assert "text column: report" in err
    assert "(no findings): 2" in err


def test_infer_text_column_prefers_known_names():
    df = pd.DataFrame({"patient": ["a"], "ocr_text": ["short"]})
    assert infer_text_column(df) == "ocr_text"

    df = pd.DataFrame({"k": ["a", "b"], "blob": ["a very long report body", "another long one"]})
    assert infer_text_column(df) == "blob"


def test_predict_frame_missing_column():
    with pytest.raises(ValueError):
        predict_frame(pd.DataFrame({"text": ["x"]}), "report")


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HOSPITAL_STORAGE_ROOT", str(tmp_path / "s"))
    monkeypatch.delenv("HOSPITAL_DB_PATH", raising=False)
    monkeypatch.setenv("HOSPITAL_MAX_UPLOAD_BYTES", "not-a-number")
    s = get_settings()
    assert s.db_path == tmp_path / "s" / "server.db"
    assert s.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert s.ocr_lang == "eng"
