import pytest

from src.diagnose.predict import PredictionResult, predict, predict_diseases
from src.diagnose.profiles import CONDITION_PROFILES
from src.diagnose.vitals import extract_vitals


# -----------------------
# Vitals
# -----------------------
def test_blood_pressure_reading_verbatim():
    assert extract_vitals("Blood Pressure: 140/90") == {"Blood Pressure": "140/90"}


def test_glucose_gets_unit():
    assert extract_vitals("Glucose 210") == {"Blood Glucose": "210 mg/dL"}


def test_empty_text_has_no_vitals():
    assert extract_vitals("") == {}


def test_all_five_vitals_in_fixed_order():
    text = "BP: 140/90, Glucose 210 mg/dL, Temp 101.2 F, Hb 9.5, Pulse 88 bpm"
    vitals = extract_vitals(text)
    assert vitals == {
        "Blood Pressure": "140/90",
        "Blood Glucose": "210 mg/dL",
        "Temperature": "101.2°F",
        "Hemoglobin": "9.5 g/dL",
        "Heart Rate": "88 BPM",
    }
    assert list(vitals) == ["Blood Pressure", "Blood Glucose", "Temperature", "Hemoglobin", "Heart Rate"]


def test_labels_are_case_insensitive():
    vitals = extract_vitals("BLOOD SUGAR: 95\nHEART RATE 72\nHEMOGLOBIN 13.2 g/dl")
    assert vitals["Blood Glucose"] == "95 mg/dL"
    assert vitals["Heart Rate"] == "72 BPM"
    assert vitals["Hemoglobin"] == "13.2 g/dL"


def test_first_occurrence_wins():
    vitals = extract_vitals("bp 120/80 at admission, bp 160/100 at discharge")
    assert vitals["Blood Pressure"] == "120/80"


def test_label_without_reading_is_ignored():
    assert extract_vitals("Blood pressure was not measured") == {}


# -----------------------
# Prediction
# -----------------------
@pytest.mark.parametrize("text", ["", "The quick brown fox jumps over the lazy dog.", "\x00\xff� garbled", "Лихорадка и кашель"])
def test_no_keywords_means_empty_result(text):
    res = predict(text)
    assert res.diseases == []
    assert res.suggested_meds == []
    assert res.confidence == 0


def test_empty_input_is_well_formed():
    res = predict_diseases("")
    assert res == PredictionResult(diseases=[], vitals={}, suggested_meds=[], confidence=0.0)
    assert res.to_dict() == {"diseases": [], "vitals": {}, "suggested_meds": [], "confidence": 0.0}


def test_none_is_treated_as_empty():
    assert predict_diseases(None) == predict_diseases("")


def test_single_condition():
    res = predict("Patient has diabetes")
    assert res.diseases == ["Diabetes"]
    assert "Metformin" in res.suggested_meds
    assert res.suggested_meds == ["Metformin", "Glimepiride", "Insulin", "Gliclazide"]


def test_multiple_conditions_follow_declaration_order():
    # hypertension mentioned first in the text; output order is still table order
    res = predict("Hypertension for years, recently diagnosed diabetes.")
    assert res.diseases == ["Diabetes", "Hypertension"]
    assert res.suggested_meds == [
        "Metformin", "Glimepiride", "Insulin", "Gliclazide",
        "Amlodipine", "Telmisartan", "Lisinopril", "Metoprolol",
    ]
    assert len(res.suggested_meds) == len(set(res.suggested_meds))


def test_keyword_match_is_substring_and_case_insensitive():
    res = predict("PNEUMONIA suspected")
    assert res.diseases == ["Covid"]


def test_display_names_are_capitalized():
    text = "diabetes hypertension asthma covid anemia thyroid"
    assert predict(text).diseases == [p.display_name for p in CONDITION_PROFILES]
    assert predict(text).diseases == ["Diabetes", "Hypertension", "Asthma", "Covid", "Anemia", "Thyroid"]


def test_vitals_come_from_original_text():
    res = predict("Glucose: 250 mg/dL, diabetic")
    assert res.vitals == {"Blood Glucose": "250 mg/dL"}


def test_confidence_is_capped_for_repeated_keywords():
    res = predict("diabetes " * 500 + "glucose insulin hba1c")
    assert res.diseases == ["Diabetes"]
    assert res.confidence == 1.0


@pytest.mark.parametrize("text", ["", "asthma", "asthma wheezing inhaler bronchial respiratory", "tsh t3 t4 " * 100])
def test_confidence_within_bounds(text):
    assert 0.0 <= predict(text).confidence <= 1.0


def test_predict_is_idempotent():
    text = "BP 150/95, fever and cough, Hb 9.1, fatigue"
    assert predict(text) == predict(text)
    assert predict(text).to_dict() == predict(text).to_dict()


def test_meds_and_diseases_empty_together():
    for text in ["", "nothing relevant", "asthma", "fatigue and cough"]:
        res = predict(text)
        assert (res.diseases == []) == (res.suggested_meds == [])


def test_profiles_are_immutable():
    with pytest.raises(Exception):
        CONDITION_PROFILES[0].name = "other"  # type: ignore[misc]


def test_non_breaking_space_between_label_and_reading():
    assert extract_vitals("BP:\u00a0140/90") == {"Blood Pressure": "140/90"}
    assert extract_vitals("Glucose\u00a0210") == {"Blood Glucose": "210 mg/dL"}


def test_non_ascii_digits_are_not_readings():
    # Arabic-Indic digits
    assert extract_vitals("Glucose \u0662\u0661\u0660") == {}


def test_result_is_a_value_object():
    res = predict("diabetes, BP 150/95")
    with pytest.raises(TypeError):
        hash(res)

    out = res.to_dict()
    out["diseases"].append("Other")
    out["vitals"]["Heart Rate"] = "1 BPM"
    assert res.diseases == ["Diabetes", "Hypertension"]
    assert "Heart Rate" not in res.vitals
