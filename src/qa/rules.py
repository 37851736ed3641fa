import re
from typing import Dict, List, Optional

from src.diagnose.predict import PredictionResult

NORMAL_MSG = "All analyzed parameters appear to be within normal ranges."


def _number(value: str) -> Optional[float]:
    m = re.match(r"\s*(\d+(?:\.\d+)?)", value or "")
    return float(m.group(1)) if m else None


def _flag(kind: str, vital: str, msg: str) -> Dict:
    return {"type": kind, "vital": vital, "msg": msg}


def flag_blood_pressure(value: str) -> List[Dict]:
    m = re.match(r"\s*(\d+)/(\d+)", value or "")
    if not m:
        return []
    systolic, diastolic = int(m.group(1)), int(m.group(2))
    if systolic >= 140 or diastolic >= 90:
        return [_flag("elevated", "Blood Pressure", "Blood Pressure is elevated. Regular monitoring advised.")]
    return []


def flag_glucose(value: str) -> List[Dict]:
    n = _number(value)
    if n is None:
        return []
    if n > 180:
        return [_flag("high", "Blood Glucose", "Elevated Blood Glucose detected. Medical consultation recommended.")]
    if n < 70:
        return [_flag("low", "Blood Glucose", "Blood Glucose is below the normal range.")]
    return []


def flag_temperature(value: str) -> List[Dict]:
    n = _number(value)
    if n is None:
        return []
    if n > 100.4:
        return [_flag("high", "Temperature", "Temperature indicates fever.")]
    if n < 95:
        return [_flag("low", "Temperature", "Temperature is below the normal range.")]
    return []


def flag_hemoglobin(value: str) -> List[Dict]:
    n = _number(value)
    if n is not None and n < 12:
        return [_flag("low", "Hemoglobin", "Hemoglobin levels are low. Iron supplementation may be needed.")]
    return []


def flag_heart_rate(value: str) -> List[Dict]:
    n = _number(value)
    if n is None:
        return []
    if n > 100:
        return [_flag("elevated", "Heart Rate", "Heart Rate is elevated.")]
    if n < 60:
        return [_flag("low", "Heart Rate", "Heart Rate is below the normal range.")]
    return []


VITAL_RULES = {
    "Blood Pressure": flag_blood_pressure,
    "Blood Glucose": flag_glucose,
    "Temperature": flag_temperature,
    "Hemoglobin": flag_hemoglobin,
    "Heart Rate": flag_heart_rate,
}


def flag_vitals(vitals: Dict[str, str]) -> List[Dict]:
    flags = []
    for name, value in vitals.items():
        rule = VITAL_RULES.get(name)
        if rule:
            flags.extend(rule(value))
    return flags


def run_qa(prediction: PredictionResult) -> List[Dict]:
    flags = flag_vitals(prediction.vitals)
    if not flags and not prediction.diseases:
        flags.append({"type": "normal", "vital": None, "msg": NORMAL_MSG})
    return flags


if __name__ == "__main__":
    from src.diagnose.predict import predict_diseases

    sample = "Glucose 210 mg/dL. BP 145/95. Hb 9.2"
    print(run_qa(predict_diseases(sample)))
