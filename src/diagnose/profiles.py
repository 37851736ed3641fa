# src/diagnose/profiles.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ConditionProfile:
    name: str
    keywords: Tuple[str, ...]
    vital_names: Tuple[str, ...]  # informational only, not used for matching
    medications: Tuple[str, ...]

    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]


# Declaration order is the display order when several conditions match.
CONDITION_PROFILES: Tuple[ConditionProfile, ...] = (
    ConditionProfile(
        name="diabetes",
        keywords=("diabetes", "diabetic", "glucose", "blood sugar", "insulin", "hba1c", "hyperglycemia"),
        vital_names=("glucose", "blood sugar", "hba1c"),
        medications=("Metformin", "Glimepiride", "Insulin", "Gliclazide"),
    ),
    ConditionProfile(
        name="hypertension",
        keywords=("hypertension", "high blood pressure", "bp", "systolic", "diastolic"),
        vital_names=("blood pressure", "bp", "systolic", "diastolic"),
        medications=("Amlodipine", "Telmisartan", "Lisinopril", "Metoprolol"),
    ),
    ConditionProfile(
        name="asthma",
        keywords=("asthma", "wheezing", "bronchial", "respiratory", "inhaler"),
        vital_names=("peak flow", "fev1", "oxygen saturation"),
        medications=("Salbutamol", "Budesonide", "Montelukast", "Prednisolone"),
    ),
    ConditionProfile(
        name="covid",
        keywords=("covid", "coronavirus", "sars-cov-2", "fever", "cough", "pneumonia"),
        vital_names=("temperature", "oxygen saturation", "spo2"),
        medications=("Paracetamol", "Zinc", "Vitamin C", "Dexamethasone"),
    ),
    ConditionProfile(
        name="anemia",
        keywords=("anemia", "anaemia", "hemoglobin", "iron deficiency", "fatigue"),
        vital_names=("hemoglobin", "hb", "iron", "ferritin"),
        medications=("Iron Sulphate", "Folic Acid", "Vitamin B12", "Ferrous Fumarate"),
    ),
    ConditionProfile(
        name="thyroid",
        keywords=("thyroid", "hyperthyroid", "hypothyroid", "tsh", "t3", "t4"),
        vital_names=("tsh", "t3", "t4", "thyroid hormone"),
        medications=("Levothyroxine", "Methimazole", "Propylthiouracil", "Carbimazole"),
    ),
)
