from src.diagnose.predict import PredictionResult, predict_diseases


def build_summary(prediction: PredictionResult) -> str:
    lines = []
    lines.append("=== Report Summary ===")
    lines.append(f"Conditions: {', '.join(prediction.diseases) if prediction.diseases else '—'}")
    if prediction.vitals:
        vit_str = ", ".join(f"{k}: {v}" for k, v in prediction.vitals.items())
        lines.append(f"Vitals: {vit_str}")
    else:
        lines.append("Vitals: —")
    lines.append(f"Suggested medications: {', '.join(prediction.suggested_meds) if prediction.suggested_meds else '—'}")
    lines.append(f"Confidence: {prediction.confidence:.2f}")
    return "\n".join(lines)


if __name__ == "__main__":
    s = "Known diabetic on insulin. BP: 150/95, pulse 92 bpm."
    print(build_summary(predict_diseases(s)))
