#!/usr/bin/env python3
"""
Run the disease/vitals extraction over every row of a CSV of report texts.

Usage:
    python -m src.tools.batch_predict \
        --input data/reports.csv \
        --text-col report \
        --output data/predictions.csv

If --text-col is omitted, the script tries to infer it.
Outputs:
    <output> with the input columns plus: diseases, suggested_meds, vitals, confidence, flags, summary
    condition counts on stderr
"""

import argparse
import json
import sys
from collections import Counter
from typing import List, Optional

import pandas as pd

from src.diagnose.predict import predict_diseases
from src.qa.rules import run_qa
from src.summarize.build import build_summary


def infer_text_column(df: pd.DataFrame) -> str:
    lower = {c.lower(): c for c in df.columns}
    for cand in ["text", "report", "report_text", "ocr_text", "note", "content", "body"]:
        if cand in lower:
            return lower[cand]
    # choose the column with the longest average length
    if len(df.columns) == 0:
        raise ValueError("CSV has no columns")
    lengths = {c: df[c].astype(str).str.len().mean() for c in df.columns}
    return max(lengths, key=lengths.get)


def predict_frame(df: pd.DataFrame, text_col: str) -> pd.DataFrame:
    if text_col not in df.columns:
        raise ValueError(f"Missing text column: {text_col}")

    out = df.copy()
    texts = out[text_col].fillna("").astype(str)
    preds = [predict_diseases(t) for t in texts]

    out["diseases"] = ["; ".join(p.diseases) for p in preds]
    out["suggested_meds"] = ["; ".join(p.suggested_meds) for p in preds]
    out["vitals"] = [json.dumps(p.vitals, ensure_ascii=False) for p in preds]
    out["confidence"] = [p.confidence for p in preds]
    out["flags"] = [json.dumps(run_qa(p), ensure_ascii=False) for p in preds]
    out["summary"] = [build_summary(p) for p in preds]
    return out


def condition_counts(df: pd.DataFrame) -> Counter:
    counts: Counter = Counter()
    for cell in df["diseases"]:
        for d in filter(None, str(cell).split("; ")):
            counts[d] += 1
    return counts


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--input", required=True, help="Path to the CSV of report texts")
    ap.add_argument("--text-col", default=None, help="Name of the text column")
    ap.add_argument("--output", default="predictions.csv", help="Where to write the predictions CSV")
    args = ap.parse_args(argv)

    df = pd.read_csv(args.input)
    text_col = args.text_col or infer_text_column(df)

    out = predict_frame(df, text_col)
    out.to_csv(args.output, index=False)

    counts = condition_counts(out)
    print(f"Analysed {len(out)} reports (text column: {text_col})", file=sys.stderr)
    for name, n in counts.most_common():
        print(f"  {name}: {n}", file=sys.stderr)
    no_findings = int((out["diseases"] == "").sum())
    print(f"  (no findings): {no_findings}", file=sys.stderr)
    print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
