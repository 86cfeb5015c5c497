"""
data_cleaning.py
Policy-driven cleaning of the crime and weather extracts.

Design principles:
- Every column has a declared disposition in a policy table; no ad-hoc fills
- Every transformation is logged with before/after counts
- Functions are pure (input → output), the input frame is never modified
- Cleaning ends with a checked postcondition: no nulls in retained columns
"""

import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from data_collection import PipelineError, SchemaMismatch

log = logging.getLogger(__name__)


class CleaningIncomplete(PipelineError, ValueError):
    """A null survived cleaning, meaning the policy has a gap for this data."""


# ── Dispositions ──────────────────────────────────────────────────────────────

DROP          = "drop"
FILL_CONSTANT = "fill_constant"
FILL_SENTINEL = "fill_sentinel"
FILL_MEAN     = "fill_mean"
KEEP          = "keep"

FILL_ACTIONS = {FILL_CONSTANT, FILL_SENTINEL, FILL_MEAN}

UNKNOWN = "Unknown"


# ── Policy Tables ─────────────────────────────────────────────────────────────
# column → (disposition, value). Decided once from inspection, not per run.

CRIME_POLICY = {
    "context":          (DROP, None),           # empty in street-level extracts
    "location_subtype": (DROP, None),
    "persistent_id":    (DROP, None),           # absent for anti-social behaviour
    "outcome_status":   (FILL_SENTINEL, UNKNOWN),
    "date":             (KEEP, None),
    "category":         (KEEP, None),
    "lat":              (KEEP, None),
    "long":             (KEEP, None),
    "location_type":    (KEEP, None),
    "id":               (KEEP, None),
    "month":            (KEEP, None),
    "street_id":        (KEEP, None),
    "street_name":      (KEEP, None),
}

WEATHER_POLICY = {
    "PreselevHp":      (DROP, None),
    "SnowDepcm":       (DROP, None),
    # No recorded rainfall is taken as no rainfall
    "Precmm":          (FILL_CONSTANT, 0.0),
    "lowClOct":        (FILL_MEAN, None),
    "date":            (KEEP, None),
    "TemperatureCAvg": (KEEP, None),
    "WindkmhInt":      (KEEP, None),
}

# column → lowest valid value, checked after the fills
WEATHER_MINIMUMS = {
    "Precmm": 0.0,
}


# ── Audit Trail ───────────────────────────────────────────────────────────────

class AuditTrail:
    """Tracks every cleaning decision with per-dataset row counts and change stats."""

    def __init__(self):
        self.total_rows: dict[str, int] = {}
        self.steps: list[dict] = []

    def start(self, dataset: str, total_rows: int):
        self.total_rows[dataset] = total_rows

    def record(self, dataset: str, step: str, description: str, changed: int,
               detail: str = "", columns: int = 0):
        total = self.total_rows.get(dataset, 0)
        pct = changed / total * 100 if total else 0.0
        self.steps.append({
            "dataset": dataset,
            "step": step,
            "description": description,
            "rows_affected": changed,
            "pct_affected": round(pct, 2),
            "columns_affected": columns,
            "detail": detail,
        })
        log.info(f"[{dataset}: {step}] {description} → {changed:,} rows, {columns} columns "
                 f"affected ({pct:.1f}%) {detail}")

    def save(self, path):
        class _NumpyEncoder(json.JSONEncoder):
            """Convert numpy int/float types to native Python before serialising."""
            def default(self, obj):
                if isinstance(obj, np.integer):
                    return int(obj)
                if isinstance(obj, np.floating):
                    return float(obj)
                if isinstance(obj, np.ndarray):
                    return obj.tolist()
                return super().default(obj)

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump({"total_rows": self.total_rows, "steps": self.steps}, f,
                      indent=2, cls=_NumpyEncoder)
        log.info(f"Audit trail saved → {path}")

    def summary(self):
        print("\n" + "=" * 75)
        print("CLEANING AUDIT SUMMARY")
        print("=" * 75)
        print(f"{'Dataset':<9} {'Step':<22} {'Rows':>10} {'%':>7} {'Cols':>5}  Description")
        print("-" * 75)
        for s in self.steps:
            print(f"{s['dataset']:<9} {s['step']:<22} {s['rows_affected']:>10,} "
                  f"{s['pct_affected']:>6.1f}% {s['columns_affected']:>5}  {s['description']}")
        print("=" * 75)


# ── Policy Application ────────────────────────────────────────────────────────

def apply_policy(df: pd.DataFrame, policy: dict, audit: AuditTrail, name: str) -> pd.DataFrame:
    df = df.copy()

    unlisted = [c for c in df.columns if c not in policy]
    if unlisted:
        log.warning(f"{name}: columns without a cleaning disposition kept as-is: {unlisted}")
        audit.record(name, "Unlisted columns kept", f"Retained as {KEEP!r}, no imputation", 0,
                     f"({unlisted})", columns=len(unlisted))

    missing_fill = [
        col for col, (action, _) in policy.items()
        if action in FILL_ACTIONS and col not in df.columns
    ]
    if missing_fill:
        raise SchemaMismatch(f"{name}: policy fills columns absent from the data: {missing_fill}")

    # Drops first, so means are taken over the frame actually being produced
    to_drop = [col for col, (action, _) in policy.items() if action == DROP and col in df.columns]
    df = df.drop(columns=to_drop)
    audit.record(name, "Columns dropped", "Low-value columns removed", 0,
                 f"({to_drop})", columns=len(to_drop))

    for col, (action, value) in policy.items():
        if action not in FILL_ACTIONS:
            continue
        nulls = int(df[col].isna().sum())
        if action == FILL_MEAN:
            value = df[col].mean()
            detail = f"(mean = {value:.3f})"
        else:
            detail = f"(→ {value!r})"
        df[col] = df[col].fillna(value)
        audit.record(name, f"Fill: {col}", f"Nulls filled by {action}", nulls, detail)

    return df


def verify_complete(df: pd.DataFrame, name: str) -> pd.DataFrame:
    remaining = df.isna().sum()
    remaining = remaining[remaining > 0]
    if not remaining.empty:
        gaps = ", ".join(f"{col} ({n:,} nulls)" for col, n in remaining.items())
        raise CleaningIncomplete(f"{name}: nulls remain after cleaning in {gaps}")
    log.info(f"{name}: postcondition holds, no nulls in {df.shape[1]} retained columns")
    return df


def verify_minimums(df: pd.DataFrame, minimums: dict, name: str) -> pd.DataFrame:
    below = {
        col: int((df[col] < floor).sum())
        for col, floor in minimums.items()
        if col in df.columns
    }
    below = {col: n for col, n in below.items() if n}
    if below:
        gaps = ", ".join(f"{col} ({n:,} rows below {minimums[col]})" for col, n in below.items())
        raise CleaningIncomplete(f"{name}: out-of-range values after cleaning in {gaps}")
    return df


# ── Dataset Cleaners ──────────────────────────────────────────────────────────

def _clean(df: pd.DataFrame, policy: dict, name: str, audit, minimums=None) -> pd.DataFrame:
    if audit is None:
        audit = AuditTrail()
    audit.start(name, len(df))
    cleaned = verify_complete(apply_policy(df, policy, audit, name), name)
    return verify_minimums(cleaned, minimums or {}, name)


def clean_crime_data(df: pd.DataFrame, audit: AuditTrail = None) -> pd.DataFrame:
    return _clean(df, CRIME_POLICY, "crime", audit)


def clean_weather_data(df: pd.DataFrame, audit: AuditTrail = None) -> pd.DataFrame:
    return _clean(df, WEATHER_POLICY, "weather", audit, WEATHER_MINIMUMS)


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_cleaning(crime: pd.DataFrame, weather: pd.DataFrame, audit_path=None):
    """
    Clean both extracts and optionally save the audit trail.

    Parameters
    ----------
    crime      : raw crime incidents, as returned by data_collection
    weather    : raw daily weather with `date` already renamed
    audit_path : where to write the JSON audit log, or None to skip

    Returns
    -------
    (crime, weather) cleaned DataFrames
    """
    log.info("=" * 60)
    log.info("CLEANING START")
    log.info("=" * 60)

    audit = AuditTrail()
    crime_clean = clean_crime_data(crime, audit)
    weather_clean = clean_weather_data(weather, audit)

    if audit_path is not None:
        audit.save(audit_path)
    audit.summary()

    return crime_clean, weather_clean
