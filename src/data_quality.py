"""
data_quality.py
Read-only quality inspection: missingness per column and summary statistics.

Nothing here changes a DataFrame or decides how it gets cleaned. The cleaning
policy is fixed in data_cleaning.py; this output is for the human reading it.
"""

import logging

import pandas as pd

log = logging.getLogger(__name__)

# Categorical columns with more levels than this are summarised by their top levels only
MAX_LEVELS_SHOWN = 15


def missing_value_counts(df: pd.DataFrame) -> dict:
    return {col: int(n) for col, n in df.isna().sum().items()}


def summarize_columns(df: pd.DataFrame) -> dict:
    """
    Numeric columns get min / max / mean; everything else gets level counts
    (missing values counted as their own level).
    """
    numeric = df.select_dtypes(include="number")
    if numeric.columns.empty:
        numeric_summary = pd.DataFrame(columns=["min", "max", "mean"])
    else:
        numeric_summary = numeric.agg(["min", "max", "mean"]).T

    categorical = {
        col: df[col].value_counts(dropna=False)
        for col in df.columns
        if col not in numeric.columns
    }
    return {"numeric": numeric_summary, "categorical": categorical}


def inspect_dataset(df: pd.DataFrame, name: str) -> dict:
    missing = missing_value_counts(df)
    summary = summarize_columns(df)

    log.info(f"── Quality report: {name} ({len(df):,} rows × {df.shape[1]} columns)")
    for col, n in sorted(missing.items(), key=lambda kv: kv[1], reverse=True):
        if n:
            pct = n / len(df) * 100
            log.info(f"  missing {col:<20} {n:>8,} ({pct:.1f}%)")
    if not summary["numeric"].empty:
        log.info("  numeric summary:\n" + summary["numeric"].round(2).to_string())
    for col, levels in summary["categorical"].items():
        shown = levels.head(MAX_LEVELS_SHOWN)
        more = f" (+{len(levels) - len(shown)} more)" if len(levels) > len(shown) else ""
        log.info(f"  {col}: {len(levels)} levels{more}\n" + shown.to_string())

    return {
        "name": name,
        "rows": len(df),
        "columns": df.shape[1],
        "missing": missing,
        "numeric": summary["numeric"],
        "categorical": summary["categorical"],
    }
