"""
data_aggregation.py
Monthly roll-ups of the cleaned extracts and the crime ← weather join.
"""

import logging

import pandas as pd

from data_collection import SchemaMismatch

log = logging.getLogger(__name__)

MONTHLY_COLUMNS = ["crime_count", "avg_temp", "total_rain", "avg_wind"]


def add_month_key(df: pd.DataFrame, name: str) -> pd.DataFrame:
    """
    Add a "YYYY-MM" `month` column from `date`.
    Month strings ("2024-07") and daily dates ("2024-07-14") both map to "2024-07".
    """
    df = df.copy()
    try:
        dates = pd.to_datetime(df["date"])
    except (ValueError, TypeError) as exc:
        raise SchemaMismatch(f"{name}: column 'date' holds unparseable values ({exc})") from exc
    if dates.isna().any():
        raise SchemaMismatch(f"{name}: column 'date' has {int(dates.isna().sum()):,} missing values")
    df["month"] = dates.dt.to_period("M").astype(str)
    return df


def monthly_crime_counts(crime: pd.DataFrame) -> pd.DataFrame:
    # groupby never emits a row for a month with no incidents
    counts = (
        add_month_key(crime, "crime")
        .groupby("month")
        .size()
        .reset_index(name="crime_count")
    )
    log.info(f"Crime counts over {len(counts)} months, {counts['crime_count'].sum():,} incidents")
    return counts


def monthly_weather_summary(weather: pd.DataFrame) -> pd.DataFrame:
    summary = (
        add_month_key(weather, "weather")
        .groupby("month")
        .agg(
            avg_temp=("TemperatureCAvg", "mean"),
            total_rain=("Precmm", "sum"),
            avg_wind=("WindkmhInt", "mean"),
        )
        .reset_index()
    )
    log.info(f"Weather summarised over {len(summary)} months")
    return summary


def merge_monthly(crime_summary: pd.DataFrame, weather_summary: pd.DataFrame) -> pd.DataFrame:
    """Left join on month: every crime month is kept, unmatched weather stays null."""
    merged = (
        crime_summary.merge(weather_summary, on="month", how="left", validate="one_to_one")
        .sort_values("month")
        .reset_index(drop=True)
    )

    unmatched = merged.loc[merged["avg_temp"].isna() & merged["total_rain"].isna(), "month"]
    if not unmatched.empty:
        log.warning(f"No weather data for crime months: {unmatched.tolist()}")
    log.info(f"Merged monthly table: {len(merged)} rows")
    return merged


def build_monthly_table(crime: pd.DataFrame, weather: pd.DataFrame) -> pd.DataFrame:
    return merge_monthly(monthly_crime_counts(crime), monthly_weather_summary(weather))
