"""
data_collection.py
Loads the crime incident extract and the daily weather extract.

Both sources are read fully into memory. The weather `Date` column is renamed
to `date` so the two tables share the same key name.
"""

import logging
from pathlib import Path

import pandas as pd

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

DEFAULT_CRIME_PATH   = Path("data/raw/crime_data.csv")
DEFAULT_WEATHER_PATH = Path("data/raw/weather_data.csv")

CRIME_REQUIRED   = {"date", "category", "outcome_status", "lat", "long"}
WEATHER_REQUIRED = {"Date", "TemperatureCAvg", "Precmm", "WindkmhInt", "lowClOct"}

WEATHER_RENAME = {"Date": "date"}


# ── Errors ────────────────────────────────────────────────────────────────────

class PipelineError(Exception):
    """Base class for fatal report pipeline failures."""


class SourceNotFound(PipelineError, FileNotFoundError):
    """An input file is missing or cannot be read."""


class SchemaMismatch(PipelineError, ValueError):
    """An expected column is absent or holds unusable values."""


# ── Loading ───────────────────────────────────────────────────────────────────

def load_table(filepath, name: str, required: set) -> pd.DataFrame:
    path = Path(filepath)
    if not path.exists():
        raise SourceNotFound(f"{name} data file not found: {path}")

    log.info(f"Loading {name}: {path}")
    try:
        df = pd.read_csv(path, low_memory=False)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError, OSError) as exc:
        raise SourceNotFound(f"{name} data file could not be read: {path} ({exc})") from exc
    log.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")

    missing_cols = required - set(df.columns)
    if missing_cols:
        raise SchemaMismatch(
            f"{name} dataset {path} is missing expected columns: {sorted(missing_cols)}"
        )
    return df


def load_crime_data(filepath=DEFAULT_CRIME_PATH) -> pd.DataFrame:
    return load_table(filepath, "crime", CRIME_REQUIRED)


def load_weather_data(filepath=DEFAULT_WEATHER_PATH) -> pd.DataFrame:
    df = load_table(filepath, "weather", WEATHER_REQUIRED)
    if "date" in df.columns:
        raise SchemaMismatch(
            f"weather dataset {filepath} has both 'Date' and 'date' columns; cannot rename"
        )
    return df.rename(columns=WEATHER_RENAME)


def load_data(crime_path=DEFAULT_CRIME_PATH, weather_path=DEFAULT_WEATHER_PATH):
    """Return `(crime, weather)` with a shared `date` key name."""
    crime = load_crime_data(crime_path)
    weather = load_weather_data(weather_path)
    return crime, weather
