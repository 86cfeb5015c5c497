"""
Shared fixtures: small synthetic crime and weather extracts, in memory and on disk.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

CATEGORIES = ["violent-crime", "burglary", "shoplifting", "anti-social-behaviour"]
CRIMES_PER_MONTH = {"2024-01": 5, "2024-02": 3, "2024-03": 4}


def make_crime(months=CRIMES_PER_MONTH):
    rows = []
    i = 0
    for month, n in months.items():
        for _ in range(n):
            category = CATEGORIES[i % len(CATEGORIES)]
            asb = category == "anti-social-behaviour"
            rows.append({
                "category": category,
                "location_type": "Force",
                "context": np.nan,
                "persistent_id": np.nan if asb else f"pid{i:04d}",
                "date": month,
                "location_subtype": np.nan,
                "lat": 51.45 + i * 0.001,
                "long": -2.58 - i * 0.001,
                "outcome_status": np.nan if asb else "Under investigation",
            })
            i += 1
    return pd.DataFrame(rows)


def make_weather(start="2024-01-01", end="2024-03-31"):
    days = pd.date_range(start, end, freq="D")
    n = len(days)
    idx = np.arange(n)
    return pd.DataFrame({
        "Date": days.strftime("%Y-%m-%d"),
        "TemperatureCAvg": 5.0 + idx * 0.1,
        "Precmm": np.where(idx % 10 == 0, np.nan, (idx % 4) * 0.5),
        "WindkmhInt": 10.0 + idx % 5,
        "lowClOct": np.where(idx % 7 == 0, np.nan, (idx % 8).astype(float)),
        "PreselevHp": np.nan,
        "SnowDepcm": np.nan,
    })


@pytest.fixture
def crime_raw():
    return make_crime()


@pytest.fixture
def weather_raw():
    # Loader output: `Date` already renamed
    return make_weather().rename(columns={"Date": "date"})


@pytest.fixture
def source_files(tmp_path):
    crime_path = tmp_path / "crime.csv"
    weather_path = tmp_path / "weather.csv"
    make_crime().to_csv(crime_path, index=False)
    make_weather().to_csv(weather_path, index=False)
    return crime_path, weather_path
