"""
Tests for loading the two extracts and the loader's failure modes.
"""

import pytest

from conftest import make_crime
from data_collection import (
    PipelineError,
    SchemaMismatch,
    SourceNotFound,
    load_crime_data,
    load_data,
    load_weather_data,
)


def test_load_data_shares_date_key(source_files):
    crime_path, weather_path = source_files
    crime, weather = load_data(crime_path, weather_path)

    assert len(crime) == 12
    assert len(weather) == 91
    assert "date" in crime.columns
    # Weather `Date` is renamed so both tables use the same key name
    assert "date" in weather.columns
    assert "Date" not in weather.columns


def test_missing_file_raises_source_not_found(tmp_path):
    missing = tmp_path / "nope.csv"
    with pytest.raises(SourceNotFound) as excinfo:
        load_crime_data(missing)

    assert "nope.csv" in str(excinfo.value)
    # Callers catching the builtin still see it
    assert isinstance(excinfo.value, FileNotFoundError)
    assert isinstance(excinfo.value, PipelineError)


def test_empty_file_raises_source_not_found(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("")
    with pytest.raises(SourceNotFound):
        load_weather_data(empty)


def test_missing_column_raises_schema_mismatch(tmp_path):
    path = tmp_path / "crime.csv"
    make_crime().drop(columns=["category"]).to_csv(path, index=False)

    with pytest.raises(SchemaMismatch) as excinfo:
        load_crime_data(path)

    assert "category" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_weather_without_date_column_raises(tmp_path, weather_raw):
    path = tmp_path / "weather.csv"
    # Lower-case `date` only: the `Date` column the loader expects is absent
    weather_raw.to_csv(path, index=False)

    with pytest.raises(SchemaMismatch) as excinfo:
        load_weather_data(path)
    assert "Date" in str(excinfo.value)


def test_optional_columns_may_be_absent(tmp_path):
    path = tmp_path / "crime.csv"
    make_crime().drop(columns=["context", "location_subtype", "persistent_id"]).to_csv(path, index=False)

    crime = load_crime_data(path)
    assert len(crime) == 12
