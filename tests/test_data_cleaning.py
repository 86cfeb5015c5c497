"""
Tests for the policy-driven cleaner and its postcondition check.
"""

import json

import numpy as np
import pandas as pd
import pytest

from data_cleaning import (
    CRIME_POLICY,
    DROP,
    FILL_CONSTANT,
    KEEP,
    AuditTrail,
    CleaningIncomplete,
    apply_policy,
    clean_crime_data,
    clean_weather_data,
    run_cleaning,
    verify_complete,
)
from data_collection import SchemaMismatch


def test_crime_outcome_unknown_sentinel(crime_raw):
    cleaned = clean_crime_data(crime_raw)

    was_null = crime_raw["outcome_status"].isna()
    assert cleaned["outcome_status"].notna().all()
    assert (cleaned.loc[was_null, "outcome_status"] == "Unknown").all()
    # Non-null outcomes are left as they were
    pd.testing.assert_series_equal(
        cleaned.loc[~was_null, "outcome_status"], crime_raw.loc[~was_null, "outcome_status"]
    )


def test_crime_record_without_outcome_keeps_category_and_coordinates(crime_raw):
    cleaned = clean_crime_data(crime_raw)
    row = crime_raw.index[crime_raw["outcome_status"].isna()][0]

    assert cleaned.loc[row, "outcome_status"] == "Unknown"
    for col in ("category", "lat", "long", "date"):
        assert cleaned.loc[row, col] == crime_raw.loc[row, col]


def test_crime_low_value_columns_dropped(crime_raw):
    cleaned = clean_crime_data(crime_raw)

    for col in ("context", "location_subtype", "persistent_id"):
        assert col not in cleaned.columns
    # Kept columns survive untouched
    assert "location_type" in cleaned.columns
    assert len(cleaned) == len(crime_raw)


def test_cleaning_does_not_modify_input(crime_raw, weather_raw):
    crime_before, weather_before = crime_raw.copy(), weather_raw.copy()
    clean_crime_data(crime_raw)
    clean_weather_data(weather_raw)

    pd.testing.assert_frame_equal(crime_raw, crime_before)
    pd.testing.assert_frame_equal(weather_raw, weather_before)


def test_weather_rainfall_filled_with_zero(weather_raw):
    cleaned = clean_weather_data(weather_raw)

    was_null = weather_raw["Precmm"].isna()
    assert was_null.any()
    assert cleaned["Precmm"].notna().all()
    assert (cleaned.loc[was_null, "Precmm"] == 0).all()
    assert (cleaned["Precmm"] >= 0).all()


def test_weather_record_without_rainfall_keeps_other_fields():
    raw = pd.DataFrame({
        "date": ["2024-06-01", "2024-06-02"],
        "TemperatureCAvg": [15.2, 16.0],
        "Precmm": [np.nan, 2.5],
        "WindkmhInt": [12.0, 9.0],
        "lowClOct": [3.0, 5.0],
    })
    cleaned = clean_weather_data(raw)

    assert cleaned.loc[0, "Precmm"] == 0
    assert cleaned.loc[0, "TemperatureCAvg"] == 15.2
    assert cleaned.loc[0, "WindkmhInt"] == 12.0
    assert cleaned.loc[0, "lowClOct"] == 3.0
    assert cleaned.loc[0, "date"] == "2024-06-01"


def test_weather_dropped_columns(weather_raw):
    cleaned = clean_weather_data(weather_raw)
    assert "PreselevHp" not in cleaned.columns
    assert "SnowDepcm" not in cleaned.columns


def test_cloud_cover_mean_imputation_preserves_mean(weather_raw):
    observed_mean = weather_raw["lowClOct"].dropna().mean()
    cleaned = clean_weather_data(weather_raw)

    assert cleaned["lowClOct"].notna().all()
    assert cleaned["lowClOct"].mean() == pytest.approx(observed_mean)
    filled = cleaned.loc[weather_raw["lowClOct"].isna(), "lowClOct"]
    assert np.allclose(filled, observed_mean)


def test_recleaning_is_a_no_op(weather_raw, crime_raw):
    weather_once = clean_weather_data(weather_raw)
    crime_once = clean_crime_data(crime_raw)

    pd.testing.assert_frame_equal(clean_weather_data(weather_once), weather_once)
    pd.testing.assert_frame_equal(clean_crime_data(crime_once), crime_once)


def test_null_in_kept_column_is_fatal(crime_raw):
    crime_raw.loc[0, "category"] = np.nan

    with pytest.raises(CleaningIncomplete) as excinfo:
        clean_crime_data(crime_raw)
    assert "category" in str(excinfo.value)
    assert "1 nulls" in str(excinfo.value)


def test_all_null_cloud_cover_cannot_be_imputed(weather_raw):
    weather_raw["lowClOct"] = np.nan

    with pytest.raises(CleaningIncomplete) as excinfo:
        clean_weather_data(weather_raw)
    assert "lowClOct" in str(excinfo.value)


def test_fill_column_absent_from_data(weather_raw):
    with pytest.raises(SchemaMismatch):
        clean_weather_data(weather_raw.drop(columns=["Precmm"]))


def test_apply_policy_with_custom_table():
    df = pd.DataFrame({"a": [1.0, np.nan], "b": [np.nan, np.nan], "c": ["x", "y"]})
    policy = {"a": (FILL_CONSTANT, -1.0), "b": (DROP, None), "c": (KEEP, None)}
    audit = AuditTrail()
    audit.start("test", len(df))

    cleaned = verify_complete(apply_policy(df, policy, audit, "test"), "test")

    assert list(cleaned.columns) == ["a", "c"]
    assert cleaned["a"].tolist() == [1.0, -1.0]
    assert [s["step"] for s in audit.steps] == ["Columns dropped", "Fill: a"]
    assert audit.steps[1]["rows_affected"] == 1
    assert audit.steps[1]["pct_affected"] == 50.0


def test_policy_covers_required_crime_columns():
    from data_collection import CRIME_REQUIRED
    assert CRIME_REQUIRED <= set(CRIME_POLICY)


def test_run_cleaning_saves_audit(tmp_path, crime_raw, weather_raw):
    audit_path = tmp_path / "out" / "audit.json"
    crime, weather = run_cleaning(crime_raw, weather_raw, audit_path=audit_path)

    assert crime.notna().all().all()
    assert weather.notna().all().all()

    audit = json.loads(audit_path.read_text())
    assert audit["total_rows"] == {"crime": 12, "weather": 91}
    fills = {(s["dataset"], s["step"]): s["rows_affected"] for s in audit["steps"]}
    assert fills[("crime", "Fill: outcome_status")] == 3
    assert fills[("weather", "Fill: Precmm")] == int(weather_raw["Precmm"].isna().sum())
    assert fills[("weather", "Fill: lowClOct")] == int(weather_raw["lowClOct"].isna().sum())


def test_negative_rainfall_is_rejected():
    raw = pd.DataFrame({
        "date": ["2024-06-01", "2024-06-02"],
        "TemperatureCAvg": [15.2, 16.0],
        "Precmm": [-3.0, np.nan],
        "WindkmhInt": [12.0, 9.0],
        "lowClOct": [3.0, 5.0],
    })

    with pytest.raises(CleaningIncomplete) as excinfo:
        clean_weather_data(raw)
    assert "Precmm" in str(excinfo.value)
    assert "1 rows below" in str(excinfo.value)


def test_dropped_columns_audited_as_columns_not_rows(crime_raw):
    audit = AuditTrail()
    clean_crime_data(crime_raw, audit)

    dropped = next(s for s in audit.steps if s["step"] == "Columns dropped")
    assert dropped["rows_affected"] == 0
    assert dropped["pct_affected"] == 0.0
    assert dropped["columns_affected"] == 3


def test_unlisted_columns_recorded_in_audit(crime_raw):
    crime_raw["extra_note"] = "n/a"
    audit = AuditTrail()
    cleaned = clean_crime_data(crime_raw, audit)

    kept = next(s for s in audit.steps if s["step"] == "Unlisted columns kept")
    assert kept["columns_affected"] == 1
    assert "extra_note" in kept["detail"]
    assert "extra_note" in cleaned.columns


def test_known_crime_extract_columns_have_dispositions(crime_raw):
    # Every column of a street-level extract is covered by the table
    assert set(crime_raw.columns) <= set(CRIME_POLICY)
