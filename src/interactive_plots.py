"""
interactive_plots.py
Interactive views written as standalone HTML: the incident point map and
interactive versions of the temperature scatter and the monthly trend.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from eda import ACCENT, MONTHLY_LABELS, NEUTRAL, SMOOTHING_WINDOW, _require_rows

log = logging.getLogger(__name__)

HTML_DIR  = Path("reports/interactive")
MAP_STYLE = "carto-positron"
MAP_ZOOM  = 11


def _write(fig: go.Figure, name: str, html_dir: Path) -> Path:
    html_dir = Path(html_dir)
    html_dir.mkdir(parents=True, exist_ok=True)
    path = html_dir / f"{name}.html"
    fig.write_html(path, include_plotlyjs="cdn")
    log.info(f"Interactive chart saved → {path}")
    return path


def crime_point_map(crime: pd.DataFrame, cluster: bool = True) -> go.Figure:
    """One marker per incident, coloured by category; nearby markers merge when `cluster` is on."""
    _require_rows(crime, "crime point map")
    points = crime.dropna(subset=["lat", "long"])
    _require_rows(points, "crime point map")
    center = {"lat": float(points["lat"].mean()), "lon": float(points["long"].mean())}

    hover = [c for c in ("date", "outcome_status") if c in points.columns]
    fig = px.scatter_map(
        points,
        lat="lat",
        lon="long",
        color="category",
        hover_name="category",
        hover_data=hover,
        zoom=MAP_ZOOM,
        center=center,
        opacity=0.6,
        height=700,
        map_style=MAP_STYLE,
    )
    fig.update_traces(marker=dict(size=7), cluster=dict(enabled=cluster))
    fig.update_layout(
        title="Crime Incidents" + (" (clustered)" if cluster else ""),
        margin=dict(l=0, r=0, t=40, b=0),
        legend_title_text="Category",
    )
    return fig


def interactive_scatter(merged: pd.DataFrame) -> go.Figure:
    complete = merged.dropna(subset=["avg_temp", "crime_count"])
    _require_rows(complete, "interactive scatter")

    fig = px.scatter(
        complete,
        x="avg_temp",
        y="crime_count",
        hover_name="month",
        hover_data={"total_rain": ":.1f", "avg_wind": ":.1f"},
        labels=MONTHLY_LABELS,
        template="plotly_white",
    )
    fig.update_traces(marker=dict(size=11, color=NEUTRAL))

    if len(complete) >= 2 and complete["avg_temp"].nunique() > 1:
        slope, intercept = np.polyfit(complete["avg_temp"], complete["crime_count"], 1)
        xs = np.linspace(complete["avg_temp"].min(), complete["avg_temp"].max(), 50)
        fig.add_trace(go.Scatter(
            x=xs, y=slope * xs + intercept, mode="lines",
            line=dict(color=ACCENT, width=2),
            name=f"Trend: {slope:+.1f} crimes per °C",
        ))

    r = complete["avg_temp"].corr(complete["crime_count"])
    fig.update_layout(title=f"Monthly Crimes vs Average Temperature (r = {r:.2f})")
    return fig


def interactive_time_series(merged: pd.DataFrame) -> go.Figure:
    _require_rows(merged, "interactive time series")
    smooth = merged["crime_count"].rolling(SMOOTHING_WINDOW, center=True, min_periods=1).mean()

    fig = make_subplots(specs=[[{"secondary_y": True}]])
    fig.add_trace(go.Scatter(
        x=merged["month"], y=merged["crime_count"], mode="lines+markers",
        name="Crimes", line=dict(color=NEUTRAL),
    ), secondary_y=False)
    fig.add_trace(go.Scatter(
        x=merged["month"], y=smooth, mode="lines",
        name=f"{SMOOTHING_WINDOW}-month rolling mean", line=dict(color=ACCENT, width=3),
    ), secondary_y=False)
    fig.add_trace(go.Scatter(
        x=merged["month"], y=merged["avg_temp"], mode="lines+markers",
        name="Avg temperature", line=dict(color="#FF7F0E", dash="dot"),
    ), secondary_y=True)

    fig.update_layout(title="Monthly Crime Volume & Temperature",
                      template="plotly_white", hovermode="x unified")
    fig.update_yaxes(title_text=MONTHLY_LABELS["crime_count"], secondary_y=False)
    fig.update_yaxes(title_text=MONTHLY_LABELS["avg_temp"], secondary_y=True)
    fig.update_xaxes(type="category")
    return fig


def run_interactive(crime: pd.DataFrame, merged: pd.DataFrame,
                    html_dir: Path = HTML_DIR, cluster: bool = True) -> list:
    return [
        _write(crime_point_map(crime, cluster=cluster), "crime_map", html_dir),
        _write(interactive_scatter(merged), "temperature_scatter", html_dir),
        _write(interactive_time_series(merged), "monthly_trend", html_dir),
    ]
