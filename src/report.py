"""
report.py
End-to-end crime & weather report: load → inspect → clean → aggregate → render.

A single `run_report()` call reproduces every table, figure and the narrative
summary from the two raw extracts.
"""

import argparse
import logging
import numbers
from pathlib import Path

import pandas as pd

from data_aggregation import merge_monthly, monthly_crime_counts, monthly_weather_summary
from data_cleaning import run_cleaning
from data_collection import DEFAULT_CRIME_PATH, DEFAULT_WEATHER_PATH, load_data
from data_quality import inspect_dataset
from eda import run_eda
from interactive_plots import run_interactive

# ── Logging Setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("reports")

WEATHER_VARIABLES = {
    "avg_temp":   "average temperature",
    "total_rain": "total rainfall",
    "avg_wind":   "average wind speed",
}


# ── Narrative ─────────────────────────────────────────────────────────────────

def _strength(r: float) -> str:
    size = abs(r)
    if size >= 0.7:
        return "strong"
    if size >= 0.4:
        return "moderate"
    if size >= 0.2:
        return "weak"
    return "negligible"


def _markdown_table(df: pd.DataFrame) -> str:
    header = "| " + " | ".join([df.index.name or ""] + [str(c) for c in df.columns]) + " |"
    rule = "|" + "---|" * (len(df.columns) + 1)
    rows = [
        "| " + " | ".join([str(idx)] + [f"{v:,}" if isinstance(v, numbers.Integral) else str(v) for v in row]) + " |"
        for idx, row in zip(df.index, df.itertuples(index=False))
    ]
    return "\n".join([header, rule] + rows)


def build_summary_markdown(crime: pd.DataFrame, merged: pd.DataFrame, tables: dict,
                           audit_path: Path, fig_dir: Path, html_dir: Path) -> str:
    freq = tables["frequency"]
    corr = tables["correlation"]
    busiest = merged.loc[merged["crime_count"].idxmax()]
    quietest = merged.loc[merged["crime_count"].idxmin()]
    unknown_share = (crime["outcome_status"] == "Unknown").mean()
    no_weather = merged.loc[merged["avg_temp"].isna(), "month"].tolist()

    relationships = []
    for col, label in WEATHER_VARIABLES.items():
        r = corr.loc[col, "crime_count"]
        if pd.isna(r):
            relationships.append(f"- Crime count vs {label}: not enough complete months to estimate.")
            continue
        direction = "rises" if r > 0 else "falls"
        relationships.append(
            f"- Crime count vs {label}: r = {r:.2f} ({_strength(r)}); crime {direction} as {label} increases."
        )

    md_lines = [
        "# Crime & Weather: Monthly Report",
        "",
        "## Dataset Snapshot",
        f"- **Crimes analysed:** {len(crime):,} across {len(merged)} months "
        f"({merged['month'].iloc[0]} to {merged['month'].iloc[-1]})",
        f"- **Busiest month:** {busiest['month']} ({int(busiest['crime_count']):,} crimes)",
        f"- **Quietest month:** {quietest['month']} ({int(quietest['crime_count']):,} crimes)",
        f"- **Top category:** {freq.index[0]} ({int(freq['count'].iloc[0]):,}, {freq['percent'].iloc[0]:.1f}%)",
        f"- **Outcome unknown:** {unknown_share:.1%} of crimes",
        "",
        "## Weather & Crime",
        *relationships,
        "",
        "Correlations are over monthly totals only and do not imply causation.",
        "",
        "## Data Gaps",
        f"- Months without weather data: {', '.join(no_weather)}" if no_weather
        else "- Every crime month has matching weather data.",
        "- Missing daily rainfall is counted as 0 mm.",
        "",
        "## Crimes by Category",
        _markdown_table(freq),
        "",
        "## Files Generated",
        f"- Cleaning audit: `{audit_path}`",
        f"- Static figures: `{fig_dir}`",
        f"- Interactive charts: `{html_dir}`",
    ]
    return "\n".join(md_lines)


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_report(
    crime_path=DEFAULT_CRIME_PATH,
    weather_path=DEFAULT_WEATHER_PATH,
    output_dir=DEFAULT_OUTPUT_DIR,
    cluster: bool = True,
) -> dict:
    """
    Run the whole report and return every derived table.

    Parameters
    ----------
    crime_path   : street-level crime CSV (month-granular `date`)
    weather_path : daily weather CSV (`Date` column)
    output_dir   : root for plots/, interactive/, the audit JSON and report.md
    cluster      : merge nearby markers on the incident map
    """
    output_dir = Path(output_dir)
    fig_dir = output_dir / "plots"
    html_dir = output_dir / "interactive"
    audit_path = output_dir / "cleaning_audit.json"
    summary_path = output_dir / "report.md"

    log.info("=" * 60)
    log.info("CRIME & WEATHER REPORT START")
    log.info("=" * 60)

    crime_raw, weather_raw = load_data(crime_path, weather_path)
    quality = {
        "crime": inspect_dataset(crime_raw, "crime"),
        "weather": inspect_dataset(weather_raw, "weather"),
    }

    crime, weather = run_cleaning(crime_raw, weather_raw, audit_path=audit_path)

    crime_monthly = monthly_crime_counts(crime)
    weather_monthly = monthly_weather_summary(weather)
    merged = merge_monthly(crime_monthly, weather_monthly)

    tables = run_eda(crime, weather, merged, quality=quality, fig_dir=fig_dir)
    interactive = run_interactive(crime, merged, html_dir=html_dir, cluster=cluster)

    summary = build_summary_markdown(crime, merged, tables, audit_path, fig_dir, html_dir)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.write_text(summary, encoding="utf-8")
    log.info(f"Narrative summary saved → {summary_path}")

    return {
        "quality": quality,
        "crime": crime,
        "weather": weather,
        "crime_monthly": crime_monthly,
        "weather_monthly": weather_monthly,
        "merged": merged,
        "frequency": tables["frequency"],
        "contingency": tables["contingency"],
        "correlation": tables["correlation"],
        "figures": tables["figures"],
        "interactive": interactive,
        "summary_path": summary_path,
    }


# ── Entry Point ───────────────────────────────────────────────────────────────

def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Build the monthly crime & weather report.")
    parser.add_argument("--crime", type=Path, default=DEFAULT_CRIME_PATH,
                        help="Crime incidents CSV.")
    parser.add_argument("--weather", type=Path, default=DEFAULT_WEATHER_PATH,
                        help="Daily weather CSV.")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR,
                        help="Directory for figures, charts and the summary.")
    parser.add_argument("--no-cluster", action="store_true",
                        help="Show every incident on the map without marker clustering.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.getLogger().setLevel(args.log_level)
    run_report(
        crime_path=args.crime,
        weather_path=args.weather,
        output_dir=args.output_dir,
        cluster=not args.no_cluster,
    )


if __name__ == "__main__":
    main()
