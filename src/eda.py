"""
eda.py
Static tables and charts for the crime & weather report.

Design principles:
- Each view computes only the aggregate it shows, from already-cleaned tables
- Visuals are publication-ready (labeled, titled, sourced)
- Empty inputs fail loudly instead of rendering a blank chart
- All outputs are saved with descriptive, numbered names
"""

from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd
import seaborn as sns

from data_aggregation import MONTHLY_COLUMNS, add_month_key

# ── Style ─────────────────────────────────────────────────────────────────────
PALETTE  = "YlOrRd"
ACCENT   = "#D62728"   # red, key findings
NEUTRAL  = "#4C72B0"   # blue, standard bars
BG_GRAY  = "#F7F7F7"
FIG_DIR  = Path("reports/plots")

# Outcome statuses below this share are folded into "Other" on the pie chart
PIE_MIN_SHARE = 0.03

# Width in months of the centred rolling mean
SMOOTHING_WINDOW = 3

plt.rcParams.update({
    "figure.facecolor": BG_GRAY,
    "axes.facecolor":   BG_GRAY,
    "axes.spines.top":  False,
    "axes.spines.right": False,
    "axes.labelsize":   11,
    "axes.titlesize":   13,
    "axes.titleweight": "bold",
    "xtick.labelsize":  9,
    "ytick.labelsize":  9,
    "font.family":      "sans-serif",
})

MONTHLY_LABELS = {
    "crime_count": "Crimes per Month",
    "avg_temp":    "Avg Temperature (°C)",
    "total_rain":  "Total Rainfall (mm)",
    "avg_wind":    "Avg Wind (km/h)",
}


class EmptyViewError(ValueError):
    """A view was asked to render from an empty aggregate."""


# ── Helpers ───────────────────────────────────────────────────────────────────

def _save(fig: plt.Figure, name: str, fig_dir: Path) -> Path:
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    path = fig_dir / f"{name}.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  ✓ Saved → {path}")
    return path


def _source_note(ax, note="Source: police street-level crime & daily weather extracts"):
    ax.annotate(note, xy=(0, -0.12), xycoords="axes fraction",
                fontsize=7, color="gray")


def fmt_thousands(ax, axis="y"):
    fmt = mticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    if axis == "y":
        ax.yaxis.set_major_formatter(fmt)
    else:
        ax.xaxis.set_major_formatter(fmt)


def _require_rows(df, view: str):
    if df is None or len(df) == 0:
        raise EmptyViewError(f"No data to render for '{view}'")
    return df


def _banner(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


# ── Tables ────────────────────────────────────────────────────────────────────

def crime_frequency_table(crime: pd.DataFrame) -> pd.DataFrame:
    _require_rows(crime, "crime frequency table")
    counts = crime["category"].value_counts()
    return pd.DataFrame({
        "count": counts,
        "percent": (counts / counts.sum() * 100).round(2),
    }).rename_axis("category")


def outcome_contingency_table(crime: pd.DataFrame) -> pd.DataFrame:
    _require_rows(crime, "outcome contingency table")
    return pd.crosstab(crime["category"], crime["outcome_status"])


def correlation_matrix(merged: pd.DataFrame) -> pd.DataFrame:
    """Pearson r between the monthly columns, each pair over its complete rows."""
    _require_rows(merged, "correlation matrix")
    return merged[MONTHLY_COLUMNS].astype(float).corr(method="pearson")


# ── EDA 1: Data Quality ───────────────────────────────────────────────────────

def eda_data_quality(quality: dict, fig_dir: Path = FIG_DIR) -> Path:
    """
    Q: How much of each raw column is missing before cleaning?
    `quality` maps dataset name → Quality Inspector report.
    """
    _banner("EDA 1 | DATA QUALITY OVERVIEW")
    _require_rows(quality, "data quality")

    fig, axes = plt.subplots(1, len(quality), figsize=(7 * len(quality), 5), squeeze=False)
    fig.suptitle("Raw Data Quality: Missing Values by Column", fontsize=14, fontweight="bold")

    for ax, (name, report) in zip(axes[0], quality.items()):
        rows = max(report["rows"], 1)
        miss = pd.Series(report["missing"], dtype=float).sort_values() / rows * 100
        colors = [ACCENT if v > 40 else NEUTRAL for v in miss.values]
        ax.barh(miss.index, miss.values, color=colors)
        ax.set_xlabel("% Missing")
        ax.set_title(f"{name.title()} ({report['rows']:,} rows)")
        ax.axvline(40, color=ACCENT, linestyle="--", alpha=0.5, label="40% threshold")
        for i, v in enumerate(miss.values):
            ax.text(v + 0.5, i, f"{v:.1f}%", va="center", fontsize=8)
        ax.legend(fontsize=8)
        print(f"  {name}: {sum(1 for v in miss.values if v > 0)} columns with missing values")

    _source_note(axes[0][-1])
    plt.tight_layout()
    return _save(fig, "01_data_quality", fig_dir)


# ── EDA 2: Crime Categories ───────────────────────────────────────────────────

def eda_crime_categories(crime: pd.DataFrame, fig_dir: Path = FIG_DIR) -> list:
    """
    Q: Which crime types dominate the year?
    Shown twice: a ranked bar chart and a Cleveland dot chart of the same counts.
    """
    _banner("EDA 2 | CRIME CATEGORIES")
    freq = crime_frequency_table(crime)
    counts = freq["count"]

    fig, ax = plt.subplots(figsize=(10, 6))
    bar_colors = [ACCENT if i == 0 else NEUTRAL for i in range(len(counts))]
    ax.barh(counts.index[::-1], counts.values[::-1], color=bar_colors[::-1])
    ax.set_title("Crimes by Category")
    ax.set_xlabel("Number of Crimes")
    fmt_thousands(ax, axis="x")
    for i, v in enumerate(counts.values[::-1]):
        ax.text(v, i, f" {v:,}", va="center", fontsize=7)
    _source_note(ax)
    plt.tight_layout()
    bar_path = _save(fig, "02_category_bar", fig_dir)

    fig, ax = plt.subplots(figsize=(10, 6))
    y = range(len(counts))
    ax.hlines(y, 0, counts.values[::-1], color="lightgray", linewidth=1)
    ax.plot(counts.values[::-1], y, "o", color=NEUTRAL, markersize=8)
    ax.set_yticks(list(y))
    ax.set_yticklabels(counts.index[::-1])
    ax.set_title("Crimes by Category (Dot Chart)")
    ax.set_xlabel("Number of Crimes")
    ax.set_xlim(left=0)
    fmt_thousands(ax, axis="x")
    _source_note(ax)
    plt.tight_layout()
    dot_path = _save(fig, "03_category_dot", fig_dir)

    print(freq.to_string())
    print(f"\n  Top category: {counts.idxmax()} ({counts.max():,} crimes, "
          f"{freq['percent'].iloc[0]:.1f}%)")
    return [bar_path, dot_path]


# ── EDA 3: Outcomes ───────────────────────────────────────────────────────────

def outcome_pie_shares(crime: pd.DataFrame) -> pd.Series:
    """Outcome shares with small statuses folded into "Other". "Unknown" is never folded."""
    _require_rows(crime, "outcome pie")
    shares = crime["outcome_status"].value_counts(normalize=True)
    foldable = (shares < PIE_MIN_SHARE) & (shares.index != "Unknown")
    small = shares[foldable]
    shares = shares[~foldable]
    if not small.empty:
        shares["Other"] = small.sum()
    return shares


def outcome_pie_title(shares: pd.Series) -> str:
    title = "Outcome Status Shares"
    if "Unknown" in shares.index:
        title += "\n(Exploded = Unknown)"
    return title


def eda_outcomes(crime: pd.DataFrame, fig_dir: Path = FIG_DIR) -> Path:
    """
    Q: How are crimes resolved, and does it depend on the crime type?
    The category × outcome cross-tab is printed; the pie shows overall shares.
    """
    _banner("EDA 3 | OUTCOMES")
    shares = outcome_pie_shares(crime)

    explode = [0.05 if s == "Unknown" else 0 for s in shares.index]
    fig, ax = plt.subplots(figsize=(9, 9))
    ax.pie(shares.values, labels=shares.index, autopct="%1.1f%%", explode=explode,
           startangle=90, wedgeprops={"edgecolor": "white"},
           textprops={"fontsize": 8})
    ax.set_title(outcome_pie_title(shares))
    path = _save(fig, "04_outcome_pie", fig_dir)

    contingency = outcome_contingency_table(crime)
    print(contingency.to_string())
    unknown_share = (crime["outcome_status"] == "Unknown").mean() * 100
    print(f"\n  Outcome unknown for {unknown_share:.1f}% of crimes")
    return path


# ── EDA 4: Weather Distributions ──────────────────────────────────────────────

def eda_weather_distributions(weather: pd.DataFrame, fig_dir: Path = FIG_DIR) -> Path:
    """
    Q: What did the year's weather look like day to day?
    Histogram, density, and per-month box / violin views of the daily records.
    """
    _banner("EDA 4 | WEATHER DISTRIBUTIONS")
    _require_rows(weather, "weather distributions")
    daily = add_month_key(weather, "weather")
    months = sorted(daily["month"].unique())

    fig, axes = plt.subplots(2, 2, figsize=(15, 10))
    fig.suptitle("Daily Weather Distributions", fontsize=14, fontweight="bold")

    ax = axes[0, 0]
    ax.hist(daily["TemperatureCAvg"], bins=30, color=NEUTRAL, edgecolor="white", alpha=0.85)
    med = daily["TemperatureCAvg"].median()
    ax.axvline(med, color=ACCENT, linewidth=2, label=f"Median: {med:.1f} °C")
    ax.set_title("Daily Average Temperature")
    ax.set_xlabel("Temperature (°C)")
    ax.set_ylabel("Days")
    ax.legend()

    ax = axes[0, 1]
    sns.kdeplot(data=daily, x="Precmm", ax=ax, fill=True, color=NEUTRAL, cut=0, warn_singular=False)
    ax.set_title("Daily Rainfall Density")
    ax.set_xlabel("Rainfall (mm)")

    ax = axes[1, 0]
    sns.boxplot(data=daily, x="month", y="TemperatureCAvg", order=months, ax=ax, color=NEUTRAL)
    ax.set_title("Daily Temperature by Month")
    ax.set_xlabel("")
    ax.set_ylabel("Temperature (°C)")
    ax.tick_params(axis="x", rotation=45)

    ax = axes[1, 1]
    sns.violinplot(data=daily, x="month", y="WindkmhInt", order=months, ax=ax,
                   color="#DD8452", cut=0)
    ax.set_title("Daily Wind Speed by Month")
    ax.set_xlabel("")
    ax.set_ylabel("Wind (km/h)")
    ax.tick_params(axis="x", rotation=45)
    _source_note(ax)

    plt.tight_layout()
    path = _save(fig, "05_weather_distributions", fig_dir)

    print(f"  Median daily temperature: {med:.1f} °C")
    print(f"  Dry days (0 mm): {(daily['Precmm'] == 0).mean()*100:.1f}%")
    return path


# ── EDA 5: Category Point Cloud ───────────────────────────────────────────────

def eda_category_point_cloud(crime: pd.DataFrame, fig_dir: Path = FIG_DIR) -> Path:
    """
    Q: Is each crime type steady month to month, or driven by a few spikes?
    One point per (category, month); spread within a row = monthly variability.
    """
    _banner("EDA 5 | MONTHLY COUNTS BY CATEGORY")
    _require_rows(crime, "category point cloud")
    monthly = (
        add_month_key(crime, "crime")
        .groupby(["category", "month"])
        .size()
        .reset_index(name="count")
    )
    order = monthly.groupby("category")["count"].median().sort_values(ascending=False).index

    fig, ax = plt.subplots(figsize=(11, 7))
    sns.stripplot(data=monthly, y="category", x="count", order=order, ax=ax,
                  color=NEUTRAL, alpha=0.7, jitter=0.2, size=6)
    ax.set_title("Monthly Crime Counts per Category\n(Each point is one month)")
    ax.set_xlabel("Crimes in Month")
    ax.set_ylabel("")
    fmt_thousands(ax, axis="x")
    _source_note(ax)
    plt.tight_layout()
    path = _save(fig, "06_category_point_cloud", fig_dir)

    spread = monthly.groupby("category")["count"].agg(lambda s: s.max() - s.min())
    print(f"  Most variable category: {spread.idxmax()} (range {spread.max():,} per month)")
    return path


# ── EDA 6: Weather vs Crime ───────────────────────────────────────────────────

def eda_weather_crime_relationship(merged: pd.DataFrame, fig_dir: Path = FIG_DIR) -> list:
    """
    Q: Do warmer, drier or calmer months see more crime?
    Scatter with a linear trend, the full pair grid, and the correlation matrix.
    """
    _banner("EDA 6 | WEATHER vs CRIME")
    corr = correlation_matrix(merged)
    complete = merged.dropna(subset=MONTHLY_COLUMNS)
    _require_rows(complete, "weather vs crime scatter")

    fig, ax = plt.subplots(figsize=(9, 6))
    sns.regplot(data=complete, x="avg_temp", y="crime_count", ax=ax, ci=None,
                scatter_kws={"color": NEUTRAL, "s": 60}, line_kws={"color": ACCENT})
    for _, row in complete.iterrows():
        ax.annotate(row["month"], (row["avg_temp"], row["crime_count"]),
                    textcoords="offset points", xytext=(4, 4), fontsize=7, color="gray")
    r = corr.loc["avg_temp", "crime_count"]
    ax.set_title(f"Monthly Crimes vs Average Temperature (r = {r:.2f})")
    ax.set_xlabel(MONTHLY_LABELS["avg_temp"])
    ax.set_ylabel(MONTHLY_LABELS["crime_count"])
    fmt_thousands(ax)
    _source_note(ax)
    plt.tight_layout()
    scatter_path = _save(fig, "07_temperature_scatter", fig_dir)

    grid = sns.pairplot(complete[MONTHLY_COLUMNS], kind="reg", diag_kind="hist",
                        plot_kws={"ci": None, "scatter_kws": {"color": NEUTRAL},
                                  "line_kws": {"color": ACCENT}})
    grid.figure.suptitle("Pairwise Relationships of Monthly Measures", y=1.02,
                         fontsize=14, fontweight="bold")
    pair_path = _save(grid.figure, "08_pairwise_grid", fig_dir)

    fig, ax = plt.subplots(figsize=(7, 6))
    sns.heatmap(corr.rename(index=MONTHLY_LABELS, columns=MONTHLY_LABELS), ax=ax,
                cmap="coolwarm", vmin=-1, vmax=1, annot=True, fmt=".2f",
                linewidths=0.5, cbar_kws={"label": "Pearson r"})
    ax.set_title("Correlation Matrix (Monthly)")
    plt.tight_layout()
    heatmap_path = _save(fig, "09_correlation_matrix", fig_dir)

    print(corr.round(3).to_string())
    return [scatter_path, pair_path, heatmap_path]


# ── EDA 7: Monthly Trend ──────────────────────────────────────────────────────

def eda_monthly_trend(merged: pd.DataFrame, fig_dir: Path = FIG_DIR) -> Path:
    """
    Q: Are crime volumes stable, rising, or falling across the year?
    """
    _banner("EDA 7 | MONTHLY TREND")
    _require_rows(merged, "monthly trend")
    smooth = merged["crime_count"].rolling(SMOOTHING_WINDOW, center=True, min_periods=1).mean()

    fig, ax = plt.subplots(figsize=(12, 5))
    x = range(len(merged))
    ax.bar(x, merged["crime_count"], color=NEUTRAL, alpha=0.5, label="Monthly count")
    ax.plot(x, merged["crime_count"], marker="o", color=NEUTRAL, linewidth=1)
    ax.plot(x, smooth, color=ACCENT, linewidth=2.5,
            label=f"{SMOOTHING_WINDOW}-month rolling mean")
    ax.set_xticks(list(x))
    ax.set_xticklabels(merged["month"], rotation=45)
    ax.set_title("Monthly Crime Volume")
    ax.set_ylabel("Number of Crimes")
    fmt_thousands(ax)
    ax.legend(fontsize=8)
    _source_note(ax)
    plt.tight_layout()
    path = _save(fig, "10_monthly_trend", fig_dir)

    busiest = merged.loc[merged["crime_count"].idxmax()]
    print(f"  Busiest month: {busiest['month']} ({busiest['crime_count']:,} crimes)")
    return path


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_eda(crime: pd.DataFrame, weather: pd.DataFrame, merged: pd.DataFrame,
            quality: dict = None, fig_dir: Path = FIG_DIR) -> dict:
    """
    Render every static view. Returns the printed tables and the saved figure paths.
    """
    figures = []
    if quality:
        figures.append(eda_data_quality(quality, fig_dir))
    figures += eda_crime_categories(crime, fig_dir)
    figures.append(eda_outcomes(crime, fig_dir))
    figures.append(eda_weather_distributions(weather, fig_dir))
    figures.append(eda_category_point_cloud(crime, fig_dir))
    figures += eda_weather_crime_relationship(merged, fig_dir)
    figures.append(eda_monthly_trend(merged, fig_dir))

    print("\n" + "=" * 60)
    print(f"✓ EDA COMPLETE: {len(figures)} figures saved to {fig_dir}/")
    print("=" * 60)

    return {
        "frequency": crime_frequency_table(crime),
        "contingency": outcome_contingency_table(crime),
        "correlation": correlation_matrix(merged),
        "figures": figures,
    }
