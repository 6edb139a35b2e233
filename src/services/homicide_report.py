"""
Baltimore City homicide report: scrape the 2024 and 2025 list pages, reconcile the rows,
print month/method/age tables and save a grouped bar chart of homicides by month.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from src.services.homicide_records import (  # noqa: E402
    MONTH_LABELS,
    VALID_YEARS,
    RawRecord,
    ReconciledRecord,
    reconcile_records,
)
from src.services.homicide_stats import (  # noqa: E402
    TOTAL_LABEL,
    AgeStatistics,
    MethodRow,
    MonthlyRow,
    age_statistics,
    method_table,
    monthly_counts,
    monthly_table,
    year_totals,
)
from src.services.homicide_tables import (  # noqa: E402
    DEFAULT_TIMEOUT,
    Fetcher,
    HomicideSource,
    fetch_document,
    scrape_sources,
)

LOGGER = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_URLS = {
    2025: "https://chamspage.blogspot.com/2025/01/2025-baltimore-city-homicide-list.html",
    2024: "https://chamspage.blogspot.com/2024/01/2024-baltimore-city-homicide-list.html",
}
DEFAULT_CHART_PATH = Path("homicides_by_month.png")

CHART_TITLE = "Baltimore City Homicides by Month: 2024 vs 2025"
CHART_SUBTITLE = "Source: chamspage.blogspot.com | scraped with requests/BeautifulSoup"
CHART_CAPTION = "Note: rows with non-standard dates or XXX/removed entries excluded."
YEAR_COLORS = {2024: "#1f77b4", 2025: "#d62728"}
CHART_SIZE_PX = (900, 520)
CHART_DPI = 110
TABLE_RULE = "-" * 34


@dataclass(frozen=True)
class PipelineResult:
    raw_records: list[RawRecord]
    records: list[ReconciledRecord]


def default_sources(url_2024: str | None = None, url_2025: str | None = None) -> list[HomicideSource]:
    """Sources in scrape order; explicit URLs win over the environment, which wins over defaults."""
    return [
        HomicideSource(2025, url_2025 or os.getenv("HOMICIDE_URL_2025") or DEFAULT_URLS[2025]),
        HomicideSource(2024, url_2024 or os.getenv("HOMICIDE_URL_2024") or DEFAULT_URLS[2024]),
    ]


def collect_raw_records(
    sources: Sequence[HomicideSource],
    fetcher: Fetcher = fetch_document,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[RawRecord]:
    return scrape_sources(sources, fetcher=fetcher, timeout=timeout)


def run_pipeline(
    sources: Sequence[HomicideSource],
    fetcher: Fetcher = fetch_document,
    timeout: float = DEFAULT_TIMEOUT,
) -> PipelineResult:
    raw_records = collect_raw_records(sources, fetcher=fetcher, timeout=timeout)
    return PipelineResult(raw_records=raw_records, records=reconcile_records(raw_records))


def format_summary(records: Sequence[ReconciledRecord], years: Sequence[int] = VALID_YEARS) -> str:
    totals = year_totals(records, years)
    lines = [
        "=== Data Summary ===",
        f"Total records scraped ({' + '.join(str(year) for year in years)}): {len(records)}",
    ]
    lines.extend(f"  {year}: {count}" for year, count in totals.items())
    return "\n".join(lines)


def format_monthly_table(rows: Sequence[MonthlyRow], years: Sequence[int] = VALID_YEARS) -> str:
    header = f"{'Month':<8}" + "".join(f" {year:>6}" for year in years) + f" {'Change':>8}"
    lines = [
        f"=== Baltimore City Homicides by Month: {' vs '.join(str(year) for year in years)} ===",
        header,
        TABLE_RULE,
    ]
    for row in rows:
        if row.label == TOTAL_LABEL:
            lines.append(TABLE_RULE)
        counts = "".join(f" {row.counts[year]:>6d}" for year in years)
        lines.append(f"{row.label:<8}{counts} {row.change:>+8d}")
    return "\n".join(lines)


def format_method_table(rows: Sequence[MethodRow], years: Sequence[int] = VALID_YEARS) -> str:
    lines = [
        "=== Homicide Method Breakdown ===",
        f"{'Method':<20}" + "".join(f" {year:>6}" for year in years),
        TABLE_RULE,
    ]
    for row in rows:
        lines.append(f"{row.method.value:<20}" + "".join(f" {row.counts[year]:>6d}" for year in years))
    return "\n".join(lines)


def format_age_statistics(stats: AgeStatistics | None, years: Sequence[int] = VALID_YEARS) -> str:
    heading = f"=== Victim Age Statistics ({' + '.join(str(year) for year in years)} combined) ==="
    if stats is None:
        return f"{heading}\n  No records with a valid age (1-100)."
    return "\n".join(
        [
            heading,
            f"  Min age   : {stats.minimum}",
            f"  Max age   : {stats.maximum}",
            f"  Mean age  : {stats.mean:.1f}",
            f"  Median age: {stats.median:.1f}",
        ]
    )


def render_monthly_chart(
    counts: dict[tuple[int, int], int],
    out_path: Path,
    years: Sequence[int] = VALID_YEARS,
) -> Path:
    """Save a dodged bar chart with one bar per year for every month present in ``counts``."""
    months = sorted({month for _, month in counts})
    width = 0.7 / max(len(years), 1)
    fig, ax = plt.subplots(figsize=(CHART_SIZE_PX[0] / CHART_DPI, CHART_SIZE_PX[1] / CHART_DPI), dpi=CHART_DPI)
    try:
        for offset, year in enumerate(years):
            positions = [index + (offset - (len(years) - 1) / 2) * width for index in range(len(months))]
            values = [counts.get((year, month), 0) for month in months]
            ax.bar(
                positions,
                values,
                width=width,
                color=YEAR_COLORS.get(year),
                edgecolor="white",
                label=str(year),
            )
        ax.set_xticks(range(len(months)))
        ax.set_xticklabels([MONTH_LABELS[month - 1] for month in months])
        if not months:
            ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)
        ax.set_xlabel("Month")
        ax.set_ylabel("Number of Homicides")
        ax.set_title(f"{CHART_TITLE}\n{CHART_SUBTITLE}", fontsize=11)
        ax.legend(title="Year", loc="upper left", ncol=len(years))
        ax.grid(axis="y", alpha=0.3)
        fig.text(0.99, 0.01, CHART_CAPTION, ha="right", va="bottom", fontsize=8)
        fig.tight_layout(rect=(0, 0.03, 1, 1))
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path)
    finally:
        plt.close(fig)
    return out_path


def print_report(records: Sequence[ReconciledRecord]) -> None:
    print(format_summary(records))
    print()
    print(format_monthly_table(monthly_table(records)))
    print()
    print(format_method_table(method_table(records)))
    print()
    print(format_age_statistics(age_statistics(records)))


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Baltimore City homicides by month, 2024 vs 2025.")
    parser.add_argument("--url-2024", type=str, default=None, help="Override the 2024 list page URL.")
    parser.add_argument("--url-2025", type=str, default=None, help="Override the 2025 list page URL.")
    parser.add_argument(
        "--chart",
        type=Path,
        default=DEFAULT_CHART_PATH,
        help="Where to save the monthly bar chart (default: homicides_by_month.png).",
    )
    parser.add_argument("--no-chart", action="store_true", help="Skip writing the chart image.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Per-page fetch timeout in seconds (default: HOMICIDE_FETCH_TIMEOUT or {DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        force=True,
    )
    if load_dotenv(dotenv_path=REPO_ROOT / ".env"):
        LOGGER.debug("Loaded environment variables from .env file.")

    timeout = args.timeout
    if timeout is None:
        raw_timeout = os.getenv("HOMICIDE_FETCH_TIMEOUT") or str(DEFAULT_TIMEOUT)
        try:
            timeout = float(raw_timeout)
        except ValueError:
            LOGGER.error("Invalid HOMICIDE_FETCH_TIMEOUT %r; expected seconds.", raw_timeout)
            return 1

    try:
        result = run_pipeline(default_sources(args.url_2024, args.url_2025), timeout=timeout)
        print()
        print_report(result.records)
        if not args.no_chart:
            path = render_monthly_chart(monthly_counts(result.records), args.chart)
            LOGGER.info("Histogram saved to %s", path)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Homicide report failed.")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
