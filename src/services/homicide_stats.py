"""Month, method and age summaries over reconciled homicide records."""

from __future__ import annotations

import statistics
from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from src.services.homicide_records import MONTH_LABELS, VALID_YEARS, Method, ReconciledRecord

TOTAL_LABEL = "TOTAL"


@dataclass(frozen=True)
class AgeStatistics:
    minimum: int
    maximum: int
    mean: float
    median: float
    count: int


@dataclass(frozen=True)
class MonthlyRow:
    month: int | None
    label: str
    counts: dict[int, int]
    change: int


@dataclass(frozen=True)
class MethodRow:
    method: Method
    counts: dict[int, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def _change(counts: dict[int, int], years: Sequence[int]) -> int:
    return counts[years[-1]] - counts[years[0]]


def monthly_counts(
    records: Sequence[ReconciledRecord],
    years: Sequence[int] = VALID_YEARS,
) -> dict[tuple[int, int], int]:
    """Count records per (year, month); every month seen in any year is reported for all years."""
    tally = Counter((record.year, record.month) for record in records)
    months = sorted({month for _, month in tally})
    return {(year, month): tally.get((year, month), 0) for month in months for year in years}


def method_counts(
    records: Sequence[ReconciledRecord],
    years: Sequence[int] = VALID_YEARS,
) -> dict[tuple[int, Method], int]:
    tally = Counter((record.year, record.method) for record in records)
    present = {method for _, method in tally}
    methods = [method for method in Method if method in present]
    return {(year, method): tally.get((year, method), 0) for method in methods for year in years}


def age_statistics(records: Sequence[ReconciledRecord]) -> AgeStatistics | None:
    ages = [record.age for record in records if record.has_valid_age]
    if not ages:
        return None
    return AgeStatistics(
        minimum=min(ages),
        maximum=max(ages),
        mean=float(statistics.mean(ages)),
        median=float(statistics.median(ages)),
        count=len(ages),
    )


def year_totals(
    records: Sequence[ReconciledRecord],
    years: Sequence[int] = VALID_YEARS,
) -> dict[int, int]:
    tally = Counter(record.year for record in records)
    return {year: tally.get(year, 0) for year in years}


def monthly_table(
    records: Sequence[ReconciledRecord],
    years: Sequence[int] = VALID_YEARS,
) -> list[MonthlyRow]:
    """Calendar-ordered month rows with zero-filled year columns, followed by a TOTAL row."""
    counts = monthly_counts(records, years)
    months = sorted({month for _, month in counts})
    rows: list[MonthlyRow] = []
    for month in months:
        by_year = {year: counts[(year, month)] for year in years}
        rows.append(MonthlyRow(month, MONTH_LABELS[month - 1], by_year, _change(by_year, years)))
    totals = {year: sum(row.counts[year] for row in rows) for year in years}
    rows.append(MonthlyRow(None, TOTAL_LABEL, totals, _change(totals, years)))
    return rows


def method_table(
    records: Sequence[ReconciledRecord],
    years: Sequence[int] = VALID_YEARS,
) -> list[MethodRow]:
    counts = method_counts(records, years)
    methods = [method for method in Method if (years[0], method) in counts]
    rows = [MethodRow(method, {year: counts[(year, method)] for year in years}) for method in methods]
    # Ties keep enum declaration order.
    return sorted(rows, key=lambda row: row.total, reverse=True)
