from __future__ import annotations

from datetime import date

import pytest

from src.services import homicide_stats
from src.services.homicide_records import CameraStatus, CaseStatus, Method, ReconciledRecord


def _record(day: date, method: Method = Method.SHOOTING, age: int | None = None) -> ReconciledRecord:
    return ReconciledRecord(
        year=day.year,
        date=day,
        month=day.month,
        age=age,
        case_status=CaseStatus.OPEN_OR_UNKNOWN,
        camera_status=CameraStatus.UNKNOWN,
        method=method,
    )


RECORDS = [
    _record(date(2025, 3, 1), Method.STABBING, age=19),
    _record(date(2024, 1, 5), age=40),
    _record(date(2025, 1, 9), age=150),
    _record(date(2025, 1, 20), Method.ASSAULT, age=0),
    _record(date(2024, 12, 31), Method.STABBING, age=31),
]


def test_monthly_counts_zero_fills_missing_years() -> None:
    counts = homicide_stats.monthly_counts(RECORDS)
    assert counts == {
        (2024, 1): 1,
        (2025, 1): 2,
        (2024, 3): 0,
        (2025, 3): 1,
        (2024, 12): 1,
        (2025, 12): 0,
    }
    assert sum(counts.values()) == len(RECORDS)


def test_monthly_counts_empty() -> None:
    assert homicide_stats.monthly_counts([]) == {}


def test_method_counts_zero_fills_missing_years() -> None:
    counts = homicide_stats.method_counts(RECORDS)
    assert counts[(2024, Method.ASSAULT)] == 0
    assert counts[(2025, Method.ASSAULT)] == 1
    assert counts[(2024, Method.STABBING)] == 1
    assert counts[(2025, Method.STABBING)] == 1
    assert (2024, Method.OTHER_UNKNOWN) not in counts


def test_age_statistics_only_uses_valid_ages() -> None:
    stats = homicide_stats.age_statistics(RECORDS)
    assert stats is not None
    assert stats.minimum == 19
    assert stats.maximum == 40
    assert stats.mean == pytest.approx(30.0)
    assert stats.median == 31.0
    assert stats.count == 3


def test_age_statistics_without_valid_ages_is_none() -> None:
    assert homicide_stats.age_statistics([]) is None
    assert homicide_stats.age_statistics([_record(date(2025, 1, 1), age=None)]) is None


def test_year_totals_includes_empty_years() -> None:
    assert homicide_stats.year_totals([_record(date(2025, 2, 2))]) == {2024: 0, 2025: 1}


def test_monthly_table_calendar_order_with_total() -> None:
    rows = homicide_stats.monthly_table(RECORDS)
    assert [row.label for row in rows] == ["Jan", "Mar", "Dec", "TOTAL"]
    assert rows[0].counts == {2024: 1, 2025: 2}
    assert rows[0].change == 1
    assert rows[2].change == -1
    assert rows[-1].month is None
    assert rows[-1].counts == {2024: 2, 2025: 3}
    assert rows[-1].change == 1


def test_monthly_table_empty_has_zero_total() -> None:
    rows = homicide_stats.monthly_table([])
    assert len(rows) == 1
    assert rows[0].counts == {2024: 0, 2025: 0}
    assert rows[0].change == 0


def test_method_table_orders_by_combined_count() -> None:
    rows = homicide_stats.method_table(RECORDS)
    assert [row.method for row in rows] == [Method.SHOOTING, Method.STABBING, Method.ASSAULT]
    assert rows[0].total == 2
    assert rows[1].counts == {2024: 1, 2025: 1}


def test_age_statistics_mean_is_float_for_whole_average() -> None:
    stats = homicide_stats.age_statistics(
        [_record(date(2025, 1, 1), age=22), _record(date(2025, 2, 1), age=34)]
    )
    assert stats is not None
    assert isinstance(stats.mean, float)
    assert stats.mean == 28.0
