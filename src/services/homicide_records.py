"""Normalize scraped homicide rows into dated, categorized victim records."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

LOGGER = logging.getLogger(__name__)

VALID_YEARS = (2024, 2025)
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MIN_VALID_AGE = 1
MAX_VALID_AGE = 100

MONTH_DAY_YEAR_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$", re.ASCII)
MONTH_YEAR_PATTERN = re.compile(r"^(\d{1,2})/(\d{4})$", re.ASCII)
# Two-digit years at or below this value land in the 2000s, the rest in the 1900s.
TWO_DIGIT_YEAR_PIVOT = 68

HEADER_LEAK_PATTERN = re.compile(r"Date Died|No\.", re.IGNORECASE)
DIGIT_PATTERN = re.compile(r"\d+", re.ASCII)

STABBING_KEYWORDS = ("stab",)
SHOOTING_KEYWORDS = ("shoot", "shot", "shooting", "gunshot")
ASSAULT_KEYWORDS = ("assault",)


class CaseStatus(str, Enum):
    CLOSED = "Closed"
    OPEN_OR_UNKNOWN = "Open / Unknown"


class CameraStatus(str, Enum):
    CAMERA_PRESENT = "Camera Present"
    NO_CAMERA = "No Camera"
    UNKNOWN = "Unknown"


class Method(str, Enum):
    SHOOTING = "Shooting"
    STABBING = "Stabbing"
    ASSAULT = "Assault"
    OTHER_UNKNOWN = "Other / Unknown"


@dataclass(frozen=True)
class RawRecord:
    source_year_label: int
    date_text: str | None = None
    age_text: str | None = None
    closed_text: str | None = None
    camera_text: str | None = None
    notes_text: str | None = None


@dataclass(frozen=True)
class ReconciledRecord:
    year: int
    date: date
    month: int
    age: int | None
    case_status: CaseStatus
    camera_status: CameraStatus
    method: Method

    @property
    def month_label(self) -> str:
        return MONTH_LABELS[self.month - 1]

    @property
    def has_valid_age(self) -> bool:
        return self.age is not None and MIN_VALID_AGE <= self.age <= MAX_VALID_AGE


def _expand_year(text: str) -> int:
    year = int(text)
    if len(text) == 2:
        return 2000 + year if year <= TWO_DIGIT_YEAR_PIVOT else 1900 + year
    return year


def parse_date_text(value: str | None) -> date | None:
    """
    Parse ``MM/DD/YY``, ``MM/DD/YYYY`` or ``MM/YYYY`` into a date.

    Month-only dates resolve to the first of the month. Returns None for anything
    else, including well-formed text that names an impossible calendar day.
    """
    if not value:
        return None
    value = value.strip()
    match = MONTH_DAY_YEAR_PATTERN.match(value)
    if match:
        month, day, year = match.groups()
        try:
            return date(_expand_year(year), int(month), int(day))
        except ValueError:
            return None
    match = MONTH_YEAR_PATTERN.match(value)
    if match:
        month, year = match.groups()
        try:
            return date(int(year), int(month), 1)
        except ValueError:
            return None
    return None


def _lower(value: str | None) -> str:
    return (value or "").lower()


def extract_age(value: str | None) -> int | None:
    match = DIGIT_PATTERN.search(value or "")
    if not match:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        return None


def classify_case_status(value: str | None) -> CaseStatus:
    if "closed" in _lower(value):
        return CaseStatus.CLOSED
    return CaseStatus.OPEN_OR_UNKNOWN


def classify_camera(value: str | None) -> CameraStatus:
    text = _lower(value)
    if DIGIT_PATTERN.search(text):
        return CameraStatus.CAMERA_PRESENT
    if "none" in text:
        return CameraStatus.NO_CAMERA
    return CameraStatus.UNKNOWN


def classify_method(value: str | None) -> Method:
    text = _lower(value)
    if any(keyword in text for keyword in STABBING_KEYWORDS):
        return Method.STABBING
    if any(keyword in text for keyword in SHOOTING_KEYWORDS):
        return Method.SHOOTING
    if any(keyword in text for keyword in ASSAULT_KEYWORDS):
        return Method.ASSAULT
    return Method.OTHER_UNKNOWN


def _reconcile(raw: RawRecord, drops: Counter[str]) -> ReconciledRecord | None:
    date_text = (raw.date_text or "").strip()
    if not date_text:
        drops["empty_date"] += 1
        return None
    parsed = parse_date_text(date_text)
    if parsed is None:
        drops["unparseable_date"] += 1
        return None
    if HEADER_LEAK_PATTERN.search(date_text):
        drops["header_leak"] += 1
        return None
    if parsed.year not in VALID_YEARS:
        drops["out_of_range"] += 1
        return None
    return ReconciledRecord(
        year=parsed.year,
        date=parsed,
        month=parsed.month,
        age=extract_age(raw.age_text),
        case_status=classify_case_status(raw.closed_text),
        camera_status=classify_camera(raw.camera_text),
        method=classify_method(raw.notes_text),
    )


def reconcile_record(raw: RawRecord) -> ReconciledRecord | None:
    return _reconcile(raw, Counter())


def reconcile_records(raw_records: Iterable[RawRecord]) -> list[ReconciledRecord]:
    """Normalize every raw row, keeping input order and silently dropping unusable rows."""
    drops: Counter[str] = Counter()
    reconciled: list[ReconciledRecord] = []
    total = 0
    for raw in raw_records:
        total += 1
        record = _reconcile(raw, drops)
        if record is not None:
            reconciled.append(record)
    for reason, count in sorted(drops.items()):
        LOGGER.debug("Dropped %s rows: %s", count, reason)
    LOGGER.info("Reconciled %s of %s scraped rows", len(reconciled), total)
    return reconciled
