"""
Scrape yearly homicide list pages into raw, unparsed row records.

The list pages are hand-edited blog posts, so the table layout drifts from year to
year: columns get renamed, reordered or dropped, and header rows occasionally repeat
mid-table. Everything here is deliberately forgiving; the only hard requirement for a
page to be usable is that some column can be read as the date of death.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

import requests
from bs4 import BeautifulSoup, Tag

from src.services.homicide_records import RawRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
)

CANONICAL_FIELDS = ("date", "age", "closed", "camera", "notes")


@dataclass(frozen=True)
class ColumnRule:
    patterns: tuple[str, ...]
    exact: bool = False

    def matches(self, name: str) -> bool:
        lowered = name.strip().lower()
        if self.exact:
            return lowered in self.patterns
        return any(pattern in lowered for pattern in self.patterns)


# Checked in order against the de-duplicated header names; first matching column wins.
COLUMN_RULES: dict[str, ColumnRule] = {
    "date": ColumnRule(("date", "died")),
    "age": ColumnRule(("age",), exact=True),
    "closed": ColumnRule(("closed",)),
    "camera": ColumnRule(("camera", "cctv", "surveillance")),
    "notes": ColumnRule(("notes",)),
}
DATE_FALLBACK_INDEX = 1


@dataclass(frozen=True)
class HomicideSource:
    year: int
    url: str


@dataclass(frozen=True)
class SchemaMap:
    date: int | None = None
    age: int | None = None
    closed: int | None = None
    camera: int | None = None
    notes: int | None = None
    column_names: tuple[str, ...] = ()

    @property
    def is_usable(self) -> bool:
        return self.date is not None

    def index_for(self, field: str) -> int | None:
        if field not in CANONICAL_FIELDS:
            raise KeyError(field)
        return getattr(self, field)


Fetcher = Callable[..., BeautifulSoup]


def fetch_document(url: str, timeout: float = DEFAULT_TIMEOUT) -> BeautifulSoup:
    """Download a page and parse it; network and HTTP errors propagate as RequestException."""
    response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    response.raise_for_status()
    return BeautifulSoup(response.text, "html.parser")


def locate_table(document: BeautifulSoup | Tag) -> Tag | None:
    # Each list page carries a single substantive table, so document order is enough.
    return document.find("table")


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ", strip=True).split())


def _span(cell: Tag, attr: str) -> int:
    try:
        value = int(str(cell.get(attr, 1)).strip())
    except ValueError:
        return 1
    return max(value, 1)


def _take_pending(pending: dict[int, tuple[int, str]], col: int) -> str:
    remaining, text = pending.pop(col)
    if remaining > 1:
        pending[col] = (remaining - 1, text)
    return text


def table_to_grid(table: Tag) -> list[list[str]]:
    """
    Flatten a table into a rectangular grid of cell text.

    Spanned cells repeat their text into every covered position and short rows are
    padded with empty strings, so each row has the width of the widest one.
    """
    rows = [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]
    grid: list[list[str]] = []
    pending: dict[int, tuple[int, str]] = {}
    for tr in rows:
        row: list[str] = []
        col = 0
        for cell in tr.find_all(["td", "th"], recursive=False):
            while col in pending:
                row.append(_take_pending(pending, col))
                col += 1
            text = _cell_text(cell)
            rowspan = _span(cell, "rowspan")
            for _ in range(_span(cell, "colspan")):
                row.append(text)
                if rowspan > 1:
                    pending[col] = (rowspan - 1, text)
                col += 1
        while pending and col <= max(pending):
            row.append(_take_pending(pending, col) if col in pending else "")
            col += 1
        grid.append(row)

    width = max((len(row) for row in grid), default=0)
    return [row + [""] * (width - len(row)) for row in grid]


def find_header_row(grid: Sequence[Sequence[str]]) -> int:
    for index, row in enumerate(grid):
        if any("date" in (cell or "").lower() for cell in row):
            return index
    return 0


def make_column_names(header: Sequence[str]) -> list[str]:
    """Trim header text, name blank columns V<n> by position and de-duplicate with .1, .2 suffixes."""
    names = [(cell or "").strip() or f"V{index + 1}" for index, cell in enumerate(header)]
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        candidate = name
        counter = 0
        while candidate in seen:
            counter += 1
            candidate = f"{name}.{counter}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


def resolve_column(names: Sequence[str], rule: ColumnRule) -> int | None:
    for index, name in enumerate(names):
        if rule.matches(name):
            return index
    return None


def map_schema(grid: Sequence[Sequence[str]]) -> tuple[int, SchemaMap]:
    header_row = find_header_row(grid)
    header = grid[header_row] if grid else []
    names = make_column_names(header)
    resolved = {field: resolve_column(names, rule) for field, rule in COLUMN_RULES.items()}
    if resolved["date"] is None and len(names) > DATE_FALLBACK_INDEX:
        resolved["date"] = DATE_FALLBACK_INDEX
    return header_row, SchemaMap(column_names=tuple(names), **resolved)


def _read_cell(row: Sequence[str], index: int | None) -> str | None:
    if index is None:
        return None
    if index >= len(row):
        return ""
    return (row[index] or "").strip()


def extract_records(
    grid: Sequence[Sequence[str]],
    header_row_index: int,
    schema: SchemaMap,
    source_year_label: int,
) -> list[RawRecord]:
    records: list[RawRecord] = []
    for row in grid[header_row_index + 1 :]:
        records.append(
            RawRecord(
                source_year_label=source_year_label,
                date_text=_read_cell(row, schema.date),
                age_text=_read_cell(row, schema.age),
                closed_text=_read_cell(row, schema.closed),
                camera_text=_read_cell(row, schema.camera),
                notes_text=_read_cell(row, schema.notes),
            )
        )
    return records


def parse_document(document: BeautifulSoup | Tag, source_year_label: int) -> list[RawRecord]:
    table = locate_table(document)
    if table is None:
        LOGGER.warning("No table found for %s source.", source_year_label)
        return []
    grid = table_to_grid(table)
    header_row, schema = map_schema(grid)
    if not schema.is_usable:
        LOGGER.warning(
            "No usable date column for %s source (columns: %s).",
            source_year_label,
            ", ".join(schema.column_names) or "none",
        )
        return []
    LOGGER.debug(
        "Source %s: header row %s, columns %s",
        source_year_label,
        header_row,
        {field: schema.index_for(field) for field in CANONICAL_FIELDS},
    )
    return extract_records(grid, header_row, schema, source_year_label)


def parse_source_html(html: str, source_year_label: int) -> list[RawRecord]:
    return parse_document(BeautifulSoup(html, "html.parser"), source_year_label)


def scrape_source(
    source: HomicideSource,
    fetcher: Fetcher = fetch_document,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[RawRecord]:
    """Fetch one year's page and extract its rows; any fetch or parse failure yields no rows."""
    LOGGER.info("Fetching %s homicide list: %s", source.year, source.url)
    try:
        document = fetcher(source.url, timeout=timeout)
        records = parse_document(document, source.year)
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning("Failed to scrape %s: %s", source.url, exc)
        return []
    LOGGER.info("Extracted %s raw rows for %s", len(records), source.year)
    return records


def scrape_sources(
    sources: Iterable[HomicideSource],
    fetcher: Fetcher = fetch_document,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[RawRecord]:
    combined: list[RawRecord] = []
    for source in sources:
        combined.extend(scrape_source(source, fetcher=fetcher, timeout=timeout))
    return combined
