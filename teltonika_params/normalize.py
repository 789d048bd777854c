from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

from .config import DUPLICATE_HEADER_POLICIES
from .errors import SchemaError
from .schema import VALUE_FIELD, NormalizedDocument, ParameterRecord, ParameterValue, snake_case

LOGGER = logging.getLogger(__name__)

FIRST_COLUMN = "col1"

HEADER_FROM_SECOND_ROW = "second_row"
HEADER_FROM_FIRST_ROW = "first_row"
HEADER_FROM_COLUMN_KEYS = "column_keys"

Row = Mapping[str, Any]


@dataclass
class HeaderLayout:
    """Where a table's field names come from and the first row holding data."""

    header_map: Dict[str, str]
    data_start: int
    source: str


@dataclass
class NormalizationReport:
    section_count: int = 0
    table_count: int = 0
    record_count: int = 0
    skipped_rows: int = 0
    header_sources: Dict[str, int] = field(default_factory=dict)


def _cell_text(cell: Any, key: str, section: str | None, table_index: int | None) -> str:
    if not isinstance(cell, Mapping):
        raise SchemaError(f"cell '{key}' is not an object: {cell!r}", section, table_index)
    text = cell.get("text", "")
    if text is None:
        return ""
    if not isinstance(text, str):
        raise SchemaError(f"cell '{key}' has non-string text: {text!r}", section, table_index)
    return text


def _check_row(row: Any, index: int, section: str | None, table_index: int | None) -> Row:
    if not isinstance(row, Mapping):
        raise SchemaError(f"row {index} is not an object: {row!r}", section, table_index)
    return row


def _resolve_duplicates(
    pairs: Iterable[Tuple[str, str]],
    duplicate_headers: str,
    section: str | None,
    table_index: int | None,
) -> Dict[str, str]:
    header_map: Dict[str, str] = {}
    used: Dict[str, str] = {}
    counts: Counter = Counter()
    for key, name in pairs:
        counts[name] += 1
        if name in used:
            if duplicate_headers != "suffix":
                raise SchemaError(
                    f"columns '{used[name]}' and '{key}' both map to field '{name}'",
                    section,
                    table_index,
                )
            while f"{name}_{counts[name]}" in used:
                counts[name] += 1
            name = f"{name}_{counts[name]}"
        used[name] = key
        header_map[key] = name
    return header_map


def build_header_map(
    row: Row,
    duplicate_headers: str = "error",
    section: str | None = None,
    table_index: int | None = None,
) -> Dict[str, str]:
    """Map each column key of a header row to the snake_cased text of its cell."""

    pairs = []
    for key, cell in row.items():
        text = _cell_text(cell, key, section, table_index)
        if text:
            pairs.append((key, snake_case(text)))
    return _resolve_duplicates(pairs, duplicate_headers, section, table_index)


def header_map_from_keys(
    row: Row,
    duplicate_headers: str = "error",
    section: str | None = None,
    table_index: int | None = None,
) -> Dict[str, str]:
    """Header map for tables without a usable header row: each column key names itself."""

    pairs = [(key, snake_case(key)) for key in row if key]
    return _resolve_duplicates(pairs, duplicate_headers, section, table_index)


def detect_header(
    table: Sequence[Any],
    duplicate_headers: str = "error",
    section: str | None = None,
    table_index: int | None = None,
) -> HeaderLayout:
    """
    Pick the header source for a table.

    1. Row 0 has a first column whose text repeats in row 1: row 0 is a
       spanning label and row 1 is the header; data starts at row 2.
    2. Row 0 has a first column: it is the header; data starts at row 1.
    3. Otherwise the header comes from row 0's column keys and row 0 is data.
    """
    if not table:
        raise SchemaError("table has no rows", section, table_index)
    first = _check_row(table[0], 0, section, table_index)

    if FIRST_COLUMN in first:
        first_text = _cell_text(first[FIRST_COLUMN], FIRST_COLUMN, section, table_index)
        second_text = None
        if len(table) > 1:
            second = _check_row(table[1], 1, section, table_index)
            if FIRST_COLUMN in second:
                second_text = _cell_text(second[FIRST_COLUMN], FIRST_COLUMN, section, table_index)
        if first_text == second_text:
            header_map = build_header_map(table[1], duplicate_headers, section, table_index)
            return HeaderLayout(header_map, 2, HEADER_FROM_SECOND_ROW)
        header_map = build_header_map(first, duplicate_headers, section, table_index)
        return HeaderLayout(header_map, 1, HEADER_FROM_FIRST_ROW)

    header_map = header_map_from_keys(first, duplicate_headers, section, table_index)
    return HeaderLayout(header_map, 0, HEADER_FROM_COLUMN_KEYS)


def row_to_record(
    row: Row,
    header_map: Mapping[str, str],
    section: str | None = None,
    table_index: int | None = None,
) -> Dict[str, str]:
    """Rename a data row's cells through the header map, dropping empty cells."""

    record: Dict[str, str] = {}
    for key, cell in row.items():
        text = _cell_text(cell, key, section, table_index)
        if not text:
            continue
        name = header_map.get(key) or snake_case(key)
        record[name] = text
    return record


def flat_records(
    table: Sequence[Any],
    layout: HeaderLayout,
    section: str | None = None,
    table_index: int | None = None,
) -> Tuple[List[Dict[str, str]], int]:
    """Return the table's data rows as flat records plus the number of rows skipped."""

    records: List[Dict[str, str]] = []
    skipped = 0
    for index in range(layout.data_start, len(table)):
        row = _check_row(table[index], index, section, table_index)
        if FIRST_COLUMN not in row:
            LOGGER.debug("Skipping row %d of %s/%s: no first column", index, section, table_index)
            skipped += 1
            continue
        record = row_to_record(row, layout.header_map, section, table_index)
        if not record:
            skipped += 1
            continue
        records.append(record)
    return records, skipped


def group_records(records: Iterable[Mapping[str, str]]) -> List[ParameterRecord]:
    """
    Merge records sharing the value of their first field.

    Groups keep the order in which each key first appears. A group's fields
    come from its first member; ``value`` becomes the list of every member's
    value when the group has several members, or is carried over as-is when
    there is one.
    """
    groups: Dict[str, List[Mapping[str, str]]] = {}
    for record in records:
        if not record:
            continue
        key = next(iter(record.values()))
        groups.setdefault(key, []).append(record)

    merged: List[ParameterRecord] = []
    for members in groups.values():
        head = members[0]
        fields = {name: text for name, text in head.items() if name != VALUE_FIELD}
        if len(members) > 1:
            value = ParameterValue.of_list(member.get(VALUE_FIELD) for member in members)
        elif VALUE_FIELD in head:
            value = ParameterValue.scalar(head[VALUE_FIELD])
        else:
            value = ParameterValue.absent()
        merged.append(ParameterRecord(fields=fields, value=value))
    return merged


def normalize_table(
    table: Sequence[Any],
    duplicate_headers: str = "error",
    section: str | None = None,
    table_index: int | None = None,
) -> List[ParameterRecord]:
    records, _, _ = _normalize_table(table, duplicate_headers, section, table_index)
    return records


def _normalize_table(
    table: Sequence[Any],
    duplicate_headers: str,
    section: str | None,
    table_index: int | None,
) -> Tuple[List[ParameterRecord], HeaderLayout, int]:
    if not isinstance(table, list):
        raise SchemaError(f"table is not a list of rows: {type(table).__name__}", section, table_index)
    layout = detect_header(table, duplicate_headers, section, table_index)
    records, skipped = flat_records(table, layout, section, table_index)
    return group_records(records), layout, skipped


def normalize_document(
    document: Any,
    duplicate_headers: str = "error",
    *,
    log: Callable[[str], None] | None = None,
) -> Tuple[NormalizedDocument, NormalizationReport]:
    """
    Reshape every table of a parsed wiki document into grouped parameter records.

    Returns ``{section title: [records of table 0, records of table 1, ...]}``
    and a report with counts for diagnostics. Sections sharing a title are
    appended under the same entry.
    """
    if duplicate_headers not in DUPLICATE_HEADER_POLICIES:
        raise ValueError(f"Unknown duplicate header policy '{duplicate_headers}'")
    if not isinstance(document, Mapping):
        raise SchemaError("document is not an object")
    sections = document.get("sections")
    if not isinstance(sections, list):
        raise SchemaError("document has no 'sections' list")

    result: NormalizedDocument = {}
    report = NormalizationReport()
    sources: Counter = Counter()

    for position, section in enumerate(sections):
        if not isinstance(section, Mapping):
            raise SchemaError(f"section {position} is not an object")
        title = section.get("title") or ""
        if not isinstance(title, str):
            raise SchemaError(f"section {position} has a non-string title: {title!r}")
        tables = section.get("tables")
        if tables is None:
            tables = []
        if not isinstance(tables, list):
            raise SchemaError("'tables' is not a list", title)

        target = result.setdefault(title, [])
        for table in tables:
            table_index = len(target)
            records, layout, skipped = _normalize_table(table, duplicate_headers, title, table_index)
            target.append(records)
            sources[layout.source] += 1
            report.table_count += 1
            report.record_count += len(records)
            report.skipped_rows += skipped
        report.section_count += 1
        if log:
            log(f"Section '{title}': {len(tables)} tables")

    report.header_sources = dict(sources)
    LOGGER.info(
        "Normalized %d sections, %d tables, %d records (%d rows skipped)",
        report.section_count,
        report.table_count,
        report.record_count,
        report.skipped_rows,
    )
    return result, report
