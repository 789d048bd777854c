from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

import polars as pl

from .schema import VALUE_FIELD, ParameterRecord

LIST_JOINER = "; "


def _flat_row(title: str, table_index: int, record: ParameterRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {"section_title": title, "table_index": table_index}
    row.update(record.fields)
    if record.value.is_list:
        row[VALUE_FIELD] = LIST_JOINER.join(item or "" for item in record.value.items)
    elif not record.value.is_absent:
        row[VALUE_FIELD] = record.value.text
    return row


def records_to_frame(document: Mapping[str, List[List[ParameterRecord]]]) -> pl.DataFrame:
    """
    Flatten a normalized document into one row per parameter.

    Columns are ``section_title`` and ``table_index`` followed by the union of field names
    in first-seen order; fields a record lacks are null.
    """
    rows = [
        _flat_row(title, table_index, record)
        for title, tables in document.items()
        for table_index, table in enumerate(tables)
        for record in table
    ]
    if not rows:
        return pl.DataFrame(schema={"section_title": pl.Utf8, "table_index": pl.Int64})

    columns: List[str] = []
    for row in rows:
        for name in row:
            if name not in columns:
                columns.append(name)
    schema = {name: (pl.Int64 if name == "table_index" else pl.Utf8) for name in columns}
    return pl.from_dicts(rows, schema=schema)


def write_csv(document: Mapping[str, List[List[ParameterRecord]]], path: Path) -> int:
    frame = records_to_frame(document)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.write_csv(path)
    return frame.height
