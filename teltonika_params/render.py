from __future__ import annotations

import html
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .errors import SchemaError
from .schema import VALUE_FIELD, ParameterRecord

LOGGER = logging.getLogger(__name__)

CHECKBOX_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("0 – Disable", "1 – Enable"),
    ("0 - Disable", "1 - Enable"),
)
TEXT_PARAMETER_TYPE = "Char"
SEPARATORS = (" – ", " - ")


def escape_attribute(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).replace('"', "&quot;").replace("<", "&lt;")


def collapse_separators(markup: str) -> str:
    """Replace the " – " / " - " label separators used in vendor docs with ":"."""
    for separator in SEPARATORS:
        markup = markup.replace(separator, ":")
    return markup


def is_checkbox(values: Iterable[Optional[str]]) -> bool:
    return tuple(values) in CHECKBOX_PATTERNS


def input_type(record: ParameterRecord) -> str:
    if record.value.is_list:
        return "checkbox" if is_checkbox(record.value.items) else "select"
    if record.parameter_type == TEXT_PARAMETER_TYPE:
        return "text"
    return "number"


def input_attributes(record: ParameterRecord) -> List[Tuple[str, str]]:
    """Attribute pairs for one record, in the order they are written out."""

    kind = input_type(record)
    attributes: List[Tuple[str, str]] = [("type", kind)]
    if kind == "select":
        options = ",".join("" if item is None else item for item in record.value.items)
        attributes.append(("options", options))
    fields = list(record.fields.items())
    if not record.value.is_list and not record.value.is_absent:
        position = len(fields) if record.value_position is None else record.value_position
        fields.insert(position, (VALUE_FIELD, record.value.text or ""))
    attributes.extend(fields)
    return attributes


def render_input(record: ParameterRecord) -> str:
    parts = ["<input "]
    for key, value in input_attributes(record):
        parts.append(f'{key}="{escape_attribute(value)}" ')
    return collapse_separators("".join(parts)) + "/>"


def _records(rows: Any, title: str, table_index: int) -> List[ParameterRecord]:
    if not isinstance(rows, list):
        raise SchemaError(f"table is not a list of rows: {type(rows).__name__}", title, table_index)
    records = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise SchemaError(f"row {index} is not an object: {row!r}", title, table_index)
        records.append(ParameterRecord.from_json(row))
    return records


def render_document(document: Any) -> str:
    """
    Render a normalized document as nested container markup.

    One ``maintable`` div per section, one ``subtable`` div per table and a
    self-closing ``<input>`` per record.
    """
    if not isinstance(document, Mapping):
        raise SchemaError("document is not an object")

    lines = ["<div>"]
    input_count = 0
    for title, tables in document.items():
        if not isinstance(tables, list):
            raise SchemaError(f"expected a list of tables, got {type(tables).__name__}", title)
        lines.append(f'  <div type="maintable" title="{html.escape(str(title))}">')
        for table_index, rows in enumerate(tables):
            lines.append('    <div type="subtable">')
            for record in _records(rows, title, table_index):
                lines.append(f"      {render_input(record)}")
                input_count += 1
            lines.append("    </div>")
        lines.append("  </div>")
    lines.append("</div>")

    LOGGER.info("Rendered %d input fields across %d sections", input_count, len(document))
    return "\n".join(lines) + "\n"

