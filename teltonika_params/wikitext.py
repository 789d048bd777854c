from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import mwparserfromhell
from mwparserfromhell.nodes import Heading, Tag
from mwparserfromhell.parser import ParserError

from .errors import ParseError

LOGGER = logging.getLogger(__name__)

CELL_TAGS = {"td", "th"}


@dataclass
class RawCell:
    text: str
    colspan: int = 1
    rowspan: int = 1


def _tag_name(node: Tag) -> str:
    return str(node.tag).strip().lower()


def _span(node: Tag, attr: str) -> int:
    if not node.has(attr):
        return 1
    raw = str(node.get(attr).value).strip().strip("\"'")
    try:
        return max(1, int(raw))
    except ValueError:
        return 1


def _plain_text(node: Tag) -> str:
    if node.contents is None:
        return ""
    return " ".join(node.contents.strip_code().split())


def _to_cell(node: Tag) -> RawCell:
    return RawCell(
        text=_plain_text(node),
        colspan=_span(node, "colspan"),
        rowspan=_span(node, "rowspan"),
    )


def _iter_tables(node: Any) -> Iterator[Tag]:
    """Yield tables found at or below ``node``; tables inside a table are left to their parent."""
    if not isinstance(node, Tag):
        return
    if _tag_name(node) == "table":
        yield node
        return
    if node.contents is None:
        return
    for child in node.contents.nodes:
        yield from _iter_tables(child)


def _raw_rows(table: Tag) -> List[List[RawCell]]:
    rows: List[List[RawCell]] = []
    implicit: List[RawCell] = []
    for node in table.contents.nodes:
        if not isinstance(node, Tag):
            continue
        name = _tag_name(node)
        if name in CELL_TAGS:
            # Cells before the first |- form an implicit row.
            implicit.append(_to_cell(node))
        elif name == "tr":
            if implicit:
                rows.append(implicit)
                implicit = []
            cells = [_to_cell(child) for child in node.contents.nodes if isinstance(child, Tag) and _tag_name(child) in CELL_TAGS]
            if cells:
                rows.append(cells)
    if implicit:
        rows.append(implicit)
    return rows


def expand_spans(rows: List[List[RawCell]]) -> List[List[Optional[RawCell]]]:
    """
    Lay cells out on a grid. A colspan cell fills its extra columns with
    empty-text cells and rowspan cells are carried down. Positions nothing
    covers are ``None``.
    """
    grid: List[List[Optional[RawCell]]] = []
    carried: Dict[int, Tuple[RawCell, int]] = {}
    for cells in rows:
        out: List[Optional[RawCell]] = []
        pending = list(cells)
        col = 0
        while pending or any(c >= col for c in carried):
            if col in carried:
                cell, remaining = carried.pop(col)
                out.append(cell)
                if remaining > 1:
                    carried[col] = (cell, remaining - 1)
                col += 1
                continue
            if not pending:
                out.append(None)
                col += 1
                continue
            cell = pending.pop(0)
            for offset in range(cell.colspan):
                if col in carried:
                    break
                # Only the first spanned column keeps the text.
                placed = cell if offset == 0 else RawCell("")
                out.append(placed)
                if cell.rowspan > 1:
                    carried[col] = (placed, cell.rowspan - 1)
                col += 1
        grid.append(out)
    return grid


def table_to_rows(table: Tag) -> List[Dict[str, Dict[str, str]]]:
    """
    Convert one wikitext table to a list of ``{"colN": {"text": ...}}`` rows.

    Header (``!``) rows are kept as ordinary rows; picking the header is left
    to the normalizer. Grid positions no cell covers are left out of the row.
    """

    grid = expand_spans(_raw_rows(table))
    rows: List[Dict[str, Dict[str, str]]] = []
    for grid_row in grid:
        row: Dict[str, Dict[str, str]] = {}
        for idx, cell in enumerate(grid_row):
            if cell is None:
                continue
            row[f"col{idx + 1}"] = {"text": cell.text}
        rows.append(row)
    return rows


def parse_wikitext(wikitext: str) -> Dict[str, Any]:
    """
    Parse expanded wikitext into ``{"sections": [{"title", "depth", "tables"}]}``.

    The lead (text before the first heading) is kept as an untitled section
    only when it carries tables.
    """
    try:
        code = mwparserfromhell.parse(wikitext)
    except ParserError as exc:
        raise ParseError(f"Could not parse wikitext: {exc}") from exc

    sections: List[Dict[str, Any]] = []
    current: Dict[str, Any] = {"title": "", "depth": 0, "tables": []}
    lead = True
    for node in code.nodes:
        if isinstance(node, Heading):
            if not lead or current["tables"]:
                sections.append(current)
            lead = False
            current = {
                "title": " ".join(node.title.strip_code().split()),
                "depth": max(0, node.level - 2),
                "tables": [],
            }
            continue
        for table in _iter_tables(node):
            rows = table_to_rows(table)
            if not rows:
                LOGGER.debug("Skipping empty table in section %r", current["title"])
                continue
            current["tables"].append(rows)
    if not lead or current["tables"]:
        sections.append(current)

    LOGGER.debug(
        "Parsed %d sections with %d tables", len(sections), sum(len(s["tables"]) for s in sections)
    )
    return {"sections": sections}
