from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

VALUE_FIELD = "value"
TYPE_FIELD = "parameter_type"

ABSENT = "absent"
SCALAR = "scalar"
LIST = "list"

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def snake_case(text: str) -> str:
    """
    Turn a header label or column key into a snake_case field name.

    Accents are folded first, then the label is split at punctuation, case
    transitions and letter/digit boundaries ("Min. value" -> "min_value",
    "ParameterID" -> "parameter_id", "col1" -> "col_1").
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", str(text))
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    words = _WORD_RE.findall(folded)
    return "_".join(word.lower() for word in words)


@dataclass(frozen=True)
class ParameterValue:
    """The ``value`` slot of a parameter: absent, a single scalar, or a list of per-row values."""

    kind: str = ABSENT
    items: Tuple[Optional[str], ...] = ()

    @classmethod
    def absent(cls) -> "ParameterValue":
        return cls(ABSENT, ())

    @classmethod
    def scalar(cls, text: str) -> "ParameterValue":
        return cls(SCALAR, (text,))

    @classmethod
    def of_list(cls, items: Iterable[Optional[str]]) -> "ParameterValue":
        return cls(LIST, tuple(items))

    @classmethod
    def from_json(cls, raw: Any) -> "ParameterValue":
        if raw is None:
            return cls.absent()
        if isinstance(raw, (list, tuple)):
            return cls.of_list(None if item is None else str(item) for item in raw)
        return cls.scalar(str(raw))

    @property
    def is_absent(self) -> bool:
        return self.kind == ABSENT

    @property
    def is_list(self) -> bool:
        return self.kind == LIST

    @property
    def text(self) -> Optional[str]:
        return self.items[0] if self.kind == SCALAR else None

    def to_json(self) -> Any:
        if self.kind == LIST:
            return list(self.items)
        if self.kind == SCALAR:
            return self.items[0]
        return None


@dataclass
class ParameterRecord:
    """
    One parameter after grouping.

    ``fields`` holds every column except ``value`` in first-seen order; the
    first entry is the identifier the rows were grouped by.
    ``value_position`` remembers where ``value`` sat among the keys of a row
    read back from JSON, so attributes can be written in the same order.
    """

    fields: Dict[str, str] = field(default_factory=dict)
    value: ParameterValue = field(default_factory=ParameterValue.absent)
    value_position: Optional[int] = field(default=None, compare=False)

    @property
    def key_field(self) -> Optional[str]:
        return next(iter(self.fields), None)

    @property
    def key(self) -> Optional[str]:
        name = self.key_field
        return self.fields[name] if name is not None else None

    @property
    def parameter_type(self) -> Optional[str]:
        return self.fields.get(TYPE_FIELD)

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.fields)
        if not self.value.is_absent:
            out[VALUE_FIELD] = self.value.to_json()
        return out

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> "ParameterRecord":
        keys = list(row)
        fields = {str(k): "" if v is None else str(v) for k, v in row.items() if k != VALUE_FIELD}
        position = keys.index(VALUE_FIELD) if VALUE_FIELD in row else None
        return cls(fields=fields, value=ParameterValue.from_json(row.get(VALUE_FIELD)), value_position=position)


NormalizedDocument = Dict[str, List[List[ParameterRecord]]]


def document_to_json(document: Mapping[str, List[List[ParameterRecord]]]) -> Dict[str, List[List[Dict[str, Any]]]]:
    return {
        title: [[record.to_json() for record in table] for table in tables]
        for title, tables in document.items()
    }
