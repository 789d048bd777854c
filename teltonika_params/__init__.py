"""
Fetch, normalize and render the Teltonika wiki parameter tables.

The three stages share nothing at runtime; each reads and writes a JSON
artifact (see fetch_templates.py, normalize_tables.py, render_inputs.py).
"""

from .errors import (  # noqa: F401
    ConfigError,
    NetworkError,
    ParameterToolError,
    ParseError,
    SchemaError,
)

from .schema import (  # noqa: F401
    ParameterRecord,
    ParameterValue,
    document_to_json,
    snake_case,
)

from .normalize import (  # noqa: F401
    HeaderLayout,
    NormalizationReport,
    detect_header,
    group_records,
    normalize_document,
    normalize_table,
)

from .render import (  # noqa: F401
    render_document,
    render_input,
)

from .wikitext import parse_wikitext  # noqa: F401

__all__ = [
    "ConfigError",
    "NetworkError",
    "ParameterToolError",
    "ParseError",
    "SchemaError",
    "ParameterRecord",
    "ParameterValue",
    "document_to_json",
    "snake_case",
    "HeaderLayout",
    "NormalizationReport",
    "detect_header",
    "group_records",
    "normalize_document",
    "normalize_table",
    "render_document",
    "render_input",
    "parse_wikitext",
]
