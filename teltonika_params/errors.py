from __future__ import annotations


class ParameterToolError(Exception):
    """Base class for failures surfaced by the fetch/normalize/render stages."""


class NetworkError(ParameterToolError):
    """The wiki API could not be reached or answered with an error status."""


class ParseError(ParameterToolError):
    """A response body, wikitext blob or JSON artifact could not be parsed."""


class SchemaError(ParameterToolError, ValueError):
    """A document, table or row does not have the shape the stage expects."""

    def __init__(self, message: str, section: str | None = None, table_index: int | None = None) -> None:
        self.section = section
        self.table_index = table_index
        location = []
        if section is not None:
            location.append(f"section '{section}'")
        if table_index is not None:
            location.append(f"table {table_index}")
        if location:
            message = f"{', '.join(location)}: {message}"
        super().__init__(message)


class ConfigError(ParameterToolError, ValueError):
    """A configuration file or setting cannot be used."""
