from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

LOGGER = logging.getLogger(__name__)


DEFAULT_TEMPLATES: Dict[str, str] = {
    "FMP100": "{{Template:FMP100 Parameter list}}",
    "FMBFAMILY": "{{Template:FMB Device Family Parameter list}}",
}

DUPLICATE_HEADER_POLICIES = ("error", "suffix")


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_choice(name: str, value: str | None, choices: tuple, default: str) -> str:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered not in choices:
        LOGGER.warning("Ignoring %s=%r (expected one of %s); using %r", name, value, ", ".join(choices), default)
        return default
    return lowered


@dataclass
class Settings:
    wiki_api_url: str
    request_timeout: int
    data_dir: Path
    normalize_input: str
    normalize_output: str
    render_input: str
    duplicate_headers: str = "error"
    templates_config: Path = Path("config/templates.yaml")
    templates: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEMPLATES))

    def data_path(self, name: str | Path) -> Path:
        path = Path(name)
        if path.is_absolute():
            return path
        return self.data_dir / path


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def load_templates(path: Path = Path("config/templates.yaml")) -> Dict[str, str]:
    """Return the template table, with entries from ``path`` merged over the defaults."""

    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Template config {path} is not valid YAML: {exc}") from exc
    else:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Template config {path} must be a mapping of name -> template text.")
    merged = dict(DEFAULT_TEMPLATES)
    for name, template in data.items():
        if template:
            merged[str(name)] = str(template)
    return merged


def load_settings() -> Settings:
    templates_config = Path(os.getenv("TEMPLATES_CONFIG", "config/templates.yaml"))
    return Settings(
        wiki_api_url=os.getenv("WIKI_API_URL", "https://wiki.teltonika-gps.com/api.php"),
        request_timeout=_parse_int(os.getenv("REQUEST_TIMEOUT"), 30),
        data_dir=Path(os.getenv("DATA_DIR", ".")),
        normalize_input=os.getenv("NORMALIZE_INPUT", "FMBFAMILY.json"),
        normalize_output=os.getenv("NORMALIZE_OUTPUT", "finalTables.json"),
        # Differs from normalize_output by default; render_inputs.py warns about it.
        render_input=os.getenv("RENDER_INPUT", "FMBFAMILY-FINAL.json"),
        duplicate_headers=_parse_choice("DUPLICATE_HEADERS", os.getenv("DUPLICATE_HEADERS"), DUPLICATE_HEADER_POLICIES, "error"),
        templates_config=templates_config,
        templates=load_templates(templates_config),
    )
