from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import requests

from .artifacts import write_json
from .errors import NetworkError, ParseError
from .wikitext import parse_wikitext

LOGGER = logging.getLogger(__name__)


class WikiClient:
    """Thin client for the MediaWiki ``api.php`` template expansion endpoint."""

    def __init__(self, api_url: str, timeout: int = 30, session: requests.Session | None = None) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def expand_template(self, template: str) -> str:
        params = {
            "action": "expandtemplates",
            "text": template,
            "format": "json",
            "prop": "wikitext",
        }
        LOGGER.info("Expanding %s via %s", template, self.api_url)
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"Request for {template} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(f"Response for {template} is not JSON: {exc}") from exc

        wikitext = (data.get("expandtemplates") or {}).get("wikitext") if isinstance(data, dict) else None
        if not isinstance(wikitext, str):
            error = data.get("error") if isinstance(data, dict) else None
            raise ParseError(f"No expandtemplates.wikitext in response for {template}: {error or data}")
        return wikitext


def fetch_template(client: WikiClient, template: str) -> Dict[str, Any]:
    """Expand ``template`` server-side and parse the result into a raw document."""
    return parse_wikitext(client.expand_template(template))


def fetch_templates(client: WikiClient, templates: Dict[str, str], output_dir: Path) -> Dict[str, Path]:
    """Fetch each ``name -> template`` pair and write it to ``output_dir/{name}.json``."""

    written: Dict[str, Path] = {}
    for name, template in templates.items():
        document = fetch_template(client, template)
        path = output_dir / f"{name}.json"
        write_json(document, path)
        LOGGER.info("Wrote %s (%d sections)", path, len(document["sections"]))
        written[name] = path
    return written
