"""Fetch the Teltonika parameter-list templates and store them as parsed JSON documents."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from teltonika_params.config import configure_logging, load_settings
from teltonika_params.errors import ParameterToolError
from teltonika_params.wiki_client import WikiClient, fetch_templates


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Expand wiki templates and write {name}.json documents.")
    parser.add_argument("--output-dir", type=Path, help="Directory for the JSON documents (default: DATA_DIR)")
    parser.add_argument(
        "--template",
        action="append",
        dest="templates",
        metavar="NAME",
        help="Only fetch this template name (repeatable)",
    )
    parser.add_argument("--api-url", help="Override WIKI_API_URL")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        settings = load_settings()
    except ParameterToolError as e:
        logging.error(f"Failed to load configuration: {e}")
        return 1

    templates = settings.templates
    if args.templates:
        unknown: List[str] = [name for name in args.templates if name not in templates]
        if unknown:
            logging.error(f"Unknown template name(s): {', '.join(unknown)}. Known: {', '.join(templates)}")
            return 1
        templates = {name: templates[name] for name in args.templates}

    client = WikiClient(args.api_url or settings.wiki_api_url, timeout=settings.request_timeout)
    output_dir = args.output_dir or settings.data_dir
    try:
        written = fetch_templates(client, templates, output_dir)
    except ParameterToolError as e:
        logging.error(str(e))
        return 1

    logging.info(f"Fetched {len(written)} template(s) into {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
