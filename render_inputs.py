"""Render a normalized parameter document as HTML input markup on stdout."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from teltonika_params.artifacts import read_json
from teltonika_params.config import configure_logging, load_settings
from teltonika_params.errors import ParameterToolError
from teltonika_params.render import render_document


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Emit <input> markup for every normalized parameter.")
    parser.add_argument("--input", type=Path, help="Normalized JSON document (default: RENDER_INPUT)")
    parser.add_argument("--output", type=Path, help="Write the markup here instead of stdout")
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

    if args.input is None and settings.render_input != settings.normalize_output:
        logging.warning(
            f"Reading {settings.render_input}, but the normalizer writes {settings.normalize_output}; "
            "pass --input or set RENDER_INPUT if that is not intended."
        )
    input_path = args.input or settings.data_path(settings.render_input)
    if not input_path.exists():
        logging.error(f"Input file not found: {input_path}")
        return 1

    try:
        markup = render_document(read_json(input_path))
    except ParameterToolError as e:
        logging.error(f"Rendering {input_path} failed: {e}")
        return 1

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(markup, encoding="utf-8")
        logging.info(f"Wrote markup to {args.output}")
    else:
        sys.stdout.write(markup)
    return 0


if __name__ == "__main__":
    sys.exit(main())
