"""Normalize a parsed wiki document into grouped parameter records."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from teltonika_params.artifacts import read_json, write_json
from teltonika_params.config import DUPLICATE_HEADER_POLICIES, configure_logging, load_settings
from teltonika_params.errors import ParameterToolError
from teltonika_params.export import write_csv
from teltonika_params.normalize import normalize_document
from teltonika_params.schema import document_to_json


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reshape wiki parameter tables into a flat record schema.")
    parser.add_argument("--input", type=Path, help="Parsed wiki document (default: NORMALIZE_INPUT)")
    parser.add_argument("--output", type=Path, help="Normalized JSON output (default: NORMALIZE_OUTPUT)")
    parser.add_argument("--csv", type=Path, help="Also write one CSV row per parameter to this path")
    parser.add_argument(
        "--duplicate-headers",
        choices=DUPLICATE_HEADER_POLICIES,
        help="Reject tables whose headers collide, or suffix the later ones (default: DUPLICATE_HEADERS)",
    )
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

    input_path = args.input or settings.data_path(settings.normalize_input)
    output_path = args.output or settings.data_path(settings.normalize_output)
    if not input_path.exists():
        logging.error(f"Input file not found: {input_path}")
        return 1

    try:
        document = read_json(input_path)
        normalized, report = normalize_document(
            document,
            args.duplicate_headers or settings.duplicate_headers,
            log=logging.debug,
        )
    except ParameterToolError as e:
        logging.error(f"Normalization of {input_path} failed: {e}")
        return 1

    write_json(document_to_json(normalized), output_path)
    logging.info(f"Wrote {report.record_count} records to {output_path}")
    logging.debug(f"Header sources: {report.header_sources}")

    if args.csv:
        rows = write_csv(normalized, args.csv)
        logging.info(f"Wrote {rows} CSV rows to {args.csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
