#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from external_name_backup.adapters.crossplane import RunFunctionRequest
from external_name_backup.app import run_function
from external_name_backup.common import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="external-name-backup",
        description="Back up and restore external names of composed resources",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    run = subcommands.add_parser("run", help="Process one RunFunctionRequest document")
    run.add_argument(
        "--request",
        type=Path,
        help="Path to the request JSON (default: read from stdin)",
    )
    run.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: $EXTERNAL_NAME_BACKUP_LOG_LEVEL or INFO)",
    )
    return parser.parse_args(list(argv))


def _read_request(path: Path | None) -> RunFunctionRequest:
    try:
        raw = path.read_text(encoding="utf-8") if path is not None else sys.stdin.read()
    except OSError as exc:
        raise ValueError(f"Cannot read request: {exc}") from exc
    try:
        return RunFunctionRequest.model_validate(json.loads(raw))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Request is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise ValueError(f"Invalid request: {exc}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)

    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        configure_logging(level=parsed_args.log_level)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        request = _read_request(parsed_args.request)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        response = run_function(request)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(response.to_payload(), indent=2))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
