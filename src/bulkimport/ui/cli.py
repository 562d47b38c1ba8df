from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from bulkimport.adapters.json_source import load_records
from bulkimport.app import import_dump, write_diff_reports
from bulkimport.config import configure_logging
from bulkimport.domain.importing import ImportContext
from bulkimport.domain.model import RunStatus, UpdateMode

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_CONTEXT = ImportContext()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk import records into the entity store")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import a JSON dump")
    importer.add_argument("dump", type=Path, help="Path to the JSON dump")

    diff = subparsers.add_parser("diff", help="Write diff reports for two record exports")
    diff.add_argument("before", type=Path, help="JSON list of records before the update")
    diff.add_argument("after", type=Path, help="JSON list of records after the update")
    diff.add_argument(
        "--mode",
        type=UpdateMode,
        choices=[mode for mode in UpdateMode if mode.requires_diff],
        default=UpdateMode.UPDATE,
        help="Update mode used to merge property values (default: %(default)s)",
    )
    diff.add_argument(
        "--name",
        type=str,
        default="bulk_import",
        help="Base name of the report files (default: %(default)s)",
    )
    diff.add_argument(
        "--output-dir",
        type=Path,
        help="Directory receiving the reports (defaults to the data directory)",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "import":
            signal(SIGINT, sigint_handler)
            summary = import_dump(parsed_args.dump, context=_CONTEXT)
            status, errors = summary.status, summary.errors
        elif parsed_args.command == "diff":
            result = write_diff_reports(
                load_records(parsed_args.before),
                load_records(parsed_args.after),
                update_mode=parsed_args.mode,
                name=parsed_args.name,
                directory=parsed_args.output_dir,
            )
            status, errors = result.status, result.errors
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    if status is RunStatus.ERROR:
        log.error("Finished with %d error(s)", errors)
        sys.exit(1)
    if status is RunStatus.STOPPED:
        log.warning("Stopped before completion")
        sys.exit(130)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Request a cooperative stop; a second Ctrl+C exits at once."""
    if _CONTEXT.stop.requested:
        log.info("Closed by user (Ctrl+C)")
        sys.exit(130)
    log.info("Stop requested by user (Ctrl+C), finishing the current batch")
    _CONTEXT.stop.request()


if __name__ == "__main__":
    load_dotenv()
    main()
