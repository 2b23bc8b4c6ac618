from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimtrack.app import (
    batch_history,
    cycle_history,
    grading_summary,
    import_claims,
    log_revalidation_changes,
    revalidate_claims,
)
from claimtrack.config import configure_logging
from claimtrack.domain.model import InvalidInputRow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from claimtrack.domain.reconciliation import RawRow

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"Must be positive: {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile and track claim gradings")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Root log level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_cmd = subparsers.add_parser("import", help="Import a CSV batch of declared costs")
    import_cmd.add_argument("path", type=Path, help="CSV file with claim number and cost columns")
    import_cmd.add_argument("--tenant-id", type=str, required=True, help="Owning tenant")
    import_cmd.add_argument(
        "--actor",
        type=str,
        default="",
        help="Free-form label of whoever uploaded the batch",
    )
    import_cmd.add_argument(
        "--no-header",
        action="store_true",
        help="Treat the first CSV line as data",
    )

    revalidate = subparsers.add_parser("revalidate", help="Run one revalidation cycle")
    revalidate.add_argument(
        "--tenant-id",
        type=str,
        help="Restrict the cycle to one tenant (defaults to all tenants)",
    )
    revalidate.add_argument(
        "--max-batch-size",
        type=_positive_int,
        default=None,
        help="Maximum number of claims to revalidate (defaults to config)",
    )
    revalidate.add_argument(
        "--notify",
        action="store_true",
        help="Log every claim change when the cycle approved or re-costed claims",
    )

    summary = subparsers.add_parser("summary", help="Show claim counts per grading")
    summary.add_argument("--tenant-id", type=str, required=True, help="Tenant to summarise")

    history = subparsers.add_parser("history", help="Show recent imports or cycles")
    history.add_argument("--tenant-id", type=str, help="Tenant to show history for")
    history.add_argument(
        "--limit",
        type=_positive_int,
        default=10,
        help="Number of entries to show (default: %(default)s)",
    )
    history.add_argument(
        "--cycles",
        action="store_true",
        help="Show revalidation cycles instead of batch imports",
    )

    return parser.parse_args(list(argv))


def _read_rows(path: Path, *, skip_header: bool) -> list[RawRow]:
    if not path.is_file():
        raise ValueError(f"No such file: {path}")
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.reader(handle)
        if skip_header:
            next(reader, None)
        rows: list[RawRow] = []
        for line in reader:
            if not any(cell.strip() for cell in line):
                continue
            if len(line) < 2:
                raise ValueError(f"Line {reader.line_num}: expected claim number and cost")
            rows.append((line[0], line[1]))
    return rows


def _run(args: argparse.Namespace) -> None:
    if args.command == "import":
        rows = _read_rows(args.path, skip_header=not args.no_header)
        result = import_claims(
            tenant_id=args.tenant_id,
            rows=rows,
            source=args.path.name,
            actor=args.actor,
        )
        log.info("Import finished: %s", result.record.summary())
    elif args.command == "revalidate":
        result = revalidate_claims(
            tenant_id=args.tenant_id,
            max_batch_size=args.max_batch_size,
            notifier=log_revalidation_changes if args.notify else None,
        )
        log.info(
            "Revalidation finished: %s (%s eligible)",
            result.cycle.summary(),
            result.eligible,
        )
    elif args.command == "summary":
        summary = grading_summary(args.tenant_id)
        log.info(
            "Tenant %s: total=%s, approved=%s, pending=%s, rejected=%s, not_found=%s (%.1f%%)",
            summary.tenant_id,
            summary.total,
            summary.approved,
            summary.pending,
            summary.rejected,
            summary.not_found,
            summary.approval_rate,
        )
    elif args.command == "history" and args.cycles:
        for cycle in cycle_history(args.tenant_id, limit=args.limit):
            log.info("%s %s", cycle.started_at.isoformat(), cycle.summary())
    elif args.command == "history":
        if args.tenant_id is None:
            raise ValueError("Missing --tenant-id for import history")
        for record in batch_history(args.tenant_id, limit=args.limit):
            log.info("%s %s", record.created_at.isoformat(), record.summary())
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=parsed_args.log_level.upper())
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except (ValueError, InvalidInputRow):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
