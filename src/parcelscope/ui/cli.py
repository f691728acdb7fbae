# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from parcelscope.app import (
    enqueue_addresses,
    job_status_counts,
    resolve_property,
    run_enrichment_batch,
    skip_trace_person,
)
from parcelscope.common import configure_logging
from parcelscope.domain.model import JobFilter, LookupInput, PersonLookupInput

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid UUID: {value}") from exc


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tenant-id", type=_parse_uuid, required=True, help="Owning tenant")
    parser.add_argument("--event-id", type=_parse_uuid, help="Restrict to one event")
    parser.add_argument("--polygon-id", type=_parse_uuid, help="Restrict to one polygon")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enrich property and owner records")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lookup = subparsers.add_parser("lookup", help="Resolve one property")
    lookup.add_argument("--address", type=str, help="Street address to resolve")
    lookup.add_argument("--jurisdiction", type=str, help="County hint, e.g. 'St. Lucie County'")
    lookup.add_argument("--state", type=str, help="Two-letter state code")
    lookup.add_argument("--lat", type=float, help="Latitude")
    lookup.add_argument("--lng", type=float, help="Longitude")

    skip_trace = subparsers.add_parser("skip-trace", help="Look up an owner's contact details")
    skip_trace.add_argument("--owner-name", type=str, help="Full owner name as on the roll")
    skip_trace.add_argument("--first-name", type=str)
    skip_trace.add_argument("--last-name", type=str)
    skip_trace.add_argument("--address", type=str)
    skip_trace.add_argument("--city", type=str)
    skip_trace.add_argument("--state", type=str)
    skip_trace.add_argument("--zip", dest="zip_code", type=str)

    enqueue = subparsers.add_parser("enqueue", help="Queue addresses from a file (one per line)")
    _add_scope_arguments(enqueue)
    enqueue.add_argument("path", type=Path, help="File of addresses, '-' for stdin")
    enqueue.add_argument("--jurisdiction", type=str, help="County hint stored on every job")

    status = subparsers.add_parser("status", help="Count jobs per status")
    _add_scope_arguments(status)

    batch = subparsers.add_parser("batch", help="Process queued jobs")
    _add_scope_arguments(batch)
    batch.add_argument(
        "--mode",
        choices=("property", "person"),
        default="property",
        help="Resolve properties or skip-trace occupants (default: %(default)s)",
    )
    batch.add_argument("--concurrency", type=int, help="Parallel workers (clamped to 1-10)")
    batch.add_argument("--take", type=int, help="Jobs to fetch (clamped to 1-500)")
    batch.add_argument("--timeout-ms", type=int, help="Per-job time budget in milliseconds")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "lookup" and not args.address and (args.lat is None or args.lng is None):
        raise ValueError("lookup needs --address or both --lat and --lng")
    if args.command == "skip-trace" and not any(
        (args.owner_name, args.first_name, args.last_name, args.address)
    ):
        raise ValueError("skip-trace needs a name or an --address")
    if args.command == "batch" and args.timeout_ms is not None and args.timeout_ms <= 0:
        raise ValueError("--timeout-ms must be positive")


def _scope(args: argparse.Namespace) -> JobFilter:
    return JobFilter(tenant_id=args.tenant_id, event_id=args.event_id, polygon_id=args.polygon_id)


def _read_addresses(path: Path) -> list[str]:
    if str(path) == "-":
        return [line for line in sys.stdin.read().splitlines() if line.strip()]
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _run(args: argparse.Namespace) -> None:
    if args.command == "lookup":
        result = resolve_property(
            LookupInput(
                address=args.address,
                jurisdiction=args.jurisdiction,
                state=args.state,
                lat=args.lat,
                lng=args.lng,
            )
        )
        _emit(result.to_payload())
    elif args.command == "skip-trace":
        if args.owner_name:
            person = PersonLookupInput.from_owner_name(
                args.owner_name,
                address=args.address,
                city=args.city,
                state=args.state,
                zip_code=args.zip_code,
            )
        else:
            person = PersonLookupInput(
                first_name=args.first_name,
                last_name=args.last_name,
                address=args.address,
                city=args.city,
                state=args.state,
                zip_code=args.zip_code,
            )
        found = skip_trace_person(person)
        _emit(found.to_payload() if found is not None else {"found": False})
    elif args.command == "enqueue":
        jobs = enqueue_addresses(
            _read_addresses(args.path),
            tenant_id=args.tenant_id,
            event_id=args.event_id,
            polygon_id=args.polygon_id,
            jurisdiction=args.jurisdiction,
        )
        _emit({"queued": len(jobs)})
    elif args.command == "status":
        counts = job_status_counts(_scope(args))
        _emit({status.value: count for status, count in counts.items()})
    elif args.command == "batch":
        timeout_seconds = args.timeout_ms / 1000 if args.timeout_ms is not None else None
        batch_result = run_enrichment_batch(
            _scope(args),
            mode=args.mode,
            concurrency=args.concurrency,
            take=args.take,
            timeout_seconds=timeout_seconds,
        )
        _emit(batch_result.to_response())
        if not batch_result.success:
            sys.exit(1)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        _run(parsed_args)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
