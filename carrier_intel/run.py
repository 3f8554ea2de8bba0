"""Command-line runner: analyze a tenant's shipment snapshot and print the carrier report."""

import argparse
import logging
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from carrier_intel import engine
from carrier_intel.config import load_engine_config
from carrier_intel.engine.models import PaymentMode
from carrier_intel.engine.report import print_report
from carrier_intel.engine.scoring import scores_to_frame
from carrier_intel.utils.io import write_output

console = Console()


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def validate_snapshot(data_dir) -> int:
    table = Table(title="Snapshot Validation")
    table.add_column("Check")
    table.add_column("Valid")
    table.add_column("Details")

    match engine.validate(data_dir):
        case {"status": "ok", "shipments": n, "events": m}:
            table.add_row("schemas", "[green]✓[/green]", f"{n} shipments, {m} events")
            code = 0
        case {"status": "skipped", "reason": reason}:
            table.add_row("schemas", "[yellow]-[/yellow]", reason)
            code = 0
        case {"status": "error", "message": msg}:
            table.add_row("schemas", "[red]✗[/red]", msg)
            code = 1
        case _:
            table.add_row("schemas", "[red]✗[/red]", "Unknown validation result")
            code = 1

    console.print(table)
    return code


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Carrier performance report for a shipment snapshot")
    parser.add_argument("--tenant", type=str, help="Tenant whose shipments are analyzed")
    parser.add_argument("--env", type=str, default="development", help="Configuration environment")
    parser.add_argument("--data-dir", type=str, help="Snapshot directory (overrides the environment)")
    parser.add_argument("--from", dest="date_from", type=_parse_time, help="Earliest assignment time (ISO 8601)")
    parser.add_argument("--to", dest="date_to", type=_parse_time, help="Latest assignment time (ISO 8601)")
    parser.add_argument("--now", type=_parse_time, help="Reference time for at-risk detection (default: current UTC time)")
    parser.add_argument("--payment-mode", choices=[m.value for m in PaymentMode], help="Only recommend for this payment mode")
    parser.add_argument("--output", type=str, help="Write carrier scores to this path")
    parser.add_argument("--format", dest="fmt", default="csv", choices=["csv", "parquet", "json"])
    parser.add_argument("--validate", action="store_true", help="Only validate the snapshot, don't analyze")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = load_engine_config(args.env)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    data_dir = args.data_dir or config.data_dir

    if args.validate:
        sys.exit(validate_snapshot(data_dir))

    if not args.tenant:
        console.print("[red]--tenant is required unless --validate is given[/red]")
        sys.exit(1)

    shipments = engine.fetch_shipments(args.tenant, args.date_from, args.date_to, data_dir=data_dir)
    now = args.now or datetime.now(timezone.utc)
    payment_mode = PaymentMode(args.payment_mode) if args.payment_mode else None
    report = engine.analyze(shipments, now, config=config, payment_mode=payment_mode)

    print_report(report, console)

    if args.output:
        write_output(scores_to_frame(report.scores), args.output, args.fmt)


if __name__ == "__main__":
    main()
