"""Command-line surface for the HRV report builder."""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from hrvreport.analysis_registry import ANALYSIS_REGISTRY
from hrvreport.config import ORIENTATIONS, load_config
from hrvreport.export_system import ReportExporter
from hrvreport.notifications import CollectingNotifier, Severity
from hrvreport.report_builder import ReportBuilder
from hrvreport.storage.file_store import JsonFileRecordStore


def build_parser() -> argparse.ArgumentParser:
    """Create a reusable argument parser for scripts and tests."""
    parser = argparse.ArgumentParser(
        prog="hrvreport",
        description="Load RR interval data, compose a multi-page HRV report and export it.",
    )
    parser.add_argument(
        "--store",
        default=Path("hrv_state"),
        type=Path,
        help="Directory of the JSON record store holding report and RR state.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=Path,
        help="Optional JSON configuration file.",
    )
    parser.add_argument(
        "--input",
        default=None,
        type=Path,
        help="RR interval text file (one value per line or 'timestamp,value').",
    )
    parser.add_argument(
        "--session",
        default=None,
        help="Historical session to load, as 'collection|id'.",
    )
    parser.add_argument(
        "--list-sessions",
        action="store_true",
        help="List stored historical sessions, newest first.",
    )
    parser.add_argument(
        "--exclude",
        type=int,
        action="append",
        default=[],
        help="Original index of an interval to toggle out of the analysis (repeatable).",
    )
    parser.add_argument(
        "--add",
        action="append",
        default=[],
        metavar="KIND",
        help="Analysis kind to add (repeatable). See --list-kinds.",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=0,
        help="Start a new page after every N added analyses (0 keeps one page).",
    )
    parser.add_argument(
        "--orientation",
        choices=ORIENTATIONS,
        default=None,
        help="Page orientation used for PDF export.",
    )
    parser.add_argument("--pdf", type=Path, default=None, help="Write the report as PDF.")
    parser.add_argument(
        "--intervals-csv", type=Path, default=None, help="Write filtered intervals as CSV."
    )
    parser.add_argument(
        "--metrics-csv", type=Path, default=None, help="Write summary metrics as CSV."
    )
    parser.add_argument(
        "--list-kinds",
        action="store_true",
        help="Print the available analysis kinds and exit.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    return parser


def _parse_session(selector: str):
    collection, sep, session_id = selector.partition("|")
    if not sep or not collection or not session_id:
        raise ValueError(f"Invalid session selector {selector!r}, expected 'collection|id'")
    return collection, int(session_id) if session_id.isdigit() else session_id


async def run(args: argparse.Namespace) -> int:
    config = load_config(str(args.config) if args.config else None)
    notifier = CollectingNotifier()
    builder = ReportBuilder(JsonFileRecordStore(args.store), notifier, config)
    await builder.restore()

    try:
        if args.list_sessions:
            for summary in await builder.list_sessions():
                print(f"{summary.selector}\t{summary.label}")

        if args.input is not None:
            await builder.load_file(str(args.input))
        elif args.session is not None:
            await builder.load_session(*_parse_session(args.session))

        for index in args.exclude:
            await builder.toggle_exclusion(index)

        if args.orientation:
            await builder.set_orientation(args.orientation)

        added_on_page = len(builder.report.page(builder.report.current_page))
        for kind in args.add:
            if args.page_size > 0 and added_on_page >= args.page_size:
                await builder.add_page()
                added_on_page = 0
            if await builder.add_analysis(kind) is not None:
                added_on_page += 1

        exporter = ReportExporter(builder)
        if args.pdf is not None:
            sheets = await exporter.export_pdf(args.pdf)
            print(f"Wrote {sheets} sheet(s) to {args.pdf}")
        if args.intervals_csv is not None:
            rows = exporter.export_intervals_csv(args.intervals_csv)
            print(f"Wrote {rows} interval(s) to {args.intervals_csv}")
        if args.metrics_csv is not None:
            exporter.export_metrics_csv(args.metrics_csv)
            print(f"Wrote metrics to {args.metrics_csv}")
    finally:
        builder.close()

    for message, severity, _ in notifier.messages:
        print(f"[{severity.value}] {message}")

    return 1 if notifier.by_severity(Severity.ERROR) else 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point invoked by `python -m hrvreport.cli` or the console script."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_kinds:
        for kind, spec in ANALYSIS_REGISTRY.items():
            scope = "global" if spec.unique_global else "page"
            print(f"{kind.value:28s} {spec.dependency.value:16s} {scope:6s} {spec.title}")
        return 0

    try:
        return asyncio.run(run(args))
    except (ValueError, FileNotFoundError) as e:
        parser.error(str(e))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
