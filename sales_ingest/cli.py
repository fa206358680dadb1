"""Command line interface: ``sales-ingest ingest|export|schema-info|generate``.

Examples
--------
Ingest a directory of weekly extracts::

    sales-ingest ingest --source ./data/raw/weekly

Re-import an annual extract directory::

    sales-ingest ingest --source ./data/raw/2024 --type annual --force

Write the frontend JSON files::

    sales-ingest export --months 12

Describe the database for the data explorer::

    sales-ingest schema-info
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sales_ingest.config import FILE_TYPES, DatabaseConfig, SalesIngestConfig
from sales_ingest.exceptions import SalesIngestError
from sales_ingest.export import SalesExporter
from sales_ingest.generators import SalesExtractGenerator
from sales_ingest.ingest import SalesIngester
from sales_ingest.logging import setup_logging
from sales_ingest.sinks import JsonFileSink
from sales_ingest.store import ImportLedger, SaleWriter, connect
from sales_ingest.store.reference import load_district_codes

logger = logging.getLogger("sales_ingest.cli")


class _ArgumentParser(argparse.ArgumentParser):
    """Argument errors exit with status 1 like every other failure."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: LOG_LEVEL or INFO)",
    )

    parser = _ArgumentParser(
        prog="sales-ingest",
        description="Ingest NSW property sales extracts into a database",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", parents=[common], help="Load a directory of DAT files")
    ingest.add_argument(
        "--source",
        "-s",
        type=Path,
        required=True,
        help="Directory containing DAT files",
    )
    ingest.add_argument(
        "--type",
        "-t",
        dest="file_type",
        choices=FILE_TYPES,
        default=None,
        help="File type (default: weekly)",
    )
    ingest.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Re-import files that were already imported",
    )
    ingest.add_argument("--db", type=str, default=None, help="Database URL or SQLite path")
    ingest.add_argument(
        "--districts",
        type=Path,
        default=None,
        help="CSV of district_code,district_name to seed the districts table",
    )

    export = subparsers.add_parser("export", parents=[common], help="Write JSON files for the frontend")
    export.add_argument(
        "--months",
        "-m",
        type=int,
        default=None,
        help="Months of recent sales to export (default: 6)",
    )
    export.add_argument("--output", "-o", type=Path, default=None, help="Output directory")
    export.add_argument("--db", type=str, default=None, help="Database URL or SQLite path")

    schema_info = subparsers.add_parser(
        "schema-info",
        parents=[common],
        help="Write table and column details for the data explorer",
    )
    schema_info.add_argument("--output", "-o", type=Path, default=None, help="Output directory")
    schema_info.add_argument("--db", type=str, default=None, help="Database URL or SQLite path")

    generate = subparsers.add_parser("generate", parents=[common], help="Write synthetic DAT files")
    generate.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    generate.add_argument("--files", type=int, default=5, help="Number of files (default: 5)")
    generate.add_argument("--sales", type=int, default=20, help="Sales per file (default: 20)")
    generate.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )

    return parser


def run_ingest(args: argparse.Namespace, config: SalesIngestConfig) -> int:
    if not args.source.exists():
        logger.error("Source path does not exist: %s", args.source)
        return 1

    district_codes = load_district_codes(args.districts) if args.districts else None
    database = DatabaseConfig(url=args.db) if args.db else config.database

    with connect(database) as db:
        ingester = SalesIngester(db, config.ingest, district_codes)
        ingester.initialize()
        ingester.process_directory(args.source, args.file_type, args.force)

        logger.info("Database status:")
        logger.info("  Total sales in database: %d", SaleWriter(db).total_sales())
        logger.info("  Completed imports: %d", ImportLedger(db).completed_count())

    return 0


def _existing_database(args: argparse.Namespace, config: SalesIngestConfig) -> DatabaseConfig | None:
    database = DatabaseConfig(url=args.db) if args.db else config.database
    # Opening a missing SQLite file would create an empty database.
    if not database.is_postgres and not database.sqlite_path.exists():
        logger.error("Database not found at %s", database.sqlite_path)
        logger.error("Run the ingestion first: sales-ingest ingest --source <path>")
        return None
    return database


def run_export(args: argparse.Namespace, config: SalesIngestConfig) -> int:
    months = args.months if args.months is not None else config.export.recent_months
    if months <= 0:
        logger.error("--months must be positive, got %d", months)
        return 1

    database = _existing_database(args, config)
    if database is None:
        return 1

    sink = JsonFileSink(args.output or config.export.output_dir, pretty=config.export.pretty_json)
    with connect(database) as db:
        metadata = SalesExporter(db, sink).export_all(months)

    logger.info("=" * 60)
    logger.info("EXPORT COMPLETE")
    logger.info("=" * 60)
    logger.info("Total sales in database: %d", metadata["database"]["totalSales"])
    logger.info(
        "Date range: %s to %s",
        metadata["dateRange"]["earliest"],
        metadata["dateRange"]["latest"],
    )
    logger.info("Output directory: %s", sink.output_dir)
    return 0


def run_schema_info(args: argparse.Namespace, config: SalesIngestConfig) -> int:
    database = _existing_database(args, config)
    if database is None:
        return 1

    sink = JsonFileSink(args.output or config.export.output_dir, pretty=config.export.pretty_json)
    with connect(database) as db:
        info = SalesExporter(db, sink).export_schema_info()

    logger.info("Tables: %d", len(info["tables"]))
    logger.info("Views: %d", len(info["views"]))
    return 0


def run_generate(args: argparse.Namespace, config: SalesIngestConfig) -> int:
    if args.files <= 0 or args.sales < 0:
        logger.error("--files must be positive and --sales non-negative")
        return 1

    generator = SalesExtractGenerator(seed=args.seed)
    paths = generator.write_files(args.output, args.files, args.sales)
    for path in paths:
        logger.info("  %s", path.name)
    return 0


COMMANDS = {
    "ingest": run_ingest,
    "export": run_export,
    "schema-info": run_schema_info,
    "generate": run_generate,
}


def main(argv: list[str] | None = None) -> int:
    """Run the CLI; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = SalesIngestConfig.from_env()
        setup_logging(args.log_level or config.log_level, config.log_format)
        return COMMANDS[args.command](args, config)
    except SalesIngestError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
