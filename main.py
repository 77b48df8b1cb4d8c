import argparse
import json
import logging
import sys

from dupprof.analyzer import DuplicateProfiler
from dupprof.config import ProfilerConfig
from dupprof.errors import SchemaError
from utils.consts import DEFAULT_SAMPLE_LIMIT, DEFAULT_MAX_GROUPS

logger = logging.getLogger("dupprof")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report rows that share values of a candidate key."
    )
    parser.add_argument("path", nargs="?", help="Data file (.csv, .parquet, .json, .orc, .xlsx)")
    parser.add_argument("-k", "--key", action="append", required=True, dest="keys",
                        help="Key column; repeat for composite keys")
    parser.add_argument("--sample-limit", type=int, default=DEFAULT_SAMPLE_LIMIT)
    parser.add_argument("--max-groups", type=int, default=DEFAULT_MAX_GROUPS)
    parser.add_argument("--engine", choices=["auto", "pandas", "polars"], default="auto")
    parser.add_argument("--db-url", help="SQLAlchemy database URL to profile a table instead of a file")
    parser.add_argument("--table", help="Table name, used with --db-url")
    parser.add_argument("--schema", help="Database schema of --table")
    parser.add_argument("--order-by", action="append", default=[],
                        help="Column giving the sample order for --table; repeatable")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def run(args: argparse.Namespace):
    if args.db_url:
        from sqlalchemy import create_engine
        from dupprof.sql import profile_table

        engine = create_engine(args.db_url)
        try:
            return profile_table(
                engine, args.table, args.keys, args.sample_limit,
                schema=args.schema, order_by=args.order_by, max_groups=args.max_groups
            )
        finally:
            engine.dispose()

    config = ProfilerConfig(
        sample_limit=args.sample_limit,
        max_groups=args.max_groups,
        engine=args.engine,
        verbose=args.verbose
    )
    return DuplicateProfiler(args.path, args.keys, config=config).analyze().get_report()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if bool(args.db_url) == bool(args.path):
        parser.error("give either a data file path or --db-url with --table")
    if args.db_url and not args.table:
        parser.error("--table is required with --db-url")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s"
    )

    try:
        report = run(args)
    except SchemaError as exc:
        logger.error("Schema error: %s", exc)
        return 2
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    print(json.dumps(report.to_dict(), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
