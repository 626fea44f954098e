"""
Explore ACS - look up American Community Survey tables in the local catalog

Usage:
    python scripts/explore_acs.py <command> [options]

Commands:
    refresh                      Rebuild the catalog from the Census API
    find table QUERY             Tables matching an id (B20005, 20005, C24126A)
    find label TEXT              Tables whose label contains every word of TEXT
    describe QUERY               Variables of a table (prefix required)
    stats                        Row counts of the local catalog

Examples:
    # Rebuild everything from 2009 to last year
    python scripts/explore_acs.py refresh

    # Only the 5-year estimates of 2015-2019
    python scripts/explore_acs.py refresh --start-year 2015 --end-year 2019 --estimate 5yr

    # Find and describe a table
    python scripts/explore_acs.py find table 20005
    python scripts/explore_acs.py describe B20005 --year 2016
    python scripts/explore_acs.py describe B20005 --etl
    python scripts/explore_acs.py describe B20005 --versions
"""
import argparse
import io
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from acs_explorer.acs.explorer import Explorer
from acs_explorer.acs.formatting import (
    format_describe_table_pretty, format_describe_table_raw, format_est_years,
    format_etl_config, format_table_name, format_table_records, format_table_versions,
)
from acs_explorer.acs.grammar import parse_table_query
from acs_explorer.acs.models import Estimate
from acs_explorer.config import settings
from acs_explorer.database.connection import dispose_database_connections
from acs_explorer.errors import ACSExplorerError, ParseError

logger = logging.getLogger(__name__)


def setup_logging():
    settings.app.data_dir.mkdir(parents=True, exist_ok=True)

    # Setup logging with UTF-8 encoding
    utf8_stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')

    logging.basicConfig(
        level=getattr(logging, settings.app.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.app.log_path, encoding='utf-8'),
            logging.StreamHandler(utf8_stdout)
        ]
    )


def progress_callback(progress):
    done = len(progress.succeeded) + len(progress.failed)
    logger.info(f"Progress: {done}/{progress.total_combinations} combinations, {len(progress.failed)} failed")


def cmd_refresh(explorer: Explorer, args) -> int:
    years = settings.refresh.years
    if args.start_year is not None or args.end_year is not None:
        start_year = args.start_year or settings.refresh.start_year
        end_year = args.end_year or settings.refresh.last_year
        years = range(start_year, end_year + 1)
    estimates = [Estimate.from_code(e) for e in args.estimate] if args.estimate else None

    logger.info(f"Refreshing {years.start}-{years.stop - 1}...")
    progress = explorer.refresh(years, estimates, progress_callback)

    summary = progress.to_dict()
    logger.info(
        f"Refresh complete: {summary['succeeded']} ok, {summary['failed']} failed, "
        f"{summary['counts'].get('acs_tables', 0)} tables, "
        f"{summary['counts'].get('acs_vars', 0)} variables in {summary['duration_seconds']:.1f}s"
    )
    for label, error in summary['failures'].items():
        logger.info(f"  no refresh {label}: {error}")
    if explorer.client is not None:
        logger.info(f"Census API requests made: {explorer.client.get_request_stats()['requests_made']}")
    return 0


def cmd_find_table(explorer: Explorer, args) -> int:
    query = parse_table_query(args.query)
    records = explorer.query_by_table_id(query.prefix, query.table_id, query.suffix)
    if not records:
        print(f"No table found for {query}.")
        return 0
    print(format_table_records(records))
    return 0


def cmd_find_label(explorer: Explorer, args) -> int:
    records = explorer.fulltext_search(args.text)
    if not records:
        print(f"No table label matches {args.text!r}.")
        return 0
    print(format_table_records(records))
    return 0


def cmd_describe(explorer: Explorer, args) -> int:
    code = parse_table_query(args.query).to_table_code()
    estimate = Estimate.from_code(args.estimate)

    records = explorer.describe_table(code.prefix, code.table_id, code.suffix)
    if not records:
        print(f"Table {code} not found.")
        return 0

    if args.versions:
        versions = explorer.table_versions(code.prefix, code.table_id, code.suffix, estimate)
        print(format_table_versions(versions))
        return 0

    # default to the latest year the table was published for this estimate
    years = [r.year for r in records if r.estimate == estimate]
    if args.year is None and not years:
        print(f"Table {code} has no {estimate.description}.")
        return 0
    year = args.year or max(years)

    if args.etl:
        print(format_etl_config(year, records, estimate))
        return 0
    if args.raw:
        print(format_describe_table_raw(year, records, estimate))
        return 0

    out = format_describe_table_pretty(year, records, estimate)
    out += "\nTable Information:\n============================================\n\n"
    table_info = explorer.query_by_table_id(code.prefix, code.table_id, code.suffix)
    if table_info:
        out += format_table_name(table_info[0]) + "\n"
    out += format_est_years(explorer.query_est_years(code.prefix, code.table_id, code.suffix))
    print(out)
    return 0


def cmd_stats(explorer: Explorer, args) -> int:
    for table, count in explorer.store.catalog_stats().items():
        print(f"{table}: {count:,} rows")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Explore ACS tables and variables')
    sub = parser.add_subparsers(dest='command', required=True)

    refresh = sub.add_parser('refresh', help='refresh all years and estimates of acs variables')
    refresh.add_argument('--start-year', type=int, help='First year (default: ACS_START_YEAR)')
    refresh.add_argument('--end-year', type=int, help='Last year, inclusive (default: last year)')
    refresh.add_argument('--estimate', action='append', choices=['1yr', '5yr'],
                         help='Estimate to refresh (repeatable, default: both)')
    refresh.set_defaults(func=cmd_refresh)

    find = sub.add_parser('find', help='search for info on an acs table')
    find_sub = find.add_subparsers(dest='find_command', required=True)
    table = find_sub.add_parser('table', aliases=['t'], help='search by table id')
    table.add_argument('query', help='table id: optional B/C prefix, digits, optional suffix')
    table.set_defaults(func=cmd_find_table)
    label = find_sub.add_parser('label', aliases=['l'], help='search by label words')
    label.add_argument('text', help='label to search for')
    label.set_defaults(func=cmd_find_label)

    describe = sub.add_parser('describe', help='describe the variables of a table')
    describe.add_argument('query', help='table id with prefix, e.g. B20005')
    describe.add_argument('--year', type=int, help='Year to show (default: latest)')
    describe.add_argument('--estimate', choices=['1yr', '5yr'], default='5yr')
    mode = describe.add_mutually_exclusive_group()
    mode.add_argument('--raw', action='store_true', help='raw variable codes and labels')
    mode.add_argument('--etl', action='store_true', help='etl column config')
    mode.add_argument('--versions', action='store_true', help='variable layout history')
    describe.set_defaults(func=cmd_describe)

    stats = sub.add_parser('stats', help='catalog row counts')
    stats.set_defaults(func=cmd_stats)

    return parser


def main():
    args = build_parser().parse_args()
    setup_logging()

    explorer = Explorer.from_settings()

    try:
        return args.func(explorer, args)
    except ParseError as e:
        logger.error(f"{e}; see --help for the table id format")
        return 2
    except ACSExplorerError as e:
        logger.error(f"error: {e}")
        return 1
    finally:
        dispose_database_connections()


if __name__ == "__main__":
    sys.exit(main())
