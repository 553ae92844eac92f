#!/usr/bin/env python3
"""
MySQL Utils - CLI Entry Point
=============================
Command-line utilities for working with a MySQL database:
- list-tables / drop-tables / drop-all-tables
- query (text, CSV or JSON output)
- split-sql-dump (one file per table)
- run-sql-files / run-script-files (cache mysql output in .txt files)
- copy-rows (merge rows, adjusting conflicting primary keys)
"""

import argparse
import logging
import re
import sys
from typing import Callable

import yaml
from mysql.connector import Error as MySQLError

from .batch_runner import BatchRunner
from .completion import COMPLETION_KINDS, suggest_completions
from .config import ConfigLoader, resolve_connection_settings
from .connection import DatabaseConnection
from .dump_splitter import DumpSplitter, iter_dump_lines
from .errors import MysqlUtilsError
from .filters import TableFilter
from .formatter import OutputFormat, write_result
from .models import AdjustRule, OverwritePolicy, ResultCode
from .query_runner import QueryRunner
from .row_copier import RowCopier
from .table_dropper import DropSelector, TableDropper
from .utils import (
    dry_run_default,
    log_copy_stats,
    log_item_results,
    log_job_results,
    log_split_result,
    setup_logging,
)


def _add_connection_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group('connection')
    group.add_argument('--host', help='Server host (default: localhost)')
    group.add_argument('--port', type=int, help='Server port (default: 3306)')
    group.add_argument('--username', '-u', help='Defaults to user from ~/.my.cnf')
    group.add_argument('--password', help='Defaults to password from ~/.my.cnf')


def _add_dry_run_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--dry-run', dest='dry_run', action='store_true',
        help='Only show what would be done (default, unless DRY_RUN=0)'
    )
    parser.add_argument(
        '--no-dry-run', dest='dry_run', action='store_false',
        help='Actually perform the changes'
    )
    parser.set_defaults(dry_run=dry_run_default())


def _connect(args: argparse.Namespace, config: ConfigLoader, database=None) -> DatabaseConnection:
    settings = resolve_connection_settings(
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        database=database,
        config=config.get_connection_settings()
    )
    return DatabaseConnection.from_settings(settings)


def cmd_list_tables(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    with _connect(args, config, args.database) as conn:
        for name in conn.get_tables():
            print(name)
    return ResultCode.OK


def cmd_drop_all_tables(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    if args.dry_run:
        logging.info("DRY RUN MODE - No table will be dropped")
    with _connect(args, config, args.database) as conn:
        results = TableDropper(conn, dry_run=args.dry_run).drop_all_tables()
    return log_item_results(results)


def cmd_drop_tables(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    if args.tables and args.table_pattern:
        raise ValueError("Specify either table names or --table-pattern, not both")
    if args.tables:
        selector = DropSelector.by_names(args.tables, limit=args.limit)
    elif args.table_pattern:
        selector = DropSelector.by_pattern(args.table_pattern, limit=args.limit)
    else:
        raise ValueError("Specify table names or --table-pattern")

    if args.dry_run:
        logging.info("DRY RUN MODE - No table will be dropped")
    with _connect(args, config, args.database) as conn:
        results = TableDropper(conn, dry_run=args.dry_run).drop_tables(selector)
    return log_item_results(results)


def cmd_query(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    query = sys.stdin.read() if args.query == '-' else args.query
    output_format = args.format or config.get_query_settings().get('format', OutputFormat.TEXT)

    with _connect(args, config, args.database) as conn:
        result = QueryRunner(conn).run(query, add_row_numbers=args.add_row_numbers)

    write_result(result, sys.stdout, output_format)
    return ResultCode.OK


def cmd_split_sql_dump(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    table_filter = TableFilter(
        include_names=args.include_table,
        exclude_names=args.exclude_table,
        include_patterns=args.include_table_pattern,
        exclude_patterns=args.exclude_table_pattern
    )
    splitter = DumpSplitter(
        table_filter=table_filter,
        output_dir=args.dir,
        overwrite=args.overwrite,
        stop_after_table=args.stop_after_table,
        stop_after_pattern=args.stop_after_table_pattern
    )
    result = splitter.split(iter_dump_lines(args.files))
    log_split_result(result)
    return result.status


def _run_files(args: argparse.Namespace, config: ConfigLoader, extension: str, interpreter=None) -> ResultCode:
    settings = resolve_connection_settings(
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        database=args.database,
        config=config.get_connection_settings()
    )
    runner = BatchRunner(
        database=args.database,
        overwrite_policy=OverwritePolicy(args.overwrite_when),
        output_dir=args.output_dir,
        create_dir=args.create_dir,
        extension=extension,
        interpreter=interpreter,
        settings=settings
    )
    return log_job_results(runner.run(args.files))


def cmd_run_sql_files(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    return _run_files(args, config, '.sql')


def cmd_run_script_files(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    return _run_files(args, config, args.extension, interpreter=args.interpreter.split())


def cmd_copy_rows(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    adjust = AdjustRule.parse(args.adjust)
    if args.dry_run:
        logging.info("DRY RUN MODE - No row will be inserted")
    with _connect(args, config, args.database) as conn:
        stats = RowCopier(conn, dry_run=args.dry_run).copy_rows(
            args.from_table, args.to_table, args.pk, adjust
        )
    return log_copy_stats(stats, args.dry_run)


def cmd_complete(args: argparse.Namespace, config: ConfigLoader) -> ResultCode:
    database = args.database if args.kind == 'table' else None
    with _connect(args, config, database) as conn:
        for candidate in suggest_completions(conn, args.word, args.kind):
            print(candidate)
    return ResultCode.OK


def _configure_list_tables(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('database')
    _add_connection_args(parser)


def _configure_drop_all_tables(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('database')
    _add_connection_args(parser)
    _add_dry_run_args(parser)


def _configure_drop_tables(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('database')
    parser.add_argument('tables', nargs='*', metavar='table')
    parser.add_argument('--table-pattern', help='Drop tables whose name matches this regex')
    parser.add_argument('--limit', type=int, help="Don't drop more than this number of tables")
    _add_connection_args(parser)
    _add_dry_run_args(parser)


def _configure_query(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('database')
    parser.add_argument('query', help="SQL query, or '-' to read it from stdin")
    parser.add_argument(
        '--add-row-numbers', action='store_true',
        help='Add first field containing number from 1, 2, ...'
    )
    parser.add_argument('--format', choices=OutputFormat.CHOICES, help='Output format (default: text)')
    _add_connection_args(parser)


def _configure_split_sql_dump(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('files', nargs='*', help="Dump files (.gz allowed); stdin when omitted")
    parser.add_argument('--include-table', action='append', default=[])
    parser.add_argument('--include-table-pattern', action='append', default=[])
    parser.add_argument('--exclude-table', action='append', default=[])
    parser.add_argument('--exclude-table-pattern', action='append', default=[])
    parser.add_argument('--dir', help='Directory to write per-table files to (created if missing)')
    parser.add_argument('--overwrite', action='store_true', help='Overwrite existing per-table files')
    parser.add_argument('--stop-after-table')
    parser.add_argument('--stop-after-table-pattern')


def _configure_run_files(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('files', nargs='+')
    parser.add_argument('--database', '--db', required=True)
    parser.add_argument(
        '--overwrite-when', default=OverwritePolicy.NEVER.value,
        choices=[p.value for p in OverwritePolicy],
        help='When to overwrite an existing .txt file (default: none)'
    )
    parser.add_argument(
        '-o', dest='overwrite_when', action='store_const', const=OverwritePolicy.IF_OLDER.value,
        help='Shortcut for --overwrite-when=older'
    )
    parser.add_argument(
        '-O', dest='overwrite_when', action='store_const', const=OverwritePolicy.ALWAYS.value,
        help='Shortcut for --overwrite-when=always'
    )
    parser.add_argument('--output-dir', help='Write .txt files here instead of next to the inputs')
    parser.add_argument('--create-dir', action='store_true', help='Create --output-dir if missing')
    _add_connection_args(parser)


def _configure_run_script_files(parser: argparse.ArgumentParser) -> None:
    _configure_run_files(parser)
    parser.add_argument('--interpreter', default='python3', help='Interpreter command (default: python3)')
    parser.add_argument('--extension', default='.py', help='Script file extension (default: .py)')


def _configure_copy_rows(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('database')
    parser.add_argument('from_table')
    parser.add_argument('to_table')
    parser.add_argument('--pk', required=True, help='Primary key column')
    parser.add_argument(
        '--adjust', required=True,
        help="How to change a conflicting primary key, e.g. '+1000' or '-1000'"
    )
    _add_connection_args(parser)
    _add_dry_run_args(parser)


def _configure_complete(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('kind', choices=COMPLETION_KINDS)
    parser.add_argument('word', nargs='?', default='')
    parser.add_argument('--database', '--db', help='Database to complete table names from')
    _add_connection_args(parser)


Handler = Callable[[argparse.Namespace, ConfigLoader], ResultCode]

COMMANDS: dict[str, tuple[Handler, Callable[[argparse.ArgumentParser], None], str]] = {
    'list-tables': (cmd_list_tables, _configure_list_tables, 'List tables in a database'),
    'drop-all-tables': (cmd_drop_all_tables, _configure_drop_all_tables, 'Drop all tables in a database'),
    'drop-tables': (cmd_drop_tables, _configure_drop_tables, 'Drop tables by name or pattern'),
    'query': (cmd_query, _configure_query, 'Run query and return table result'),
    'split-sql-dump': (
        cmd_split_sql_dump, _configure_split_sql_dump,
        'Parse SQL dump and write tables to separate files'
    ),
    'run-sql-files': (
        cmd_run_sql_files, _configure_run_files,
        'Feed each .sql file to mysql and write result to .txt file'
    ),
    'run-script-files': (
        cmd_run_script_files, _configure_run_script_files,
        'Pipe the output of each script to mysql and write result to .txt file'
    ),
    'copy-rows': (
        cmd_copy_rows, _configure_copy_rows,
        'Copy rows to another table, adjusting conflicting primary keys'
    ),
    'complete': (cmd_complete, _configure_complete, 'Suggest database or table names'),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='MySQL Utils - CLI utilities related to MySQL'
    )
    parser.add_argument(
        '-c', '--config',
        help='Path to configuration file (default: ~/.config/mysql-utils/config.yaml)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)
    for name, (handler, configure, summary) in COMMANDS.items():
        subparser = subparsers.add_parser(name, help=summary, description=summary)
        configure(subparser)
        subparser.set_defaults(handler=handler)

    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = ConfigLoader(args.config) if args.config else ConfigLoader.default()
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file: {e}")
        sys.exit(1)

    # Setup logging
    log_settings = dict(config.get_logging_settings())
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    try:
        status = args.handler(args, config)
    except MysqlUtilsError as e:
        logging.error(f"[{e.status}] {e}")
        sys.exit(1)
    except (MySQLError, OSError, ValueError, re.error) as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)

    if not status.is_success:
        sys.exit(1)


if __name__ == '__main__':
    main()
