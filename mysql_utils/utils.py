"""
Utility functions for MySQL Utils.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterable

from .models import CopyStats, ItemResult, JobResult, ResultCode, SplitResult


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def dry_run_default(environ: dict[str, str] = None) -> bool:
    """Dry-run is on unless DRY_RUN is set to a false value."""
    environ = os.environ if environ is None else environ
    value = environ.get('DRY_RUN')
    if value is None:
        return True
    return value.strip().lower() not in ('0', 'false', 'no', 'off', '')


def aggregate_status(statuses: Iterable[ResultCode]) -> ResultCode:
    """Return the worst status, or OK when there are none."""
    worst = ResultCode.OK
    for status in statuses:
        if not status.is_success:
            return status
        if status == ResultCode.DRY_RUN:
            worst = ResultCode.DRY_RUN
    return worst


def log_item_results(results: list[ItemResult]) -> ResultCode:
    """Log per-item results and return the aggregate status."""
    for item in results:
        logging.info(f"  [{int(item.status)}] {item.item_id}: {item.message}")
    logging.info(f"Processed {len(results)} table(s)")
    return aggregate_status(item.status for item in results)


def log_job_results(results: list[JobResult]) -> ResultCode:
    """Log a batch summary and return the aggregate status."""
    ran = [r for r in results if not r.skipped]
    failed = [r for r in ran if not r.status.is_success]
    logging.info(f"Jobs: {len(results)}, ran: {len(ran)}, skipped: {len(results) - len(ran)}")

    if failed:
        logging.warning(f"Failed: {len(failed)}")
        for r in failed:
            logging.warning(f"  - {r.job.input_path}: {r.message}")
    return aggregate_status(r.status for r in results)


def log_split_result(result: SplitResult) -> None:
    logging.info(
        f"Tables written: {len(result.tables_written)}, skipped: {len(result.tables_skipped)}, "
        f"lines: {result.lines_written}"
    )


def log_copy_stats(stats: CopyStats, dry_run: bool) -> ResultCode:
    logging.info(
        f"Inserted: {stats.num_inserted}, Skipped: {stats.num_skipped}, Adjusted: {stats.num_adjusted}"
    )
    return ResultCode.DRY_RUN if dry_run else ResultCode.OK
