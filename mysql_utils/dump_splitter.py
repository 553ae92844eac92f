"""
Split a SQL dump into one file per table.

The dump is scanned once, line by line, so arbitrarily large files can be
processed. A table is recognised only by line-prefix markers such as
``CREATE TABLE `name``` or ``-- Dumping data for table `name```; no SQL
parsing is done.
"""

import gzip
import logging
import re
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO, Union

from .errors import OutputError
from .filters import TableFilter
from .models import SplitResult


class DumpSplitter:
    """Writes each table section of a dump to its own file."""

    BOUNDARY_PATTERN = re.compile(
        r'^(?:-- Table structure for table'
        r'|-- Dumping data for table'
        r'|CREATE TABLE IF NOT EXISTS'
        r'|CREATE TABLE'
        r'|DROP TABLE IF EXISTS) `([^`]+)`'
    )

    def __init__(
        self,
        table_filter: Optional[TableFilter] = None,
        output_dir: Optional[Union[str, Path]] = None,
        overwrite: bool = False,
        stop_after_table: Optional[str] = None,
        stop_after_pattern: Optional[Union[str, re.Pattern]] = None
    ):
        self.table_filter = table_filter or TableFilter()
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.overwrite = overwrite
        self.stop_after_table = stop_after_table
        if isinstance(stop_after_pattern, str):
            stop_after_pattern = re.compile(stop_after_pattern)
        self.stop_after_pattern = stop_after_pattern

        self._current_table: Optional[str] = None
        self._writer: Optional[TextIO] = None
        self._seen_tables: set[str] = set()

    @classmethod
    def match_boundary(cls, line: str) -> Optional[str]:
        """Return the table name if the line starts a table section."""
        match = cls.BOUNDARY_PATTERN.match(line)
        return match.group(1) if match else None

    def split(self, lines: Iterable[str]) -> SplitResult:
        """
        Split dump lines into per-table files.

        Args:
            lines: Dump lines including their trailing newlines.

        Returns:
            SplitResult with the tables written and skipped.

        Raises:
            OutputError: If the output directory or a table file cannot be created.
        """
        self._prepare_output_dir()
        self._current_table = None
        self._writer = None
        self._seen_tables = set()
        result = SplitResult()

        try:
            for line in lines:
                table = self.match_boundary(line)
                if table is not None and table not in self._seen_tables:
                    previous = self._current_table
                    if self._should_stop_after(previous):
                        logging.info(f"Stopping after table '{previous}'")
                        result.stopped_after = previous
                        break
                    self._start_table(table, result)

                if self._current_table is not None and self._writer is not None:
                    self._writer.write(line)
                    result.lines_written += 1
        finally:
            self._close_writer()

        return result

    def _prepare_output_dir(self) -> None:
        if self.output_dir is None or self.output_dir.is_dir():
            return
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Can't create directory '{self.output_dir}': {e}") from e

    def _should_stop_after(self, table: Optional[str]) -> bool:
        if table is None:
            return False
        if self.stop_after_table and table == self.stop_after_table:
            return True
        return bool(self.stop_after_pattern and self.stop_after_pattern.search(table))

    def _output_path(self, table: str) -> Path:
        if self.output_dir is not None:
            return self.output_dir / table
        return Path(table)

    def _start_table(self, table: str, result: SplitResult) -> None:
        """Switch to a table not seen before, opening its file when allowed."""
        self._current_table = table
        self._seen_tables.add(table)
        self._close_writer()

        output_path = self._output_path(table)
        if not self.table_filter.accepts(table):
            logging.warning(f"Skipping table '{table}' (not included or excluded)")
            result.tables_skipped.append(table)
            return
        if output_path.exists() and not self.overwrite:
            logging.warning(f"Skipping table '{table}': file '{output_path}' already exists")
            result.tables_skipped.append(table)
            return

        logging.info(f"Writing {output_path} ...")
        try:
            self._writer = open(output_path, 'w', encoding='utf-8', errors='surrogateescape')
        except OSError as e:
            raise OutputError(f"Can't open '{output_path}': {e}") from e
        result.tables_written.append(table)

    def _close_writer(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


def open_dump(path: Union[str, Path]) -> TextIO:
    """Open a dump file for reading, decompressing .gz files."""
    path = Path(path)
    if path.suffix.lower() == '.gz':
        return gzip.open(path, 'rt', encoding='utf-8', errors='surrogateescape')
    return open(path, 'r', encoding='utf-8', errors='surrogateescape')


def iter_dump_lines(paths: Iterable[Union[str, Path]]) -> Iterator[str]:
    """Yield lines from each dump in turn; '-' or no paths reads stdin."""
    paths = list(paths) or ['-']
    for path in paths:
        if str(path) == '-':
            yield from sys.stdin
            continue
        with open_dump(path) as f:
            yield from f
