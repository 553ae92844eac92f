"""
Copy rows from one table to another, adjusting conflicting primary keys.
"""

import logging
from typing import Any

from .connection import DatabaseConnection
from .errors import MissingColumnError, StructureMismatchError
from .models import AdjustRule, ColumnInfo, CopyStats, quote_identifier


class RowCopier:
    """
    Copies rows between two tables with the same structure.

    For each primary key of the source table:
    - absent from the target: the row is inserted as-is
    - present with an identical row: skipped
    - present with a different row: the key is adjusted and the row inserted,
      unless the adjusted key is also taken, in which case it is skipped

    Both key sets are loaded in full, so memory grows with the number of keys.
    """

    def __init__(self, connection: DatabaseConnection, dry_run: bool = True):
        self.connection = connection
        self.dry_run = dry_run

    def copy_rows(
        self,
        from_table: str,
        to_table: str,
        pk_column: str,
        adjust: AdjustRule
    ) -> CopyStats:
        """
        Copy rows and return the insert/skip/adjust counters.

        Raises:
            MissingColumnError: If pk_column is not a column of from_table.
            StructureMismatchError: If the two tables differ in columns.
        """
        from_columns = self.connection.get_table_columns(from_table)
        to_columns = self.connection.get_table_columns(to_table)

        if pk_column not in [col.name for col in from_columns]:
            raise MissingColumnError(f"PK column '{pk_column}' does not exist in table '{from_table}'")
        self._check_structure(from_table, from_columns, to_table, to_columns)

        from_keys = self.connection.get_column_values(from_table, pk_column)
        to_keys = self.connection.get_column_values(to_table, pk_column)
        logging.debug(f"{len(from_keys)} key(s) in '{from_table}', {len(to_keys)} key(s) in '{to_table}'")

        stats = CopyStats()
        if None in from_keys:
            logging.warning(f"Rows of '{from_table}' with NULL {pk_column} can't be matched, skipped")
            from_keys.discard(None)
            stats.num_skipped += 1
        to_keys.discard(None)

        # Keys that will exist in the target once plain inserts are done
        taken_keys = to_keys | from_keys
        column_names = [col.name for col in from_columns]

        for key in sorted(from_keys):
            row = self._fetch_row(from_table, pk_column, key)

            if key not in to_keys:
                logging.debug(f"Inserting row {pk_column}={key} ...")
                self._insert_row(to_table, column_names, row)
                stats.num_inserted += 1
                continue

            target_row = self._fetch_row(to_table, pk_column, key)
            if row == target_row:
                logging.debug(f"Row {pk_column}={key} is identical in both tables, skipped")
                stats.num_skipped += 1
                continue

            new_key = adjust.apply(key)
            if new_key in taken_keys:
                logging.debug(
                    f"Row {pk_column}={key} differs but adjusted key {new_key} "
                    f"already exists in '{to_table}', skipped"
                )
                stats.num_skipped += 1
                continue

            logging.debug(f"Inserting row {pk_column}={key} as {pk_column}={new_key} ...")
            self._insert_row(to_table, column_names, {**row, pk_column: new_key})
            taken_keys.add(new_key)
            stats.num_adjusted += 1
            stats.num_inserted += 1

        prefix = "[DRY_RUN] " if self.dry_run else ""
        logging.info(
            f"{prefix}Copied '{from_table}' to '{to_table}': inserted={stats.num_inserted}, "
            f"skipped={stats.num_skipped}, adjusted={stats.num_adjusted}"
        )
        return stats

    def _check_structure(
        self,
        from_table: str,
        from_columns: list[ColumnInfo],
        to_table: str,
        to_columns: list[ColumnInfo]
    ) -> None:
        source = {col.name: col for col in from_columns}
        target = {col.name: col for col in to_columns}

        added = [name for name in target if name not in source]
        removed = [name for name in source if name not in target]
        modified = [name for name in source if name in target and source[name] != target[name]]

        if added or removed or modified:
            raise StructureMismatchError(
                f"Structure of '{from_table}' and '{to_table}' differ "
                f"(added: {added}, removed: {removed}, modified: {modified})",
                added=added,
                removed=removed,
                modified=modified
            )

    def _fetch_row(self, table: str, pk_column: str, key: Any) -> dict[str, Any]:
        return self.connection.fetch_one_dict(
            f"SELECT * FROM {quote_identifier(table)} WHERE {quote_identifier(pk_column)} = %s",
            (key,)
        )

    def _insert_row(self, table: str, columns: list[str], row: dict[str, Any]) -> None:
        if self.dry_run:
            return
        quoted_columns = ', '.join(quote_identifier(col) for col in columns)
        placeholders = ', '.join(['%s'] * len(columns))
        self.connection.execute(
            f"INSERT INTO {quote_identifier(table)} ({quoted_columns}) VALUES ({placeholders})",
            tuple(row[col] for col in columns)
        )
