"""
Bulk table dropping for MySQL Utils.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from .connection import DatabaseConnection
from .models import ItemResult, ResultCode, TableName


@dataclass(frozen=True)
class DropSelector:
    """Which tables to drop: all of them, a set of names, or a pattern."""
    drop_all: bool = False
    names: Optional[frozenset[str]] = None
    pattern: Optional[re.Pattern] = None
    limit: Optional[int] = None

    def __post_init__(self):
        if not self.drop_all and (self.names is None) == (self.pattern is None):
            raise ValueError("Specify exactly one of table names or table pattern")
        if self.limit is not None and self.limit < 1:
            raise ValueError("Limit must be a positive integer")

    @classmethod
    def all_tables(cls) -> "DropSelector":
        return cls(drop_all=True)

    @classmethod
    def by_names(cls, names, limit: Optional[int] = None) -> "DropSelector":
        return cls(names=frozenset(names), limit=limit)

    @classmethod
    def by_pattern(cls, pattern: Union[str, re.Pattern], limit: Optional[int] = None) -> "DropSelector":
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        return cls(pattern=pattern, limit=limit)

    def matches(self, table: str) -> bool:
        if self.drop_all:
            return True
        if self.names is not None:
            return table in self.names
        return bool(self.pattern.search(table))


class TableDropper:
    """Drops selected tables, honouring dry-run mode."""

    def __init__(self, connection: DatabaseConnection, dry_run: bool = True):
        self.connection = connection
        self.dry_run = dry_run

    def drop_tables(self, selector: DropSelector) -> list[ItemResult]:
        """
        Drop tables chosen by the selector, in listing order.

        Once more than ``selector.limit`` tables have been accepted, processing
        stops and the remaining tables are not considered.

        Raises:
            InvalidTableNameError: If the table listing returns a malformed name.
        """
        results = []
        accepted = 0

        for name in self.connection.get_tables():
            if not isinstance(name, TableName):
                name = TableName.parse(name)
            if not selector.matches(name.table):
                continue

            accepted += 1
            if selector.limit is not None and accepted > selector.limit:
                logging.info(f"Limit of {selector.limit} table(s) reached, stopping")
                break

            results.append(self._drop_table(name))

        return results

    def drop_all_tables(self) -> list[ItemResult]:
        """Drop every table in the database."""
        return self.drop_tables(DropSelector.all_tables())

    def _drop_table(self, name: TableName) -> ItemResult:
        if self.dry_run:
            logging.info(f"[DRY_RUN] Dropping table {name.quoted} ...")
            return ItemResult(item_id=str(name), status=ResultCode.DRY_RUN, message="OK (dry-run)")

        logging.info(f"Dropping table {name.quoted} ...")
        self.connection.execute(f"DROP TABLE {name.quoted}")
        return ItemResult(item_id=str(name), status=ResultCode.OK)
