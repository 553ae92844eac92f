"""
Run a query and return its result as table data.
"""

import logging

from .connection import DatabaseConnection
from .models import QueryResult


class QueryRunner:
    """Executes a single statement and collects columns and rows."""

    ROW_NUMBER_COLUMN = '_row'

    def __init__(self, connection: DatabaseConnection):
        self.connection = connection

    @classmethod
    def row_number_column(cls, columns: list[str]) -> str:
        """Pick '_row', or '_row2', '_row3', ... if the name is taken."""
        name = cls.ROW_NUMBER_COLUMN
        suffix = 1
        while name in columns:
            suffix += 1
            name = f"{cls.ROW_NUMBER_COLUMN}{suffix}"
        return name

    def run(self, query: str, add_row_numbers: bool = False) -> QueryResult:
        """
        Execute the query once and fetch every row.

        Column names are lower-cased. Rows are returned in the order the
        server sends them.
        """
        logging.debug(f"Running query: {query[:200]}")
        cursor = self.connection.get_cursor()
        try:
            cursor.execute(query)
            if cursor.description is None:
                return QueryResult()

            columns = [str(desc[0]).lower() for desc in cursor.description]
            row_column = self.row_number_column(columns) if add_row_numbers else None

            rows = []
            for i, values in enumerate(cursor, start=1):
                row = dict(zip(columns, values))
                if row_column:
                    row = {row_column: i, **row}
                rows.append(row)
        finally:
            cursor.close()

        if row_column:
            columns = [row_column] + columns
        return QueryResult(columns=columns, rows=rows)
