"""
Database connection management for MySQL Utils.
"""

import logging
from typing import Optional, Any

import mysql.connector
from mysql.connector import Error as MySQLError

from .models import ColumnInfo, ConnectionSettings, TableName, quote_identifier


class DatabaseConnection:
    """Manages MySQL database connections with context manager support."""

    DEFAULT_PORT = 3306
    DEFAULT_CHARSET = 'utf8mb4'

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        database: Optional[str] = None
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    @classmethod
    def from_settings(cls, settings: ConnectionSettings) -> "DatabaseConnection":
        return cls(
            host=settings.host,
            port=settings.port,
            user=settings.username,
            password=settings.password,
            database=settings.database
        )

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection.

        Autocommit is enabled: every statement is its own transaction.
        """
        try:
            self.connection = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                charset=self.DEFAULT_CHARSET,
                use_unicode=True,
                autocommit=True
            )
            logging.info(f"Connected to {self.host}:{self.port}/{self.database or 'N/A'}")
        except MySQLError as e:
            logging.error(f"Failed to connect to database: {e}")
            raise

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logging.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        finally:
            cursor.close()

    def execute(self, statement: str, params: Optional[tuple] = None) -> int:
        """Execute a statement that returns no rows and return the affected row count."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(statement, params)
            return cursor.rowcount
        finally:
            cursor.close()

    def fetch_one_dict(self, query: str, params: Optional[tuple] = None) -> Optional[dict[str, Any]]:
        """Execute a query and return the first row as a column->value mapping."""
        cursor = self.connection.cursor(dictionary=True)
        try:
            cursor.execute(query, params)
            rows = cursor.fetchall()
            return rows[0] if rows else None
        finally:
            cursor.close()

    def get_cursor(self, buffered: bool = False):
        """Get a cursor for streaming large results.

        Args:
            buffered: If False (default), uses server-side cursor for memory-efficient
                     streaming of large result sets. If True, uses buffered cursor.
        """
        return self.connection.cursor(buffered=buffered)

    def get_databases(self) -> list[str]:
        """Get list of all databases visible to the user."""
        results = self.execute_query("SHOW DATABASES")
        return [row[0] for row in results]

    def get_tables(self) -> list[TableName]:
        """Get fully-qualified names of all tables in the current database."""
        results = self.execute_query(
            "SELECT TABLE_SCHEMA, TABLE_NAME FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = DATABASE() ORDER BY TABLE_NAME"
        )
        return [TableName(schema=row[0], table=row[1]) for row in results]

    def get_table_columns(self, table: str) -> list[ColumnInfo]:
        """Get column information for a table."""
        results = self.execute_query(f"DESCRIBE {quote_identifier(table)}")
        return [
            ColumnInfo(
                name=row[0],
                type=row[1],
                nullable=row[2],
                key=row[3],
                default=row[4],
                extra=row[5]
            )
            for row in results
        ]

    def get_column_values(self, table: str, column: str) -> set[Any]:
        """Get the distinct values of one column."""
        results = self.execute_query(
            f"SELECT {quote_identifier(column)} FROM {quote_identifier(table)}"
        )
        return {row[0] for row in results}
