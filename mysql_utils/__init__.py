"""
MySQL Utils
===========
Command-line utilities related to MySQL:
- Listing and dropping tables (dry-run by default)
- Running queries and rendering results as text, CSV or JSON
- Splitting a SQL dump into one file per table
- Running batches of SQL or script files through the mysql client
- Copying rows between tables, adjusting conflicting primary keys
"""

from .batch_runner import BatchRunner, derive_output_path
from .completion import suggest_completions
from .config import ConfigLoader, read_mycnf, resolve_connection_settings
from .connection import DatabaseConnection
from .dump_splitter import DumpSplitter
from .errors import (
    InvalidTableNameError,
    MissingColumnError,
    MysqlUtilsError,
    OutputError,
    PreconditionError,
    StructureMismatchError,
)
from .filters import TableFilter
from .models import (
    AdjustRule,
    BatchJob,
    ColumnInfo,
    ConnectionSettings,
    CopyStats,
    ItemResult,
    JobResult,
    OverwritePolicy,
    QueryResult,
    ResultCode,
    SplitResult,
    TableName,
)
from .query_runner import QueryRunner
from .row_copier import RowCopier
from .table_dropper import DropSelector, TableDropper
from .utils import setup_logging

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "BatchRunner",
    "ConfigLoader",
    "DatabaseConnection",
    "DropSelector",
    "DumpSplitter",
    "QueryRunner",
    "RowCopier",
    "TableDropper",
    "TableFilter",
    # Models
    "AdjustRule",
    "BatchJob",
    "ColumnInfo",
    "ConnectionSettings",
    "CopyStats",
    "ItemResult",
    "JobResult",
    "OverwritePolicy",
    "QueryResult",
    "ResultCode",
    "SplitResult",
    "TableName",
    # Errors
    "InvalidTableNameError",
    "MissingColumnError",
    "MysqlUtilsError",
    "OutputError",
    "PreconditionError",
    "StructureMismatchError",
    # Utilities
    "derive_output_path",
    "read_mycnf",
    "resolve_connection_settings",
    "setup_logging",
    "suggest_completions",
]
