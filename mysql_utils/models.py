"""
Data models and enums for MySQL Utils.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Optional

from .errors import InvalidTableNameError


class ResultCode(IntEnum):
    """Result codes reported per item and per operation."""
    OK = 200
    DRY_RUN = 304
    PRECONDITION_FAILED = 412
    IO_ERROR = 500

    @property
    def is_success(self) -> bool:
        return self in (ResultCode.OK, ResultCode.DRY_RUN)


class OverwritePolicy(Enum):
    """When to regenerate an existing batch output file."""
    NEVER = "none"
    IF_OLDER = "older"
    ALWAYS = "always"


@dataclass(frozen=True)
class TableName:
    """Fully-qualified table name."""
    schema: str
    table: str

    QUALIFIED_PATTERN = re.compile(r'\A`(.+)`\.`(.+)`\Z')

    def __post_init__(self):
        if not self.schema or not self.table:
            raise InvalidTableNameError(
                f"Invalid table name ({self.schema!r}, {self.table!r}), "
                f"expecting non-empty schema and table"
            )

    @classmethod
    def parse(cls, qualified: str) -> "TableName":
        """Parse a `schema`.`table` string."""
        match = cls.QUALIFIED_PATTERN.match(qualified)
        if not match:
            raise InvalidTableNameError(
                f"Invalid table name ({qualified}), expecting `schema`.`table`"
            )
        return cls(
            schema=match.group(1).replace('``', '`'),
            table=match.group(2).replace('``', '`'),
        )

    @property
    def quoted(self) -> str:
        return f"{quote_identifier(self.schema)}.{quote_identifier(self.table)}"

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}"


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"


@dataclass
class ColumnInfo:
    """Database column metadata."""
    name: str
    type: str
    nullable: str
    key: str
    default: Any
    extra: str


@dataclass
class ConnectionSettings:
    """Effective connection parameters."""
    host: str = "localhost"
    port: int = 3306
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None


@dataclass
class ItemResult:
    """Outcome for a single processed item."""
    item_id: str
    status: ResultCode
    message: str = "OK"


@dataclass
class SplitResult:
    """Statistics for a dump-splitting run."""
    status: ResultCode = ResultCode.OK
    tables_written: list[str] = field(default_factory=list)
    tables_skipped: list[str] = field(default_factory=list)
    lines_written: int = 0
    stopped_after: Optional[str] = None


@dataclass(frozen=True)
class AdjustRule:
    """Arithmetic adjustment applied to a conflicting primary key."""
    operation: str
    amount: int

    PATTERN = re.compile(r'\A\s*(\+|-|add|subtract)\s*(\d+)\s*\Z', re.IGNORECASE)

    def __post_init__(self):
        if self.operation not in ('+', '-'):
            raise ValueError(f"Unknown adjust operation '{self.operation}'")
        if self.amount < 0:
            raise ValueError("Adjust amount must not be negative")

    @classmethod
    def parse(cls, text: str) -> "AdjustRule":
        """Parse '+10', '-10', 'add 10' or 'subtract 10'."""
        match = cls.PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid adjust rule '{text}', expecting e.g. '+1000' or '-1000'")
        operation = match.group(1).lower()
        operation = {'add': '+', 'subtract': '-'}.get(operation, operation)
        return cls(operation=operation, amount=int(match.group(2)))

    def apply(self, value: int) -> int:
        if self.operation == '+':
            return value + self.amount
        return value - self.amount


@dataclass
class CopyStats:
    """Counters for a row copy run."""
    num_inserted: int = 0
    num_skipped: int = 0
    num_adjusted: int = 0


@dataclass
class BatchJob:
    """A single input file to run through the mysql client."""
    input_path: Path
    output_path: Path
    interpreter: Optional[list[str]] = None


@dataclass
class JobResult:
    """Outcome of a batch job."""
    job: BatchJob
    status: ResultCode
    skipped: bool = False
    returncode: Optional[int] = None
    message: str = ""


@dataclass
class QueryResult:
    """Columns and rows returned by a query."""
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
