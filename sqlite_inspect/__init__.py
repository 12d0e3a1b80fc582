from sqlite_inspect.errors import (
    SQLiteInspectError,
    FormatError,
    InvalidPageTypeError,
    BoundsError,
    NotFoundError,
    UnsupportedError,
    UsageError,
)
from sqlite_inspect.main import get_info, list_tables, count_rows
from sqlite_inspect.walker import DatabaseInfo

__all__ = [
    "SQLiteInspectError",
    "FormatError",
    "InvalidPageTypeError",
    "BoundsError",
    "NotFoundError",
    "UnsupportedError",
    "UsageError",
    "DatabaseInfo",
    "get_info",
    "list_tables",
    "count_rows",
]
