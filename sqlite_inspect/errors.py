"""
Errors raised while decoding a database file.

Every query is single-shot and read-only, so any of these aborts the query
that raised it and nothing else.
"""


class SQLiteInspectError(Exception):
    """Base class for every error raised by sqlite_inspect."""


class FormatError(SQLiteInspectError):
    """The file contents do not follow the SQLite file format."""


class InvalidPageTypeError(FormatError):
    def __init__(self, type_byte: int):
        super().__init__(f"Invalid page type: {type_byte:#04x}")
        self.type_byte = type_byte


class BoundsError(SQLiteInspectError):
    """An offset, pointer or page number points outside the available bytes."""


class NotFoundError(SQLiteInspectError):
    def __init__(self, table_name: str):
        super().__init__(f"No such table: {table_name}")
        self.table_name = table_name


class UnsupportedError(SQLiteInspectError):
    """Valid SQLite content this reader does not handle (index pages, overflow
    payloads, UTF-16 text)."""


class UsageError(SQLiteInspectError):
    """The command given on the command line is not one we understand."""
