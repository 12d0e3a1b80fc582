from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from sqlite_inspect.consts import (
    DB_FILE_HEADER_SIZE,
    SQLITE_MAGIC,
    MIN_PAGE_SIZE,
    MAX_PAGE_SIZE,
    LARGEST_PAGE_SIZE,
    MAX_EMBEDDED_PAYLOAD_FRACTION,
    MIN_EMBEDDED_PAYLOAD_FRACTION,
    LEAF_PAYLOAD_FRACTION,
    TEXT_ENCODING_UTF8,
    TEXT_ENCODING_UTF16BE,
)
from sqlite_inspect.errors import BoundsError, FormatError
from sqlite_inspect.reading import read_bytes, read_uint


def decode_page_size(raw: int) -> int:
    """
    The page size is stored in 2 bytes, so 65536 is represented as 1.
    Any other value must be a power of two between 512 and 32768.
    """
    if raw == 1:
        return LARGEST_PAGE_SIZE
    if raw < MIN_PAGE_SIZE or raw > MAX_PAGE_SIZE:
        raise FormatError(f"Page size {raw} is not in [{MIN_PAGE_SIZE}, {MAX_PAGE_SIZE}]")
    if raw & (raw - 1) != 0:
        raise FormatError(f"Page size {raw} is not a power of two")
    return raw


@dataclass(frozen=True)
class DatabaseHeader:
    """
    The first 100 bytes of the database file, as described in
    https://www.sqlite.org/fileformat.html#the_database_header

    Parsed once when a file is opened. Every page fetch is sized from page_size.
    """

    page_size: int
    format_write_version: int  # 1 for rollback journalling, 2 for WAL
    format_read_version: int
    reserved_space: int  # unused bytes at the end of every page, usually 0
    max_embedded_payload: int
    min_embedded_payload: int
    leaf_payload: int
    file_change_count: int
    page_count: int  # only trustworthy when file_change_count == version_valid_for
    freelist_trunk_page: int
    freelist_page_count: int
    schema_cookie: int
    schema_format: int
    default_page_cache_size: int
    vacuum_root_page: Optional[int]  # None when auto-vacuum is off
    text_encoding: int
    user_version: int
    incremental_vacuum: bool
    application_id: int
    version_valid_for: int
    sqlite_version: int

    @property
    def usable_size(self) -> int:
        return self.page_size - self.reserved_space

    @staticmethod
    def from_bytes(data: bytes) -> DatabaseHeader:
        if len(data) < DB_FILE_HEADER_SIZE:
            raise BoundsError(
                f"Database header needs {DB_FILE_HEADER_SIZE} bytes, got {len(data)}"
            )

        magic = read_bytes(data, 0, len(SQLITE_MAGIC))
        if magic != SQLITE_MAGIC:
            raise FormatError(f"Not an SQLite database, bad magic string {magic!r}")

        page_size = decode_page_size(read_uint(data, 16, 2))

        format_write_version = data[18]
        format_read_version = data[19]
        for name, version in (
            ("write", format_write_version),
            ("read", format_read_version),
        ):
            if version not in (1, 2):
                raise FormatError(f"Invalid file format {name} version: {version}")

        for name, value, expected in (
            ("Maximum embedded payload fraction", data[21], MAX_EMBEDDED_PAYLOAD_FRACTION),
            ("Minimum embedded payload fraction", data[22], MIN_EMBEDDED_PAYLOAD_FRACTION),
            ("Leaf payload fraction", data[23], LEAF_PAYLOAD_FRACTION),
        ):
            if value != expected:
                raise FormatError(f"{name} must be {expected}, got {value}")

        freelist_trunk_page = read_uint(data, 32, 4)
        freelist_page_count = read_uint(data, 36, 4)
        if (freelist_trunk_page == 0) != (freelist_page_count == 0):
            raise FormatError(
                "Freelist trunk page and freelist page count disagree: "
                f"{freelist_trunk_page} and {freelist_page_count}"
            )

        schema_format = read_uint(data, 44, 4)
        if not 0 <= schema_format <= 4:
            raise FormatError(f"Invalid schema format: {schema_format}")

        text_encoding = read_uint(data, 56, 4)
        if not TEXT_ENCODING_UTF8 <= text_encoding <= TEXT_ENCODING_UTF16BE:
            raise FormatError(f"Invalid text encoding: {text_encoding}")

        return DatabaseHeader(
            page_size=page_size,
            format_write_version=format_write_version,
            format_read_version=format_read_version,
            reserved_space=data[20],
            max_embedded_payload=data[21],
            min_embedded_payload=data[22],
            leaf_payload=data[23],
            file_change_count=read_uint(data, 24, 4),
            page_count=read_uint(data, 28, 4),
            freelist_trunk_page=freelist_trunk_page,
            freelist_page_count=freelist_page_count,
            schema_cookie=read_uint(data, 40, 4),
            schema_format=schema_format,
            default_page_cache_size=read_uint(data, 48, 4),
            vacuum_root_page=read_uint(data, 52, 4) or None,
            text_encoding=text_encoding,
            user_version=read_uint(data, 60, 4),
            incremental_vacuum=read_uint(data, 64, 4) != 0,
            application_id=read_uint(data, 68, 4),
            version_valid_for=read_uint(data, 92, 4),
            sqlite_version=read_uint(data, 96, 4),
        )
