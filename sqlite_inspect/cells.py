from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from sqlite_inspect.consts import CHILD_POINTER_SIZE, TEXT_ENCODING_UTF8
from sqlite_inspect.errors import BoundsError, FormatError
from sqlite_inspect.logs import get_logger
from sqlite_inspect.reading import read_uint, read_varint
from sqlite_inspect.rows import Record

logger = get_logger("cells")


@dataclass
class TableInteriorCell:
    """
    Cell type used by interior table pages. Every row in the subtree rooted at
    left_child has a rowid less than or equal to key.
    """

    left_child: int  # 1-based page number
    key: int  # largest rowid in the left_child subtree


@dataclass
class TableLeafCell:
    """Cell type used by leaf table pages, holding one row."""

    payload_size: int
    rowid: int
    record: Record
    # first page of the overflow chain, only set when the payload does not fit
    overflow_page: Optional[int] = None


Cell = Union[TableInteriorCell, TableLeafCell]


def local_payload_size(payload_size: int, usable_size: int) -> int:
    """
    How many payload bytes of a table leaf cell are stored on the page itself.
    https://www.sqlite.org/fileformat.html#cellformat
    """
    max_local = usable_size - 35
    if payload_size <= max_local:
        return payload_size

    min_local = ((usable_size - 12) * 32 // 255) - 23
    local = min_local + (payload_size - min_local) % (usable_size - 4)
    return local if local <= max_local else min_local


def read_table_interior_cell(buffer: bytes, offset: int) -> TableInteriorCell:
    left_child = read_uint(buffer, offset, CHILD_POINTER_SIZE)
    key, _ = read_varint(buffer, offset + CHILD_POINTER_SIZE)
    return TableInteriorCell(left_child, key)


def read_table_leaf_cell(
    buffer: bytes,
    offset: int,
    usable_size: int,
    text_encoding: int = TEXT_ENCODING_UTF8,
) -> TableLeafCell:
    # See https://saveriomiroddi.github.io/SQLIte-database-file-format-diagrams/ for the layout
    payload_size, size_bytes = read_varint(buffer, offset)
    rowid, rowid_bytes = read_varint(buffer, offset + size_bytes)
    if payload_size < 0:
        raise FormatError(f"Negative payload size {payload_size} at offset {offset}")

    payload_start = offset + size_bytes + rowid_bytes
    local_size = local_payload_size(payload_size, usable_size)
    if payload_start + local_size > len(buffer):
        raise BoundsError(
            f"Cell payload at offset {payload_start} runs past the end of the page"
        )

    record, used = Record.parse(buffer, payload_start, local_size, text_encoding)

    overflow_page = None
    if local_size < payload_size:
        if used != local_size:
            raise FormatError(
                f"Record of row {rowid} ends after {used} bytes, before the "
                f"{local_size} bytes stored on the page"
            )
        # the rest of the payload lives on overflow pages, which we don't follow
        overflow_page = read_uint(buffer, payload_start + local_size, CHILD_POINTER_SIZE)
        logger.warning(
            "Row %d spills %d payload bytes onto overflow page %d, which is not read",
            rowid,
            payload_size - local_size,
            overflow_page,
        )
    elif used != payload_size:
        raise FormatError(
            f"Record of row {rowid} uses {used} bytes but its payload is {payload_size}"
        )

    return TableLeafCell(payload_size, rowid, record, overflow_page)
