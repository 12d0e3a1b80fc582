"""Helpers that assemble SQLite pages and files byte by byte for tests."""

import sqlite3
import struct
from pathlib import Path
from typing import List, Optional, Sequence

from sqlite_inspect.consts import DB_FILE_HEADER_SIZE, SQLITE_MAGIC
from sqlite_inspect.pages import PageType

_U64_MASK = 0xFFFFFFFFFFFFFFFF


def encode_varint(value: int) -> bytes:
    """Canonical varint encoding, the inverse of read_varint."""
    v = value & _U64_MASK
    if v & (0xFF000000 << 32):
        # 9 bytes: 8 bytes of 7 bits, then a full 8 bit byte
        out = [v & 0xFF]
        v >>= 8
        for _ in range(8):
            out.insert(0, (v & 0x7F) | 0x80)
            v >>= 7
        return bytes(out)

    out = []
    while True:
        out.append((v & 0x7F) | 0x80)
        v >>= 7
        if v == 0:
            break
    out[0] &= 0x7F
    return bytes(reversed(out))


def _serial(value):
    if value is None:
        return 0, b""
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int):
        if value == 0:
            return 8, b""
        if value == 1:
            return 9, b""
        for descriptor, size in ((1, 1), (2, 2), (3, 3), (4, 4), (5, 6), (6, 8)):
            if -(1 << (size * 8 - 1)) <= value < (1 << (size * 8 - 1)):
                return descriptor, value.to_bytes(size, "big", signed=True)
        raise ValueError(f"{value} does not fit in 64 bits")
    if isinstance(value, float):
        return 7, struct.pack(">d", value)
    if isinstance(value, str):
        content = value.encode("utf-8")
        return 13 + 2 * len(content), content
    if isinstance(value, bytes):
        return 12 + 2 * len(value), value
    raise TypeError(f"Cannot encode {value!r}")


def encode_record(values: Sequence) -> bytes:
    serials = [_serial(value) for value in values]
    descriptors = b"".join(encode_varint(descriptor) for descriptor, _ in serials)

    header_size = len(descriptors) + 1
    while len(encode_varint(header_size)) + len(descriptors) != header_size:
        header_size += 1

    return encode_varint(header_size) + descriptors + b"".join(content for _, content in serials)


def table_leaf_cell(rowid: int, values: Sequence) -> bytes:
    payload = encode_record(values)
    return encode_varint(len(payload)) + encode_varint(rowid) + payload


def table_interior_cell(left_child: int, key: int) -> bytes:
    return left_child.to_bytes(4, "big") + encode_varint(key)


def schema_cell(rowid: int, name: str, rootpage: int, table_type: str = "table") -> bytes:
    sql = f"CREATE TABLE {name} (id integer primary key, value text)"
    return table_leaf_cell(rowid, [table_type, name, name, rootpage, sql])


def btree_page(
    page_type: PageType,
    cells: List[bytes],
    page_size: int = 512,
    right_most: Optional[int] = None,
    first_page: bool = False,
) -> bytes:
    """
    Lays out a b-tree page with its header at the start (or after the 100 byte
    file header on the first page) and the cells packed at the end. Cell
    pointers are stored the way SQLite stores them, relative to the page start.
    """
    page = bytearray(page_size)
    header_start = DB_FILE_HEADER_SIZE if first_page else 0
    header_size = 12 if right_most is not None else 8

    content_start = page_size
    pointers = []
    for cell in cells:
        content_start -= len(cell)
        page[content_start : content_start + len(cell)] = cell
        pointers.append(content_start)

    header = bytearray(header_size)
    header[0] = page_type.value
    header[3:5] = len(cells).to_bytes(2, "big")
    header[5:7] = (content_start % 65536).to_bytes(2, "big")
    if right_most is not None:
        header[8:12] = right_most.to_bytes(4, "big")
    page[header_start : header_start + header_size] = header

    pointer_start = header_start + header_size
    for i, pointer in enumerate(pointers):
        page[pointer_start + 2 * i : pointer_start + 2 * i + 2] = pointer.to_bytes(2, "big")

    if pointer_start + 2 * len(pointers) > content_start:
        raise ValueError("Cells do not fit in the page")
    return bytes(page)


def database_header(
    page_size: int = 512,
    page_count: int = 1,
    text_encoding: int = 1,
    schema_format: int = 4,
) -> bytes:
    header = bytearray(DB_FILE_HEADER_SIZE)
    header[0:16] = SQLITE_MAGIC
    header[16:18] = (1 if page_size == 65536 else page_size).to_bytes(2, "big")
    header[18] = 1
    header[19] = 1
    header[20] = 0
    header[21] = 64
    header[22] = 32
    header[23] = 32
    header[24:28] = (1).to_bytes(4, "big")
    header[28:32] = page_count.to_bytes(4, "big")
    header[40:44] = (1).to_bytes(4, "big")
    header[44:48] = schema_format.to_bytes(4, "big")
    header[56:60] = text_encoding.to_bytes(4, "big")
    header[92:96] = (1).to_bytes(4, "big")
    header[96:100] = (3045000).to_bytes(4, "big")
    return bytes(header)


def database_file(pages: List[bytes], page_size: int = 512, **header_fields) -> bytes:
    """Joins pages into a file, writing the database header over page 1's first 100 bytes."""
    header = database_header(page_size=page_size, page_count=len(pages), **header_fields)
    first_page = header + pages[0][DB_FILE_HEADER_SIZE:]
    return first_page + b"".join(pages[1:])


def create_sqlite_database(path: Path, statements, page_size: int = 4096, encoding: str = "UTF-8") -> Path:
    """
    Builds a real database with the sqlite3 module. A statement given as a
    tuple is run with executemany.
    """
    connection = sqlite3.connect(path)
    try:
        # both only take effect before the first table is created
        connection.execute(f"PRAGMA page_size = {page_size}")
        connection.execute(f"PRAGMA encoding = '{encoding}'")
        for statement in statements:
            if isinstance(statement, tuple):
                connection.executemany(*statement)
            else:
                connection.execute(statement)
        connection.commit()
    finally:
        connection.close()
    return path
