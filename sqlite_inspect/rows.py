# record format
# https://www.sqlite.org/fileformat.html#record_format
# A record contains a header and a body, in that order
from __future__ import annotations
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from sqlite_inspect.consts import (
    TEXT_ENCODING_UTF8,
    SCHEMA_TYPE_COLUMN,
    SCHEMA_NAME_COLUMN,
    SCHEMA_TABLE_NAME_COLUMN,
    SCHEMA_ROOTPAGE_COLUMN,
    SCHEMA_SQL_COLUMN,
)
from sqlite_inspect.errors import FormatError, UnsupportedError
from sqlite_inspect.reading import read_bytes, read_int, read_varint


class SerialTypeKind(Enum):
    NULL = 0
    I8 = 1
    I16 = 2
    I24 = 3
    I32 = 4
    I48 = 5
    I64 = 6
    F64 = 7
    ZERO = 8  # the integer 0, no content bytes
    ONE = 9  # the integer 1, no content bytes
    BLOB = 12
    TEXT = 13


INTEGER_KINDS = (
    SerialTypeKind.I8,
    SerialTypeKind.I16,
    SerialTypeKind.I24,
    SerialTypeKind.I32,
    SerialTypeKind.I48,
    SerialTypeKind.I64,
    SerialTypeKind.ZERO,
    SerialTypeKind.ONE,
)

# content size of every fixed width kind, blobs and text carry their own
FIXED_KIND_LENGTHS = {
    SerialTypeKind.NULL: 0,
    SerialTypeKind.I8: 1,
    SerialTypeKind.I16: 2,
    SerialTypeKind.I24: 3,
    SerialTypeKind.I32: 4,
    SerialTypeKind.I48: 6,
    SerialTypeKind.I64: 8,
    SerialTypeKind.F64: 8,
    SerialTypeKind.ZERO: 0,
    SerialTypeKind.ONE: 0,
}


@dataclass(frozen=True)
class SerialType:
    """
    Describes how a single column is stored in the record body.
    https://www.sqlite.org/fileformat.html#record_format
    """

    kind: SerialTypeKind
    length: int  # number of content bytes in the record body

    @staticmethod
    def from_descriptor(descriptor: int) -> SerialType:
        if 0 <= descriptor <= 9:
            kind = SerialTypeKind(descriptor)
            return SerialType(kind, FIXED_KIND_LENGTHS[kind])
        elif descriptor >= 12 and descriptor % 2 == 0:
            return SerialType(SerialTypeKind.BLOB, (descriptor - 12) // 2)
        elif descriptor >= 13 and descriptor % 2 == 1:
            return SerialType(SerialTypeKind.TEXT, (descriptor - 13) // 2)
        else:
            # 10 and 11 are reserved for internal use and never appear in files
            raise FormatError(f"Malformed serial type: {descriptor}")

    @property
    def is_integer(self) -> bool:
        return self.kind in INTEGER_KINDS


@dataclass
class RecordValue:
    serial_type: SerialType
    decoded: Any
    # True when the value's bytes live on an overflow page we don't follow
    spilled: bool = False

    @property
    def value(self) -> Any:
        if self.spilled:
            raise UnsupportedError(
                f"{self.serial_type.kind.name} value of {self.serial_type.length} bytes "
                "is stored on an overflow page"
            )
        return self.decoded

    @staticmethod
    def from_bytes(serial_type: SerialType, content: bytes, text_encoding: int) -> RecordValue:
        kind = serial_type.kind
        if kind == SerialTypeKind.NULL:
            decoded = None
        elif kind == SerialTypeKind.ZERO:
            decoded = 0
        elif kind == SerialTypeKind.ONE:
            decoded = 1
        elif kind in INTEGER_KINDS:
            # 24 and 48 bit integers are sign-extended from their top bit as well
            decoded = read_int(content, 0, serial_type.length)
        elif kind == SerialTypeKind.F64:
            decoded = struct.unpack(">d", content)[0]
        elif kind == SerialTypeKind.BLOB:
            decoded = content
        elif kind == SerialTypeKind.TEXT:
            decoded = decode_text(content, text_encoding)
        else:
            raise FormatError(f"Unknown serial type kind {kind}")

        return RecordValue(serial_type, decoded)


def decode_text(content: bytes, text_encoding: int) -> str:
    if text_encoding != TEXT_ENCODING_UTF8:
        raise UnsupportedError(f"Text encoding {text_encoding} is not supported, only UTF-8")
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"Invalid UTF-8 text in record: {e}") from e


@dataclass
class Record:
    header_size: int
    serial_types: List[SerialType]
    values: List[RecordValue]  # values[i] is stored as serial_types[i]

    @property
    def spilled(self) -> bool:
        return any(value.spilled for value in self.values)

    @staticmethod
    def parse(
        buffer: bytes,
        offset: int,
        local_size: int,
        text_encoding: int = TEXT_ENCODING_UTF8,
    ) -> Tuple[Record, int]:
        """
        Decodes the record starting at `offset`. Only `local_size` bytes of the
        payload are stored on this page; values past that point are marked as
        spilled instead of being read.

        Returns the record and the number of bytes it used on this page.
        """
        # Reference record format in https://saveriomiroddi.github.io/SQLIte-database-file-format-diagrams/
        header_size, num_header_bytes = read_varint(buffer, offset)
        if header_size > local_size:
            raise UnsupportedError("Record header continues on an overflow page")
        if header_size < num_header_bytes:
            raise FormatError(f"Record header size {header_size} is too small")

        # read all the other bytes past the bytes used to declare the header size
        i = num_header_bytes
        serial_types = []
        while i < header_size:
            descriptor, bytes_used = read_varint(buffer, offset + i)
            i += bytes_used
            serial_types.append(SerialType.from_descriptor(descriptor))
        if i != header_size:
            raise FormatError(f"Record header overruns its declared size of {header_size}")

        values = []
        spilled = False
        for serial_type in serial_types:
            # NULL, literal 0 and 1 and empty text or blobs have no content bytes
            if serial_type.length == 0:
                values.append(RecordValue.from_bytes(serial_type, b"", text_encoding))
                continue

            # once one value runs off the page, every later value with content does too
            spilled = spilled or i + serial_type.length > local_size
            if spilled:
                values.append(RecordValue(serial_type, None, spilled=True))
                continue

            content = read_bytes(buffer, offset + i, serial_type.length)
            values.append(RecordValue.from_bytes(serial_type, content, text_encoding))
            i += serial_type.length

        used = local_size if spilled else i
        return Record(header_size, serial_types, values), used


# https://www.sqlite.org/fileformat.html#storage_of_the_sql_database_schema
@dataclass
class Schema:
    table_type: str
    name: str
    table_name: str
    rootpage: int
    sql: Optional[str]  # None for automatic indexes, or when it overflows the page

    @staticmethod
    def from_record(record: Record) -> Schema:
        if len(record.values) <= SCHEMA_SQL_COLUMN:
            raise FormatError(
                f"Schema rows have 5 columns, found {len(record.values)}"
            )

        rootpage = record.values[SCHEMA_ROOTPAGE_COLUMN]
        if rootpage.serial_type.is_integer:
            rootpage_number = rootpage.value
        elif rootpage.serial_type.kind == SerialTypeKind.NULL:
            rootpage_number = 0
        else:
            raise FormatError(
                f"Schema rootpage must be an integer, got {rootpage.serial_type.kind.name}"
            )

        sql = record.values[SCHEMA_SQL_COLUMN]
        return Schema(
            table_type=_text_column(record, SCHEMA_TYPE_COLUMN),
            name=_text_column(record, SCHEMA_NAME_COLUMN),
            table_name=_text_column(record, SCHEMA_TABLE_NAME_COLUMN),
            rootpage=rootpage_number,
            sql=None if sql.spilled else sql.value,
        )


def _text_column(record: Record, column: int) -> str:
    value = record.values[column]
    if value.serial_type.kind != SerialTypeKind.TEXT:
        raise FormatError(
            f"Schema column {column} must be text, got {value.serial_type.kind.name}"
        )
    return value.value
