from sqlite_inspect.consts import (
    CONTINUATION_BIT,
    LAST_SEVEN_BITS_MASK,
    MAX_VARINT_SIZE,
)
from sqlite_inspect.errors import BoundsError
from typing import Tuple


def page_start(page_index: int, page_size: int) -> int:
    return page_index * page_size


def read_bytes(buffer: bytes, offset: int, length: int) -> bytes:
    """
    Slices `length` bytes starting at `offset`, failing instead of silently
    returning a short slice the way plain slicing would.
    """
    if offset < 0 or length < 0 or offset + length > len(buffer):
        raise BoundsError(
            f"Cannot read {length} bytes at offset {offset} of a {len(buffer)} byte buffer"
        )
    return bytes(buffer[offset : offset + length])


def read_uint(buffer: bytes, offset: int, length: int) -> int:
    """All multi-byte integers in the file format are big-endian."""
    return int.from_bytes(read_bytes(buffer, offset, length), "big")


def read_int(buffer: bytes, offset: int, length: int) -> int:
    """Big-endian twos-complement integer, sign-extended from its top bit."""
    return int.from_bytes(read_bytes(buffer, offset, length), "big", signed=True)


def read_varint(buffer: bytes, offset: int = 0) -> Tuple[int, int]:
    # https://www.sqlite.org/fileformat.html#varint
    # Returns the decoded value along with how many bytes it took (1 to 9).
    value = 0
    for c in range(MAX_VARINT_SIZE):
        position = offset + c
        if position >= len(buffer) or position < 0:
            raise BoundsError(f"Varint at offset {offset} runs past the end of the buffer")

        byte = buffer[position]
        if c == MAX_VARINT_SIZE - 1:
            # The 9th byte contributes all of its 8 bits
            value = (value << 8) | byte
            break

        value = (value << 7) | (byte & LAST_SEVEN_BITS_MASK)
        # Continue extracting the 7 least significant bits until the most significant bit is 0
        if (byte & CONTINUATION_BIT) == 0:
            return value, c + 1

    # 9 byte varints fill all 64 bits, reinterpret them as a signed value
    if value >= 1 << 63:
        value -= 1 << 64
    return value, MAX_VARINT_SIZE
