"""Tests for database header validation and decoding."""

import pytest

from sqlite_inspect.errors import BoundsError, FormatError
from sqlite_inspect.header import DatabaseHeader, decode_page_size
from tests.builders import database_header


def corrupt(data: bytes, offset: int, value: int) -> bytes:
    corrupted = bytearray(data)
    corrupted[offset] = value
    return bytes(corrupted)


class TestDecodePageSize:
    def test_one_means_65536(self):
        assert decode_page_size(1) == 65536

    @pytest.mark.parametrize("raw", [512, 1024, 4096, 32768])
    def test_powers_of_two(self, raw):
        assert decode_page_size(raw) == raw

    def test_not_a_power_of_two(self):
        with pytest.raises(FormatError, match="power of two"):
            decode_page_size(513)

    @pytest.mark.parametrize("raw", [0, 256, 400])
    def test_below_minimum(self, raw):
        with pytest.raises(FormatError):
            decode_page_size(raw)


class TestDatabaseHeader:
    def test_decodes_fields(self):
        header = DatabaseHeader.from_bytes(database_header(page_size=4096, page_count=7))

        assert header.page_size == 4096
        assert header.page_count == 7
        assert header.format_write_version == 1
        assert header.format_read_version == 1
        assert header.text_encoding == 1
        assert header.schema_format == 4
        assert header.schema_cookie == 1
        assert header.vacuum_root_page is None
        assert header.incremental_vacuum is False
        assert header.sqlite_version == 3045000
        assert header.usable_size == 4096

    def test_page_size_65536(self):
        header = DatabaseHeader.from_bytes(database_header(page_size=65536))
        assert header.page_size == 65536

    def test_usable_size_subtracts_reserved_space(self):
        header = DatabaseHeader.from_bytes(corrupt(database_header(page_size=1024), 20, 32))
        assert header.usable_size == 992

    def test_is_immutable(self):
        header = DatabaseHeader.from_bytes(database_header())
        with pytest.raises(AttributeError):
            header.page_size = 1024

    @pytest.mark.parametrize("offset", range(16))
    def test_any_altered_magic_byte_fails(self, offset):
        data = database_header()
        data = corrupt(data, offset, data[offset] ^ 0xFF)
        with pytest.raises(FormatError, match="magic"):
            DatabaseHeader.from_bytes(data)

    def test_invalid_page_size(self):
        data = bytearray(database_header())
        data[16:18] = (513).to_bytes(2, "big")
        with pytest.raises(FormatError):
            DatabaseHeader.from_bytes(bytes(data))

    @pytest.mark.parametrize("offset", [18, 19])
    def test_invalid_format_versions(self, offset):
        with pytest.raises(FormatError, match="version"):
            DatabaseHeader.from_bytes(corrupt(database_header(), offset, 3))

    @pytest.mark.parametrize("offset", [21, 22, 23])
    def test_payload_fractions_are_fixed(self, offset):
        with pytest.raises(FormatError, match="fraction"):
            DatabaseHeader.from_bytes(corrupt(database_header(), offset, 16))

    def test_freelist_fields_must_agree(self):
        # trunk page set but count zero
        with pytest.raises(FormatError, match="Freelist"):
            DatabaseHeader.from_bytes(corrupt(database_header(), 35, 2))

    def test_freelist_fields_both_set(self):
        data = corrupt(corrupt(database_header(), 35, 2), 39, 1)
        header = DatabaseHeader.from_bytes(data)
        assert header.freelist_trunk_page == 2
        assert header.freelist_page_count == 1

    def test_invalid_schema_format(self):
        with pytest.raises(FormatError, match="schema format"):
            DatabaseHeader.from_bytes(database_header(schema_format=5))

    @pytest.mark.parametrize("text_encoding", [0, 4])
    def test_invalid_text_encoding(self, text_encoding):
        with pytest.raises(FormatError, match="text encoding"):
            DatabaseHeader.from_bytes(database_header(text_encoding=text_encoding))

    def test_too_short(self):
        with pytest.raises(BoundsError):
            DatabaseHeader.from_bytes(database_header()[:99])
