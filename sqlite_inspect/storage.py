from __future__ import annotations
import os
from typing import BinaryIO, Optional, Union

from sqlite_inspect.consts import DB_FILE_HEADER_SIZE
from sqlite_inspect.errors import BoundsError
from sqlite_inspect.header import DatabaseHeader
from sqlite_inspect.logs import get_logger
from sqlite_inspect.pages import Page
from sqlite_inspect.reading import page_start

logger = get_logger("storage")


class DatabaseFile:
    """
    Fetches whole pages from an open database file.

    Pages are addressed by their 0-based index (on-disk page number - 1).
    Nothing is cached, every call goes back to the file.
    """

    database_file: BinaryIO
    header: DatabaseHeader
    page_count: int

    def __init__(self, database_file: BinaryIO, owns_file: bool = False):
        self.database_file = database_file
        self._owns_file = owns_file

        database_file.seek(0)
        self.header = DatabaseHeader.from_bytes(database_file.read(DB_FILE_HEADER_SIZE))

        # The header's page count can be stale, the file size can't
        database_file.seek(0, os.SEEK_END)
        self.page_count = database_file.tell() // self.header.page_size
        logger.debug(
            "Opened database: page size %d, %d pages", self.header.page_size, self.page_count
        )

    @staticmethod
    def open(path: Union[str, os.PathLike]) -> DatabaseFile:
        database_file = open(path, "rb")
        try:
            return DatabaseFile(database_file, owns_file=True)
        except BaseException:
            database_file.close()
            raise

    def close(self) -> None:
        if self._owns_file:
            self.database_file.close()

    def __enter__(self) -> DatabaseFile:
        return self

    def __exit__(self, *exc_info) -> Optional[bool]:
        self.close()
        return None

    def read_page(self, page_index: int) -> bytes:
        """Returns exactly page_size bytes, short reads are an error."""
        if page_index < 0 or page_index >= self.page_count:
            raise BoundsError(
                f"Page {page_index + 1} is outside the database, which has {self.page_count} pages"
            )

        page_size = self.header.page_size
        self.database_file.seek(page_start(page_index, page_size))
        page_bytes = self.database_file.read(page_size)
        if len(page_bytes) != page_size:
            raise BoundsError(
                f"Short read of page {page_index + 1}: got {len(page_bytes)} of {page_size} bytes"
            )
        return page_bytes

    def load_page(self, page_index: int) -> Page:
        page_bytes = self.read_page(page_index)
        is_first_page = page_index == 0
        logger.debug("Decoding page %d", page_index + 1)

        # For the first page, we must skip the 100 byte database header
        if is_first_page:
            page_bytes = page_bytes[DB_FILE_HEADER_SIZE:]

        return Page.parse(
            page_bytes,
            is_first_page=is_first_page,
            text_encoding=self.header.text_encoding,
            usable_size=self.header.usable_size,
        )
