from __future__ import annotations
from enum import Enum
from dataclasses import dataclass

from sqlite_inspect.consts import (
    INTERIOR_PAGE_HEADER_SIZE,
    LEAF_PAGE_HEADER_SIZE,
    DB_FILE_HEADER_SIZE,
    CELL_POINTER_SIZE,
    CHILD_POINTER_SIZE,
    LARGEST_PAGE_SIZE,
    TEXT_ENCODING_UTF8,
)
from sqlite_inspect.cells import Cell, read_table_interior_cell, read_table_leaf_cell
from sqlite_inspect.errors import BoundsError, InvalidPageTypeError, UnsupportedError
from sqlite_inspect.reading import read_bytes, read_uint

from typing import List, Optional


class PageType(Enum):
    INTERIOR_INDEX = 0x02
    INTERIOR_TABLE = 0x05
    """
    Page type used to point to the multiple pages that span a specific table.
    Its cell pointer array and right most pointer can be used to find a specific key range

    Interior Page cell array Example:

|   Ptr1 | Key1 | Ptr2 | Key2 | Ptr3 | Key3 | Right-Most Ptr |
    Ptr1 → Points to keys <= Key1
    Ptr2 → Points to keys Key1 < x <= Key2
    Ptr3 → Points to keys Key2 < x <= Key3
    Right-Most Ptr → Points to keys > Key3
    """
    LEAF_INDEX = 0x0A
    LEAF_TABLE = 0x0D

    @staticmethod
    def from_byte(type_byte: int) -> PageType:
        try:
            return PageType(type_byte)
        except ValueError:
            raise InvalidPageTypeError(type_byte) from None

    @property
    def is_interior(self) -> bool:
        return self in (PageType.INTERIOR_INDEX, PageType.INTERIOR_TABLE)

    @property
    def header_size(self) -> int:
        return INTERIOR_PAGE_HEADER_SIZE if self.is_interior else LEAF_PAGE_HEADER_SIZE


@dataclass(frozen=True)
class PageHeader:
    """
    The 8 (leaf) or 12 (interior) byte header at the start of every b-tree page.
    https://www.sqlite.org/fileformat2.html#b_tree_pages
    """

    page_type: PageType
    first_freeblock: int  # 0 when there are no freeblocks
    cell_count: int
    cell_area_start: int
    fragmented_free_bytes: int
    right_most_pointer: Optional[int]  # Only present in interior page headers

    @property
    def size(self) -> int:
        return self.page_type.header_size

    @staticmethod
    def from_bytes(data: bytes) -> PageHeader:
        page_type = PageType.from_byte(read_uint(data, 0, 1))
        read_bytes(data, 0, page_type.header_size)

        # A zero here means the cell content area starts at 65536
        cell_area_start = read_uint(data, 5, 2) or LARGEST_PAGE_SIZE

        right_most_pointer = None
        if page_type.is_interior:
            right_most_pointer = read_uint(data, 8, CHILD_POINTER_SIZE)

        return PageHeader(
            page_type=page_type,
            first_freeblock=read_uint(data, 1, 2),
            cell_count=read_uint(data, 3, 2),
            cell_area_start=cell_area_start,
            fragmented_free_bytes=read_uint(data, 7, 1),
            right_most_pointer=right_most_pointer,
        )


@dataclass
class Page:
    header: PageHeader
    cell_pointer_array: List[int]
    cells: List[Cell]

    @property
    def page_type(self) -> PageType:
        return self.header.page_type

    @property
    def cell_count(self) -> int:
        return self.header.cell_count

    @property
    def right_most_pointer(self) -> Optional[int]:
        return self.header.right_most_pointer

    @staticmethod
    def parse(
        buffer: bytes,
        is_first_page: bool = False,
        text_encoding: int = TEXT_ENCODING_UTF8,
        usable_size: Optional[int] = None,
    ) -> Page:
        """
        Decodes one b-tree page. For the first page, `buffer` must start right
        after the 100 byte database header.

        Parses the page header as described in https://www.sqlite.org/fileformat2.html#b_tree_pages
        and, based on that, loads the cell pointer array and every cell it points to.
        """
        if usable_size is None:
            usable_size = len(buffer) + (DB_FILE_HEADER_SIZE if is_first_page else 0)

        header = PageHeader.from_bytes(buffer)
        cell_pointer_array = Page._read_cell_pointers(buffer, header, is_first_page)

        cells = []
        for cell_pointer in cell_pointer_array:
            if header.page_type == PageType.INTERIOR_TABLE:
                cells.append(read_table_interior_cell(buffer, cell_pointer))
            elif header.page_type == PageType.LEAF_TABLE:
                cells.append(
                    read_table_leaf_cell(buffer, cell_pointer, usable_size, text_encoding)
                )
            else:
                raise UnsupportedError(f"Cells of {header.page_type.name} pages are not supported")

        return Page(header, cell_pointer_array, cells)

    #  The cell pointer array consists of K 2-byte integer offsets to the cell contents.
    @staticmethod
    def _read_cell_pointers(buffer: bytes, header: PageHeader, is_first_page: bool) -> List[int]:
        pointers = []
        for i in range(header.cell_count):
            cell_pointer = read_uint(buffer, header.size + i * CELL_POINTER_SIZE, CELL_POINTER_SIZE)
            # Offsets on the first page count the 100 byte database header we've skipped
            if is_first_page:
                cell_pointer -= DB_FILE_HEADER_SIZE
            if cell_pointer < 0 or cell_pointer >= len(buffer):
                raise BoundsError(
                    f"Cell pointer {i} points to offset {cell_pointer}, outside the page"
                )
            pointers.append(cell_pointer)
        return pointers
