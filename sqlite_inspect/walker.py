from __future__ import annotations
import string
from dataclasses import dataclass
from typing import Iterator, List

from sqlite_inspect.cells import TableInteriorCell, TableLeafCell
from sqlite_inspect.consts import INTERNAL_TABLE_PREFIX, SCHEMA_TABLE_TYPE
from sqlite_inspect.errors import FormatError, NotFoundError, UnsupportedError
from sqlite_inspect.logs import get_logger
from sqlite_inspect.pages import Page, PageType
from sqlite_inspect.rows import Schema
from sqlite_inspect.storage import DatabaseFile

logger = get_logger("walker")

# The schema table always starts on the first page
SCHEMA_ROOT_PAGE_INDEX = 0


@dataclass(frozen=True)
class DatabaseInfo:
    page_size: int
    table_count: int


class SchemaWalker:
    """
    Answers the supported queries by walking table b-trees page by page.

    The walk keeps an explicit stack of 0-based page indices instead of
    recursing, and remembers every page it has visited so a corrupt file that
    links a page back into its own tree fails instead of looping forever.
    """

    database_file: DatabaseFile

    def __init__(self, database_file: DatabaseFile):
        self.database_file = database_file

    def leaf_pages(self, root_page_index: int) -> Iterator[Page]:
        """
        Yields every leaf page of the table b-tree rooted at root_page_index,
        left to right.
        """
        stack = [root_page_index]
        visited = set()

        while stack:
            page_index = stack.pop()
            if page_index in visited:
                raise FormatError(f"Page {page_index + 1} is linked into the tree more than once")
            visited.add(page_index)

            page = self.database_file.load_page(page_index)
            if page.page_type == PageType.LEAF_TABLE:
                yield page
            elif page.page_type == PageType.INTERIOR_TABLE:
                children = []
                for cell in page.cells:
                    if not isinstance(cell, TableInteriorCell):
                        raise TypeError(f"Expected an interior cell on page {page_index + 1}, got {cell}")
                    children.append(cell.left_child)
                # Besides the pages pointed to by the cells, the right most pointer
                # covers every rowid greater than the last key
                children.append(page.right_most_pointer)

                # pushed in reverse so the left most child is popped first
                for child in reversed(children):
                    stack.append(child - 1)
                logger.debug("Page %d points to pages %s", page_index + 1, children)
            else:
                raise UnsupportedError(
                    f"Page {page_index + 1} is an {page.page_type.name} page, "
                    "only table b-trees can be walked"
                )

    def read_sqlite_schema(self) -> Iterator[Schema]:
        for page in self.leaf_pages(SCHEMA_ROOT_PAGE_INDEX):
            for cell in page.cells:
                if not isinstance(cell, TableLeafCell):
                    raise TypeError(f"Expected a leaf cell in the schema table, got {cell}")
                yield Schema.from_record(cell.record)

    def dbinfo(self) -> DatabaseInfo:
        table_count = sum(
            1 for schema in self.read_sqlite_schema() if schema.table_type == SCHEMA_TABLE_TYPE
        )
        return DatabaseInfo(self.database_file.header.page_size, table_count)

    def list_tables(self) -> List[str]:
        return [
            schema.table_name
            for schema in self.read_sqlite_schema()
            if schema.table_type == SCHEMA_TABLE_TYPE
            and not schema.table_name.startswith(INTERNAL_TABLE_PREFIX)
        ]

    def find_table(self, table_name: str) -> Schema:
        # SQL table names ignore case, but only for ASCII letters
        folded_match = None
        for schema in self.read_sqlite_schema():
            if schema.table_type != SCHEMA_TABLE_TYPE:
                continue
            if schema.table_name == table_name:
                return schema
            if folded_match is None and _fold_ascii(schema.table_name) == _fold_ascii(table_name):
                folded_match = schema

        if folded_match is None:
            raise NotFoundError(table_name)
        return folded_match

    def count_rows(self, table_name: str) -> int:
        table_schema = self.find_table(table_name)
        logger.debug("Table %s has its root on page %d", table_name, table_schema.rootpage)

        # every cell of a leaf page is exactly one row
        return sum(page.cell_count for page in self.leaf_pages(table_schema.rootpage - 1))


ASCII_LOWERCASE_TABLE = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _fold_ascii(name: str) -> str:
    return name.translate(ASCII_LOWERCASE_TABLE)
