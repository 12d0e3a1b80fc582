from __future__ import annotations
import re
from enum import Enum

import sqlparse
from sqlparse.sql import Identifier, Statement
from sqlparse.tokens import DML, Keyword, Name, Punctuation, Whitespace, Newline

from sqlite_inspect.errors import UsageError
from sqlite_inspect.walker import SchemaWalker

from typing import List, Optional

COUNT_ALL_FUNCTION = "count(*)"
QUOTE_PAIRS = {'"': '"', "`": "`", "[": "]"}


class QueryKind(Enum):
    DBINFO = ".dbinfo"
    TABLES = ".tables"
    COUNT_ROWS = "count"


class Query:
    kind: QueryKind
    table_name: Optional[str]  # only set for COUNT_ROWS

    def __init__(self, kind: QueryKind, table_name: Optional[str] = None):
        self.kind = kind
        self.table_name = table_name

    def __repr__(self) -> str:
        return f"Query({self.kind.name}, {self.table_name!r})"

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Query)
            and self.kind == other.kind
            and self.table_name == other.table_name
        )

    @staticmethod
    def parse_command(command: str) -> Query:
        """
        Accepts the dot commands `.dbinfo` and `.tables`, and the single SQL
        statement `SELECT COUNT(*) FROM <table>`.
        """
        command = command.strip()
        if command == QueryKind.DBINFO.value:
            return Query(QueryKind.DBINFO)
        if command == QueryKind.TABLES.value:
            return Query(QueryKind.TABLES)
        if command.startswith("."):
            raise UsageError(f"Unknown command: {command}")

        statements = [s for s in sqlparse.parse(command) if str(s).strip()]
        if len(statements) != 1:
            raise UsageError(f"Expected exactly one SQL statement, got {len(statements)}")

        return Query(QueryKind.COUNT_ROWS, Query._extract_count_table_name(statements[0]))

    @staticmethod
    def _extract_count_table_name(statement: Statement) -> str:
        tokens = _meaningful_tokens(statement)

        if len(tokens) != 4:
            raise UsageError(f"Only SELECT COUNT(*) FROM <table> is supported, got: {statement}")

        select, count, from_keyword, table = tokens
        if select.ttype is not DML or select.value.upper() != "SELECT":
            raise UsageError("Only SELECT queries are supported")
        # sqlparse tokenizes COUNT(*) as a Function group, compare its text
        if re.sub(r"\s+", "", count.value).lower() != COUNT_ALL_FUNCTION:
            raise UsageError(f"Only COUNT(*) can be selected, got: {count.value}")
        if from_keyword.ttype is not Keyword or from_keyword.value.upper() != "FROM":
            raise UsageError(f"Expected FROM, got: {from_keyword.value}")

        return _table_name(table)

    def execute(self, walker: SchemaWalker) -> str:
        """Runs the query and returns the text to print."""
        if self.kind == QueryKind.DBINFO:
            info = walker.dbinfo()
            return f"database page size: {info.page_size}\nnumber of tables: {info.table_count}"
        elif self.kind == QueryKind.TABLES:
            return " ".join(walker.list_tables()).strip()
        elif self.kind == QueryKind.COUNT_ROWS:
            return str(walker.count_rows(self.table_name))
        else:
            raise UsageError(f"Unknown query kind {self.kind}")


def _meaningful_tokens(statement: Statement) -> List:
    return [
        token
        for token in statement.tokens
        if token.ttype not in (Whitespace, Newline)
        and not (token.ttype is Punctuation and token.value == ";")
    ]


def _table_name(token) -> str:
    if isinstance(token, Identifier):
        if token.has_alias() or "." in token.value:
            raise UsageError(f"Expected a plain table name, got: {token.value}")
        return token.get_real_name()
    # table names that collide with keywords aren't grouped into an Identifier
    if token.ttype in Name or token.ttype in Keyword:
        return _unquote(token.value)
    raise UsageError(f"Expected a table name, got: {token.value}")


def _unquote(name: str) -> str:
    """Removes one matching pair of identifier quotes, if present."""
    if len(name) >= 2 and QUOTE_PAIRS.get(name[0]) == name[-1]:
        return name[1:-1]
    return name
