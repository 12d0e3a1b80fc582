import os
import sys
from typing import List, Optional

from sqlite_inspect.errors import SQLiteInspectError, UsageError
from sqlite_inspect.logs import get_logger, parse_level, setup_logging
from sqlite_inspect.queries import Query
from sqlite_inspect.storage import DatabaseFile
from sqlite_inspect.walker import DatabaseInfo, SchemaWalker

LOG_LEVEL_ENV_VAR = "SQLITE_INSPECT_LOG_LEVEL"
USAGE = (
    "usage: sqlite-inspect <database path> <command>\n"
    "commands: .dbinfo | .tables | SELECT COUNT(*) FROM <table>"
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2

logger = get_logger("main")


# Every call opens the file and walks the schema again, nothing is shared
def get_info(database_file_path) -> DatabaseInfo:
    with DatabaseFile.open(database_file_path) as database_file:
        return SchemaWalker(database_file).dbinfo()


def list_tables(database_file_path) -> List[str]:
    with DatabaseFile.open(database_file_path) as database_file:
        return SchemaWalker(database_file).list_tables()


def count_rows(database_file_path, table_name: str) -> int:
    with DatabaseFile.open(database_file_path) as database_file:
        return SchemaWalker(database_file).count_rows(table_name)


def run(database_file_path, command: str) -> str:
    # parse before touching the file so usage errors don't depend on it
    query = Query.parse_command(command)
    logger.debug("Running %r against %s", query, database_file_path)

    with DatabaseFile.open(database_file_path) as database_file:
        return query.execute(SchemaWalker(database_file))


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    try:
        setup_logging(parse_level(os.environ.get(LOG_LEVEL_ENV_VAR)))
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if len(argv) != 2:
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    database_file_path, command = argv
    try:
        print(run(database_file_path, command))
    except UsageError as e:
        print(f"error: {e}\n{USAGE}", file=sys.stderr)
        return EXIT_USAGE
    except (SQLiteInspectError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
