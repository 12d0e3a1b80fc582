import logging
from pathlib import Path

import pytest

from sqlite_inspect.logs import ROOT_LOGGER_NAME
from tests.builders import create_sqlite_database


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs a handler on the package logger, drop it after each test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fruit_db(tmp_path: Path) -> Path:
    """apples with 4 rows, oranges with 6, plus the sqlite_sequence table."""
    return create_sqlite_database(
        tmp_path / "fruit.db",
        [
            "CREATE TABLE apples (id integer primary key autoincrement, name text, color text)",
            (
                "INSERT INTO apples (name, color) VALUES (?, ?)",
                [
                    ("Granny Smith", "Light Green"),
                    ("Fuji", "Red"),
                    ("Honeycrisp", "Blush Red"),
                    ("Golden Delicious", "Yellow"),
                ],
            ),
            "CREATE TABLE oranges (id integer primary key autoincrement, name text, description text)",
            (
                "INSERT INTO oranges (name, description) VALUES (?, ?)",
                [(f"orange {i}", "juicy") for i in range(6)],
            ),
        ],
    )


@pytest.fixture
def write_database(tmp_path: Path):
    """Writes raw database bytes to a temporary file and returns its path."""

    def write(contents: bytes, name: str = "synthetic.db") -> Path:
        path = tmp_path / name
        path.write_bytes(contents)
        return path

    return write
