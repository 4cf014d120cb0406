import sqlite3

import pytest
from schemakit import get_driver_for_dialect

import config


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite database in autocommit mode, as table rebuilds require."""
    conn = sqlite3.connect(config.sqlite.database, isolation_level=None)
    conn.execute('pragma foreign_keys = 1')
    yield conn
    conn.close()


@pytest.fixture
def sqlite_driver():
    return get_driver_for_dialect('sqlite')
