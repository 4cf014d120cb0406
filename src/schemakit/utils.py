"""Low-level connection utilities.

These helpers work with raw DB-API connections, SQLAlchemy connections and
simple wrappers exposing ``dialect`` or ``dbapi_connection``. They import
nothing from the driver layer, so every module can use them without circular
dependency concerns.
"""
import logging
import re
import threading
from typing import Any

import cachetools
import sqlalchemy as sa
from schemakit.dialect import Dialect
from schemakit.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_MODULE_MARKERS = (
    ('psycopg', Dialect.POSTGRESQL),
    ('sqlite3', Dialect.SQLITE),
    ('pymysql', Dialect.MYSQL),
    ('MySQLdb', Dialect.MYSQL),
    ('pyodbc', Dialect.SQLSERVER),
    ('pymssql', Dialect.SQLSERVER),
    )

_VERSION_PATTERN = re.compile(r'\d+(\.\d+)+')


@cachetools.cached(cachetools.LRUCache(maxsize=64), lock=threading.RLock())
def _dialect_for_class(cls: type) -> Dialect | None:
    """Dialect implied by a connection class, established once per class."""
    type_name = f'{cls.__module__}.{cls.__name__}'
    for marker, dialect in _MODULE_MARKERS:
        if marker in type_name:
            logger.debug(f'Connection class {type_name} identified as {dialect}')
            return dialect
    return None


def get_dialect(obj: Any) -> Dialect:
    """Get the dialect of a database connection, engine or wrapper.

    Raises
        ConfigurationError: If the connection type maps to no known dialect
    """
    if isinstance(obj, Dialect):
        return obj

    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return Dialect.parse(dialect)
        return Dialect.parse(str(dialect.name))

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return Dialect.parse(str(obj.engine.dialect.name))

    if hasattr(obj, 'dbapi_connection'):
        return get_dialect(obj.dbapi_connection)

    dialect = _dialect_for_class(type(obj))
    if dialect is None:
        raise ConfigurationError(
            f'Cannot determine dialect for connection type '
            f'{type(obj).__module__}.{type(obj).__name__}')
    return dialect


def get_dialect_name(obj: Any) -> str:
    """Get the dialect name (SQLAlchemy naming) for a connection."""
    return get_dialect(obj).value


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DB-API connection from a wrapper.

    An Engine is rejected: every operation runs on a connection the caller
    already holds.
    """
    if isinstance(connection, sa.engine.Engine):
        raise ConfigurationError('An open connection is required, got an Engine')
    if isinstance(connection, sa.engine.Connection):
        return connection.connection.dbapi_connection
    if hasattr(connection, 'dbapi_connection'):
        return connection.dbapi_connection
    return connection


def extract_version(version_string: str | None) -> tuple[int, ...] | None:
    """Parse the first dotted version number found in a server version string.

    >>> extract_version('PostgreSQL 16.2 on x86_64-pc-linux-gnu')
    (16, 2)
    >>> extract_version('8.0.36-0ubuntu0.22.04.1')
    (8, 0, 36)
    """
    match = _VERSION_PATTERN.search(version_string or '')
    if not match:
        return None
    return tuple(int(part) for part in match.group(0).split('.'))
