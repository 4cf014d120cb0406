"""
Schema driver factory for dialect-specific operations.
"""
from functools import lru_cache
from typing import Any

from schemakit.dialect import Dialect
from schemakit.drivers.base import _DRIVER_REGISTRY
from schemakit.drivers.base import DialectDriver as DialectDriver
from schemakit.drivers.base import TableDefinition as TableDefinition
from schemakit.drivers.base import register_driver as register_driver
from schemakit.drivers.mysql import MySQLDriver as MySQLDriver
from schemakit.drivers.postgres import PostgresDriver as PostgresDriver
from schemakit.drivers.sqlite import SQLiteDriver as SQLiteDriver
from schemakit.drivers.sqlserver import SQLServerDriver as SQLServerDriver
from schemakit.exceptions import ConfigurationError
from schemakit.utils import get_dialect


def _validate_dialect(dialect: Dialect) -> None:
    """Raise ConfigurationError if no driver is registered for the dialect."""
    if dialect not in _DRIVER_REGISTRY:
        available = [str(d) for d in _DRIVER_REGISTRY]
        raise ConfigurationError(f'Unsupported dialect: {dialect}. Available: {available}')


@lru_cache(maxsize=8)
def _get_driver(dialect: Dialect) -> DialectDriver:
    """Get cached driver instance for a dialect."""
    _validate_dialect(dialect)
    return _DRIVER_REGISTRY[dialect]()


def get_driver_for_dialect(dialect: str | Dialect) -> DialectDriver:
    """Get driver instance for a dialect name.

    This is the public interface for getting a driver when you have a dialect
    name but not a connection object.
    """
    return _get_driver(Dialect.parse(dialect))


def get_driver(cn: Any) -> DialectDriver:
    """Get schema driver for the connection."""
    return _get_driver(get_dialect(cn))


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names."""
    return [str(d) for d in _DRIVER_REGISTRY]


def is_supported_dialect(dialect: str | Dialect) -> bool:
    """Check if a dialect is supported."""
    try:
        return Dialect.parse(dialect) in _DRIVER_REGISTRY
    except ConfigurationError:
        return False


def get_driver_class(dialect: str | Dialect) -> type[DialectDriver]:
    """Get the driver class for a dialect without instantiating."""
    dialect = Dialect.parse(dialect)
    _validate_dialect(dialect)
    return _DRIVER_REGISTRY[dialect]
