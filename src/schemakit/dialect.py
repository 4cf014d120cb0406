"""
Dialect identity for the supported database systems.

The enumeration values match SQLAlchemy dialect names so that SQLAlchemy
connections and engines identify themselves without translation.
"""
from enum import Enum

from schemakit.exceptions import ConfigurationError


class Dialect(str, Enum):
    """Closed set of dialects plus an extensibility slot.
    """
    SQLITE = 'sqlite'
    SQLSERVER = 'mssql'
    MYSQL = 'mysql'
    POSTGRESQL = 'postgresql'
    OTHER = 'other'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: 'str | Dialect') -> 'Dialect':
        """Resolve a dialect from its value or a common alias.

        Args:
            name: Dialect value, alias or Dialect member

        Returns
            Dialect member

        Raises
            ConfigurationError: If the name is not a known dialect
        """
        if isinstance(name, Dialect):
            return name
        key = str(name or '').strip().lower()
        dialect = _ALIASES.get(key)
        if dialect is None:
            raise ConfigurationError(f'Unknown dialect: {name!r}')
        return dialect


_ALIASES: dict[str, Dialect] = {d.value: d for d in Dialect}
_ALIASES.update({
    'sqlite3': Dialect.SQLITE,
    'sqlserver': Dialect.SQLSERVER,
    'sql_server': Dialect.SQLSERVER,
    'mssqlserver': Dialect.SQLSERVER,
    'pyodbc': Dialect.SQLSERVER,
    'mariadb': Dialect.MYSQL,
    'pymysql': Dialect.MYSQL,
    'postgres': Dialect.POSTGRESQL,
    'pg': Dialect.POSTGRESQL,
    'pgsql': Dialect.POSTGRESQL,
    'psycopg': Dialect.POSTGRESQL,
})
