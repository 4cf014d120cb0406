"""
Mock connection utilities for schema driver tests.

Provides a recording DB-API connection that keeps every statement it is asked
to execute and answers queries from canned results, so driver operations can
be tested without a database.

Usage:
    def test_create(recording_connection):
        cn = recording_connection('postgresql')
        cn.respond('from pg_class', [])
        driver.create_table_if_not_exists(cn, table)
        assert cn.statements[-1][0].startswith('CREATE TABLE')
"""
import pytest


class RecordingCursor:
    """DB-API cursor that records statements and replays canned rows."""

    def __init__(self, connection):
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self._rows = []
        self.cancelled = False

    def execute(self, sql, params=None):
        self.connection.statements.append((sql, params))
        rows = self.connection.lookup(sql)
        self._rows = [tuple(row.values()) for row in rows]
        self.description = [(key, None, None, None, None, None, None)
                            for key in rows[0]] if rows else None
        self.rowcount = len(rows)
        return self

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def cancel(self):
        self.cancelled = True

    def close(self):
        pass


class RecordingConnection:
    """DB-API connection identified by its ``dialect`` attribute."""

    def __init__(self, dialect):
        self.dialect = dialect
        self.statements = []
        self._results = []
        self.interrupted = False

    def respond(self, fragment, rows):
        """Answer statements containing ``fragment`` with ``rows`` (list of dicts)."""
        self._results.append((fragment.lower(), rows))

    def lookup(self, sql):
        text = sql.lower()
        for fragment, rows in self._results:
            if fragment in text:
                return rows
        return []

    def cursor(self):
        return RecordingCursor(self)

    def cancel(self):
        self.interrupted = True

    def interrupt(self):
        self.interrupted = True

    @property
    def executed(self):
        """Statements without the catalog queries."""
        return [sql for sql, _ in self.statements
                if not sql.lstrip().lower().startswith(('select', 'pragma foreign_keys'))]


def _create_simple_mock_connection(connection_type='postgresql'):
    """
    Create a bare object whose class looks like a DB-API connection class.

    Args:
        connection_type: 'postgresql', 'sqlite', 'mysql', 'sqlserver' or 'unknown'

    Returns
        Object recognized by connection class name only
    """
    modules = {
        'postgresql': 'psycopg',
        'sqlite': 'sqlite3',
        'mysql': 'pymysql.connections',
        'sqlserver': 'pyodbc',
        'unknown': 'unknown_db',
        }
    cls = type('Connection', (), {})
    cls.__module__ = modules[connection_type]
    return cls()


@pytest.fixture
def recording_connection():
    """
    Fixture that provides a factory for recording connections.

    Returns
        Factory function taking a dialect name
    """
    def factory(dialect='postgresql'):
        return RecordingConnection(dialect)

    return factory


@pytest.fixture
def create_simple_mock_connection():
    """
    Fixture that provides a factory function to create simple mock connections.

    Returns
        Factory function that creates mock connections of specified type
    """
    def factory(connection_type='postgresql'):
        return _create_simple_mock_connection(connection_type)

    return factory
