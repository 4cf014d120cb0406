"""
Schema engine exception classes.

Errors raised by the underlying DB-API driver are never wrapped or translated;
the tuples at the bottom of this module only group them for callers that want
to branch on driver errors.
"""
import sqlite3

import psycopg
import pymysql


class SchemaKitError(Exception):
    """Base class for all schemakit errors.
    """


class ConfigurationError(SchemaKitError, ValueError):
    """Invalid default setting, malformed configuration or unregistered dialect.
    """


class TypeMappingError(SchemaKitError):
    """Forward or reverse type resolution failed.

    The unresolved host type or raw dialect type string is available as
    ``type_name``.
    """

    def __init__(self, type_name: str, message: str | None = None) -> None:
        self.type_name = type_name
        super().__init__(message or f'Unable to resolve type: {type_name}')


class SchemaError(SchemaKitError):
    """Structurally invalid schema model or request.
    """


class OperationCancelled(SchemaKitError):
    """The operation was cancelled before its SQL was issued.
    """


ProgrammingError = (
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    pymysql.err.ProgrammingError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    pymysql.err.OperationalError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    pymysql.err.IntegrityError,
    )
