"""
Cross-dialect schema engine for SQLite, SQL Server, MySQL and PostgreSQL.

A provider-neutral schema model (tables, columns, constraints, indexes,
views) is mapped onto each dialect's types and DDL by a schema driver chosen
from the connection:

    driver = schemakit.get_driver(cn)
    driver.create_table_if_not_exists(cn, table)
"""
__version__ = '0.1.0'

from schemakit.adapters import DataTypeCategory, DataTypeInfo
from schemakit.adapters import DialectTypeDescriptor, HostTypeDescriptor
from schemakit.cancellation import CancellationToken
from schemakit.config import TypeMappingConfig
from schemakit.dialect import Dialect
from schemakit.drivers import DialectDriver, get_available_dialects
from schemakit.drivers import get_driver, get_driver_class
from schemakit.drivers import get_driver_for_dialect, is_supported_dialect
from schemakit.drivers import register_driver
from schemakit.exceptions import ConfigurationError, OperationCancelled
from schemakit.exceptions import SchemaError, SchemaKitError, TypeMappingError
from schemakit.model import CheckConstraint, Column, ColumnOrder
from schemakit.model import DefaultConstraint, ForeignKeyAction
from schemakit.model import ForeignKeyConstraint, Index, OrderedColumn
from schemakit.model import PrimaryKeyConstraint, Table, UniqueConstraint
from schemakit.model import View
from schemakit.options import UNLIMITED, settings
from schemakit.utils import get_dialect

__all__ = [
    'CancellationToken',
    'CheckConstraint',
    'Column',
    'ColumnOrder',
    'ConfigurationError',
    'DataTypeCategory',
    'DataTypeInfo',
    'DefaultConstraint',
    'Dialect',
    'DialectDriver',
    'DialectTypeDescriptor',
    'ForeignKeyAction',
    'ForeignKeyConstraint',
    'HostTypeDescriptor',
    'Index',
    'OperationCancelled',
    'OrderedColumn',
    'PrimaryKeyConstraint',
    'SchemaError',
    'SchemaKitError',
    'Table',
    'TypeMappingConfig',
    'TypeMappingError',
    'UNLIMITED',
    'UniqueConstraint',
    'View',
    'get_available_dialects',
    'get_dialect',
    'get_driver',
    'get_driver_class',
    'get_driver_for_dialect',
    'is_supported_dialect',
    'register_driver',
    'settings',
]
