"""
Base class for dialect schema drivers.

A driver is assembled from one small mixin per schema-object kind (see
``schemakit.drivers.mixins``); this module adds what they share: the driver
registry, statement execution with cooperative cancellation, identifier
handling and DDL rendering.

Dialect drivers supply catalog queries through the ``_query_*`` methods and
override the ``*_sql`` builders where their syntax differs. Every public
operation takes the connection the caller already holds. Catalog state is
never cached between calls (a server's version may be, per connection), and
no operation commits, rolls back or retries.
"""
import logging
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from schemakit.adapters.type_info import DataTypeInfo
from schemakit.adapters.type_mapping import DialectTypeMap, host_category
from schemakit.adapters.type_info import DataTypeCategory
from schemakit.cancellation import interrupt_scope, raise_if_cancelled
from schemakit.config import TypeMappingConfig
from schemakit.dialect import Dialect
from schemakit.drivers.mixins import CheckConstraintMixin, ColumnMixin
from schemakit.drivers.mixins import DefaultConstraintMixin
from schemakit.drivers.mixins import ForeignKeyConstraintMixin, IndexMixin
from schemakit.drivers.mixins import PrimaryKeyConstraintMixin, SchemaMixin
from schemakit.drivers.mixins import TableMixin, UniqueConstraintMixin
from schemakit.drivers.mixins import ViewMixin
from schemakit.exceptions import SchemaError, TypeMappingError
from schemakit.model import CheckConstraint, Column, DefaultConstraint
from schemakit.model import ForeignKeyAction, ForeignKeyConstraint, Index
from schemakit.model import PrimaryKeyConstraint, Table, UniqueConstraint
from schemakit.model import View, ordered_columns
from schemakit.sql import escape_percent_signs_in_literals, quote_identifier
from schemakit.sql import standardize_placeholders, to_like_string
from schemakit.sql import unwrap_parentheses, wrap_expression
from schemakit.utils import get_raw_connection

logger = logging.getLogger(__name__)

# Registry of dialect -> driver class
# Defined here to avoid circular imports (concrete drivers import from base)
_DRIVER_REGISTRY: dict[Dialect, type['DialectDriver']] = {}

_INVALID_IDENTIFIER_CHARS = re.compile(r'[^A-Za-z0-9_]')


def register_driver(dialect: Dialect):
    """Decorator to register a driver class for a dialect.

    Usage:
        @register_driver(Dialect.POSTGRESQL)
        class PostgresDriver(DialectDriver):
            ...
    """
    def decorator(cls: type['DialectDriver']) -> type['DialectDriver']:
        _DRIVER_REGISTRY[dialect] = cls
        return cls
    return decorator


@dataclass
class TableDefinition:
    """A table's constraints and indexes with the column-level shorthand expanded.

    Column flags (``is_primary_key``, ``check_expression``, ``is_unique`` ...)
    become the same objects the table lists explicitly; explicit objects win
    when both name the same thing.
    """
    primary_key: PrimaryKeyConstraint | None = None
    check_constraints: list[CheckConstraint] = field(default_factory=list)
    default_constraints: dict[str, DefaultConstraint] = field(default_factory=dict)
    unique_constraints: list[UniqueConstraint] = field(default_factory=list)
    foreign_key_constraints: list[ForeignKeyConstraint] = field(default_factory=list)
    indexes: list[Index] = field(default_factory=list)

    @classmethod
    def from_table(cls, table: Table) -> 'TableDefinition':
        name, schema = table.table_name, table.schema_name
        definition = cls()

        key_columns = [c.column_name for c in table.columns if c.is_primary_key]
        if table.primary_key_constraint is not None:
            definition.primary_key = table.primary_key_constraint
        elif key_columns:
            definition.primary_key = PrimaryKeyConstraint(name, key_columns, schema_name=schema)

        for column in table.columns:
            if column.default_expression is not None:
                definition.default_constraints[column.column_name.lower()] = DefaultConstraint(
                    name, column.column_name, column.default_expression, schema_name=schema)
        for constraint in table.default_constraints:
            definition.default_constraints[constraint.column_name.lower()] = constraint

        checks = [CheckConstraint(name, c.column_name, c.check_expression, schema_name=schema)
                  for c in table.columns if c.check_expression]
        definition.check_constraints = _unique_by_name(
            [*table.check_constraints, *checks], 'constraint_name')

        pk_columns = {c.column_name.lower() for c in definition.primary_key.columns} \
            if definition.primary_key else set()
        uniques = [UniqueConstraint(name, [c.column_name], schema_name=schema)
                   for c in table.columns
                   if c.is_unique and {c.column_name.lower()} != pk_columns]
        definition.unique_constraints = _unique_by_name(
            [*table.unique_constraints, *uniques], 'constraint_name')

        foreign_keys = [
            ForeignKeyConstraint(
                name, [c.column_name], c.referenced_table_name,
                [c.referenced_column_name or c.column_name],
                on_delete=c.on_delete, on_update=c.on_update, schema_name=schema)
            for c in table.columns if c.is_foreign_key and c.referenced_table_name]
        definition.foreign_key_constraints = _unique_by_name(
            [*table.foreign_key_constraints, *foreign_keys], 'constraint_name')

        indexes = [Index(name, [c.column_name], schema_name=schema)
                   for c in table.columns if c.is_indexed]
        definition.indexes = _unique_by_name([*table.indexes, *indexes], 'index_name')

        for item in (definition.primary_key, *definition.check_constraints,
                     *definition.default_constraints.values(), *definition.unique_constraints,
                     *definition.foreign_key_constraints, *definition.indexes):
            if item is not None:
                item.attach(name, schema)
        return definition

    @property
    def primary_key_column_names(self) -> set[str]:
        if self.primary_key is None:
            return set()
        return {c.column_name.lower() for c in self.primary_key.columns}


def _unique_by_name(items: list, attribute: str) -> list:
    seen = set()
    result = []
    for item in items:
        key = (getattr(item, attribute) or '').lower()
        if key and key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


class DialectDriver(
    SchemaMixin,
    TableMixin,
    ColumnMixin,
    IndexMixin,
    CheckConstraintMixin,
    DefaultConstraintMixin,
    UniqueConstraintMixin,
    ForeignKeyConstraintMixin,
    PrimaryKeyConstraintMixin,
    ViewMixin,
    ABC,
):
    """Base class for dialect schema drivers.
    """

    dialect: Dialect = Dialect.OTHER
    type_map_class: type[DialectTypeMap] = DialectTypeMap

    # capability flags
    supports_schemas = True
    supports_check_constraints = True
    supports_ordered_keys_in_constraints = True
    supports_default_constraints = False
    ddl_is_transactional = True

    default_schema_name: str | None = None
    lowercase_identifiers = False
    paramstyle = 'format'

    # identity rendering, placed after the type or after the NULL clause
    identity_after_type: str | None = None
    identity_after_null: str | None = None

    table_options = ''

    # add foreign keys after all tables of a batch exist
    defer_foreign_keys = True

    def __init__(self, type_map: DialectTypeMap | None = None) -> None:
        if type_map is None:
            config = TypeMappingConfig.get_instance()
            type_map = self.type_map_class(config.get_custom_types(self.dialect))
        self.type_map = type_map

    def __repr__(self) -> str:
        return f'{type(self).__name__}(dialect={self.dialect})'

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def standardize_sql(self, sql: str, params: tuple | None = None) -> str:
        """Convert ``%s`` placeholders to this dialect's style.

        Format-style drivers only interpret ``%`` when parameters are bound, so
        literals are escaped in that case alone.
        """
        if self.paramstyle == 'qmark':
            return standardize_placeholders(sql, self.dialect)
        if params:
            return escape_percent_signs_in_literals(sql)
        return sql

    def _interrupt_callback(self, raw_connection: Any, cursor: Any):
        """Native interrupt for a statement in flight, None when unavailable."""
        return None

    @contextmanager
    def _cursor(self, cn: Any, sql: str, params: tuple | None = None, cancel: Any = None):
        """Context manager for cursor lifecycle with SQL standardization.

        The cancellation signal is checked before the statement is issued and
        wired to the native interrupt while it runs.
        """
        raise_if_cancelled(cancel)
        raw = get_raw_connection(cn)
        sql = self.standardize_sql(sql, params)
        cursor = raw.cursor()
        try:
            with interrupt_scope(cancel, self._interrupt_callback(raw, cursor)):
                if params:
                    cursor.execute(sql, params)
                else:
                    cursor.execute(sql)
            yield cursor
        finally:
            cursor.close()

    def _execute(self, cn: Any, sql: str, params: tuple | None = None, cancel: Any = None) -> int:
        """Execute a statement and return its rowcount."""
        logger.debug(f'{self.dialect}: {sql.strip()}')
        with self._cursor(cn, sql, params, cancel) as cursor:
            return cursor.rowcount

    def _select(self, cn: Any, sql: str, params: tuple | None = None,
                cancel: Any = None) -> list[dict]:
        """Execute a query and return rows as dicts keyed by column label."""
        with self._cursor(cn, sql, params, cancel) as cursor:
            if cursor.description is None:
                return []
            columns = [desc[0].lower() for desc in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _select_column(self, cn: Any, sql: str, params: tuple | None = None,
                       cancel: Any = None) -> list:
        with self._cursor(cn, sql, params, cancel) as cursor:
            return [row[0] for row in cursor.fetchall()]

    def _select_scalar(self, cn: Any, sql: str, params: tuple | None = None,
                       cancel: Any = None) -> Any:
        with self._cursor(cn, sql, params, cancel) as cursor:
            row = cursor.fetchone()
            return row[0] if row else None

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def normalize_name(self, name: str | None) -> str | None:
        """Strip characters other than letters, digits and underscores."""
        if name is None:
            return None
        name = _INVALID_IDENTIFIER_CHARS.sub('', str(name))
        return name.lower() if self.lowercase_identifiers else name

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(self.normalize_name(name), self.dialect)

    def resolve_schema(self, schema_name: str | None) -> str | None:
        """Schema used for a request, None on dialects without schemas."""
        if not self.supports_schemas:
            return None
        return self.normalize_name(schema_name) or self.default_schema_name

    def qualified_name(self, name: str, schema_name: str | None = None) -> str:
        schema = self.resolve_schema(schema_name)
        if schema:
            return f'{self.quote_identifier(schema)}.{self.quote_identifier(name)}'
        return self.quote_identifier(name)

    def like_pattern(self, name_filter: str | None) -> str | None:
        pattern = to_like_string(name_filter)
        if pattern is not None and self.lowercase_identifiers:
            return pattern.lower()
        return pattern

    # ------------------------------------------------------------------
    # Type helpers
    # ------------------------------------------------------------------

    def get_column_type(self, column: Column) -> str:
        """Dialect type for a column, an explicit override winning."""
        return self.type_map.get_column_type(column)

    def get_host_type(self, dialect_type: str) -> Any:
        """Host type for a raw catalog type string."""
        return self.type_map.get_host_type(dialect_type)

    def get_available_data_types(self, include_advanced: bool = False) -> list[DataTypeInfo]:
        return self.type_map.get_available_data_types(include_advanced)

    def _introspected_column(self, column_name: str, raw_type: str, *,
                             is_nullable: bool = True,
                             is_auto_increment: bool = False,
                             is_primary_key: bool = False) -> Column:
        """Build a Column from catalog data.

        The raw type is kept as the column's override for this dialect so that
        re-creating the column reproduces the catalog type exactly. Types the
        dialect map does not know keep no host type.
        """
        try:
            host = self.type_map.get_host_descriptor(raw_type)
        except TypeMappingError:
            logger.debug(f'Unmapped {self.dialect} type {raw_type!r} for column {column_name!r}')
            host = None
        return Column(
            column_name=column_name,
            host_type=host.host_type if host else None,
            dialect_types={self.dialect: raw_type},
            length=host.length if host else None,
            precision=host.precision if host else None,
            scale=host.scale if host else None,
            is_unicode=bool(host and host.is_unicode),
            is_fixed_length=bool(host and host.is_fixed_length),
            is_auto_increment=bool(is_auto_increment or (host and host.is_auto_increment)),
            is_nullable=bool(is_nullable) and not is_primary_key,
            is_primary_key=bool(is_primary_key),
            )

    # ------------------------------------------------------------------
    # DDL rendering
    # ------------------------------------------------------------------

    def table_definition(self, table: Table) -> TableDefinition:
        return TableDefinition.from_table(table)

    def validate_column(self, column: Column) -> None:
        """Reject column flag combinations the dialect cannot express.

        Raises
            SchemaError: If the column cannot be created on this dialect
        """
        if column.is_auto_increment and column.default_expression is not None:
            raise SchemaError(
                f'Column {column.column_name!r} cannot be auto-increment and have a default')
        if column.is_auto_increment and column.get_dialect_type(self.dialect) is None \
                and host_category(column.host_type) != DataTypeCategory.INTEGER:
            raise SchemaError(
                f'Auto-increment column {column.column_name!r} must have an integer type')

    def key_columns_sql(self, columns, ordered: bool = True) -> str:
        """Comma separated key columns; order is dropped where unsupported."""
        parts = []
        for column in ordered_columns(columns):
            text = self.quote_identifier(column.column_name)
            if ordered and column.is_descending and self.supports_ordered_keys_in_constraints:
                text = f'{text} DESC'
            parts.append(text)
        return ', '.join(parts)

    def default_expression_sql(self, expression: str) -> str:
        return wrap_expression(expression)

    def default_clause(self, constraint: DefaultConstraint) -> str:
        expression = self.default_expression_sql(constraint.expression)
        if self.supports_default_constraints:
            return f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} DEFAULT {expression}'
        return f'DEFAULT {expression}'

    def primary_key_clause(self, constraint: PrimaryKeyConstraint) -> str:
        return (f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} '
                f'PRIMARY KEY ({self.key_columns_sql(constraint.columns)})')

    def check_clause(self, constraint: CheckConstraint) -> str:
        return (f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} '
                f'CHECK ({unwrap_parentheses(constraint.expression)})')

    def unique_clause(self, constraint: UniqueConstraint) -> str:
        return (f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} '
                f'UNIQUE ({self.key_columns_sql(constraint.columns)})')

    def referential_action_sql(self, action: ForeignKeyAction) -> str:
        return action.value

    def foreign_key_clause(self, constraint: ForeignKeyConstraint) -> str:
        referenced = self.qualified_name(constraint.referenced_table_name, constraint.schema_name)
        sql = (f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} '
               f'FOREIGN KEY ({self.key_columns_sql(constraint.columns, ordered=False)}) '
               f'REFERENCES {referenced} '
               f'({self.key_columns_sql(constraint.referenced_columns, ordered=False)})')
        if constraint.on_delete != ForeignKeyAction.NO_ACTION:
            sql += f' ON DELETE {self.referential_action_sql(constraint.on_delete)}'
        if constraint.on_update != ForeignKeyAction.NO_ACTION:
            sql += f' ON UPDATE {self.referential_action_sql(constraint.on_update)}'
        return sql

    def inline_primary_key(self, table: Table,
                           definition: TableDefinition) -> PrimaryKeyConstraint | None:
        """Primary key rendered inside its column definition instead of the table body."""
        return None

    def inline_primary_key_clause(self, constraint: PrimaryKeyConstraint) -> str:
        return f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} PRIMARY KEY'

    def column_definition(self, column: Column, default: DefaultConstraint | None = None,
                          not_null: bool | None = None,
                          inline_primary_key: PrimaryKeyConstraint | None = None) -> str:
        """Render one column for CREATE TABLE or ADD COLUMN.
        """
        self.validate_column(column)
        if not_null is None:
            not_null = column.is_not_null
        parts = [self.quote_identifier(column.column_name), self.get_column_type(column)]
        if column.is_auto_increment and self.identity_after_type:
            parts.append(self.identity_after_type)
        parts.append('NOT NULL' if not_null else 'NULL')
        if default is not None:
            parts.append(self.default_clause(default))
        if inline_primary_key is not None:
            parts.append(self.inline_primary_key_clause(inline_primary_key))
        if column.is_auto_increment and self.identity_after_null:
            parts.append(self.identity_after_null)
        return ' '.join(parts)

    def create_table_sql(self, table: Table, definition: TableDefinition | None = None,
                         include_foreign_keys: bool = True) -> str:
        """Render CREATE TABLE with every constraint except indexes.
        """
        if definition is None:
            definition = TableDefinition.from_table(table)
        inline_pk = self.inline_primary_key(table, definition)
        pk_columns = definition.primary_key_column_names

        lines = []
        for column in table.columns:
            key = column.column_name.lower()
            lines.append(self.column_definition(
                column,
                default=definition.default_constraints.get(key),
                not_null=column.is_not_null or key in pk_columns,
                inline_primary_key=inline_pk if inline_pk and key in pk_columns else None,
                ))
        if definition.primary_key is not None and inline_pk is None:
            lines.append(self.primary_key_clause(definition.primary_key))
        if self.supports_check_constraints:
            lines.extend(self.check_clause(c) for c in definition.check_constraints)
        lines.extend(self.unique_clause(c) for c in definition.unique_constraints)
        if include_foreign_keys:
            lines.extend(self.foreign_key_clause(c) for c in definition.foreign_key_constraints)

        body = ',\n    '.join(lines)
        sql = f'CREATE TABLE {self.qualified_name(table.table_name, table.schema_name)} (\n    {body}\n)'
        if self.table_options:
            sql = f'{sql} {self.table_options}'
        return sql

    def create_index_sql(self, index: Index) -> str:
        unique = 'UNIQUE ' if index.is_unique else ''
        return (f'CREATE {unique}INDEX {self.quote_identifier(index.index_name)} '
                f'ON {self.qualified_name(index.table_name, index.schema_name)} '
                f'({self.key_columns_sql(index.columns)})')

    def drop_index_sql(self, index: Index) -> str:
        return f'DROP INDEX {self.qualified_name(index.index_name, index.schema_name)}'

    def add_constraint_sql(self, table_name: str, schema_name: str | None, clause: str) -> str:
        return f'ALTER TABLE {self.qualified_name(table_name, schema_name)} ADD {clause}'

    def drop_constraint_sql(self, table_name: str, schema_name: str | None,
                            constraint_name: str, kind: str) -> str:
        """``kind`` is one of primary, unique, check, foreign and default."""
        return (f'ALTER TABLE {self.qualified_name(table_name, schema_name)} '
                f'DROP CONSTRAINT {self.quote_identifier(constraint_name)}')

    def add_column_sql(self, table_name: str, schema_name: str | None, column_sql: str) -> str:
        return f'ALTER TABLE {self.qualified_name(table_name, schema_name)} ADD COLUMN {column_sql}'

    def drop_column_sql(self, table_name: str, schema_name: str | None, column_name: str) -> str:
        return (f'ALTER TABLE {self.qualified_name(table_name, schema_name)} '
                f'DROP COLUMN {self.quote_identifier(column_name)}')

    def rename_table_sql(self, table_name: str, new_table_name: str,
                         schema_name: str | None) -> tuple[str, tuple | None]:
        return (f'ALTER TABLE {self.qualified_name(table_name, schema_name)} '
                f'RENAME TO {self.quote_identifier(new_table_name)}', None)

    def rename_column_sql(self, table_name: str, column_name: str, new_column_name: str,
                          schema_name: str | None) -> tuple[str, tuple | None]:
        return (f'ALTER TABLE {self.qualified_name(table_name, schema_name)} '
                f'RENAME COLUMN {self.quote_identifier(column_name)} '
                f'TO {self.quote_identifier(new_column_name)}', None)

    def rename_view_sql(self, view_name: str, new_view_name: str,
                        schema_name: str | None) -> tuple[str, tuple | None]:
        return (f'ALTER VIEW {self.qualified_name(view_name, schema_name)} '
                f'RENAME TO {self.quote_identifier(new_view_name)}', None)

    def truncate_table_sql(self, table_name: str, schema_name: str | None) -> str:
        return f'TRUNCATE TABLE {self.qualified_name(table_name, schema_name)}'

    def create_view_sql(self, view: View) -> str:
        return (f'CREATE VIEW {self.qualified_name(view.view_name, view.schema_name)} '
                f'AS {view.definition.strip().rstrip(";")}')

    def set_default_sql(self, constraint: DefaultConstraint) -> str:
        """Default for dialects that manage defaults as column properties."""
        return (f'ALTER TABLE {self.qualified_name(constraint.table_name, constraint.schema_name)} '
                f'ALTER COLUMN {self.quote_identifier(constraint.column_name)} '
                f'SET DEFAULT {self.default_expression_sql(constraint.expression)}')

    def drop_default_sql(self, constraint: DefaultConstraint) -> str:
        return (f'ALTER TABLE {self.qualified_name(constraint.table_name, constraint.schema_name)} '
                f'ALTER COLUMN {self.quote_identifier(constraint.column_name)} DROP DEFAULT')

    # ------------------------------------------------------------------
    # Catalog queries, one per object kind, implemented by each dialect
    # ------------------------------------------------------------------

    @abstractmethod
    def get_database_version(self, cn: Any, *, cancel: Any = None) -> tuple[int, ...] | None:
        """Server version as a tuple of ints."""

    @abstractmethod
    def _query_schema_names(self, cn: Any, pattern: str | None, cancel: Any) -> list[str]:
        """Schema names matching a LIKE pattern (all when None)."""

    @abstractmethod
    def _query_table_names(self, cn: Any, schema: str | None, pattern: str | None,
                           cancel: Any) -> list[str]:
        """Base table names in a schema matching a LIKE pattern."""

    @abstractmethod
    def _query_columns(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Column]:
        """Columns in ordinal order with key, nullability and identity flags."""

    @abstractmethod
    def _query_primary_key(self, cn: Any, table_name: str, schema: str | None,
                           cancel: Any) -> PrimaryKeyConstraint | None:
        """Primary key of a table."""

    @abstractmethod
    def _query_check_constraints(self, cn: Any, table_name: str, schema: str | None,
                                 cancel: Any) -> list[CheckConstraint]:
        """Check constraints of a table."""

    @abstractmethod
    def _query_default_constraints(self, cn: Any, table_name: str, schema: str | None,
                                   cancel: Any) -> list[DefaultConstraint]:
        """Column defaults of a table."""

    @abstractmethod
    def _query_unique_constraints(self, cn: Any, table_name: str, schema: str | None,
                                  cancel: Any) -> list[UniqueConstraint]:
        """Unique constraints of a table."""

    @abstractmethod
    def _query_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                            cancel: Any) -> list[ForeignKeyConstraint]:
        """Foreign keys declared on a table."""

    @abstractmethod
    def _query_referencing_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                                        cancel: Any) -> list[ForeignKeyConstraint]:
        """Foreign keys on any table that reference this table."""

    @abstractmethod
    def _query_indexes(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Index]:
        """Indexes of a table that do not back a primary key or unique constraint."""

    @abstractmethod
    def _query_views(self, cn: Any, schema: str | None, pattern: str | None,
                     cancel: Any) -> list[View]:
        """Views in a schema matching a LIKE pattern."""
