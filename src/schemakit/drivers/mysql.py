"""
MySQL / MariaDB schema driver.

MySQL has no schemas separate from databases: every operation works on the
connected database (``database()``). DDL commits implicitly.

A few catalog facts do not round-trip exactly:

- the primary key is always named ``PRIMARY``; it is reported under the
  derived name ``pk_{table}_{cols}``;
- a unique index and a unique constraint are the same object, so unique
  indexes are reported both as indexes and as unique constraints;
- key order is not kept in constraints, only in indexes;
- check constraints are enforced and cataloged from MySQL 8.0.16 (MariaDB
  10.2); older servers report none.
"""
import logging
import threading
import weakref
from typing import Any

from schemakit.adapters.mysql_types import MySQLTypeMap
from schemakit.dialect import Dialect
from schemakit.drivers.base import DialectDriver, register_driver
from schemakit.model import CheckConstraint, Column, ColumnOrder
from schemakit.model import DefaultConstraint, ForeignKeyConstraint, Index
from schemakit.model import OrderedColumn, PrimaryKeyConstraint
from schemakit.model import UniqueConstraint, View
from schemakit.sql import infer_check_column, is_function_call
from schemakit.sql import unwrap_parentheses
from schemakit.utils import extract_version, get_raw_connection

logger = logging.getLogger(__name__)

_PRIMARY = 'PRIMARY'
_CHECKS_SINCE = (8, 0, 16)
_MARIADB_CHECKS_SINCE = (10, 2)

# version strings per raw connection, dropped with the connection
_server_versions: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
_server_versions_lock = threading.Lock()


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _default_expression(value: str, extra: str) -> str | None:
    """Turn ``COLUMN_DEFAULT`` into a SQL expression.

    MySQL reports literal defaults unquoted and flags expression defaults
    with ``DEFAULT_GENERATED``; MariaDB quotes literals itself.
    """
    if value is None or value.upper() == 'NULL':
        return None
    if 'DEFAULT_GENERATED' in (extra or '').upper():
        return value
    if value.startswith("'") or _is_number(value) or value.upper().startswith('CURRENT_TIMESTAMP'):
        return value
    if is_function_call(value):
        return value
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


@register_driver(Dialect.MYSQL)
class MySQLDriver(DialectDriver):
    """MySQL and MariaDB schema operations.
    """

    dialect = Dialect.MYSQL
    type_map_class = MySQLTypeMap

    supports_schemas = False
    supports_ordered_keys_in_constraints = False
    ddl_is_transactional = False

    identity_after_null = 'AUTO_INCREMENT'

    table_options = 'DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci ENGINE = InnoDB'

    def get_database_version(self, cn: Any, *, cancel: Any = None) -> tuple[int, ...] | None:
        return extract_version(self._select_scalar(cn, 'select version()', cancel=cancel))

    def _server_version(self, cn: Any, cancel: Any) -> str:
        """``version()`` of the server behind ``cn``, queried once per connection."""
        raw = get_raw_connection(cn)
        with _server_versions_lock:
            version_string = _server_versions.get(raw)
        if version_string is None:
            version_string = self._select_scalar(cn, 'select version()', cancel=cancel) or ''
            with _server_versions_lock:
                _server_versions[raw] = version_string
        return version_string

    def _supports_check_catalog(self, cn: Any, cancel: Any) -> bool:
        version_string = self._server_version(cn, cancel)
        version = extract_version(version_string) or ()
        if 'mariadb' in version_string.lower():
            return version >= _MARIADB_CHECKS_SINCE
        return version >= _CHECKS_SINCE

    # ------------------------------------------------------------------
    # DDL rendering
    # ------------------------------------------------------------------

    def default_expression_sql(self, expression: str) -> str:
        # expression defaults must be parenthesized
        if is_function_call(expression) and not expression.strip().upper().startswith('CURRENT_TIMESTAMP'):
            return f'({expression.strip()})'
        return super().default_expression_sql(expression)

    def drop_index_sql(self, index: Index) -> str:
        return (f'DROP INDEX {self.quote_identifier(index.index_name)} '
                f'ON {self.qualified_name(index.table_name)}')

    def drop_constraint_sql(self, table_name: str, schema_name: str | None,
                            constraint_name: str, kind: str) -> str:
        table = self.qualified_name(table_name)
        if kind == 'primary':
            return f'ALTER TABLE {table} DROP PRIMARY KEY'
        if kind == 'unique':
            return f'ALTER TABLE {table} DROP INDEX {self.quote_identifier(constraint_name)}'
        if kind == 'foreign':
            return f'ALTER TABLE {table} DROP FOREIGN KEY {self.quote_identifier(constraint_name)}'
        return f'ALTER TABLE {table} DROP CONSTRAINT {self.quote_identifier(constraint_name)}'

    def rename_view_sql(self, view_name: str, new_view_name: str,
                        schema_name: str | None) -> tuple[str, tuple | None]:
        return (f'RENAME TABLE {self.quote_identifier(view_name)} '
                f'TO {self.quote_identifier(new_view_name)}', None)

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _query_schema_names(self, cn: Any, pattern: str | None, cancel: Any) -> list[str]:
        return []

    def _query_table_names(self, cn: Any, schema: str | None, pattern: str | None,
                           cancel: Any) -> list[str]:
        sql = """
select table_name as table_name from information_schema.tables
where table_schema = database() and table_type = 'BASE TABLE'
"""
        params = ()
        if pattern:
            sql += ' and table_name like %s'
            params = (pattern,)
        return self._select_column(cn, sql + ' order by table_name', params, cancel)

    def _query_columns(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Column]:
        sql = """
select column_name as column_name, column_type as column_type,
    is_nullable as is_nullable, column_key as column_key, extra as extra
from information_schema.columns
where table_schema = database() and table_name = %s
order by ordinal_position
"""
        return [self._introspected_column(
                    row['column_name'], row['column_type'],
                    is_nullable=row['is_nullable'] == 'YES',
                    is_auto_increment='auto_increment' in (row['extra'] or '').lower(),
                    is_primary_key=row['column_key'] == 'PRI')
                for row in self._select(cn, sql, (table_name,), cancel)]

    def _statistics(self, cn: Any, table_name: str, cancel: Any) -> dict[str, dict]:
        """Every index of the table with its uniqueness and ordered columns."""
        sql = """
select index_name as index_name, non_unique as non_unique,
    column_name as column_name, collation as sort_order
from information_schema.statistics
where table_schema = database() and table_name = %s and column_name is not null
order by index_name, seq_in_index
"""
        indexes: dict[str, dict] = {}
        for row in self._select(cn, sql, (table_name,), cancel):
            entry = indexes.setdefault(row['index_name'], {
                'is_unique': not int(row['non_unique']), 'columns': []})
            entry['columns'].append(OrderedColumn(
                row['column_name'],
                ColumnOrder.DESCENDING if row['sort_order'] == 'D' else ColumnOrder.ASCENDING))
        return indexes

    def _query_primary_key(self, cn: Any, table_name: str, schema: str | None,
                           cancel: Any) -> PrimaryKeyConstraint | None:
        entry = self._statistics(cn, table_name, cancel).get(_PRIMARY)
        if entry is None:
            return None
        return PrimaryKeyConstraint(table_name, [c.ascending() for c in entry['columns']])

    def _query_unique_constraints(self, cn: Any, table_name: str, schema: str | None,
                                  cancel: Any) -> list[UniqueConstraint]:
        return [UniqueConstraint(table_name, [c.ascending() for c in entry['columns']],
                                 constraint_name=name)
                for name, entry in self._statistics(cn, table_name, cancel).items()
                if entry['is_unique'] and name != _PRIMARY]

    def _query_indexes(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Index]:
        foreign_keys = {c.constraint_name.lower()
                        for c in self._query_foreign_keys(cn, table_name, schema, cancel)}
        return [Index(table_name, entry['columns'], is_unique=entry['is_unique'],
                      index_name=name)
                for name, entry in self._statistics(cn, table_name, cancel).items()
                if name != _PRIMARY and name.lower() not in foreign_keys]

    def _query_check_constraints(self, cn: Any, table_name: str, schema: str | None,
                                 cancel: Any) -> list[CheckConstraint]:
        if not self._supports_check_catalog(cn, cancel):
            return []
        sql = """
select tc.constraint_name as constraint_name, cc.check_clause as check_clause
from information_schema.table_constraints tc
join information_schema.check_constraints cc
    on cc.constraint_schema = tc.constraint_schema and cc.constraint_name = tc.constraint_name
where tc.table_schema = database() and tc.table_name = %s and tc.constraint_type = 'CHECK'
order by tc.constraint_name
"""
        rows = self._select(cn, sql, (table_name,), cancel)
        if not rows:
            return []
        names_sql = """
select column_name as column_name
from information_schema.columns
where table_schema = database() and table_name = %s
order by ordinal_position
"""
        column_names = self._select_column(cn, names_sql, (table_name,), cancel)
        constraints = []
        for row in rows:
            expression = unwrap_parentheses(row['check_clause'])
            constraints.append(CheckConstraint(
                table_name, infer_check_column(expression, column_names), expression,
                constraint_name=row['constraint_name']))
        return constraints

    def _query_default_constraints(self, cn: Any, table_name: str, schema: str | None,
                                   cancel: Any) -> list[DefaultConstraint]:
        sql = """
select column_name as column_name, column_default as column_default, extra as extra
from information_schema.columns
where table_schema = database() and table_name = %s and column_default is not null
order by ordinal_position
"""
        constraints = []
        for row in self._select(cn, sql, (table_name,), cancel):
            expression = _default_expression(row['column_default'], row['extra'])
            if expression is not None:
                constraints.append(DefaultConstraint(table_name, row['column_name'], expression))
        return constraints

    def _foreign_keys(self, cn: Any, table_name: str, column: str,
                      cancel: Any) -> list[ForeignKeyConstraint]:
        sql = f"""
select
    kcu.constraint_name as constraint_name,
    kcu.table_name as table_name,
    kcu.column_name as column_name,
    kcu.referenced_table_name as referenced_table_name,
    kcu.referenced_column_name as referenced_column_name,
    rc.delete_rule as on_delete,
    rc.update_rule as on_update
from information_schema.key_column_usage kcu
join information_schema.referential_constraints rc
    on rc.constraint_schema = kcu.constraint_schema
    and rc.constraint_name = kcu.constraint_name
    and rc.table_name = kcu.table_name
where kcu.table_schema = database() and kcu.{column} = %s
    and kcu.referenced_table_name is not null
order by kcu.table_name, kcu.constraint_name, kcu.ordinal_position
"""
        grouped: dict[tuple, list[dict]] = {}
        for row in self._select(cn, sql, (table_name,), cancel):
            grouped.setdefault((row['table_name'], row['constraint_name']), []).append(row)
        return [ForeignKeyConstraint(
                    owner, [r['column_name'] for r in rows], rows[0]['referenced_table_name'],
                    [r['referenced_column_name'] for r in rows],
                    on_delete=rows[0]['on_delete'], on_update=rows[0]['on_update'],
                    constraint_name=name)
                for (owner, name), rows in grouped.items()]

    def _query_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                            cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, 'table_name', cancel)

    def _query_referencing_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                                        cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, 'referenced_table_name', cancel)

    def _query_views(self, cn: Any, schema: str | None, pattern: str | None,
                     cancel: Any) -> list[View]:
        sql = """
select table_name as view_name, view_definition as view_definition
from information_schema.views
where table_schema = database()
"""
        params = ()
        if pattern:
            sql += ' and table_name like %s'
            params = (pattern,)
        rows = self._select(cn, sql + ' order by table_name', params, cancel)
        return [View(row['view_name'], (row['view_definition'] or '').strip())
                for row in rows]
