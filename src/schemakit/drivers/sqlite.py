"""
SQLite schema driver.

SQLite has no schemas and its ALTER TABLE only adds, renames and drops plain
columns. Everything else (constraints, defaults, key changes, dropping a
column) rebuilds the table:

1. read ``PRAGMA foreign_keys`` and switch enforcement off;
2. create ``{table}__rebuild`` from the changed definition;
3. copy the rows of the columns both definitions share;
4. drop the old table and rename the new one into its place;
5. recreate the indexes and restore ``PRAGMA foreign_keys``.

``PRAGMA foreign_keys`` is ignored inside an open transaction, so rebuilds are
meant for connections in autocommit mode.

Constraint names and check expressions are recovered from the ``CREATE
TABLE`` text in ``sqlite_master``; constraints SQLite created without a name
report the derived name.
"""
import dataclasses
import logging
import re
from typing import Any

from schemakit.adapters.sqlite_types import SQLiteTypeMap
from schemakit.dialect import Dialect
from schemakit.drivers.base import DialectDriver, register_driver
from schemakit.drivers.sqlite_ddl import ParsedConstraint, declares_autoincrement
from schemakit.drivers.sqlite_ddl import parse_create_table
from schemakit.exceptions import SchemaError
from schemakit.model import CheckConstraint, Column, ColumnOrder
from schemakit.model import DefaultConstraint, ForeignKeyConstraint, Index
from schemakit.model import OrderedColumn, PrimaryKeyConstraint, Table
from schemakit.model import UniqueConstraint, View
from schemakit.sql import infer_check_column, is_function_call
from schemakit.utils import extract_version

logger = logging.getLogger(__name__)

_VIEW_PREFIX = re.compile(
    r'^\s*create\s+(?:temp(?:orary)?\s+)?view\s+(?:if\s+not\s+exists\s+)?'
    r'(?:"(?:[^"]|"")+"|`[^`]+`|\[[^\]]+\]|[\w$.]+)\s+as\s+',
    re.IGNORECASE | re.DOTALL)


def _references_column(expression: str | None, column_name: str) -> bool:
    pattern = rf'(?<![\w]){re.escape(column_name)}(?![\w])'
    return re.search(pattern, expression or '', re.IGNORECASE) is not None


@register_driver(Dialect.SQLITE)
class SQLiteDriver(DialectDriver):
    """SQLite schema operations.
    """

    dialect = Dialect.SQLITE
    type_map_class = SQLiteTypeMap

    supports_schemas = False
    paramstyle = 'qmark'
    defer_foreign_keys = False

    def get_database_version(self, cn: Any, *, cancel: Any = None) -> tuple[int, ...] | None:
        return extract_version(self._select_scalar(cn, 'select sqlite_version()', cancel=cancel))

    def _interrupt_callback(self, raw_connection: Any, cursor: Any):
        return raw_connection.interrupt

    # ------------------------------------------------------------------
    # DDL rendering
    # ------------------------------------------------------------------

    def truncate_table_sql(self, table_name: str, schema_name: str | None) -> str:
        return f'DELETE FROM {self.qualified_name(table_name)}'

    def default_expression_sql(self, expression: str) -> str:
        # function call defaults must be parenthesized
        if is_function_call(expression):
            return f'({expression.strip()})'
        return super().default_expression_sql(expression)

    def inline_primary_key(self, table: Table, definition) -> PrimaryKeyConstraint | None:
        """AUTOINCREMENT is only valid on a column declared ``INTEGER PRIMARY KEY``.

        Raises
            SchemaError: If an auto-increment column is not the sole key column
        """
        identity = [c for c in table.columns if c.is_auto_increment]
        if not identity:
            return None
        pk_columns = definition.primary_key_column_names
        if len(identity) > 1 or pk_columns != {identity[0].column_name.lower()}:
            raise SchemaError(
                f'Table {table.table_name!r}: auto-increment requires a single-column '
                f'integer primary key')
        return definition.primary_key

    def inline_primary_key_clause(self, constraint: PrimaryKeyConstraint) -> str:
        return f'CONSTRAINT {self.quote_identifier(constraint.constraint_name)} PRIMARY KEY AUTOINCREMENT'

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _query_schema_names(self, cn: Any, pattern: str | None, cancel: Any) -> list[str]:
        return []

    def _query_table_names(self, cn: Any, schema: str | None, pattern: str | None,
                           cancel: Any) -> list[str]:
        sql = """
select name from sqlite_master
where type = 'table' and name not like 'sqlite\\_%' escape '\\'
"""
        params = ()
        if pattern:
            sql += ' and name like %s'
            params = (pattern,)
        return self._select_column(cn, sql + ' order by name', params, cancel)

    def _table_sql(self, cn: Any, table_name: str, cancel: Any) -> str | None:
        sql = """
select sql from sqlite_master where type = 'table' and lower(name) = lower(%s)
"""
        return self._select_scalar(cn, sql, (table_name,), cancel)

    def _parsed_constraints(self, cn: Any, table_name: str, cancel: Any) -> list[ParsedConstraint]:
        return parse_create_table(self._table_sql(cn, table_name, cancel))

    def _table_info(self, cn: Any, table_name: str, cancel: Any) -> list[dict]:
        sql = """
select name, type, "notnull" as not_null, dflt_value, pk
from pragma_table_info(%s)
order by cid
"""
        return self._select(cn, sql, (table_name,), cancel)

    def _index_list(self, cn: Any, table_name: str, origin: str, cancel: Any) -> list[dict]:
        sql = """
select name, "unique" as is_unique from pragma_index_list(%s)
where origin = %s
order by name
"""
        return self._select(cn, sql, (table_name, origin), cancel)

    def _index_columns(self, cn: Any, index_name: str, cancel: Any) -> list[OrderedColumn]:
        sql = """
select name, "desc" as is_descending from pragma_index_xinfo(%s)
where key = 1 and name is not null
order by seqno
"""
        return [OrderedColumn(row['name'],
                              ColumnOrder.DESCENDING if row['is_descending'] else ColumnOrder.ASCENDING)
                for row in self._select(cn, sql, (index_name,), cancel)]

    def _query_columns(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Column]:
        rows = self._table_info(cn, table_name, cancel)
        key_rows = [row for row in rows if row['pk']]
        # only a declared AUTOINCREMENT makes the rowid alias an identity
        autoincrement = (len(key_rows) == 1
                         and declares_autoincrement(self._table_sql(cn, table_name, cancel)))
        columns = []
        for row in rows:
            identity = (autoincrement and bool(row['pk'])
                        and (row['type'] or '').strip().lower() == 'integer')
            columns.append(self._introspected_column(
                row['name'], row['type'] or 'blob',
                is_nullable=not row['not_null'],
                is_auto_increment=identity,
                is_primary_key=bool(row['pk']),
                ))
        return columns

    def _query_primary_key(self, cn: Any, table_name: str, schema: str | None,
                           cancel: Any) -> PrimaryKeyConstraint | None:
        rows = [row for row in self._table_info(cn, table_name, cancel) if row['pk']]
        if not rows:
            return None
        columns = [row['name'] for row in sorted(rows, key=lambda r: r['pk'])]
        indexes = self._index_list(cn, table_name, 'pk', cancel)
        if indexes:
            columns = self._index_columns(cn, indexes[0]['name'], cancel) or columns
        name = next((c.name for c in self._parsed_constraints(cn, table_name, cancel)
                     if c.kind == 'primary' and c.name), None)
        return PrimaryKeyConstraint(table_name, columns, constraint_name=name)

    def _query_check_constraints(self, cn: Any, table_name: str, schema: str | None,
                                 cancel: Any) -> list[CheckConstraint]:
        column_names = [row['name'] for row in self._table_info(cn, table_name, cancel)]
        constraints = []
        for parsed in self._parsed_constraints(cn, table_name, cancel):
            if parsed.kind != 'check' or not parsed.expression:
                continue
            column_name = parsed.columns[0] if parsed.columns \
                else infer_check_column(parsed.expression, column_names)
            constraints.append(CheckConstraint(
                table_name, column_name, parsed.expression, constraint_name=parsed.name))
        return constraints

    def _query_default_constraints(self, cn: Any, table_name: str, schema: str | None,
                                   cancel: Any) -> list[DefaultConstraint]:
        return [DefaultConstraint(table_name, row['name'], row['dflt_value'])
                for row in self._table_info(cn, table_name, cancel)
                if row['dflt_value'] is not None]

    def _query_unique_constraints(self, cn: Any, table_name: str, schema: str | None,
                                  cancel: Any) -> list[UniqueConstraint]:
        parsed = [c for c in self._parsed_constraints(cn, table_name, cancel)
                  if c.kind == 'unique']
        constraints = []
        for index in self._index_list(cn, table_name, 'u', cancel):
            columns = self._index_columns(cn, index['name'], cancel)
            names = [c.column_name for c in columns]
            name = next((c.name for c in parsed if c.name and c.matches_columns(names)), None)
            constraints.append(UniqueConstraint(table_name, columns, constraint_name=name))
        return constraints

    def _query_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                            cancel: Any) -> list[ForeignKeyConstraint]:
        sql = """
select id, "table" as referenced_table_name, "from" as column_name,
    "to" as referenced_column_name, on_update, on_delete
from pragma_foreign_key_list(%s)
order by id, seq
"""
        grouped: dict[int, list[dict]] = {}
        for row in self._select(cn, sql, (table_name,), cancel):
            grouped.setdefault(row['id'], []).append(row)
        parsed = [c for c in self._parsed_constraints(cn, table_name, cancel)
                  if c.kind == 'foreign']
        constraints = []
        for rows in grouped.values():
            first = rows[0]
            columns = [row['column_name'] for row in rows]
            referenced = first['referenced_table_name']
            name = next((c.name for c in parsed
                         if c.name and c.matches_columns(columns)
                         and (c.referenced_table_name or '').lower() == referenced.lower()), None)
            constraints.append(ForeignKeyConstraint(
                table_name, columns, referenced,
                [row['referenced_column_name'] or row['column_name'] for row in rows],
                on_delete=first['on_delete'], on_update=first['on_update'],
                constraint_name=name))
        return constraints

    def _query_referencing_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                                        cancel: Any) -> list[ForeignKeyConstraint]:
        constraints = []
        for name in self._query_table_names(cn, None, None, cancel):
            constraints.extend(
                c for c in self._query_foreign_keys(cn, name, None, cancel)
                if c.referenced_table_name.lower() == table_name.lower())
        return constraints

    def _query_indexes(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Index]:
        return [Index(table_name, self._index_columns(cn, row['name'], cancel),
                      is_unique=bool(row['is_unique']), index_name=row['name'])
                for row in self._index_list(cn, table_name, 'c', cancel)]

    def _query_views(self, cn: Any, schema: str | None, pattern: str | None,
                     cancel: Any) -> list[View]:
        sql = "select name, sql from sqlite_master where type = 'view'"
        params = ()
        if pattern:
            sql += ' and name like %s'
            params = (pattern,)
        rows = self._select(cn, sql + ' order by name', params, cancel)
        return [View(row['name'], _VIEW_PREFIX.sub('', row['sql'] or '', count=1).strip())
                for row in rows]

    # ------------------------------------------------------------------
    # Table rebuild
    # ------------------------------------------------------------------

    def _current_table(self, cn: Any, table_name: str, cancel: Any) -> Table:
        table = self.get_table(cn, table_name, cancel=cancel)
        if table is None:
            raise SchemaError(f'Table {table_name!r} does not exist')
        return table

    def _rebuild_table(self, cn: Any, table: Table, cancel: Any) -> None:
        """Replace the table of the same name with ``table``, keeping its rows."""
        name = table.table_name
        existing = {row['name'].lower(): row['name'] for row in self._table_info(cn, name, cancel)}
        definition = self.table_definition(table)
        shell = dataclasses.replace(table, table_name=f'{name}__rebuild')
        pairs = [(c.column_name, existing[c.column_name.lower()])
                 for c in table.columns if c.column_name.lower() in existing]

        enforce = self._select_scalar(cn, 'pragma foreign_keys', cancel=cancel)
        self._execute(cn, 'pragma foreign_keys = 0', cancel=cancel)
        try:
            self._execute(cn, self.create_table_sql(shell, definition), cancel=cancel)
            if pairs:
                targets = ', '.join(self.quote_identifier(p[0]) for p in pairs)
                sources = ', '.join(self.quote_identifier(p[1]) for p in pairs)
                self._execute(cn, f'INSERT INTO {self.quote_identifier(shell.table_name)} '
                                  f'({targets}) SELECT {sources} FROM {self.quote_identifier(name)}',
                              cancel=cancel)
            self._execute(cn, f'DROP TABLE {self.quote_identifier(name)}', cancel=cancel)
            self._execute(cn, f'ALTER TABLE {self.quote_identifier(shell.table_name)} '
                              f'RENAME TO {self.quote_identifier(name)}', cancel=cancel)
            for index in definition.indexes:
                self._execute(cn, self.create_index_sql(index), cancel=cancel)
        finally:
            self._execute(cn, f'pragma foreign_keys = {1 if enforce else 0}')
        logger.info(f'Rebuilt table {name}')

    def _add_column(self, cn: Any, table_name: str, column: Column, schema: str | None,
                    cancel: Any) -> None:
        needs_rebuild = (column.is_primary_key or column.is_unique or column.is_foreign_key
                         or column.is_auto_increment or bool(column.check_expression)
                         or (column.is_not_null and column.default_expression is None))
        if not needs_rebuild:
            super()._add_column(cn, table_name, column, schema, cancel)
            return
        table = self._current_table(cn, table_name, cancel)
        table.add_column(column)
        self._rebuild_table(cn, table, cancel)

    def _drop_column(self, cn: Any, table_name: str, column_name: str, schema: str | None,
                     cancel: Any) -> None:
        for constraint in self._query_referencing_foreign_keys(cn, table_name, None, cancel):
            if constraint.table_name.lower() == table_name.lower():
                continue
            if any(c.column_name.lower() == column_name.lower()
                   for c in constraint.referenced_columns):
                self._drop_foreign_key(cn, constraint, cancel)

        table = self._current_table(cn, table_name, cancel)
        table.columns = [c for c in table.columns if c.column_name.lower() != column_name.lower()]
        if table.primary_key_constraint and table.primary_key_constraint.has_column(column_name):
            table.primary_key_constraint = None
            for column in table.columns:
                column.is_primary_key = False
                column.is_auto_increment = False
        table.check_constraints = [
            c for c in table.check_constraints
            if not c.has_column(column_name) and not _references_column(c.expression, column_name)]
        table.default_constraints = [c for c in table.default_constraints
                                     if not c.has_column(column_name)]
        table.unique_constraints = [c for c in table.unique_constraints
                                    if not c.has_column(column_name)]
        table.foreign_key_constraints = [
            c for c in table.foreign_key_constraints
            if not c.has_column(column_name)
            and not (c.referenced_table_name.lower() == table_name.lower()
                     and column_name.lower() in (n.lower() for n in c.referenced_column_names))]
        table.indexes = [i for i in table.indexes if not i.has_column(column_name)]
        self._rebuild_table(cn, table, cancel)

    def _rename_view(self, cn: Any, view: View, new_view_name: str, cancel: Any) -> None:
        self._execute(cn, f'DROP VIEW {self.quote_identifier(view.view_name)}', cancel=cancel)
        self._execute(cn, self.create_view_sql(View(new_view_name, view.definition)),
                      cancel=cancel)

    # ------------------------------------------------------------------
    # Constraint changes, all through a rebuild
    # ------------------------------------------------------------------

    def _add_check_constraint(self, cn: Any, constraint: CheckConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.check_constraints.append(constraint)
        self._rebuild_table(cn, table, cancel)

    def _drop_check_constraint(self, cn: Any, constraint: CheckConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.check_constraints = [c for c in table.check_constraints
                                   if c.constraint_name.lower() != constraint.constraint_name.lower()]
        self._rebuild_table(cn, table, cancel)

    def _add_default_constraint(self, cn: Any, constraint: DefaultConstraint,
                                cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.default_constraints = [c for c in table.default_constraints
                                     if not c.has_column(constraint.column_name)]
        table.default_constraints.append(constraint)
        self._rebuild_table(cn, table, cancel)

    def _drop_default_constraint(self, cn: Any, constraint: DefaultConstraint,
                                 cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.default_constraints = [c for c in table.default_constraints
                                     if not c.has_column(constraint.column_name)]
        self._rebuild_table(cn, table, cancel)

    def _add_unique_constraint(self, cn: Any, constraint: UniqueConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.unique_constraints.append(constraint)
        self._rebuild_table(cn, table, cancel)

    def _drop_unique_constraint(self, cn: Any, constraint: UniqueConstraint,
                                cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.unique_constraints = [c for c in table.unique_constraints
                                    if c.constraint_name.lower() != constraint.constraint_name.lower()]
        self._rebuild_table(cn, table, cancel)

    def _add_foreign_key(self, cn: Any, constraint: ForeignKeyConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.foreign_key_constraints.append(constraint)
        self._rebuild_table(cn, table, cancel)

    def _drop_foreign_key(self, cn: Any, constraint: ForeignKeyConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.foreign_key_constraints = [
            c for c in table.foreign_key_constraints
            if c.constraint_name.lower() != constraint.constraint_name.lower()]
        self._rebuild_table(cn, table, cancel)

    def _add_primary_key(self, cn: Any, constraint: PrimaryKeyConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.primary_key_constraint = constraint
        for column in table.columns:
            column.is_primary_key = constraint.has_column(column.column_name)
            column.is_auto_increment = False
        self._rebuild_table(cn, table, cancel)

    def _drop_primary_key(self, cn: Any, constraint: PrimaryKeyConstraint, cancel: Any) -> None:
        table = self._current_table(cn, constraint.table_name, cancel)
        table.primary_key_constraint = None
        for column in table.columns:
            column.is_primary_key = False
            column.is_auto_increment = False
        self._rebuild_table(cn, table, cancel)
