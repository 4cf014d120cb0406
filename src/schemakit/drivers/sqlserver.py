"""
SQL Server schema driver.

Catalog data comes from the ``sys`` views. SQL Server is the one dialect with
named default constraints, so defaults are created and dropped as constraints
and their catalog names are reported as-is. Tables, columns and views are
renamed through ``sp_rename``.

The driver is exercised with pyodbc connections (qmark placeholders).
"""
import logging
import re
from typing import Any

from schemakit.adapters.sqlserver_types import SQLServerTypeMap
from schemakit.dialect import Dialect
from schemakit.drivers.base import DialectDriver, register_driver
from schemakit.model import CheckConstraint, Column, ColumnOrder
from schemakit.model import DefaultConstraint, ForeignKeyAction
from schemakit.model import ForeignKeyConstraint, Index, OrderedColumn
from schemakit.model import PrimaryKeyConstraint, UniqueConstraint, View
from schemakit.sql import infer_check_column, unwrap_parentheses
from schemakit.utils import extract_version

logger = logging.getLogger(__name__)

_TABLE_ID = """
select t.object_id from sys.tables t
join sys.schemas s on s.schema_id = t.schema_id
where s.name = %s and t.name = %s
"""

_VIEW_PREFIX = re.compile(
    r'^\s*create\s+(?:or\s+alter\s+)?view\s+[\w\[\]".]+\s+as\s+',
    re.IGNORECASE | re.DOTALL)

_LENGTH_TYPES = {'varchar', 'char', 'varbinary', 'binary'}
_UNICODE_LENGTH_TYPES = {'nvarchar', 'nchar'}
_DECIMAL_TYPES = {'decimal', 'numeric'}
_SCALE_TYPES = {'datetime2', 'time', 'datetimeoffset'}


def _type_string(row: dict) -> str:
    """Rebuild the declared type from sys.columns metrics.

    >>> _type_string({'type_name': 'nvarchar', 'max_length': 200, 'precision': 0, 'scale': 0})
    'nvarchar(100)'
    """
    name = row['type_name']
    if name in _LENGTH_TYPES or name in _UNICODE_LENGTH_TYPES:
        length = row['max_length']
        if length == -1:
            return f'{name}(max)'
        if name in _UNICODE_LENGTH_TYPES:
            length //= 2
        return f'{name}({length})'
    if name in _DECIMAL_TYPES:
        return f'{name}({row["precision"]},{row["scale"]})'
    if name in _SCALE_TYPES:
        return f'{name}({row["scale"]})'
    return name


@register_driver(Dialect.SQLSERVER)
class SQLServerDriver(DialectDriver):
    """SQL Server schema operations.
    """

    dialect = Dialect.SQLSERVER
    type_map_class = SQLServerTypeMap

    supports_default_constraints = True

    default_schema_name = 'dbo'
    paramstyle = 'qmark'

    identity_after_type = 'IDENTITY(1,1)'

    def get_database_version(self, cn: Any, *, cancel: Any = None) -> tuple[int, ...] | None:
        sql = "select cast(serverproperty('ProductVersion') as nvarchar(128))"
        return extract_version(self._select_scalar(cn, sql, cancel=cancel))

    def _interrupt_callback(self, raw_connection: Any, cursor: Any):
        return cursor.cancel

    # ------------------------------------------------------------------
    # DDL rendering
    # ------------------------------------------------------------------

    def referential_action_sql(self, action: ForeignKeyAction) -> str:
        # RESTRICT is spelled NO ACTION
        if action == ForeignKeyAction.RESTRICT:
            return ForeignKeyAction.NO_ACTION.value
        return action.value

    def add_column_sql(self, table_name: str, schema_name: str | None, column_sql: str) -> str:
        return f'ALTER TABLE {self.qualified_name(table_name, schema_name)} ADD {column_sql}'

    def drop_index_sql(self, index: Index) -> str:
        return (f'DROP INDEX {self.quote_identifier(index.index_name)} '
                f'ON {self.qualified_name(index.table_name, index.schema_name)}')

    def set_default_sql(self, constraint: DefaultConstraint) -> str:
        return (f'ALTER TABLE {self.qualified_name(constraint.table_name, constraint.schema_name)} '
                f'ADD {self.default_clause(constraint)} '
                f'FOR {self.quote_identifier(constraint.column_name)}')

    def drop_default_sql(self, constraint: DefaultConstraint) -> str:
        return self.drop_constraint_sql(constraint.table_name, constraint.schema_name,
                                        constraint.constraint_name, 'default')

    def _object_path(self, *names: str) -> str:
        return '.'.join(self.normalize_name(n) for n in names)

    def rename_table_sql(self, table_name: str, new_table_name: str,
                         schema_name: str | None) -> tuple[str, tuple | None]:
        schema = self.resolve_schema(schema_name)
        return ('EXEC sp_rename %s, %s',
                (self._object_path(schema, table_name), self.normalize_name(new_table_name)))

    def rename_column_sql(self, table_name: str, column_name: str, new_column_name: str,
                          schema_name: str | None) -> tuple[str, tuple | None]:
        schema = self.resolve_schema(schema_name)
        return ("EXEC sp_rename %s, %s, 'COLUMN'",
                (self._object_path(schema, table_name, column_name),
                 self.normalize_name(new_column_name)))

    def rename_view_sql(self, view_name: str, new_view_name: str,
                        schema_name: str | None) -> tuple[str, tuple | None]:
        return self.rename_table_sql(view_name, new_view_name, schema_name)

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _query_schema_names(self, cn: Any, pattern: str | None, cancel: Any) -> list[str]:
        sql = """
select name from sys.schemas
where name not in ('sys', 'INFORMATION_SCHEMA', 'guest') and name not like 'db[_]%'
"""
        params = ()
        if pattern:
            sql += ' and name like %s'
            params = (pattern,)
        return self._select_column(cn, sql + ' order by name', params, cancel)

    def _query_table_names(self, cn: Any, schema: str | None, pattern: str | None,
                           cancel: Any) -> list[str]:
        sql = """
select t.name from sys.tables t
join sys.schemas s on s.schema_id = t.schema_id
where s.name = %s
"""
        params = (schema,)
        if pattern:
            sql += ' and t.name like %s'
            params = (schema, pattern)
        return self._select_column(cn, sql + ' order by t.name', params, cancel)

    def _query_columns(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Column]:
        sql = f"""
select
    c.name as column_name,
    ty.name as type_name,
    c.max_length,
    c.precision,
    c.scale,
    c.is_nullable,
    c.is_identity,
    case when exists (
        select 1 from sys.indexes i
        join sys.index_columns ic on ic.object_id = i.object_id and ic.index_id = i.index_id
        where i.object_id = c.object_id and i.is_primary_key = 1 and ic.column_id = c.column_id
    ) then 1 else 0 end as is_primary_key
from sys.columns c
join sys.types ty on ty.user_type_id = c.user_type_id
where c.object_id = ({_TABLE_ID})
order by c.column_id
"""
        return [self._introspected_column(
                    row['column_name'], _type_string(row),
                    is_nullable=bool(row['is_nullable']),
                    is_auto_increment=bool(row['is_identity']),
                    is_primary_key=bool(row['is_primary_key']))
                for row in self._select(cn, sql, (schema, table_name), cancel)]

    def _key_indexes(self, cn: Any, table_name: str, schema: str | None,
                     cancel: Any) -> dict[str, dict]:
        """Every index of the table with its flags and ordered key columns."""
        sql = f"""
select
    i.name as index_name,
    i.is_primary_key,
    i.is_unique_constraint,
    i.is_unique,
    c.name as column_name,
    ic.is_descending_key
from sys.indexes i
join sys.index_columns ic on ic.object_id = i.object_id and ic.index_id = i.index_id
join sys.columns c on c.object_id = ic.object_id and c.column_id = ic.column_id
where i.object_id = ({_TABLE_ID}) and i.type > 0 and ic.is_included_column = 0
order by i.name, ic.key_ordinal
"""
        indexes: dict[str, dict] = {}
        for row in self._select(cn, sql, (schema, table_name), cancel):
            entry = indexes.setdefault(row['index_name'], {**row, 'columns': []})
            entry['columns'].append(OrderedColumn(
                row['column_name'],
                ColumnOrder.DESCENDING if row['is_descending_key'] else ColumnOrder.ASCENDING))
        return indexes

    def _query_primary_key(self, cn: Any, table_name: str, schema: str | None,
                           cancel: Any) -> PrimaryKeyConstraint | None:
        for name, entry in self._key_indexes(cn, table_name, schema, cancel).items():
            if entry['is_primary_key']:
                return PrimaryKeyConstraint(table_name, entry['columns'], constraint_name=name,
                                            schema_name=schema)
        return None

    def _query_unique_constraints(self, cn: Any, table_name: str, schema: str | None,
                                  cancel: Any) -> list[UniqueConstraint]:
        return [UniqueConstraint(table_name, entry['columns'], constraint_name=name,
                                 schema_name=schema)
                for name, entry in self._key_indexes(cn, table_name, schema, cancel).items()
                if entry['is_unique_constraint']]

    def _query_indexes(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Index]:
        return [Index(table_name, entry['columns'], is_unique=bool(entry['is_unique']),
                      index_name=name, schema_name=schema)
                for name, entry in self._key_indexes(cn, table_name, schema, cancel).items()
                if not entry['is_primary_key'] and not entry['is_unique_constraint']]

    def _query_check_constraints(self, cn: Any, table_name: str, schema: str | None,
                                 cancel: Any) -> list[CheckConstraint]:
        sql = f"""
select cc.name as constraint_name, cc.definition, col.name as column_name
from sys.check_constraints cc
left join sys.columns col on col.object_id = cc.parent_object_id
    and col.column_id = cc.parent_column_id
where cc.parent_object_id = ({_TABLE_ID})
order by cc.name
"""
        rows = self._select(cn, sql, (schema, table_name), cancel)
        column_names = None
        constraints = []
        for row in rows:
            expression = unwrap_parentheses(row['definition'])
            column_name = row['column_name']
            if column_name is None:
                # table-level checks have no parent column
                if column_names is None:
                    column_names = [c.column_name for c in
                                    self._query_columns(cn, table_name, schema, cancel)]
                column_name = infer_check_column(expression, column_names)
            constraints.append(CheckConstraint(table_name, column_name, expression,
                                               constraint_name=row['constraint_name'],
                                               schema_name=schema))
        return constraints

    def _query_default_constraints(self, cn: Any, table_name: str, schema: str | None,
                                   cancel: Any) -> list[DefaultConstraint]:
        sql = f"""
select dc.name as constraint_name, dc.definition, col.name as column_name
from sys.default_constraints dc
join sys.columns col on col.object_id = dc.parent_object_id
    and col.column_id = dc.parent_column_id
where dc.parent_object_id = ({_TABLE_ID})
order by col.column_id
"""
        return [DefaultConstraint(table_name, row['column_name'],
                                  unwrap_parentheses(row['definition']),
                                  constraint_name=row['constraint_name'], schema_name=schema)
                for row in self._select(cn, sql, (schema, table_name), cancel)]

    def _foreign_keys(self, cn: Any, table_name: str, schema: str | None, side: str,
                      cancel: Any) -> list[ForeignKeyConstraint]:
        sql = f"""
select
    fk.name as constraint_name,
    pt.name as table_name,
    ps.name as schema_name,
    rt.name as referenced_table_name,
    pc.name as column_name,
    rc.name as referenced_column_name,
    fk.delete_referential_action_desc as on_delete,
    fk.update_referential_action_desc as on_update
from sys.foreign_keys fk
join sys.foreign_key_columns fkc on fkc.constraint_object_id = fk.object_id
join sys.tables pt on pt.object_id = fk.parent_object_id
join sys.schemas ps on ps.schema_id = pt.schema_id
join sys.tables rt on rt.object_id = fk.referenced_object_id
join sys.columns pc on pc.object_id = fkc.parent_object_id
    and pc.column_id = fkc.parent_column_id
join sys.columns rc on rc.object_id = fkc.referenced_object_id
    and rc.column_id = fkc.referenced_column_id
where fk.{side} = ({_TABLE_ID})
order by ps.name, pt.name, fk.name, fkc.constraint_column_id
"""
        grouped: dict[tuple, list[dict]] = {}
        for row in self._select(cn, sql, (schema, table_name), cancel):
            key = (row['schema_name'], row['table_name'], row['constraint_name'])
            grouped.setdefault(key, []).append(row)
        return [ForeignKeyConstraint(
                    owner, [r['column_name'] for r in rows], rows[0]['referenced_table_name'],
                    [r['referenced_column_name'] for r in rows],
                    on_delete=rows[0]['on_delete'], on_update=rows[0]['on_update'],
                    constraint_name=name, schema_name=owner_schema)
                for (owner_schema, owner, name), rows in grouped.items()]

    def _query_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                            cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, schema, 'parent_object_id', cancel)

    def _query_referencing_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                                        cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, schema, 'referenced_object_id', cancel)

    def _query_views(self, cn: Any, schema: str | None, pattern: str | None,
                     cancel: Any) -> list[View]:
        sql = """
select v.name as view_name, m.definition
from sys.views v
join sys.schemas s on s.schema_id = v.schema_id
join sys.sql_modules m on m.object_id = v.object_id
where s.name = %s
"""
        params = (schema,)
        if pattern:
            sql += ' and v.name like %s'
            params = (schema, pattern)
        rows = self._select(cn, sql + ' order by v.name', params, cancel)
        return [View(row['view_name'],
                     _VIEW_PREFIX.sub('', row['definition'] or '', count=1).strip().rstrip(';'),
                     schema_name=schema)
                for row in rows]
