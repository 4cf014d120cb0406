"""
PostgreSQL schema driver.

Catalog data comes from ``pg_catalog`` rather than ``information_schema`` so
that key column order, descending index columns and identity columns are
reported exactly. Unquoted identifiers fold to lower case in PostgreSQL, so
names are normalized to lower case before they are quoted.

Defaults are column properties here: they are reported under the derived name
``df_{table}_{column}`` and changed with ``ALTER COLUMN SET/DROP DEFAULT``.
"""
import logging
from typing import Any

from schemakit.adapters.postgres_types import PostgresTypeMap
from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.dialect import Dialect
from schemakit.drivers.base import DialectDriver, register_driver
from schemakit.model import CheckConstraint, Column, ColumnOrder
from schemakit.model import DefaultConstraint, ForeignKeyAction
from schemakit.model import ForeignKeyConstraint, Index, OrderedColumn
from schemakit.model import PrimaryKeyConstraint, UniqueConstraint, View
from schemakit.sql import unwrap_parentheses
from schemakit.utils import extract_version

logger = logging.getLogger(__name__)

# oid of a table by schema and name
_TABLE_OID = """
select c.oid from pg_class c
join pg_namespace n on n.oid = c.relnamespace
where n.nspname = %s and c.relname = %s
"""

_FOREIGN_KEY_ACTIONS = {
    'a': ForeignKeyAction.NO_ACTION,
    'r': ForeignKeyAction.RESTRICT,
    'c': ForeignKeyAction.CASCADE,
    'n': ForeignKeyAction.SET_NULL,
    'd': ForeignKeyAction.SET_DEFAULT,
    }


def _check_expression(definition: str) -> str:
    """``CHECK ((price > 0)) NOT VALID`` -> ``price > 0``"""
    text = definition.strip()
    if text.upper().startswith('CHECK'):
        text = text[5:]
    if text.upper().endswith('NOT VALID'):
        text = text[:-9]
    return unwrap_parentheses(text)


@register_driver(Dialect.POSTGRESQL)
class PostgresDriver(DialectDriver):
    """PostgreSQL schema operations.
    """

    dialect = Dialect.POSTGRESQL
    type_map_class = PostgresTypeMap

    supports_ordered_keys_in_constraints = False

    default_schema_name = 'public'
    lowercase_identifiers = True

    identity_after_type = 'GENERATED BY DEFAULT AS IDENTITY'

    def get_database_version(self, cn: Any, *, cancel: Any = None) -> tuple[int, ...] | None:
        return extract_version(self._select_scalar(cn, 'select version()', cancel=cancel))

    def _interrupt_callback(self, raw_connection: Any, cursor: Any):
        return raw_connection.cancel

    def discover_custom_data_types(self, cn: Any, *, cancel: Any = None) -> list[DataTypeInfo]:
        """Domains, enums and composite types defined outside the system schemas.

        The entries are returned, not registered; pass them to
        ``TypeMappingConfig.add_custom_type`` to make them resolvable.
        """
        domains = """
select t.typname as type_name, format_type(t.typbasetype, t.typtypmod) as base_type
from pg_type t
join pg_namespace n on n.oid = t.typnamespace
where t.typtype = 'd' and n.nspname !~ '^pg_' and n.nspname <> 'information_schema'
order by t.typname
"""
        enums = """
select t.typname as type_name,
    string_agg(e.enumlabel, ', ' order by e.enumsortorder) as labels
from pg_type t
join pg_enum e on e.enumtypid = t.oid
group by t.typname
order by t.typname
"""
        composites = """
select t.typname as type_name,
    string_agg(a.attname || ': ' || format_type(a.atttypid, a.atttypmod), ', ' order by a.attnum) as fields
from pg_type t
join pg_class c on c.oid = t.typrelid
join pg_attribute a on a.attrelid = c.oid and a.attnum > 0 and not a.attisdropped
where t.typtype = 'c' and c.relkind = 'c'
group by t.typname
order by t.typname
"""
        types = []
        for row in self._select(cn, domains, cancel=cancel):
            types.append(DataTypeInfo(
                data_type=row['type_name'], category=DataTypeCategory.CUSTOM,
                is_common=False, is_custom=True,
                description=f'Domain based on {row["base_type"]}'))
        for row in self._select(cn, enums, cancel=cancel):
            types.append(DataTypeInfo(
                data_type=row['type_name'], category=DataTypeCategory.CUSTOM,
                is_common=False, is_custom=True,
                description=f'Enum with values: {row["labels"]}',
                examples=tuple(row['labels'].split(', '))))
        for row in self._select(cn, composites, cancel=cancel):
            types.append(DataTypeInfo(
                data_type=row['type_name'], category=DataTypeCategory.CUSTOM,
                is_common=False, is_custom=True,
                description=f'Composite type with columns: {row["fields"]}'))
        logger.debug(f'Discovered {len(types)} custom types')
        return types

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _query_schema_names(self, cn: Any, pattern: str | None, cancel: Any) -> list[str]:
        sql = """
select nspname from pg_namespace
where nspname !~ '^pg_' and nspname <> 'information_schema'
"""
        params = ()
        if pattern:
            sql += ' and nspname like %s'
            params = (pattern,)
        return self._select_column(cn, sql + ' order by nspname', params, cancel)

    def _query_table_names(self, cn: Any, schema: str | None, pattern: str | None,
                           cancel: Any) -> list[str]:
        sql = """
select c.relname from pg_class c
join pg_namespace n on n.oid = c.relnamespace
where c.relkind in ('r', 'p') and n.nspname = %s
"""
        params = (schema,)
        if pattern:
            sql += ' and c.relname like %s'
            params = (schema, pattern)
        return self._select_column(cn, sql + ' order by c.relname', params, cancel)

    def _query_columns(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Column]:
        sql = f"""
select
    a.attname as column_name,
    format_type(a.atttypid, a.atttypmod) as data_type,
    not a.attnotnull as is_nullable,
    a.attidentity <> '' or coalesce(pg_get_expr(d.adbin, d.adrelid), '') like 'nextval(%' as is_auto_increment,
    coalesce(a.attnum = any(pk.conkey), false) as is_primary_key
from pg_attribute a
left join pg_attrdef d on d.adrelid = a.attrelid and d.adnum = a.attnum
left join pg_constraint pk on pk.conrelid = a.attrelid and pk.contype = 'p'
where a.attrelid = ({_TABLE_OID}) and a.attnum > 0 and not a.attisdropped
order by a.attnum
"""
        return [self._introspected_column(
                    row['column_name'], row['data_type'],
                    is_nullable=row['is_nullable'],
                    is_auto_increment=row['is_auto_increment'],
                    is_primary_key=row['is_primary_key'])
                for row in self._select(cn, sql, (schema, table_name), cancel)]

    def _key_constraints(self, cn: Any, table_name: str, schema: str | None, kind: str,
                         cancel: Any) -> dict[str, list[str]]:
        sql = f"""
select con.conname as constraint_name, a.attname as column_name
from pg_constraint con
cross join lateral unnest(con.conkey) with ordinality as k(attnum, ord)
join pg_attribute a on a.attrelid = con.conrelid and a.attnum = k.attnum
where con.conrelid = ({_TABLE_OID}) and con.contype = %s
order by con.conname, k.ord
"""
        grouped: dict[str, list[str]] = {}
        for row in self._select(cn, sql, (schema, table_name, kind), cancel):
            grouped.setdefault(row['constraint_name'], []).append(row['column_name'])
        return grouped

    def _query_primary_key(self, cn: Any, table_name: str, schema: str | None,
                           cancel: Any) -> PrimaryKeyConstraint | None:
        for name, columns in self._key_constraints(cn, table_name, schema, 'p', cancel).items():
            return PrimaryKeyConstraint(table_name, columns, constraint_name=name,
                                        schema_name=schema)
        return None

    def _query_unique_constraints(self, cn: Any, table_name: str, schema: str | None,
                                  cancel: Any) -> list[UniqueConstraint]:
        return [UniqueConstraint(table_name, columns, constraint_name=name, schema_name=schema)
                for name, columns in self._key_constraints(
                    cn, table_name, schema, 'u', cancel).items()]

    def _query_check_constraints(self, cn: Any, table_name: str, schema: str | None,
                                 cancel: Any) -> list[CheckConstraint]:
        sql = f"""
select
    con.conname as constraint_name,
    pg_get_constraintdef(con.oid, true) as definition,
    case when cardinality(con.conkey) = 1 then (
        select a.attname from pg_attribute a
        where a.attrelid = con.conrelid and a.attnum = con.conkey[1]
    ) end as column_name
from pg_constraint con
where con.conrelid = ({_TABLE_OID}) and con.contype = 'c'
order by con.conname
"""
        return [CheckConstraint(table_name, row['column_name'],
                                _check_expression(row['definition']),
                                constraint_name=row['constraint_name'], schema_name=schema)
                for row in self._select(cn, sql, (schema, table_name), cancel)]

    def _query_default_constraints(self, cn: Any, table_name: str, schema: str | None,
                                   cancel: Any) -> list[DefaultConstraint]:
        sql = f"""
select a.attname as column_name, pg_get_expr(d.adbin, d.adrelid) as expression
from pg_attrdef d
join pg_attribute a on a.attrelid = d.adrelid and a.attnum = d.adnum
where d.adrelid = ({_TABLE_OID}) and not a.attisdropped
    and a.attidentity = '' and a.attgenerated = ''
order by a.attnum
"""
        return [DefaultConstraint(table_name, row['column_name'], row['expression'],
                                  schema_name=schema)
                for row in self._select(cn, sql, (schema, table_name), cancel)
                if not row['expression'].lower().startswith('nextval(')]

    def _foreign_keys(self, cn: Any, table_name: str, schema: str | None, side: str,
                      cancel: Any) -> list[ForeignKeyConstraint]:
        sql = f"""
select
    con.conname as constraint_name,
    src.relname as table_name,
    srcns.nspname as schema_name,
    ref.relname as referenced_table_name,
    a.attname as column_name,
    ra.attname as referenced_column_name,
    con.confdeltype as on_delete,
    con.confupdtype as on_update
from pg_constraint con
join pg_class src on src.oid = con.conrelid
join pg_namespace srcns on srcns.oid = src.relnamespace
join pg_class ref on ref.oid = con.confrelid
cross join lateral unnest(con.conkey, con.confkey) with ordinality as k(attnum, refnum, ord)
join pg_attribute a on a.attrelid = con.conrelid and a.attnum = k.attnum
join pg_attribute ra on ra.attrelid = con.confrelid and ra.attnum = k.refnum
where con.contype = 'f' and con.{side} = ({_TABLE_OID})
order by srcns.nspname, src.relname, con.conname, k.ord
"""
        grouped: dict[tuple, list[dict]] = {}
        for row in self._select(cn, sql, (schema, table_name), cancel):
            key = (row['schema_name'], row['table_name'], row['constraint_name'])
            grouped.setdefault(key, []).append(row)
        constraints = []
        for (owner_schema, owner, name), rows in grouped.items():
            first = rows[0]
            constraints.append(ForeignKeyConstraint(
                owner, [r['column_name'] for r in rows], first['referenced_table_name'],
                [r['referenced_column_name'] for r in rows],
                on_delete=_FOREIGN_KEY_ACTIONS.get(first['on_delete'], ForeignKeyAction.NO_ACTION),
                on_update=_FOREIGN_KEY_ACTIONS.get(first['on_update'], ForeignKeyAction.NO_ACTION),
                constraint_name=name, schema_name=owner_schema))
        return constraints

    def _query_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                            cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, schema, 'conrelid', cancel)

    def _query_referencing_foreign_keys(self, cn: Any, table_name: str, schema: str | None,
                                        cancel: Any) -> list[ForeignKeyConstraint]:
        return self._foreign_keys(cn, table_name, schema, 'confrelid', cancel)

    def _query_indexes(self, cn: Any, table_name: str, schema: str | None,
                       cancel: Any) -> list[Index]:
        sql = f"""
select
    i.relname as index_name,
    ix.indisunique as is_unique,
    a.attname as column_name,
    (ix.indoption[k.ord::int - 1] & 1) = 1 as is_descending
from pg_index ix
join pg_class i on i.oid = ix.indexrelid
cross join lateral unnest(ix.indkey::smallint[]) with ordinality as k(attnum, ord)
join pg_attribute a on a.attrelid = ix.indrelid and a.attnum = k.attnum
where ix.indrelid = ({_TABLE_OID})
    and not ix.indisprimary
    and k.ord <= ix.indnkeyatts
    and not exists (
        select 1 from pg_constraint con
        where con.conindid = ix.indexrelid and con.contype in ('p', 'u', 'x')
    )
order by i.relname, k.ord
"""
        grouped: dict[str, list[dict]] = {}
        for row in self._select(cn, sql, (schema, table_name), cancel):
            grouped.setdefault(row['index_name'], []).append(row)
        return [Index(table_name,
                      [OrderedColumn(r['column_name'],
                                     ColumnOrder.DESCENDING if r['is_descending'] else ColumnOrder.ASCENDING)
                       for r in rows],
                      is_unique=rows[0]['is_unique'], index_name=name, schema_name=schema)
                for name, rows in grouped.items()]

    def _query_views(self, cn: Any, schema: str | None, pattern: str | None,
                     cancel: Any) -> list[View]:
        sql = """
select c.relname as view_name, pg_get_viewdef(c.oid, true) as definition
from pg_class c
join pg_namespace n on n.oid = c.relnamespace
where c.relkind = 'v' and n.nspname = %s
"""
        params = (schema,)
        if pattern:
            sql += ' and c.relname like %s'
            params = (schema, pattern)
        rows = self._select(cn, sql + ' order by c.relname', params, cancel)
        return [View(row['view_name'], (row['definition'] or '').strip().rstrip(';').strip(),
                     schema_name=schema)
                for row in rows]
