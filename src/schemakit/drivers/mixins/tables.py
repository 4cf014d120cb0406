"""
Table operations.

``create_table_if_not_exists`` issues one CREATE TABLE carrying the columns,
primary key, check, unique and foreign key constraints, then one CREATE INDEX
per index. If the CREATE TABLE fails no table exists afterwards; a failing
index leaves the table in place without the remaining indexes.
"""
import logging
from collections.abc import Iterable
from typing import Any

from schemakit.model import Table

logger = logging.getLogger(__name__)


class TableMixin:

    def table_exists(self, cn: Any, table_name: str, schema_name: str | None = None, *,
                     cancel: Any = None) -> bool:
        name = self.normalize_name(table_name)
        names = self._query_table_names(cn, self.resolve_schema(schema_name), name, cancel)
        return any(n.lower() == name.lower() for n in names)

    def get_table_names(self, cn: Any, name_filter: str | None = None,
                        schema_name: str | None = None, *, cancel: Any = None) -> list[str]:
        """Base table names, optionally filtered with ``*`` wildcards."""
        return self._query_table_names(
            cn, self.resolve_schema(schema_name), self.like_pattern(name_filter), cancel)

    def get_table(self, cn: Any, table_name: str, schema_name: str | None = None, *,
                  cancel: Any = None) -> Table | None:
        """Introspect a table with its constraints and indexes.

        Columns report key, nullability and identity flags; checks, defaults,
        unique and foreign key constraints are reported at table level only.
        """
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return None
        name = self.normalize_name(table_name)
        schema = self.resolve_schema(schema_name)
        return Table(
            table_name=name,
            columns=self._query_columns(cn, name, schema, cancel),
            schema_name=schema,
            primary_key_constraint=self._query_primary_key(cn, name, schema, cancel),
            check_constraints=self._query_check_constraints(cn, name, schema, cancel),
            default_constraints=self._query_default_constraints(cn, name, schema, cancel),
            unique_constraints=self._query_unique_constraints(cn, name, schema, cancel),
            foreign_key_constraints=self._query_foreign_keys(cn, name, schema, cancel),
            indexes=self._query_indexes(cn, name, schema, cancel),
            )

    def get_tables(self, cn: Any, name_filter: str | None = None,
                   schema_name: str | None = None, *, cancel: Any = None) -> list[Table]:
        tables = []
        for name in self.get_table_names(cn, name_filter, schema_name, cancel=cancel):
            table = self.get_table(cn, name, schema_name, cancel=cancel)
            if table is not None:
                tables.append(table)
        return tables

    def create_table_if_not_exists(self, cn: Any, table: Table, *, cancel: Any = None) -> bool:
        if self.table_exists(cn, table.table_name, table.schema_name, cancel=cancel):
            return False
        self._create_table(cn, table, include_foreign_keys=True, cancel=cancel)
        logger.info(f'Created table {table.table_name}')
        return True

    def create_tables_if_not_exists(self, cn: Any, tables: Iterable[Table], *,
                                    cancel: Any = None) -> bool:
        """Create several tables, adding foreign keys once every table exists.

        Returns
            True if any table was created
        """
        created = []
        for table in tables:
            if self.table_exists(cn, table.table_name, table.schema_name, cancel=cancel):
                continue
            self._create_table(cn, table, include_foreign_keys=not self.defer_foreign_keys,
                               cancel=cancel)
            created.append(table)
        if not self.defer_foreign_keys:
            return bool(created)
        for table in created:
            definition = self.table_definition(table)
            for constraint in definition.foreign_key_constraints:
                self.create_foreign_key_constraint_if_not_exists(cn, constraint, cancel=cancel)
        return bool(created)

    def _create_table(self, cn: Any, table: Table, include_foreign_keys: bool,
                      cancel: Any) -> None:
        definition = self.table_definition(table)
        self._execute(cn, self.create_table_sql(table, definition, include_foreign_keys),
                      cancel=cancel)
        for index in definition.indexes:
            self._execute(cn, self.create_index_sql(index), cancel=cancel)

    def drop_table_if_exists(self, cn: Any, table_name: str, schema_name: str | None = None,
                             *, cancel: Any = None) -> bool:
        """Drop a table after dropping foreign keys on other tables that reference it."""
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return False
        name = self.normalize_name(table_name)
        schema = self.resolve_schema(schema_name)
        for constraint in self._query_referencing_foreign_keys(cn, name, schema, cancel):
            if constraint.table_name.lower() == name.lower():
                continue
            self._drop_foreign_key(cn, constraint, cancel)
        self._execute(cn, f'DROP TABLE {self.qualified_name(name, schema)}', cancel=cancel)
        logger.info(f'Dropped table {name}')
        return True

    def rename_table_if_exists(self, cn: Any, table_name: str, new_table_name: str,
                               schema_name: str | None = None, *, cancel: Any = None) -> bool:
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return False
        sql, params = self.rename_table_sql(table_name, new_table_name, schema_name)
        self._execute(cn, sql, params, cancel=cancel)
        logger.info(f'Renamed table {table_name} to {new_table_name}')
        return True

    def truncate_table_if_exists(self, cn: Any, table_name: str,
                                 schema_name: str | None = None, *, cancel: Any = None) -> bool:
        """Remove every row, keeping the table definition."""
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return False
        self._execute(cn, self.truncate_table_sql(table_name, schema_name), cancel=cancel)
        logger.info(f'Truncated table {table_name}')
        return True
