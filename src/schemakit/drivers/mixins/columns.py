"""
Column operations.
"""
import logging
from typing import Any

from schemakit.exceptions import SchemaError
from schemakit.model import CheckConstraint, Column, DefaultConstraint
from schemakit.model import ForeignKeyConstraint, Index, PrimaryKeyConstraint
from schemakit.model import UniqueConstraint
from schemakit.sql import like_match

logger = logging.getLogger(__name__)


class ColumnMixin:

    def get_columns(self, cn: Any, table_name: str, name_filter: str | None = None,
                    schema_name: str | None = None, *, cancel: Any = None) -> list[Column]:
        """Columns of a table in ordinal order, optionally filtered by name."""
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return []
        name = self.normalize_name(table_name)
        schema = self.resolve_schema(schema_name)
        pattern = self.like_pattern(name_filter)
        columns = []
        for column in self._query_columns(cn, name, schema, cancel):
            if like_match(column.column_name, pattern):
                column.table_name = name
                column.schema_name = schema
                columns.append(column)
        return columns

    def get_column_names(self, cn: Any, table_name: str, name_filter: str | None = None,
                         schema_name: str | None = None, *, cancel: Any = None) -> list[str]:
        return [c.column_name for c in self.get_columns(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_column(self, cn: Any, table_name: str, column_name: str,
                   schema_name: str | None = None, *, cancel: Any = None) -> Column | None:
        name = self.normalize_name(column_name)
        for column in self.get_columns(cn, table_name, None, schema_name, cancel=cancel):
            if column.column_name.lower() == name.lower():
                return column
        return None

    def column_exists(self, cn: Any, table_name: str, column_name: str,
                      schema_name: str | None = None, *, cancel: Any = None) -> bool:
        return self.get_column(cn, table_name, column_name, schema_name, cancel=cancel) is not None

    def create_column_if_not_exists(self, cn: Any, table_name: str, column: Column,
                                    schema_name: str | None = None, *,
                                    cancel: Any = None) -> bool:
        """Add a column, then the constraints and index its flags ask for.

        Raises
            SchemaError: If the table does not exist
        """
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            raise SchemaError(f'Table {table_name!r} does not exist')
        if self.column_exists(cn, table_name, column.column_name, schema_name, cancel=cancel):
            return False
        self._add_column(cn, self.normalize_name(table_name), column,
                         self.resolve_schema(schema_name), cancel)
        logger.info(f'Added column {column.column_name} to {table_name}')
        return True

    def _add_column(self, cn: Any, table_name: str, column: Column, schema: str | None,
                    cancel: Any) -> None:
        default = None
        if column.default_expression is not None:
            default = DefaultConstraint(table_name, column.column_name,
                                        column.default_expression, schema_name=schema)
        self._execute(cn, self.add_column_sql(
            table_name, schema, self.column_definition(column, default)), cancel=cancel)

        if column.is_primary_key:
            self.create_primary_key_constraint_if_not_exists(
                cn, PrimaryKeyConstraint(table_name, [column.column_name], schema_name=schema),
                cancel=cancel)
        if column.check_expression:
            self.create_check_constraint_if_not_exists(
                cn, CheckConstraint(table_name, column.column_name, column.check_expression,
                                    schema_name=schema),
                cancel=cancel)
        if column.is_unique and not column.is_primary_key:
            self.create_unique_constraint_if_not_exists(
                cn, UniqueConstraint(table_name, [column.column_name], schema_name=schema),
                cancel=cancel)
        if column.is_foreign_key and column.referenced_table_name:
            self.create_foreign_key_constraint_if_not_exists(
                cn, ForeignKeyConstraint(
                    table_name, [column.column_name], column.referenced_table_name,
                    [column.referenced_column_name or column.column_name],
                    on_delete=column.on_delete, on_update=column.on_update,
                    schema_name=schema),
                cancel=cancel)
        if column.is_indexed:
            self.create_index_if_not_exists(
                cn, Index(table_name, [column.column_name], schema_name=schema), cancel=cancel)

    def drop_column_if_exists(self, cn: Any, table_name: str, column_name: str,
                              schema_name: str | None = None, *, cancel: Any = None) -> bool:
        """Drop a column together with the constraints and indexes that use it."""
        if not self.column_exists(cn, table_name, column_name, schema_name, cancel=cancel):
            return False
        self._drop_column(cn, self.normalize_name(table_name), self.normalize_name(column_name),
                          self.resolve_schema(schema_name), cancel)
        logger.info(f'Dropped column {column_name} from {table_name}')
        return True

    def _drop_column(self, cn: Any, table_name: str, column_name: str, schema: str | None,
                     cancel: Any) -> None:
        for constraint in self._query_foreign_keys(cn, table_name, schema, cancel):
            if constraint.has_column(column_name):
                self._drop_foreign_key(cn, constraint, cancel)
        for constraint in self._query_referencing_foreign_keys(cn, table_name, schema, cancel):
            if any(c.column_name.lower() == column_name.lower()
                   for c in constraint.referenced_columns):
                self._drop_foreign_key(cn, constraint, cancel)
        for index in self._query_indexes(cn, table_name, schema, cancel):
            if index.has_column(column_name):
                self._execute(cn, self.drop_index_sql(index), cancel=cancel)
        for constraint in self._query_unique_constraints(cn, table_name, schema, cancel):
            if constraint.has_column(column_name):
                self._drop_unique_constraint(cn, constraint, cancel)
        for constraint in self._query_check_constraints(cn, table_name, schema, cancel):
            if constraint.has_column(column_name):
                self._drop_check_constraint(cn, constraint, cancel)
        if self.supports_default_constraints:
            for constraint in self._query_default_constraints(cn, table_name, schema, cancel):
                if constraint.has_column(column_name):
                    self._drop_default_constraint(cn, constraint, cancel)
        primary_key = self._query_primary_key(cn, table_name, schema, cancel)
        if primary_key is not None and primary_key.has_column(column_name):
            self._drop_primary_key(cn, primary_key, cancel)
        self._execute(cn, self.drop_column_sql(table_name, schema, column_name), cancel=cancel)

    def rename_column_if_exists(self, cn: Any, table_name: str, column_name: str,
                                new_column_name: str, schema_name: str | None = None, *,
                                cancel: Any = None) -> bool:
        if not self.column_exists(cn, table_name, column_name, schema_name, cancel=cancel):
            return False
        sql, params = self.rename_column_sql(table_name, column_name, new_column_name, schema_name)
        self._execute(cn, sql, params, cancel=cancel)
        logger.info(f'Renamed column {column_name} to {new_column_name} on {table_name}')
        return True
