"""
Check, default, unique, foreign key and primary key constraint operations.

Lookups by name compare case-insensitively against the names the catalog
reports or, where a dialect does not catalog a kind, against the derived
names from ``schemakit.model.naming``. Drops look the constraint up first and
hand the introspected object to the dialect, so dialects that manage a kind
as a column property (defaults on PostgreSQL and MySQL) still know the column.
"""
import logging
from typing import Any

from schemakit.model import CheckConstraint, DefaultConstraint
from schemakit.model import ForeignKeyConstraint, PrimaryKeyConstraint
from schemakit.model import UniqueConstraint
from schemakit.sql import like_match

logger = logging.getLogger(__name__)


def _find(constraints: list, constraint_name: str):
    name = (constraint_name or '').lower()
    for constraint in constraints:
        if (constraint.constraint_name or '').lower() == name:
            return constraint
    return None


class _ConstraintLookup:
    """Table-scoped fetch shared by the constraint families."""

    def _constraints(self, cn: Any, query, table_name: str, schema_name: str | None,
                     name_filter: str | None, cancel: Any) -> list:
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return []
        pattern = self.like_pattern(name_filter)
        constraints = query(cn, self.normalize_name(table_name),
                            self.resolve_schema(schema_name), cancel)
        return [c for c in constraints if like_match(c.constraint_name, pattern)]


class CheckConstraintMixin(_ConstraintLookup):

    def get_check_constraints(self, cn: Any, table_name: str, name_filter: str | None = None,
                              schema_name: str | None = None, *,
                              cancel: Any = None) -> list[CheckConstraint]:
        return self._constraints(cn, self._query_check_constraints, table_name, schema_name,
                                 name_filter, cancel)

    def get_check_constraint_names(self, cn: Any, table_name: str,
                                   name_filter: str | None = None,
                                   schema_name: str | None = None, *,
                                   cancel: Any = None) -> list[str]:
        return [c.constraint_name for c in self.get_check_constraints(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_check_constraint(self, cn: Any, table_name: str, constraint_name: str,
                             schema_name: str | None = None, *,
                             cancel: Any = None) -> CheckConstraint | None:
        return _find(self.get_check_constraints(cn, table_name, None, schema_name, cancel=cancel),
                     self.normalize_name(constraint_name))

    def get_check_constraint_on_column(self, cn: Any, table_name: str, column_name: str,
                                       schema_name: str | None = None, *,
                                       cancel: Any = None) -> CheckConstraint | None:
        column_name = self.normalize_name(column_name)
        for constraint in self.get_check_constraints(cn, table_name, None, schema_name,
                                                     cancel=cancel):
            if constraint.has_column(column_name):
                return constraint
        return None

    def check_constraint_exists(self, cn: Any, table_name: str, constraint_name: str,
                                schema_name: str | None = None, *, cancel: Any = None) -> bool:
        return self.get_check_constraint(cn, table_name, constraint_name, schema_name,
                                         cancel=cancel) is not None

    def check_constraint_exists_on_column(self, cn: Any, table_name: str, column_name: str,
                                          schema_name: str | None = None, *,
                                          cancel: Any = None) -> bool:
        return self.get_check_constraint_on_column(cn, table_name, column_name, schema_name,
                                                   cancel=cancel) is not None

    def create_check_constraint_if_not_exists(self, cn: Any, constraint: CheckConstraint, *,
                                              cancel: Any = None) -> bool:
        if self.check_constraint_exists(cn, constraint.table_name, constraint.constraint_name,
                                        constraint.schema_name, cancel=cancel):
            return False
        self._add_check_constraint(cn, constraint, cancel)
        logger.info(f'Created check constraint {constraint.constraint_name}')
        return True

    def _add_check_constraint(self, cn: Any, constraint: CheckConstraint, cancel: Any) -> None:
        self._execute(cn, self.add_constraint_sql(
            constraint.table_name, constraint.schema_name, self.check_clause(constraint)),
            cancel=cancel)

    def drop_check_constraint_if_exists(self, cn: Any, table_name: str, constraint_name: str,
                                        schema_name: str | None = None, *,
                                        cancel: Any = None) -> bool:
        constraint = self.get_check_constraint(cn, table_name, constraint_name, schema_name,
                                               cancel=cancel)
        if constraint is None:
            return False
        self._drop_check_constraint(cn, constraint, cancel)
        logger.info(f'Dropped check constraint {constraint.constraint_name}')
        return True

    def drop_check_constraint_on_column_if_exists(self, cn: Any, table_name: str,
                                                  column_name: str,
                                                  schema_name: str | None = None, *,
                                                  cancel: Any = None) -> bool:
        column_name = self.normalize_name(column_name)
        constraints = [c for c in self.get_check_constraints(cn, table_name, None, schema_name,
                                                             cancel=cancel)
                       if c.has_column(column_name)]
        for constraint in constraints:
            self._drop_check_constraint(cn, constraint, cancel)
            logger.info(f'Dropped check constraint {constraint.constraint_name}')
        return bool(constraints)

    def _drop_check_constraint(self, cn: Any, constraint: CheckConstraint, cancel: Any) -> None:
        self._execute(cn, self.drop_constraint_sql(
            constraint.table_name, constraint.schema_name, constraint.constraint_name, 'check'),
            cancel=cancel)


class DefaultConstraintMixin(_ConstraintLookup):

    def get_default_constraints(self, cn: Any, table_name: str, name_filter: str | None = None,
                                schema_name: str | None = None, *,
                                cancel: Any = None) -> list[DefaultConstraint]:
        return self._constraints(cn, self._query_default_constraints, table_name, schema_name,
                                 name_filter, cancel)

    def get_default_constraint_names(self, cn: Any, table_name: str,
                                     name_filter: str | None = None,
                                     schema_name: str | None = None, *,
                                     cancel: Any = None) -> list[str]:
        return [c.constraint_name for c in self.get_default_constraints(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_default_constraint(self, cn: Any, table_name: str, constraint_name: str,
                               schema_name: str | None = None, *,
                               cancel: Any = None) -> DefaultConstraint | None:
        return _find(self.get_default_constraints(cn, table_name, None, schema_name,
                                                  cancel=cancel),
                     self.normalize_name(constraint_name))

    def get_default_constraint_on_column(self, cn: Any, table_name: str, column_name: str,
                                         schema_name: str | None = None, *,
                                         cancel: Any = None) -> DefaultConstraint | None:
        column_name = self.normalize_name(column_name)
        for constraint in self.get_default_constraints(cn, table_name, None, schema_name,
                                                       cancel=cancel):
            if constraint.has_column(column_name):
                return constraint
        return None

    def get_default_constraint_name_on_column(self, cn: Any, table_name: str,
                                              column_name: str,
                                              schema_name: str | None = None, *,
                                              cancel: Any = None) -> str | None:
        constraint = self.get_default_constraint_on_column(cn, table_name, column_name,
                                                           schema_name, cancel=cancel)
        return constraint.constraint_name if constraint else None

    def default_constraint_exists(self, cn: Any, table_name: str, constraint_name: str,
                                  schema_name: str | None = None, *,
                                  cancel: Any = None) -> bool:
        return self.get_default_constraint(cn, table_name, constraint_name, schema_name,
                                           cancel=cancel) is not None

    def default_constraint_exists_on_column(self, cn: Any, table_name: str, column_name: str,
                                            schema_name: str | None = None, *,
                                            cancel: Any = None) -> bool:
        return self.get_default_constraint_on_column(cn, table_name, column_name, schema_name,
                                                     cancel=cancel) is not None

    def create_default_constraint_if_not_exists(self, cn: Any, constraint: DefaultConstraint,
                                                *, cancel: Any = None) -> bool:
        """Add a column default. A column holds at most one default, so any
        existing default on the column makes this a no-op.
        """
        if self.default_constraint_exists_on_column(cn, constraint.table_name,
                                                    constraint.column_name,
                                                    constraint.schema_name, cancel=cancel):
            return False
        self._add_default_constraint(cn, constraint, cancel)
        logger.info(f'Created default constraint {constraint.constraint_name}')
        return True

    def _add_default_constraint(self, cn: Any, constraint: DefaultConstraint,
                                cancel: Any) -> None:
        self._execute(cn, self.set_default_sql(constraint), cancel=cancel)

    def drop_default_constraint_if_exists(self, cn: Any, table_name: str, constraint_name: str,
                                          schema_name: str | None = None, *,
                                          cancel: Any = None) -> bool:
        constraint = self.get_default_constraint(cn, table_name, constraint_name, schema_name,
                                                 cancel=cancel)
        if constraint is None:
            return False
        self._drop_default_constraint(cn, constraint, cancel)
        logger.info(f'Dropped default constraint {constraint.constraint_name}')
        return True

    def drop_default_constraint_on_column_if_exists(self, cn: Any, table_name: str,
                                                    column_name: str,
                                                    schema_name: str | None = None, *,
                                                    cancel: Any = None) -> bool:
        constraint = self.get_default_constraint_on_column(cn, table_name, column_name,
                                                           schema_name, cancel=cancel)
        if constraint is None:
            return False
        self._drop_default_constraint(cn, constraint, cancel)
        logger.info(f'Dropped default constraint {constraint.constraint_name}')
        return True

    def _drop_default_constraint(self, cn: Any, constraint: DefaultConstraint,
                                 cancel: Any) -> None:
        self._execute(cn, self.drop_default_sql(constraint), cancel=cancel)


class UniqueConstraintMixin(_ConstraintLookup):

    def get_unique_constraints(self, cn: Any, table_name: str, name_filter: str | None = None,
                               schema_name: str | None = None, *,
                               cancel: Any = None) -> list[UniqueConstraint]:
        return self._constraints(cn, self._query_unique_constraints, table_name, schema_name,
                                 name_filter, cancel)

    def get_unique_constraint_names(self, cn: Any, table_name: str,
                                    name_filter: str | None = None,
                                    schema_name: str | None = None, *,
                                    cancel: Any = None) -> list[str]:
        return [c.constraint_name for c in self.get_unique_constraints(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_unique_constraint(self, cn: Any, table_name: str, constraint_name: str,
                              schema_name: str | None = None, *,
                              cancel: Any = None) -> UniqueConstraint | None:
        return _find(self.get_unique_constraints(cn, table_name, None, schema_name,
                                                 cancel=cancel),
                     self.normalize_name(constraint_name))

    def get_unique_constraint_on_column(self, cn: Any, table_name: str, column_name: str,
                                        schema_name: str | None = None, *,
                                        cancel: Any = None) -> UniqueConstraint | None:
        column_name = self.normalize_name(column_name)
        for constraint in self.get_unique_constraints(cn, table_name, None, schema_name,
                                                      cancel=cancel):
            if constraint.has_column(column_name):
                return constraint
        return None

    def unique_constraint_exists(self, cn: Any, table_name: str, constraint_name: str,
                                 schema_name: str | None = None, *, cancel: Any = None) -> bool:
        return self.get_unique_constraint(cn, table_name, constraint_name, schema_name,
                                          cancel=cancel) is not None

    def unique_constraint_exists_on_column(self, cn: Any, table_name: str, column_name: str,
                                           schema_name: str | None = None, *,
                                           cancel: Any = None) -> bool:
        return self.get_unique_constraint_on_column(cn, table_name, column_name, schema_name,
                                                    cancel=cancel) is not None

    def create_unique_constraint_if_not_exists(self, cn: Any, constraint: UniqueConstraint, *,
                                               cancel: Any = None) -> bool:
        if self.unique_constraint_exists(cn, constraint.table_name, constraint.constraint_name,
                                         constraint.schema_name, cancel=cancel):
            return False
        self._add_unique_constraint(cn, constraint, cancel)
        logger.info(f'Created unique constraint {constraint.constraint_name}')
        return True

    def _add_unique_constraint(self, cn: Any, constraint: UniqueConstraint, cancel: Any) -> None:
        self._execute(cn, self.add_constraint_sql(
            constraint.table_name, constraint.schema_name, self.unique_clause(constraint)),
            cancel=cancel)

    def drop_unique_constraint_if_exists(self, cn: Any, table_name: str, constraint_name: str,
                                         schema_name: str | None = None, *,
                                         cancel: Any = None) -> bool:
        constraint = self.get_unique_constraint(cn, table_name, constraint_name, schema_name,
                                                cancel=cancel)
        if constraint is None:
            return False
        self._drop_unique_constraint(cn, constraint, cancel)
        logger.info(f'Dropped unique constraint {constraint.constraint_name}')
        return True

    def _drop_unique_constraint(self, cn: Any, constraint: UniqueConstraint,
                                cancel: Any) -> None:
        self._execute(cn, self.drop_constraint_sql(
            constraint.table_name, constraint.schema_name, constraint.constraint_name, 'unique'),
            cancel=cancel)


class ForeignKeyConstraintMixin(_ConstraintLookup):

    def get_foreign_key_constraints(self, cn: Any, table_name: str,
                                    name_filter: str | None = None,
                                    schema_name: str | None = None, *,
                                    cancel: Any = None) -> list[ForeignKeyConstraint]:
        return self._constraints(cn, self._query_foreign_keys, table_name, schema_name,
                                 name_filter, cancel)

    def get_foreign_key_constraint_names(self, cn: Any, table_name: str,
                                         name_filter: str | None = None,
                                         schema_name: str | None = None, *,
                                         cancel: Any = None) -> list[str]:
        return [c.constraint_name for c in self.get_foreign_key_constraints(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_foreign_key_constraint(self, cn: Any, table_name: str, constraint_name: str,
                                   schema_name: str | None = None, *,
                                   cancel: Any = None) -> ForeignKeyConstraint | None:
        return _find(self.get_foreign_key_constraints(cn, table_name, None, schema_name,
                                                      cancel=cancel),
                     self.normalize_name(constraint_name))

    def get_foreign_key_constraint_on_column(self, cn: Any, table_name: str, column_name: str,
                                             schema_name: str | None = None, *,
                                             cancel: Any = None) -> ForeignKeyConstraint | None:
        column_name = self.normalize_name(column_name)
        for constraint in self.get_foreign_key_constraints(cn, table_name, None, schema_name,
                                                           cancel=cancel):
            if constraint.has_column(column_name):
                return constraint
        return None

    def foreign_key_constraint_exists(self, cn: Any, table_name: str, constraint_name: str,
                                      schema_name: str | None = None, *,
                                      cancel: Any = None) -> bool:
        return self.get_foreign_key_constraint(cn, table_name, constraint_name, schema_name,
                                               cancel=cancel) is not None

    def foreign_key_constraint_exists_on_column(self, cn: Any, table_name: str,
                                                column_name: str,
                                                schema_name: str | None = None, *,
                                                cancel: Any = None) -> bool:
        return self.get_foreign_key_constraint_on_column(cn, table_name, column_name,
                                                         schema_name, cancel=cancel) is not None

    def create_foreign_key_constraint_if_not_exists(self, cn: Any,
                                                    constraint: ForeignKeyConstraint, *,
                                                    cancel: Any = None) -> bool:
        if self.foreign_key_constraint_exists(cn, constraint.table_name,
                                              constraint.constraint_name,
                                              constraint.schema_name, cancel=cancel):
            return False
        self._add_foreign_key(cn, constraint, cancel)
        logger.info(f'Created foreign key {constraint.constraint_name}')
        return True

    def _add_foreign_key(self, cn: Any, constraint: ForeignKeyConstraint, cancel: Any) -> None:
        self._execute(cn, self.add_constraint_sql(
            constraint.table_name, constraint.schema_name, self.foreign_key_clause(constraint)),
            cancel=cancel)

    def drop_foreign_key_constraint_if_exists(self, cn: Any, table_name: str,
                                              constraint_name: str,
                                              schema_name: str | None = None, *,
                                              cancel: Any = None) -> bool:
        constraint = self.get_foreign_key_constraint(cn, table_name, constraint_name,
                                                     schema_name, cancel=cancel)
        if constraint is None:
            return False
        self._drop_foreign_key(cn, constraint, cancel)
        logger.info(f'Dropped foreign key {constraint.constraint_name}')
        return True

    def _drop_foreign_key(self, cn: Any, constraint: ForeignKeyConstraint, cancel: Any) -> None:
        self._execute(cn, self.drop_constraint_sql(
            constraint.table_name, constraint.schema_name, constraint.constraint_name, 'foreign'),
            cancel=cancel)


class PrimaryKeyConstraintMixin:

    def get_primary_key_constraint(self, cn: Any, table_name: str,
                                   schema_name: str | None = None, *,
                                   cancel: Any = None) -> PrimaryKeyConstraint | None:
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return None
        return self._query_primary_key(cn, self.normalize_name(table_name),
                                       self.resolve_schema(schema_name), cancel)

    def primary_key_constraint_exists(self, cn: Any, table_name: str,
                                      schema_name: str | None = None, *,
                                      cancel: Any = None) -> bool:
        return self.get_primary_key_constraint(cn, table_name, schema_name,
                                               cancel=cancel) is not None

    def create_primary_key_constraint_if_not_exists(self, cn: Any,
                                                    constraint: PrimaryKeyConstraint, *,
                                                    cancel: Any = None) -> bool:
        """Add a primary key; a table that already has one is left alone."""
        if self.primary_key_constraint_exists(cn, constraint.table_name, constraint.schema_name,
                                              cancel=cancel):
            return False
        self._add_primary_key(cn, constraint, cancel)
        logger.info(f'Created primary key {constraint.constraint_name}')
        return True

    def _add_primary_key(self, cn: Any, constraint: PrimaryKeyConstraint, cancel: Any) -> None:
        self._execute(cn, self.add_constraint_sql(
            constraint.table_name, constraint.schema_name, self.primary_key_clause(constraint)),
            cancel=cancel)

    def drop_primary_key_constraint_if_exists(self, cn: Any, table_name: str,
                                              schema_name: str | None = None, *,
                                              cancel: Any = None) -> bool:
        constraint = self.get_primary_key_constraint(cn, table_name, schema_name, cancel=cancel)
        if constraint is None:
            return False
        self._drop_primary_key(cn, constraint, cancel)
        logger.info(f'Dropped primary key {constraint.constraint_name}')
        return True

    def _drop_primary_key(self, cn: Any, constraint: PrimaryKeyConstraint, cancel: Any) -> None:
        self._execute(cn, self.drop_constraint_sql(
            constraint.table_name, constraint.schema_name, constraint.constraint_name, 'primary'),
            cancel=cancel)
