"""
Table and view entities.

A Table exclusively owns its columns, constraints and indexes: attaching them
sets their table/schema names and fills in derived constraint names.
"""
from dataclasses import dataclass, field

from schemakit.exceptions import SchemaError
from schemakit.model.column import Column
from schemakit.model.constraints import CheckConstraint, DefaultConstraint
from schemakit.model.constraints import ForeignKeyConstraint, Index
from schemakit.model.constraints import PrimaryKeyConstraint, UniqueConstraint


@dataclass
class Table:
    table_name: str
    columns: list[Column] = field(default_factory=list)
    schema_name: str | None = None
    primary_key_constraint: PrimaryKeyConstraint | None = None
    check_constraints: list[CheckConstraint] = field(default_factory=list)
    default_constraints: list[DefaultConstraint] = field(default_factory=list)
    unique_constraints: list[UniqueConstraint] = field(default_factory=list)
    foreign_key_constraints: list[ForeignKeyConstraint] = field(default_factory=list)
    indexes: list[Index] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.table_name or not str(self.table_name).strip():
            raise SchemaError('A table requires a name')
        self.columns = list(self.columns)
        seen = set()
        for column in self.columns:
            key = column.column_name.lower()
            if key in seen:
                raise SchemaError(
                    f'Duplicate column {column.column_name!r} in table {self.table_name!r}')
            seen.add(key)
            self._attach_column(column)
        for item in self._owned_objects():
            item.attach(self.table_name, self.schema_name)

    def _attach_column(self, column: Column) -> None:
        column.table_name = self.table_name
        if column.schema_name is None:
            column.schema_name = self.schema_name

    def _owned_objects(self) -> list:
        objects = [self.primary_key_constraint] if self.primary_key_constraint else []
        return objects + [
            *self.check_constraints,
            *self.default_constraints,
            *self.unique_constraints,
            *self.foreign_key_constraints,
            *self.indexes,
            ]

    @property
    def column_names(self) -> list[str]:
        return [c.column_name for c in self.columns]

    def get_column(self, column_name: str) -> Column | None:
        """Case-insensitive column lookup."""
        for column in self.columns:
            if column.column_name.lower() == column_name.lower():
                return column
        return None

    def add_column(self, column: Column) -> None:
        if self.get_column(column.column_name) is not None:
            raise SchemaError(
                f'Duplicate column {column.column_name!r} in table {self.table_name!r}')
        self._attach_column(column)
        self.columns.append(column)


@dataclass
class View:
    """A view; the definition is opaque SQL owned by the caller.
    """
    view_name: str
    definition: str = ''
    schema_name: str | None = None
