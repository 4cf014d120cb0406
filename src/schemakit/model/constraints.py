"""
Constraint and index entities.

Each entity can be built standalone (``table_name`` given) or nested inside a
Table, which fills in ``table_name``/``schema_name`` and derives any missing
name from the templates in ``schemakit.model.naming``.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from more_itertools import always_iterable
from schemakit.model import naming


class ColumnOrder(str, Enum):
    ASCENDING = 'ASC'
    DESCENDING = 'DESC'


class ForeignKeyAction(str, Enum):
    """Referential action for ON DELETE / ON UPDATE.
    """
    NO_ACTION = 'NO ACTION'
    RESTRICT = 'RESTRICT'
    CASCADE = 'CASCADE'
    SET_NULL = 'SET NULL'
    SET_DEFAULT = 'SET DEFAULT'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: 'str | ForeignKeyAction | None') -> 'ForeignKeyAction':
        """Parse catalog rule text such as ``CASCADE`` or ``set_null``."""
        if isinstance(value, ForeignKeyAction):
            return value
        if value is None or not str(value).strip():
            return cls.NO_ACTION
        text = ' '.join(str(value).replace('_', ' ').upper().split())
        if text == 'NOACTION':
            return cls.NO_ACTION
        return cls(text)


@dataclass(frozen=True)
class OrderedColumn:
    """A key column with its sort order.
    """
    column_name: str
    order: ColumnOrder = ColumnOrder.ASCENDING

    @classmethod
    def parse(cls, value: 'str | OrderedColumn') -> 'OrderedColumn':
        """Accept ``'name'``, ``'name desc'`` or an OrderedColumn.
        """
        if isinstance(value, OrderedColumn):
            return value
        parts = str(value).strip().split()
        if len(parts) > 1 and parts[-1].upper() in {'ASC', 'DESC'}:
            return cls(' '.join(parts[:-1]), ColumnOrder(parts[-1].upper()))
        return cls(str(value).strip())

    @property
    def is_descending(self) -> bool:
        return self.order == ColumnOrder.DESCENDING

    def ascending(self) -> 'OrderedColumn':
        return OrderedColumn(self.column_name)

    def __str__(self) -> str:
        if self.is_descending:
            return f'{self.column_name} DESC'
        return self.column_name


def ordered_columns(columns: 'str | OrderedColumn | Iterable | None') -> list[OrderedColumn]:
    """Normalize a column name, ordered column or iterable of either."""
    if isinstance(columns, OrderedColumn):
        return [columns]
    return [OrderedColumn.parse(c) for c in always_iterable(columns)]


class _TableObject:
    """Shared attach/naming behavior for table-owned objects."""

    def attach(self, table_name: str, schema_name: str | None = None) -> None:
        if not self.table_name:
            self.table_name = table_name
        if self.schema_name is None:
            self.schema_name = schema_name
        self._ensure_name()

    def _ensure_name(self) -> None:
        raise NotImplementedError

    @property
    def column_names(self) -> list[str]:
        return [c.column_name for c in self.columns]

    def has_column(self, column_name: str) -> bool:
        return any(name.lower() == column_name.lower() for name in self.column_names)


@dataclass
class CheckConstraint(_TableObject):
    table_name: str | None = None
    column_name: str | None = None
    expression: str = ''
    constraint_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.constraint_name and self.table_name:
            self.constraint_name = naming.check_constraint_name(
                self.table_name, self.column_name, self.expression)

    @property
    def column_names(self) -> list[str]:
        return [self.column_name] if self.column_name else []


@dataclass
class DefaultConstraint(_TableObject):
    table_name: str | None = None
    column_name: str = ''
    expression: str = ''
    constraint_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.constraint_name and self.table_name and self.column_name:
            self.constraint_name = naming.default_constraint_name(self.table_name, self.column_name)

    @property
    def column_names(self) -> list[str]:
        return [self.column_name]


@dataclass
class UniqueConstraint(_TableObject):
    table_name: str | None = None
    columns: list[OrderedColumn] = field(default_factory=list)
    constraint_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self.columns = ordered_columns(self.columns)
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.constraint_name and self.table_name and self.columns:
            self.constraint_name = naming.unique_constraint_name(self.table_name, self.columns)


@dataclass
class PrimaryKeyConstraint(_TableObject):
    table_name: str | None = None
    columns: list[OrderedColumn] = field(default_factory=list)
    constraint_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self.columns = ordered_columns(self.columns)
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.constraint_name and self.table_name and self.columns:
            self.constraint_name = naming.primary_key_name(self.table_name, self.columns)


@dataclass
class ForeignKeyConstraint(_TableObject):
    table_name: str | None = None
    columns: list[OrderedColumn] = field(default_factory=list)
    referenced_table_name: str = ''
    referenced_columns: list[OrderedColumn] = field(default_factory=list)
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    constraint_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self.columns = ordered_columns(self.columns)
        self.referenced_columns = ordered_columns(self.referenced_columns)
        self.on_delete = ForeignKeyAction.parse(self.on_delete)
        self.on_update = ForeignKeyAction.parse(self.on_update)
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.constraint_name and self.table_name and self.columns:
            self.constraint_name = naming.foreign_key_name(
                self.table_name, self.columns,
                self.referenced_table_name, self.referenced_columns)

    @property
    def referenced_column_names(self) -> list[str]:
        return [c.column_name for c in self.referenced_columns]


@dataclass
class Index(_TableObject):
    table_name: str | None = None
    columns: list[OrderedColumn] = field(default_factory=list)
    is_unique: bool = False
    index_name: str | None = None
    schema_name: str | None = None

    def __post_init__(self) -> None:
        self.columns = ordered_columns(self.columns)
        self._ensure_name()

    def _ensure_name(self) -> None:
        if not self.index_name and self.table_name and self.columns:
            self.index_name = naming.index_name(self.table_name, self.columns)
