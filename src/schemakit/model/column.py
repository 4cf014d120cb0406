"""
Column entity and the composite per-dialect type override syntax.

A column names its Python host type and, optionally, literal dialect types
that win over type resolution for that dialect. Overrides come from the
``dialect_types`` mapping and/or the composite shorthand::

    Column('payload', dict, type_override='{postgresql:jsonb,mssql:nvarchar(max)}')

Entries in ``dialect_types`` take precedence over the same dialect in the
shorthand.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

from schemakit.adapters.descriptors import HostTypeDescriptor, unwrap_optional
from schemakit.dialect import Dialect
from schemakit.exceptions import ConfigurationError, SchemaError
from schemakit.model.constraints import ForeignKeyAction
from schemakit.sql import split_top_level

logger = logging.getLogger(__name__)


def parse_type_overrides(text: str) -> dict[Dialect, str]:
    """Parse ``{dialect:type[,dialect2:type2,...]}`` into a dialect map.

    Commas inside parentheses belong to the type literal, so
    ``{mysql:decimal(10,2)}`` is a single entry.

    Raises
        ConfigurationError: On malformed text or an unknown dialect key
    """
    body = (text or '').strip()
    if not (body.startswith('{') and body.endswith('}')):
        raise ConfigurationError(
            f'Type override must look like {{dialect:type,...}}, got {text!r}')
    overrides = {}
    for entry in split_top_level(body[1:-1]):
        if not entry.strip():
            continue
        key, sep, value = entry.partition(':')
        if not sep or not value.strip():
            raise ConfigurationError(f'Malformed type override entry {entry.strip()!r} in {text!r}')
        overrides[Dialect.parse(key)] = value.strip()
    return overrides


@dataclass
class Column:
    """A table column.

    Either ``host_type`` or at least one dialect override is required.
    Setting ``referenced_table_name`` marks the column as a foreign key.
    """
    column_name: str
    host_type: Any = None
    table_name: str | None = None
    schema_name: str | None = None
    dialect_types: dict[Dialect, str] = field(default_factory=dict)
    type_override: str | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_unicode: bool = False
    is_fixed_length: bool = False
    is_auto_increment: bool = False
    is_nullable: bool = True
    default_expression: str | None = None
    check_expression: str | None = None
    is_primary_key: bool = False
    is_unique: bool = False
    is_indexed: bool = False
    is_foreign_key: bool = False
    referenced_table_name: str | None = None
    referenced_column_name: str | None = None
    on_delete: ForeignKeyAction | None = None
    on_update: ForeignKeyAction | None = None

    def __post_init__(self) -> None:
        if not self.column_name or not str(self.column_name).strip():
            raise SchemaError('A column requires a name')
        if self.host_type is not None:
            self.host_type = unwrap_optional(self.host_type)

        overrides = {}
        if self.type_override:
            overrides.update(parse_type_overrides(self.type_override))
        overrides.update({Dialect.parse(k): v for k, v in self.dialect_types.items()})
        self.dialect_types = overrides

        if self.host_type is None and not self.dialect_types:
            raise SchemaError(
                f'Column {self.column_name!r} needs a host type or a dialect type override')

        if self.referenced_table_name:
            self.is_foreign_key = True
        if self.is_foreign_key:
            self.on_delete = ForeignKeyAction.parse(self.on_delete)
            self.on_update = ForeignKeyAction.parse(self.on_update)

    def get_dialect_type(self, dialect: Dialect | str) -> str | None:
        """Explicit override for a dialect, None when resolution applies."""
        return self.dialect_types.get(Dialect.parse(dialect))

    def set_dialect_type(self, dialect: Dialect | str, type_name: str) -> None:
        self.dialect_types[Dialect.parse(dialect)] = type_name

    def host_descriptor(self) -> HostTypeDescriptor:
        """Descriptor fed to forward type resolution."""
        if self.host_type is None:
            raise SchemaError(f'Column {self.column_name!r} has no host type')
        return HostTypeDescriptor(
            host_type=self.host_type,
            length=self.length,
            precision=self.precision,
            scale=self.scale,
            is_auto_increment=self.is_auto_increment,
            is_unicode=self.is_unicode,
            is_fixed_length=self.is_fixed_length,
            )

    @property
    def is_not_null(self) -> bool:
        """Key columns are never nullable regardless of ``is_nullable``."""
        return self.is_primary_key or not self.is_nullable
