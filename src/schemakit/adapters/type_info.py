"""
Per-dialect data type metadata.

A DataTypeRegistry holds one DataTypeInfo per type a dialect supports and is
the lookup table for reverse type resolution. Registries are filled while a
type map is constructed and only read afterwards, so concurrent readers need
no locking.
"""
import datetime
import decimal
import ipaddress
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class DataTypeCategory(str, Enum):
    INTEGER = 'integer'
    REAL = 'real'
    DECIMAL = 'decimal'
    MONEY = 'money'
    TEXT = 'text'
    DATETIME = 'datetime'
    BINARY = 'binary'
    BOOLEAN = 'boolean'
    JSON = 'json'
    XML = 'xml'
    SPATIAL = 'spatial'
    ARRAY = 'array'
    RANGE = 'range'
    NETWORK = 'network'
    IDENTIFIER = 'identifier'
    OTHER = 'other'
    CUSTOM = 'custom'

    def __str__(self) -> str:
        return self.value


# Host type a reverse-mapped column gets when its DataTypeInfo names none.
CATEGORY_HOST_TYPES: dict[DataTypeCategory, Any] = {
    DataTypeCategory.INTEGER: int,
    DataTypeCategory.REAL: float,
    DataTypeCategory.DECIMAL: decimal.Decimal,
    DataTypeCategory.MONEY: decimal.Decimal,
    DataTypeCategory.TEXT: str,
    DataTypeCategory.DATETIME: datetime.datetime,
    DataTypeCategory.BINARY: bytes,
    DataTypeCategory.BOOLEAN: bool,
    DataTypeCategory.JSON: dict,
    DataTypeCategory.XML: str,
    DataTypeCategory.SPATIAL: str,
    DataTypeCategory.ARRAY: list,
    DataTypeCategory.RANGE: str,
    DataTypeCategory.NETWORK: ipaddress.IPv4Address,
    DataTypeCategory.IDENTIFIER: uuid.UUID,
    DataTypeCategory.OTHER: str,
    DataTypeCategory.CUSTOM: str,
    }


@dataclass(frozen=True)
class DataTypeInfo:
    """Metadata about one dialect type.

    ``host_type`` overrides the category's default host type for reverse
    resolution (``date`` maps to datetime.date rather than datetime.datetime).
    """
    data_type: str
    category: DataTypeCategory
    aliases: tuple[str, ...] = ()
    is_common: bool = True
    is_custom: bool = False
    supports_length: bool = False
    min_length: int | None = None
    max_length: int | None = None
    default_length: int | None = None
    supports_precision: bool = False
    min_precision: int | None = None
    max_precision: int | None = None
    default_precision: int | None = None
    supports_scale: bool = False
    min_scale: int | None = None
    max_scale: int | None = None
    default_scale: int | None = None
    host_type: Any = None
    description: str = ''
    examples: tuple[str, ...] = field(default=(), compare=False)

    @property
    def names(self) -> tuple[str, ...]:
        return (self.data_type, *self.aliases)

    @property
    def default_host_type(self) -> Any:
        if self.host_type is not None:
            return self.host_type
        return CATEGORY_HOST_TYPES[self.category]


def create_string_type(name: str, max_length: int | None = None,
                       default_length: int | None = None,
                       aliases: Iterable[str] = (), is_common: bool = True,
                       description: str = '') -> DataTypeInfo:
    """Text type that takes a length, e.g. varchar(n)."""
    return DataTypeInfo(
        data_type=name,
        category=DataTypeCategory.TEXT,
        aliases=tuple(aliases),
        is_common=is_common,
        supports_length=True,
        min_length=1,
        max_length=max_length,
        default_length=default_length,
        description=description,
        examples=(f'{name}({default_length or 255})',),
        )


def create_decimal_type(name: str, max_precision: int = 38,
                        default_precision: int | None = None,
                        default_scale: int | None = None,
                        aliases: Iterable[str] = (), is_common: bool = True,
                        category: DataTypeCategory = DataTypeCategory.DECIMAL,
                        description: str = '') -> DataTypeInfo:
    """Exact numeric type taking precision and scale, e.g. decimal(p,s)."""
    return DataTypeInfo(
        data_type=name,
        category=category,
        aliases=tuple(aliases),
        is_common=is_common,
        supports_precision=True,
        min_precision=1,
        max_precision=max_precision,
        default_precision=default_precision,
        supports_scale=True,
        min_scale=0,
        max_scale=max_precision,
        default_scale=default_scale,
        description=description,
        examples=(f'{name}(18,2)',),
        )


def create_integer_type(name: str, aliases: Iterable[str] = (),
                        is_common: bool = True, description: str = '') -> DataTypeInfo:
    return DataTypeInfo(
        data_type=name,
        category=DataTypeCategory.INTEGER,
        aliases=tuple(aliases),
        is_common=is_common,
        description=description,
        )


def create_datetime_type(name: str, host_type: Any = datetime.datetime,
                         supports_precision: bool = False,
                         max_precision: int | None = None,
                         aliases: Iterable[str] = (), is_common: bool = True,
                         description: str = '') -> DataTypeInfo:
    """Temporal type, optionally with a fractional seconds precision."""
    return DataTypeInfo(
        data_type=name,
        category=DataTypeCategory.DATETIME,
        aliases=tuple(aliases),
        is_common=is_common,
        supports_precision=supports_precision,
        min_precision=0 if supports_precision else None,
        max_precision=max_precision,
        host_type=host_type,
        description=description,
        )


def create_binary_type(name: str, supports_length: bool = True,
                       max_length: int | None = None,
                       default_length: int | None = None,
                       aliases: Iterable[str] = (), is_common: bool = True,
                       description: str = '') -> DataTypeInfo:
    return DataTypeInfo(
        data_type=name,
        category=DataTypeCategory.BINARY,
        aliases=tuple(aliases),
        is_common=is_common,
        supports_length=supports_length,
        min_length=1 if supports_length else None,
        max_length=max_length,
        default_length=default_length,
        description=description,
        )


def create_simple_type(name: str, category: DataTypeCategory,
                       host_type: Any = None, aliases: Iterable[str] = (),
                       is_common: bool = True, is_custom: bool = False,
                       description: str = '') -> DataTypeInfo:
    """Type without length, precision or scale."""
    return DataTypeInfo(
        data_type=name,
        category=category,
        aliases=tuple(aliases),
        is_common=is_common,
        is_custom=is_custom,
        host_type=host_type,
        description=description,
        )


class DataTypeRegistry:
    """Case-insensitive lookup of DataTypeInfo by type name or alias.
    """

    def __init__(self, data_types: Iterable[DataTypeInfo] = ()) -> None:
        self._types: list[DataTypeInfo] = []
        self._by_name: dict[str, DataTypeInfo] = {}
        for info in data_types:
            self.register(info)

    def register(self, info: DataTypeInfo) -> None:
        """Add a type. Later registrations win for names already taken."""
        self._types.append(info)
        for name in info.names:
            key = ' '.join(name.lower().split())
            if key in self._by_name and self._by_name[key] is not info:
                logger.debug(f'Type name {key!r} re-registered as {info.data_type!r}')
            self._by_name[key] = info

    def get(self, name: str) -> DataTypeInfo | None:
        if not name:
            return None
        return self._by_name.get(' '.join(name.lower().split()))

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        return len(self._types)

    def get_available_data_types(self, include_advanced: bool = False) -> list[DataTypeInfo]:
        """Registered types sorted by category then name.

        Without ``include_advanced`` only the commonly used types are listed.
        """
        types = [t for t in self._types if include_advanced or t.is_common]
        return sorted(types, key=lambda t: (t.category.value, t.data_type))

    def get_data_types_for_category(self, category: DataTypeCategory | str) -> list[DataTypeInfo]:
        category = DataTypeCategory(category)
        return sorted((t for t in self._types if t.category == category),
                      key=lambda t: t.data_type)

    def get_available_categories(self) -> list[DataTypeCategory]:
        return sorted({t.category for t in self._types}, key=lambda c: c.value)
