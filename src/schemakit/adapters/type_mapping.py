"""
Bidirectional type resolution between Python host types and dialect types.

Forward resolution (host type descriptor to dialect type string) tries, first
match wins:

1. an explicit per-dialect override carried by the column;
2. the converter registered for the exact host type, which applies the
   length, precision/scale and unicode hints;
3. the converter for the host type's category (integer width class, text,
   binary, temporal, boolean ...), so subclasses and NumPy scalar types land on
   the dialect's canonical type for that category;
4. the dialect's fallback for composite host types (mappings, collections and
   arbitrary object graphs), native array/JSON types where the dialect has them;
5. the process-wide defaults, applied by steps 2-4 whenever the descriptor does
   not carry an attribute the chosen type needs.

Reverse resolution decomposes a catalog type string, looks its base name up in
the dialect's DataTypeRegistry (names and aliases, case-insensitive) and maps
the entry's category to a host type, carrying the parsed hints over unchanged.

Either direction raises TypeMappingError naming the unresolved type.
"""
import datetime
import decimal
import enum
import ipaddress
import logging
import typing
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import numpy as np
from schemakit.adapters.descriptors import DialectTypeDescriptor
from schemakit.adapters.descriptors import HostTypeDescriptor
from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.adapters.type_info import DataTypeRegistry
from schemakit.dialect import Dialect
from schemakit.exceptions import TypeMappingError
from schemakit.options import DEFAULT_ENUM_LENGTH, GUID_STRING_LENGTH
from schemakit.options import IP_ADDRESS_LENGTH, UNLIMITED
from schemakit.options import TypeMappingDefaults, settings

if TYPE_CHECKING:
    from schemakit.model import Column

logger = logging.getLogger(__name__)

Converter = Callable[[HostTypeDescriptor, TypeMappingDefaults], str | None]

_NETWORK_TYPES = (
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    )

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def host_category(host_type: Any) -> DataTypeCategory | None:
    """Category of a Python host type, None for things that are not types.

    >>> host_category(int)
    <DataTypeCategory.INTEGER: 'integer'>
    >>> host_category(list[int])
    <DataTypeCategory.ARRAY: 'array'>
    """
    origin = typing.get_origin(host_type) or host_type
    if not isinstance(origin, type):
        return None
    if issubclass(origin, (bool, np.bool_)):
        return DataTypeCategory.BOOLEAN
    if issubclass(origin, enum.Enum):
        if issubclass(origin, int):
            return DataTypeCategory.INTEGER
        return DataTypeCategory.TEXT
    if issubclass(origin, (int, np.integer)):
        return DataTypeCategory.INTEGER
    if issubclass(origin, (float, np.floating)):
        return DataTypeCategory.REAL
    if issubclass(origin, decimal.Decimal):
        return DataTypeCategory.DECIMAL
    if issubclass(origin, str):
        return DataTypeCategory.TEXT
    if issubclass(origin, (bytes, bytearray, memoryview)):
        return DataTypeCategory.BINARY
    if issubclass(origin, (datetime.date, datetime.time, datetime.timedelta)):
        return DataTypeCategory.DATETIME
    if issubclass(origin, uuid.UUID):
        return DataTypeCategory.IDENTIFIER
    if issubclass(origin, _NETWORK_TYPES):
        return DataTypeCategory.NETWORK
    if issubclass(origin, Mapping):
        return DataTypeCategory.JSON
    if issubclass(origin, _COLLECTION_TYPES):
        return DataTypeCategory.ARRAY
    return DataTypeCategory.OTHER


def integer_width(host_type: Any) -> int:
    """Integer width class (8, 16, 32 or 64 bits) of an integer host type.

    Python ``int`` and int-valued enums are the 32-bit class. Unsigned NumPy
    types move up one class so their whole range fits a signed column.
    """
    if isinstance(host_type, type) and issubclass(host_type, np.integer):
        bits = np.dtype(host_type).itemsize * 8
        if issubclass(host_type, np.unsignedinteger):
            bits = min(bits * 2, 64)
        return bits
    return 32


def float_width(host_type: Any) -> int:
    if isinstance(host_type, type) and issubclass(host_type, np.floating):
        return 32 if np.dtype(host_type).itemsize <= 4 else 64
    return 64


class DialectTypeMap:
    """Base class for the per-dialect type maps.

    Subclasses describe their dialect through the class attributes below,
    ``build_data_types`` and the ``text_type``/``binary_type`` hooks. Instances
    are built once per driver and read-only afterwards.
    """

    dialect: Dialect = Dialect.OTHER

    integer_types: dict[int, str] = {}
    real_types: dict[int, str] = {}
    decimal_type_name = 'decimal'
    boolean_type = 'boolean'
    uuid_type = f'varchar({GUID_STRING_LENGTH})'
    datetime_type = 'datetime'
    date_type = 'date'
    time_type = 'time'
    timedelta_type = 'time'
    json_type = 'text'
    network_type = f'varchar({IP_ADDRESS_LENGTH})'

    def __init__(self, custom_types: Iterable[DataTypeInfo] = ()) -> None:
        self.registry = DataTypeRegistry(self.build_data_types())
        for info in custom_types:
            self.registry.register(info)
        self._converters: dict[Any, Converter] = {}
        self._category_converters: dict[DataTypeCategory, Converter] = {}
        self.register_converters()

    def build_data_types(self) -> list[DataTypeInfo]:
        """Every type the dialect supports, for reverse resolution and listing."""
        raise NotImplementedError

    def text_type(self, length: int, is_unicode: bool, is_fixed_length: bool) -> str:
        raise NotImplementedError

    def binary_type(self, length: int, is_fixed_length: bool) -> str:
        raise NotImplementedError

    def register_converter(self, host_type: Any, converter: Converter) -> None:
        self._converters[host_type] = converter

    def register_converters(self) -> None:
        """Populate the exact and category converter tables.
        """
        for host_type in (bool, np.bool_):
            self.register_converter(host_type, self._convert_boolean)
        self.register_converter(int, self._convert_integer)
        self.register_converter(float, self._convert_real)
        self.register_converter(decimal.Decimal, self._convert_decimal)
        self.register_converter(str, self._convert_text)
        for host_type in (bytes, bytearray, memoryview):
            self.register_converter(host_type, self._convert_binary)
        self.register_converter(datetime.datetime, self._convert_datetime)
        self.register_converter(datetime.date, self._convert_date)
        self.register_converter(datetime.time, self._convert_time)
        self.register_converter(datetime.timedelta, self._convert_timedelta)
        self.register_converter(uuid.UUID, self._convert_uuid)
        for host_type in _NETWORK_TYPES:
            self.register_converter(host_type, self._convert_network)
        self.register_converter(dict, self._convert_composite)

        self._category_converters.update({
            DataTypeCategory.BOOLEAN: self._convert_boolean,
            DataTypeCategory.INTEGER: self._convert_integer,
            DataTypeCategory.REAL: self._convert_real,
            DataTypeCategory.DECIMAL: self._convert_decimal,
            DataTypeCategory.TEXT: self._convert_text,
            DataTypeCategory.BINARY: self._convert_binary,
            DataTypeCategory.DATETIME: self._convert_temporal,
            DataTypeCategory.IDENTIFIER: self._convert_uuid,
            DataTypeCategory.NETWORK: self._convert_network,
            })

    def _convert_boolean(self, descriptor, defaults) -> str:
        return self.boolean_type

    def _convert_integer(self, descriptor, defaults) -> str | None:
        return self.integer_types.get(integer_width(descriptor.origin))

    def _convert_real(self, descriptor, defaults) -> str | None:
        return self.real_types.get(float_width(descriptor.origin))

    def decimal_type(self, precision: int, scale: int) -> str:
        return f'{self.decimal_type_name}({precision},{scale})'

    def _convert_decimal(self, descriptor, defaults) -> str:
        precision = descriptor.precision or defaults.decimal_precision
        scale = descriptor.scale if descriptor.scale is not None else defaults.decimal_scale
        return self.decimal_type(precision, min(scale, precision))

    def _convert_text(self, descriptor, defaults) -> str:
        length = descriptor.length
        if length is None:
            if isinstance(descriptor.origin, type) and issubclass(descriptor.origin, enum.Enum):
                length = DEFAULT_ENUM_LENGTH
            else:
                length = defaults.string_length
        return self.text_type(length, bool(descriptor.is_unicode), bool(descriptor.is_fixed_length))

    def _convert_binary(self, descriptor, defaults) -> str:
        length = descriptor.length if descriptor.length is not None else defaults.binary_length
        return self.binary_type(length, bool(descriptor.is_fixed_length))

    def _convert_datetime(self, descriptor, defaults) -> str:
        return self.apply_type_attributes(self.datetime_type, descriptor)

    def _convert_date(self, descriptor, defaults) -> str:
        return self.date_type

    def _convert_time(self, descriptor, defaults) -> str:
        return self.apply_type_attributes(self.time_type, descriptor)

    def _convert_timedelta(self, descriptor, defaults) -> str:
        return self.timedelta_type

    def _convert_temporal(self, descriptor, defaults) -> str:
        """Category fallback for subclasses of the datetime types."""
        origin = descriptor.origin
        if issubclass(origin, datetime.datetime):
            return self._convert_datetime(descriptor, defaults)
        if issubclass(origin, datetime.date):
            return self._convert_date(descriptor, defaults)
        if issubclass(origin, datetime.time):
            return self._convert_time(descriptor, defaults)
        return self._convert_timedelta(descriptor, defaults)

    def _convert_uuid(self, descriptor, defaults) -> str:
        return self.uuid_type

    def _convert_network(self, descriptor, defaults) -> str:
        return self.network_type

    def _convert_composite(self, descriptor, defaults) -> str:
        """Mappings, collections and object graphs, stored as JSON."""
        return self.json_type

    def composite_type(self, descriptor: HostTypeDescriptor,
                       defaults: TypeMappingDefaults) -> str | None:
        """Fallback for composite host types with no exact converter."""
        return self._convert_composite(descriptor, defaults)

    def apply_type_attributes(self, type_name: str, descriptor: HostTypeDescriptor) -> str:
        """Append the descriptor's length or precision/scale where the type takes them.

        Types that already carry a parenthetical group are returned as-is.
        """
        if '(' in type_name:
            return type_name
        info = self.registry.get(type_name)
        if info is None:
            return type_name
        if info.supports_length and descriptor.length is not None:
            length = 'max' if descriptor.length == UNLIMITED else descriptor.length
            return f'{type_name}({length})'
        if info.supports_precision and descriptor.precision is not None:
            if info.supports_scale and descriptor.scale is not None:
                return f'{type_name}({descriptor.precision},{descriptor.scale})'
            return f'{type_name}({descriptor.precision})'
        return type_name

    def get_dialect_type(self, descriptor: HostTypeDescriptor | Any,
                         defaults: TypeMappingDefaults | None = None) -> str:
        """Resolve a host type descriptor to a dialect type string.

        Args:
            descriptor: HostTypeDescriptor, or a bare host type
            defaults: Defaults snapshot, taken from the process settings if omitted

        Returns
            Dialect type string, e.g. ``nvarchar(100)``

        Raises
            TypeMappingError: If no rule produces a type
        """
        if not isinstance(descriptor, HostTypeDescriptor):
            descriptor = HostTypeDescriptor(descriptor)
        if defaults is None:
            defaults = settings.snapshot()

        origin = descriptor.origin
        converter = self._converters.get(origin)
        if converter is not None:
            type_name = converter(descriptor, defaults)
            if type_name:
                return type_name

        category = host_category(descriptor.host_type)
        converter = self._category_converters.get(category)
        if converter is not None:
            type_name = converter(descriptor, defaults)
            if type_name:
                return type_name

        if category in {DataTypeCategory.JSON, DataTypeCategory.ARRAY, DataTypeCategory.OTHER}:
            type_name = self.composite_type(descriptor, defaults)
            if type_name:
                return type_name

        raise TypeMappingError(
            descriptor.type_name,
            f'No {self.dialect} type for host type {descriptor.type_name}')

    def get_column_type(self, column: 'Column',
                        defaults: TypeMappingDefaults | None = None) -> str:
        """Resolve a column's type, an explicit override for this dialect winning.
        """
        override = column.get_dialect_type(self.dialect)
        if override:
            return override
        return self.get_dialect_type(column.host_descriptor(), defaults)

    def lookup_data_type(self, descriptor: DialectTypeDescriptor) -> DataTypeInfo | None:
        return self.registry.get(descriptor.base_type_name)

    def reverse_special_case(self, descriptor: DialectTypeDescriptor) -> HostTypeDescriptor | None:
        """Dialect hook for types whose host type depends on their hints.

        Identifiers and network addresses stored as sized text come back as
        their host types when the column is exactly ``uuid_type`` or
        ``network_type``.
        """
        for host_type, type_name in ((uuid.UUID, self.uuid_type),
                                     (ipaddress.IPv4Address, self.network_type)):
            stored = DialectTypeDescriptor.parse(type_name)
            if stored.length is None:
                continue
            if (descriptor.base_type_name, descriptor.length) == (stored.base_type_name, stored.length):
                return HostTypeDescriptor(
                    host_type=host_type,
                    length=descriptor.length,
                    is_fixed_length=descriptor.is_fixed_length,
                    )
        return None

    def get_host_descriptor(self, dialect_type: str | DialectTypeDescriptor) -> HostTypeDescriptor:
        """Resolve a raw catalog type string to a host type descriptor.

        Raises
            TypeMappingError: If the base type is unknown to this dialect
        """
        descriptor = dialect_type
        if not isinstance(descriptor, DialectTypeDescriptor):
            descriptor = DialectTypeDescriptor.parse(dialect_type)

        special = self.reverse_special_case(descriptor)
        if special is not None:
            return special

        info = self.lookup_data_type(descriptor)
        if info is None:
            raise TypeMappingError(
                descriptor.raw_type_name,
                f'Unknown {self.dialect} type: {descriptor.raw_type_name}')
        return self.host_descriptor_from(info, descriptor)

    def host_descriptor_from(self, info: DataTypeInfo,
                             descriptor: DialectTypeDescriptor) -> HostTypeDescriptor:
        return HostTypeDescriptor(
            host_type=info.default_host_type,
            length=descriptor.length,
            precision=descriptor.precision,
            scale=descriptor.scale,
            is_auto_increment=descriptor.is_auto_increment,
            is_unicode=descriptor.is_unicode,
            is_fixed_length=descriptor.is_fixed_length,
            )

    def get_host_type(self, dialect_type: str) -> Any:
        return self.get_host_descriptor(dialect_type).host_type

    def get_data_type_info(self, type_name: str) -> DataTypeInfo | None:
        return self.registry.get(DialectTypeDescriptor.parse(type_name).base_type_name)

    def get_available_data_types(self, include_advanced: bool = False) -> list[DataTypeInfo]:
        return self.registry.get_available_data_types(include_advanced)
