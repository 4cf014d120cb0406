"""
PostgreSQL type map.

Catalog type strings come from ``format_type()`` and therefore use the long
SQL names (``character varying``, ``timestamp without time zone``); the
registry lists both those and the short internal names (``int4``, ``bpchar``).
Array types are resolved from their element type, either as ``integer[]`` or
as the ``_int4`` element name used by the catalogs.
"""
import datetime
import ipaddress

from schemakit.adapters.descriptors import DialectTypeDescriptor
from schemakit.adapters.descriptors import HostTypeDescriptor
from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.adapters.type_info import create_binary_type, create_datetime_type
from schemakit.adapters.type_info import create_decimal_type, create_integer_type
from schemakit.adapters.type_info import create_simple_type, create_string_type
from schemakit.adapters.type_mapping import DialectTypeMap, host_category
from schemakit.dialect import Dialect
from schemakit.exceptions import TypeMappingError
from schemakit.options import UNLIMITED

_NETWORK_RANGES = (ipaddress.IPv4Network, ipaddress.IPv6Network)

_SCALAR_CATEGORIES = {
    DataTypeCategory.INTEGER,
    DataTypeCategory.REAL,
    DataTypeCategory.DECIMAL,
    DataTypeCategory.TEXT,
    DataTypeCategory.DATETIME,
    DataTypeCategory.BOOLEAN,
    DataTypeCategory.IDENTIFIER,
    DataTypeCategory.NETWORK,
    }


class PostgresTypeMap(DialectTypeMap):

    dialect = Dialect.POSTGRESQL

    integer_types = {8: 'smallint', 16: 'smallint', 32: 'integer', 64: 'bigint'}
    real_types = {32: 'real', 64: 'double precision'}
    decimal_type_name = 'numeric'
    boolean_type = 'boolean'
    uuid_type = 'uuid'
    datetime_type = 'timestamp'
    date_type = 'date'
    time_type = 'time'
    timedelta_type = 'interval'
    json_type = 'jsonb'
    network_type = 'inet'

    def build_data_types(self) -> list[DataTypeInfo]:
        return [
            create_integer_type('smallint', aliases=('int2', 'smallserial', 'serial2')),
            create_integer_type('integer', aliases=('int', 'int4', 'serial', 'serial4')),
            create_integer_type('bigint', aliases=('int8', 'bigserial', 'serial8')),
            create_simple_type('real', DataTypeCategory.REAL, aliases=('float4',)),
            create_simple_type('double precision', DataTypeCategory.REAL,
                               aliases=('float8', 'float')),
            create_decimal_type('numeric', max_precision=1000, aliases=('decimal',)),
            create_simple_type('money', DataTypeCategory.MONEY, is_common=False),
            create_string_type('character varying', max_length=10485760,
                               aliases=('varchar',)),
            create_string_type('character', aliases=('char', 'bpchar')),
            create_simple_type('text', DataTypeCategory.TEXT),
            create_simple_type('citext', DataTypeCategory.TEXT, is_common=False),
            create_simple_type('name', DataTypeCategory.TEXT, is_common=False),
            create_binary_type('bytea', supports_length=False),
            create_simple_type('boolean', DataTypeCategory.BOOLEAN, aliases=('bool',)),
            create_datetime_type('timestamp', supports_precision=True, max_precision=6,
                                 aliases=('timestamp without time zone',)),
            create_datetime_type('timestamp with time zone', supports_precision=True,
                                 max_precision=6, aliases=('timestamptz',)),
            create_datetime_type('date', host_type=datetime.date),
            create_datetime_type('time', host_type=datetime.time, supports_precision=True,
                                 max_precision=6, aliases=('time without time zone',)),
            create_datetime_type('time with time zone', host_type=datetime.time,
                                 supports_precision=True, max_precision=6,
                                 aliases=('timetz',), is_common=False),
            create_datetime_type('interval', host_type=datetime.timedelta),
            create_simple_type('uuid', DataTypeCategory.IDENTIFIER),
            create_simple_type('json', DataTypeCategory.JSON),
            create_simple_type('jsonb', DataTypeCategory.JSON),
            create_simple_type('xml', DataTypeCategory.XML, is_common=False),
            create_simple_type('inet', DataTypeCategory.NETWORK),
            create_simple_type('cidr', DataTypeCategory.NETWORK,
                               host_type=ipaddress.IPv4Network),
            create_simple_type('macaddr', DataTypeCategory.NETWORK, host_type=str,
                               aliases=('macaddr8',), is_common=False),
            create_simple_type('bit', DataTypeCategory.BINARY, host_type=str,
                               aliases=('bit varying', 'varbit'), is_common=False),
            create_simple_type('tsvector', DataTypeCategory.OTHER, is_common=False),
            create_simple_type('oid', DataTypeCategory.INTEGER, is_common=False),
            *(create_simple_type(name, DataTypeCategory.SPATIAL, is_common=False)
              for name in ('point', 'line', 'lseg', 'box', 'path', 'polygon', 'circle')),
            *(create_simple_type(name, DataTypeCategory.RANGE, is_common=False)
              for name in ('int4range', 'int8range', 'numrange', 'tsrange',
                           'tstzrange', 'daterange')),
            ]

    def text_type(self, length: int, is_unicode: bool, is_fixed_length: bool) -> str:
        if length == UNLIMITED:
            return 'text'
        if is_fixed_length:
            return f'char({length})'
        return f'varchar({length})'

    def binary_type(self, length: int, is_fixed_length: bool) -> str:
        return 'bytea'

    def _convert_network(self, descriptor, defaults) -> str:
        if issubclass(descriptor.origin, _NETWORK_RANGES):
            return 'cidr'
        return 'inet'

    def composite_type(self, descriptor, defaults) -> str | None:
        """``list[scalar]`` becomes a native array, everything else jsonb."""
        args = descriptor.type_args
        if descriptor.origin in {list, tuple, set, frozenset} and len(args) == 1:
            element = args[0]
            if host_category(element) in _SCALAR_CATEGORIES:
                return f'{self.get_dialect_type(HostTypeDescriptor(element), defaults)}[]'
        return self.json_type

    def _element_type_name(self, descriptor: DialectTypeDescriptor) -> str | None:
        base = descriptor.base_type_name
        if base.endswith('[]'):
            return base[:-2].strip()
        if base.startswith('_') and self.registry.get(base[1:]) is not None:
            return base[1:]
        return None

    def reverse_special_case(self, descriptor: DialectTypeDescriptor) -> HostTypeDescriptor | None:
        element_name = self._element_type_name(descriptor)
        if element_name is None:
            return None
        element = self.registry.get(element_name)
        if element is None:
            raise TypeMappingError(
                descriptor.raw_type_name,
                f'Unknown {self.dialect} array element type: {element_name}')
        return HostTypeDescriptor(
            host_type=list[element.default_host_type],
            length=descriptor.length,
            precision=descriptor.precision,
            scale=descriptor.scale,
            )
