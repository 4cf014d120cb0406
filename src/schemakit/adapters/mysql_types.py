"""
MySQL / MariaDB type map.

``COLUMN_TYPE`` strings may carry ``unsigned``/``zerofill`` suffixes and, on
older servers, integer display widths; both are ignored for resolution.
``tinyint(1)`` is the conventional boolean.
"""
import datetime

from schemakit.adapters.descriptors import DialectTypeDescriptor
from schemakit.adapters.descriptors import HostTypeDescriptor
from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.adapters.type_info import create_binary_type, create_datetime_type
from schemakit.adapters.type_info import create_decimal_type, create_integer_type
from schemakit.adapters.type_info import create_simple_type, create_string_type
from schemakit.adapters.type_mapping import DialectTypeMap
from schemakit.dialect import Dialect
from schemakit.options import GUID_STRING_LENGTH, UNLIMITED

MAX_CHAR_LENGTH = 255
# utf8mb4 rows are limited to 65535 bytes
MAX_VARCHAR_LENGTH = 16383
MAX_VARBINARY_LENGTH = 65535

_IGNORED_SUFFIXES = ('unsigned', 'zerofill')


class MySQLTypeMap(DialectTypeMap):

    dialect = Dialect.MYSQL

    integer_types = {8: 'tinyint', 16: 'smallint', 32: 'int', 64: 'bigint'}
    real_types = {32: 'float', 64: 'double'}
    decimal_type_name = 'decimal'
    boolean_type = 'tinyint(1)'
    uuid_type = f'char({GUID_STRING_LENGTH})'
    datetime_type = 'datetime(6)'
    date_type = 'date'
    time_type = 'time(6)'
    timedelta_type = 'time(6)'
    json_type = 'json'

    def build_data_types(self) -> list[DataTypeInfo]:
        return [
            create_integer_type('tinyint', aliases=('int1',)),
            create_integer_type('smallint', aliases=('int2',)),
            create_integer_type('mediumint', aliases=('int3', 'middleint'), is_common=False),
            create_integer_type('int', aliases=('integer', 'int4')),
            create_integer_type('bigint', aliases=('int8',)),
            create_simple_type('float', DataTypeCategory.REAL, aliases=('float4',)),
            create_simple_type('double', DataTypeCategory.REAL,
                               aliases=('double precision', 'real', 'float8')),
            create_decimal_type('decimal', max_precision=65,
                                aliases=('numeric', 'dec', 'fixed')),
            create_simple_type('boolean', DataTypeCategory.BOOLEAN, aliases=('bool',)),
            create_simple_type('bit', DataTypeCategory.BOOLEAN, is_common=False),
            create_string_type('varchar', max_length=MAX_VARCHAR_LENGTH,
                               aliases=('character varying',)),
            create_string_type('char', max_length=MAX_CHAR_LENGTH, aliases=('character',)),
            create_simple_type('tinytext', DataTypeCategory.TEXT, is_common=False),
            create_simple_type('text', DataTypeCategory.TEXT),
            create_simple_type('mediumtext', DataTypeCategory.TEXT, is_common=False),
            create_simple_type('longtext', DataTypeCategory.TEXT),
            create_simple_type('enum', DataTypeCategory.TEXT, is_common=False),
            create_simple_type('set', DataTypeCategory.TEXT, is_common=False),
            create_binary_type('varbinary', max_length=MAX_VARBINARY_LENGTH),
            create_binary_type('binary', max_length=MAX_CHAR_LENGTH),
            create_binary_type('tinyblob', supports_length=False, is_common=False),
            create_binary_type('blob', supports_length=False),
            create_binary_type('mediumblob', supports_length=False, is_common=False),
            create_binary_type('longblob', supports_length=False),
            create_datetime_type('datetime', supports_precision=True, max_precision=6),
            create_datetime_type('timestamp', supports_precision=True, max_precision=6),
            create_datetime_type('date', host_type=datetime.date),
            create_datetime_type('time', host_type=datetime.time,
                                 supports_precision=True, max_precision=6),
            create_simple_type('year', DataTypeCategory.INTEGER, is_common=False),
            create_simple_type('json', DataTypeCategory.JSON),
            *(create_simple_type(name, DataTypeCategory.SPATIAL, is_common=False)
              for name in ('geometry', 'point', 'linestring', 'polygon')),
            ]

    def text_type(self, length: int, is_unicode: bool, is_fixed_length: bool) -> str:
        if length == UNLIMITED or length > MAX_VARCHAR_LENGTH:
            return 'longtext'
        if is_fixed_length and length <= MAX_CHAR_LENGTH:
            return f'char({length})'
        return f'varchar({length})'

    def binary_type(self, length: int, is_fixed_length: bool) -> str:
        if length == UNLIMITED or length > MAX_VARBINARY_LENGTH:
            return 'longblob'
        if is_fixed_length and length <= MAX_CHAR_LENGTH:
            return f'binary({length})'
        return f'varbinary({length})'

    def reverse_special_case(self, descriptor: DialectTypeDescriptor) -> HostTypeDescriptor | None:
        words = descriptor.base_type_name.split()
        if any(word in _IGNORED_SUFFIXES for word in words):
            base = ' '.join(w for w in words if w not in _IGNORED_SUFFIXES)
            stripped = DialectTypeDescriptor(
                raw_type_name=descriptor.raw_type_name,
                base_type_name=base,
                length=descriptor.length,
                precision=descriptor.precision,
                scale=descriptor.scale,
                )
            return self.get_host_descriptor(stripped)
        if descriptor.base_type_name in {'tinyint', 'bit'} and descriptor.precision == 1:
            return HostTypeDescriptor(bool)
        return super().reverse_special_case(descriptor)
