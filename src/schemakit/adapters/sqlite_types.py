"""
SQLite type map.

SQLite stores values by affinity, so declared type names are kept mostly for
readability and for reverse resolution of the schema we created ourselves.
"""
import datetime

from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.adapters.type_info import create_binary_type, create_datetime_type
from schemakit.adapters.type_info import create_decimal_type, create_integer_type
from schemakit.adapters.type_info import create_simple_type, create_string_type
from schemakit.adapters.type_mapping import DialectTypeMap
from schemakit.dialect import Dialect
from schemakit.options import GUID_STRING_LENGTH, UNLIMITED


class SQLiteTypeMap(DialectTypeMap):

    dialect = Dialect.SQLITE

    integer_types = {8: 'tinyint', 16: 'smallint', 32: 'integer', 64: 'bigint'}
    real_types = {32: 'real', 64: 'double'}
    decimal_type_name = 'numeric'
    boolean_type = 'boolean'
    uuid_type = f'varchar({GUID_STRING_LENGTH})'
    datetime_type = 'datetime'
    date_type = 'date'
    time_type = 'time'
    timedelta_type = 'time'
    json_type = 'text'

    def build_data_types(self) -> list[DataTypeInfo]:
        return [
            create_integer_type('integer', aliases=('int',)),
            create_integer_type('tinyint'),
            create_integer_type('smallint'),
            create_integer_type('mediumint', is_common=False),
            create_integer_type('bigint', aliases=('int8',)),
            create_simple_type('real', DataTypeCategory.REAL),
            create_simple_type('double', DataTypeCategory.REAL,
                               aliases=('double precision', 'float')),
            create_decimal_type('numeric', aliases=('decimal',)),
            create_simple_type('boolean', DataTypeCategory.BOOLEAN, aliases=('bool',)),
            create_simple_type('text', DataTypeCategory.TEXT, aliases=('clob',)),
            create_string_type('varchar', aliases=('character varying',)),
            create_string_type('char', aliases=('character',)),
            create_string_type('nvarchar', aliases=('national character varying',)),
            create_string_type('nchar', aliases=('native character',), is_common=False),
            create_binary_type('blob', supports_length=False),
            create_binary_type('varbinary', is_common=False),
            create_datetime_type('datetime', aliases=('timestamp',)),
            create_datetime_type('date', host_type=datetime.date),
            create_datetime_type('time', host_type=datetime.time),
            create_simple_type('json', DataTypeCategory.JSON, is_common=False),
            ]

    def text_type(self, length: int, is_unicode: bool, is_fixed_length: bool) -> str:
        if length == UNLIMITED:
            return 'text'
        prefix = 'n' if is_unicode else ''
        if is_fixed_length:
            return f'{prefix}char({length})'
        return f'{prefix}varchar({length})'

    def binary_type(self, length: int, is_fixed_length: bool) -> str:
        return 'blob'

    def _convert_integer(self, descriptor, defaults) -> str | None:
        # only an INTEGER PRIMARY KEY aliases the rowid
        if descriptor.is_auto_increment:
            return 'integer'
        return super()._convert_integer(descriptor, defaults)
