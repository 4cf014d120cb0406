"""
SQL Server type map.
"""
import datetime

from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.adapters.type_info import create_binary_type, create_datetime_type
from schemakit.adapters.type_info import create_decimal_type, create_integer_type
from schemakit.adapters.type_info import create_simple_type, create_string_type
from schemakit.adapters.type_mapping import DialectTypeMap
from schemakit.dialect import Dialect
from schemakit.options import IP_ADDRESS_LENGTH, UNLIMITED

MAX_VARCHAR_LENGTH = 8000
MAX_NVARCHAR_LENGTH = 4000
MAX_VARBINARY_LENGTH = 8000


class SQLServerTypeMap(DialectTypeMap):

    dialect = Dialect.SQLSERVER

    integer_types = {8: 'tinyint', 16: 'smallint', 32: 'int', 64: 'bigint'}
    real_types = {32: 'real', 64: 'float'}
    decimal_type_name = 'decimal'
    boolean_type = 'bit'
    uuid_type = 'uniqueidentifier'
    datetime_type = 'datetime2'
    date_type = 'date'
    time_type = 'time'
    timedelta_type = 'time'
    json_type = 'nvarchar(max)'
    network_type = f'varchar({IP_ADDRESS_LENGTH})'

    def build_data_types(self) -> list[DataTypeInfo]:
        return [
            create_integer_type('tinyint'),
            create_integer_type('smallint'),
            create_integer_type('int', aliases=('integer',)),
            create_integer_type('bigint'),
            create_simple_type('real', DataTypeCategory.REAL),
            create_simple_type('float', DataTypeCategory.REAL, aliases=('double precision',)),
            create_decimal_type('decimal', aliases=('dec',)),
            create_decimal_type('numeric'),
            create_simple_type('money', DataTypeCategory.MONEY),
            create_simple_type('smallmoney', DataTypeCategory.MONEY, is_common=False),
            create_simple_type('bit', DataTypeCategory.BOOLEAN),
            create_string_type('varchar', max_length=MAX_VARCHAR_LENGTH),
            create_string_type('char', max_length=MAX_VARCHAR_LENGTH),
            create_string_type('nvarchar', max_length=MAX_NVARCHAR_LENGTH,
                               aliases=('national character varying',)),
            create_string_type('nchar', max_length=MAX_NVARCHAR_LENGTH,
                               aliases=('national character',)),
            create_simple_type('text', DataTypeCategory.TEXT, is_common=False),
            create_simple_type('ntext', DataTypeCategory.TEXT, is_common=False),
            create_binary_type('varbinary', max_length=MAX_VARBINARY_LENGTH),
            create_binary_type('binary', max_length=MAX_VARBINARY_LENGTH),
            create_binary_type('image', supports_length=False, is_common=False),
            create_binary_type('rowversion', supports_length=False,
                               aliases=('timestamp',), is_common=False),
            create_datetime_type('datetime2', supports_precision=True, max_precision=7),
            create_datetime_type('datetime'),
            create_datetime_type('smalldatetime', is_common=False),
            create_datetime_type('datetimeoffset', supports_precision=True,
                                 max_precision=7),
            create_datetime_type('date', host_type=datetime.date),
            create_datetime_type('time', host_type=datetime.time,
                                 supports_precision=True, max_precision=7),
            create_simple_type('uniqueidentifier', DataTypeCategory.IDENTIFIER),
            create_simple_type('xml', DataTypeCategory.XML, is_common=False),
            create_simple_type('sql_variant', DataTypeCategory.OTHER, is_common=False),
            create_simple_type('hierarchyid', DataTypeCategory.OTHER, is_common=False),
            create_simple_type('geography', DataTypeCategory.SPATIAL, is_common=False),
            create_simple_type('geometry', DataTypeCategory.SPATIAL, is_common=False),
            ]

    def text_type(self, length: int, is_unicode: bool, is_fixed_length: bool) -> str:
        limit = MAX_NVARCHAR_LENGTH if is_unicode else MAX_VARCHAR_LENGTH
        prefix = 'n' if is_unicode else ''
        if length == UNLIMITED or length > limit:
            return f'{prefix}varchar(max)'
        if is_fixed_length:
            return f'{prefix}char({length})'
        return f'{prefix}varchar({length})'

    def binary_type(self, length: int, is_fixed_length: bool) -> str:
        if length == UNLIMITED or length > MAX_VARBINARY_LENGTH:
            return 'varbinary(max)'
        if is_fixed_length:
            return f'binary({length})'
        return f'varbinary({length})'
