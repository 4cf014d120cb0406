"""
Type descriptors, data type metadata and the per-dialect type maps.

- descriptors: host and dialect type descriptors
- type_info: DataTypeInfo, DataTypeCategory and the per-dialect registry
- type_mapping: forward/reverse resolution shared by every dialect
- sqlite_types, postgres_types, sqlserver_types, mysql_types: dialect maps
"""
from schemakit.adapters.descriptors import DialectTypeDescriptor as DialectTypeDescriptor
from schemakit.adapters.descriptors import HostTypeDescriptor as HostTypeDescriptor
from schemakit.adapters.mysql_types import MySQLTypeMap as MySQLTypeMap
from schemakit.adapters.postgres_types import PostgresTypeMap as PostgresTypeMap
from schemakit.adapters.sqlite_types import SQLiteTypeMap as SQLiteTypeMap
from schemakit.adapters.sqlserver_types import SQLServerTypeMap as SQLServerTypeMap
from schemakit.adapters.type_info import DataTypeCategory as DataTypeCategory
from schemakit.adapters.type_info import DataTypeInfo as DataTypeInfo
from schemakit.adapters.type_info import DataTypeRegistry as DataTypeRegistry
from schemakit.adapters.type_mapping import DialectTypeMap as DialectTypeMap
from schemakit.adapters.type_mapping import host_category as host_category
