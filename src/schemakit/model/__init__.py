"""
Provider-neutral schema model.
"""
from schemakit.model.column import Column as Column
from schemakit.model.column import parse_type_overrides as parse_type_overrides
from schemakit.model.constraints import CheckConstraint as CheckConstraint
from schemakit.model.constraints import ColumnOrder as ColumnOrder
from schemakit.model.constraints import DefaultConstraint as DefaultConstraint
from schemakit.model.constraints import ForeignKeyAction as ForeignKeyAction
from schemakit.model.constraints import ForeignKeyConstraint as ForeignKeyConstraint
from schemakit.model.constraints import Index as Index
from schemakit.model.constraints import OrderedColumn as OrderedColumn
from schemakit.model.constraints import PrimaryKeyConstraint as PrimaryKeyConstraint
from schemakit.model.constraints import UniqueConstraint as UniqueConstraint
from schemakit.model.constraints import ordered_columns as ordered_columns
from schemakit.model.table import Table as Table
from schemakit.model.table import View as View
