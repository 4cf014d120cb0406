"""
Per-kind driver operation families.

Each mixin implements one schema-object kind on top of the catalog queries
and SQL builders of DialectDriver; the driver base class aggregates them.
"""
from schemakit.drivers.mixins.columns import ColumnMixin as ColumnMixin
from schemakit.drivers.mixins.constraints import CheckConstraintMixin as CheckConstraintMixin
from schemakit.drivers.mixins.constraints import DefaultConstraintMixin as DefaultConstraintMixin
from schemakit.drivers.mixins.constraints import ForeignKeyConstraintMixin as ForeignKeyConstraintMixin
from schemakit.drivers.mixins.constraints import PrimaryKeyConstraintMixin as PrimaryKeyConstraintMixin
from schemakit.drivers.mixins.constraints import UniqueConstraintMixin as UniqueConstraintMixin
from schemakit.drivers.mixins.indexes import IndexMixin as IndexMixin
from schemakit.drivers.mixins.schemas import SchemaMixin as SchemaMixin
from schemakit.drivers.mixins.tables import TableMixin as TableMixin
from schemakit.drivers.mixins.views import ViewMixin as ViewMixin
