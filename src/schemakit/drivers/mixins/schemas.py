"""
Schema (namespace) operations.

On dialects without schemas every operation is a no-op returning False or an
empty list.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)


class SchemaMixin:

    def schema_exists(self, cn: Any, schema_name: str, *, cancel: Any = None) -> bool:
        if not self.supports_schemas or not schema_name:
            return False
        name = self.normalize_name(schema_name)
        names = self._query_schema_names(cn, name, cancel)
        return any(n.lower() == name.lower() for n in names)

    def get_schema_names(self, cn: Any, name_filter: str | None = None, *,
                         cancel: Any = None) -> list[str]:
        """Schema names, optionally filtered with ``*`` wildcards."""
        if not self.supports_schemas:
            return []
        return self._query_schema_names(cn, self.like_pattern(name_filter), cancel)

    def create_schema_if_not_exists(self, cn: Any, schema_name: str, *,
                                    cancel: Any = None) -> bool:
        if not self.supports_schemas or self.schema_exists(cn, schema_name, cancel=cancel):
            return False
        self._execute(cn, f'CREATE SCHEMA {self.quote_identifier(schema_name)}', cancel=cancel)
        logger.info(f'Created schema {schema_name}')
        return True

    def drop_schema_if_exists(self, cn: Any, schema_name: str, *, cancel: Any = None) -> bool:
        """Drop an empty schema; dropping one that still holds objects fails."""
        if not self.supports_schemas or not self.schema_exists(cn, schema_name, cancel=cancel):
            return False
        self._execute(cn, f'DROP SCHEMA {self.quote_identifier(schema_name)}', cancel=cancel)
        logger.info(f'Dropped schema {schema_name}')
        return True
