"""
Index operations.

Indexes that back a primary key or unique constraint belong to the
constraint and are not reported here.
"""
import logging
from typing import Any

from schemakit.model import Index
from schemakit.sql import like_match

logger = logging.getLogger(__name__)


class IndexMixin:

    def get_indexes(self, cn: Any, table_name: str, name_filter: str | None = None,
                    schema_name: str | None = None, *, cancel: Any = None) -> list[Index]:
        if not self.table_exists(cn, table_name, schema_name, cancel=cancel):
            return []
        pattern = self.like_pattern(name_filter)
        indexes = self._query_indexes(
            cn, self.normalize_name(table_name), self.resolve_schema(schema_name), cancel)
        return [i for i in indexes if like_match(i.index_name, pattern)]

    def get_index_names(self, cn: Any, table_name: str, name_filter: str | None = None,
                        schema_name: str | None = None, *, cancel: Any = None) -> list[str]:
        return [i.index_name for i in self.get_indexes(
            cn, table_name, name_filter, schema_name, cancel=cancel)]

    def get_index(self, cn: Any, table_name: str, index_name: str,
                  schema_name: str | None = None, *, cancel: Any = None) -> Index | None:
        name = self.normalize_name(index_name).lower()
        for index in self.get_indexes(cn, table_name, None, schema_name, cancel=cancel):
            if index.index_name.lower() == name:
                return index
        return None

    def get_indexes_on_column(self, cn: Any, table_name: str, column_name: str,
                              schema_name: str | None = None, *,
                              cancel: Any = None) -> list[Index]:
        column_name = self.normalize_name(column_name)
        return [i for i in self.get_indexes(cn, table_name, None, schema_name, cancel=cancel)
                if i.has_column(column_name)]

    def index_exists(self, cn: Any, table_name: str, index_name: str,
                     schema_name: str | None = None, *, cancel: Any = None) -> bool:
        return self.get_index(cn, table_name, index_name, schema_name, cancel=cancel) is not None

    def index_exists_on_column(self, cn: Any, table_name: str, column_name: str,
                               schema_name: str | None = None, *, cancel: Any = None) -> bool:
        return bool(self.get_indexes_on_column(cn, table_name, column_name, schema_name,
                                               cancel=cancel))

    def create_index_if_not_exists(self, cn: Any, index: Index, *, cancel: Any = None) -> bool:
        """Create an index; descending columns are created ascending where unsupported."""
        if self.index_exists(cn, index.table_name, index.index_name, index.schema_name,
                             cancel=cancel):
            return False
        self._execute(cn, self.create_index_sql(index), cancel=cancel)
        logger.info(f'Created index {index.index_name} on {index.table_name}')
        return True

    def drop_index_if_exists(self, cn: Any, table_name: str, index_name: str,
                             schema_name: str | None = None, *, cancel: Any = None) -> bool:
        index = self.get_index(cn, table_name, index_name, schema_name, cancel=cancel)
        if index is None:
            return False
        self._execute(cn, self.drop_index_sql(index), cancel=cancel)
        logger.info(f'Dropped index {index.index_name} from {index.table_name}')
        return True

    def drop_indexes_on_column_if_exists(self, cn: Any, table_name: str, column_name: str,
                                         schema_name: str | None = None, *,
                                         cancel: Any = None) -> bool:
        indexes = self.get_indexes_on_column(cn, table_name, column_name, schema_name,
                                             cancel=cancel)
        for index in indexes:
            self._execute(cn, self.drop_index_sql(index), cancel=cancel)
        return bool(indexes)
