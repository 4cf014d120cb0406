"""
View operations. Definitions are opaque SQL.
"""
import logging
from typing import Any

from schemakit.model import View

logger = logging.getLogger(__name__)


class ViewMixin:

    def get_views(self, cn: Any, name_filter: str | None = None,
                  schema_name: str | None = None, *, cancel: Any = None) -> list[View]:
        return self._query_views(cn, self.resolve_schema(schema_name),
                                 self.like_pattern(name_filter), cancel)

    def get_view_names(self, cn: Any, name_filter: str | None = None,
                       schema_name: str | None = None, *, cancel: Any = None) -> list[str]:
        return [v.view_name for v in self.get_views(cn, name_filter, schema_name, cancel=cancel)]

    def get_view(self, cn: Any, view_name: str, schema_name: str | None = None, *,
                 cancel: Any = None) -> View | None:
        name = self.normalize_name(view_name)
        for view in self._query_views(cn, self.resolve_schema(schema_name), name, cancel):
            if view.view_name.lower() == name.lower():
                return view
        return None

    def view_exists(self, cn: Any, view_name: str, schema_name: str | None = None, *,
                    cancel: Any = None) -> bool:
        return self.get_view(cn, view_name, schema_name, cancel=cancel) is not None

    def create_view_if_not_exists(self, cn: Any, view: View, *, cancel: Any = None) -> bool:
        if self.view_exists(cn, view.view_name, view.schema_name, cancel=cancel):
            return False
        self._execute(cn, self.create_view_sql(view), cancel=cancel)
        logger.info(f'Created view {view.view_name}')
        return True

    def drop_view_if_exists(self, cn: Any, view_name: str, schema_name: str | None = None, *,
                            cancel: Any = None) -> bool:
        if not self.view_exists(cn, view_name, schema_name, cancel=cancel):
            return False
        self._execute(cn, f'DROP VIEW {self.qualified_name(view_name, schema_name)}',
                      cancel=cancel)
        logger.info(f'Dropped view {view_name}')
        return True

    def rename_view_if_exists(self, cn: Any, view_name: str, new_view_name: str,
                              schema_name: str | None = None, *, cancel: Any = None) -> bool:
        view = self.get_view(cn, view_name, schema_name, cancel=cancel)
        if view is None:
            return False
        self._rename_view(cn, view, new_view_name, cancel)
        logger.info(f'Renamed view {view_name} to {new_view_name}')
        return True

    def _rename_view(self, cn: Any, view: View, new_view_name: str, cancel: Any) -> None:
        sql, params = self.rename_view_sql(view.view_name, new_view_name, view.schema_name)
        self._execute(cn, sql, params, cancel=cancel)
