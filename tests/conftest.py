import pathlib
import site

import pytest
from schemakit.config import TypeMappingConfig
from schemakit.options import settings

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def reset_type_mapping():
    """Restore process-wide type mapping state around each test."""
    settings.reset_to_defaults()
    TypeMappingConfig.reset_instance()
    yield
    settings.reset_to_defaults()
    TypeMappingConfig.reset_instance()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.schema',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
    'tests.fixtures.mysql',
    'tests.fixtures.sqlserver',
]
