import logging

import pytest
from testcontainers.mssql import SqlServerContainer

from libb import Setting

import config
from tests.fixtures.postgres import docker_available

logger = logging.getLogger(__name__)


def _connection_string() -> str:
    return (
        f'DRIVER={{{config.mssql.driver}}};'
        f'SERVER={config.mssql.hostname},{config.mssql.port};'
        f'DATABASE={config.mssql.database};'
        f'UID={config.mssql.username};'
        f'PWD={config.mssql.password};'
        f'TrustServerCertificate=yes;'
    )


@pytest.fixture(scope='session')
def sqlserver_docker(request):
    """Session-scoped SQL Server container using testcontainers.

    Needs pyodbc and the Microsoft ODBC driver on the test host.
    """
    pytest.importorskip('pyodbc')
    if not docker_available():
        pytest.skip('Docker is required for SQL Server integration tests')

    container = SqlServerContainer(
        image=config.mssql.image,
        password=config.mssql.password,
    )
    container.start()
    request.addfinalizer(container.stop)

    Setting.unlock()
    config.mssql.hostname = container.get_container_host_ip()
    config.mssql.port = int(container.get_exposed_port(1433))
    Setting.lock()

    logger.info(f'SQL Server container started at {config.mssql.hostname}:{config.mssql.port}')
    return container


@pytest.fixture
def sqlserver_conn(sqlserver_docker):
    """Autocommit connection with every user table of dbo dropped."""
    import pyodbc

    cn = pyodbc.connect(_connection_string(), autocommit=True)
    cursor = cn.cursor()
    cursor.execute("""
select 'alter table ' + quotename(object_schema_name(parent_object_id)) + '.'
    + quotename(object_name(parent_object_id)) + ' drop constraint ' + quotename(name)
from sys.foreign_keys
""")
    for (statement,) in cursor.fetchall():
        cursor.execute(statement)
    cursor.execute("select quotename(name) from sys.views where schema_id = schema_id('dbo')")
    for (name,) in cursor.fetchall():
        cursor.execute(f'drop view dbo.{name}')
    cursor.execute("select quotename(name) from sys.tables where schema_id = schema_id('dbo')")
    for (name,) in cursor.fetchall():
        cursor.execute(f'drop table dbo.{name}')
    cursor.close()
    yield cn
    cn.close()
