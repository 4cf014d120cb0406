import logging

import pymysql
import pytest
from testcontainers.mysql import MySqlContainer

from libb import Setting

import config
from tests.fixtures.postgres import docker_available

logger = logging.getLogger(__name__)


@pytest.fixture(scope='session')
def mysql_docker(request):
    """Session-scoped MySQL container using testcontainers."""
    if not docker_available():
        pytest.skip('Docker is required for MySQL integration tests')

    container = MySqlContainer(
        image=config.mysql.image,
        username=config.mysql.username,
        password=config.mysql.password,
        dbname=config.mysql.database,
    )
    container.start()
    request.addfinalizer(container.stop)

    Setting.unlock()
    config.mysql.hostname = container.get_container_host_ip()
    config.mysql.port = int(container.get_exposed_port(3306))
    Setting.lock()

    logger.info(f'MySQL container started at {config.mysql.hostname}:{config.mysql.port}')
    return container


@pytest.fixture
def mysql_conn(mysql_docker):
    """Autocommit connection on an emptied test database."""
    cn = pymysql.connect(
        host=config.mysql.hostname,
        port=config.mysql.port,
        user=config.mysql.username,
        password=config.mysql.password,
        database=config.mysql.database,
        autocommit=True,
    )
    with cn.cursor() as cursor:
        cursor.execute('set foreign_key_checks = 0')
        cursor.execute(
            'select table_name, table_type from information_schema.tables '
            'where table_schema = database()')
        for name, kind in cursor.fetchall():
            statement = 'drop view' if kind == 'VIEW' else 'drop table'
            cursor.execute(f'{statement} `{name}`')
        cursor.execute('set foreign_key_checks = 1')
    yield cn
    cn.close()
