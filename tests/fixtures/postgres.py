import logging

import docker
import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

from libb import Setting

import config

logger = logging.getLogger(__name__)


def docker_available() -> bool:
    try:
        docker.from_env().ping()
    except Exception as e:
        logger.info(f'Docker unavailable: {e}')
        return False
    return True


@pytest.fixture(scope='session')
def psql_docker(request):
    """Session-scoped PostgreSQL container using testcontainers.

    Testcontainers assigns a random port, waits for the server and stops it
    at the end of the session.
    """
    if not docker_available():
        pytest.skip('Docker is required for PostgreSQL integration tests')

    container = PostgresContainer(
        image=config.postgresql.image,
        username=config.postgresql.username,
        password=config.postgresql.password,
        dbname=config.postgresql.database,
    )
    container.start()
    request.addfinalizer(container.stop)

    Setting.unlock()
    config.postgresql.hostname = container.get_container_host_ip()
    config.postgresql.port = int(container.get_exposed_port(5432))
    Setting.lock()

    logger.info(
        f'PostgreSQL container started at '
        f'{config.postgresql.hostname}:{config.postgresql.port}'
    )
    return container


@pytest.fixture
def psql_conn(psql_docker):
    """Autocommit connection on a freshly emptied public schema."""
    cn = psycopg.connect(
        host=config.postgresql.hostname,
        port=config.postgresql.port,
        user=config.postgresql.username,
        password=config.postgresql.password,
        dbname=config.postgresql.database,
        autocommit=True,
    )
    cn.execute('drop schema if exists public cascade')
    cn.execute('drop schema if exists sales cascade')
    cn.execute('create schema public')
    yield cn
    cn.close()
