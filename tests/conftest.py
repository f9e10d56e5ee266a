"""Pytest configuration and fixtures for testing.

This module provides pytest fixtures for:
- Fake connections and providers for unit tests
- pgmq Docker container management (integration tests)
- Database connection configuration
"""

import os
import time
from collections.abc import Iterator

import psycopg
import pytest
from fakes import FakeDatabase

from pgmq_client import (
    DatabaseConfig,
    DirectConnectionProvider,
    JsonSerializationProvider,
    PgmqClient,
    PgmqConfig,
)

PGMQ_CONNINFO = "host=localhost port=5434 dbname=postgres user=postgres password=pgmq_password"


@pytest.fixture
def fake_db() -> FakeDatabase:
    """Provide a fake database for unit tests."""
    return FakeDatabase()


@pytest.fixture
def fake_client(fake_db: FakeDatabase) -> PgmqClient:
    """Provide a client wired to the fake database."""
    return PgmqClient(fake_db.provider, JsonSerializationProvider(), PgmqConfig())


@pytest.fixture(scope="session")
def docker_compose_file():
    """Return the path to the docker-compose.yml file."""
    return os.path.join(os.path.dirname(__file__), "..", "docker-compose.yml")


@pytest.fixture(scope="session")
def docker_cleanup():
    """Tear the container down together with its volumes."""
    return ["down -v"]


@pytest.fixture(scope="session")
def pgmq_service(docker_services):
    """Start the pgmq container and wait until the extension is usable.

    This fixture starts the container from docker-compose.yml and waits for
    PostgreSQL to accept connections and for the pgmq extension to be
    installed before running tests.
    """
    docker_services.wait_until_responsive(
        timeout=60.0, pause=0.5, check=lambda: is_pgmq_responsive()
    )
    return "pgmq"


def is_pgmq_responsive() -> bool:
    """Check that PostgreSQL accepts connections and the pgmq extension is installed.

    Returns:
        True once ``pgmq.list_queues()`` can be called, False otherwise.
    """
    try:
        with psycopg.connect(PGMQ_CONNINFO, autocommit=True) as conn:
            conn.execute("CREATE EXTENSION IF NOT EXISTS pgmq")
            conn.execute("SELECT * FROM pgmq.list_queues()")
    except psycopg.Error:
        return False
    # The server restarts once after initdb; give it a moment to settle
    time.sleep(0.5)
    return True


@pytest.fixture
def database_config(pgmq_service) -> DatabaseConfig:
    """Provide the database configuration of the test container."""
    return DatabaseConfig(
        host="localhost",
        port=5434,
        database="postgres",
        user="postgres",
        password="pgmq_password",
    )


@pytest.fixture
def pgmq_client(database_config: DatabaseConfig) -> Iterator[PgmqClient]:
    """Provide a client against the container, dropping every queue afterwards."""
    client = PgmqClient(
        DirectConnectionProvider(database_config),
        JsonSerializationProvider(),
        PgmqConfig(),
    )
    yield client
    for queue in client.list_queues():
        client.drop_queue(queue.queue_name)
