"""
pgmq-client: Python client for the pgmq PostgreSQL message-queue extension.

This package wraps the pgmq SQL functions (create/drop/list queues, send,
read, pop, archive, delete, purge) behind a small synchronous client that
runs each call in its own connection-scoped unit of work and decodes the
results into typed records.
"""

from pgmq_client.client import PgmqClient
from pgmq_client.config import DatabaseConfig, PgmqConfig
from pgmq_client.connection import (
    ConnectionProvider,
    DirectConnectionProvider,
    PooledConnectionProvider,
)
from pgmq_client.errors import (
    DecodeError,
    EmptyResultError,
    PgmqConnectionError,
    PgmqError,
    QueueOperationError,
    SerializationError,
    StatementExecutionError,
)
from pgmq_client.models import Message, Queue
from pgmq_client.serialization import (
    JsonSerializationProvider,
    PydanticSerializationProvider,
    SerializationProvider,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "PgmqClient",
    "PgmqConfig",
    "DatabaseConfig",
    "ConnectionProvider",
    "PooledConnectionProvider",
    "DirectConnectionProvider",
    "SerializationProvider",
    "JsonSerializationProvider",
    "PydanticSerializationProvider",
    "Message",
    "Queue",
    "PgmqError",
    "SerializationError",
    "PgmqConnectionError",
    "QueueOperationError",
    "StatementExecutionError",
    "DecodeError",
    "EmptyResultError",
]
