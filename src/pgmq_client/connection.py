"""Connection providers for the pgmq client.

The client obtains one connection per operation from a
:class:`ConnectionProvider` and hands it back when the operation ends. This
module provides a pooled provider for long-running processes and a direct
provider that opens a fresh connection per call.
"""

from typing import Any, Protocol

import psycopg
import structlog
from psycopg import Connection
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from pgmq_client.config import DatabaseConfig
from pgmq_client.errors import PgmqConnectionError

logger = structlog.get_logger(__name__)


class ConnectionProvider(Protocol):
    """Supplies database connections to the client.

    ``acquire`` must return a connection ready to execute statements;
    ``release`` is called exactly once for every acquired connection, on
    success and on failure. Implementations own pooling and retries.
    """

    def acquire(self) -> Connection[Any]:
        """Return a usable connection.

        Raises:
            PgmqConnectionError: If no connection can be supplied
        """
        ...

    def release(self, conn: Connection[Any]) -> None:
        """Give back a connection obtained from :meth:`acquire`."""
        ...


class PooledConnectionProvider:
    """Connection provider backed by a ``psycopg_pool.ConnectionPool``.

    Example:
        ```python
        # Using as context manager
        config = DatabaseConfig(host="localhost", port=5432, database="postgres",
                                user="postgres", password="secret")
        with PooledConnectionProvider(config) as provider:
            provider.health_check()
            client = PgmqClient(provider, JsonSerializationProvider())

        # Manual lifecycle management
        provider = PooledConnectionProvider(config)
        provider.connect()
        try:
            provider.health_check()
        finally:
            provider.close()
        ```
    """

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize the pooled provider.

        Args:
            config: Database configuration
        """
        self.config = config
        self._pool: ConnectionPool | None = None
        self._logger = logger.bind(
            db_host=config.host,
            db_port=config.port,
            db_name=config.database,
        )

    def connect(self) -> None:
        """Open the connection pool with the configured min/max size.

        Raises:
            PgmqConnectionError: If the pool cannot be opened
        """
        if self._pool is not None:
            self._logger.warning("Connection pool already exists, skipping connect")
            return

        self._logger.info(
            "Creating connection pool",
            min_size=self.config.min_size,
            max_size=self.config.max_size,
        )

        try:
            self._pool = ConnectionPool(
                conninfo=self.config.to_connection_string(),
                min_size=self.config.min_size,
                max_size=self.config.max_size,
                timeout=self.config.timeout,
                kwargs={"row_factory": dict_row},
                open=True,
            )
        except (psycopg.Error, PoolTimeout) as e:
            self._logger.error("Failed to create connection pool", error=str(e))
            raise PgmqConnectionError(f"Cannot open connection pool: {e}") from e

        self._logger.info("Connection pool created successfully")

    def close(self) -> None:
        """Close the connection pool and release all connections."""
        if self._pool is not None:
            self._logger.info("Closing connection pool")
            self._pool.close()
            self._pool = None
            self._logger.info("Connection pool closed")

    def acquire(self) -> Connection[Any]:
        """Get a connection from the pool.

        Returns:
            A database connection from the pool

        Raises:
            PgmqConnectionError: If the pool is not open or no connection
                becomes available within the configured timeout
        """
        if self._pool is None:
            raise PgmqConnectionError(
                "Connection pool not initialized. Call connect() first or use as context manager."
            )
        try:
            return self._pool.getconn()
        except (psycopg.Error, PoolTimeout) as e:
            self._logger.error("Failed to acquire connection", error=str(e))
            raise PgmqConnectionError(f"Cannot acquire connection: {e}") from e

    def release(self, conn: Connection[Any]) -> None:
        """Return a connection to the pool.

        Args:
            conn: Connection to return to the pool
        """
        if self._pool is not None:
            self._pool.putconn(conn)

    def health_check(self) -> bool:
        """Check that the database is reachable and the pgmq extension is installed.

        Returns:
            True if the connection works and the pgmq extension exists

        Raises:
            PgmqConnectionError: If no connection can be acquired
            psycopg.Error: If the check query fails
        """
        self._logger.info("Performing health check")

        conn = self.acquire()
        try:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT 1 AS health")
                result = cur.fetchone()
                if result is None or result.get("health") != 1:
                    self._logger.error("Health check failed: unexpected result")
                    return False

                cur.execute(
                    """
                    SELECT EXISTS (
                        SELECT 1
                        FROM pg_extension
                        WHERE extname = 'pgmq'
                    ) AS has_pgmq
                    """
                )
                result = cur.fetchone()
                if result is None or not result.get("has_pgmq"):
                    self._logger.error(
                        "Health check failed: pgmq extension not found. "
                        "Run CREATE EXTENSION pgmq first."
                    )
                    return False

                self._logger.info("Health check passed")
                return True
        finally:
            try:
                conn.rollback()
            except psycopg.Error as e:
                self._logger.warning("Rollback after health check failed", error=str(e))
            self.release(conn)

    def __enter__(self) -> "PooledConnectionProvider":
        """Enter context manager - open the connection pool.

        Returns:
            Self for use in with statement
        """
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit context manager - close the connection pool."""
        self.close()


class DirectConnectionProvider:
    """Connection provider that opens a new connection for every operation.

    Suitable for scripts and tests; each released connection is closed.
    """

    def __init__(self, config: DatabaseConfig | str) -> None:
        """Initialize the direct provider.

        Args:
            config: Database configuration, or a libpq connection string
        """
        if isinstance(config, DatabaseConfig):
            self._conninfo = config.to_connection_string()
        else:
            self._conninfo = config

    def acquire(self) -> Connection[Any]:
        try:
            return psycopg.connect(self._conninfo, row_factory=dict_row)
        except psycopg.Error as e:
            logger.error("Failed to open connection", error=str(e))
            raise PgmqConnectionError(f"Cannot open connection: {e}") from e

    def release(self, conn: Connection[Any]) -> None:
        conn.close()
