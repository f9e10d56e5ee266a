"""Client for the pgmq PostgreSQL message-queue extension.

Every operation acquires one connection from the configured provider,
executes a single ``pgmq.*`` function call, decodes the result rows, commits
and releases the connection. Queue semantics (visibility timeouts, atomic
pop, archiving) are enforced by the extension.
"""

from collections.abc import Callable, Collection, Sequence
from datetime import timedelta
from typing import Any, TypeVar

import psycopg
import structlog
from psycopg import Connection
from psycopg.rows import dict_row

from pgmq_client.config import PgmqConfig
from pgmq_client.connection import ConnectionProvider
from pgmq_client.decoding import (
    RowDecoder,
    decode_message,
    decode_queue,
    integer_column,
    iter_rows,
)
from pgmq_client.errors import (
    EmptyResultError,
    PgmqConnectionError,
    QueueOperationError,
    StatementExecutionError,
)
from pgmq_client.models import Message, Queue
from pgmq_client.serialization import SerializationProvider

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Duration = timedelta | int

_MESSAGE_COLUMNS = "msg_id, read_ct, enqueued_at, vt, message::text AS message"


def _whole_seconds(value: Duration, name: str) -> int:
    """Convert a duration (timedelta or integer seconds) to whole seconds."""
    if isinstance(value, timedelta):
        if value < timedelta(0):
            raise ValueError(f"{name} must be >= 0, got {value}")
        return int(value.total_seconds())
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return int(value)


class PgmqClient:
    """Synchronous client for pgmq queues.

    The client holds no mutable state: it is safe to share between threads
    when the connection provider is.

    Example:
        ```python
        from pgmq_client import (
            JsonSerializationProvider,
            PgmqClient,
            PooledConnectionProvider,
        )

        with PooledConnectionProvider(config.database) as provider:
            client = PgmqClient(provider, JsonSerializationProvider(), config.pgmq)
            client.create_queue("orders")
            msg_id = client.send("orders", {"order_id": 42})
            for message in client.read_batch("orders", quantity=10):
                handle(message.payload())
                client.archive("orders", message.msg_id)
        ```
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        serializer: SerializationProvider,
        config: PgmqConfig | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            provider: Supplies one connection per operation
            serializer: Turns messages into JSON text
            config: Queue defaults (default: PgmqConfig())
        """
        self._provider = provider
        self._serializer = serializer
        self.config = config or PgmqConfig()

    def _execute(
        self,
        operation: str,
        queue_name: str | None,
        query: str,
        params: dict[str, Any],
        decode: Callable[[RowDecoder], T] | None = None,
    ) -> list[T]:
        """Run one statement inside a connection-scoped unit of work.

        The connection is committed on success, rolled back on failure and
        released on every path.

        Returns:
            Decoded rows, or an empty list when ``decode`` is None

        Raises:
            PgmqConnectionError: If no connection could be acquired
            StatementExecutionError: If the database rejected the call
            DecodeError: If a result row could not be decoded
        """
        log = logger.bind(operation=operation, queue_name=queue_name)

        try:
            conn = self._provider.acquire()
        except psycopg.Error as e:
            log.error("Failed to acquire connection", error=str(e))
            raise PgmqConnectionError(f"Cannot acquire connection: {e}") from e

        try:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows: list[T] = []
                if decode is not None:
                    rows = list(iter_rows(cur, decode, queue_name, operation))
            conn.commit()
            return rows

        except psycopg.Error as e:
            self._rollback(conn, log)
            log.error("Database error", error=str(e), error_type=type(e).__name__)
            raise StatementExecutionError(queue_name, operation, str(e)) from e

        except Exception as e:
            self._rollback(conn, log)
            log.error("Unexpected error", error=str(e), error_type=type(e).__name__)
            raise

        finally:
            self._provider.release(conn)

    @staticmethod
    def _rollback(conn: Connection[Any], log: Any) -> None:
        # A broken connection cannot roll back; the provider discards it on release
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg.Error as e:
            log.warning("Rollback failed", error=str(e), error_type=type(e).__name__)

    def create_queue(self, queue_name: str) -> None:
        """Create a queue.

        Creating a queue that already exists is left to the extension,
        which treats it as a no-op.

        Args:
            queue_name: Name of the queue to create
        """
        logger.info("Creating queue", queue_name=queue_name)
        self._execute(
            "create_queue",
            queue_name,
            "SELECT pgmq.create(%(queue_name)s)",
            {"queue_name": queue_name},
        )

    def drop_queue(self, queue_name: str) -> None:
        """Drop a queue together with its archive.

        Args:
            queue_name: Name of the queue to drop

        Raises:
            QueueOperationError: If the extension rejects the drop (e.g.,
                unknown queue)
        """
        logger.info("Dropping queue", queue_name=queue_name)
        dropped = self._execute(
            "drop_queue",
            queue_name,
            "SELECT pgmq.drop_queue(%(queue_name)s) AS drop_queue",
            {"queue_name": queue_name},
            lambda row: row.boolean("drop_queue"),
        )
        if not dropped or not dropped[0]:
            raise QueueOperationError(queue_name, "drop_queue", "queue was not dropped")

    def list_queues(self) -> list[Queue]:
        """List all queues.

        Returns:
            Queues in the order reported by the extension
        """
        queues = self._execute(
            "list_queues",
            None,
            "SELECT queue_name, created_at FROM pgmq.list_queues()",
            {},
            decode_queue,
        )
        logger.debug("Listed queues", queue_count=len(queues))
        return queues

    def send(self, queue_name: str, message: Any, delay: Duration = 0) -> int:
        """Send a single message.

        Args:
            queue_name: Name of the queue
            message: Message object (serialized with the configured serializer)
            delay: Time before the message becomes visible (timedelta or seconds)

        Returns:
            Id assigned to the message

        Raises:
            SerializationError: If the message cannot be serialized
            EmptyResultError: If the extension returned no id
        """
        msg_ids = self.send_batch(queue_name, [message], delay)
        if not msg_ids:
            raise EmptyResultError(queue_name, "send", "no message id returned")
        return msg_ids[0]

    def send_batch(
        self, queue_name: str, messages: Sequence[Any], delay: Duration = 0
    ) -> list[int]:
        """Send several messages in one round trip.

        All messages are serialized before a connection is acquired, so a
        serialization failure sends nothing.

        Args:
            queue_name: Name of the queue
            messages: Message objects, in send order
            delay: Time before the messages become visible (timedelta or seconds)

        Returns:
            Assigned ids in the order the extension returned them. Ids are not
            deduplicated; callers needing strict correlation should check that
            the length matches ``len(messages)``.

        Raises:
            SerializationError: If any message cannot be serialized
            ValueError: If delay is negative
        """
        delay_seconds = _whole_seconds(delay, "delay")
        payloads = [self._serializer.serialize(message) for message in messages]
        if not payloads:
            return []

        msg_ids = self._execute(
            "send_batch",
            queue_name,
            "SELECT send_batch FROM pgmq.send_batch("
            "%(queue_name)s, %(messages)s::jsonb[], %(delay)s::integer)",
            {"queue_name": queue_name, "messages": payloads, "delay": delay_seconds},
            integer_column("send_batch"),
        )
        logger.info(
            "Sent messages",
            queue_name=queue_name,
            message_count=len(payloads),
            msg_ids=msg_ids,
            delay=delay_seconds,
        )
        return msg_ids

    def read_batch(
        self,
        queue_name: str,
        quantity: int,
        visibility_timeout: Duration | None = None,
    ) -> list[Message]:
        """Read up to ``quantity`` visible messages.

        Read messages stay invisible to other readers for the visibility
        timeout and have their read counter incremented by the extension.

        Args:
            queue_name: Name of the queue
            quantity: Maximum number of messages to return (must be > 0)
            visibility_timeout: How long read messages stay hidden (default:
                the configured default_visibility_timeout)

        Returns:
            Between zero and ``quantity`` messages

        Raises:
            ValueError: If quantity is not positive or the timeout is negative
        """
        if quantity <= 0:
            raise ValueError(f"quantity must be > 0, got {quantity}")
        if visibility_timeout is None:
            visibility_timeout = self.config.default_visibility_timeout
        vt_seconds = _whole_seconds(visibility_timeout, "visibility_timeout")

        messages = self._execute(
            "read_batch",
            queue_name,
            f"SELECT {_MESSAGE_COLUMNS} FROM pgmq.read("
            "%(queue_name)s, %(vt)s::integer, %(quantity)s::integer)",
            {"queue_name": queue_name, "vt": vt_seconds, "quantity": quantity},
            decode_message,
        )
        logger.debug(
            "Read messages",
            queue_name=queue_name,
            message_count=len(messages),
            visibility_timeout=vt_seconds,
        )
        return messages

    def pop(self, queue_name: str) -> Message | None:
        """Atomically read and delete one message.

        Args:
            queue_name: Name of the queue

        Returns:
            The popped message, or None if no message was available
        """
        messages = self._execute(
            "pop",
            queue_name,
            f"SELECT {_MESSAGE_COLUMNS} FROM pgmq.pop(%(queue_name)s)",
            {"queue_name": queue_name},
            decode_message,
        )
        return messages[0] if messages else None

    def archive_batch(self, queue_name: str, msg_ids: Collection[int]) -> list[int]:
        """Move messages to the queue's archive table.

        Args:
            queue_name: Name of the queue
            msg_ids: Ids of the messages to archive

        Returns:
            Ids that were actually archived
        """
        if not msg_ids:
            return []
        archived = self._execute(
            "archive",
            queue_name,
            "SELECT archive FROM pgmq.archive(%(queue_name)s, %(msg_ids)s::bigint[])",
            {"queue_name": queue_name, "msg_ids": list(msg_ids)},
            integer_column("archive"),
        )
        logger.info("Archived messages", queue_name=queue_name, msg_ids=archived)
        return archived

    def archive(self, queue_name: str, msg_id: int) -> bool:
        """Archive a single message.

        Returns:
            True if exactly one message was archived
        """
        return len(self.archive_batch(queue_name, [msg_id])) == 1

    def delete_batch(self, queue_name: str, msg_ids: Collection[int]) -> list[int]:
        """Permanently delete messages.

        Args:
            queue_name: Name of the queue
            msg_ids: Ids of the messages to delete

        Returns:
            Ids that were actually deleted
        """
        if not msg_ids:
            return []
        deleted = self._execute(
            "delete",
            queue_name,
            'SELECT "delete" FROM pgmq.delete(%(queue_name)s, %(msg_ids)s::bigint[])',
            {"queue_name": queue_name, "msg_ids": list(msg_ids)},
            integer_column("delete"),
        )
        logger.info("Deleted messages", queue_name=queue_name, msg_ids=deleted)
        return deleted

    def delete(self, queue_name: str, msg_id: int) -> bool:
        """Delete a single message.

        Returns:
            True if exactly one message was deleted
        """
        return len(self.delete_batch(queue_name, [msg_id])) == 1

    def purge(self, queue_name: str) -> int:
        """Delete every message in a queue.

        Returns:
            Number of purged messages (0 when the extension returns no row)
        """
        counts = self._execute(
            "purge",
            queue_name,
            "SELECT purge_queue FROM pgmq.purge_queue(%(queue_name)s)",
            {"queue_name": queue_name},
            integer_column("purge_queue"),
        )
        purged = counts[0] if counts else 0
        logger.info("Purged queue", queue_name=queue_name, purged=purged)
        return purged
