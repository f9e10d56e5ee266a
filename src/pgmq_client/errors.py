"""Exceptions raised by the pgmq client.

Every failure is surfaced to the caller as one of these types; the client
never recovers locally. Errors raised while talking to the database keep the
original psycopg exception as ``__cause__``.
"""


class PgmqError(Exception):
    """Base class for all pgmq client errors."""


class SerializationError(PgmqError):
    """Raised when a message cannot be turned into JSON text.

    Attributes:
        message_type: Name of the type that failed to serialize
    """

    def __init__(self, message_type: str, reason: str) -> None:
        self.message_type = message_type
        super().__init__(f"Cannot serialize object of type '{message_type}' to JSON: {reason}")


class PgmqConnectionError(PgmqError):
    """Raised when the connection provider cannot supply a usable connection.

    The operation is aborted before any statement is executed.
    """


class QueueOperationError(PgmqError):
    """Raised when a queue operation fails.

    Attributes:
        queue_name: Queue the operation targeted (None for list_queues)
        operation: Name of the client operation (e.g., "send_batch")
    """

    def __init__(self, queue_name: str | None, operation: str, detail: str) -> None:
        self.queue_name = queue_name
        self.operation = operation
        self.detail = detail
        target = f" on queue '{queue_name}'" if queue_name is not None else ""
        super().__init__(f"{operation} failed{target}: {detail}")


class StatementExecutionError(QueueOperationError):
    """Raised when the database rejects or fails the pgmq function call."""


class DecodeError(QueueOperationError):
    """Raised when a result row is missing a column or has an incompatible value.

    Attributes:
        column: Name of the offending column
    """

    def __init__(self, queue_name: str | None, operation: str, column: str, detail: str) -> None:
        self.column = column
        super().__init__(queue_name, operation, f"column '{column}': {detail}")


class EmptyResultError(QueueOperationError):
    """Raised when an operation that must return exactly one value returned none."""
