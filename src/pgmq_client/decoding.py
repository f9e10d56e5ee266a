"""Decoding of pgmq result rows into typed records.

Rows are pulled lazily from a ``dict_row`` cursor. Each decoder reads a fixed
set of columns; a missing column or a value of the wrong type fails the row
with :class:`DecodeError` instead of producing a partially filled record.
"""

from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from typing import Any, TypeVar

from psycopg import Cursor

from pgmq_client.errors import DecodeError
from pgmq_client.models import Message, Queue

T = TypeVar("T")

Row = Mapping[str, Any]


class RowDecoder:
    """Typed column access for one result row.

    Attributes:
        queue_name: Queue of the running operation (for error context)
        operation: Name of the running operation (for error context)
    """

    def __init__(self, row: Row, queue_name: str | None, operation: str) -> None:
        self._row = row
        self.queue_name = queue_name
        self.operation = operation

    def _fail(self, column: str, detail: str) -> DecodeError:
        return DecodeError(self.queue_name, self.operation, column, detail)

    def _get(self, column: str) -> Any:
        try:
            value = self._row[column]
        except KeyError:
            raise self._fail(column, "missing from result") from None
        if value is None:
            raise self._fail(column, "unexpected NULL")
        return value

    def integer(self, column: str) -> int:
        value = self._get(column)
        # bool is an int subclass but never a valid id or counter
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._fail(column, f"expected integer, got {type(value).__name__}")
        return value

    def text(self, column: str) -> str:
        value = self._get(column)
        if not isinstance(value, str):
            raise self._fail(column, f"expected text, got {type(value).__name__}")
        return value

    def timestamp(self, column: str) -> datetime:
        value = self._get(column)
        if not isinstance(value, datetime):
            raise self._fail(column, f"expected timestamp, got {type(value).__name__}")
        return value

    def boolean(self, column: str) -> bool:
        value = self._get(column)
        if not isinstance(value, bool):
            raise self._fail(column, f"expected boolean, got {type(value).__name__}")
        return value


def decode_queue(row: RowDecoder) -> Queue:
    """Decode a ``pgmq.list_queues()`` row."""
    return Queue(
        queue_name=row.text("queue_name"),
        created_at=row.timestamp("created_at"),
    )


def decode_message(row: RowDecoder) -> Message:
    """Decode a ``pgmq.read()`` / ``pgmq.pop()`` row."""
    return Message(
        msg_id=row.integer("msg_id"),
        read_ct=row.integer("read_ct"),
        enqueued_at=row.timestamp("enqueued_at"),
        vt=row.timestamp("vt"),
        message=row.text("message"),
    )


def integer_column(column: str) -> Callable[[RowDecoder], int]:
    """Build a decoder for single-column integer results (ids, counts)."""

    def decode(row: RowDecoder) -> int:
        return row.integer(column)

    return decode


def iter_rows(
    cursor: Cursor[Any],
    decode: Callable[[RowDecoder], T],
    queue_name: str | None,
    operation: str,
) -> Iterator[T]:
    """Lazily decode the rows of an executed cursor.

    The returned generator is forward-only and single-pass: every pull fetches
    and decodes the next row, and once consumed the cursor is exhausted.

    Args:
        cursor: Executed cursor using a ``dict_row`` row factory
        decode: Function building a record from one row
        queue_name: Queue of the running operation (for error context)
        operation: Name of the running operation (for error context)

    Yields:
        One decoded record per row

    Raises:
        DecodeError: If a row is missing a column or holds an incompatible value
    """
    for row in cursor:
        if not isinstance(row, Mapping):
            raise DecodeError(
                queue_name, operation, "*", f"expected named columns, got {type(row).__name__}"
            )
        yield decode(RowDecoder(row, queue_name, operation))
