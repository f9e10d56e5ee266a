"""Tests for row decoding."""

from unittest.mock import MagicMock

import pytest
from fakes import NOW, message_row

from pgmq_client.decoding import (
    RowDecoder,
    decode_message,
    decode_queue,
    integer_column,
    iter_rows,
)
from pgmq_client.errors import DecodeError
from pgmq_client.models import Message, Queue


def cursor_over(rows: list) -> MagicMock:
    cursor = MagicMock()
    cursor.__iter__.side_effect = lambda: iter(rows)
    return cursor


class TestRowDecoder:
    """Tests for typed column access."""

    def test_missing_column(self) -> None:
        """A missing column raises DecodeError naming it."""
        row = RowDecoder({}, "orders", "read_batch")

        with pytest.raises(DecodeError) as exc_info:
            row.integer("msg_id")

        error = exc_info.value
        assert error.column == "msg_id"
        assert error.queue_name == "orders"
        assert error.operation == "read_batch"
        assert "missing from result" in str(error)

    def test_null_value(self) -> None:
        """NULL is never turned into a default value."""
        with pytest.raises(DecodeError, match="unexpected NULL"):
            RowDecoder({"read_ct": None}, "orders", "read_batch").integer("read_ct")

    def test_bool_is_not_an_integer(self) -> None:
        """Booleans are rejected where an integer is expected."""
        with pytest.raises(DecodeError, match="expected integer, got bool"):
            RowDecoder({"msg_id": True}, "orders", "pop").integer("msg_id")

    def test_timestamp_type_checked(self) -> None:
        """Timestamps must be datetimes."""
        with pytest.raises(DecodeError, match="expected timestamp"):
            RowDecoder({"vt": "2025-01-01"}, "orders", "pop").timestamp("vt")

    def test_text_type_checked(self) -> None:
        """Payload text must be a string (selected as message::text)."""
        with pytest.raises(DecodeError, match="expected text, got dict"):
            RowDecoder({"message": {"a": 1}}, "orders", "pop").text("message")

    def test_boolean(self) -> None:
        """Booleans decode as-is."""
        assert RowDecoder({"drop_queue": False}, "q", "drop_queue").boolean("drop_queue") is False


class TestRecordDecoders:
    """Tests for the per-operation record decoders."""

    def test_decode_message(self) -> None:
        """A full read row becomes a Message."""
        message = decode_message(RowDecoder(message_row(msg_id=3, read_ct=2), "q", "read_batch"))

        assert message == Message(3, 2, NOW, NOW, '{"text":"hi"}')

    def test_decode_message_missing_column(self) -> None:
        """A row missing any envelope column fails as a whole."""
        for column in ("msg_id", "read_ct", "enqueued_at", "vt", "message"):
            row = message_row()
            del row[column]
            with pytest.raises(DecodeError) as exc_info:
                decode_message(RowDecoder(row, "q", "read_batch"))
            assert exc_info.value.column == column

    def test_decode_queue(self) -> None:
        """A list_queues row becomes a Queue; extra columns are ignored."""
        row = {"queue_name": "orders", "created_at": NOW, "is_partitioned": False}

        assert decode_queue(RowDecoder(row, None, "list_queues")) == Queue("orders", NOW)

    def test_integer_column(self) -> None:
        """integer_column reads the named scalar column."""
        decode = integer_column("send_batch")

        assert decode(RowDecoder({"send_batch": 11}, "q", "send_batch")) == 11


class TestIterRows:
    """Tests for the lazy row iterator."""

    def test_lazy_single_pass(self) -> None:
        """Rows are decoded one at a time and the iterator is not restartable."""
        decoded = []

        def decode(row: RowDecoder) -> int:
            value = row.integer("n")
            decoded.append(value)
            return value

        rows = iter_rows(cursor_over([{"n": 1}, {"n": 2}]), decode, "q", "op")

        assert decoded == []
        assert next(rows) == 1
        assert decoded == [1]
        assert list(rows) == [2]
        assert list(rows) == []

    def test_failure_stops_iteration(self) -> None:
        """A bad row raises DecodeError after the good rows before it."""
        rows = iter_rows(cursor_over([{"n": 1}, {}]), integer_column("n"), "q", "op")

        assert next(rows) == 1
        with pytest.raises(DecodeError):
            next(rows)

    def test_tuple_rows_rejected(self) -> None:
        """Rows without column names cannot be decoded."""
        rows = iter_rows(cursor_over([(1,)]), integer_column("n"), "q", "op")

        with pytest.raises(DecodeError, match="expected named columns"):
            list(rows)


class TestMessagePayload:
    """Tests for Message.payload()."""

    def test_payload_parses_json(self) -> None:
        """payload() returns the parsed JSON object."""
        message = Message(1, 0, NOW, NOW, '{"text": "My cool message"}')

        assert message.payload() == {"text": "My cool message"}
