"""Serialization providers turning application objects into JSON text.

The client depends only on the :class:`SerializationProvider` protocol, so any
object with a ``serialize(obj) -> str`` method can be plugged in. Two
implementations are provided: one on the standard ``json`` module and one on
pydantic.
"""

import dataclasses
import json
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Protocol
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from pydantic_core import PydanticSerializationError

from pgmq_client.errors import SerializationError


class SerializationProvider(Protocol):
    """Anything that can turn an object into JSON text."""

    def serialize(self, obj: Any) -> str:
        """Serialize an object to JSON text.

        Raises:
            SerializationError: If the object graph cannot be encoded
        """
        ...


def _default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonSerializationProvider:
    """Serializer built on the standard ``json`` module.

    Output is compact (no whitespace after separators). Dataclasses, pydantic
    models, datetimes and UUIDs are handled; anything else can be covered by
    passing a custom ``default`` hook, which has the same contract as the
    ``default`` argument of ``json.dumps``.

    Example:
        >>> provider = JsonSerializationProvider()
        >>> provider.serialize({"text": "some text"})
        '{"text":"some text"}'
    """

    def __init__(self, default: Callable[[Any], Any] | None = None) -> None:
        self._default = default or _default

    def serialize(self, obj: Any) -> str:
        try:
            return json.dumps(obj, default=self._default, separators=(",", ":"))
        except (TypeError, ValueError, RecursionError) as e:
            raise SerializationError(type(obj).__name__, str(e)) from e


class PydanticSerializationProvider:
    """Serializer built on pydantic's JSON encoder.

    Serialization is inferred from the runtime type, so ``BaseModel``
    instances, dataclasses, datetimes, UUIDs and plain containers all work.
    """

    def __init__(self) -> None:
        self._adapter: TypeAdapter[Any] = TypeAdapter(Any)

    def serialize(self, obj: Any) -> str:
        try:
            return self._adapter.dump_json(obj).decode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(type(obj).__name__, str(e)) from e
