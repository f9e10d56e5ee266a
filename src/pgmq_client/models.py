"""Records decoded from pgmq result sets."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Queue:
    """A queue as reported by ``pgmq.list_queues()``.

    Attributes:
        queue_name: Unique, caller-chosen queue name
        created_at: When the queue was created
    """

    queue_name: str
    created_at: datetime


@dataclass(frozen=True)
class Message:
    """A message envelope returned by ``pgmq.read()`` or ``pgmq.pop()``.

    Attributes:
        msg_id: Id assigned by the extension, unique within the queue
        read_ct: Number of times the message has been made visible to a reader
        enqueued_at: When the message was sent
        vt: Time after which the message may be read again
        message: Payload as JSON text
    """

    msg_id: int
    read_ct: int
    enqueued_at: datetime
    vt: datetime
    message: str

    def payload(self) -> Any:
        """Parse the JSON payload.

        Returns:
            The payload deserialized with ``json.loads``

        Raises:
            json.JSONDecodeError: If the stored text is not valid JSON
        """
        return json.loads(self.message)
