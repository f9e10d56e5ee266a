"""Output formatting utilities for the CLI.

This module renders queues, messages and id lists either as aligned text
tables or as JSON documents.
"""

import json
from collections.abc import Sequence
from typing import Any

from pgmq_client.models import Message, Queue


def print_separator(char: str = "=", width: int = 80) -> None:
    """Print a separator line.

    Args:
        char: Character to use for the separator
        width: Width of the separator line
    """
    print(char * width)


def queue_to_dict(queue: Queue) -> dict[str, Any]:
    return {"queue_name": queue.queue_name, "created_at": queue.created_at.isoformat()}


def message_to_dict(message: Message) -> dict[str, Any]:
    """Convert a message to a JSON-friendly dict, parsing its payload.

    Args:
        message: Message returned by read or pop

    Returns:
        Dictionary with ISO-formatted timestamps and the decoded payload
    """
    return {
        "msg_id": message.msg_id,
        "read_ct": message.read_ct,
        "enqueued_at": message.enqueued_at.isoformat(),
        "vt": message.vt.isoformat(),
        "message": message.payload(),
    }


def print_queues(queues: Sequence[Queue], output_format: str = "text") -> None:
    """Print a list of queues.

    Args:
        queues: Queues to display
        output_format: "text" for a table, "json" for a JSON array
    """
    if output_format == "json":
        print(json.dumps([queue_to_dict(q) for q in queues], indent=2))
        return

    if not queues:
        print("No queues found")
        return

    print(f"{'Queue':<48} {'Created At':<30}")
    print_separator()
    for queue in queues:
        print(f"{queue.queue_name:<48} {queue.created_at.strftime('%Y-%m-%d %H:%M:%S'):<30}")


def print_messages(messages: Sequence[Message], output_format: str = "text") -> None:
    """Print messages returned by read or pop.

    Args:
        messages: Messages to display
        output_format: "text" for one block per message, "json" for a JSON array
    """
    if output_format == "json":
        print(json.dumps([message_to_dict(m) for m in messages], indent=2))
        return

    if not messages:
        print("No messages available")
        return

    for message in messages:
        print_separator("-")
        print(f"Message {message.msg_id} (read {message.read_ct} times)")
        print(f"Enqueued: {message.enqueued_at.isoformat()}")
        print(f"Visible:  {message.vt.isoformat()}")
        print(message.message)
    print_separator("-")


def print_ids(label: str, msg_ids: Sequence[int], output_format: str = "text") -> None:
    """Print message ids produced by send, archive or delete.

    Args:
        label: Verb describing what happened to the ids (e.g., "Sent")
        msg_ids: Message ids
        output_format: "text" or "json"
    """
    if output_format == "json":
        print(json.dumps({label.lower(): list(msg_ids)}))
        return
    print(f"{label} {len(msg_ids)} message(s): {', '.join(str(i) for i in msg_ids)}")
