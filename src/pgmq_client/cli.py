"""Command-line interface for pgmq queues.

This module provides a CLI that maps one subcommand onto each client
operation: creating, dropping and listing queues, sending, reading, popping,
archiving, deleting and purging messages.
"""

import argparse
import json
import sys
from collections.abc import Callable

from pgmq_client.client import PgmqClient
from pgmq_client.config import Config, load_config
from pgmq_client.connection import DirectConnectionProvider
from pgmq_client.errors import PgmqError
from pgmq_client.logging_setup import configure_logging
from pgmq_client.output import print_ids, print_messages, print_queues
from pgmq_client.serialization import JsonSerializationProvider


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured argument parser with all subcommands
    """
    parser = argparse.ArgumentParser(
        prog="pgmq-client",
        description="Manage pgmq queues and messages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file (.env format)",
        metavar="FILE",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser_ = subparsers.add_parser("create", help="Create a queue")
    create_parser_.add_argument("queue", type=str, help="Queue name")

    drop_parser = subparsers.add_parser("drop", help="Drop a queue and its archive")
    drop_parser.add_argument("queue", type=str, help="Queue name")

    subparsers.add_parser("list", help="List queues")

    send_parser = subparsers.add_parser("send", help="Send one or more JSON messages")
    send_parser.add_argument("queue", type=str, help="Queue name")
    send_parser.add_argument("messages", type=str, nargs="+", help="Message bodies as JSON")
    send_parser.add_argument(
        "--delay",
        type=int,
        default=0,
        help="Seconds before the messages become visible (default: 0)",
        metavar="SECONDS",
    )

    read_parser = subparsers.add_parser("read", help="Read visible messages")
    read_parser.add_argument("queue", type=str, help="Queue name")
    read_parser.add_argument(
        "--quantity",
        type=int,
        default=1,
        help="Maximum number of messages to read (default: 1)",
        metavar="N",
    )
    read_parser.add_argument(
        "--vt",
        type=int,
        help="Visibility timeout in seconds (default: from config)",
        metavar="SECONDS",
    )

    pop_parser = subparsers.add_parser("pop", help="Read and delete one message")
    pop_parser.add_argument("queue", type=str, help="Queue name")

    archive_parser = subparsers.add_parser("archive", help="Archive messages by id")
    archive_parser.add_argument("queue", type=str, help="Queue name")
    archive_parser.add_argument("msg_ids", type=int, nargs="+", help="Message ids")

    delete_parser = subparsers.add_parser("delete", help="Delete messages by id")
    delete_parser.add_argument("queue", type=str, help="Queue name")
    delete_parser.add_argument("msg_ids", type=int, nargs="+", help="Message ids")

    purge_parser = subparsers.add_parser("purge", help="Delete all messages in a queue")
    purge_parser.add_argument("queue", type=str, help="Queue name")

    return parser


def cmd_create(args: argparse.Namespace, client: PgmqClient) -> int:
    client.create_queue(args.queue)
    print(f"Created queue: {args.queue}")
    return 0


def cmd_drop(args: argparse.Namespace, client: PgmqClient) -> int:
    client.drop_queue(args.queue)
    print(f"Dropped queue: {args.queue}")
    return 0


def cmd_list(args: argparse.Namespace, client: PgmqClient) -> int:
    print_queues(client.list_queues(), args.format)
    return 0


def cmd_send(args: argparse.Namespace, client: PgmqClient) -> int:
    """Handle the 'send' command - send JSON messages in one batch.

    Args:
        args: Parsed command-line arguments
        client: Queue client

    Returns:
        Exit code (0 for success, 1 if a message is not valid JSON)
    """
    try:
        messages = [json.loads(raw) for raw in args.messages]
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON message: {e}", file=sys.stderr)
        return 1

    msg_ids = client.send_batch(args.queue, messages, delay=args.delay)
    print_ids("Sent", msg_ids, args.format)
    return 0


def cmd_read(args: argparse.Namespace, client: PgmqClient) -> int:
    messages = client.read_batch(args.queue, args.quantity, visibility_timeout=args.vt)
    print_messages(messages, args.format)
    return 0


def cmd_pop(args: argparse.Namespace, client: PgmqClient) -> int:
    message = client.pop(args.queue)
    print_messages([message] if message is not None else [], args.format)
    return 0


def cmd_archive(args: argparse.Namespace, client: PgmqClient) -> int:
    print_ids("Archived", client.archive_batch(args.queue, args.msg_ids), args.format)
    return 0


def cmd_delete(args: argparse.Namespace, client: PgmqClient) -> int:
    print_ids("Deleted", client.delete_batch(args.queue, args.msg_ids), args.format)
    return 0


def cmd_purge(args: argparse.Namespace, client: PgmqClient) -> int:
    purged = client.purge(args.queue)
    if args.format == "json":
        print(json.dumps({"purged": purged}))
    else:
        print(f"Purged {purged} message(s) from {args.queue}")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, PgmqClient], int]] = {
    "create": cmd_create,
    "drop": cmd_drop,
    "list": cmd_list,
    "send": cmd_send,
    "read": cmd_read,
    "pop": cmd_pop,
    "archive": cmd_archive,
    "delete": cmd_delete,
    "purge": cmd_purge,
}


def create_client(config: Config) -> PgmqClient:
    """Build a client that opens one connection per command.

    Args:
        config: System configuration

    Returns:
        PgmqClient using a direct connection provider and the JSON serializer
    """
    return PgmqClient(
        DirectConnectionProvider(config.database),
        JsonSerializationProvider(),
        config.pgmq,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    try:
        return COMMANDS[args.command](args, create_client(config))
    except (PgmqError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
