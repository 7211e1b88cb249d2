"""Entry point for running the CLI as a module."""

import argparse
import asyncio
import sys

from .messagerie_cli import main


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per endpoint."""
    parser = argparse.ArgumentParser(
        description="Command-line client for the messagerie API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Server port (default: 8000)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    history = commands.add_parser("history", help="Recent messages of a user")
    history.add_argument("username")
    history.add_argument("--limit", type=int, default=None)

    conversation = commands.add_parser(
        "conversation", help="Messages exchanged between two users"
    )
    conversation.add_argument("user1")
    conversation.add_argument("user2")
    conversation.add_argument("--limit", type=int, default=None)

    conversations = commands.add_parser(
        "conversations", help="Conversation summaries of a user"
    )
    conversations.add_argument("username")

    send = commands.add_parser("send", help="Send a message")
    send.add_argument("sender")
    send.add_argument("recipient")
    send.add_argument("content")
    send.add_argument("--type", dest="message_type", default="text")

    return parser


def cli_entry() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli_entry()
