"""Dispatch of CLI subcommands to the API client."""

import argparse
import logging
import sys
from typing import TextIO

import httpx

from .client import APIError, MessagesAPIClient
from .config import CLIConfig
from .formatter import ResponseFormatter

logger = logging.getLogger(__name__)


async def run_command(
    args: argparse.Namespace,
    client: MessagesAPIClient,
    formatter: ResponseFormatter,
) -> int:
    """Execute one subcommand and return the process exit code."""
    try:
        if args.command == "history":
            formatter.history(await client.history(args.username, args.limit))
        elif args.command == "conversation":
            formatter.conversation(
                await client.conversation(args.user1, args.user2, args.limit)
            )
        elif args.command == "conversations":
            formatter.conversations(await client.conversations(args.username))
        elif args.command == "send":
            formatter.sent(
                await client.send(
                    args.sender, args.recipient, args.content, args.message_type
                )
            )
        else:
            formatter.error(f"Unknown command: {args.command}")
            return 2
    except APIError as e:
        formatter.error(str(e))
        return 1
    except httpx.HTTPError as e:
        logger.debug("Transport error", exc_info=True)
        formatter.error(f"Cannot reach {client.config.base_url}: {e}")
        return 1
    return 0


async def main(
    args: argparse.Namespace,
    output_stream: TextIO = sys.stdout,
) -> int:
    """Main entry point for the CLI."""
    log_level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    config = CLIConfig(host=args.host, port=args.port)
    client = MessagesAPIClient(config)
    try:
        return await run_command(args, client, ResponseFormatter(output_stream))
    finally:
        await client.close()
