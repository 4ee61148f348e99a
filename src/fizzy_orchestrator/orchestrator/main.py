"""CLI entrypoint for the Fizzy orchestrator.

Every subcommand goes through the same tool surface as the HTTP server and prints the tool's
JSON result on stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from pydantic import ValidationError

from fizzy_orchestrator import __version__
from fizzy_orchestrator.orchestrator.config import FizzySettings
from fizzy_orchestrator.orchestrator.fizzy.errors import UserError
from fizzy_orchestrator.orchestrator.logging import configure_logging
from fizzy_orchestrator.orchestrator.tools import TOOL_REGISTRY, FizzyTools

logger = logging.getLogger(__name__)


def _parse_list(value: str | None) -> list[str]:
    if value is None:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def _parse_int_list(value: str | None) -> list[int]:
    return [int(p) for p in _parse_list(value)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fizzy-orchestrator",
        description="Orchestrate Fizzy cards: account resolution, pagination and composite operations",
    )
    parser.add_argument("--version", action="version", version=f"fizzy-orchestrator {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("tools", help="List available tool names")

    call = subparsers.add_parser("call", help="Call a tool with a JSON argument record")
    call.add_argument("tool", help="Tool name, e.g. 'fizzy_list_boards'")
    call.add_argument(
        "--args",
        dest="arguments",
        default="{}",
        help="JSON object with the tool arguments",
    )

    subparsers.add_parser("whoami", help="Show the accounts reachable with the configured token")

    task = subparsers.add_parser("task", help="Create a card, or update one with --card-number")
    task.add_argument("--account", dest="account_slug", default=None, help="Account slug")
    task.add_argument("--card-number", type=int, default=None, help="Card to update")
    task.add_argument("--board-id", default=None, help="Board for a new card")
    task.add_argument("--title", default=None)
    task.add_argument("--description", default=None)
    task.add_argument("--status", choices=["open", "closed", "not_now"], default=None)
    task.add_argument("--column-id", default=None, help="Column to move the card into")
    task.add_argument("--position", choices=["top", "bottom"], default="bottom")
    task.add_argument("--add-tags", default=None, help="Comma-separated tag titles to add")
    task.add_argument("--remove-tags", default=None, help="Comma-separated tag titles to remove")
    task.add_argument("--steps", default=None, help="Comma-separated steps (create mode)")
    task.add_argument("--assignees", default=None, help="Comma-separated user IDs (create mode)")

    bulk = subparsers.add_parser("bulk-close", help="Close cards by number or by filter")
    bulk.add_argument("--account", dest="account_slug", default=None, help="Account slug")
    bulk.add_argument("--card-numbers", default=None, help="Comma-separated card numbers")
    bulk.add_argument("--column-id", default=None)
    bulk.add_argument("--tag-title", default=None)
    bulk.add_argument("--older-than-days", type=float, default=None)
    bulk.add_argument("--force", action="store_true", help="Confirm the bulk close")

    return parser


def _task_arguments(args: argparse.Namespace) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "account_slug": args.account_slug,
        "card_number": args.card_number,
        "board_id": args.board_id,
        "title": args.title,
        "description": args.description,
        "status": args.status,
        "column_id": args.column_id,
        "position": args.position,
        "add_tags": _parse_list(args.add_tags),
        "remove_tags": _parse_list(args.remove_tags),
        "steps": _parse_list(args.steps),
        "assignees": _parse_list(args.assignees),
    }
    return {k: v for k, v in raw.items() if v is not None}


def _bulk_arguments(args: argparse.Namespace) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "account_slug": args.account_slug,
        "card_numbers": _parse_int_list(args.card_numbers),
        "column_id": args.column_id,
        "tag_title": args.tag_title,
        "older_than_days": args.older_than_days,
        "force": args.force,
    }
    return {k: v for k, v in raw.items() if v is not None}


def _resolve_call(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    if args.command == "call":
        try:
            arguments = json.loads(args.arguments)
        except json.JSONDecodeError as e:
            raise UserError(f"--args is not valid JSON: {e}") from e
        if not isinstance(arguments, dict):
            raise UserError("--args must be a JSON object")
        return args.tool, arguments
    if args.command == "whoami":
        return "fizzy_whoami", {}
    if args.command == "task":
        return "fizzy_task", _task_arguments(args)
    if args.command == "bulk-close":
        return "fizzy_bulk_close_cards", _bulk_arguments(args)
    raise UserError(f"Unknown command: {args.command}")


async def _run_tool(settings: FizzySettings, name: str, arguments: dict[str, Any]) -> Any:
    tools = FizzyTools.from_settings(settings)
    try:
        return await tools.call_tool(name, arguments)
    finally:
        await tools.aclose()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "tools":
        for name in TOOL_REGISTRY:
            print(name)
        return 0

    try:
        settings = FizzySettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        name, arguments = _resolve_call(args)
        result = asyncio.run(_run_tool(settings, name, arguments))
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0

    except UserError as e:
        logger.warning(str(e), extra={"command": args.command})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
