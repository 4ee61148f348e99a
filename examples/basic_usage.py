#!/usr/bin/env python3
"""Programmatic task example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* create a card with steps and tags through `fizzy_task`
* print the task result (operations performed and any non-fatal failures)
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Sequence

from fizzy_orchestrator.orchestrator.config import FizzySettings
from fizzy_orchestrator.orchestrator.fizzy.errors import UserError
from fizzy_orchestrator.orchestrator.logging import configure_logging
from fizzy_orchestrator.orchestrator.tools import FizzyTools


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a Fizzy card (programmatic example).")
    parser.add_argument("--board-id", required=True, help="Board to create the card on")
    parser.add_argument("--title", required=True, help="Card title")
    parser.add_argument("--account", default=None, help="Account slug (optional)")
    parser.add_argument("--steps", default="", help='Comma-separated steps, e.g. "draft,review"')
    parser.add_argument("--tags", default="", help='Comma-separated tag titles, e.g. "bug"')
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> dict[str, object]:
    tools = FizzyTools.from_settings(FizzySettings())
    try:
        return await tools.call_tool(
            "fizzy_task",
            {
                "account_slug": args.account,
                "board_id": args.board_id,
                "title": args.title,
                "steps": [s.strip() for s in args.steps.split(",") if s.strip()],
                "add_tags": [t.strip() for t in args.tags.split(",") if t.strip()],
            },
        )
    finally:
        await tools.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(FizzySettings().log_level)
    try:
        result = asyncio.run(_run(args))
    except UserError as e:
        print(e)
        return 3
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
