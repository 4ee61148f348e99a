"""Close many cards at once, by explicit numbers or by filter."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient
from fizzy_orchestrator.orchestrator.fizzy.errors import (
    ErrorContext,
    FizzyApiError,
    UserError,
    to_user_error,
)
from fizzy_orchestrator.orchestrator.fizzy.models import CardFilters
from fizzy_orchestrator.orchestrator.fizzy.pagination import PaginatedResult
from fizzy_orchestrator.orchestrator.result import Err, Ok, Result
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BulkCloseArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_slug: str | None = None
    card_numbers: list[PositiveInt] = Field(default_factory=list)
    column_id: str | None = None
    tag_title: str | None = None
    older_than_days: float | None = Field(default=None, ge=0)
    force: bool = False

    @property
    def has_filters(self) -> bool:
        return bool(self.column_id or self.tag_title or self.older_than_days is not None)


class BulkCloseFailure(BaseModel):
    card_number: int
    error: str


class BulkCloseResult(BaseModel):
    closed: list[int] = Field(default_factory=list)
    failed: list[BulkCloseFailure] = Field(default_factory=list)
    total: int = 0
    success_count: int = 0

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def validate_bulk_close(args: BulkCloseArgs) -> None:
    """Reject a bulk close that isn't confirmed or has nothing to select on."""

    if args.force is not True:
        raise UserError("Bulk close requires force: true")
    if not args.card_numbers and not args.has_filters:
        raise UserError(
            "Must provide card_numbers or at least one filter "
            "(column_id, tag_title, older_than_days)"
        )


async def collect_pages(
    fetch: Callable[[str | None], Awaitable[Result[PaginatedResult[T], FizzyApiError]]],
) -> Result[list[T], FizzyApiError]:
    """Follow cursors until the listing is exhausted (or a cursor repeats)."""

    items: list[T] = []
    cursor: str | None = None
    seen: set[str] = set()
    while True:
        page = await fetch(cursor)
        if isinstance(page, Err):
            return page
        items.extend(page.value.items)
        next_cursor = page.value.pagination.next_cursor
        if not page.value.pagination.has_more or next_cursor is None or next_cursor in seen:
            return Ok(items)
        seen.add(next_cursor)
        cursor = next_cursor


async def resolve_tag_id(client: FizzyClient, slug: str, title: str) -> str:
    tags = await collect_pages(lambda cursor: client.list_tags(slug, cursor=cursor))
    if isinstance(tags, Err):
        raise to_user_error(tags.error, ErrorContext(resource_type="Tag", container=f'account "{slug}"'))
    wanted = title.casefold()
    for tag in tags.value:
        if tag.title.casefold() == wanted:
            return tag.id
    raise UserError(f'Tag "{title}" not found')


async def _select_by_filter(
    client: FizzyClient, slug: str, args: BulkCloseArgs, now: datetime
) -> list[int]:
    filters = CardFilters()
    if args.column_id:
        filters.column_ids = [args.column_id]
    if args.tag_title:
        filters.tag_ids = [await resolve_tag_id(client, slug, args.tag_title)]

    listed = await collect_pages(lambda cursor: client.list_cards(slug, filters, cursor=cursor))
    if isinstance(listed, Err):
        raise to_user_error(listed.error, ErrorContext(resource_type="Card", container=f'account "{slug}"'))

    # The default listing is open cards only; closed ones slipping through are skipped.
    cards = [c for c in listed.value if c.status != "closed" and not c.closed]
    if args.older_than_days is not None:
        cutoff = now - timedelta(days=args.older_than_days)
        cards = [c for c in cards if c.updated_before(cutoff)]
    return [c.number for c in cards]


async def run_bulk_close(
    client: FizzyClient,
    resolver: AccountResolver,
    args: BulkCloseArgs,
    *,
    now: datetime | None = None,
) -> BulkCloseResult:
    validate_bulk_close(args)
    slug = await resolver.resolve(args.account_slug)

    if args.card_numbers:
        targets = list(args.card_numbers)
    else:
        targets = await _select_by_filter(client, slug, args, now or datetime.now(tz=UTC))

    result = BulkCloseResult(total=len(targets))
    for number in targets:
        closed = await client.close_card(slug, number)
        if isinstance(closed, Err):
            logger.warning(
                "Bulk close failed for card",
                extra={"account_slug": slug, "card_number": number, "error": closed.error.message},
            )
            result.failed.append(BulkCloseFailure(card_number=number, error=closed.error.message))
        else:
            result.closed.append(number)
    result.success_count = len(result.closed)

    logger.info(
        "Bulk close finished",
        extra={"account_slug": slug, "total": result.total, "closed": result.success_count},
    )
    return result
