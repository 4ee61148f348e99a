"""Unit tests for bulk card closing."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import Mock

import pydantic
import pytest

from fizzy_orchestrator.orchestrator.fizzy.errors import FizzyApiError, UserError
from fizzy_orchestrator.orchestrator.fizzy.models import Card, CardFilters, Tag
from fizzy_orchestrator.orchestrator.fizzy.pagination import build_page
from fizzy_orchestrator.orchestrator.result import Err, Ok
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver
from fizzy_orchestrator.orchestrator.workflow.bulk import BulkCloseArgs, run_bulk_close

NOW = datetime(2025, 6, 30, tzinfo=UTC)


@pytest.mark.asyncio
async def test_requires_force_before_anything_else(
    mock_client: Mock, resolver: AccountResolver
) -> None:
    with pytest.raises(UserError, match="requires force: true"):
        await run_bulk_close(mock_client, resolver, BulkCloseArgs(card_numbers=[1, 2]))

    assert mock_client.mock_calls == []


@pytest.mark.parametrize("bad", [0, -3])
def test_card_numbers_must_be_positive(bad: int) -> None:
    with pytest.raises(pydantic.ValidationError, match="card_numbers.1"):
        BulkCloseArgs(card_numbers=[42, bad, 44], force=True)


@pytest.mark.asyncio
async def test_requires_ids_or_a_filter(mock_client: Mock, resolver: AccountResolver) -> None:
    with pytest.raises(UserError, match="at least one filter"):
        await run_bulk_close(mock_client, resolver, BulkCloseArgs(force=True))

    # Validation happens before account resolution.
    mock_client.whoami.assert_not_awaited()


@pytest.mark.asyncio
async def test_explicit_ids_close_sequentially_and_collect_failures(
    mock_client: Mock, resolver: AccountResolver
) -> None:
    mock_client.close_card.side_effect = [
        Ok(None),
        Err(FizzyApiError(500, "API error: 500")),
        Ok(None),
    ]

    result = await run_bulk_close(
        mock_client,
        resolver,
        BulkCloseArgs(account_slug="acme", card_numbers=[42, 43, 44], force=True),
    )

    assert result.closed == [42, 44]
    assert [(f.card_number, f.error) for f in result.failed] == [(43, "API error: 500")]
    assert result.total == 3
    assert result.success_count == 2
    assert [c.args for c in mock_client.close_card.await_args_list] == [
        ("acme", 42),
        ("acme", 43),
        ("acme", 44),
    ]


@pytest.mark.asyncio
async def test_unknown_tag_fails_before_listing(
    mock_client: Mock, resolver: AccountResolver
) -> None:
    mock_client.list_tags.return_value = Ok(build_page([Tag(id="t1", title="bug")], None))

    with pytest.raises(UserError, match='Tag "feature" not found'):
        await run_bulk_close(
            mock_client,
            resolver,
            BulkCloseArgs(account_slug="acme", tag_title="feature", force=True),
        )

    mock_client.list_cards.assert_not_awaited()
    mock_client.close_card.assert_not_awaited()


@pytest.mark.asyncio
async def test_filters_combine_and_walk_every_page(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    tag_page_2 = "https://fizzy.test/acme/tags?page=2"
    mock_client.list_tags.side_effect = [
        Ok(build_page([Tag(id="t1", title="bug")], tag_page_2)),
        Ok(build_page([Tag(id="t2", title="Stale")], None)),
    ]
    card_page_2 = "https://fizzy.test/acme/cards?page=2"
    mock_client.list_cards.side_effect = [
        Ok(
            build_page(
                [
                    make_card(number=1, updated_at="2025-01-01T00:00:00Z"),
                    make_card(number=2, updated_at="2025-06-29T00:00:00Z"),
                ],
                card_page_2,
            )
        ),
        Ok(build_page([make_card(number=3, updated_at="2025-02-01T00:00:00Z")], None)),
    ]
    mock_client.close_card.return_value = Ok(None)

    result = await run_bulk_close(
        mock_client,
        resolver,
        BulkCloseArgs(
            account_slug="acme", column_id="col-1", tag_title="stale", older_than_days=30, force=True
        ),
        now=NOW,
    )

    assert result.closed == [1, 3]
    assert result.total == 2
    first_listing = mock_client.list_cards.await_args_list[0]
    assert first_listing.args == ("acme", CardFilters(column_ids=["col-1"], tag_ids=["t2"]))
    assert first_listing.kwargs == {"cursor": None}
    assert mock_client.list_cards.await_args_list[1].kwargs["cursor"] is not None


@pytest.mark.asyncio
async def test_no_matching_cards_closes_nothing(
    mock_client: Mock, resolver: AccountResolver
) -> None:
    mock_client.list_cards.return_value = Ok(build_page([], None))

    result = await run_bulk_close(
        mock_client, resolver, BulkCloseArgs(account_slug="acme", column_id="col-1", force=True)
    )

    assert result.model_dump() == {"closed": [], "failed": [], "total": 0, "success_count": 0}
    mock_client.close_card.assert_not_awaited()


@pytest.mark.asyncio
async def test_listing_failure_is_fatal(mock_client: Mock, resolver: AccountResolver) -> None:
    mock_client.list_cards.return_value = Err(FizzyApiError(500, "API error: 500"))

    with pytest.raises(UserError, match=r"\[ERROR\] API error: 500"):
        await run_bulk_close(
            mock_client, resolver, BulkCloseArgs(account_slug="acme", older_than_days=7, force=True)
        )
