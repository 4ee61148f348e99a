"""Unit tests for the create-or-update task engine."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, Mock

import pytest

from fizzy_orchestrator.orchestrator.fizzy.errors import (
    FizzyApiError,
    NotFoundError,
    UserError,
    ValidationError,
)
from fizzy_orchestrator.orchestrator.fizzy.models import Card, Step
from fizzy_orchestrator.orchestrator.result import Err, Ok
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver
from fizzy_orchestrator.orchestrator.workflow.task import TaskArgs, run_task


def _call_names(client: Mock) -> list[str]:
    return [name for name, _args, _kwargs in client.mock_calls]


# -- create ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_requires_board_and_title(mock_client: Mock, resolver: AccountResolver) -> None:
    with pytest.raises(UserError, match="requires board_id"):
        await run_task(mock_client, resolver, TaskArgs(account_slug="acme", title="x"))
    with pytest.raises(UserError, match="requires title"):
        await run_task(mock_client, resolver, TaskArgs(account_slug="acme", board_id="b1"))

    assert mock_client.mock_calls == []


@pytest.mark.asyncio
async def test_create_failure_is_fatal(mock_client: Mock, resolver: AccountResolver) -> None:
    mock_client.create_card.return_value = Err(NotFoundError())

    with pytest.raises(UserError, match=r'\[NOT_FOUND\] Card: Not found in board "b1"'):
        await run_task(
            mock_client, resolver, TaskArgs(account_slug="acme", board_id="b1", title="New")
        )


@pytest.mark.asyncio
async def test_create_runs_secondary_steps_best_effort(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.create_card.return_value = Ok(make_card(number=7, title="New"))
    mock_client.create_step.side_effect = [
        Ok(Step(id="s1", content="draft")),
        Err(ValidationError({"content": ["is too long"]})),
    ]
    mock_client.toggle_tag.side_effect = [Err(FizzyApiError(500, "API error: 500")), Ok(None)]
    mock_client.toggle_assignee.return_value = Ok(None)
    mock_client.triage_card.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(
            account_slug="/acme",
            board_id="b1",
            title="New",
            steps=["draft", "x" * 300],
            add_tags=["bug", "ui"],
            assignees=["u1"],
            column_id="col-1",
        ),
    )

    assert result.mode == "create"
    assert result.card.number == 7
    assert result.operations == {
        "steps_created": 1,
        "tags_added": ["ui"],
        "assignees_added": ["u1"],
        "triaged_to": "col-1",
    }
    assert [f.operation for f in result.failures] == [f"create_step:{'x' * 300}", "add_tag:bug"]
    assert _call_names(mock_client) == [
        "create_card",
        "create_step",
        "create_step",
        "toggle_tag",
        "toggle_tag",
        "toggle_assignee",
        "triage_card",
    ]
    mock_client.create_card.assert_awaited_once_with("acme", "b1", title="New", description=None)
    mock_client.triage_card.assert_awaited_once_with("acme", 7, "col-1", "bottom")


# -- update ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_fetch_failure_is_fatal(mock_client: Mock, resolver: AccountResolver) -> None:
    mock_client.get_card.return_value = Err(NotFoundError())

    with pytest.raises(UserError) as excinfo:
        await run_task(mock_client, resolver, TaskArgs(account_slug="acme", card_number=99))

    assert str(excinfo.value).startswith('[NOT_FOUND] Card #99: Not found in account "acme"')
    assert _call_names(mock_client) == ["get_card"]


@pytest.mark.asyncio
async def test_update_title_and_status(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card())
    mock_client.update_card.return_value = Ok(make_card(title="Renamed"))
    mock_client.close_card.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(account_slug="acme", card_number=42, title="Renamed", status="closed"),
    )

    assert result.mode == "update"
    assert result.card.title == "Renamed"
    assert result.card.status == "closed"
    assert result.operations == {"title_updated": True, "status_changed": "closed"}
    assert result.failures == []


@pytest.mark.asyncio
async def test_update_without_echoed_card_patches_snapshot(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(title="Old"))
    mock_client.update_card.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(account_slug="acme", card_number=42, title="New", description="Some *detail*"),
    )

    assert result.card.title == "New"
    mock_client.update_card.assert_awaited_once_with(
        "acme", 42, title="New", description="Some *detail*"
    )
    assert result.failures == []
    assert result.operations == {"title_updated": True, "description_updated": True}


@pytest.mark.asyncio
async def test_status_already_reached_makes_no_call(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(status="deferred"))

    result = await run_task(
        mock_client, resolver, TaskArgs(account_slug="acme", card_number=42, status="not_now")
    )

    assert _call_names(mock_client) == ["get_card"]
    assert result.operations == {}
    assert result.failures == []


@pytest.mark.asyncio
async def test_failed_field_update_is_recorded_and_run_continues(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card())
    mock_client.update_card.return_value = Err(ValidationError({"title": ["can't be blank"]}))
    mock_client.not_now_card.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(account_slug="acme", card_number=42, title="", status="not_now"),
    )

    assert [f.operation for f in result.failures] == ["update_card"]
    assert result.operations == {"status_changed": "not_now"}
    assert result.card.status == "deferred"


@pytest.mark.asyncio
async def test_status_failure_is_recorded(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(status="closed"))
    mock_client.reopen_card.return_value = Err(FizzyApiError(500, "API error: 500"))

    result = await run_task(
        mock_client, resolver, TaskArgs(account_slug="acme", card_number=42, status="open")
    )

    assert [(f.operation, f.error) for f in result.failures] == [("status:open", "API error: 500")]
    assert result.card.status == "closed"
    assert "status_changed" not in result.operations


@pytest.mark.asyncio
async def test_tag_changes_are_prechecked_against_the_card(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(tags=["bug", "old"]))
    mock_client.toggle_tag.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(
            account_slug="acme",
            card_number=42,
            add_tags=["bug", "ui"],
            remove_tags=["old", "missing"],
        ),
    )

    assert result.operations == {"tags_added": ["ui"], "tags_removed": ["old"]}
    assert [c.args for c in mock_client.toggle_tag.await_args_list] == [
        ("acme", 42, "ui"),
        ("acme", 42, "old"),
    ]


@pytest.mark.asyncio
async def test_move_between_columns_untriages_then_triages(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(column_id="col-A"))
    mock_client.untriage_card.return_value = Ok(None)
    mock_client.triage_card.return_value = Ok(None)

    result = await run_task(
        mock_client,
        resolver,
        TaskArgs(account_slug="acme", card_number=42, column_id="col-B", position="top"),
    )

    assert _call_names(mock_client) == ["get_card", "untriage_card", "triage_card"]
    mock_client.triage_card.assert_awaited_once_with("acme", 42, "col-B", "top")
    assert result.operations == {"triaged_to": "col-B"}


@pytest.mark.asyncio
async def test_move_to_current_column_makes_no_calls(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(column_id="col-A"))

    result = await run_task(
        mock_client, resolver, TaskArgs(account_slug="acme", card_number=42, column_id="col-A")
    )

    assert _call_names(mock_client) == ["get_card"]
    assert result.operations == {}


@pytest.mark.asyncio
async def test_card_in_inbox_is_triaged_directly(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(column_id=None))
    mock_client.triage_card.return_value = Ok(None)

    await run_task(
        mock_client, resolver, TaskArgs(account_slug="acme", card_number=42, column_id="col-B")
    )

    assert _call_names(mock_client) == ["get_card", "triage_card"]


@pytest.mark.asyncio
async def test_failed_untriage_skips_triage(
    mock_client: Mock, resolver: AccountResolver, make_card: Callable[..., Card]
) -> None:
    mock_client.get_card.return_value = Ok(make_card(column_id="col-A"))
    mock_client.untriage_card.return_value = Err(FizzyApiError(500, "API error: 500"))

    result = await run_task(
        mock_client, resolver, TaskArgs(account_slug="acme", card_number=42, column_id="col-B")
    )

    mock_client.triage_card.assert_not_awaited()
    assert "triaged_to" not in result.operations
    assert [f.operation for f in result.failures] == ["untriage"]


@pytest.mark.asyncio
async def test_update_uses_resolved_account(
    mock_client: Mock, make_card: Callable[..., Card]
) -> None:
    resolver = Mock(spec=AccountResolver)
    resolver.resolve = AsyncMock(return_value="from-session")
    mock_client.get_card.return_value = Ok(make_card())

    await run_task(mock_client, resolver, TaskArgs(card_number=42))

    mock_client.get_card.assert_awaited_once_with("from-session", 42)
