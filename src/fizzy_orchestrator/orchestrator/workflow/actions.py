"""Card lifecycle actions.

`CardAction` is the closed set of state changes a caller can request for a single card;
`TargetStatus` is the smaller set the task engine accepts as a desired end state.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import assert_never

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient, Position
from fizzy_orchestrator.orchestrator.fizzy.errors import FizzyApiError, UserError
from fizzy_orchestrator.orchestrator.fizzy.models import Card
from fizzy_orchestrator.orchestrator.result import Result

logger = logging.getLogger(__name__)


class CardAction(str, Enum):
    CLOSE = "close"
    ARCHIVE = "archive"
    REOPEN = "reopen"
    ACTIVATE = "activate"
    TRIAGE = "triage"
    UNTRIAGE = "untriage"
    DEFER = "defer"


class TargetStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    NOT_NOW = "not_now"

    @property
    def card_status(self) -> str:
        """The `Card.status` value a card has once it reaches this target."""

        match self:
            case TargetStatus.OPEN:
                return "open"
            case TargetStatus.CLOSED:
                return "closed"
            case TargetStatus.NOT_NOW:
                return "deferred"
            case _:
                assert_never(self)


def levenshtein_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def closest_match(value: str, candidates: list[str]) -> str:
    lowered = value.lower()
    return min(candidates, key=lambda c: levenshtein_distance(lowered, c))


def parse_card_action(value: str | CardAction) -> CardAction:
    if isinstance(value, CardAction):
        return value
    try:
        return CardAction(value)
    except ValueError:
        suggestion = closest_match(value, [a.value for a in CardAction])
        raise UserError(f'Unknown action "{value}". Did you mean "{suggestion}"?') from None


async def apply_card_action(
    client: FizzyClient,
    account_slug: str,
    card_number: int,
    action: CardAction,
    *,
    column_id: str | None = None,
    position: Position | None = None,
) -> Result[Card | None, FizzyApiError]:
    """Issue the lifecycle call for `action`.

    Returns the card when the API echoes it back, `None` when the call succeeded without a
    body.
    """

    logger.info(
        "Applying card action",
        extra={"account_slug": account_slug, "card_number": card_number, "action": action.value},
    )

    match action:
        case CardAction.CLOSE | CardAction.ARCHIVE:
            return await client.close_card(account_slug, card_number)
        case CardAction.REOPEN | CardAction.ACTIVATE:
            return await client.reopen_card(account_slug, card_number)
        case CardAction.TRIAGE:
            if not column_id:
                raise UserError(
                    "triage action requires column_id. "
                    "Use fizzy_list_columns to find column IDs for the board."
                )
            return await client.triage_card(account_slug, card_number, column_id, position)
        case CardAction.UNTRIAGE:
            return await client.untriage_card(account_slug, card_number)
        case CardAction.DEFER:
            return await client.not_now_card(account_slug, card_number)
        case _:
            assert_never(action)


async def apply_target_status(
    client: FizzyClient, account_slug: str, card_number: int, target: TargetStatus
) -> Result[Card | None, FizzyApiError]:
    match target:
        case TargetStatus.CLOSED:
            return await apply_card_action(client, account_slug, card_number, CardAction.CLOSE)
        case TargetStatus.OPEN:
            return await apply_card_action(client, account_slug, card_number, CardAction.REOPEN)
        case TargetStatus.NOT_NOW:
            return await apply_card_action(client, account_slug, card_number, CardAction.DEFER)
        case _:
            assert_never(target)
