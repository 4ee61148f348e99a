"""Create-or-update a card, with its side effects, in one call.

Without `card_number` a card is created on `board_id`, then steps, tags, assignees and the
target column are applied best-effort. With `card_number` the card is fetched, then in
order: title/description, status, tag additions, tag removals, column move.

Only the create call and the initial fetch are fatal. Every other step records a failure
entry and the run carries on.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient, Position
from fizzy_orchestrator.orchestrator.fizzy.errors import ErrorContext, UserError, to_user_error
from fizzy_orchestrator.orchestrator.fizzy.markdown import markdown_to_html
from fizzy_orchestrator.orchestrator.fizzy.models import Card
from fizzy_orchestrator.orchestrator.result import Err
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver
from fizzy_orchestrator.orchestrator.workflow.actions import TargetStatus, apply_target_status

logger = logging.getLogger(__name__)

TaskMode = Literal["create", "update"]


class TaskArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_slug: str | None = None
    card_number: int | None = Field(default=None, gt=0)
    board_id: str | None = None
    title: str | None = None
    description: str | None = None
    status: TargetStatus | None = None
    column_id: str | None = None
    position: Position = "bottom"
    add_tags: list[str] = Field(default_factory=list)
    remove_tags: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)


class TaskCard(BaseModel):
    id: str
    number: int
    title: str
    url: str
    status: str


class OperationFailure(BaseModel):
    operation: str
    error: str


class TaskResult(BaseModel):
    mode: TaskMode
    card: TaskCard
    operations: dict[str, Any] = Field(default_factory=dict)
    failures: list[OperationFailure] = Field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class _Run:
    """Mutable state of one task run: the card snapshot plus what happened so far."""

    def __init__(self, card: Card) -> None:
        self.card = card
        self.operations: dict[str, Any] = {}
        self.failures: list[OperationFailure] = []

    def fail(self, operation: str, error: Exception) -> None:
        message = getattr(error, "message", str(error))
        logger.warning(
            "Task step failed",
            extra={"card_number": self.card.number, "operation": operation, "error": message},
        )
        self.failures.append(OperationFailure(operation=operation, error=message))

    def absorb(self, returned: Card | None, **fallback: Any) -> None:
        """Take the API's card when it sent one, else patch the snapshot locally."""

        if returned is not None:
            self.card = returned
        elif fallback:
            self.card = self.card.model_copy(update=fallback)

    def result(self, mode: TaskMode) -> TaskResult:
        return TaskResult(
            mode=mode,
            card=TaskCard(
                id=self.card.id,
                number=self.card.number,
                title=self.card.title,
                url=self.card.url,
                status=self.card.status,
            ),
            operations=self.operations,
            failures=self.failures,
        )


async def run_task(client: FizzyClient, resolver: AccountResolver, args: TaskArgs) -> TaskResult:
    if args.card_number is None:
        if not args.board_id:
            raise UserError("Create mode requires board_id.")
        if not args.title:
            raise UserError("Create mode requires title.")
        slug = await resolver.resolve(args.account_slug)
        return await _create(client, slug, args.board_id, args.title, args)

    slug = await resolver.resolve(args.account_slug)
    return await _update(client, slug, args.card_number, args)


async def _create(
    client: FizzyClient, slug: str, board_id: str, title: str, args: TaskArgs
) -> TaskResult:
    created = await client.create_card(slug, board_id, title=title, description=args.description)
    if isinstance(created, Err):
        raise to_user_error(
            created.error,
            ErrorContext(resource_type="Card", container=f'board "{board_id}"'),
        )

    run = _Run(created.value)
    number = run.card.number
    logger.info(
        "Card created", extra={"account_slug": slug, "card_number": number, "board_id": board_id}
    )

    if args.steps:
        steps_created = 0
        for content in args.steps:
            step = await client.create_step(slug, number, content=content)
            if isinstance(step, Err):
                run.fail(f"create_step:{content}", step.error)
            else:
                steps_created += 1
        run.operations["steps_created"] = steps_created

    tags_added: list[str] = []
    for title in args.add_tags:
        toggled = await client.toggle_tag(slug, number, title)
        if isinstance(toggled, Err):
            run.fail(f"add_tag:{title}", toggled.error)
        else:
            tags_added.append(title)
    if tags_added:
        run.operations["tags_added"] = tags_added

    assignees_added: list[str] = []
    for user_id in args.assignees:
        toggled = await client.toggle_assignee(slug, number, user_id)
        if isinstance(toggled, Err):
            run.fail(f"add_assignee:{user_id}", toggled.error)
        else:
            assignees_added.append(user_id)
    if assignees_added:
        run.operations["assignees_added"] = assignees_added

    if args.column_id:
        await _triage(client, slug, run, args.column_id, args.position)

    return run.result("create")


async def _update(client: FizzyClient, slug: str, number: int, args: TaskArgs) -> TaskResult:
    fetched = await client.get_card(slug, number)
    if isinstance(fetched, Err):
        raise to_user_error(
            fetched.error,
            ErrorContext(
                resource_type="Card", resource_id=f"#{number}", container=f'account "{slug}"'
            ),
        )
    run = _Run(fetched.value)

    if args.title is not None or args.description is not None:
        updated = await client.update_card(
            slug, number, title=args.title, description=args.description
        )
        if isinstance(updated, Err):
            run.fail("update_card", updated.error)
        else:
            # An empty answer still means the change was applied.
            edited: dict[str, Any] = {}
            if args.title is not None:
                edited["title"] = args.title
            if args.description is not None:
                edited["description_html"] = markdown_to_html(args.description)
            run.absorb(updated.value, **edited)
            if args.title is not None:
                run.operations["title_updated"] = True
            if args.description is not None:
                run.operations["description_updated"] = True

    if args.status is not None and run.card.status != args.status.card_status:
        changed = await apply_target_status(client, slug, number, args.status)
        if isinstance(changed, Err):
            run.fail(f"status:{args.status.value}", changed.error)
        else:
            run.absorb(changed.value, status=args.status.card_status)
            # The echoed card may lag behind the transition we just made.
            if run.card.status != args.status.card_status:
                run.absorb(None, status=args.status.card_status)
            run.operations["status_changed"] = args.status.value

    current_tags = set(run.card.tag_titles)

    tags_added: list[str] = []
    for title in args.add_tags:
        if title in current_tags:
            continue
        toggled = await client.toggle_tag(slug, number, title)
        if isinstance(toggled, Err):
            run.fail(f"add_tag:{title}", toggled.error)
        else:
            tags_added.append(title)
    if tags_added:
        run.operations["tags_added"] = tags_added

    tags_removed: list[str] = []
    for title in args.remove_tags:
        if title not in current_tags:
            continue
        toggled = await client.toggle_tag(slug, number, title)
        if isinstance(toggled, Err):
            run.fail(f"remove_tag:{title}", toggled.error)
        else:
            tags_removed.append(title)
    if tags_removed:
        run.operations["tags_removed"] = tags_removed

    if args.column_id and args.column_id != run.card.column_id:
        if run.card.column_id:
            untriaged = await client.untriage_card(slug, number)
            if isinstance(untriaged, Err):
                # Never triage after a failed untriage: one failure, card left where it was.
                run.fail("untriage", untriaged.error)
                return run.result("update")
            run.card = run.card.model_copy(update={"column_id": None})
        await _triage(client, slug, run, args.column_id, args.position)

    return run.result("update")


async def _triage(
    client: FizzyClient, slug: str, run: _Run, column_id: str, position: Position
) -> None:
    triaged = await client.triage_card(slug, run.card.number, column_id, position)
    if isinstance(triaged, Err):
        run.fail(f"triage:{column_id}", triaged.error)
        return
    run.card = run.card.model_copy(update={"column_id": column_id})
    run.operations["triaged_to"] = column_id
