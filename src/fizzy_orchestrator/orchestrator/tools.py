"""Caller-facing tool surface.

Every tool takes one flat argument record (validated with its pydantic model) and returns a
JSON-serialisable value, or raises :class:`UserError` with a message meant for the caller.
The CLI and the HTTP server both dispatch through :meth:`FizzyTools.call_tool`.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from fizzy_orchestrator.orchestrator.config import FizzySettings, normalize_slug
from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient, Position
from fizzy_orchestrator.orchestrator.fizzy.errors import (
    ErrorContext,
    FizzyApiError,
    UserError,
    invalid_cursor_error,
    to_user_error,
)
from fizzy_orchestrator.orchestrator.fizzy.markdown import html_to_markdown
from fizzy_orchestrator.orchestrator.fizzy.models import (
    Card,
    CardFilters,
    Comment,
    IndexedBy,
    SortedBy,
)
from fizzy_orchestrator.orchestrator.fizzy.pagination import cursor_target
from fizzy_orchestrator.orchestrator.fizzy.upload import MAX_FILE_SIZE, attach_file
from fizzy_orchestrator.orchestrator.result import Err, Result
from fizzy_orchestrator.orchestrator.state.account_resolver import AccountResolver
from fizzy_orchestrator.orchestrator.state.session import Session, SessionAccount, SessionStore
from fizzy_orchestrator.orchestrator.workflow.actions import (
    apply_card_action,
    closest_match,
    parse_card_action,
)
from fizzy_orchestrator.orchestrator.workflow.bulk import BulkCloseArgs, run_bulk_close
from fizzy_orchestrator.orchestrator.workflow.task import TaskArgs, run_task

logger = logging.getLogger(__name__)

T = TypeVar("T")

ToolHandler = Callable[["FizzyTools", Any], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: ToolHandler


TOOL_REGISTRY: dict[str, ToolSpec] = {}


class UnknownToolError(UserError):
    def __init__(self, name: str) -> None:
        message = f'Unknown tool "{name}".'
        if TOOL_REGISTRY:
            message += f' Did you mean "{closest_match(name, sorted(TOOL_REGISTRY))}"?'
        super().__init__(message)
        self.name = name


def tool(name: str, args_model: type[BaseModel]) -> Callable[[ToolHandler], ToolHandler]:
    def decorator(fn: ToolHandler) -> ToolHandler:
        TOOL_REGISTRY[name] = ToolSpec(
            name=name,
            description=inspect.cleandoc(fn.__doc__ or ""),
            args_model=args_model,
            handler=fn,
        )
        return fn

    return decorator


# ----------------------------------------------------------------------
# Argument records


class _Args(BaseModel):
    model_config = ConfigDict(extra="forbid")


class AccountScopedArgs(_Args):
    account_slug: str | None = None


class CursorArgs(AccountScopedArgs):
    cursor: str | None = None


class NoArgs(_Args):
    pass


class AccountArgs(_Args):
    action: Literal["get", "set", "clear"]
    account_slug: str | None = None


class BoardArgs(AccountScopedArgs):
    board_id: str


class CreateBoardArgs(AccountScopedArgs):
    name: str = Field(min_length=1)
    description: str | None = None


class UpdateBoardArgs(BoardArgs):
    name: str | None = None
    description: str | None = None


class ListCardsArgs(CursorArgs):
    board_id: str | None = None
    column_id: str | None = None
    tag_ids: list[str] = Field(default_factory=list)
    assignee_ids: list[str] = Field(default_factory=list)
    indexed_by: IndexedBy | None = None
    sorted_by: SortedBy | None = None
    terms: list[str] = Field(default_factory=list)


class CardArgs(AccountScopedArgs):
    card_number: int = Field(gt=0)


class CreateCardArgs(AccountScopedArgs):
    board_id: str
    title: str = Field(min_length=1)
    description: str | None = None


class UpdateCardArgs(CardArgs):
    title: str | None = None
    description: str | None = None


class DeleteCardArgs(CardArgs):
    force: bool = False


class ChangeCardStateArgs(CardArgs):
    action: str
    column_id: str | None = None
    position: Position | None = None


class ToggleCardAttributeArgs(CardArgs):
    attribute: Literal["tag", "assignee"]
    operation: Literal["add", "remove"]
    tag_title: str | None = None
    user_id: str | None = None


class ListColumnsArgs(CursorArgs):
    board_id: str


class ColumnArgs(BoardArgs):
    column_id: str


class CreateColumnArgs(BoardArgs):
    name: str = Field(min_length=1)
    color: str | None = None


class UpdateColumnArgs(ColumnArgs):
    name: str | None = None
    color: str | None = None


class CardCursorArgs(CardArgs):
    cursor: str | None = None


class CreateStepsArgs(CardArgs):
    steps: list[str] = Field(min_length=1)


class StepArgs(CardArgs):
    step_id: str


class UpdateStepArgs(StepArgs):
    content: str | None = None
    completed: bool | None = None


class CreateCommentArgs(CardArgs):
    body: str = Field(min_length=1)


class UpdateCommentArgs(CardArgs):
    comment_id: str
    body: str = Field(min_length=1)


class DeleteCommentArgs(CardArgs):
    comment_id: str
    force: bool = False


class AttachFileArgs(AccountScopedArgs):
    file_path: str = Field(min_length=1)
    content_type: str = Field(min_length=1)


# ----------------------------------------------------------------------


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json")


def _card_json(card: Card) -> dict[str, Any]:
    return {**_dump(card), "description": html_to_markdown(card.description_html)}


def _comment_json(comment: Comment) -> dict[str, Any]:
    payload = _dump(comment)
    payload["body"]["markdown"] = html_to_markdown(comment.body.html)
    return payload


def _format_validation_error(name: str, error: pydantic.ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'arguments'}: {e['msg']}" for e in error.errors()
    )
    return f"Invalid arguments for {name}: {problems}"


class FizzyTools:
    """One client, one session and one resolver shared by every tool call."""

    def __init__(
        self,
        client: FizzyClient,
        *,
        session_store: SessionStore | None = None,
        resolver: AccountResolver | None = None,
    ) -> None:
        self.client = client
        self.sessions = session_store or SessionStore()
        self.resolver = resolver or AccountResolver(client, self.sessions)

    @classmethod
    def from_settings(cls, settings: FizzySettings) -> FizzyTools:
        return cls(FizzyClient.from_settings(settings))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        spec = TOOL_REGISTRY.get(name)
        if spec is None:
            raise UnknownToolError(name)
        try:
            args = spec.args_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            raise UserError(_format_validation_error(name, e)) from e
        logger.debug("Calling tool", extra={"tool": name})
        return await spec.handler(self, args)

    @staticmethod
    def _ok(result: Result[T, FizzyApiError], context: ErrorContext | None = None) -> T:
        if isinstance(result, Err):
            raise to_user_error(result.error, context)
        return result.value

    async def _slug(self, args: AccountScopedArgs) -> str:
        return await self.resolver.resolve(args.account_slug)

    def _check_cursor(self, cursor: str | None) -> None:
        """Reject a bad cursor locally, before account resolution can reach the network."""

        if cursor and cursor_target(cursor, self.client.base_url) is None:
            raise to_user_error(invalid_cursor_error())

    # ------------------------------------------------------------------
    # Identity

    @tool("fizzy_whoami", NoArgs)
    async def whoami(self, _args: NoArgs) -> dict[str, Any]:
        """List the accounts the token can reach and the current default account."""

        identity = self._ok(await self.client.whoami(), ErrorContext(resource_type="Account"))
        return {**_dump(identity), "default_account": self.sessions.default_account()}

    @tool("fizzy_account", AccountArgs)
    async def account(self, args: AccountArgs) -> dict[str, Any]:
        """Get, set or clear the default account used when `account_slug` is omitted."""

        if args.action == "set":
            slug = normalize_slug(args.account_slug or "")
            if not slug:
                raise UserError(
                    "Action 'set' requires account_slug. "
                    "Use fizzy_whoami to discover available accounts."
                )
            self.sessions.set(Session(account=SessionAccount(slug=slug), source="explicit"))
            return {"action": "set", "account_slug": slug}
        if args.action == "clear":
            self.sessions.clear()
            return {"action": "clear", "account_slug": None}
        return {"action": "get", "account_slug": self.sessions.default_account()}

    # ------------------------------------------------------------------
    # Boards

    @tool("fizzy_list_boards", CursorArgs)
    async def list_boards(self, args: CursorArgs) -> dict[str, Any]:
        """List boards in the account."""

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        page = self._ok(
            await self.client.list_boards(slug, cursor=args.cursor),
            ErrorContext(resource_type="Board", container=f'account "{slug}"'),
        )
        return page.to_json()

    @tool("fizzy_get_board", BoardArgs)
    async def get_board(self, args: BoardArgs) -> dict[str, Any]:
        """Get one board with its columns."""

        slug = await self._slug(args)
        board = self._ok(
            await self.client.get_board(slug, args.board_id),
            ErrorContext(resource_type="Board", resource_id=args.board_id, container=f'account "{slug}"'),
        )
        return _dump(board)

    @tool("fizzy_create_board", CreateBoardArgs)
    async def create_board(self, args: CreateBoardArgs) -> dict[str, Any]:
        """Create a board."""

        slug = await self._slug(args)
        board = self._ok(
            await self.client.create_board(slug, name=args.name, description=args.description),
            ErrorContext(resource_type="Board", container=f'account "{slug}"'),
        )
        return _dump(board)

    @tool("fizzy_update_board", UpdateBoardArgs)
    async def update_board(self, args: UpdateBoardArgs) -> dict[str, Any]:
        """Rename a board or change its description."""

        if args.name is None and args.description is None:
            raise UserError("Provide name and/or description to update.")
        slug = await self._slug(args)
        board = self._ok(
            await self.client.update_board(
                slug, args.board_id, name=args.name, description=args.description
            ),
            ErrorContext(resource_type="Board", resource_id=args.board_id, container=f'account "{slug}"'),
        )
        return _dump(board)

    # ------------------------------------------------------------------
    # Cards

    @tool("fizzy_list_cards", ListCardsArgs)
    async def list_cards(self, args: ListCardsArgs) -> dict[str, Any]:
        """Search cards with server-side filters.

        With `cursor`, the filters are ignored: the cursor already encodes them.
        """

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        filters = CardFilters(
            board_ids=[args.board_id] if args.board_id else [],
            column_ids=[args.column_id] if args.column_id else [],
            tag_ids=args.tag_ids,
            assignee_ids=args.assignee_ids,
            indexed_by=args.indexed_by,
            sorted_by=args.sorted_by,
            terms=args.terms,
        )
        page = self._ok(
            await self.client.list_cards(slug, filters, cursor=args.cursor),
            ErrorContext(resource_type="Card", container=f'account "{slug}"'),
        )
        return page.to_json()

    def _card_context(self, slug: str, card_number: int) -> ErrorContext:
        return ErrorContext(
            resource_type="Card", resource_id=f"#{card_number}", container=f'account "{slug}"'
        )

    @tool("fizzy_get_card", CardArgs)
    async def get_card(self, args: CardArgs) -> dict[str, Any]:
        """Get a card by its number."""

        slug = await self._slug(args)
        card = self._ok(
            await self.client.get_card(slug, args.card_number),
            self._card_context(slug, args.card_number),
        )
        return _card_json(card)

    @tool("fizzy_create_card", CreateCardArgs)
    async def create_card(self, args: CreateCardArgs) -> dict[str, Any]:
        """Create a card on a board."""

        slug = await self._slug(args)
        card = self._ok(
            await self.client.create_card(
                slug, args.board_id, title=args.title, description=args.description
            ),
            ErrorContext(resource_type="Card", container=f'board "{args.board_id}"'),
        )
        return _card_json(card)

    @tool("fizzy_update_card", UpdateCardArgs)
    async def update_card(self, args: UpdateCardArgs) -> dict[str, Any]:
        """Change a card's title and/or description."""

        if args.title is None and args.description is None:
            raise UserError("Provide title and/or description to update.")
        slug = await self._slug(args)
        context = self._card_context(slug, args.card_number)
        updated = self._ok(
            await self.client.update_card(
                slug, args.card_number, title=args.title, description=args.description
            ),
            context,
        )
        card = updated or self._ok(await self.client.get_card(slug, args.card_number), context)
        return _card_json(card)

    @tool("fizzy_delete_card", DeleteCardArgs)
    async def delete_card(self, args: DeleteCardArgs) -> dict[str, Any]:
        """Delete a card permanently. Requires `force: true`."""

        if not args.force:
            raise UserError("Deletion requires force=true to confirm. This prevents accidental deletes.")
        slug = await self._slug(args)
        self._ok(
            await self.client.delete_card(slug, args.card_number),
            self._card_context(slug, args.card_number),
        )
        return {"deleted": True, "card_number": args.card_number}

    @tool("fizzy_change_card_state", ChangeCardStateArgs)
    async def change_card_state(self, args: ChangeCardStateArgs) -> dict[str, Any]:
        """Close, archive, reopen, activate, triage, untriage or defer a card."""

        action = parse_card_action(args.action)
        slug = await self._slug(args)
        context = self._card_context(slug, args.card_number)
        returned = self._ok(
            await apply_card_action(
                self.client,
                slug,
                args.card_number,
                action,
                column_id=args.column_id,
                position=args.position,
            ),
            context,
        )
        card = returned or self._ok(await self.client.get_card(slug, args.card_number), context)
        return {"action": action.value, "card": _card_json(card)}

    @tool("fizzy_toggle_card_attribute", ToggleCardAttributeArgs)
    async def toggle_card_attribute(self, args: ToggleCardAttributeArgs) -> dict[str, Any]:
        """Add or remove a tag or an assignee, checked against the card's current state."""

        if args.attribute == "tag":
            if not args.tag_title:
                raise UserError(
                    "Attribute 'tag' requires tag_title. Use fizzy_list_tags to find tag names."
                )
            value = args.tag_title
        else:
            if not args.user_id:
                raise UserError(
                    "Attribute 'assignee' requires user_id. Use fizzy_whoami to find user IDs."
                )
            value = args.user_id

        slug = await self._slug(args)
        context = self._card_context(slug, args.card_number)
        card = self._ok(await self.client.get_card(slug, args.card_number), context)
        number = args.card_number

        if args.attribute == "tag":
            current = ", ".join(card.tag_titles) or "none"
            present = value in card.tag_titles
            if args.operation == "add" and present:
                raise UserError(
                    f"Tag '{value}' already on card #{number}. Current tags: [{current}]"
                )
            if args.operation == "remove" and not present:
                raise UserError(f"Tag '{value}' not on card #{number}. Current tags: [{current}]")
            self._ok(await self.client.toggle_tag(slug, number, value), context)
        else:
            current = ", ".join(f"{a.name} ({a.id})" for a in card.assignees) or "none"
            present = value in card.assignee_ids
            if args.operation == "add" and present:
                raise UserError(
                    f"User {value} already assigned to card #{number}. "
                    f"Current assignees: [{current}]"
                )
            if args.operation == "remove" and not present:
                raise UserError(
                    f"User {value} not assigned to card #{number}. "
                    f"Current assignees: [{current}]"
                )
            self._ok(await self.client.toggle_assignee(slug, number, value), context)

        refreshed = self._ok(await self.client.get_card(slug, number), context)
        return {"action": args.operation, "attribute": args.attribute, "card": _card_json(refreshed)}

    # ------------------------------------------------------------------
    # Tags

    @tool("fizzy_list_tags", CursorArgs)
    async def list_tags(self, args: CursorArgs) -> dict[str, Any]:
        """List tags in the account."""

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        page = self._ok(
            await self.client.list_tags(slug, cursor=args.cursor),
            ErrorContext(resource_type="Tag", container=f'account "{slug}"'),
        )
        return page.to_json()

    # ------------------------------------------------------------------
    # Columns

    @tool("fizzy_list_columns", ListColumnsArgs)
    async def list_columns(self, args: ListColumnsArgs) -> dict[str, Any]:
        """List the columns of a board."""

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        page = self._ok(
            await self.client.list_columns(slug, args.board_id, cursor=args.cursor),
            ErrorContext(resource_type="Column", container=f'board "{args.board_id}"'),
        )
        return page.to_json()

    def _column_context(self, args: ColumnArgs) -> ErrorContext:
        return ErrorContext(
            resource_type="Column", resource_id=args.column_id, container=f'board "{args.board_id}"'
        )

    @tool("fizzy_get_column", ColumnArgs)
    async def get_column(self, args: ColumnArgs) -> dict[str, Any]:
        """Get one column."""

        slug = await self._slug(args)
        column = self._ok(
            await self.client.get_column(slug, args.board_id, args.column_id),
            self._column_context(args),
        )
        return _dump(column)

    @tool("fizzy_create_column", CreateColumnArgs)
    async def create_column(self, args: CreateColumnArgs) -> dict[str, Any]:
        """Add a column to a board."""

        slug = await self._slug(args)
        column = self._ok(
            await self.client.create_column(slug, args.board_id, name=args.name, color=args.color),
            ErrorContext(resource_type="Column", container=f'board "{args.board_id}"'),
        )
        return _dump(column)

    @tool("fizzy_update_column", UpdateColumnArgs)
    async def update_column(self, args: UpdateColumnArgs) -> dict[str, Any]:
        """Rename or recolour a column."""

        if args.name is None and args.color is None:
            raise UserError("Provide name and/or color to update.")
        slug = await self._slug(args)
        column = self._ok(
            await self.client.update_column(
                slug, args.board_id, args.column_id, name=args.name, color=args.color
            ),
            self._column_context(args),
        )
        return _dump(column)

    @tool("fizzy_delete_column", ColumnArgs)
    async def delete_column(self, args: ColumnArgs) -> dict[str, Any]:
        """Delete a column."""

        slug = await self._slug(args)
        self._ok(
            await self.client.delete_column(slug, args.board_id, args.column_id),
            self._column_context(args),
        )
        return {"deleted": True, "column_id": args.column_id}

    # ------------------------------------------------------------------
    # Steps

    def _step_context(self, card_number: int, step_id: str | None = None) -> ErrorContext:
        return ErrorContext(resource_type="Step", resource_id=step_id, container=f"card #{card_number}")

    @tool("fizzy_list_steps", CardCursorArgs)
    async def list_steps(self, args: CardCursorArgs) -> dict[str, Any]:
        """List the steps of a card."""

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        page = self._ok(
            await self.client.list_steps(slug, args.card_number, cursor=args.cursor),
            self._step_context(args.card_number),
        )
        return page.to_json()

    @tool("fizzy_create_step", CreateStepsArgs)
    async def create_step(self, args: CreateStepsArgs) -> dict[str, Any]:
        """Add steps to a card, in order.

        Steps that fail are reported next to the ones created; the call only fails when no
        step could be created.
        """

        slug = await self._slug(args)
        created: list[dict[str, Any]] = []
        failed: list[dict[str, str]] = []
        first_error: FizzyApiError | None = None
        for content in args.steps:
            result = await self.client.create_step(slug, args.card_number, content=content)
            if isinstance(result, Err):
                first_error = first_error or result.error
                failed.append({"content": content, "error": result.error.message})
            else:
                created.append(_dump(result.value))
        if not created and first_error is not None:
            raise to_user_error(first_error, self._step_context(args.card_number))
        return {"created": created, "failed": failed}

    @tool("fizzy_update_step", UpdateStepArgs)
    async def update_step(self, args: UpdateStepArgs) -> dict[str, Any]:
        """Change a step's content or completion."""

        if args.content is None and args.completed is None:
            raise UserError("Provide content and/or completed to update.")
        slug = await self._slug(args)
        step = self._ok(
            await self.client.update_step(
                slug, args.card_number, args.step_id, content=args.content, completed=args.completed
            ),
            self._step_context(args.card_number, args.step_id),
        )
        return _dump(step)

    @tool("fizzy_delete_step", StepArgs)
    async def delete_step(self, args: StepArgs) -> dict[str, Any]:
        """Delete a step."""

        slug = await self._slug(args)
        self._ok(
            await self.client.delete_step(slug, args.card_number, args.step_id),
            self._step_context(args.card_number, args.step_id),
        )
        return {"deleted": True, "step_id": args.step_id}

    # ------------------------------------------------------------------
    # Comments

    def _comment_context(self, card_number: int, comment_id: str | None = None) -> ErrorContext:
        return ErrorContext(
            resource_type="Comment", resource_id=comment_id, container=f"card #{card_number}"
        )

    @tool("fizzy_list_comments", CardCursorArgs)
    async def list_comments(self, args: CardCursorArgs) -> dict[str, Any]:
        """List comments on a card, newest first on the first page."""

        self._check_cursor(args.cursor)
        slug = await self._slug(args)
        page = self._ok(
            await self.client.list_comments(slug, args.card_number, cursor=args.cursor),
            self._comment_context(args.card_number),
        )
        return {**page.to_json(), "items": [_comment_json(c) for c in page.items]}

    @tool("fizzy_create_comment", CreateCommentArgs)
    async def create_comment(self, args: CreateCommentArgs) -> dict[str, Any]:
        """Comment on a card."""

        slug = await self._slug(args)
        comment = self._ok(
            await self.client.create_comment(slug, args.card_number, body=args.body),
            self._comment_context(args.card_number),
        )
        return _comment_json(comment)

    @tool("fizzy_update_comment", UpdateCommentArgs)
    async def update_comment(self, args: UpdateCommentArgs) -> dict[str, Any]:
        """Edit a comment."""

        slug = await self._slug(args)
        comment = self._ok(
            await self.client.update_comment(slug, args.card_number, args.comment_id, body=args.body),
            self._comment_context(args.card_number, args.comment_id),
        )
        return _comment_json(comment)

    @tool("fizzy_delete_comment", DeleteCommentArgs)
    async def delete_comment(self, args: DeleteCommentArgs) -> dict[str, Any]:
        """Delete a comment. Requires `force: true`."""

        if not args.force:
            raise UserError("Deletion requires force=true to confirm. This prevents accidental deletes.")
        slug = await self._slug(args)
        self._ok(
            await self.client.delete_comment(slug, args.card_number, args.comment_id),
            self._comment_context(args.card_number, args.comment_id),
        )
        return {"deleted": True, "comment_id": args.comment_id}

    # ------------------------------------------------------------------
    # Uploads

    @tool("fizzy_attach_file", AttachFileArgs)
    async def attach_file(self, args: AttachFileArgs) -> dict[str, Any]:
        """Upload a local file and return HTML to embed in a description or comment body.

        Files are limited to 50 MB.
        """

        path = Path(args.file_path)
        if not path.is_file():
            raise UserError(f"File not found: {path}")
        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise UserError(
                f"File size {size} exceeds maximum allowed 50MB ({MAX_FILE_SIZE} bytes)"
            )

        slug = await self._slug(args)
        attachment = self._ok(
            await attach_file(
                self.client,
                slug,
                filename=path.name,
                content=path.read_bytes(),
                content_type=args.content_type,
            ),
            ErrorContext(resource_type="Upload", container=f'account "{slug}"'),
        )
        return {
            **_dump(attachment),
            "usage": "Include the html value in any rich text field (description, comment body).",
        }

    # ------------------------------------------------------------------
    # Composite operations

    @tool("fizzy_task", TaskArgs)
    async def task(self, args: TaskArgs) -> dict[str, Any]:
        """Create a card (no `card_number`) or update one, with tags, steps, status and column.

        Only the create call or the initial fetch can fail the request; every other step is
        reported under `failures`.
        """

        return (await run_task(self.client, self.resolver, args)).to_json()

    @tool("fizzy_bulk_close_cards", BulkCloseArgs)
    async def bulk_close_cards(self, args: BulkCloseArgs) -> dict[str, Any]:
        """Close cards by number, or by column / tag / age filters combined with AND.

        Requires `force: true`.
        """

        return (await run_bulk_close(self.client, self.resolver, args)).to_json()
