"""Pydantic models for the Fizzy payloads the orchestrator reads.

Models are lenient: unknown fields are ignored and only the fields the orchestration layer
relies on are required.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _FizzyModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AccountUser(_FizzyModel):
    id: str
    name: str
    role: str = "member"
    active: bool = True
    email_address: str | None = None


class Account(_FizzyModel):
    id: str
    name: str
    slug: str
    created_at: str | None = None
    user: AccountUser


class Identity(_FizzyModel):
    accounts: list[Account] = Field(default_factory=list)


class ColumnColor(_FizzyModel):
    name: str = ""
    value: str = ""


class ColumnSummary(_FizzyModel):
    id: str
    name: str
    color: ColumnColor | str | None = None
    cards_count: int | None = None


class Board(_FizzyModel):
    id: str
    name: str
    description: str | None = None
    columns: list[ColumnSummary] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    url: str = ""


class Column(_FizzyModel):
    id: str
    name: str
    color: ColumnColor | str | None = None
    created_at: str | None = None
    url: str = ""


class Tag(_FizzyModel):
    id: str
    title: str
    color: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class CardTag(_FizzyModel):
    id: str | None = None
    title: str
    color: str | None = None


class CardAssignee(_FizzyModel):
    id: str
    name: str = ""
    email_address: str | None = None


class Step(_FizzyModel):
    id: str
    content: str
    completed: bool = False


class Card(_FizzyModel):
    id: str
    number: int
    title: str
    description_html: str | None = None
    status: str = "open"
    closed: bool = False
    board_id: str | None = None
    # Null when the card is closed or still in the inbox.
    column_id: str | None = None
    tags: list[CardTag] = Field(default_factory=list)
    assignees: list[CardAssignee] = Field(default_factory=list)
    steps_count: int = 0
    completed_steps_count: int = 0
    comments_count: int = 0
    steps: list[Step] | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    url: str = ""

    @model_validator(mode="before")
    @classmethod
    def _status_from_closed_flag(cls, data: Any) -> Any:
        # Some card payloads only carry the `closed` flag.
        if isinstance(data, dict) and not data.get("status") and data.get("closed"):
            return {**data, "status": "closed"}
        return data

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_titles(cls, value: Any) -> Any:
        # Card payloads carry tags either as plain titles or as tag objects.
        if isinstance(value, list):
            return [{"title": item} if isinstance(item, str) else item for item in value]
        return value

    @property
    def tag_titles(self) -> list[str]:
        return [t.title for t in self.tags]

    @property
    def assignee_ids(self) -> list[str]:
        return [a.id for a in self.assignees]

    def updated_before(self, cutoff: datetime) -> bool:
        """True when `updated_at` is older than `cutoff`; cards without a timestamp never match."""

        if not self.updated_at:
            return False
        updated = datetime.fromisoformat(self.updated_at.replace("Z", "+00:00"))
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=UTC)
        return updated < cutoff


class DirectUploadTarget(_FizzyModel):
    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class DirectUpload(_FizzyModel):
    """Answer to a direct-upload request: where to PUT the bytes and the blob's signed id."""

    signed_id: str
    direct_upload: DirectUploadTarget


class CommentBody(_FizzyModel):
    plain_text: str = ""
    html: str = ""


class CommentCreator(_FizzyModel):
    id: str
    name: str = ""


class Comment(_FizzyModel):
    id: str
    body: CommentBody
    creator: CommentCreator | None = None
    created_at: str | None = None
    updated_at: str | None = None
    url: str = ""


IndexedBy = Literal["closed", "not_now", "all", "stalled", "postponing_soon", "golden"]
SortedBy = Literal["newest", "oldest", "recently_active"]


class CardFilters(BaseModel):
    """Server-side card filters, sent as repeated `name[]` query parameters."""

    model_config = ConfigDict(extra="forbid")

    board_ids: list[str] = Field(default_factory=list)
    column_ids: list[str] = Field(default_factory=list)
    tag_ids: list[str] = Field(default_factory=list)
    assignee_ids: list[str] = Field(default_factory=list)
    indexed_by: IndexedBy | None = None
    sorted_by: SortedBy | None = None
    terms: list[str] = Field(default_factory=list)

    def to_query_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        params.extend(("board_ids[]", v) for v in self.board_ids)
        params.extend(("column_ids[]", v) for v in self.column_ids)
        if self.indexed_by:
            params.append(("indexed_by", self.indexed_by))
        params.extend(("tag_ids[]", v) for v in self.tag_ids)
        params.extend(("assignee_ids[]", v) for v in self.assignee_ids)
        if self.sorted_by:
            params.append(("sorted_by", self.sorted_by))
        params.extend(("terms[]", v) for v in self.terms)
        return params
