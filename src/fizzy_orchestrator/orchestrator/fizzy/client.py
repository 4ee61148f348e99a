"""Async Fizzy API client.

Wraps `httpx.AsyncClient` and returns a `Result` from every operation so callers decide which
failures are fatal. HTTP failures never raise out of this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Literal, TypeVar
from urllib.parse import urljoin

import httpx
import pydantic

from fizzy_orchestrator import __version__
from fizzy_orchestrator.orchestrator.config import DEFAULT_BASE_URL, FizzySettings
from fizzy_orchestrator.orchestrator.fizzy.errors import (
    FizzyApiError,
    error_from_response,
    invalid_cursor_error,
)
from fizzy_orchestrator.orchestrator.fizzy.markdown import markdown_to_html
from fizzy_orchestrator.orchestrator.fizzy.models import (
    Board,
    Card,
    CardFilters,
    Column,
    Comment,
    DirectUpload,
    Identity,
    Step,
    Tag,
)
from fizzy_orchestrator.orchestrator.fizzy.pagination import (
    PaginatedResult,
    build_page,
    cursor_target,
)
from fizzy_orchestrator.orchestrator.result import Err, Ok, Result

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)

Position = Literal["top", "bottom"]


@dataclass(frozen=True, slots=True)
class RawResponse:
    """Decoded body of a successful call plus the page's forward link, if any."""

    data: Any
    next_url: str | None = None


class FizzyClient:
    """Small async wrapper around the Fizzy REST API for the operations we orchestrate."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token:
            raise ValueError("Fizzy token is required")

        self._base_url = base_url.rstrip("/")
        self._transport = transport
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": f"fizzy-orchestrator/{__version__}",
        }
        if http_client is not None:
            http_client.headers.update(headers)
            self._http = http_client
        else:
            self._http = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(timeout),
                transport=transport,
            )

    @classmethod
    def from_settings(cls, settings: FizzySettings) -> FizzyClient:
        return cls(
            token=settings.token,
            base_url=settings.base_url,
            timeout=settings.http_timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> FizzyClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # URL helpers

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _account_url(self, account_slug: str, path: str) -> str:
        slug = account_slug.strip("/")
        if not slug:
            raise ValueError("account_slug is required")
        return self._url(f"{slug}/{path.lstrip('/')}")

    def _card_url(self, account_slug: str, card_number: int, suffix: str = "") -> str:
        if card_number <= 0:
            raise ValueError("card_number must be a positive integer")
        if suffix and not suffix.startswith("/"):
            suffix = "/" + suffix
        return self._account_url(account_slug, f"cards/{card_number}{suffix}")

    def cursor_url(self, cursor: str) -> str | None:
        """The URL a cursor continues, or None if it is malformed or points off this API."""

        return cursor_target(cursor, self._base_url)

    # ------------------------------------------------------------------
    # Transport

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Result[RawResponse, FizzyApiError]:
        logger.debug("Fizzy request", extra={"method": method, "url": url})
        try:
            resp = await self._http.request(method, url, params=params or None, json=json)
            if resp.status_code == 201 and resp.headers.get("Location") and not resp.content:
                location = urljoin(self._base_url + "/", resp.headers["Location"])
                logger.debug("Following Location after create", extra={"url": location})
                resp = await self._http.get(location)
        except httpx.HTTPError as e:
            logger.warning("Fizzy request failed", extra={"method": method, "url": url})
            return Err(FizzyApiError(0, f"Request failed: {e}"))

        if resp.is_error:
            body: Any = None
            try:
                body = resp.json()
            except ValueError:
                body = None
            error = error_from_response(resp.status_code, body)
            logger.debug(
                "Fizzy request returned an error",
                extra={"method": method, "url": url, "status": resp.status_code},
            )
            return Err(error)

        next_link = resp.links.get("next", {}).get("url")
        next_url = urljoin(str(resp.url), next_link) if next_link else None

        if resp.status_code == 204 or not resp.content:
            return Ok(RawResponse(data=None, next_url=next_url))
        try:
            data = resp.json()
        except ValueError:
            return Err(FizzyApiError(resp.status_code, "API error: response was not valid JSON"))
        return Ok(RawResponse(data=data, next_url=next_url))

    @staticmethod
    def _parse(model: type[M], data: Any) -> Result[M, FizzyApiError]:
        try:
            return Ok(model.model_validate(data))
        except pydantic.ValidationError as e:
            logger.warning("Unexpected Fizzy payload", extra={"model": model.__name__})
            return Err(FizzyApiError(502, f"Unexpected {model.__name__} response: {e}"))

    async def _get_one(self, model: type[M], url: str) -> Result[M, FizzyApiError]:
        result = await self._request("GET", url)
        if isinstance(result, Err):
            return result
        return self._parse(model, result.value.data)

    async def _send_one(
        self, model: type[M], method: str, url: str, payload: dict[str, Any]
    ) -> Result[M, FizzyApiError]:
        result = await self._request(method, url, json=payload)
        if isinstance(result, Err):
            return result
        return self._parse(model, result.value.data)

    async def _send_card(
        self, method: str, url: str, payload: dict[str, Any] | None = None
    ) -> Result[Card | None, FizzyApiError]:
        """Card endpoints that may answer 204 or echo the card; None when nothing usable came back."""

        result = await self._request(method, url, json=payload)
        if isinstance(result, Err):
            return result
        data = result.value.data
        if not isinstance(data, dict):
            return Ok(None)
        try:
            return Ok(Card.model_validate(data))
        except pydantic.ValidationError:
            return Ok(None)

    async def _send_empty(self, method: str, url: str) -> Result[None, FizzyApiError]:
        result = await self._request(method, url)
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def _list(
        self,
        model: type[M],
        url: str,
        *,
        params: list[tuple[str, str]] | None = None,
        cursor: str | None = None,
        reverse_first_page: bool = False,
    ) -> Result[PaginatedResult[M], FizzyApiError]:
        """Fetch one page.

        With a cursor, fetch exactly the decoded URL: it already carries the filters, so
        `params` are not re-applied.
        """

        if cursor:
            cursor_url = self.cursor_url(cursor)
            if cursor_url is None:
                return Err(invalid_cursor_error())
            result = await self._request("GET", cursor_url)
        else:
            result = await self._request("GET", url, params=params)
        if isinstance(result, Err):
            return result

        raw = result.value.data
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            return Err(FizzyApiError(502, f"Unexpected {model.__name__} list response"))

        items: list[M] = []
        for entry in raw:
            parsed = self._parse(model, entry)
            if isinstance(parsed, Err):
                return parsed
            items.append(parsed.value)

        return Ok(
            build_page(
                items,
                result.value.next_url,
                reverse=reverse_first_page and not cursor,
            )
        )

    # ------------------------------------------------------------------
    # Identity

    async def whoami(self) -> Result[Identity, FizzyApiError]:
        return await self._get_one(Identity, self._url("my/identity"))

    # ------------------------------------------------------------------
    # Boards

    async def list_boards(
        self, account_slug: str, *, cursor: str | None = None
    ) -> Result[PaginatedResult[Board], FizzyApiError]:
        return await self._list(Board, self._account_url(account_slug, "boards"), cursor=cursor)

    async def get_board(self, account_slug: str, board_id: str) -> Result[Board, FizzyApiError]:
        return await self._get_one(Board, self._account_url(account_slug, f"boards/{board_id}"))

    async def create_board(
        self, account_slug: str, *, name: str, description: str | None = None
    ) -> Result[Board, FizzyApiError]:
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        return await self._send_one(
            Board, "POST", self._account_url(account_slug, "boards"), {"board": body}
        )

    async def update_board(
        self,
        account_slug: str,
        board_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Result[Board, FizzyApiError]:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if description is not None:
            body["description"] = description
        return await self._send_one(
            Board, "PUT", self._account_url(account_slug, f"boards/{board_id}"), {"board": body}
        )

    # ------------------------------------------------------------------
    # Columns

    async def list_columns(
        self, account_slug: str, board_id: str, *, cursor: str | None = None
    ) -> Result[PaginatedResult[Column], FizzyApiError]:
        return await self._list(
            Column, self._account_url(account_slug, f"boards/{board_id}/columns"), cursor=cursor
        )

    async def get_column(
        self, account_slug: str, board_id: str, column_id: str
    ) -> Result[Column, FizzyApiError]:
        return await self._get_one(
            Column, self._account_url(account_slug, f"boards/{board_id}/columns/{column_id}")
        )

    async def create_column(
        self, account_slug: str, board_id: str, *, name: str, color: str | None = None
    ) -> Result[Column, FizzyApiError]:
        body: dict[str, Any] = {"name": name}
        if color:
            body["color"] = color
        return await self._send_one(
            Column,
            "POST",
            self._account_url(account_slug, f"boards/{board_id}/columns"),
            {"column": body},
        )

    async def update_column(
        self,
        account_slug: str,
        board_id: str,
        column_id: str,
        *,
        name: str | None = None,
        color: str | None = None,
    ) -> Result[Column, FizzyApiError]:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if color is not None:
            body["color"] = color
        return await self._send_one(
            Column,
            "PUT",
            self._account_url(account_slug, f"boards/{board_id}/columns/{column_id}"),
            {"column": body},
        )

    async def delete_column(
        self, account_slug: str, board_id: str, column_id: str
    ) -> Result[None, FizzyApiError]:
        return await self._send_empty(
            "DELETE", self._account_url(account_slug, f"boards/{board_id}/columns/{column_id}")
        )

    # ------------------------------------------------------------------
    # Cards

    async def list_cards(
        self,
        account_slug: str,
        filters: CardFilters | None = None,
        *,
        cursor: str | None = None,
    ) -> Result[PaginatedResult[Card], FizzyApiError]:
        params = filters.to_query_params() if filters is not None else None
        return await self._list(
            Card, self._account_url(account_slug, "cards"), params=params, cursor=cursor
        )

    async def get_card(self, account_slug: str, card_number: int) -> Result[Card, FizzyApiError]:
        return await self._get_one(Card, self._card_url(account_slug, card_number))

    async def get_card_by_id(self, account_slug: str, card_id: str) -> Result[Card, FizzyApiError]:
        return await self._get_one(Card, self._account_url(account_slug, f"cards/{card_id}"))

    async def create_card(
        self, account_slug: str, board_id: str, *, title: str, description: str | None = None
    ) -> Result[Card, FizzyApiError]:
        body: dict[str, Any] = {"title": title}
        if description:
            body["description"] = markdown_to_html(description)
        return await self._send_one(
            Card,
            "POST",
            self._account_url(account_slug, f"boards/{board_id}/cards"),
            {"card": body},
        )

    async def update_card(
        self,
        account_slug: str,
        card_number: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Result[Card | None, FizzyApiError]:
        body: dict[str, Any] = {}
        if title is not None:
            body["title"] = title
        if description is not None:
            body["description"] = markdown_to_html(description)
        return await self._send_card("PUT", self._card_url(account_slug, card_number), {"card": body})

    async def delete_card(self, account_slug: str, card_number: int) -> Result[None, FizzyApiError]:
        return await self._send_empty("DELETE", self._card_url(account_slug, card_number))

    # ------------------------------------------------------------------
    # Lifecycle

    async def close_card(
        self, account_slug: str, card_number: int
    ) -> Result[Card | None, FizzyApiError]:
        return await self._send_card("POST", self._card_url(account_slug, card_number, "closure"))

    async def reopen_card(
        self, account_slug: str, card_number: int
    ) -> Result[Card | None, FizzyApiError]:
        # DELETE on /closure removes the closed state.
        return await self._send_card(
            "DELETE", self._card_url(account_slug, card_number, "closure")
        )

    async def not_now_card(
        self, account_slug: str, card_number: int
    ) -> Result[Card | None, FizzyApiError]:
        return await self._send_card("POST", self._card_url(account_slug, card_number, "not_now"))

    async def triage_card(
        self,
        account_slug: str,
        card_number: int,
        column_id: str,
        position: Position | None = None,
    ) -> Result[Card | None, FizzyApiError]:
        body: dict[str, Any] = {"column_id": column_id}
        if position:
            body["position"] = position
        return await self._send_card(
            "POST", self._card_url(account_slug, card_number, "triage"), body
        )

    async def untriage_card(
        self, account_slug: str, card_number: int
    ) -> Result[Card | None, FizzyApiError]:
        # DELETE on /triage sends the card back to the inbox.
        return await self._send_card(
            "DELETE", self._card_url(account_slug, card_number, "triage")
        )

    # ------------------------------------------------------------------
    # Relation toggles

    async def toggle_tag(
        self, account_slug: str, card_number: int, tag_title: str
    ) -> Result[Card | None, FizzyApiError]:
        return await self._send_card(
            "POST", self._card_url(account_slug, card_number, "taggings"), {"tag_title": tag_title}
        )

    async def toggle_assignee(
        self, account_slug: str, card_number: int, user_id: str
    ) -> Result[Card | None, FizzyApiError]:
        return await self._send_card(
            "POST", self._card_url(account_slug, card_number, "assignees"), {"user_id": user_id}
        )

    # ------------------------------------------------------------------
    # Steps

    async def list_steps(
        self, account_slug: str, card_number: int, *, cursor: str | None = None
    ) -> Result[PaginatedResult[Step], FizzyApiError]:
        return await self._list(
            Step, self._card_url(account_slug, card_number, "steps"), cursor=cursor
        )

    async def create_step(
        self,
        account_slug: str,
        card_number: int,
        *,
        content: str,
        completed: bool | None = None,
    ) -> Result[Step, FizzyApiError]:
        body: dict[str, Any] = {"content": content}
        if completed is not None:
            body["completed"] = completed
        return await self._send_one(
            Step, "POST", self._card_url(account_slug, card_number, "steps"), {"step": body}
        )

    async def update_step(
        self,
        account_slug: str,
        card_number: int,
        step_id: str,
        *,
        content: str | None = None,
        completed: bool | None = None,
    ) -> Result[Step, FizzyApiError]:
        body: dict[str, Any] = {}
        if content is not None:
            body["content"] = content
        if completed is not None:
            body["completed"] = completed
        return await self._send_one(
            Step,
            "PUT",
            self._card_url(account_slug, card_number, f"steps/{step_id}"),
            {"step": body},
        )

    async def delete_step(
        self, account_slug: str, card_number: int, step_id: str
    ) -> Result[None, FizzyApiError]:
        return await self._send_empty(
            "DELETE", self._card_url(account_slug, card_number, f"steps/{step_id}")
        )

    # ------------------------------------------------------------------
    # Tags

    async def list_tags(
        self, account_slug: str, *, cursor: str | None = None
    ) -> Result[PaginatedResult[Tag], FizzyApiError]:
        return await self._list(Tag, self._account_url(account_slug, "tags"), cursor=cursor)

    # ------------------------------------------------------------------
    # Comments

    async def list_comments(
        self, account_slug: str, card_number: int, *, cursor: str | None = None
    ) -> Result[PaginatedResult[Comment], FizzyApiError]:
        """List comments; the first page is reversed to show newest first."""

        return await self._list(
            Comment,
            self._card_url(account_slug, card_number, "comments"),
            cursor=cursor,
            reverse_first_page=True,
        )

    async def create_comment(
        self, account_slug: str, card_number: int, *, body: str
    ) -> Result[Comment, FizzyApiError]:
        return await self._send_one(
            Comment,
            "POST",
            self._card_url(account_slug, card_number, "comments"),
            {"comment": {"body": markdown_to_html(body)}},
        )

    async def update_comment(
        self, account_slug: str, card_number: int, comment_id: str, *, body: str
    ) -> Result[Comment, FizzyApiError]:
        return await self._send_one(
            Comment,
            "PUT",
            self._card_url(account_slug, card_number, f"comments/{comment_id}"),
            {"comment": {"body": markdown_to_html(body)}},
        )

    async def delete_comment(
        self, account_slug: str, card_number: int, comment_id: str
    ) -> Result[None, FizzyApiError]:
        return await self._send_empty(
            "DELETE", self._card_url(account_slug, card_number, f"comments/{comment_id}")
        )

    # ------------------------------------------------------------------
    # Uploads

    async def create_direct_upload(
        self,
        account_slug: str,
        *,
        filename: str,
        byte_size: int,
        checksum: str,
        content_type: str,
    ) -> Result[DirectUpload, FizzyApiError]:
        blob = {
            "filename": filename,
            "byte_size": byte_size,
            "checksum": checksum,
            "content_type": content_type,
        }
        return await self._send_one(
            DirectUpload,
            "POST",
            self._account_url(account_slug, "rails/active_storage/direct_uploads"),
            {"blob": blob},
        )

    async def upload_blob(
        self, url: str, headers: dict[str, str], content: bytes
    ) -> Result[None, FizzyApiError]:
        """PUT file bytes to a signed storage URL.

        Storage URLs are pre-signed, so this goes through a separate client that never carries
        the API bearer token.
        """

        logger.debug("Uploading blob", extra={"bytes": len(content)})
        try:
            async with httpx.AsyncClient(
                timeout=self._http.timeout, transport=self._transport
            ) as storage:
                resp = await storage.put(url, headers=headers, content=content)
        except httpx.HTTPError as e:
            return Err(FizzyApiError(0, f"Upload failed: {e}"))
        if resp.is_error:
            return Err(FizzyApiError(resp.status_code, f"Upload failed: {resp.status_code}"))
        return Ok(None)
