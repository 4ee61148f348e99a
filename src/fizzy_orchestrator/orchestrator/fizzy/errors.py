"""Error taxonomy for Fizzy API calls and the user-facing error raised by tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fizzy_orchestrator.orchestrator.config import ENV_TOKEN

RESOURCE_LIST_TOOLS: dict[str, str] = {
    "Board": "fizzy_list_boards",
    "Card": "fizzy_list_cards",
    "Column": "fizzy_list_columns",
    "Tag": "fizzy_list_tags",
    "Comment": "fizzy_list_comments",
    "Step": "fizzy_get_card",
    "Account": "fizzy_whoami",
}


class FizzyApiError(Exception):
    """A failed Fizzy API call. Also the catch-all for statuses without a dedicated kind."""

    def __init__(
        self, status: int, message: str, details: dict[str, list[str]] | None = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details


class AuthenticationError(FizzyApiError):
    def __init__(self) -> None:
        super().__init__(401, f"Authentication failed. Check your {ENV_TOKEN}.")


class ForbiddenError(FizzyApiError):
    def __init__(self) -> None:
        super().__init__(403, "You don't have permission to perform this action.")


class NotFoundError(FizzyApiError):
    def __init__(self, resource: str | None = None) -> None:
        super().__init__(404, f"{resource} not found." if resource else "Resource not found.")
        self.resource = resource


class ValidationError(FizzyApiError):
    def __init__(self, details: dict[str, list[str]] | None = None) -> None:
        message = (
            f"Validation failed: {format_field_errors(details)}" if details else "Validation failed."
        )
        super().__init__(422, message, details)


class RateLimitError(FizzyApiError):
    def __init__(self) -> None:
        super().__init__(429, "Rate limit exceeded. Please wait before making more requests.")


class UserError(Exception):
    """An error whose message is meant to be shown to the tool caller as-is."""


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Optional details used to make error messages actionable."""

    resource_type: str | None = None
    resource_id: str | None = None
    container: str | None = None


def format_field_errors(details: dict[str, list[str]]) -> str:
    return "; ".join(f"{field}: {', '.join(messages)}" for field, messages in details.items())


def _coerce_details(body: Any) -> dict[str, list[str]] | None:
    if not isinstance(body, dict):
        return None
    details: dict[str, list[str]] = {}
    for field, messages in body.items():
        if isinstance(messages, list):
            details[str(field)] = [str(m) for m in messages]
        elif isinstance(messages, str):
            details[str(field)] = [messages]
    return details or None


def error_from_response(status: int, body: Any = None) -> FizzyApiError:
    """Map a non-2xx status (and its JSON body, when there is one) to an error kind."""

    if status == 401:
        return AuthenticationError()
    if status == 403:
        return ForbiddenError()
    if status == 404:
        return NotFoundError()
    if status == 422:
        return ValidationError(_coerce_details(body))
    if status == 429:
        return RateLimitError()
    return FizzyApiError(status, f"API error: {status}")


def invalid_cursor_error() -> ValidationError:
    return ValidationError({"cursor": ["Invalid pagination cursor"]})


def format_instructive_message(error: FizzyApiError, context: ErrorContext | None = None) -> str:
    context = context or ErrorContext()
    resource = context.resource_type or "Resource"
    resource_id = f" {context.resource_id}" if context.resource_id else ""
    container = f" in {context.container}" if context.container else ""
    list_tool = RESOURCE_LIST_TOOLS.get(resource, "fizzy_list_boards")

    if isinstance(error, AuthenticationError):
        return (
            f"[UNAUTHORIZED] Authentication failed. "
            f"Set {ENV_TOKEN} environment variable with valid API token."
        )
    if isinstance(error, ForbiddenError):
        return (
            f"[FORBIDDEN] {resource}{resource_id}: Access denied. "
            f"Use {list_tool} to verify accessible resources."
        )
    if isinstance(error, NotFoundError):
        return (
            f"[NOT_FOUND] {resource}{resource_id}: Not found{container}. "
            f"Try {list_tool} to see available items."
        )
    if isinstance(error, ValidationError):
        field_errors = format_field_errors(error.details) if error.details else "Invalid input"
        return f"[VALIDATION] {field_errors}."
    if isinstance(error, RateLimitError):
        return "[RATE_LIMITED] Too many requests. Wait before retrying."
    return f"[ERROR] {error.message}"


def to_user_error(error: FizzyApiError, context: ErrorContext | None = None) -> UserError:
    return UserError(format_instructive_message(error, context))
