"""The working-account session.

At most one :class:`Session` is held per :class:`SessionStore`. The resolver fills it on
auto-detect; the `fizzy_account` tool sets or clears it explicitly.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)

SessionSource = Literal["auto-detect", "explicit"]


class SessionAccount(BaseModel):
    slug: str
    name: str | None = None
    id: str | None = None


class SessionUser(BaseModel):
    id: str
    name: str
    role: str


class Session(BaseModel):
    account: SessionAccount
    user: SessionUser | None = None
    source: SessionSource


class SessionStore:
    """Owns the current session, if any."""

    def __init__(self) -> None:
        self._session: Session | None = None

    def get(self) -> Session | None:
        return self._session

    def set(self, session: Session) -> None:
        logger.info(
            "Session account set",
            extra={"account_slug": session.account.slug, "source": session.source},
        )
        self._session = session

    def clear(self) -> None:
        self._session = None

    def default_account(self) -> str | None:
        if self._session is None:
            return None
        return self._session.account.slug or None
