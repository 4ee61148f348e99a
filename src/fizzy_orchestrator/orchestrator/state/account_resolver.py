"""Resolve which Fizzy account a call applies to.

Precedence, each candidate with one leading "/" stripped:

1. the explicit `account_slug` argument;
2. the session account;
3. the `FIZZY_ACCOUNT` environment variable (empty means unset);
4. auto-detect through the identity endpoint, when it lists exactly one account.

The auto-detect outcome is remembered by the resolver, a failure included, so repeated
ambiguous calls cost one identity lookup. A success is also written to the session. The two
are reset independently: clearing the session does not force another identity lookup,
:meth:`AccountResolver.clear_cache` does.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fizzy_orchestrator.orchestrator.config import account_from_env, normalize_slug
from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient
from fizzy_orchestrator.orchestrator.fizzy.errors import UserError
from fizzy_orchestrator.orchestrator.result import Err
from fizzy_orchestrator.orchestrator.state.session import (
    Session,
    SessionAccount,
    SessionStore,
    SessionUser,
)

logger = logging.getLogger(__name__)

NO_ACCOUNT_ERROR = (
    "No account specified. Set FIZZY_ACCOUNT env var, use fizzy_account tool, "
    "or pass account_slug."
)


class AccountResolver:
    def __init__(
        self,
        client: FizzyClient,
        session_store: SessionStore,
        env_account: Callable[[], str | None] = account_from_env,
    ) -> None:
        self._client = client
        self._sessions = session_store
        self._env_account = env_account
        self._cached_slug: str | None = None
        self._auto_detect_tried = False

    @property
    def session_store(self) -> SessionStore:
        return self._sessions

    async def resolve(self, explicit_slug: str | None = None) -> str:
        if explicit_slug:
            slug = normalize_slug(explicit_slug)
            if slug:
                return slug

        from_session = normalize_slug(self._sessions.default_account() or "")
        if from_session:
            return from_session

        from_env = normalize_slug(self._env_account() or "")
        if from_env:
            return from_env

        if self._auto_detect_tried:
            if self._cached_slug is None:
                raise UserError(NO_ACCOUNT_ERROR)
            return self._cached_slug

        return await self._auto_detect()

    async def _auto_detect(self) -> str:
        self._auto_detect_tried = True
        result = await self._client.whoami()
        if isinstance(result, Err):
            logger.warning(
                "Account auto-detect failed",
                extra={"status": result.error.status, "error": result.error.message},
            )
            raise UserError(NO_ACCOUNT_ERROR) from result.error

        accounts = result.value.accounts
        if len(accounts) != 1:
            logger.info("Account auto-detect is ambiguous", extra={"accounts": len(accounts)})
            raise UserError(NO_ACCOUNT_ERROR)

        account = accounts[0]
        slug = normalize_slug(account.slug)
        self._sessions.set(
            Session(
                account=SessionAccount(slug=slug, name=account.name, id=account.id),
                user=SessionUser(
                    id=account.user.id, name=account.user.name, role=account.user.role
                ),
                source="auto-detect",
            )
        )
        self._cached_slug = slug
        logger.info("Account auto-detected", extra={"account_slug": slug})
        return slug

    def clear_cache(self) -> None:
        """Forget the auto-detect outcome; the session is left alone."""

        self._cached_slug = None
        self._auto_detect_tried = False

    def reset(self) -> None:
        """Clear both the session and the auto-detect cache."""

        self._sessions.clear()
        self.clear_cache()
