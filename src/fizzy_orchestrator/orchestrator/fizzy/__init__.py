"""Fizzy REST API boundary: client, payload models, errors and pagination."""

from __future__ import annotations

from fizzy_orchestrator.orchestrator.fizzy.client import FizzyClient
from fizzy_orchestrator.orchestrator.fizzy.errors import FizzyApiError, UserError

__all__ = ["FizzyApiError", "FizzyClient", "UserError"]
