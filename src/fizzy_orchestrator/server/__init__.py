"""FastAPI server adapter for fizzy-orchestrator.

This module exposes the tool surface over HTTP.

Design intent:
- Keep business logic in `fizzy_orchestrator.orchestrator.*`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from fizzy_orchestrator.server.app import create_app
