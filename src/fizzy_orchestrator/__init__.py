"""Fizzy Orchestrator.

An orchestration layer over the Fizzy REST API:
- account resolution (explicit slug, session, `FIZZY_ACCOUNT`, auto-detect)
- cursor-based pagination over Fizzy's Link headers
- composite card operations (`fizzy_task`, `fizzy_bulk_close_cards`)
"""

__version__ = "0.1.0"

from fizzy_orchestrator.orchestrator.config import FizzySettings

__all__ = ["__version__", "FizzySettings"]
