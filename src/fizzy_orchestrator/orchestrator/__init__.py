"""Core orchestrator components.

- Settings loaded from the environment and `.env`
- Structured logging
- The async Fizzy client, account resolution and composite card operations
"""
