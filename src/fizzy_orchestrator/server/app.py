"""FastAPI app factory.

Endpoints are thin wrappers over :class:`FizzyTools`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from fizzy_orchestrator import __version__
from fizzy_orchestrator.orchestrator.config import FizzySettings
from fizzy_orchestrator.orchestrator.fizzy.errors import UserError
from fizzy_orchestrator.orchestrator.tools import TOOL_REGISTRY, FizzyTools, UnknownToolError
from fizzy_orchestrator.server.config import ServerSettings
from fizzy_orchestrator.server.models import ApiError, ApiTool

logger = logging.getLogger(__name__)


def create_app(tools: FizzyTools | None = None) -> FastAPI:
    settings = ServerSettings()
    holder: dict[str, FizzyTools | None] = {"tools": tools}

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        current = holder["tools"]
        if current is not None:
            await current.aclose()
            holder["tools"] = None

    app = FastAPI(
        title="Fizzy Orchestrator",
        version=__version__,
        description="REST API over the fizzy-orchestrator tools.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_tools() -> FizzyTools:
        current = holder["tools"]
        if current is None:
            try:
                fizzy_settings = FizzySettings()
            except ValidationError as e:
                logger.warning("Fizzy settings are incomplete", extra={"errors": e.error_count()})
                raise HTTPException(
                    status_code=409, detail="FIZZY_TOKEN is required for this endpoint"
                ) from e
            current = FizzyTools.from_settings(fizzy_settings)
            holder["tools"] = current
        return current

    @app.exception_handler(UserError)
    async def user_error_handler(_request: Request, exc: UserError) -> JSONResponse:
        status = 404 if isinstance(exc, UnknownToolError) else 400
        return JSONResponse(status_code=status, content=ApiError(error=str(exc)).model_dump())

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/tools", response_model=list[ApiTool])
    def list_tools() -> list[ApiTool]:
        return [
            ApiTool(
                name=spec.name,
                description=spec.description,
                input_schema=spec.args_model.model_json_schema(),
            )
            for spec in TOOL_REGISTRY.values()
        ]

    @app.post("/api/tools/{name}")
    async def call_tool(name: str, arguments: dict[str, Any] | None = Body(default=None)) -> Any:
        if name not in TOOL_REGISTRY:
            raise UnknownToolError(name)
        return await get_tools().call_tool(name, arguments)

    return app
