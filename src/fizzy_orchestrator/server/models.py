"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel


class ApiTool(BaseModel):
    name: str
    description: str
    input_schema: dict[str, object]


class ApiError(BaseModel):
    error: str
