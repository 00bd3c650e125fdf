"""API error response schemas."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class ValidationIssue(BaseModel):
    loc: list[str | int]
    msg: str
    type: str
