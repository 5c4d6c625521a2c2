from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorInfo(BaseModel):
    code: str = Field(
        ...,
        description="Stable error code, see ErrorCode",
        json_schema_extra={"example": "NOT_FOUND"},
    )
    message: str = Field(
        ...,
        json_schema_extra={"example": "Only found 2 games in database: Portal 2, Terraria"},
    )
    request_id: Optional[str] = Field(
        None,
        description="Echo of the X-Request-ID response header",
        json_schema_extra={"example": "7b2b5a2c4f3a4e1fb7f4f44c9c1c2c9a"},
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Structured metadata; for NOT_FOUND see ResolutionDetails",
    )


class ResolutionDetails(BaseModel):
    """Shape of `details` when seed games could not be resolved."""

    found_count: int = Field(..., ge=0, le=3)
    found_names: List[str] = Field(default_factory=list)
    requested: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: ErrorInfo
