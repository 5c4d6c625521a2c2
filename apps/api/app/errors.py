# apps/api/app/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError

from apps.api.app.schemas.errors import ErrorResponse, ResolutionDetails
from game_recommender.service.recommender_service import ResolutionError


UNKNOWN_REQUEST_ID = "unknown"


def get_request_id(request: Request) -> str:
    """
    Return the request correlation id set by the request context middleware,
    or a stable sentinel when it is missing.
    """
    rid = getattr(request.state, "request_id", None)
    if isinstance(rid, str) and rid.strip():
        return rid
    return UNKNOWN_REQUEST_ID


def resolution_details(exc: ResolutionError) -> Dict[str, Any]:
    """Which of the requested seed games were found in the catalog."""
    return ResolutionDetails(
        found_count=exc.found_count,
        found_names=exc.found_names,
        requested=exc.requested,
    ).model_dump()


def validation_details(exc: RequestValidationError) -> Dict[str, Any]:
    # loc/msg/type only; ctx may hold exception objects
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return {"errors": errors}


def make_error(
    *,
    code: str,
    message: str,
    request_id: str,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorResponse:
    """
    Build the error envelope shared by every error response.
    """
    return ErrorResponse(
        error={
            "code": code,
            "message": message,
            "request_id": request_id,
            "details": details,
        }
    )
