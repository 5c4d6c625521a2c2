from __future__ import annotations

from typing import Any, Dict, Optional

from .error_codes import ErrorCode


def _error_example(
    *,
    code: ErrorCode,
    message: str,
    request_id: str = "7b2b5a2c4f3a4e1fb7f4f44c9c1c2c9a",
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code.value,
            "message": message,
            "request_id": request_id,
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


def _doc(description: str, example: Dict[str, Any]) -> Dict[str, Any]:
    return {"description": description, "content": {"application/json": {"example": example}}}


def standard_error_responses() -> Dict[int, Dict[str, Any]]:
    """
    Error response docs shared by the recommendation routes.
    """
    return {
        400: _doc(
            "Bad request",
            _error_example(code=ErrorCode.BAD_REQUEST, message="Please provide 3 distinct game names"),
        ),
        404: _doc(
            "Seed games not found",
            _error_example(
                code=ErrorCode.NOT_FOUND,
                message="Only found 2 games in database: Portal 2, Terraria",
                details={"found_count": 2, "found_names": ["Portal 2", "Terraria"]},
            ),
        ),
        422: _doc(
            "Validation error",
            _error_example(
                code=ErrorCode.VALIDATION_ERROR,
                message="Request validation failed",
                details={
                    "errors": [
                        {
                            "loc": ["body", "games"],
                            "msg": "List should have at least 3 items after validation, not 2",
                            "type": "too_short",
                        }
                    ]
                },
            ),
        ),
        500: _doc(
            "Internal server error",
            _error_example(code=ErrorCode.INTERNAL_ERROR, message="Internal Server Error"),
        ),
        503: _doc(
            "Service not ready",
            _error_example(
                code=ErrorCode.SERVICE_UNAVAILABLE,
                message="Recommender service is not available. Please retry shortly.",
            ),
        ),
    }
