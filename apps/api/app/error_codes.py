# apps/api/app/error_codes.py
from __future__ import annotations

from enum import Enum
from typing import Dict


class ErrorCode(str, Enum):
    """
    Stable error codes for clients of the recommendation API.

    BAD_REQUEST          seed list rejected by the service (duplicates, blanks)
    NOT_FOUND            one or more seed games are not in the catalog
    VALIDATION_ERROR     request body does not match the schema
    SERVICE_UNAVAILABLE  catalog connection not established yet
    """

    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


_STATUS_CODES: Dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.INTERNAL_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def error_code_for_status(status_code: int) -> ErrorCode:
    """Error code for an HTTPException status; anything unmapped is HTTP_ERROR."""
    return _STATUS_CODES.get(status_code, ErrorCode.HTTP_ERROR)
