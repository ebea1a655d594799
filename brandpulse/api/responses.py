"""Response utilities and error handling for the API.

This module provides:
- Error code constants for consistent error handling across endpoints
- wrap_response() utility for creating standard response envelopes
- raise_api_error() helper for raising HTTP exceptions with error envelopes
- to_payload() for turning pipeline dataclasses into JSON-ready dicts

Exception handlers in app.py convert raised errors to ErrorEnvelope format.
"""

import dataclasses
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException

from brandpulse.api.models import MetaModel


# Error Code Constants
VALIDATION_ERROR = "VALIDATION_ERROR"  # Invalid request parameters (422)
NOT_FOUND = "NOT_FOUND"  # Requested resource not found (404)
OPENAI_API_ERROR = "OPENAI_API_ERROR"  # Model call failure (502)
INTERNAL_ERROR = "INTERNAL_ERROR"  # Unexpected server failure (500)


ERROR_STATUS_CODES: Dict[str, int] = {
    VALIDATION_ERROR: 422,
    NOT_FOUND: 404,
    OPENAI_API_ERROR: 502,
    INTERNAL_ERROR: 500,
}


def to_payload(value: Any) -> Any:
    """Convert dataclasses (and lists of them) to plain dicts."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    return value


def wrap_response(data: Any, total: Optional[int] = None) -> Dict[str, Any]:
    """Wrap data in the standard response envelope.

    Returns:
        {
            "data": <data>,
            "meta": {"timestamp": "<ISO 8601 UTC>", "version": "1.0", "total": <if provided>}
        }
    """
    meta = MetaModel(
        timestamp=datetime.now(timezone.utc).isoformat(),
        version="1.0",
        total=total
    )

    return {
        "data": to_payload(data),
        "meta": meta.model_dump(exclude_none=True)
    }


def raise_api_error(code: str, message: str, status_code: Optional[int] = None) -> None:
    """Raise an HTTPException carrying {code, message} for the envelope handlers.

    Example:
        raise_api_error(OPENAI_API_ERROR, "Failed to generate twitter post")
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, 500)

    raise HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message}
    )
