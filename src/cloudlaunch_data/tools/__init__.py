"""MCP tool definitions."""

from datetime import datetime, timezone
from typing import Any

from cloudlaunch_data.exceptions import DataTransferError, StoreError

__all__ = ["create_error_response", "error_response_for"]


def create_error_response(
    message: str,
    error_type: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create standardized error response for MCP tools.

    Args:
        message: User-friendly error message
        error_type: Error type name (e.g., ValidationError, FormatError)
        details: Optional additional details

    Returns:
        Structured error response dictionary
    """
    response = {
        "error": True,
        "message": message,
        "error_type": error_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        response["details"] = details
    return response


def error_response_for(error: Exception) -> dict[str, Any]:
    """Map a pipeline, validation or I/O exception to an error response.

    StoreError keeps the offending entity type and record id as details;
    other pipeline errors use their class name as the error type.
    """
    if isinstance(error, StoreError):
        return create_error_response(
            message=str(error),
            error_type="StoreError",
            details={"entity_type": error.entity_type, "record_id": error.record_id},
        )
    if isinstance(error, DataTransferError):
        return create_error_response(message=str(error), error_type=type(error).__name__)
    if isinstance(error, ValueError):
        return create_error_response(message=str(error), error_type="ValidationError")
    return create_error_response(message=str(error), error_type="IOError")
