"""Response envelopes shared by the MCP tools and the dashboard."""

from typing import Any, Dict, List, Optional

from agent_network.models.graph_model import UnknownNodeError


def is_success(result: Dict[str, Any]) -> bool:
    """Check whether an envelope reports success."""
    return bool(result.get("ok"))


def success_response(
    data: Any,
    warnings: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        data: The response data
        warnings: Optional list of warning messages (e.g. layout fallbacks)

    Returns:
        ``{"ok": True, "data": ...}``
    """
    response = {
        "ok": True,
        "data": data
    }

    if warnings:
        response["warnings"] = warnings

    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create an error response envelope.

    Args:
        message: Error message
        code: Optional error code (``UNKNOWN_AGENT``, ``INVALID_ARGUMENT``...)
        details: Optional error details

    Returns:
        ``{"ok": False, "error": {...}}``
    """
    error = {"message": message}

    if code:
        error["code"] = code

    if details:
        error["details"] = details

    return {
        "ok": False,
        "error": error
    }


def exception_response(exc: Exception) -> Dict[str, Any]:
    """Map an exception raised by a handler to an error envelope."""
    if isinstance(exc, UnknownNodeError):
        return error_response(
            f"Agent {exc.node_id} not found",
            code="UNKNOWN_AGENT",
            details={"node_id": exc.node_id},
        )
    if isinstance(exc, (ValueError, TypeError)):
        return error_response(str(exc), code="INVALID_ARGUMENT")
    return error_response(str(exc), code="TOOL_ERROR")
