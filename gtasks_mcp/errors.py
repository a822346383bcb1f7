"""
Error types and the translation of failures into MCP protocol errors.

Upstream failures arrive as ``googleapiclient.errors.HttpError``; local
validation failures as ``pydantic.ValidationError``.
Everything that leaves the dispatcher is an ``McpError``.
"""

import json
import logging
from typing import Optional

from googleapiclient.errors import HttpError
from mcp.shared.exceptions import McpError
from mcp.types import (
    ErrorData,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)
from pydantic import ValidationError

logger = logging.getLogger(__name__)

# ==========================================
# EXCEPTIONS
# ==========================================


class GTasksError(Exception):
    """Base exception for the Google Tasks MCP server."""


class CredentialsNotFoundError(GTasksError):
    """Raised when no usable credentials exist in the environment or on disk."""


class UnknownOperationError(GTasksError):
    """Raised when a tool name does not map to any operation."""


class TaskListEnumerationError(GTasksError):
    """Raised when the task lists themselves cannot be listed."""


# ==========================================
# TRANSLATION
# ==========================================


def mcp_error(code: int, message: str) -> McpError:
    return McpError(ErrorData(code=code, message=message))


def error_text(error: McpError) -> str:
    """Message plus JSON-RPC code, for surfaces that carry text only"""
    return f"{error.error.message} (error code {error.error.code})"


def upstream_message(error: HttpError) -> Optional[str]:
    """Extract ``error.message`` from a Google API error body, if any"""
    content = error.content
    if isinstance(content, bytes):
        content = content.decode('utf-8', errors='replace')
    try:
        data = json.loads(content) if content else None
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get('error')
        if isinstance(err, dict) and err.get('message'):
            return err['message']
    return error.reason or None


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item.get('loc', ())) or "arguments"
        parts.append(f"{field}: {item.get('msg')}")
    return "; ".join(parts)


def translate_error(error: Exception, operation: str) -> McpError:
    """Map an exception raised while performing ``operation`` to an McpError.

    An error that is already an McpError is returned unchanged.
    """
    if isinstance(error, McpError):
        return error

    if isinstance(error, ValidationError):
        return mcp_error(INVALID_PARAMS, f"Invalid parameters for {operation}: {_validation_message(error)}")
    if isinstance(error, UnknownOperationError):
        return mcp_error(METHOD_NOT_FOUND, str(error))

    if isinstance(error, HttpError):
        status = error.resp.status
        message = upstream_message(error)
        if status == 400:
            return mcp_error(INVALID_PARAMS, f"Invalid request parameters during {operation}: {message or 'Unknown error'}")
        if status in (401, 403):
            return mcp_error(INVALID_REQUEST, f"Authentication error during {operation}: {message or 'Access denied'}")
        if status == 404:
            return mcp_error(INVALID_REQUEST, f"Resource not found during {operation}: {message or 'Resource does not exist'}")

    return mcp_error(INTERNAL_ERROR, f"Failed during {operation}: {error}")
