"""Error taxonomy for the Twenty connector and translation of upstream failures.

Every component that talks to the Twenty API translates what it receives
(HTTP status codes, GraphQL error arrays, httpx transport exceptions) into
one of the exceptions below before it crosses the connector boundary:

- AuthenticationError: upstream reports the caller as unauthenticated
- NotFoundError: record or object absent
- ValidationError: upstream rejects a value
- ConnectorPermissionError: forbidden
- ConnectorConnectionError: network unreachable
- ConnectorTimeoutError: request timed out
- SchemaError: object or field name unknown to the discovered schema
- MalformedInputError: caller-supplied bulk payload is not the expected shape

The permission, connection and timeout errors also subclass the matching
builtins so generic ``except TimeoutError`` handlers keep working.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

import httpx


class ErrorKind(str, Enum):
    """Stable error category reported in bulk result slots."""

    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    PERMISSION = "permission"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    SCHEMA = "schema"
    MALFORMED_INPUT = "malformed_input"
    UNKNOWN = "unknown"


class ConnectorError(Exception):
    """Base class for every error raised by the connector.

    Attributes:
        message: Human-readable description of the failure.
        status_code: HTTP status code when the failure came from a response.
        details: Raw upstream error payload, kept for debugging.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class AuthenticationError(ConnectorError):
    kind = ErrorKind.AUTHENTICATION


class NotFoundError(ConnectorError):
    kind = ErrorKind.NOT_FOUND


class ValidationError(ConnectorError):
    kind = ErrorKind.VALIDATION


class ConnectorPermissionError(ConnectorError, PermissionError):
    kind = ErrorKind.PERMISSION


class ConnectorConnectionError(ConnectorError, ConnectionError):
    kind = ErrorKind.CONNECTION


class ConnectorTimeoutError(ConnectorError, TimeoutError):
    kind = ErrorKind.TIMEOUT


class SchemaError(ConnectorError):
    kind = ErrorKind.SCHEMA


class MalformedInputError(ConnectorError):
    kind = ErrorKind.MALFORMED_INPUT


# ── Translation ─────────────────────────────────────────────────────────────

_STATUS_ERRORS: dict[int, type[ConnectorError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: ConnectorPermissionError,
    404: NotFoundError,
    408: ConnectorTimeoutError,
    422: ValidationError,
    504: ConnectorTimeoutError,
}

_GRAPHQL_CODE_ERRORS: dict[str, type[ConnectorError]] = {
    "UNAUTHENTICATED": AuthenticationError,
    "FORBIDDEN": ConnectorPermissionError,
    "NOT_FOUND": NotFoundError,
    "BAD_USER_INPUT": ValidationError,
    "GRAPHQL_VALIDATION_FAILED": ValidationError,
    "BAD_REQUEST": ValidationError,
}


def _error_class_for_message(message: str) -> type[ConnectorError]:
    lowered = message.lower()
    if "unauthenticated" in lowered or "invalid token" in lowered:
        return AuthenticationError
    if "forbidden" in lowered or "permission" in lowered:
        return ConnectorPermissionError
    if "not found" in lowered or "does not exist" in lowered:
        return NotFoundError
    if "invalid" in lowered or "must be" in lowered:
        return ValidationError
    return ConnectorError


def translate_graphql_errors(
    errors: list[dict[str, Any]],
    status_code: int | None = None,
) -> ConnectorError:
    """Collapse a GraphQL ``errors`` array into one connector error.

    The first error carrying a recognised ``extensions.code`` decides the
    error class; otherwise the message text is inspected. All messages are
    joined into the human-readable description.

    Args:
        errors: The decoded ``errors`` array of a GraphQL response.
        status_code: HTTP status of the response, if any.

    Returns:
        A ConnectorError subclass instance (not raised).
    """
    messages = [str(err.get("message", "Unknown GraphQL error")) for err in errors] or [
        "Unknown GraphQL error"
    ]

    error_cls: type[ConnectorError] | None = None
    for err in errors:
        code = (err.get("extensions") or {}).get("code")
        if code in _GRAPHQL_CODE_ERRORS:
            error_cls = _GRAPHQL_CODE_ERRORS[code]
            break
    if error_cls is None:
        error_cls = _error_class_for_message(messages[0])

    return error_cls(
        f"GraphQL error: {'; '.join(messages)}",
        status_code=status_code,
        details=errors,
    )


def _extract_response_message(response: httpx.Response) -> tuple[str, Any]:
    """Pull a readable message out of an error response body."""
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        text = response.text.strip()
        return (text or response.reason_phrase or "Request failed"), None

    if isinstance(body, dict):
        if isinstance(body.get("errors"), list) and body["errors"]:
            first = body["errors"][0]
            if isinstance(first, dict):
                return str(first.get("message", first)), body
            return str(first), body
        messages = body.get("messages")
        if isinstance(messages, list) and messages:
            return "; ".join(str(m) for m in messages), body
        if body.get("message"):
            return str(body["message"]), body
        if body.get("error"):
            return str(body["error"]), body
    return json.dumps(body), body


def translate_http_error(exc: httpx.HTTPStatusError) -> ConnectorError:
    """Map a non-2xx response onto the connector error taxonomy."""
    response = exc.response
    status = response.status_code
    message, details = _extract_response_message(response)

    if isinstance(details, dict) and isinstance(details.get("errors"), list):
        translated = translate_graphql_errors(details["errors"], status_code=status)
        if type(translated) is not ConnectorError:
            return translated

    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = _error_class_for_message(message)
    return error_cls(f"HTTP {status}: {message}", status_code=status, details=details)


def translate_transport_exception(exc: Exception) -> ConnectorError:
    """Map any exception raised while talking to Twenty onto the taxonomy.

    ConnectorErrors pass through untouched so translation is idempotent.
    """
    if isinstance(exc, ConnectorError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        return translate_http_error(exc)
    if isinstance(exc, httpx.TimeoutException):
        return ConnectorTimeoutError(f"Request to Twenty timed out: {exc}")
    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
        return ConnectorConnectionError(f"Could not reach Twenty: {exc}")
    if isinstance(exc, httpx.HTTPError):
        return ConnectorError(f"HTTP error while calling Twenty: {exc}")
    return ConnectorError(str(exc) or exc.__class__.__name__)


def error_kind(exc: Exception) -> ErrorKind:
    """Return the ErrorKind of any exception (UNKNOWN for foreign ones)."""
    if isinstance(exc, ConnectorError):
        return exc.kind
    return ErrorKind.UNKNOWN
