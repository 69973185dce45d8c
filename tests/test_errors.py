"""Unit tests for the connector error taxonomy and its translators.

Tests cover:
- Builtin compatibility of permission/connection/timeout errors
- GraphQL error arrays -> error classes (codes, then message heuristics)
- HTTP status errors -> error classes and messages
- httpx transport exceptions -> connection/timeout errors
"""

from __future__ import annotations

import httpx
import pytest

from src.connector.core.errors import (
    AuthenticationError,
    ConnectorConnectionError,
    ConnectorError,
    ConnectorPermissionError,
    ConnectorTimeoutError,
    ErrorKind,
    MalformedInputError,
    NotFoundError,
    SchemaError,
    ValidationError,
    error_kind,
    translate_graphql_errors,
    translate_http_error,
    translate_transport_exception,
)


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://crm.example.com/graphql")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("error", request=request, response=response)


# ── Hierarchy ──────────────────────────────────────────────────────────────


class TestHierarchy:
    """Tests for the exception classes."""

    def test_attributes(self):
        exc = ValidationError("bad value", status_code=400, details={"field": "x"})
        assert exc.message == "bad value"
        assert exc.status_code == 400
        assert exc.details == {"field": "x"}
        assert str(exc) == "bad value"

    def test_builtin_compatibility(self):
        """Prefixed errors are also the matching builtin exceptions."""
        assert isinstance(ConnectorPermissionError("x"), PermissionError)
        assert isinstance(ConnectorConnectionError("x"), ConnectionError)
        assert isinstance(ConnectorTimeoutError("x"), TimeoutError)

    @pytest.mark.parametrize(
        ("error_cls", "kind"),
        [
            (AuthenticationError, ErrorKind.AUTHENTICATION),
            (NotFoundError, ErrorKind.NOT_FOUND),
            (ValidationError, ErrorKind.VALIDATION),
            (ConnectorPermissionError, ErrorKind.PERMISSION),
            (ConnectorConnectionError, ErrorKind.CONNECTION),
            (ConnectorTimeoutError, ErrorKind.TIMEOUT),
            (SchemaError, ErrorKind.SCHEMA),
            (MalformedInputError, ErrorKind.MALFORMED_INPUT),
        ],
    )
    def test_kinds(self, error_cls, kind):
        exc = error_cls("x")
        assert isinstance(exc, ConnectorError)
        assert error_kind(exc) == kind

    def test_foreign_exception_kind(self):
        assert error_kind(RuntimeError("x")) == ErrorKind.UNKNOWN


# ── GraphQL errors ─────────────────────────────────────────────────────────


class TestTranslateGraphQLErrors:
    """Tests for GraphQL error array translation."""

    def test_code_decides_class(self):
        errors = [{"message": "Token invalid", "extensions": {"code": "UNAUTHENTICATED"}}]

        exc = translate_graphql_errors(errors)

        assert isinstance(exc, AuthenticationError)
        assert exc.message == "GraphQL error: Token invalid"
        assert exc.details == errors

    def test_messages_are_joined(self):
        errors = [
            {"message": "first", "extensions": {"code": "BAD_USER_INPUT"}},
            {"message": "second"},
        ]

        exc = translate_graphql_errors(errors, status_code=200)

        assert isinstance(exc, ValidationError)
        assert exc.message == "GraphQL error: first; second"
        assert exc.status_code == 200

    def test_forbidden_code(self):
        exc = translate_graphql_errors([{"message": "no", "extensions": {"code": "FORBIDDEN"}}])
        assert isinstance(exc, ConnectorPermissionError)

    def test_message_heuristic_without_code(self):
        exc = translate_graphql_errors([{"message": "Record does not exist"}])
        assert isinstance(exc, NotFoundError)

    def test_unrecognised_error_is_generic(self):
        exc = translate_graphql_errors([{"message": "Something odd happened"}])
        assert type(exc) is ConnectorError

    def test_empty_array(self):
        exc = translate_graphql_errors([])
        assert exc.message == "GraphQL error: Unknown GraphQL error"


# ── HTTP errors ────────────────────────────────────────────────────────────


class TestTranslateHttpError:
    """Tests for non-2xx response translation."""

    @pytest.mark.parametrize(
        ("status", "error_cls"),
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (403, ConnectorPermissionError),
            (404, NotFoundError),
            (422, ValidationError),
            (504, ConnectorTimeoutError),
        ],
    )
    def test_status_mapping(self, status, error_cls):
        exc = translate_http_error(_status_error(status, json={"message": "nope"}))
        assert isinstance(exc, error_cls)
        assert exc.status_code == status
        assert exc.message == f"HTTP {status}: nope"

    def test_rest_messages_list(self):
        exc = translate_http_error(
            _status_error(400, json={"messages": ["Invalid UUID", "Bad field"]})
        )
        assert exc.message == "HTTP 400: Invalid UUID; Bad field"

    def test_graphql_errors_in_error_body(self):
        """A GraphQL error code in the body beats the status heuristics."""
        body = {"errors": [{"message": "Forbidden", "extensions": {"code": "FORBIDDEN"}}]}

        exc = translate_http_error(_status_error(500, json=body))

        assert isinstance(exc, ConnectorPermissionError)
        assert exc.status_code == 500

    def test_plain_text_body(self):
        exc = translate_http_error(_status_error(502, text="Bad gateway"))
        assert type(exc) is ConnectorError
        assert exc.message == "HTTP 502: Bad gateway"


# ── Transport exceptions ───────────────────────────────────────────────────


class TestTranslateTransportException:
    """Tests for httpx exception translation."""

    def test_connector_errors_pass_through(self):
        original = NotFoundError("gone")
        assert translate_transport_exception(original) is original

    def test_timeout(self):
        exc = translate_transport_exception(httpx.ReadTimeout("slow"))
        assert isinstance(exc, ConnectorTimeoutError)

    def test_connect_error(self):
        exc = translate_transport_exception(httpx.ConnectError("refused"))
        assert isinstance(exc, ConnectorConnectionError)
        assert "Could not reach Twenty" in exc.message

    def test_status_error_delegates(self):
        exc = translate_transport_exception(_status_error(401, json={"error": "Unauthorized"}))
        assert isinstance(exc, AuthenticationError)

    def test_unexpected_exception(self):
        exc = translate_transport_exception(ValueError("bad json"))
        assert type(exc) is ConnectorError
        assert exc.message == "bad json"
