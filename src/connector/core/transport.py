"""Authenticated async transport for the Twenty API.

Twenty exposes three endpoints on one domain:
- /metadata: GraphQL metadata API (objects, fields, options)
- /graphql:  GraphQL data API (records, __type introspection)
- /rest:     REST data API (records by id, lists)

TwentyTransport offers a single call shape for all three and guarantees that
no raw httpx exception or GraphQL error array escapes: everything is
translated into src.connector.core.errors before it is raised. It performs no
retries itself; callers that want retries for idempotent reads wrap it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, field_validator

from src.connector.config import get_settings
from src.connector.core.errors import (
    ConnectorError,
    translate_graphql_errors,
    translate_transport_exception,
)
from src.connector.core.monitoring import track_request

logger = structlog.get_logger(__name__)


class EndpointKind(str, Enum):
    """Which Twenty API a request targets."""

    METADATA = "metadata"
    GRAPHQL = "graphql"
    REST = "rest"


class TwentyConnection(BaseModel):
    """Identity and credentials of one Twenty deployment.

    ``domain`` is the cache identity for discovered schemas, so it is
    normalised (trailing slashes removed) to keep equal deployments equal.
    """

    domain: str
    api_key: str = ""

    @field_validator("domain")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @classmethod
    def from_settings(cls) -> TwentyConnection:
        settings = get_settings()
        return cls(domain=settings.TWENTY_DOMAIN, api_key=settings.TWENTY_API_KEY)


class TwentyTransport:
    """Single outbound call shape to a Twenty deployment.

    Args:
        connection: Domain and API key of the deployment.
        timeout: Per-request timeout in seconds. Defaults to settings.
        http_client: Optional shared httpx.AsyncClient. When omitted a
            short-lived client is opened per request.
    """

    def __init__(
        self,
        connection: TwentyConnection,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.connection = connection
        self._timeout = timeout if timeout is not None else get_settings().HTTP_TIMEOUT_SECONDS
        self._http_client = http_client
        self._headers = {
            "Authorization": f"Bearer {connection.api_key}",
            "Content-Type": "application/json",
        }

    @property
    def domain(self) -> str:
        return self.connection.domain

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client with the configured timeout."""
        return httpx.AsyncClient(headers=self._headers, timeout=self._timeout)

    def _url(self, endpoint: EndpointKind, path: str = "") -> str:
        if endpoint == EndpointKind.REST:
            return f"{self.domain}/rest/{path.lstrip('/')}"
        return f"{self.domain}/{endpoint.value}"

    async def _send(
        self,
        method: str,
        url: str,
        json_body: dict[str, Any] | None,
    ) -> httpx.Response:
        if self._http_client is not None:
            response = await self._http_client.request(
                method, url, json=json_body, headers=self._headers, timeout=self._timeout
            )
        else:
            async with self._client() as client:
                response = await client.request(method, url, json=json_body)
        response.raise_for_status()
        return response

    async def request(
        self,
        endpoint: EndpointKind,
        path_or_query: str,
        variables: dict[str, Any] | None = None,
        method: str | None = None,
    ) -> Any:
        """Perform one authenticated request and return the decoded body.

        For the GraphQL endpoints ``path_or_query`` is the query text and the
        ``data`` member of the response is returned. For REST it is the path
        below ``/rest`` and the full decoded body is returned (an empty dict
        for empty bodies).

        Args:
            endpoint: Target API.
            path_or_query: GraphQL query text or REST path.
            variables: GraphQL variables, or the JSON body for REST writes.
            method: HTTP method. GraphQL always POSTs; REST defaults to GET.

        Returns:
            Decoded JSON payload.

        Raises:
            ConnectorError: Any subclass, translated from the upstream failure.
        """
        if endpoint == EndpointKind.REST:
            http_method = (method or "GET").upper()
            url = self._url(endpoint, path_or_query)
            body = variables
        else:
            http_method = "POST"
            url = self._url(endpoint)
            body = {"query": path_or_query, "variables": variables or {}}

        try:
            with track_request(endpoint.value):
                response = await self._send(http_method, url, body)
                payload = response.json() if response.content else {}
                if endpoint != EndpointKind.REST and isinstance(payload, dict) and payload.get("errors"):
                    raise translate_graphql_errors(payload["errors"], response.status_code)
                if endpoint != EndpointKind.REST and not (
                    isinstance(payload, dict) and isinstance(payload.get("data") or {}, dict)
                ):
                    raise ConnectorError(
                        f"Unexpected GraphQL response body: {type(payload).__name__}",
                        status_code=response.status_code,
                        details={"body": payload},
                    )
        except Exception as exc:
            error = translate_transport_exception(exc)
            logger.warning(
                "transport.request_failed",
                endpoint=endpoint.value,
                method=http_method,
                url=url,
                error_kind=error.kind.value,
                error=error.message,
            )
            if error is exc:
                raise
            raise error from exc

        logger.debug(
            "transport.request_completed",
            endpoint=endpoint.value,
            method=http_method,
            url=url,
            status_code=response.status_code,
        )

        if endpoint == EndpointKind.REST:
            return payload
        return payload.get("data") or {}
