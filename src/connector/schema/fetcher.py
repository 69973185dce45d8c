"""Schema fetcher -- one metadata round trip describing every object and field.

Issues the paginated ``objects`` metadata query (up to 200 objects, each
with up to 200 fields), decodes the two-level edge/node envelope and derives
``is_writable`` from the upstream ``isUIReadOnly`` flag (a missing flag means
writable).

Transient failures (connection, timeout) of this idempotent read are retried
with tenacity; every failure that finally surfaces is already translated into
the connector error taxonomy by the transport.
"""

from __future__ import annotations

from typing import Any

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from src.connector.config import get_settings
from src.connector.core.errors import (
    ConnectorConnectionError,
    ConnectorError,
    ConnectorTimeoutError,
)
from src.connector.core.transport import EndpointKind, TwentyTransport
from src.connector.schema.models import FieldKind, FieldSchema, FieldSource, ObjectSchema

logger = structlog.get_logger(__name__)


def build_schema_query(page_size: int = 200) -> str:
    """Metadata query for all objects and their fields."""
    return f"""
        query GetObjects {{
            objects(paging: {{ first: {page_size} }}) {{
                edges {{
                    node {{
                        id
                        nameSingular
                        namePlural
                        labelSingular
                        labelPlural
                        isCustom
                        isActive
                        isSystem
                        fields(paging: {{ first: {page_size} }}) {{
                            edges {{
                                node {{
                                    id
                                    name
                                    label
                                    type
                                    isNullable
                                    isUIReadOnly
                                    isActive
                                    isSystem
                                    options
                                    relation {{
                                        targetObjectMetadata {{
                                            nameSingular
                                        }}
                                    }}
                                }}
                            }}
                        }}
                    }}
                }}
            }}
        }}
    """


def _edges(connection: Any) -> list[dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    return [edge["node"] for edge in connection.get("edges") or [] if edge and edge.get("node")]


def parse_field(node: dict[str, Any]) -> FieldSchema:
    """Decode one metadata field node."""
    relation = node.get("relation") or {}
    target = (relation.get("targetObjectMetadata") or {}).get("nameSingular")
    return FieldSchema(
        id=node.get("id"),
        name=node["name"],
        label=node.get("label") or node["name"],
        type=FieldKind.from_wire(node.get("type")),
        wire_type=node.get("type"),
        is_nullable=node.get("isNullable") is not False,
        is_writable=node.get("isUIReadOnly") is not True,
        is_active=node.get("isActive") is not False,
        is_system=node.get("isSystem") is True,
        options=node.get("options"),
        relation_target=target,
        source=FieldSource.METADATA,
    )


def parse_object(node: dict[str, Any]) -> ObjectSchema:
    """Decode one metadata object node including its fields."""
    return ObjectSchema(
        id=node.get("id"),
        name_singular=node["nameSingular"],
        name_plural=node["namePlural"],
        label_singular=node.get("labelSingular") or "",
        label_plural=node.get("labelPlural") or "",
        is_custom=node.get("isCustom") is True,
        is_system=node.get("isSystem") is True,
        is_active=node.get("isActive") is not False,
        fields=[parse_field(f) for f in _edges(node.get("fields"))],
    )


def parse_schema_response(data: dict[str, Any]) -> list[ObjectSchema]:
    """Decode the ``objects`` envelope of a metadata response.

    Raises:
        ConnectorError: If the response does not carry an ``objects`` envelope.
    """
    if not isinstance(data, dict) or not isinstance(data.get("objects"), dict):
        raise ConnectorError("Metadata response did not contain an objects list", details=data)
    return [parse_object(node) for node in _edges(data["objects"])]


class SchemaFetcher:
    """Fetches the full object/field schema of one deployment.

    Args:
        page_size: Objects per query and fields per object. Defaults to settings.
        max_attempts: Attempts for transient failures. Defaults to settings.
        wait: tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        page_size: int | None = None,
        max_attempts: int | None = None,
        wait: wait_base | None = None,
    ) -> None:
        settings = get_settings()
        self._page_size = page_size or settings.SCHEMA_PAGE_SIZE
        self._max_attempts = max_attempts or settings.SCHEMA_FETCH_MAX_ATTEMPTS
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    async def fetch_schema(self, transport: TwentyTransport) -> list[ObjectSchema]:
        """Fetch and decode every object of the transport's deployment."""
        query = build_schema_query(self._page_size)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type((ConnectorConnectionError, ConnectorTimeoutError)),
            reraise=True,
        ):
            with attempt:
                data = await transport.request(EndpointKind.METADATA, query)

        objects = parse_schema_response(data)
        logger.info(
            "schema_fetcher.fetched",
            domain=transport.domain,
            objects=len(objects),
            fields=sum(len(obj.fields) for obj in objects),
        )
        return objects
