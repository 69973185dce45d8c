"""Twenty connector -- RecordAdapter implementation over a discovered schema.

Every operation resolves the target object through the SchemaCache, reshapes
flat caller values with the composite transform, synthesizes the GraphQL
request and sends it through the TwentyTransport. Reads return the decoded
JSON as-is.

Key implementation details:
- Single-record operations surface errors immediately; nothing is retried
- Bulk operations run sequentially through BulkExecutor with per-item isolation
- bulk_get, bulk_delete, upsert existence checks and sample records use the
  REST API (``/rest/<plural>/<id>``), everything else GraphQL
- get_database_schema always refetches the schema
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from src.connector.config import get_settings
from src.connector.core.errors import ConnectorError, MalformedInputError, NotFoundError
from src.connector.core.transport import EndpointKind, TwentyConnection, TwentyTransport
from src.connector.operations.adapter import RecordAdapter
from src.connector.operations.executor import BulkExecutor, require_list
from src.connector.operations.queries import (
    GraphQLRequest,
    build_create_mutation,
    build_delete_mutation,
    build_get_query,
    build_list_query,
    build_update_mutation,
    bulk_operation_name,
    collection_path,
    record_path,
)
from src.connector.operations.schemas import (
    BulkItemResult,
    BulkUpdateItem,
    BulkUpsertItem,
    DatabaseField,
    DatabaseSchema,
    FormatDetails,
    ResourceChoice,
    SchemaSummary,
    UpsertAction,
    UpsertMode,
    UpsertResult,
)
from src.connector.schema.cache import SchemaCache
from src.connector.schema.formats import get_format_spec
from src.connector.schema.merger import SchemaMerger
from src.connector.schema.models import FieldIntent, FieldSchema, ObjectSchema
from src.connector.schema.transform import is_absent, split_flat_key, unflatten

logger = structlog.get_logger(__name__)


def _canonical(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return value


def _field_value(record: dict[str, Any], field_name: str) -> Any:
    """Value of ``field_name`` in a record; ``parent_sub`` keys reach into composites."""
    if field_name in record:
        return record[field_name]
    parent, sub = split_flat_key(field_name)
    nested = record.get(parent)
    if sub is not None and isinstance(nested, dict):
        return nested.get(sub)
    return None


def _rest_data(response: Any, path: str) -> dict[str, Any]:
    """``data`` member of a REST response body; anything but an object is rejected."""
    data = response.get("data") if isinstance(response, dict) else None
    if data is None and isinstance(response, dict):
        return {}
    if not isinstance(data, dict):
        raise ConnectorError(
            f"Unexpected REST response body for {path}",
            details={"path": path, "body": response},
        )
    return data


def _edge_nodes(connection: Any) -> list[dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    return [edge["node"] for edge in connection.get("edges") or [] if edge and edge.get("node")]


class TwentyConnector(RecordAdapter):
    """Record operations against one Twenty deployment.

    Args:
        transport: Authenticated transport of the deployment.
        cache: Schema cache. Share one instance between connectors of the
            same process to share discovered schemas.
        merger: Schema merger. Defaults to one built on ``cache``.
        executor: Bulk executor.
        default_list_limit: Limit used by list_records when none is given.
    """

    def __init__(
        self,
        transport: TwentyTransport,
        cache: SchemaCache | None = None,
        merger: SchemaMerger | None = None,
        executor: BulkExecutor | None = None,
        default_list_limit: int | None = None,
    ) -> None:
        self._transport = transport
        self._cache = cache or SchemaCache()
        self._merger = merger or SchemaMerger(self._cache)
        self._executor = executor or BulkExecutor()
        self._default_list_limit = default_list_limit or get_settings().DEFAULT_LIST_LIMIT

    @classmethod
    def from_settings(cls, cache: SchemaCache | None = None) -> TwentyConnector:
        """Connector for the deployment configured in settings."""
        return cls(TwentyTransport(TwentyConnection.from_settings()), cache=cache)

    @property
    def transport(self) -> TwentyTransport:
        return self._transport

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    # ── Helpers ─────────────────────────────────────────────────────────────

    async def _object(self, object_name: str, force_refresh: bool = False) -> ObjectSchema:
        return await self._cache.get_object(self._transport, object_name, force_refresh)

    def _payload(self, obj: ObjectSchema, fields: Any) -> dict[str, Any]:
        if not isinstance(fields, dict):
            raise MalformedInputError(
                f"Record fields must be a mapping, got {type(fields).__name__}",
                details={"object": obj.name_singular},
            )
        return unflatten(fields, obj.fields, resource=obj.name_singular)

    async def _graphql(self, request: GraphQLRequest) -> dict[str, Any]:
        return await self._transport.request(EndpointKind.GRAPHQL, request.query, request.variables)

    async def _create(
        self, obj: ObjectSchema, fields: dict[str, Any], operation_name: str | None = None
    ) -> dict[str, Any]:
        request = build_create_mutation(obj, self._payload(obj, fields), operation_name)
        data = await self._graphql(request)
        return data.get(f"create{obj.type_name}") or {}

    async def _update(
        self,
        obj: ObjectSchema,
        record_id: str,
        fields: dict[str, Any],
        operation_name: str | None = None,
    ) -> dict[str, Any]:
        request = build_update_mutation(obj, record_id, self._payload(obj, fields), operation_name)
        data = await self._graphql(request)
        return data.get(f"update{obj.type_name}") or {}

    async def _rest_get(self, obj: ObjectSchema, record_id: str) -> dict[str, Any]:
        path = record_path(obj, record_id)
        response = await self._transport.request(EndpointKind.REST, path)
        record = _rest_data(response, path).get(obj.name_singular)
        if record is not None and not isinstance(record, dict):
            raise ConnectorError(
                f"Unexpected REST response body for {path}",
                details={"path": path, "body": response},
            )
        if not record:
            raise NotFoundError(
                f'{obj.label_singular or obj.name_singular} record "{record_id}" not found',
                details={"object": obj.name_singular, "id": record_id},
            )
        return record

    async def _rest_list(self, obj: ObjectSchema, limit: int | None = None) -> list[dict[str, Any]]:
        path = collection_path(obj, limit)
        response = await self._transport.request(EndpointKind.REST, path)
        records = _rest_data(response, path).get(obj.name_plural)
        if not isinstance(records, list):
            return []
        return [record for record in records if isinstance(record, dict)]

    async def _record_exists(self, obj: ObjectSchema, record_id: str) -> bool:
        try:
            await self._rest_get(obj, record_id)
        except NotFoundError:
            return False
        return True

    async def _find_by_field(
        self, obj: ObjectSchema, match_field: str, match_value: Any
    ) -> dict[str, Any] | None:
        wanted = _canonical(match_value)
        for record in await self._rest_list(obj):
            if _canonical(_field_value(record, match_field)) == wanted and record.get("id"):
                return record
        return None

    async def _upsert(
        self,
        obj: ObjectSchema,
        fields: dict[str, Any],
        mode: UpsertMode,
        record_id: str | None = None,
        match_field: str | None = None,
        match_value: Any = None,
    ) -> UpsertResult:
        if mode == UpsertMode.ID:
            if not record_id:
                raise MalformedInputError("Upsert by id requires a record id")
            existing_id = record_id if await self._record_exists(obj, record_id) else None
        else:
            if not match_field or match_value is None:
                raise MalformedInputError(
                    "Upsert by field requires a match field and a match value"
                )
            match = await self._find_by_field(obj, match_field, match_value)
            existing_id = match["id"] if match else None

        if existing_id:
            record = await self._update(obj, existing_id, fields)
            action = UpsertAction.UPDATED
        else:
            record = await self._create(obj, fields)
            action = UpsertAction.CREATED

        logger.info(
            "twenty.record_upserted",
            object=obj.name_singular,
            mode=mode.value,
            action=action.value,
            record_id=record.get("id") if isinstance(record, dict) else None,
        )
        return UpsertResult(record=record, action=action)

    # ── Single-record operations ────────────────────────────────────────────

    async def create_record(self, object_name: str, fields: dict[str, Any]) -> dict[str, Any]:
        obj = await self._object(object_name)
        record = await self._create(obj, fields)
        logger.info("twenty.record_created", object=obj.name_singular, record_id=record.get("id"))
        return record

    async def update_record(
        self, object_name: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        obj = await self._object(object_name)
        record = await self._update(obj, record_id, fields)
        logger.info("twenty.record_updated", object=obj.name_singular, record_id=record_id)
        return record

    async def get_record(self, object_name: str, record_id: str) -> dict[str, Any]:
        """Fetch one record by id.

        Raises:
            NotFoundError: If no record has the id.
        """
        obj = await self._object(object_name)
        data = await self._graphql(build_get_query(obj, record_id))
        nodes = _edge_nodes(data.get(obj.name_plural))
        if not nodes:
            raise NotFoundError(
                f'{obj.label_singular or obj.name_singular} record "{record_id}" not found',
                details={"object": obj.name_singular, "id": record_id},
            )
        return nodes[0]

    async def delete_record(self, object_name: str, record_id: str) -> dict[str, Any]:
        obj = await self._object(object_name)
        data = await self._graphql(build_delete_mutation(obj, record_id))
        logger.info("twenty.record_deleted", object=obj.name_singular, record_id=record_id)
        return data.get(f"delete{obj.type_name}") or {"id": record_id}

    async def list_records(
        self, object_name: str, limit: int | None = None, search: str | None = None
    ) -> list[dict[str, Any]]:
        if limit is None:
            limit = self._default_list_limit
        if limit < 1:
            raise MalformedInputError(f"List limit must be positive, got {limit}")
        obj = await self._object(object_name)
        data = await self._graphql(build_list_query(obj, limit, search))
        return _edge_nodes(data.get(obj.name_plural))

    async def upsert_record(
        self,
        object_name: str,
        fields: dict[str, Any],
        mode: UpsertMode = UpsertMode.ID,
        record_id: str | None = None,
        match_field: str | None = None,
        match_value: Any = None,
    ) -> UpsertResult:
        obj = await self._object(object_name)
        return await self._upsert(obj, fields, mode, record_id, match_field, match_value)

    # ── Bulk operations ─────────────────────────────────────────────────────

    async def bulk_create(self, object_name: str, items: list[dict[str, Any]]) -> list[BulkItemResult]:
        records = require_list(items, dict, "create")
        obj = await self._object(object_name)

        async def create_one(index: int, fields: dict[str, Any]) -> BulkItemResult:
            record = await self._create(
                obj, fields, operation_name=bulk_operation_name(obj, "Create", index)
            )
            return BulkItemResult(success=True, record=record, id=record.get("id"))

        return await self._executor.run(records, create_one, operation="bulk_create")

    async def bulk_update(self, object_name: str, items: list[dict[str, Any]]) -> list[BulkItemResult]:
        raw = require_list(items, (dict, BulkUpdateItem), "update")
        updates = [_parse_item(BulkUpdateItem, item, index, "update") for index, item in enumerate(raw)]
        obj = await self._object(object_name)

        async def update_one(index: int, item: BulkUpdateItem) -> BulkItemResult:
            record = await self._update(
                obj, item.id, item.fields, operation_name=bulk_operation_name(obj, "Update", index)
            )
            return BulkItemResult(success=True, record=record, id=item.id)

        return await self._executor.run(
            updates, update_one, operation="bulk_update", id_of=lambda item: item.id
        )

    async def bulk_get(self, object_name: str, record_ids: list[str]) -> list[BulkItemResult]:
        ids = require_list(record_ids, str, "get")
        obj = await self._object(object_name)

        async def get_one(index: int, record_id: str) -> BulkItemResult:
            record = await self._rest_get(obj, record_id)
            return BulkItemResult(success=True, record=record, id=record_id)

        return await self._executor.run(
            ids, get_one, operation="bulk_get", id_of=lambda record_id: record_id
        )

    async def bulk_delete(self, object_name: str, record_ids: list[str]) -> list[BulkItemResult]:
        ids = require_list(record_ids, str, "delete")
        obj = await self._object(object_name)

        async def delete_one(index: int, record_id: str) -> BulkItemResult:
            path = record_path(obj, record_id)
            response = await self._transport.request(EndpointKind.REST, path, method="DELETE")
            data = _rest_data(response, path)
            deleted = data.get(obj.name_singular) or data
            deleted_id = deleted.get("id") if isinstance(deleted, dict) else None
            return BulkItemResult(success=True, id=deleted_id or record_id)

        return await self._executor.run(
            ids, delete_one, operation="bulk_delete", id_of=lambda record_id: record_id
        )

    async def bulk_upsert(
        self,
        object_name: str,
        items: list[dict[str, Any]],
        mode: UpsertMode = UpsertMode.FIELD,
        match_field: str | None = None,
    ) -> list[BulkItemResult]:
        raw = require_list(items, (dict, BulkUpsertItem), "upsert")
        upserts = [_parse_item(BulkUpsertItem, item, index, "upsert") for index, item in enumerate(raw)]
        if mode == UpsertMode.FIELD and not match_field:
            raise MalformedInputError("Bulk upsert by field requires a match field")
        obj = await self._object(object_name)

        async def upsert_one(index: int, item: BulkUpsertItem) -> BulkItemResult:
            if mode == UpsertMode.ID:
                record_id = None if is_absent(item.match_value) else str(item.match_value)
                result = await self._upsert(obj, item.fields, mode, record_id=record_id)
            else:
                result = await self._upsert(
                    obj, item.fields, mode, match_field=match_field, match_value=item.match_value
                )
            record = result.record if isinstance(result.record, dict) else {}
            return BulkItemResult(
                success=True, record=result.record, id=record.get("id"), action=result.action
            )

        return await self._executor.run(upserts, upsert_one, operation="bulk_upsert")

    # ── Schema operations ───────────────────────────────────────────────────

    async def get_schema(
        self,
        object_name: str,
        intent: FieldIntent = FieldIntent.READ,
        include_system: bool = True,
    ) -> list[FieldSchema]:
        return await self._merger.merged_fields(
            self._transport, object_name, intent=intent, include_system=include_system
        )

    async def get_database_schema(
        self,
        object_name: str,
        simplify: bool = False,
        include_format_details: bool = True,
        include_system_fields: bool = False,
        include_inactive_fields: bool = False,
        include_read_only_fields: bool = False,
        sample_size: int = 2,
    ) -> DatabaseSchema:
        """Schema report of one object from a freshly fetched schema.

        Sample records are best effort: a failure to fetch them is logged
        and the report is returned without samples.
        """
        obj = await self._object(object_name, force_refresh=True)

        samples: list[dict[str, Any]] = []
        if sample_size > 0:
            try:
                samples = await self._rest_list(obj, limit=sample_size)
            except ConnectorError as exc:
                logger.warning(
                    "twenty.sample_records_failed",
                    object=obj.name_singular,
                    error_kind=exc.kind.value,
                    error=exc.message,
                )

        selected = [
            field
            for field in obj.fields
            if (include_system_fields or not field.is_system)
            and (include_inactive_fields or field.is_active)
            and (include_read_only_fields or field.is_writable)
        ]
        fields = [_database_field(field, simplify, include_format_details) for field in selected]

        report = DatabaseSchema(
            database=obj.label_singular,
            database_name=obj.name_singular,
            database_name_plural=obj.name_plural,
            is_custom=obj.is_custom,
            is_system=obj.is_system,
            total_fields=len(fields),
            fields=fields,
        )
        if samples:
            report.sample_data = samples
            report.sample_count = len(samples)
        if not simplify:
            report.summary = _summarize(selected, fields, include_format_details)
        return report

    async def list_resources(self, include_system: bool = False) -> list[ResourceChoice]:
        """Active objects, custom ones first, each group sorted by label."""
        schema = await self._cache.get_schema(self._transport)
        objects = [
            obj
            for obj in schema.objects
            if obj.is_active and (include_system or not obj.is_system)
        ]
        objects.sort(key=lambda obj: (not obj.is_custom, (obj.label_singular or obj.name_singular).lower()))
        return [
            ResourceChoice(
                name=obj.label_singular or obj.name_singular,
                value=obj.name_singular,
                description="Custom object" if obj.is_custom else "Standard object",
                is_custom=obj.is_custom,
            )
            for obj in objects
        ]

    async def refresh_schema(self) -> int:
        schema = await self._cache.get_schema(self._transport, force_refresh=True)
        logger.info("twenty.schema_refreshed", domain=schema.domain, objects=len(schema.objects))
        return len(schema.objects)


# ── Module helpers ──────────────────────────────────────────────────────────


def _parse_item(model: type, item: Any, index: int, what: str) -> Any:
    if isinstance(item, model):
        return item
    try:
        return model.model_validate(item)
    except PydanticValidationError as exc:
        raise MalformedInputError(
            f"Bulk {what} item {index} is malformed",
            details={"index": index, "errors": exc.errors()},
        ) from exc


def _database_field(field: FieldSchema, simplify: bool, include_format_details: bool) -> DatabaseField:
    format_details = None
    if include_format_details:
        spec = get_format_spec(field.type.value)
        if spec is not None:
            format_details = FormatDetails.model_validate(spec.model_dump())

    if simplify:
        options = None
        if field.options:
            options = [{"label": opt.label, "value": opt.value} for opt in field.options]
        return DatabaseField(
            name=field.name,
            label=field.label,
            type=field.type.value,
            required=not field.is_nullable,
            readonly=not field.is_writable,
            options=options,
            format_details=format_details,
        )

    return DatabaseField(
        id=field.id,
        name=field.name,
        label=field.label,
        type=field.type.value,
        is_nullable=field.is_nullable,
        is_writable=field.is_writable,
        is_active=field.is_active,
        is_system=field.is_system,
        options=[opt.model_dump() for opt in field.options],
        format_details=format_details,
    )


def _summarize(
    selected: list[FieldSchema],
    fields: list[DatabaseField],
    include_format_details: bool,
) -> SchemaSummary:
    field_types: dict[str, int] = {}
    for field in selected:
        field_types[field.type.value] = field_types.get(field.type.value, 0) + 1

    return SchemaSummary(
        total_fields=len(selected),
        required_fields=sum(1 for f in selected if not f.is_nullable),
        optional_fields=sum(1 for f in selected if f.is_nullable),
        readonly_fields=sum(1 for f in selected if not f.is_writable),
        writable_fields=sum(1 for f in selected if f.is_writable),
        system_fields=sum(1 for f in selected if f.is_system),
        custom_fields=sum(1 for f in selected if not f.is_system),
        field_types=field_types,
        fields_with_format_details=(
            sum(1 for f in fields if f.format_details is not None) if include_format_details else None
        ),
    )
