"""Record adapter abstract base class -- the interface a workflow host drives.

A host supplies a resource name (object ``nameSingular``), an operation and a
flat ``field -> value`` map; composite values use ``<field>_<subField>`` keys.
TwentyConnector is the implementation for Twenty deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.connector.operations.schemas import (
    BulkItemResult,
    DatabaseSchema,
    ResourceChoice,
    UpsertMode,
    UpsertResult,
)
from src.connector.schema.models import FieldIntent, FieldSchema


class RecordAdapter(ABC):
    """Abstract interface for record operations on a dynamic-schema CRM.

    Methods:
        create_record / update_record / get_record / delete_record / list_records:
            Single-record CRUD; errors propagate to the caller.
        upsert_record: Update the matching record or create a new one.
        bulk_create / bulk_update / bulk_get / bulk_delete / bulk_upsert:
            Sequential batches with one isolated result per item.
        get_schema: Merged, intent-filtered field list of one object.
        get_database_schema: Schema report of one object.
        list_resources: Objects available to the host.
        refresh_schema: Drop and refetch the cached schema.
    """

    @abstractmethod
    async def create_record(self, object_name: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create a record from a flat field map, return the created record."""
        ...

    @abstractmethod
    async def update_record(
        self, object_name: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """Update the given fields of a record, return the updated record."""
        ...

    @abstractmethod
    async def get_record(self, object_name: str, record_id: str) -> dict[str, Any]:
        """Fetch one record by id."""
        ...

    @abstractmethod
    async def delete_record(self, object_name: str, record_id: str) -> dict[str, Any]:
        """Delete one record by id."""
        ...

    @abstractmethod
    async def list_records(
        self, object_name: str, limit: int | None = None, search: str | None = None
    ) -> list[dict[str, Any]]:
        """List up to ``limit`` records, optionally filtered by a search term."""
        ...

    @abstractmethod
    async def upsert_record(
        self,
        object_name: str,
        fields: dict[str, Any],
        mode: UpsertMode = UpsertMode.ID,
        record_id: str | None = None,
        match_field: str | None = None,
        match_value: Any = None,
    ) -> UpsertResult:
        """Update the matching record, or create one when none matches."""
        ...

    @abstractmethod
    async def bulk_create(self, object_name: str, items: list[dict[str, Any]]) -> list[BulkItemResult]:
        ...

    @abstractmethod
    async def bulk_update(self, object_name: str, items: list[dict[str, Any]]) -> list[BulkItemResult]:
        ...

    @abstractmethod
    async def bulk_get(self, object_name: str, record_ids: list[str]) -> list[BulkItemResult]:
        ...

    @abstractmethod
    async def bulk_delete(self, object_name: str, record_ids: list[str]) -> list[BulkItemResult]:
        ...

    @abstractmethod
    async def bulk_upsert(
        self,
        object_name: str,
        items: list[dict[str, Any]],
        mode: UpsertMode = UpsertMode.FIELD,
        match_field: str | None = None,
    ) -> list[BulkItemResult]:
        ...

    @abstractmethod
    async def get_schema(
        self,
        object_name: str,
        intent: FieldIntent = FieldIntent.READ,
        include_system: bool = True,
    ) -> list[FieldSchema]:
        """Merged field list of one object for the given intent."""
        ...

    @abstractmethod
    async def get_database_schema(self, object_name: str, **options: Any) -> DatabaseSchema:
        """Schema report of one object."""
        ...

    @abstractmethod
    async def list_resources(self, include_system: bool = False) -> list[ResourceChoice]:
        """Objects the host can operate on."""
        ...

    @abstractmethod
    async def refresh_schema(self) -> int:
        """Refetch the schema, return the number of objects discovered."""
        ...
