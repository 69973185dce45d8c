"""Dual-source schema merger -- metadata fields overlaid on introspected ones.

For one object the merger combines:
- metadata-sourced fields from the SchemaCache (rich: labels, options,
  writability), and
- introspection-sourced fields from the data API's ``__type`` schema
  (complete: includes built-in enumerations the metadata API omits).

Merge rule: introspection fields are inserted first, then metadata fields
insert or overwrite by name. Metadata therefore always wins on collision and
introspection only fills gaps.

Presentation order: ``name`` first, then the standard fields (id, createdAt,
updatedAt, deletedAt), then everything else; alphabetical by label within a
group.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

import structlog
from pydantic import BaseModel

from src.connector.core.errors import ConnectorError
from src.connector.core.transport import TwentyTransport
from src.connector.schema.cache import SchemaCache
from src.connector.schema.introspection import (
    enum_name_of,
    fetch_enum_values,
    introspect_type,
)
from src.connector.schema.models import FieldIntent, FieldKind, FieldOption, FieldSchema

logger = structlog.get_logger(__name__)

STANDARD_FIELDS: tuple[str, ...] = ("id", "createdAt", "updatedAt", "deletedAt")

_SELECT_KINDS = frozenset({FieldKind.SELECT, FieldKind.MULTI_SELECT})

IntrospectFn = Callable[[TwentyTransport, str], Awaitable[list[FieldSchema]]]
EnumValuesFn = Callable[[TwentyTransport, str], Awaitable[list[FieldOption]]]


class FieldChoice(BaseModel):
    """One entry of a host field picker."""

    name: str
    value: str
    description: str = ""


def merge_fields(
    metadata_fields: Iterable[FieldSchema],
    introspected_fields: Iterable[FieldSchema],
) -> list[FieldSchema]:
    """Merge both sources by field name; metadata overwrites introspection."""
    merged: dict[str, FieldSchema] = {}
    for field in introspected_fields:
        merged[field.name] = field
    for field in metadata_fields:
        merged[field.name] = field
    return list(merged.values())


def filter_fields(
    fields: Iterable[FieldSchema],
    intent: FieldIntent = FieldIntent.READ,
    include_system: bool = True,
) -> list[FieldSchema]:
    """Drop inactive fields, non-writable ones for WRITE, system ones on request."""
    result = []
    for field in fields:
        if field.is_active is False:
            continue
        if intent == FieldIntent.WRITE and not field.is_writable:
            continue
        if not include_system and field.is_system:
            continue
        result.append(field)
    return result


def _sort_key(field: FieldSchema) -> tuple[int, str, str]:
    if field.name == "name":
        group = 0
    elif field.name in STANDARD_FIELDS:
        group = 1
    else:
        group = 2
    return group, field.display_label.lower(), field.name


def sort_fields(fields: Iterable[FieldSchema]) -> list[FieldSchema]:
    return sorted(fields, key=_sort_key)


class SchemaMerger:
    """Builds the merged, filtered, ordered field list of one object.

    Args:
        cache: Source of metadata-sourced object schemas.
        introspect: Coroutine returning introspected fields for a type name.
        enum_values: Coroutine returning the values of an enum type.
    """

    def __init__(
        self,
        cache: SchemaCache,
        introspect: IntrospectFn = introspect_type,
        enum_values: EnumValuesFn = fetch_enum_values,
    ) -> None:
        self._cache = cache
        self._introspect = introspect
        self._enum_values = enum_values

    async def _introspected(self, transport: TwentyTransport, type_name: str) -> list[FieldSchema]:
        # Introspection only fills gaps; without it the metadata fields still stand.
        try:
            return await self._introspect(transport, type_name)
        except ConnectorError as exc:
            logger.warning(
                "schema_merger.introspection_failed",
                type_name=type_name,
                error_kind=exc.kind.value,
                error=exc.message,
            )
            return []

    async def merged_fields(
        self,
        transport: TwentyTransport,
        object_name: str,
        intent: FieldIntent = FieldIntent.READ,
        include_system: bool = True,
    ) -> list[FieldSchema]:
        """Merged field list of an object, filtered for intent and ordered.

        Raises:
            SchemaError: If the object is unknown to the discovered schema.
            ConnectorError: Any subclass, if the metadata fetch fails.
        """
        obj = await self._cache.get_object(transport, object_name)
        introspected = await self._introspected(transport, obj.type_name)

        merged = merge_fields(obj.fields, introspected)
        fields = sort_fields(filter_fields(merged, intent, include_system))
        logger.debug(
            "schema_merger.merged",
            object=obj.name_singular,
            intent=intent.value,
            metadata_fields=len(obj.fields),
            introspected_fields=len(introspected),
            fields=len(fields),
        )
        return fields

    async def field_options(
        self,
        transport: TwentyTransport,
        object_name: str,
        intent: FieldIntent = FieldIntent.READ,
        include_system: bool = True,
    ) -> list[FieldChoice]:
        """Field picker choices, labelled ``"Label (name)"``."""
        fields = await self.merged_fields(transport, object_name, intent, include_system)
        return [
            FieldChoice(
                name=f"{field.display_label} ({field.name})",
                value=field.name,
                description=f"Type: {field.type.value}",
            )
            for field in fields
        ]

    async def select_options(
        self,
        transport: TwentyTransport,
        object_name: str,
        field_name: str,
    ) -> list[FieldOption]:
        """Choices of a SELECT / MULTI_SELECT field.

        Metadata options (ordered by position) are preferred; built-in
        enumerations the metadata API does not describe are resolved through
        the introspected enum type. Fields that are not selects yield ``[]``.
        """
        obj = await self._cache.get_object(transport, object_name)

        field = obj.field(field_name)
        if field is not None and field.options:
            return field.sorted_options()

        introspected = await self._introspected(transport, obj.type_name)
        for candidate in introspected:
            if candidate.name != field_name or candidate.type not in _SELECT_KINDS:
                continue
            enum_name = enum_name_of(candidate)
            if enum_name is None:
                break
            options = await self._enum_values(transport, enum_name)
            logger.debug(
                "schema_merger.enum_options",
                object=obj.name_singular,
                field=field_name,
                enum=enum_name,
                options=len(options),
            )
            return options
        return []
