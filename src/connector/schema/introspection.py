"""GraphQL introspection source -- the data API's own view of an object type.

The metadata API does not describe every field: built-in enumerations such
as ``company.category`` only show up in the data API's ``__type`` schema.
This module queries ``__type(name: <TypeName>)`` and maps the raw wire type
references onto FieldKind:

- LIST of an enum type            -> MULTI_SELECT
- enum type (name contains Enum)  -> SELECT
- FullName / Links / Currency / Address / Emails / Phones / Actor
                                  -> the matching composite or structured kind
- String, Int, Float, Boolean, DateTime, Date, UUID, ID, JSON scalars
                                  -> TEXT, NUMBER, BOOLEAN, DATE_TIME, DATE,
                                     UUID, RAW_JSON
- ``*Connection``                 -> RELATION
- anything else                   -> UNKNOWN

Introspected fields carry no writability or activity flags, so they are
treated as writable, active and nullable.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from src.connector.core.transport import EndpointKind, TwentyTransport
from src.connector.schema.models import FieldKind, FieldOption, FieldSchema, FieldSource

logger = structlog.get_logger(__name__)

_WRAPPER_KINDS = frozenset({"NON_NULL", "LIST"})

_NAMED_TYPE_KINDS: dict[str, FieldKind] = {
    "FullName": FieldKind.FULL_NAME,
    "Links": FieldKind.LINKS,
    "Currency": FieldKind.CURRENCY,
    "Address": FieldKind.ADDRESS,
    "Emails": FieldKind.EMAILS,
    "Phones": FieldKind.PHONES,
    "Actor": FieldKind.ACTOR,
    "String": FieldKind.TEXT,
    "Int": FieldKind.NUMBER,
    "Float": FieldKind.NUMBER,
    "BigFloat": FieldKind.NUMBER,
    "Boolean": FieldKind.BOOLEAN,
    "DateTime": FieldKind.DATE_TIME,
    "Date": FieldKind.DATE,
    "UUID": FieldKind.UUID,
    "ID": FieldKind.UUID,
    "JSON": FieldKind.RAW_JSON,
    "RawJSONScalar": FieldKind.RAW_JSON,
}


def build_type_query(type_name: str) -> str:
    """``__type`` query listing the fields of one object type."""
    return f"""
        query IntrospectType {{
            __type(name: "{type_name}") {{
                name
                fields {{
                    name
                    type {{
                        name
                        kind
                        ofType {{
                            name
                            kind
                            ofType {{
                                name
                                kind
                                ofType {{
                                    name
                                    kind
                                }}
                            }}
                        }}
                    }}
                }}
            }}
        }}
    """


def build_enum_query(enum_name: str) -> str:
    """``__type`` query listing the values of one enum type."""
    return f"""
        query IntrospectEnum {{
            __type(name: "{enum_name}") {{
                name
                enumValues {{
                    name
                    description
                }}
            }}
        }}
    """


def unwrap_type(type_ref: dict[str, Any] | None) -> tuple[str | None, str | None, bool]:
    """Follow NON_NULL / LIST wrappers down to the named type.

    Returns:
        ``(type_name, type_kind, is_list)`` of the innermost named type.
    """
    is_list = False
    current = type_ref
    while current:
        kind = current.get("kind")
        if kind in _WRAPPER_KINDS:
            is_list = is_list or kind == "LIST"
            current = current.get("ofType")
            continue
        return current.get("name"), kind, is_list
    return None, None, is_list


def is_enum_type(type_name: str | None, type_kind: str | None) -> bool:
    return type_kind == "ENUM" or bool(type_name and "Enum" in type_name)


def map_wire_type(type_name: str | None, type_kind: str | None, is_list: bool) -> FieldKind:
    """Map an unwrapped introspection type reference onto FieldKind."""
    if is_enum_type(type_name, type_kind):
        return FieldKind.MULTI_SELECT if is_list else FieldKind.SELECT
    if not type_name:
        return FieldKind.UNKNOWN
    if type_name.endswith("Connection"):
        return FieldKind.RELATION
    kind = _NAMED_TYPE_KINDS.get(type_name)
    if kind is not None:
        return FieldKind.ARRAY if is_list and kind == FieldKind.TEXT else kind
    return FieldKind.UNKNOWN


def wire_type_label(type_name: str | None, is_list: bool) -> str | None:
    """Raw wire type string, e.g. ``CompanyCategoryEnum`` or ``[CompanyCategoryEnum]``."""
    if type_name is None:
        return None
    return f"[{type_name}]" if is_list else type_name


def enum_name_of(field: FieldSchema) -> str | None:
    """Enum type behind an introspected SELECT / MULTI_SELECT field."""
    if not field.wire_type:
        return None
    name = field.wire_type.strip("[]")
    return name or None


def parse_introspected_field(node: dict[str, Any]) -> FieldSchema:
    type_name, type_kind, is_list = unwrap_type(node.get("type"))
    return FieldSchema(
        name=node["name"],
        label=node["name"],
        type=map_wire_type(type_name, type_kind, is_list),
        wire_type=wire_type_label(type_name, is_list),
        source=FieldSource.INTROSPECTION,
    )


def parse_type_response(data: dict[str, Any]) -> list[FieldSchema]:
    """Decode a ``__type`` response; an unknown type yields no fields."""
    type_info = (data or {}).get("__type") or {}
    return [
        parse_introspected_field(node)
        for node in type_info.get("fields") or []
        if node.get("name") and node["name"] != "__typename"
    ]


def enum_label(value: str) -> str:
    """Human label for an enum value, e.g. ``HIGH_PRIORITY`` -> ``High Priority``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), value.replace("_", " ").lower())


async def introspect_type(transport: TwentyTransport, type_name: str) -> list[FieldSchema]:
    """Fetch the fields of one GraphQL object type.

    Args:
        transport: Transport of the deployment.
        type_name: GraphQL type name, e.g. ``Company``.

    Raises:
        ConnectorError: Any subclass, if the request fails.
    """
    data = await transport.request(EndpointKind.GRAPHQL, build_type_query(type_name))
    fields = parse_type_response(data)
    logger.debug("introspection.type_fetched", type_name=type_name, fields=len(fields))
    return fields


async def fetch_enum_values(transport: TwentyTransport, enum_name: str) -> list[FieldOption]:
    """Fetch the values of one enum type as FieldOptions in declaration order."""
    data = await transport.request(EndpointKind.GRAPHQL, build_enum_query(enum_name))
    type_info = (data or {}).get("__type") or {}
    return [
        FieldOption(label=enum_label(value["name"]), value=value["name"], position=index)
        for index, value in enumerate(type_info.get("enumValues") or [])
        if value.get("name")
    ]
