"""Unit tests for the GraphQL introspection source.

Tests cover:
- Unwrapping NON_NULL / LIST type references
- Wire type -> FieldKind mapping (enums, composites, scalars, connections)
- __type response decoding and enum value fetching
"""

from __future__ import annotations

import pytest

from src.connector.core.transport import EndpointKind
from src.connector.schema.introspection import (
    build_type_query,
    enum_label,
    enum_name_of,
    fetch_enum_values,
    introspect_type,
    map_wire_type,
    parse_type_response,
    unwrap_type,
)
from src.connector.schema.models import FieldKind, FieldSource


def _named(name: str, kind: str) -> dict:
    return {"name": name, "kind": kind, "ofType": None}


def _wrap(kind: str, inner: dict) -> dict:
    return {"name": None, "kind": kind, "ofType": inner}


class TestUnwrapType:
    """Tests for following wrapper type references."""

    def test_named_type(self):
        assert unwrap_type(_named("String", "SCALAR")) == ("String", "SCALAR", False)

    def test_non_null_list_of_enum(self):
        ref = _wrap("NON_NULL", _wrap("LIST", _wrap("NON_NULL", _named("CategoryEnum", "ENUM"))))
        assert unwrap_type(ref) == ("CategoryEnum", "ENUM", True)

    def test_missing_reference(self):
        assert unwrap_type(None) == (None, None, False)


class TestMapWireType:
    """Tests for wire type classification."""

    @pytest.mark.parametrize(
        ("name", "kind", "is_list", "expected"),
        [
            ("CompanyCategoryEnum", "ENUM", True, FieldKind.MULTI_SELECT),
            ("StatusEnum", "ENUM", False, FieldKind.SELECT),
            ("JobStatusEnum", None, False, FieldKind.SELECT),
            ("FullName", "OBJECT", False, FieldKind.FULL_NAME),
            ("Links", "OBJECT", False, FieldKind.LINKS),
            ("Currency", "OBJECT", False, FieldKind.CURRENCY),
            ("Address", "OBJECT", False, FieldKind.ADDRESS),
            ("Emails", "OBJECT", False, FieldKind.EMAILS),
            ("Actor", "OBJECT", False, FieldKind.ACTOR),
            ("String", "SCALAR", False, FieldKind.TEXT),
            ("String", "SCALAR", True, FieldKind.ARRAY),
            ("Float", "SCALAR", False, FieldKind.NUMBER),
            ("DateTime", "SCALAR", False, FieldKind.DATE_TIME),
            ("UUID", "SCALAR", False, FieldKind.UUID),
            ("RawJSONScalar", "SCALAR", False, FieldKind.RAW_JSON),
            ("PersonConnection", "OBJECT", False, FieldKind.RELATION),
            ("WorkspaceMember", "OBJECT", False, FieldKind.UNKNOWN),
            (None, None, False, FieldKind.UNKNOWN),
        ],
    )
    def test_mapping(self, name, kind, is_list, expected):
        assert map_wire_type(name, kind, is_list) == expected


class TestParseTypeResponse:
    """Tests for __type response decoding."""

    def test_fields_decoded_and_typename_skipped(self):
        data = {
            "__type": {
                "name": "Company",
                "fields": [
                    {"name": "__typename", "type": _named("String", "SCALAR")},
                    {"name": "name", "type": _wrap("NON_NULL", _named("String", "SCALAR"))},
                    {
                        "name": "category",
                        "type": _wrap("LIST", _named("CompanyCategoryEnum", "ENUM")),
                    },
                ],
            }
        }

        fields = parse_type_response(data)

        assert [f.name for f in fields] == ["name", "category"]
        category = fields[1]
        assert category.type == FieldKind.MULTI_SELECT
        assert category.wire_type == "[CompanyCategoryEnum]"
        assert category.source == FieldSource.INTROSPECTION
        assert category.is_writable and category.is_active and category.is_nullable
        assert enum_name_of(category) == "CompanyCategoryEnum"

    def test_unknown_type_yields_no_fields(self):
        assert parse_type_response({"__type": None}) == []


class TestIntrospectionRequests:
    """Tests for the network-facing helpers."""

    async def test_introspect_type(self, mock_transport):
        mock_transport.request.return_value = {
            "__type": {"fields": [{"name": "id", "type": _named("UUID", "SCALAR")}]}
        }

        fields = await introspect_type(mock_transport, "Company")

        assert [f.type for f in fields] == [FieldKind.UUID]
        mock_transport.request.assert_awaited_once_with(
            EndpointKind.GRAPHQL, build_type_query("Company")
        )

    async def test_fetch_enum_values(self, mock_transport):
        mock_transport.request.return_value = {
            "__type": {"enumValues": [{"name": "B2B"}, {"name": "HIGH_PRIORITY"}]}
        }

        options = await fetch_enum_values(mock_transport, "CompanyCategoryEnum")

        assert [(o.label, o.value, o.position) for o in options] == [
            ("B2b", "B2B", 0),
            ("High Priority", "HIGH_PRIORITY", 1),
        ]

    def test_enum_label(self):
        assert enum_label("VERY_LARGE_ACCOUNT") == "Very Large Account"
