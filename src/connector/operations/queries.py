"""GraphQL request synthesis for discovered Twenty objects.

Pure functions, one per operation kind, each returning a GraphQLRequest
(query text + variables) for an ObjectSchema known only at runtime. Text
templates are used instead of an AST builder so the output is exactly what
Twenty's data API expects:

    mutation CreateCompany($data: companyCreateInput!) {
        createCompany(data: $data) { <projection> }
    }

Naming rules:
- Operation names use the whitespace-stripped label (``Job Posting`` ->
  ``JobPosting``) so they stay valid identifiers.
- Root fields use the capitalised singular (``createCompany``) or the plural
  name (``companies``).
- The projection covers every active field of the schema; composite and
  structured kinds expand to their sub-field selections and relation fields
  are left out (they would need their own pagination).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.connector.core.errors import SchemaError
from src.connector.schema.composite import KIND_SELECTIONS, PERSON_RESOURCE
from src.connector.schema.models import FieldKind, ObjectSchema

_INDENT = "    "


class GraphQLRequest(BaseModel):
    """Query text and bound variables of one GraphQL request."""

    query: str
    variables: dict[str, Any] = Field(default_factory=dict)
    operation_name: str = ""


# ── Projection ──────────────────────────────────────────────────────────────


def _selection_lines(obj: ObjectSchema) -> list[str]:
    lines: list[str] = []
    for field in obj.fields:
        if not field.is_active or field.type == FieldKind.RELATION:
            continue
        sub_fields = KIND_SELECTIONS.get(field.type)
        if sub_fields:
            lines.append(f"{field.name} {{ {' '.join(sub_fields)} }}")
        else:
            lines.append(field.name)
    if "id" not in obj.field_names:
        lines.insert(0, "id")
    return lines


def build_projection(obj: ObjectSchema, depth: int = 0) -> str:
    """Selection set body covering every projectable field of ``obj``."""
    pad = _INDENT * depth
    return "\n".join(f"{pad}{line}" for line in _selection_lines(obj))


# ── Mutations ───────────────────────────────────────────────────────────────


def build_create_mutation(
    obj: ObjectSchema,
    data: dict[str, Any],
    operation_name: str | None = None,
) -> GraphQLRequest:
    """``create<Type>`` mutation taking ``$data: <nameSingular>CreateInput!``."""
    name = operation_name or f"Create{obj.operation_label()}"
    query = (
        f"mutation {name}($data: {obj.name_singular}CreateInput!) {{\n"
        f"    create{obj.type_name}(data: $data) {{\n"
        f"{build_projection(obj, depth=2)}\n"
        f"    }}\n"
        f"}}"
    )
    return GraphQLRequest(query=query, variables={"data": data}, operation_name=name)


def bulk_operation_name(obj: ObjectSchema, verb: str, index: int) -> str:
    """Operation name of one bulk item, e.g. ``CreateManyCompany_3``."""
    return f"{verb}Many{obj.operation_label()}_{index}"


def build_update_mutation(
    obj: ObjectSchema,
    record_id: str,
    data: dict[str, Any],
    operation_name: str | None = None,
) -> GraphQLRequest:
    """``update<Type>`` mutation; ``data`` carries only the caller's keys."""
    label = obj.operation_label()
    name = operation_name or f"Update{label}"
    query = (
        f"mutation {name}($id: UUID!, $data: {label}UpdateInput!) {{\n"
        f"    update{obj.type_name}(id: $id, data: $data) {{\n"
        f"{build_projection(obj, depth=2)}\n"
        f"    }}\n"
        f"}}"
    )
    return GraphQLRequest(
        query=query,
        variables={"id": record_id, "data": data},
        operation_name=name,
    )


def build_delete_mutation(obj: ObjectSchema, record_id: str) -> GraphQLRequest:
    """``delete<Type>`` mutation returning only the id."""
    name = f"Delete{obj.operation_label()}"
    query = (
        f"mutation {name}($id: UUID!) {{\n"
        f"    delete{obj.type_name}(id: $id) {{\n"
        f"        id\n"
        f"    }}\n"
        f"}}"
    )
    return GraphQLRequest(query=query, variables={"id": record_id}, operation_name=name)


# ── Queries ─────────────────────────────────────────────────────────────────


def build_get_query(obj: ObjectSchema, record_id: str) -> GraphQLRequest:
    """Plural root filtered on ``id``; the record is the first edge node."""
    name = f"Get{obj.operation_label()}"
    query = (
        f"query {name}($id: UUID!) {{\n"
        f"    {obj.name_plural}(filter: {{ id: {{ eq: $id }} }}) {{\n"
        f"        edges {{\n"
        f"            node {{\n"
        f"{build_projection(obj, depth=4)}\n"
        f"            }}\n"
        f"        }}\n"
        f"    }}\n"
        f"}}"
    )
    return GraphQLRequest(query=query, variables={"id": record_id}, operation_name=name)


def search_pattern(term: str | None) -> str | None:
    """``%term%`` for a non-blank search term, else None."""
    if term is None or not term.strip():
        return None
    return f"%{term.strip()}%"


def build_search_filter(obj: ObjectSchema) -> str:
    """Case-insensitive substring filter on the display field.

    People are searched on first or last name since their ``name`` is a
    FullName.

    Raises:
        SchemaError: If the object has no ``name`` field to search on.
    """
    if obj.name_singular == PERSON_RESOURCE:
        return (
            "or: [{ name: { firstName: { ilike: $searchPattern } } }, "
            "{ name: { lastName: { ilike: $searchPattern } } }]"
        )
    if obj.field("name") is None:
        raise SchemaError(
            f'Object "{obj.name_singular}" has no name field to search on',
            details={"object": obj.name_singular},
        )
    return "name: { ilike: $searchPattern }"


def build_list_query(
    obj: ObjectSchema,
    limit: int,
    search: str | None = None,
) -> GraphQLRequest:
    """Plural root limited to ``$limit`` records, optionally searched."""
    name = f"List{obj.operation_label(plural=True)}"
    pattern = search_pattern(search)
    variables: dict[str, Any] = {"limit": limit}

    if pattern is None:
        signature = "($limit: Int!)"
        arguments = "(first: $limit)"
    else:
        signature = "($limit: Int!, $searchPattern: String!)"
        arguments = f"(first: $limit, filter: {{ {build_search_filter(obj)} }})"
        variables["searchPattern"] = pattern

    query = (
        f"query {name}{signature} {{\n"
        f"    {obj.name_plural}{arguments} {{\n"
        f"        edges {{\n"
        f"            node {{\n"
        f"{build_projection(obj, depth=4)}\n"
        f"            }}\n"
        f"        }}\n"
        f"    }}\n"
        f"}}"
    )
    return GraphQLRequest(query=query, variables=variables, operation_name=name)


# ── REST paths ──────────────────────────────────────────────────────────────


def record_path(obj: ObjectSchema, record_id: str) -> str:
    return f"{obj.name_plural}/{record_id}"


def collection_path(obj: ObjectSchema, limit: int | None = None) -> str:
    if limit is None:
        return obj.name_plural
    return f"{obj.name_plural}?limit={limit}"
