"""Flat <-> nested transform for composite field values.

Hosts edit records as flat key/value maps. Composite values (FullName,
Links, Currency, Address) are spread over ``<field>_<subField>`` keys:

    Input:  {"name_firstName": "John", "name_lastName": "Doe", "email": "j@x.com"}
    Output: {"name": {"firstName": "John", "lastName": "Doe"}, "email": "j@x.com"}

Rules:
- Only the first ``_`` separates parent and sub-field; sub-field names may
  contain further underscores.
- Empty strings and None are absent; a composite field whose sub-fields are
  all absent is omitted entirely (never emitted as an empty object).
- Currency amounts are given in units and converted to micros exactly once,
  on the write path (unflatten). flatten never converts.
- ``name`` is a FullName only for the person resource.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from src.connector.core.errors import ValidationError
from src.connector.schema.composite import (
    PERSON_RESOURCE,
    CompositeFieldTemplate,
    get_complex_template,
    get_complex_type,
    template_for_kind,
)
from src.connector.schema.models import FieldKind, FieldSchema

logger = structlog.get_logger(__name__)

MICROS_PER_UNIT = Decimal(1_000_000)


def split_flat_key(key: str) -> tuple[str, str | None]:
    """Split ``parent_sub_field`` into ``("parent", "sub_field")``.

    Keys without an underscore return ``(key, None)``.
    """
    parent, sep, sub = key.partition("_")
    if not sep:
        return key, None
    return parent, sub


def is_absent(value: Any) -> bool:
    return value is None or value == ""


def to_micros(amount: Any) -> str:
    """Convert a unit amount to the string micros representation.

    ``5 -> "5000000"``, ``"1.5" -> "1500000"``.

    Raises:
        ValidationError: If the amount is not numeric.
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Currency amount must be numeric, got {amount!r}")
    try:
        micros = Decimal(str(amount).strip()) * MICROS_PER_UNIT
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Currency amount must be numeric, got {amount!r}") from exc
    if not micros.is_finite():
        raise ValidationError(f"Currency amount must be finite, got {amount!r}")
    return str(int(micros.to_integral_value()))


def resolve_template(
    field: FieldSchema,
    resource: str | None = None,
) -> CompositeFieldTemplate | None:
    """Composite template governing a field, if any.

    The schema's type tag decides, except for ``name`` when the resource is
    known (FullName on people, scalar elsewhere) and for untyped fields, which
    fall back to the well-known field-name table.
    """
    if field.name == "name" and resource is not None:
        if resource != PERSON_RESOURCE:
            return None
        return template_for_kind(FieldKind.FULL_NAME)

    template = template_for_kind(field.type)
    if template is not None:
        return template

    if field.type == FieldKind.UNKNOWN:
        complex_type = get_complex_type(field.name, resource)
        if complex_type is not None:
            return get_complex_template(complex_type)
    return None


def _composite_fields(
    fields: Iterable[FieldSchema],
    resource: str | None,
) -> dict[str, CompositeFieldTemplate]:
    composites: dict[str, CompositeFieldTemplate] = {}
    for field in fields:
        template = resolve_template(field, resource)
        if template is not None:
            composites[field.name] = template
    return composites


def _coerce_sub_value(sub_field: str, value: Any) -> Any:
    if sub_field == "amountMicros":
        return to_micros(value)
    return value


def unflatten(
    flat: dict[str, Any],
    fields: Iterable[FieldSchema],
    resource: str | None = None,
) -> dict[str, Any]:
    """Turn a flat caller map into the nested payload Twenty expects.

    Args:
        flat: Caller values, composite sub-values as ``<field>_<sub>`` keys.
        fields: Schema fields of the target object.
        resource: Object name singular (disambiguates ``name``).

    Returns:
        New dict; ``flat`` is not modified.

    Raises:
        ValidationError: If a currency amount is not numeric.
    """
    composites = _composite_fields(fields, resource)
    result: dict[str, Any] = {}
    claimed: set[str] = set()

    for field_name, template in composites.items():
        nested: dict[str, Any] = {}
        for sub in template.sub_fields:
            flat_key = f"{field_name}_{sub.name}"
            if flat_key not in flat:
                continue
            claimed.add(flat_key)
            value = flat[flat_key]
            if is_absent(value):
                continue
            nested[sub.name] = _coerce_sub_value(sub.name, value)
        if nested:
            result[field_name] = nested

    for key, value in flat.items():
        if key in claimed:
            continue
        parent, sub = split_flat_key(key)
        if sub is not None and parent in composites:
            logger.warning(
                "transform.unknown_subfield",
                field=parent,
                sub_field=sub,
                complex_type=composites[parent].complex_type,
            )
            continue
        result[key] = value

    return result


def flatten(
    nested: dict[str, Any],
    fields: Iterable[FieldSchema],
    resource: str | None = None,
) -> dict[str, Any]:
    """Spread composite values of a record into ``<field>_<sub>`` keys.

    Used to prefill flat editors from records read back from Twenty. Values
    are copied as-is (no micros conversion); sub-keys not declared by the
    template are ignored, absent sub-fields produce no key.
    """
    composites = _composite_fields(fields, resource)
    result: dict[str, Any] = {}

    for key, value in nested.items():
        template = composites.get(key)
        if template is None or not isinstance(value, dict):
            result[key] = value
            continue
        for sub in template.sub_fields:
            if sub.name in value:
                result[f"{key}_{sub.name}"] = value[sub.name]

    return result


def missing_subfields(
    flat: dict[str, Any],
    field_name: str,
    template: CompositeFieldTemplate,
) -> list[str]:
    """Declared string sub-fields of ``field_name`` that are absent or empty."""
    return [
        sub.name
        for sub in template.sub_fields
        if sub.kind == "string" and is_absent(flat.get(f"{field_name}_{sub.name}"))
    ]
