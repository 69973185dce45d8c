"""Pydantic models for the discovered Twenty data model.

Defines:
- Enums: FieldKind (closed vocabulary with an UNKNOWN fallback), FieldSource,
  FieldIntent
- Discovered schema: FieldOption, FieldSchema, ObjectSchema, CachedSchema
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.connector.core.errors import SchemaError


# ── Enums ───────────────────────────────────────────────────────────────────


class FieldKind(str, Enum):
    """Type tag of a field.

    Metadata-sourced fields carry these tags verbatim; introspection-sourced
    wire types are mapped onto them by the introspection module. Anything
    that cannot be classified becomes UNKNOWN rather than being guessed.
    """

    TEXT = "TEXT"
    NUMBER = "NUMBER"
    NUMERIC = "NUMERIC"
    BOOLEAN = "BOOLEAN"
    DATE_TIME = "DATE_TIME"
    DATE = "DATE"
    UUID = "UUID"
    SELECT = "SELECT"
    MULTI_SELECT = "MULTI_SELECT"
    RATING = "RATING"
    POSITION = "POSITION"
    CURRENCY = "CURRENCY"
    EMAILS = "EMAILS"
    PHONES = "PHONES"
    LINKS = "LINKS"
    FULL_NAME = "FULL_NAME"
    ADDRESS = "ADDRESS"
    ACTOR = "ACTOR"
    RICH_TEXT = "RICH_TEXT"
    RAW_JSON = "RAW_JSON"
    ARRAY = "ARRAY"
    TS_VECTOR = "TS_VECTOR"
    RELATION = "RELATION"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_wire(cls, value: str | None) -> FieldKind:
        """Parse a metadata type tag, falling back to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_composite(self) -> bool:
        """True for kinds represented as ``<field>_<sub>`` keys in flat maps."""
        return self in COMPOSITE_KINDS


COMPOSITE_KINDS = frozenset(
    {FieldKind.FULL_NAME, FieldKind.LINKS, FieldKind.CURRENCY, FieldKind.ADDRESS}
)


class FieldSource(str, Enum):
    """Which API a FieldSchema was discovered from (merge precedence only)."""

    METADATA = "metadata"
    INTROSPECTION = "introspection"


class FieldIntent(str, Enum):
    """What the caller wants a field list for."""

    READ = "read"
    WRITE = "write"


# ── Field / Object Schemas ──────────────────────────────────────────────────


class FieldOption(BaseModel):
    """One choice of a SELECT / MULTI_SELECT field."""

    id: str | None = None
    label: str
    value: str
    color: str | None = None
    position: int = 0


class FieldSchema(BaseModel):
    """One field of a discovered object."""

    name: str
    label: str = ""
    type: FieldKind = FieldKind.UNKNOWN
    id: str | None = None
    is_nullable: bool = True
    is_writable: bool = True
    is_active: bool = True
    is_system: bool = False
    options: list[FieldOption] = Field(default_factory=list)
    relation_target: str | None = None
    wire_type: str | None = None
    source: FieldSource = Field(default=FieldSource.METADATA, exclude=True)

    @field_validator("options", mode="before")
    @classmethod
    def _decode_options(cls, value: Any) -> Any:
        # The metadata API may return options as a JSON-encoded string.
        if value is None:
            return []
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError:
                return []
            return decoded if isinstance(decoded, list) else []
        return value

    @property
    def display_label(self) -> str:
        return self.label or self.name

    def sorted_options(self) -> list[FieldOption]:
        return sorted(self.options, key=lambda opt: opt.position)


_WHITESPACE = re.compile(r"\s+")


class ObjectSchema(BaseModel):
    """One discovered entity type (standard or custom object)."""

    name_singular: str
    name_plural: str
    label_singular: str = ""
    label_plural: str = ""
    id: str | None = None
    is_custom: bool = False
    is_system: bool = False
    is_active: bool = True
    fields: list[FieldSchema] = Field(default_factory=list)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def type_name(self) -> str:
        """GraphQL type name, e.g. ``company`` -> ``Company``."""
        return self.name_singular[:1].upper() + self.name_singular[1:]

    def field(self, name: str) -> FieldSchema | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def operation_label(self, plural: bool = False) -> str:
        """Human label with whitespace stripped, usable in operation names."""
        label = (self.label_plural if plural else self.label_singular) or (
            self.name_plural if plural else self.type_name
        )
        return _WHITESPACE.sub("", label)


class CachedSchema(BaseModel):
    """Snapshot of every object of one deployment, as of ``cached_at``."""

    objects: list[ObjectSchema] = Field(default_factory=list)
    cached_at: datetime
    domain: str

    def age_ms(self, now: datetime) -> float:
        return (now - self.cached_at).total_seconds() * 1000

    def find_object(self, name: str) -> ObjectSchema | None:
        """Find an object by singular name (falls back to plural name)."""
        for obj in self.objects:
            if obj.name_singular == name:
                return obj
        for obj in self.objects:
            if obj.name_plural == name:
                return obj
        return None

    def object(self, name: str) -> ObjectSchema:
        """Like find_object, but raises SchemaError for unknown names."""
        obj = self.find_object(name)
        if obj is None:
            raise SchemaError(
                f'Object "{name}" not found in the schema of {self.domain}',
                details={"object": name},
            )
        return obj
