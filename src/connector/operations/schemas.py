"""Pydantic schemas for record operations -- bulk payloads, results, upserts.

Defines:
- Enums: UpsertMode, UpsertAction
- Bulk inputs: BulkUpdateItem, BulkUpsertItem
- Results: BulkItemResult, UpsertResult
- Database schema report: DatabaseField, FormatDetails, SchemaSummary, DatabaseSchema
- ResourceChoice: one entry of the resource picker
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.connector.core.errors import ErrorKind


# ── Enums ───────────────────────────────────────────────────────────────────


class UpsertMode(str, Enum):
    """How an upsert finds the existing record."""

    ID = "id"
    FIELD = "field"


class UpsertAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


# ── Bulk Inputs ─────────────────────────────────────────────────────────────


class BulkUpdateItem(BaseModel):
    """One record of a bulk update: its id and the flat fields to change."""

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)


class BulkUpsertItem(BaseModel):
    """One record of a bulk upsert.

    ``match_value`` is the record id in ID mode, or the value compared against
    the match field in FIELD mode.
    """

    match_value: Any
    fields: dict[str, Any] = Field(default_factory=dict)


# ── Results ─────────────────────────────────────────────────────────────────


class BulkItemResult(BaseModel):
    """Outcome of one item of a bulk operation, at its input index."""

    success: bool
    index: int = 0
    record: Any = None
    id: str | None = None
    action: UpsertAction | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class UpsertResult(BaseModel):
    """Record written by an upsert and whether it was created or updated."""

    record: Any = None
    action: UpsertAction


# ── Database Schema Report ──────────────────────────────────────────────────


class FormatDetails(BaseModel):
    pattern: str
    example: Any = None
    description: str
    accepts: list[str] = Field(default_factory=list)
    returns: str | None = None
    validation: str
    critical_notes: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class DatabaseField(BaseModel):
    """One field of the database schema report.

    Simplified reports fill ``required``/``readonly``; full reports fill the
    raw metadata flags instead.
    """

    name: str
    label: str
    type: str
    id: str | None = None
    required: bool | None = None
    readonly: bool | None = None
    is_nullable: bool | None = None
    is_writable: bool | None = None
    is_active: bool | None = None
    is_system: bool | None = None
    options: list[dict[str, Any]] | None = None
    format_details: FormatDetails | None = None


class SchemaSummary(BaseModel):
    total_fields: int
    required_fields: int
    optional_fields: int
    readonly_fields: int
    writable_fields: int
    system_fields: int
    custom_fields: int
    field_types: dict[str, int] = Field(default_factory=dict)
    fields_with_format_details: int | None = None


class DatabaseSchema(BaseModel):
    """Schema report of one object, optionally with sample records."""

    database: str
    database_name: str
    database_name_plural: str
    is_custom: bool
    is_system: bool
    total_fields: int
    fields: list[DatabaseField] = Field(default_factory=list)
    sample_data: list[dict[str, Any]] | None = None
    sample_count: int | None = None
    summary: SchemaSummary | None = None


class ResourceChoice(BaseModel):
    """One entry of the resource picker."""

    name: str
    value: str
    description: str = ""
    is_custom: bool = False
