"""Wire format catalog for Twenty field types.

Static, empirically determined descriptions of what each field type accepts
and returns. Twenty's APIs do not expose input formats, so these hints are
hardcoded. Nothing in the connector branches on them; they are surfaced to
callers by the database schema operation.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class FieldFormatSpec(BaseModel):
    """Format description of one field type."""

    pattern: str
    example: Any = None
    description: str
    accepts: list[str] = Field(default_factory=list)
    returns: str | None = None
    validation: Literal["strict", "flexible", "none"]
    critical_notes: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


FIELD_FORMAT_SPECIFICATIONS: dict[str, FieldFormatSpec] = {
    # ── Date & time ─────────────────────────────────────────────────────────
    "DATE_TIME": FieldFormatSpec(
        pattern="YYYY-MM-DDTHH:mm:ss.SSSZ",
        example="2025-10-16T19:28:45.790Z",
        description="ISO 8601 timestamp with milliseconds and UTC timezone",
        accepts=[
            "ISO 8601 with milliseconds: 2025-10-16T19:28:45.790Z",
            "ISO 8601 without milliseconds: 2025-10-16T12:00:00Z",
            "ISO 8601 with timezone offset: 2025-10-16T12:00:00+00:00",
            "ISO 8601 without timezone: 2025-10-16T12:00:00 (assumes UTC)",
            "Date only: 2025-10-16 (converts to midnight UTC)",
        ],
        returns="Always YYYY-MM-DDTHH:mm:ss.SSSZ in UTC",
        validation="flexible",
        notes=["Date-only input is converted to midnight UTC"],
    ),
    "DATE": FieldFormatSpec(
        pattern="YYYY-MM-DD (stored as YYYY-MM-DDTHH:mm:ss.SSSZ)",
        example="2025-10-16",
        description="Date without time (stored as midnight UTC timestamp)",
        accepts=["Date only: 2025-10-16", "Full ISO 8601 timestamp"],
        returns="Full timestamp YYYY-MM-DDTHH:mm:ss.SSSZ",
        validation="flexible",
        notes=["Stored as DateTime; differs from DATE_TIME in display only"],
    ),
    # ── Currency ────────────────────────────────────────────────────────────
    "CURRENCY": FieldFormatSpec(
        pattern="{ amountMicros: string, currencyCode: string }",
        example={"amountMicros": "1000000", "currencyCode": "USD"},
        description="Currency amount in micros (millionths) with currency code",
        accepts=[
            'Integer amountMicros: { amountMicros: 1000000, currencyCode: "USD" }',
            'String amountMicros: { amountMicros: "1000000", currencyCode: "USD" }',
            "Null values",
        ],
        returns='Always { amountMicros: "string", currencyCode: "string" }',
        validation="none",
        critical_notes=[
            "amountMicros is returned as a STRING, not a number",
            "1 unit = 1,000,000 micros ($1.00 = 1000000 micros)",
        ],
        notes=["No validation on amountMicros or currencyCode"],
    ),
    # ── Contact info ────────────────────────────────────────────────────────
    "EMAILS": FieldFormatSpec(
        pattern="{ primaryEmail: string, additionalEmails: string[] | null }",
        example={"primaryEmail": "user@example.com", "additionalEmails": []},
        description="Primary email and optional additional emails",
        accepts=[
            'Email object: { primaryEmail: "user@example.com", additionalEmails: [] }',
            'Plain string: "user@example.com" (auto-wrapped)',
        ],
        returns="{ primaryEmail: string, additionalEmails: string[] | null }",
        validation="none",
        critical_notes=["No email format validation is performed upstream"],
    ),
    "PHONES": FieldFormatSpec(
        pattern=(
            "{ primaryPhoneNumber: string, primaryPhoneCountryCode: string, "
            "primaryPhoneCallingCode: string, additionalPhones: object[] | null }"
        ),
        example={
            "primaryPhoneNumber": "2345678901",
            "primaryPhoneCountryCode": "US",
            "primaryPhoneCallingCode": "+1",
            "additionalPhones": None,
        },
        description="Primary phone with country information and optional additional phones",
        returns="primaryPhoneNumber without +, primaryPhoneCallingCode with +",
        validation="flexible",
        critical_notes=[
            "Country code fields are required; a bare number is rejected",
            "A leading + is stripped from primaryPhoneNumber",
        ],
    ),
    "LINKS": FieldFormatSpec(
        pattern="{ primaryLinkLabel: string, primaryLinkUrl: string, secondaryLinks: object[] | null }",
        example={
            "primaryLinkLabel": "Website",
            "primaryLinkUrl": "https://example.com",
            "secondaryLinks": None,
        },
        description="Primary link with label/URL and optional secondary links",
        returns="{ primaryLinkLabel: string, primaryLinkUrl: string, secondaryLinks: object[] | null }",
        validation="strict",
        critical_notes=["URL format is validated; invalid URLs are rejected with HTTP 400"],
        notes=["Empty strings are accepted for primaryLinkUrl"],
    ),
    # ── Structured data ─────────────────────────────────────────────────────
    "FULL_NAME": FieldFormatSpec(
        pattern="{ firstName: string, lastName: string }",
        example={"firstName": "John", "lastName": "Doe"},
        description="Person name with separate first and last name fields",
        returns="{ firstName: string | null, lastName: string | null }",
        validation="none",
        notes=["Plain strings are accepted but come back with null parts"],
    ),
    "ADDRESS": FieldFormatSpec(
        pattern=(
            "{ addressStreet1, addressStreet2, addressCity, addressState, "
            "addressPostcode, addressCountry, addressLat, addressLng }"
        ),
        example={
            "addressStreet1": "123 Main St",
            "addressStreet2": "Apt 4B",
            "addressCity": "San Francisco",
            "addressState": "CA",
            "addressPostcode": "94102",
            "addressCountry": "USA",
            "addressLat": "37.7749",
            "addressLng": "-122.4194",
        },
        description="Postal address with optional coordinates",
        returns="All sub-fields as strings",
        validation="none",
        critical_notes=["addressLat and addressLng are returned as STRINGS"],
    ),
    # ── Generic data ────────────────────────────────────────────────────────
    "ARRAY": FieldFormatSpec(
        pattern="string[] | number[] | object[]",
        example=["item1", "item2"],
        description="Array of any type",
        returns="Array exactly as stored",
        validation="flexible",
        critical_notes=["Must be an array; a single value is rejected"],
    ),
    "RAW_JSON": FieldFormatSpec(
        pattern="Valid JSON object, array, number, boolean, or null",
        example={"key": "value", "nested": {"count": 42}},
        description="Arbitrary JSON data structure",
        returns="Exactly as stored",
        validation="flexible",
        critical_notes=["Plain strings are rejected"],
    ),
    "NUMBER": FieldFormatSpec(
        pattern="Integer or decimal number",
        example=42,
        description="Numeric value (integer or floating point)",
        returns="Number",
        validation="none",
        notes=["String numbers are converted upstream"],
    ),
    # ── Enums ───────────────────────────────────────────────────────────────
    "RATING": FieldFormatSpec(
        pattern='"RATING_1" | "RATING_2" | "RATING_3" | "RATING_4" | "RATING_5" | null',
        example="RATING_3",
        description="Rating from 1 to 5 (enum values)",
        validation="strict",
        critical_notes=["Numbers are rejected; use the RATING_n enum strings"],
    ),
    "SELECT": FieldFormatSpec(
        pattern="string (one enum value)",
        example="OPTION_1",
        description="Single selection from predefined options",
        validation="strict",
        notes=["Valid options are defined per field in the schema"],
    ),
    "MULTI_SELECT": FieldFormatSpec(
        pattern="string[] (array of enum values)",
        example=["OPTION_1", "OPTION_3"],
        description="Multiple selection from predefined options",
        validation="strict",
        critical_notes=[
            "Must be an array; a single string is rejected",
            "One invalid value rejects the whole update",
        ],
    ),
    # ── Identifiers and simple types ────────────────────────────────────────
    "UUID": FieldFormatSpec(
        pattern="xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx",
        example="114642b9-b8c4-4ff1-ac81-3da1092cd03d",
        description="UUID version 4",
        validation="strict",
    ),
    "TEXT": FieldFormatSpec(
        pattern="string",
        example="Any text string",
        description="Plain text field",
        validation="none",
    ),
    "BOOLEAN": FieldFormatSpec(
        pattern="true | false",
        example=True,
        description="Boolean value",
        validation="none",
        notes=["No coercion from strings"],
    ),
    "RELATION": FieldFormatSpec(
        pattern="Related record ID or IDs",
        example={"id": "114642b9-b8c4-4ff1-ac81-3da1092cd03d"},
        description="Reference to related record(s)",
        validation="flexible",
    ),
}


def get_format_spec(field_type: str) -> FieldFormatSpec | None:
    return FIELD_FORMAT_SPECIFICATIONS.get(field_type)


def has_format_spec(field_type: str) -> bool:
    return field_type in FIELD_FORMAT_SPECIFICATIONS


def get_format_spec_with_fallback(field_type: str) -> FieldFormatSpec:
    """Format spec for a type, or a generic placeholder for undocumented ones."""
    spec = FIELD_FORMAT_SPECIFICATIONS.get(field_type)
    if spec is not None:
        return spec
    return FieldFormatSpec(
        pattern="Varies by field type",
        description=f"{field_type} field (format details not yet documented)",
        validation="flexible",
        notes=["No empirical format specification is available for this type"],
    )
