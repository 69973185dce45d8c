"""Composite field catalog -- sub-field templates for nested Twenty value types.

Defines:
- FULL_NAME_TEMPLATE, LINKS_TEMPLATE, CURRENCY_TEMPLATE, ADDRESS_TEMPLATE:
  ordered sub-field descriptors used by the flatten/unflatten transform
- FIELD_TEMPLATES: complex type name -> template
- KIND_SELECTIONS: GraphQL sub-selections for every structured kind, used
  when projecting records (a superset of the templates: Emails, Phones and
  Actor are selectable but not editable through flat keys)
- COMPLEX_FIELD_MAPPINGS: well-known field names -> complex type, used when
  no schema type is available for a field
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from src.connector.schema.models import FieldKind

# The one resource kind whose ``name`` field is a FullName.
PERSON_RESOURCE = "person"


class SubFieldDefinition(BaseModel):
    """One editable sub-field of a composite value."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    kind: Literal["string", "number", "options"] = "string"
    default: Any = ""
    description: str = ""


class CompositeFieldTemplate(BaseModel):
    """Ordered sub-fields of one complex type."""

    model_config = ConfigDict(frozen=True)

    complex_type: str
    field_kind: FieldKind
    description: str
    sub_fields: tuple[SubFieldDefinition, ...]

    @property
    def sub_field_names(self) -> list[str]:
        return [sub.name for sub in self.sub_fields]


FULL_NAME_TEMPLATE = CompositeFieldTemplate(
    complex_type="FullName",
    field_kind=FieldKind.FULL_NAME,
    description="Full name with first and last name components",
    sub_fields=(
        SubFieldDefinition(name="firstName", display_name="First Name", description="Given name"),
        SubFieldDefinition(name="lastName", display_name="Last Name", description="Family name"),
    ),
)

LINKS_TEMPLATE = CompositeFieldTemplate(
    complex_type="Links",
    field_kind=FieldKind.LINKS,
    description="URL link with label",
    sub_fields=(
        SubFieldDefinition(
            name="primaryLinkUrl",
            display_name="URL",
            description="The complete URL (e.g., https://example.com)",
        ),
        SubFieldDefinition(
            name="primaryLinkLabel",
            display_name="Label",
            description="Display label for the URL",
        ),
    ),
)

CURRENCY_TEMPLATE = CompositeFieldTemplate(
    complex_type="Currency",
    field_kind=FieldKind.CURRENCY,
    description="Currency amount with code",
    sub_fields=(
        SubFieldDefinition(
            name="amountMicros",
            display_name="Amount",
            kind="number",
            default=0,
            description="Amount in currency units (converted to micros on write)",
        ),
        SubFieldDefinition(
            name="currencyCode",
            display_name="Currency",
            kind="options",
            default="USD",
            description="Three-letter currency code",
        ),
    ),
)

ADDRESS_TEMPLATE = CompositeFieldTemplate(
    complex_type="Address",
    field_kind=FieldKind.ADDRESS,
    description="Physical address with street, city, postal code, and country",
    sub_fields=(
        SubFieldDefinition(name="addressStreet1", display_name="Street Address 1"),
        SubFieldDefinition(name="addressStreet2", display_name="Street Address 2"),
        SubFieldDefinition(name="addressCity", display_name="City"),
        SubFieldDefinition(name="addressPostcode", display_name="Postal Code"),
        SubFieldDefinition(name="addressState", display_name="State / Province"),
        SubFieldDefinition(name="addressCountry", display_name="Country"),
        SubFieldDefinition(name="addressLat", display_name="Latitude", kind="number", default=None),
        SubFieldDefinition(name="addressLng", display_name="Longitude", kind="number", default=None),
    ),
)

FIELD_TEMPLATES: dict[str, CompositeFieldTemplate] = {
    "FullName": FULL_NAME_TEMPLATE,
    "Links": LINKS_TEMPLATE,
    "Currency": CURRENCY_TEMPLATE,
    "Address": ADDRESS_TEMPLATE,
}

_TEMPLATES_BY_KIND: dict[FieldKind, CompositeFieldTemplate] = {
    template.field_kind: template for template in FIELD_TEMPLATES.values()
}


# ── Projection selections ──────────────────────────────────────────────────

KIND_SELECTIONS: dict[FieldKind, tuple[str, ...]] = {
    FieldKind.FULL_NAME: ("firstName", "lastName"),
    FieldKind.LINKS: ("primaryLinkUrl", "primaryLinkLabel", "secondaryLinks"),
    FieldKind.CURRENCY: ("amountMicros", "currencyCode"),
    FieldKind.ADDRESS: (
        "addressStreet1",
        "addressStreet2",
        "addressCity",
        "addressState",
        "addressCountry",
        "addressPostcode",
        "addressLat",
        "addressLng",
    ),
    FieldKind.EMAILS: ("primaryEmail", "additionalEmails"),
    FieldKind.PHONES: (
        "primaryPhoneNumber",
        "primaryPhoneCountryCode",
        "primaryPhoneCallingCode",
        "additionalPhones",
    ),
    FieldKind.ACTOR: ("source", "workspaceMemberId", "name"),
}


# ── Field-name detection ────────────────────────────────────────────────────

COMPLEX_FIELD_MAPPINGS: dict[str, str] = {
    # FullName
    "name": "FullName",
    "pointOfContact": "FullName",
    # Links
    "domainName": "Links",
    "linkedinLink": "Links",
    "xLink": "Links",
    "website": "Links",
    "cvcWebsite": "Links",
    # Currency
    "annualRecurringRevenue": "Currency",
    # Address
    "address": "Address",
}


def get_complex_template(complex_type: str) -> CompositeFieldTemplate | None:
    return FIELD_TEMPLATES.get(complex_type)


def template_for_kind(kind: FieldKind) -> CompositeFieldTemplate | None:
    return _TEMPLATES_BY_KIND.get(kind)


def get_complex_type(field_name: str, resource: str | None = None) -> str | None:
    """Complex type of a well-known field name.

    ``name`` is a FullName only on people; everywhere else it is plain text.
    """
    if field_name == "name" and resource != PERSON_RESOURCE:
        return None
    return COMPLEX_FIELD_MAPPINGS.get(field_name)


def is_complex_field(field_name: str, resource: str | None = None) -> bool:
    return get_complex_type(field_name, resource) is not None


def get_fields_for_complex_type(complex_type: str) -> list[str]:
    return [name for name, ctype in COMPLEX_FIELD_MAPPINGS.items() if ctype == complex_type]
