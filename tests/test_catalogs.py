"""Unit tests for the static catalogs: composite templates and wire formats.

Tests cover:
- Template sub-field order and defaults
- Field-name detection table including the ambiguous ``name``
- Projection selections for structured kinds
- Format catalog lookup and fallback
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.connector.schema.composite import (
    ADDRESS_TEMPLATE,
    CURRENCY_TEMPLATE,
    FIELD_TEMPLATES,
    KIND_SELECTIONS,
    LINKS_TEMPLATE,
    get_complex_template,
    get_complex_type,
    get_fields_for_complex_type,
    is_complex_field,
    template_for_kind,
)
from src.connector.schema.formats import (
    FIELD_FORMAT_SPECIFICATIONS,
    get_format_spec,
    get_format_spec_with_fallback,
    has_format_spec,
)
from src.connector.schema.models import COMPOSITE_KINDS, FieldKind


# ── Composite templates ────────────────────────────────────────────────────


class TestCompositeTemplates:
    """Tests for the composite field template registry."""

    def test_registry_covers_composite_kinds(self):
        """Every composite kind has exactly one template."""
        assert set(FIELD_TEMPLATES) == {"FullName", "Links", "Currency", "Address"}
        assert {t.field_kind for t in FIELD_TEMPLATES.values()} == set(COMPOSITE_KINDS)

    def test_address_subfield_order(self):
        assert ADDRESS_TEMPLATE.sub_field_names == [
            "addressStreet1",
            "addressStreet2",
            "addressCity",
            "addressPostcode",
            "addressState",
            "addressCountry",
            "addressLat",
            "addressLng",
        ]

    def test_currency_defaults(self):
        """amountMicros defaults to 0, currencyCode to USD."""
        amount, code = CURRENCY_TEMPLATE.sub_fields
        assert (amount.name, amount.kind, amount.default) == ("amountMicros", "number", 0)
        assert (code.name, code.kind, code.default) == ("currencyCode", "options", "USD")

    def test_templates_are_immutable(self):
        with pytest.raises(PydanticValidationError):
            LINKS_TEMPLATE.complex_type = "Other"

    def test_lookup_by_name_and_kind(self):
        assert get_complex_template("Links") is LINKS_TEMPLATE
        assert template_for_kind(FieldKind.ADDRESS) is ADDRESS_TEMPLATE
        assert template_for_kind(FieldKind.EMAILS) is None
        assert get_complex_template("Unknown") is None


class TestComplexFieldDetection:
    """Tests for the well-known field-name table."""

    def test_name_is_full_name_only_for_person(self):
        assert get_complex_type("name", "person") == "FullName"
        assert get_complex_type("name", "company") is None
        assert get_complex_type("name") is None

    def test_unambiguous_names(self):
        assert get_complex_type("domainName") == "Links"
        assert get_complex_type("annualRecurringRevenue", "company") == "Currency"
        assert is_complex_field("address")
        assert not is_complex_field("employees")

    def test_fields_for_complex_type(self):
        assert set(get_fields_for_complex_type("Links")) == {
            "domainName",
            "linkedinLink",
            "xLink",
            "website",
            "cvcWebsite",
        }


class TestKindSelections:
    """Tests for projection sub-selections."""

    def test_structured_kinds_have_selections(self):
        for kind in (*COMPOSITE_KINDS, FieldKind.EMAILS, FieldKind.PHONES, FieldKind.ACTOR):
            assert KIND_SELECTIONS[kind]

    def test_links_selection_includes_secondary_links(self):
        assert "secondaryLinks" in KIND_SELECTIONS[FieldKind.LINKS]

    def test_scalars_have_no_selection(self):
        assert FieldKind.TEXT not in KIND_SELECTIONS


# ── Format catalog ─────────────────────────────────────────────────────────


class TestFormatCatalog:
    """Tests for the wire format catalog."""

    def test_currency_notes_string_micros(self):
        spec = get_format_spec("CURRENCY")
        assert spec is not None
        assert spec.example == {"amountMicros": "1000000", "currencyCode": "USD"}
        assert any("STRING" in note for note in spec.critical_notes)

    def test_every_entry_is_a_known_kind(self):
        """Catalog keys use the FieldKind vocabulary."""
        for key in FIELD_FORMAT_SPECIFICATIONS:
            assert FieldKind(key).value == key

    def test_unknown_type(self):
        assert get_format_spec("TS_VECTOR") is None
        assert not has_format_spec("TS_VECTOR")

    def test_fallback_for_undocumented_type(self):
        spec = get_format_spec_with_fallback("TS_VECTOR")
        assert spec.validation == "flexible"
        assert "TS_VECTOR" in spec.description

    def test_fallback_returns_catalog_entry_when_present(self):
        assert get_format_spec_with_fallback("DATE") is FIELD_FORMAT_SPECIFICATIONS["DATE"]
