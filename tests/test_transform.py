"""Unit tests for the flat <-> nested composite transform.

Tests cover:
- split_flat_key on single and multi-underscore keys
- unflatten emission rules (absent values, empty composites, pass-through)
- Currency micros conversion applied exactly once
- Resource-dependent interpretation of ``name``
- flatten for prefilling editors, and missing_subfields hints
"""

from __future__ import annotations

import pytest

from src.connector.core.errors import ValidationError
from src.connector.schema.composite import ADDRESS_TEMPLATE, CURRENCY_TEMPLATE, FULL_NAME_TEMPLATE
from src.connector.schema.models import FieldKind
from src.connector.schema.transform import (
    flatten,
    is_absent,
    missing_subfields,
    resolve_template,
    split_flat_key,
    to_micros,
    unflatten,
)
from tests.factories import make_field


# ── split_flat_key ─────────────────────────────────────────────────────────


class TestSplitFlatKey:
    """Tests for parent/sub-field key splitting."""

    def test_single_underscore(self):
        """The first segment is the parent field."""
        assert split_flat_key("name_firstName") == ("name", "firstName")

    def test_multi_underscore_keeps_rest_of_key(self):
        """Everything after the first underscore is the sub-field name."""
        assert split_flat_key("custom_sub_field_name") == ("custom", "sub_field_name")

    def test_no_underscore(self):
        """Plain keys have no sub-field."""
        assert split_flat_key("email") == ("email", None)


class TestIsAbsent:
    """Tests for the absent-value predicate."""

    def test_none_and_empty_string_are_absent(self):
        assert is_absent(None)
        assert is_absent("")

    def test_falsy_values_are_present(self):
        """0 and False are real values, not absence."""
        assert not is_absent(0)
        assert not is_absent(False)
        assert not is_absent([])


# ── unflatten ──────────────────────────────────────────────────────────────


class TestUnflatten:
    """Tests for building nested payloads from flat caller maps."""

    def test_person_full_name_scenario(self, person_schema):
        """Person name sub-keys nest under name; other keys pass through."""
        flat = {"name_firstName": "John", "name_lastName": "Doe", "email": "j@x.com"}

        result = unflatten(flat, person_schema.fields, resource="person")

        assert result == {
            "name": {"firstName": "John", "lastName": "Doe"},
            "email": "j@x.com",
        }

    def test_input_is_not_modified(self, person_schema):
        """unflatten returns a new dict."""
        flat = {"name_firstName": "John"}
        unflatten(flat, person_schema.fields, resource="person")
        assert flat == {"name_firstName": "John"}

    def test_partial_subfields_emit_parent(self, company_schema):
        """One surviving sub-field is enough to emit the parent."""
        flat = {"address_addressCity": "Paris", "address_addressStreet1": ""}

        result = unflatten(flat, company_schema.fields, resource="company")

        assert result == {"address": {"addressCity": "Paris"}}

    def test_all_empty_subfields_omit_parent(self, company_schema):
        """A composite whose sub-fields are all absent is omitted, not {}."""
        flat = {
            "address_addressCity": "",
            "address_addressStreet1": None,
            "employees": 10,
        }

        result = unflatten(flat, company_schema.fields, resource="company")

        assert result == {"employees": 10}
        assert "address" not in result

    def test_no_subfields_omit_parent(self, company_schema):
        """Composite fields the caller did not mention are not emitted."""
        result = unflatten({"employees": 3}, company_schema.fields, resource="company")
        assert result == {"employees": 3}

    def test_every_composite_kind_round_trips_declared_subfields(self, company_schema):
        """Each declared sub-field with a value lands under its parent."""
        flat = {
            "domainName_primaryLinkUrl": "https://acme.com",
            "domainName_primaryLinkLabel": "Acme",
            "address_addressLat": 48.85,
            "address_addressCountry": "France",
        }

        result = unflatten(flat, company_schema.fields, resource="company")

        assert result == {
            "domainName": {"primaryLinkUrl": "https://acme.com", "primaryLinkLabel": "Acme"},
            "address": {"addressLat": 48.85, "addressCountry": "France"},
        }

    def test_unknown_subfield_of_composite_dropped(self, company_schema):
        """Sub-keys not declared by the template never reach the payload."""
        flat = {"address_addressCity": "Paris", "address_planet": "Earth"}

        result = unflatten(flat, company_schema.fields, resource="company")

        assert result == {"address": {"addressCity": "Paris"}}

    def test_underscore_key_of_scalar_field_passes_through(self):
        """A scalar field whose own name contains underscores is untouched."""
        fields = [make_field("legacy_code", FieldKind.TEXT)]

        result = unflatten({"legacy_code": "X1"}, fields, resource="company")

        assert result == {"legacy_code": "X1"}

    def test_nested_input_passes_through(self, company_schema):
        """Already nested values are not re-processed."""
        nested = {"annualRecurringRevenue": {"amountMicros": "5000000", "currencyCode": "USD"}}

        result = unflatten(nested, company_schema.fields, resource="company")

        assert result == nested


class TestUnflattenNameField:
    """Tests for the resource-dependent ``name`` field."""

    def test_company_name_is_scalar(self, company_schema):
        """On companies, name is plain text and sub-keys are not nested."""
        result = unflatten({"name": "Acme"}, company_schema.fields, resource="company")
        assert result == {"name": "Acme"}

    def test_company_name_subkeys_are_not_full_name(self, company_schema):
        """name_firstName on a company is not interpreted as a FullName."""
        result = unflatten({"name_firstName": "Acme"}, company_schema.fields, resource="company")
        assert "name" not in result

    def test_untyped_name_on_person_is_full_name(self):
        """Without a schema type, the resource decides that name is a FullName."""
        fields = [make_field("name", FieldKind.UNKNOWN)]

        result = unflatten({"name_firstName": "Ada"}, fields, resource="person")

        assert result == {"name": {"firstName": "Ada"}}


# ── Currency ───────────────────────────────────────────────────────────────


class TestCurrency:
    """Tests for units -> micros conversion."""

    def test_integer_amount(self, company_schema):
        """5 units become the string '5000000' on the wire."""
        flat = {
            "annualRecurringRevenue_amountMicros": 5,
            "annualRecurringRevenue_currencyCode": "USD",
        }

        result = unflatten(flat, company_schema.fields, resource="company")

        assert result == {
            "annualRecurringRevenue": {"amountMicros": "5000000", "currencyCode": "USD"}
        }

    def test_conversion_applied_once(self, company_schema):
        """Feeding the payload back through unflatten does not multiply again."""
        flat = {"annualRecurringRevenue_amountMicros": 5}

        once = unflatten(flat, company_schema.fields, resource="company")
        twice = unflatten(once, company_schema.fields, resource="company")

        assert twice["annualRecurringRevenue"]["amountMicros"] == "5000000"

    def test_flatten_never_converts(self, company_schema):
        """Reading back a record keeps the wire micros value."""
        record = {"annualRecurringRevenue": {"amountMicros": "5000000", "currencyCode": "EUR"}}

        result = flatten(record, company_schema.fields, resource="company")

        assert result == {
            "annualRecurringRevenue_amountMicros": "5000000",
            "annualRecurringRevenue_currencyCode": "EUR",
        }

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [(5, "5000000"), (1.5, "1500000"), ("2.25", "2250000"), (0, "0"), (-3, "-3000000")],
    )
    def test_to_micros(self, amount, expected):
        assert to_micros(amount) == expected

    @pytest.mark.parametrize("amount", ["abc", True, float("nan"), float("inf")])
    def test_to_micros_rejects_non_numeric(self, amount):
        """Non-numeric amounts raise ValidationError."""
        with pytest.raises(ValidationError, match="Currency amount"):
            to_micros(amount)

    def test_invalid_amount_raises_from_unflatten(self, company_schema):
        with pytest.raises(ValidationError):
            unflatten(
                {"annualRecurringRevenue_amountMicros": "lots"},
                company_schema.fields,
                resource="company",
            )


# ── Template resolution ────────────────────────────────────────────────────


class TestResolveTemplate:
    """Tests for choosing the template that governs a field."""

    def test_schema_kind_decides(self):
        assert resolve_template(make_field("hq", FieldKind.ADDRESS)) is ADDRESS_TEMPLATE

    def test_scalar_kind_has_no_template(self):
        assert resolve_template(make_field("website", FieldKind.TEXT)) is None

    def test_unknown_kind_falls_back_to_name_table(self):
        """Untyped well-known field names use the detection table."""
        template = resolve_template(make_field("annualRecurringRevenue", FieldKind.UNKNOWN))
        assert template is CURRENCY_TEMPLATE

    def test_name_depends_on_resource(self):
        field = make_field("name", FieldKind.FULL_NAME)
        assert resolve_template(field, "person") is FULL_NAME_TEMPLATE
        assert resolve_template(field, "opportunity") is None


# ── flatten / missing_subfields ────────────────────────────────────────────


class TestFlatten:
    """Tests for spreading records into flat keys."""

    def test_person_record(self, person_schema):
        record = {"id": "p-1", "name": {"firstName": "John", "lastName": "Doe"}}

        result = flatten(record, person_schema.fields, resource="person")

        assert result == {"id": "p-1", "name_firstName": "John", "name_lastName": "Doe"}

    def test_undeclared_subfields_ignored(self, company_schema):
        """secondaryLinks is readable but not a flat-editable sub-field."""
        record = {
            "domainName": {
                "primaryLinkUrl": "https://acme.com",
                "primaryLinkLabel": "",
                "secondaryLinks": None,
            }
        }

        result = flatten(record, company_schema.fields, resource="company")

        assert result == {
            "domainName_primaryLinkUrl": "https://acme.com",
            "domainName_primaryLinkLabel": "",
        }

    def test_null_composite_passes_through(self, company_schema):
        result = flatten({"address": None}, company_schema.fields, resource="company")
        assert result == {"address": None}


class TestMissingSubfields:
    """Tests for the validation hint listing empty string sub-fields."""

    def test_reports_empty_string_subfields(self):
        flat = {"name_firstName": "Ada", "name_lastName": ""}
        assert missing_subfields(flat, "name", FULL_NAME_TEMPLATE) == ["lastName"]

    def test_numeric_and_option_subfields_not_reported(self):
        assert missing_subfields({}, "annualRecurringRevenue", CURRENCY_TEMPLATE) == []
