"""Validation rules for the entity forms and the standalone field checks."""

import pytest

from riceops.core.models.draft import InwardSlipPassDraft, TransporterDraft
from riceops.domain.wizard.validation import (
    ValidationError,
    get_validation_error,
    validate_aadhaar,
    validate_email,
    validate_gst,
    validate_ifsc,
    validate_inward_slip_pass,
    validate_pan,
    validate_phone,
    validate_pincode,
    validate_transporter,
    validate_transporter_quick,
)


def complete_transporter(**fields) -> TransporterDraft:
    draft = TransporterDraft.blank()
    values = {
        "business_name": "Sharma Roadlines",
        "contact_person": "Ravi Sharma",
        "phone": "9876543210",
        "address.street": "12 Mill Road",
        "address.city": "Karnal",
        "address.state": "Haryana",
        "address.pincode": "132001",
    }
    values.update(fields)
    for path, value in values.items():
        draft = draft.with_field(path, value)
    return draft


def test_complete_transporter_is_valid():
    assert validate_transporter(complete_transporter()) == {}


@pytest.mark.parametrize(
    "path",
    [
        "business_name",
        "contact_person",
        "phone",
        "address.street",
        "address.city",
        "address.state",
        "address.pincode",
    ],
)
def test_required_fields_reject_whitespace(path):
    errors = validate_transporter(complete_transporter(**{path: "   "}))
    assert list(errors) == [path]


def test_email_optional_but_checked_when_present():
    assert validate_transporter(complete_transporter(email="")) == {}
    assert validate_transporter(complete_transporter(email="  ")) == {}
    assert validate_transporter(complete_transporter(email="ops@sharma.in")) == {}
    assert "email" in validate_transporter(complete_transporter(email="not-an-email"))


def test_non_numeric_pincode_accepted_at_submit():
    assert validate_transporter(complete_transporter(**{"address.pincode": "ABC"})) == {}


def test_quick_form_requires_country():
    draft = complete_transporter(**{"address.country": ""})

    assert validate_transporter(draft) == {}
    assert list(validate_transporter_quick(draft)) == ["address.country"]


def test_inward_slip_rules():
    errors = validate_inward_slip_pass(InwardSlipPassDraft(transportation_cost=-5))

    assert set(errors) == {"sauda_ids", "slip_number", "vehicle_number", "party_name", "transportation_cost"}


def test_inward_slip_valid():
    draft = InwardSlipPassDraft(
        sauda_ids=["S-1"],
        slip_number="IS-001",
        date="2024-03-01",
        vehicle_number="HR05AB1234",
        party_name="Gupta Traders",
        transportation_cost=0,
    )
    assert validate_inward_slip_pass(draft) == {}


def test_validation_error_lists_fields():
    exc = ValidationError({"phone": "Phone is required", "address.city": "City is required"})

    assert exc.errors["phone"] == "Phone is required"
    assert str(exc) == "Invalid fields: address.city, phone"


def test_field_validators():
    assert validate_email("a@b.co")
    assert not validate_email("a b@c.d")
    assert validate_gst("27abcde1234f1z5")
    assert not validate_gst("27ABCDE1234F1X5")
    assert validate_pan("ABCDE1234F")
    assert not validate_pan("ABCD1234F")
    assert validate_aadhaar("2345 6789 0123")
    assert not validate_aadhaar("123456789012")
    assert validate_phone("9876543210")
    assert not validate_phone("98765")
    assert validate_pincode("560001")
    assert not validate_pincode("56000a")
    assert validate_ifsc("HDFC0001234")
    assert not validate_ifsc("HDFC1001234")


def test_get_validation_error_uses_last_path_segment():
    assert get_validation_error("address.pincode", "12") == "Pincode must be 6 digits"
    assert get_validation_error("bank_details.ifsc_code", "HDFC0001234") is None
    assert get_validation_error("nickname", "anything") is None
