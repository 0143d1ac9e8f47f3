"""
Form validation.

Validators take a draft and return a field error map keyed by dotted field
path. An empty map means the draft can be submitted. Maps are always built
from scratch; nothing is carried over from a previous pass.
"""

from __future__ import annotations

import re
from typing import Callable, Mapping

from riceops.core.models.draft import DraftModel, InwardSlipPassDraft, TransporterDraft

FieldErrors = dict[str, str]
Validator = Callable[[DraftModel], FieldErrors]

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
GST_PATTERN = re.compile(r"[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]")
PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
AADHAAR_PATTERN = re.compile(r"[2-9][0-9]{11}")
PHONE_PATTERN = re.compile(r"[0-9]{10}")
PINCODE_PATTERN = re.compile(r"[0-9]{6}")
IFSC_PATTERN = re.compile(r"[A-Z]{4}0[A-Z0-9]{6}")
USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")


# ============================================================================
# Exceptions
# ============================================================================


class ValidationError(Exception):
    """Draft failed validation; never reaches the network."""

    def __init__(self, errors: Mapping[str, str]):
        self.errors: FieldErrors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


# ============================================================================
# Field Validators
# ============================================================================


def validate_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_gst(gst: str) -> bool:
    """15-character GSTIN, e.g. ``27ABCDE1234F1Z5``."""
    return GST_PATTERN.fullmatch(gst.upper()) is not None


def validate_pan(pan: str) -> bool:
    """10-character PAN, e.g. ``ABCDE1234F``."""
    return PAN_PATTERN.fullmatch(pan.upper()) is not None


def validate_aadhaar(aadhaar: str) -> bool:
    """12 digits, not starting with 0 or 1; spaces ignored."""
    return AADHAAR_PATTERN.fullmatch(re.sub(r"\s", "", aadhaar)) is not None


def validate_phone(phone: str) -> bool:
    return PHONE_PATTERN.fullmatch(phone) is not None


def validate_pincode(pincode: str) -> bool:
    return PINCODE_PATTERN.fullmatch(pincode) is not None


def validate_ifsc(ifsc: str) -> bool:
    """IFSC bank branch code, e.g. ``ABCD0123456``."""
    return IFSC_PATTERN.fullmatch(ifsc.upper()) is not None


def validate_password(password: str) -> bool:
    return len(password) >= 6


def validate_username(username: str) -> bool:
    return USERNAME_PATTERN.fullmatch(username) is not None and len(username) >= 3


_FIELD_CHECKS: dict[str, tuple[Callable[[str], bool], str]] = {
    "email": (validate_email, "Invalid email format"),
    "gst_number": (validate_gst, "Invalid GST format (e.g., 27ABCDE1234F1Z5)"),
    "pan_number": (validate_pan, "Invalid PAN format (e.g., ABCDE1234F)"),
    "aadhaar_number": (validate_aadhaar, "Invalid Aadhaar format (12 digits, cannot start with 0 or 1)"),
    "phone": (validate_phone, "Phone must be 10 digits"),
    "password": (validate_password, "Password must be at least 6 characters"),
    "username": (validate_username, "Username must be alphanumeric with underscore (min 3 chars)"),
    "pincode": (validate_pincode, "Pincode must be 6 digits"),
    "ifsc_code": (validate_ifsc, "Invalid IFSC format (e.g., ABCD0123456)"),
}


def get_validation_error(field: str, value: str) -> str | None:
    """Format check for a single input, keyed by the field's last path segment.

    Unknown fields always pass.
    """
    check = _FIELD_CHECKS.get(field.rsplit(".", 1)[-1])
    if check is None:
        return None
    validator, message = check
    return None if validator(value) else message


# ============================================================================
# Draft Validators
# ============================================================================


def _require(errors: FieldErrors, draft: DraftModel, path: str, message: str) -> None:
    value = draft.get_field(path)
    if value is None or not str(value).strip():
        errors[path] = message


def validate_transporter(draft: TransporterDraft) -> FieldErrors:
    """Rules for the three-step transporter wizard.

    The pincode only has to be present here; the six-digit shape is what
    triggers the address lookup, not a submission requirement.
    """
    errors: FieldErrors = {}
    _require(errors, draft, "business_name", "Business name is required")
    _require(errors, draft, "contact_person", "Contact person is required")
    _require(errors, draft, "phone", "Phone is required")
    email = draft.email.strip()
    if email and not validate_email(email):
        errors["email"] = "Invalid email format"
    _require(errors, draft, "address.street", "Street is required")
    _require(errors, draft, "address.city", "City is required")
    _require(errors, draft, "address.state", "State is required")
    _require(errors, draft, "address.pincode", "Pincode is required")
    return errors


def validate_transporter_quick(draft: TransporterDraft) -> FieldErrors:
    """Rules for the single-page transporter form, which also needs a country."""
    errors = validate_transporter(draft)
    _require(errors, draft, "address.country", "Country is required")
    return errors


def validate_inward_slip_pass(draft: InwardSlipPassDraft) -> FieldErrors:
    errors: FieldErrors = {}
    if not draft.sauda_ids:
        errors["sauda_ids"] = "At least one sauda is required"
    _require(errors, draft, "slip_number", "Slip number is required")
    _require(errors, draft, "date", "Date is required")
    _require(errors, draft, "vehicle_number", "Vehicle number is required")
    _require(errors, draft, "party_name", "Party name is required")
    if draft.transportation_cost is not None and draft.transportation_cost < 0:
        errors["transportation_cost"] = "Transportation cost cannot be negative"
    return errors
