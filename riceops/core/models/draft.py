"""
Draft Models for entity forms.

A draft is the client-only staging copy of a create/update payload. Drafts
are never edited in place: every change goes through ``with_field`` (or the
tag helpers) which return a new draft, so a wizard can hold the previous
value while a lookup is in flight and nested blocks are never dropped.

Field paths use dotted nesting, e.g. ``address.city`` or
``bank_details.ifsc_code``.
"""

from __future__ import annotations

import datetime
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from riceops.core.models.entity import Address, InwardSlipPass, Transporter

BANK_DETAIL_KEYS = ("bank_name", "ifsc_code", "account_number", "branch")


# ============================================================================
# Path Helpers
# ============================================================================


def _split(path: str) -> list[str]:
    parts = [p for p in path.split(".") if p]
    if not parts:
        raise KeyError(f"Empty field path: {path!r}")
    return parts


def _read(obj: Any, parts: Sequence[str], path: str) -> Any:
    for name in parts:
        if isinstance(obj, BaseModel):
            if name not in type(obj).model_fields:
                raise KeyError(f"Unknown field path: {path}")
            obj = getattr(obj, name)
        elif isinstance(obj, dict):
            obj = obj.get(name, "")
        else:
            raise KeyError(f"Unknown field path: {path}")
    return obj


def _assign(data: dict[str, Any], parts: Sequence[str], value: Any) -> dict[str, Any]:
    name, rest = parts[0], parts[1:]
    if not rest:
        return {**data, name: value}
    return {**data, name: _assign(data.get(name) or {}, rest, value)}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _unique_tags(values: Any) -> list[str]:
    """Trimmed, non-blank tags in first-seen order."""
    if isinstance(values, str):
        values = [values]
    tags: list[str] = []
    for value in values or []:
        tag = str(value).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


# ============================================================================
# Base Draft
# ============================================================================


class DraftModel(BaseModel):
    """Base class for drafts with immutable update helpers.

    Every update is rebuilt through validation, so a draft always holds
    its declared types: nested blocks stay models, ``None`` in a text
    field becomes ``""`` and tag lists stay trimmed and unique.
    """

    model_config = ConfigDict(extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and cls.model_fields[info.field_name].annotation is str:
            return ""
        return value

    def get_field(self, path: str) -> Any:
        """Read a value by dotted path."""
        return _read(self, _split(path), path)

    def with_field(self, path: str, value: Any) -> "DraftModel":
        """Return a validated copy with one field replaced.

        Raises:
            KeyError: If the path does not name a draft field
            ValueError: If the value does not fit the field, including
                ``None`` for a nested block
        """
        parts = _split(path)
        current = _read(self, parts, path)
        if value is None and isinstance(current, (BaseModel, dict)):
            raise ValueError(f"Nested block '{path}' cannot be cleared")
        return type(self).model_validate(_assign(self.model_dump(), parts, value))

    def with_tag_added(self, path: str, value: str) -> "DraftModel":
        """Return a copy with a trimmed tag appended.

        Blank values and values already present are ignored and the same
        draft is returned.
        """
        tag = (value or "").strip()
        tags = list(self.get_field(path) or [])
        if not tag or tag in tags:
            return self
        return self.with_field(path, [*tags, tag])

    def with_tag_removed(self, path: str, index: int) -> "DraftModel":
        """Return a copy with the tag at ``index`` removed."""
        tags = list(self.get_field(path) or [])
        if index < 0 or index >= len(tags):
            return self
        return self.with_field(path, [t for i, t in enumerate(tags) if i != index])

    def to_payload(self) -> dict[str, Any]:
        """Request body for create/update calls."""
        return self.model_dump()


# ============================================================================
# Transporter Draft
# ============================================================================


def _blank_bank_details() -> dict[str, str]:
    return {key: "" for key in BANK_DETAIL_KEYS}


class TransporterDraft(DraftModel):
    """Create/update payload for a transporter."""

    business_name: str = ""
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    address: Address = Field(default_factory=lambda: Address(country="India"))
    gst_number: str = ""
    pan_number: str = ""
    vehicle_numbers: list[str] = Field(default_factory=list)
    bank_details: dict[str, str] = Field(default_factory=_blank_bank_details)
    is_active: bool = True

    @field_validator("vehicle_numbers", mode="before")
    @classmethod
    def _vehicle_tags(cls, value: Any) -> list[str]:
        return _unique_tags(value)

    @field_validator("bank_details", mode="before")
    @classmethod
    def _bank_details_text(cls, value: Any) -> Any:
        if value is None:
            return _blank_bank_details()
        if not isinstance(value, dict):
            return value
        return {
            **_blank_bank_details(),
            **{key: "" if item is None else str(item) for key, item in value.items()},
        }

    @classmethod
    def blank(cls, default_country: str = "India") -> "TransporterDraft":
        return cls(address=Address(country=default_country))

    @classmethod
    def from_entity(cls, entity: Transporter, default_country: str = "India") -> "TransporterDraft":
        """Map a fetched transporter to draft shape, defaulting absent blocks."""
        address = entity.address or Address(country=default_country)
        return cls(
            business_name=entity.business_name,
            contact_person=entity.contact_person,
            phone=entity.phone,
            email=entity.email or "",
            address=address.model_copy(),
            gst_number=entity.gst_number or "",
            pan_number=entity.pan_number or "",
            vehicle_numbers=list(entity.vehicle_numbers),
            bank_details=entity.bank_details,
            is_active=entity.is_active,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "business_name": self.business_name.strip(),
            "contact_person": self.contact_person.strip(),
            "phone": self.phone.strip(),
            "email": _blank_to_none(self.email),
            "address": self.address.model_dump(),
            "gst_number": _blank_to_none(self.gst_number),
            "pan_number": _blank_to_none(self.pan_number),
            "vehicle_numbers": list(self.vehicle_numbers),
            "bank_details": dict(self.bank_details),
            "is_active": self.is_active,
        }


# ============================================================================
# Inward Slip Pass Draft
# ============================================================================


class InwardSlipPassDraft(DraftModel):
    """Create/update payload for an inward slip pass."""

    sauda_ids: list[str] = Field(default_factory=list)
    slip_number: str = ""
    date: str = Field(default_factory=lambda: datetime.date.today().isoformat())
    vehicle_number: str = ""
    party_name: str = ""
    party_address: str = ""
    party_gst_number: str = ""
    transporter_id: str = ""
    transportation_cost: Optional[float] = None
    notes: str = ""

    @field_validator("sauda_ids", mode="before")
    @classmethod
    def _sauda_tags(cls, value: Any) -> list[str]:
        return _unique_tags(value)

    @classmethod
    def blank(cls, default_country: str = "India") -> "InwardSlipPassDraft":
        return cls()

    @classmethod
    def from_entity(cls, entity: InwardSlipPass, default_country: str = "India") -> "InwardSlipPassDraft":
        return cls(
            sauda_ids=list(entity.sauda_ids),
            slip_number=entity.slip_number,
            date=entity.date,
            vehicle_number=entity.vehicle_number,
            party_name=entity.party_name,
            party_address=entity.party_address or "",
            party_gst_number=entity.party_gst_number or "",
            transporter_id=entity.transporter_id or "",
            transportation_cost=entity.transportation_cost,
            notes=entity.notes or "",
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "sauda_ids": list(self.sauda_ids),
            "slip_number": self.slip_number.strip(),
            "date": self.date,
            "vehicle_number": self.vehicle_number.strip(),
            "party_name": self.party_name.strip(),
            "party_address": _blank_to_none(self.party_address),
            "party_gst_number": _blank_to_none(self.party_gst_number),
            "transporter_id": _blank_to_none(self.transporter_id),
            "transportation_cost": self.transportation_cost,
            "notes": _blank_to_none(self.notes),
        }
