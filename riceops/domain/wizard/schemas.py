"""
Form schemas.

A schema tells the wizard engine how many steps a form has, which fields
live on each step, how to build and map drafts, and which fields get special
handling (the tag list and the postal code that drives address lookup).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Type

from riceops.core.models.draft import DraftModel, InwardSlipPassDraft, TransporterDraft
from riceops.core.models.entity import EntityKind
from riceops.core.permissions import PERMISSION_ENTITIES
from riceops.domain.wizard.validation import (
    FieldErrors,
    ValidationError,
    validate_inward_slip_pass,
    validate_transporter,
    validate_transporter_quick,
)


@dataclass(frozen=True)
class FormStep:
    """One page of a form.

    ``fields`` are dotted paths or path prefixes: ``address`` claims every
    ``address.*`` error.
    """

    title: str
    fields: tuple[str, ...]

    def owns(self, path: str) -> bool:
        return any(path == f or path.startswith(f"{f}.") for f in self.fields)


@dataclass(frozen=True)
class FormSchema:
    """Declarative description of an entity form."""

    name: str
    entity_kind: EntityKind
    draft_type: Type[DraftModel]
    steps: tuple[FormStep, ...]
    validator: Callable[[Any], FieldErrors]
    tag_field: Optional[str] = None
    postal_code_field: Optional[str] = None
    address_field: Optional[str] = None
    permission_key: Optional[str] = None

    def __post_init__(self):
        if self.permission_key is not None and self.permission_key not in PERMISSION_ENTITIES:
            raise ValueError(f"Form '{self.name}' has unknown permission key '{self.permission_key}'")

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def blank_draft(self, default_country: str = "India") -> DraftModel:
        return self.draft_type.blank(default_country)

    def draft_from_entity(self, entity: Any, default_country: str = "India") -> DraftModel:
        return self.draft_type.from_entity(entity, default_country)

    def validate(self, draft: DraftModel) -> FieldErrors:
        return self.validator(draft)

    def check(self, draft: DraftModel) -> None:
        """Raise ValidationError when the draft has problems."""
        errors = self.validate(draft)
        if errors:
            raise ValidationError(errors)

    def step_for_field(self, path: str) -> Optional[int]:
        """1-based step holding ``path``, or None if no step claims it."""
        for index, step in enumerate(self.steps, start=1):
            if step.owns(path):
                return index
        return None

    def first_step_with_errors(self, errors: Sequence[str]) -> Optional[int]:
        """Earliest step (in step order) owning any of the failing paths."""
        steps = [s for s in (self.step_for_field(path) for path in errors) if s is not None]
        return min(steps) if steps else None


# ============================================================================
# Schemas
# ============================================================================


TRANSPORTER_WIZARD = FormSchema(
    name="transporter_wizard",
    entity_kind=EntityKind.TRANSPORTER,
    draft_type=TransporterDraft,
    steps=(
        FormStep(
            "Business Info",
            ("business_name", "contact_person", "phone", "email", "gst_number", "pan_number"),
        ),
        FormStep("Address", ("address",)),
        FormStep("Details", ("vehicle_numbers", "bank_details", "is_active")),
    ),
    validator=validate_transporter,
    tag_field="vehicle_numbers",
    postal_code_field="address.pincode",
    address_field="address",
)

TRANSPORTER_QUICK_FORM = FormSchema(
    name="transporter_form",
    entity_kind=EntityKind.TRANSPORTER,
    draft_type=TransporterDraft,
    steps=(
        FormStep(
            "Transporter",
            (
                "business_name", "contact_person", "phone", "email", "address",
                "gst_number", "pan_number", "vehicle_numbers", "bank_details", "is_active",
            ),
        ),
    ),
    validator=validate_transporter_quick,
    tag_field="vehicle_numbers",
    postal_code_field="address.pincode",
    address_field="address",
)

INWARD_SLIP_PASS_FORM = FormSchema(
    name="inward_slip_pass_form",
    entity_kind=EntityKind.INWARD_SLIP_PASS,
    draft_type=InwardSlipPassDraft,
    steps=(
        FormStep(
            "Inward Slip",
            (
                "sauda_ids", "slip_number", "date", "vehicle_number", "party_name",
                "party_address", "party_gst_number", "transporter_id",
                "transportation_cost", "notes",
            ),
        ),
    ),
    validator=validate_inward_slip_pass,
    tag_field="sauda_ids",
    # Slips are gated on the vendor grant
    permission_key="vendor",
)
