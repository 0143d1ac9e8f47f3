"""
Form wizards - schemas, validation, address enrichment and the step engine.
"""

from riceops.domain.wizard.engine import FormWizard, WizardError, WizardState
from riceops.domain.wizard.enrichment import EnrichmentCoordinator, merge_post_office
from riceops.domain.wizard.schemas import (
    INWARD_SLIP_PASS_FORM,
    TRANSPORTER_QUICK_FORM,
    TRANSPORTER_WIZARD,
    FormSchema,
    FormStep,
)
from riceops.domain.wizard.validation import (
    ValidationError,
    get_validation_error,
    validate_inward_slip_pass,
    validate_transporter,
    validate_transporter_quick,
)

__all__ = [
    # Engine
    "FormWizard",
    "WizardState",
    "WizardError",
    # Enrichment
    "EnrichmentCoordinator",
    "merge_post_office",
    # Schemas
    "FormSchema",
    "FormStep",
    "TRANSPORTER_WIZARD",
    "TRANSPORTER_QUICK_FORM",
    "INWARD_SLIP_PASS_FORM",
    # Validation
    "ValidationError",
    "get_validation_error",
    "validate_transporter",
    "validate_transporter_quick",
    "validate_inward_slip_pass",
]
