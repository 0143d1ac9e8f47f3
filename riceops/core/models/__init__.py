"""
Core Models - entities, drafts and lookup payloads.
"""

from riceops.core.models.draft import DraftModel, InwardSlipPassDraft, TransporterDraft
from riceops.core.models.entity import (
    Address,
    DeleteResult,
    EntityKind,
    InwardSlipPass,
    InwardSlipPassStatus,
    Transporter,
)
from riceops.core.models.lookup import PincodeLookupData, PostOffice

__all__ = [
    "Address",
    "DeleteResult",
    "EntityKind",
    "InwardSlipPass",
    "InwardSlipPassStatus",
    "Transporter",
    "DraftModel",
    "TransporterDraft",
    "InwardSlipPassDraft",
    "PincodeLookupData",
    "PostOffice",
]
