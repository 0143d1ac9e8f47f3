"""
Entity Models for the RiceOps console.

Transient client-side copies of records owned by the back-office API.
The server is the source of truth; these models only parse what it
returns and tolerate fields the client does not know about.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Enums
# ============================================================================


class EntityKind(str, Enum):
    """Entity kinds managed by the console."""
    TRANSPORTER = "transporter"
    INWARD_SLIP_PASS = "inward_slip_pass"


class InwardSlipPassStatus(str, Enum):
    """Lifecycle status of an inward slip pass."""
    PENDING = "pending"
    COMPLETED = "completed"


# ============================================================================
# Nested Blocks
# ============================================================================


class Address(BaseModel):
    """Postal address block."""

    model_config = ConfigDict(extra="ignore")

    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = ""

    @field_validator("street", "city", "state", "pincode", "country", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


# ============================================================================
# Entities
# ============================================================================


class Transporter(BaseModel):
    """A transport company that moves goods to and from the mill.

    Attributes:
        id: Server-assigned identifier
        business_name: Registered business name
        contact_person: Primary contact
        phone: Contact phone number
        email: Optional contact email
        address: Optional postal address
        gst_number: Optional GST registration
        pan_number: Optional PAN
        vehicle_numbers: Registered vehicle numbers (ordered, no duplicates)
        bank_details: Free-form bank/financial details
        is_active: Whether the transporter is active
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    business_name: str = ""
    contact_person: str = ""
    phone: str = ""
    email: Optional[str] = None
    address: Optional[Address] = None
    gst_number: Optional[str] = None
    pan_number: Optional[str] = None
    vehicle_numbers: list[str] = Field(default_factory=list)
    bank_details: Optional[dict[str, Any]] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("vehicle_numbers", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class InwardSlipPass(BaseModel):
    """An inward goods-receipt slip recorded when a vehicle unloads.

    Attributes:
        id: Server-assigned identifier
        sauda_ids: Purchase deals this slip is booked against
        slip_number: Printed slip number
        date: Receipt date (ISO ``YYYY-MM-DD``)
        vehicle_number: Vehicle that delivered the goods
        party_name: Selling party
        status: ``pending`` until the lots are weighed and closed
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    sauda_ids: list[str] = Field(default_factory=list)
    slip_number: str = ""
    date: str = ""
    vehicle_number: str = ""
    party_name: str = ""
    party_address: Optional[str] = None
    party_gst_number: Optional[str] = None
    transporter_id: Optional[str] = None
    transportation_cost: Optional[float] = None
    notes: Optional[str] = None
    status: InwardSlipPassStatus = InwardSlipPassStatus.PENDING
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("sauda_ids", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class DeleteResult(BaseModel):
    """Body returned by DELETE endpoints."""

    success: bool = True
    message: str = ""
