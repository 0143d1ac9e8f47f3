"""
API Interface - HTTP client, gateways and lookup client for the back office.
"""

from riceops.infrastructure.api.base import (
    ApiClient,
    AuthenticationError,
    GatewayError,
    NotFoundError,
    PermissionDeniedError,
    PincodeLookupError,
    describe_error,
)
from riceops.infrastructure.api.gateway import EntityGateway, ResourceGateway
from riceops.infrastructure.api.inward_slip_passes import InwardSlipPassesGateway
from riceops.infrastructure.api.pincode import LookupClient, PincodeLookupClient, is_lookup_pincode
from riceops.infrastructure.api.transporters import TransportersGateway

__all__ = [
    # Base
    "ApiClient",
    "GatewayError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "PincodeLookupError",
    "describe_error",
    # Gateways
    "EntityGateway",
    "ResourceGateway",
    "TransportersGateway",
    "InwardSlipPassesGateway",
    # Lookup
    "LookupClient",
    "PincodeLookupClient",
    "is_lookup_pincode",
]
