"""
Postal-code lookup client.

Resolves a six-digit Indian pincode to the first matching post office.
Malformed codes are rejected locally without a request.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from riceops.core.models.lookup import PincodeLookupData, PostOffice
from riceops.infrastructure.api.base import ApiClient, GatewayError, PincodeLookupError
from riceops.utils.logging import get_logger

logger = get_logger("infrastructure.pincode")

PINCODE_PATTERN = re.compile(r"[0-9]{6}")


def is_lookup_pincode(value: str | None) -> bool:
    """True when ``value`` is exactly six decimal digits."""
    return bool(value) and PINCODE_PATTERN.fullmatch(value) is not None


@runtime_checkable
class LookupClient(Protocol):
    """Anything that can resolve a pincode to a post office."""

    async def lookup(self, pincode: str) -> PostOffice | None:
        ...


class PincodeLookupClient:
    """``GET /pincode/lookup`` client."""

    endpoint = "/pincode/lookup"

    def __init__(self, client: ApiClient):
        self.client = client

    async def lookup_all(self, pincode: str) -> PincodeLookupData:
        """Return the full lookup payload.

        Raises:
            PincodeLookupError: If the code is malformed or the call fails
        """
        if not is_lookup_pincode(pincode):
            raise PincodeLookupError("Pincode must be exactly 6 digits")

        try:
            data = await self.client.get(self.endpoint, params={"pincode": pincode})
        except GatewayError as exc:
            raise PincodeLookupError(
                exc.message,
                status_code=exc.status_code,
                response=exc.response,
            ) from exc

        try:
            return PincodeLookupData.model_validate(data or {})
        except PydanticValidationError as exc:
            raise PincodeLookupError(f"Unexpected lookup payload for {pincode}") from exc

    async def lookup(self, pincode: str) -> PostOffice | None:
        """Return the first post office for ``pincode``, or None."""
        result = await self.lookup_all(pincode)
        office = result.first
        logger.debug(f"Pincode {pincode}: {len(result.post_offices)} post office(s)")
        return office
