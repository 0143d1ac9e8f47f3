"""
Postal-code lookup payloads.

Field names follow the lookup service's capitalised keys.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostOffice(BaseModel):
    """One post office returned for a postal code."""

    model_config = ConfigDict(extra="ignore")

    Name: Optional[str] = None
    Block: Optional[str] = None
    District: Optional[str] = None
    State: Optional[str] = None
    Country: Optional[str] = None

    @property
    def city(self) -> str:
        """Best city candidate: block, then district, then office name."""
        return self.Block or self.District or self.Name or ""


class PincodeLookupData(BaseModel):
    """Lookup response body."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    pincode: Optional[str] = None
    post_offices: list[PostOffice] = Field(default_factory=list, alias="postOffices")

    @field_validator("post_offices", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def first(self) -> PostOffice | None:
        return self.post_offices[0] if self.post_offices else None
