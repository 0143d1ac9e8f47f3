"""
Address enrichment.

Looks a postal code up in the background and merges the returned city, state
and country into the draft's address block. Only the newest lookup is ever
applied and a failed lookup leaves the draft alone.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from riceops.core import events
from riceops.core.event_bus import EventBus
from riceops.core.models.draft import DraftModel
from riceops.core.models.lookup import PostOffice
from riceops.infrastructure.api.base import GatewayError
from riceops.infrastructure.api.pincode import LookupClient, is_lookup_pincode
from riceops.utils.logging import get_entity_logger


class DraftHolder(Protocol):
    """Whatever owns the draft being enriched (a wizard's state)."""

    draft: DraftModel
    enriching: bool


def merge_post_office(
    draft: DraftModel,
    office: PostOffice,
    address_field: str = "address",
) -> tuple[DraftModel, list[str]]:
    """Copy the non-empty parts of a post office into the address block.

    The pincode itself is never written.

    Returns:
        The new draft and the address keys that were filled in
    """
    candidates = {
        "city": office.city,
        "state": office.State or "",
        "country": office.Country or "",
    }

    filled: list[str] = []
    for key, value in candidates.items():
        value = value.strip()
        if not value:
            continue
        draft = draft.with_field(f"{address_field}.{key}", value)
        filled.append(key)
    return draft, filled


class EnrichmentCoordinator:
    """Runs pincode lookups for one wizard.

    Every trigger gets a sequence number; a response is applied only if no
    newer trigger has been issued since. The merge reads the holder's draft
    when the response lands, so edits made while the lookup was in flight
    are kept.

    Usage:
        coordinator = EnrichmentCoordinator(lookup_client, wizard.state)
        coordinator.trigger("560001")
        await coordinator.drain()
    """

    def __init__(
        self,
        lookup_client: LookupClient,
        holder: DraftHolder,
        address_field: str = "address",
        entity_kind: str = "",
        bus: Optional[EventBus] = None,
    ):
        self.lookup_client = lookup_client
        self.holder = holder
        self.address_field = address_field
        self.entity_kind = entity_kind
        self.bus = bus

        self._sequence = 0
        self._tasks: set[asyncio.Task] = set()
        self._disposed = False
        self._logger = get_entity_logger("domain.enrichment", entity_kind)

    @property
    def enriching(self) -> bool:
        return bool(self._tasks)

    @property
    def sequence(self) -> int:
        """Number of lookups issued so far."""
        return self._sequence

    def trigger(self, pincode: str | None) -> asyncio.Task | None:
        """Start a lookup if ``pincode`` is exactly six digits.

        Returns:
            The lookup task, or None when nothing was started
        """
        if self._disposed:
            return None
        if not is_lookup_pincode(pincode):
            return None

        self._sequence += 1
        task = asyncio.create_task(self._run(self._sequence, pincode))
        self._tasks.add(task)
        self.holder.enriching = True
        task.add_done_callback(self._forget)
        return task

    def dispose(self) -> None:
        """Stop applying results; lookups already in flight finish unobserved."""
        self._disposed = True

    async def drain(self) -> None:
        """Wait for every in-flight lookup."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _forget(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not self._disposed:
            self.holder.enriching = bool(self._tasks)

    async def _run(self, sequence: int, pincode: str) -> None:
        self._logger.debug(f"Looking up pincode {pincode} (#{sequence})")
        try:
            office = await self.lookup_client.lookup(pincode)
        except GatewayError as exc:
            self._logger.warning(f"Address lookup failed for {pincode}: {exc.message}")
            return
        except Exception as exc:
            self._logger.exception(f"Address lookup for {pincode} raised {type(exc).__name__}", exc_info=exc)
            return

        if self._disposed:
            self._logger.debug(f"Discarding lookup #{sequence}: wizard closed")
            return
        if sequence != self._sequence:
            self._logger.debug(f"Discarding stale lookup #{sequence} (latest is #{self._sequence})")
            return
        if office is None:
            self._logger.debug(f"No post office found for {pincode}")
            return

        draft, filled = merge_post_office(self.holder.draft, office, self.address_field)
        if not filled:
            return
        self.holder.draft = draft
        self._logger.info(f"Filled {', '.join(filled)} from pincode {pincode}")

        if self.bus is not None:
            await self.bus.publish(
                events.TOPIC_ADDRESS_ENRICHED,
                events.create_address_enriched_event(self.entity_kind, pincode, filled),
            )
