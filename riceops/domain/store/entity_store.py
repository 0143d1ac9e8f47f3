"""
Entity Store.

Holds the in-memory collection for one entity kind and performs mutations
through its gateway. Creates and updates are followed by a full reload so
server-computed fields (timestamps, derived totals) are picked up; deletes
are applied locally since nothing needs re-syncing for a removal.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from riceops.core import events
from riceops.core.event_bus import EventBus
from riceops.core.models.entity import (
    InwardSlipPass,
    InwardSlipPassStatus,
    Transporter,
)
from riceops.infrastructure.api.base import GatewayError, describe_error
from riceops.infrastructure.api.gateway import EntityGateway
from riceops.infrastructure.api.inward_slip_passes import InwardSlipPassesGateway
from riceops.utils.logging import entity_context, get_entity_logger, log_operation

EntityT = TypeVar("EntityT", bound=BaseModel)


class EntityStore(Generic[EntityT]):
    """Collection owner and mutation entry point for one entity kind.

    Every gateway failure is recorded in ``error`` and re-raised so the
    caller (usually a wizard) can show it. Nothing is retried.

    Usage:
        store = EntityStore(TransportersGateway(client), "transporter")
        await store.load(include_inactive=True)
        created = await store.create(draft.to_payload())
    """

    def __init__(
        self,
        gateway: EntityGateway[EntityT],
        entity_kind: str,
        bus: EventBus | None = None,
        **filters: Any,
    ):
        self.gateway = gateway
        self.entity_kind = entity_kind
        self.bus = bus
        self.filters: dict[str, Any] = dict(filters)

        self.items: list[EntityT] = []
        self.loading: bool = False
        self.error: str | None = None
        self.load_count: int = 0

        self._logger = get_entity_logger(f"store.{entity_kind}", entity_kind)

    # ========== Queries ==========

    def get_cached(self, entity_id: str) -> EntityT | None:
        """Entity from the held collection, without a request."""
        for item in self.items:
            if getattr(item, "id", None) == entity_id:
                return item
        return None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(list(self.items))

    # ========== Loading ==========

    async def load(self, **filters: Any) -> list[EntityT]:
        """Fetch the collection and replace what is held.

        Args:
            **filters: Overrides for the store's filters; they become the
                store's filters for later reloads
        """
        if filters:
            self.filters.update(filters)

        self.loading = True
        self.error = None
        try:
            items = await self.gateway.list(**self.filters)
        except Exception as exc:
            await self._record_failure("load", exc)
            raise
        finally:
            self.loading = False

        self.items = list(items)
        self.load_count += 1
        log_operation(
            self._logger,
            f"Loaded {self.entity_kind} collection",
            {"count": len(self.items), **self.filters},
        )
        await self._publish(
            events.TOPIC_STORE_REFRESHED,
            events.create_store_refreshed_event(
                self.entity_kind, [item.model_dump() for item in self.items]
            ),
        )
        return self.items

    async def refetch(self) -> list[EntityT]:
        """Reload with the current filters."""
        return await self.load()

    # ========== Mutations ==========

    async def create(self, payload: dict[str, Any]) -> EntityT:
        """Create an entity, then reload the collection once."""
        try:
            entity = await self.gateway.create(payload)
        except Exception as exc:
            await self._record_failure("create", exc)
            raise

        entity_id = getattr(entity, "id", None)
        self._logger.info(f"Created {self.entity_kind} {entity_id or '?'}", extra=entity_context(entity_id=entity_id))
        await self._reload_after_write()
        return entity

    async def update(self, entity_id: str, payload: dict[str, Any]) -> EntityT:
        """Update an entity, then reload the collection once."""
        try:
            entity = await self.gateway.update(entity_id, payload)
        except Exception as exc:
            await self._record_failure("update", exc, entity_id=entity_id)
            raise

        self._logger.info(f"Updated {self.entity_kind} {entity_id}", extra=entity_context(entity_id=entity_id))
        await self._reload_after_write()
        return entity

    async def delete(self, entity_id: str) -> None:
        """Delete an entity and drop it from the held collection."""
        try:
            await self.gateway.delete(entity_id)
        except Exception as exc:
            await self._record_failure("delete", exc, entity_id=entity_id)
            raise

        self.items = [item for item in self.items if getattr(item, "id", None) != entity_id]
        self._logger.info(f"Deleted {self.entity_kind} {entity_id}", extra=entity_context(entity_id=entity_id))
        await self._publish(
            events.TOPIC_ENTITY_DELETED,
            events.create_entity_deleted_event(self.entity_kind, entity_id),
        )

    # ========== Internals ==========

    async def _reload_after_write(self) -> None:
        """Reload after a successful write.

        A failed reload does not undo the write: it is recorded in ``error``
        and the list stays as it was until the next refetch.
        """
        try:
            await self.load()
        except GatewayError:
            self._logger.warning(f"{self.entity_kind} saved but the list could not be refreshed")

    async def _record_failure(self, operation: str, exc: Exception, entity_id: str | None = None) -> None:
        self.error = describe_error(exc)
        self._logger.error(
            f"FAILED {operation} {self.entity_kind}: {type(exc).__name__}: {self.error}",
            extra=entity_context(entity_id=entity_id, operation=operation),
        )
        await self._publish(
            events.TOPIC_STORE_ERROR,
            events.create_store_error_event(self.entity_kind, operation, self.error),
        )

    async def _publish(self, topic: str, payload: events.EventPayload) -> None:
        if self.bus is not None:
            await self.bus.publish(topic, payload)


# ============================================================================
# Entity-specific stores
# ============================================================================


class TransporterStore(EntityStore[Transporter]):
    """Transporters, optionally including inactive ones."""

    def __init__(
        self,
        gateway: EntityGateway[Transporter],
        bus: EventBus | None = None,
        include_inactive: bool = False,
    ):
        super().__init__(gateway, "transporter", bus, include_inactive=include_inactive)

    async def toggle_active(self, transporter: Transporter) -> Transporter:
        """Activate or deactivate a transporter."""
        return await self.update(transporter.id, {"is_active": not transporter.is_active})


class InwardSlipPassStore(EntityStore[InwardSlipPass]):
    """Inward slip passes, optionally scoped to one sauda."""

    def __init__(
        self,
        gateway: InwardSlipPassesGateway,
        bus: EventBus | None = None,
        sauda_id: str | None = None,
    ):
        super().__init__(gateway, "inward_slip_pass", bus, sauda_id=sauda_id)
        self.gateway: InwardSlipPassesGateway = gateway

    async def set_status(
        self,
        entity_id: str,
        status: InwardSlipPassStatus | str,
    ) -> InwardSlipPass:
        """Change a slip's status, then reload the collection once."""
        try:
            entity = await self.gateway.update_status(entity_id, status)
        except Exception as exc:
            await self._record_failure("set_status", exc, entity_id=entity_id)
            raise

        self._logger.info(
            f"Set {self.entity_kind} {entity_id} status to {InwardSlipPassStatus(status).value}",
            extra=entity_context(entity_id=entity_id, operation="set_status"),
        )
        await self._reload_after_write()
        return entity
