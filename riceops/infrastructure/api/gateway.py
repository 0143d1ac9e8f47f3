"""
Resource gateways.

One gateway per entity kind, exposing typed list/get/create/update/delete
calls against ``/{resource}`` endpoints.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError as PydanticValidationError

from riceops.core.models.entity import DeleteResult
from riceops.infrastructure.api.base import ApiClient, GatewayError
from riceops.utils.logging import get_logger

logger = get_logger("infrastructure.gateway")

EntityT = TypeVar("EntityT", bound=BaseModel)


# ============================================================================
# Protocols
# ============================================================================


@runtime_checkable
class EntityGateway(Protocol[EntityT]):
    """Surface the entity store and wizards depend on."""

    resource: str

    async def list(self, **filters: Any) -> list[EntityT]:
        """List entities, optionally filtered."""
        ...

    async def get(self, entity_id: str) -> EntityT:
        """Fetch one entity."""
        ...

    async def create(self, payload: dict[str, Any]) -> EntityT:
        """Create an entity."""
        ...

    async def update(self, entity_id: str, payload: dict[str, Any]) -> EntityT:
        """Update an entity."""
        ...

    async def delete(self, entity_id: str) -> DeleteResult:
        """Delete an entity."""
        ...


# ============================================================================
# HTTP Gateway
# ============================================================================


class ResourceGateway(Generic[EntityT]):
    """HTTP gateway for one REST resource.

    Subclasses set ``resource`` and ``model`` and translate their own list
    filters into query parameters via ``_list_params``.
    """

    resource: str = ""
    model: Type[EntityT]

    def __init__(self, client: ApiClient):
        self.client = client

    @property
    def path(self) -> str:
        return f"/{self.resource}"

    def _item_path(self, entity_id: str) -> str:
        return f"{self.path}/{entity_id}"

    def _list_params(self, **filters: Any) -> dict[str, Any]:
        return {k: v for k, v in filters.items() if v is not None}

    def _parse(self, data: Any) -> EntityT:
        try:
            return self.model.model_validate(data)
        except PydanticValidationError as exc:
            raise GatewayError(
                f"Unexpected {self.resource} payload from server",
                response=data if isinstance(data, dict) else None,
            ) from exc

    async def list(self, **filters: Any) -> list[EntityT]:
        data = await self.client.get(self.path, params=self._list_params(**filters) or None)
        items = [self._parse(item) for item in (data or [])]
        logger.debug(f"Listed {len(items)} {self.resource}")
        return items

    async def get(self, entity_id: str) -> EntityT:
        return self._parse(await self.client.get(self._item_path(entity_id)))

    async def create(self, payload: dict[str, Any]) -> EntityT:
        return self._parse(await self.client.post(self.path, payload))

    async def update(self, entity_id: str, payload: dict[str, Any]) -> EntityT:
        return self._parse(await self.client.put(self._item_path(entity_id), payload))

    async def delete(self, entity_id: str) -> DeleteResult:
        data = await self.client.delete(self._item_path(entity_id))
        if isinstance(data, dict):
            return DeleteResult.model_validate(data)
        return DeleteResult()
