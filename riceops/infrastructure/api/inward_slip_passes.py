"""Inward slip pass gateway."""

from __future__ import annotations

from typing import Any

from riceops.core.models.entity import InwardSlipPass, InwardSlipPassStatus
from riceops.infrastructure.api.gateway import ResourceGateway


class InwardSlipPassesGateway(ResourceGateway[InwardSlipPass]):
    """``/inward-slip-passes`` endpoints, including the status patch."""

    resource = "inward-slip-passes"
    model = InwardSlipPass

    def _list_params(self, sauda_id: str | None = None, **filters: Any) -> dict[str, Any]:
        params = super()._list_params(**filters)
        if sauda_id:
            params["sauda_id"] = sauda_id
        return params

    async def update_status(
        self,
        entity_id: str,
        status: InwardSlipPassStatus | str,
    ) -> InwardSlipPass:
        """Move a slip between ``pending`` and ``completed``."""
        value = InwardSlipPassStatus(status).value
        data = await self.client.patch(f"{self._item_path(entity_id)}/status", {"status": value})
        return self._parse(data)
