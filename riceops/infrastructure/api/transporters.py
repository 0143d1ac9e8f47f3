"""Transporter gateway."""

from __future__ import annotations

from typing import Any

from riceops.core.models.entity import Transporter
from riceops.infrastructure.api.gateway import ResourceGateway


class TransportersGateway(ResourceGateway[Transporter]):
    """``/transporters`` endpoints."""

    resource = "transporters"
    model = Transporter

    def _list_params(self, include_inactive: bool = False, **filters: Any) -> dict[str, Any]:
        params = super()._list_params(**filters)
        if include_inactive:
            params["include_inactive"] = "true"
        return params
