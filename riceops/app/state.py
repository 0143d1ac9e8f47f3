"""
Console Session State.

Holds the resources of one signed-in session: the API client, the user's
capabilities, the event bus and one entity store per kind. Wizards are
created from here so they share the session's store, bus and lookup client.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from riceops.core import events
from riceops.core.event_bus import EventBus
from riceops.core.permissions import SessionCapabilities
from riceops.utils.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from riceops.app.config import ConsoleConfig
    from riceops.domain.store.entity_store import InwardSlipPassStore, TransporterStore
    from riceops.domain.wizard.engine import FormWizard, SavedCallback
    from riceops.infrastructure.api.base import ApiClient
    from riceops.infrastructure.api.pincode import PincodeLookupClient


logger = get_logger("app.state")


# ============================================================================
# Console State
# ============================================================================


@dataclass
class ConsoleState:
    """Runtime state for one console session.

    Usage:
        state = ConsoleState.create(config)
        await state.login("admin", "secret")
        await state.transporters.load()
        wizard = await state.open_transporter_wizard()
    """

    config: "ConsoleConfig"
    bus: EventBus = field(default_factory=EventBus)
    capabilities: SessionCapabilities = field(default_factory=SessionCapabilities.anonymous)
    user: dict[str, Any] = field(default_factory=dict)

    # Created lazily
    _client: "ApiClient | None" = field(default=None, repr=False)
    _transporters: "TransporterStore | None" = field(default=None, repr=False)
    _inward_slip_passes: "InwardSlipPassStore | None" = field(default=None, repr=False)
    _lookup: "PincodeLookupClient | None" = field(default=None, repr=False)
    _background: set = field(default_factory=set, repr=False)

    @classmethod
    def create(cls, config: "ConsoleConfig", client: "ApiClient | None" = None) -> "ConsoleState":
        """Create session state, optionally around an existing client."""
        state = cls(config=config)
        if client is not None:
            state._attach_client(client)
        return state

    # ========== System Accessors ==========

    @property
    def client(self) -> "ApiClient":
        """Shared API client, created on first access."""
        if self._client is None:
            from riceops.infrastructure.api.base import ApiClient

            self._attach_client(
                ApiClient(
                    base_url=self.config.api.base_url,
                    token=self.config.api.token,
                    timeout=self.config.api.timeout,
                )
            )
            logger.debug(f"Initialized API client: {self.config.api.base_url}")
        return self._client

    def _attach_client(self, client: "ApiClient") -> None:
        client.set_unauthorized_callback(self._on_unauthorized)
        self._client = client

    @property
    def transporters(self) -> "TransporterStore":
        if self._transporters is None:
            from riceops.domain.store.entity_store import TransporterStore
            from riceops.infrastructure.api.transporters import TransportersGateway

            self._transporters = TransporterStore(TransportersGateway(self.client), self.bus)
        return self._transporters

    @property
    def inward_slip_passes(self) -> "InwardSlipPassStore":
        if self._inward_slip_passes is None:
            from riceops.domain.store.entity_store import InwardSlipPassStore
            from riceops.infrastructure.api.inward_slip_passes import InwardSlipPassesGateway

            self._inward_slip_passes = InwardSlipPassStore(InwardSlipPassesGateway(self.client), self.bus)
        return self._inward_slip_passes

    @property
    def lookup(self) -> "PincodeLookupClient":
        if self._lookup is None:
            from riceops.infrastructure.api.pincode import PincodeLookupClient

            self._lookup = PincodeLookupClient(self.client)
        return self._lookup

    @property
    def is_authenticated(self) -> bool:
        return bool(self.client.token)

    # ========== Session ==========

    async def login(self, username: str, password: str) -> SessionCapabilities:
        """Sign in and derive the session's capabilities."""
        payload = await self.client.login(username, password)
        self.user = dict(payload.get("user") or {})
        self.capabilities = SessionCapabilities.from_login(payload)
        logger.info(f"Session started for {self.user.get('username', username)} ({self.capabilities.user_type})")
        return self.capabilities

    async def logout(self) -> None:
        try:
            await self.client.logout()
        finally:
            self._end_session()

    def _end_session(self) -> None:
        self.user = {}
        self.capabilities = SessionCapabilities.anonymous()
        if self._client is not None:
            self._client.set_token(None)

    def _on_unauthorized(self, endpoint: str) -> None:
        logger.warning(f"Session rejected by server on {endpoint}; signing out")
        self._end_session()
        task = asyncio.create_task(
            self.bus.publish(
                events.TOPIC_SESSION_INVALIDATED,
                events.create_session_invalidated_event(401, endpoint),
            )
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ========== Wizards ==========

    async def open_transporter_wizard(
        self,
        transporter_id: Optional[str] = None,
        quick: bool = False,
        on_saved: "SavedCallback | None" = None,
    ) -> "FormWizard":
        """Open the three-step transporter wizard (or the single-page form)."""
        from riceops.domain.wizard.engine import FormWizard
        from riceops.domain.wizard.schemas import TRANSPORTER_QUICK_FORM, TRANSPORTER_WIZARD

        wizard = FormWizard(
            TRANSPORTER_QUICK_FORM if quick else TRANSPORTER_WIZARD,
            self.transporters,
            capabilities=self.capabilities,
            lookup_client=self.lookup,
            bus=self.bus,
            forms=self.config.forms,
            on_saved=on_saved,
        )
        await wizard.open(transporter_id)
        return wizard

    async def open_inward_slip_wizard(
        self,
        slip_id: Optional[str] = None,
        on_saved: "SavedCallback | None" = None,
    ) -> "FormWizard":
        from riceops.domain.wizard.engine import FormWizard
        from riceops.domain.wizard.schemas import INWARD_SLIP_PASS_FORM

        wizard = FormWizard(
            INWARD_SLIP_PASS_FORM,
            self.inward_slip_passes,
            capabilities=self.capabilities,
            bus=self.bus,
            forms=self.config.forms,
            on_saved=on_saved,
        )
        await wizard.open(slip_id)
        return wizard

    # ========== Lifecycle ==========

    async def drain(self) -> None:
        """Wait for background notifications to be delivered."""
        while self._background:
            await asyncio.gather(*list(self._background))
        await self.bus.drain()

    async def aclose(self) -> None:
        """Release the HTTP connection pool."""
        await self.drain()
        if self._client is not None:
            await self._client.aclose()
        self.bus.clear()
        logger.info("Console session closed")


# ============================================================================
# Global State Instance
# ============================================================================


_global_state: ConsoleState | None = None


def get_state() -> ConsoleState:
    """Get the global console state.

    Raises:
        RuntimeError: If state hasn't been initialized
    """
    if _global_state is None:
        raise RuntimeError("Console state not initialized. Call init_state() first.")
    return _global_state


def init_state(config: "ConsoleConfig | None" = None, log_to_file: bool = False) -> ConsoleState:
    """Initialize the global console state.

    Args:
        config: Configuration to use. If None, loads default.
        log_to_file: Also write logs under the config's log directory
    """
    global _global_state

    if config is None:
        from riceops.app.config import get_config
        config = get_config()

    setup_logging(level=config.log_level, log_dir=config.log_dir, file_output=log_to_file)
    _global_state = ConsoleState.create(config)
    logger.info("Initialized console state")
    return _global_state


def reset_state() -> None:
    """Reset the global state (for testing)."""
    global _global_state
    _global_state = None
