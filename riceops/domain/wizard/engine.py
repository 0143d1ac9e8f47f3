"""
Form Wizard Engine.

Drives one entity form from open to close: step navigation, draft edits,
tag lists, validation with routing to the offending step, and submission
through the entity store.

State machine:
    Step 1 <-> Step 2 <-> ... <-> Step N  (next/back/jump_to, clamped)
    Step N --submit--> Submitting --ok--> Closed
                                  --fail--> Step N (submit_error set)
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from riceops.app.config import FormConfig
from riceops.core import events
from riceops.core.event_bus import EventBus
from riceops.core.models.draft import DraftModel
from riceops.core.permissions import CapabilityContext, RowAction, is_action_allowed
from riceops.domain.store.entity_store import EntityStore
from riceops.domain.wizard.enrichment import EnrichmentCoordinator
from riceops.domain.wizard.schemas import FormSchema
from riceops.domain.wizard.validation import FieldErrors, ValidationError
from riceops.infrastructure.api.base import GatewayError, describe_error
from riceops.infrastructure.api.pincode import LookupClient
from riceops.utils.logging import entity_context, get_entity_logger

SavedCallback = Callable[[Any], Union[None, Awaitable[None]]]

EDIT_DENIED_MESSAGE = "You do not have permission to edit this record"


class WizardError(Exception):
    """Wizard used incorrectly (closed wizard, unknown field, bad value, no tag field)."""
    pass


@dataclass
class WizardState:
    """Everything a view needs to render a wizard."""

    draft: DraftModel
    current_step: int = 1
    errors: FieldErrors = field(default_factory=dict)
    submitting: bool = False
    enriching: bool = False
    loading: bool = False
    load_error: Optional[str] = None
    submit_error: Optional[str] = None
    closed: bool = False


class FormWizard:
    """Controller for one open entity form.

    A wizard is opened once, edited, and either submitted or closed. It is
    not reused after closing.

    Usage:
        wizard = FormWizard(TRANSPORTER_WIZARD, store, capabilities=caps)
        await wizard.open()
        wizard.set_field("business_name", "Sharma Roadlines")
        wizard.add_tag("MH12AB1234")
        saved = await wizard.submit()
    """

    def __init__(
        self,
        schema: FormSchema,
        store: EntityStore,
        capabilities: Optional[CapabilityContext] = None,
        lookup_client: Optional[LookupClient] = None,
        bus: Optional[EventBus] = None,
        forms: Optional[FormConfig] = None,
        on_saved: Optional[SavedCallback] = None,
    ):
        self.schema = schema
        self.store = store
        self.capabilities = capabilities
        self.bus = bus
        self.forms = forms or FormConfig()
        self.on_saved = on_saved

        self.entity_id: Optional[str] = None
        self.state = WizardState(draft=schema.blank_draft(self.forms.default_country))

        self._enrichment: Optional[EnrichmentCoordinator] = None
        if lookup_client is not None and schema.postal_code_field and self.forms.lookup_enabled:
            self._enrichment = EnrichmentCoordinator(
                lookup_client,
                self.state,
                address_field=schema.address_field or "address",
                entity_kind=schema.entity_kind.value,
                bus=bus,
            )

        self._logger = get_entity_logger(f"wizard.{schema.name}", schema.entity_kind.value)

    # ========== Read-only Views ==========

    @property
    def draft(self) -> DraftModel:
        return self.state.draft

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def errors(self) -> FieldErrors:
        return dict(self.state.errors)

    @property
    def step_count(self) -> int:
        return self.schema.step_count

    @property
    def is_final_step(self) -> bool:
        return self.state.current_step == self.schema.step_count

    @property
    def is_edit(self) -> bool:
        return self.entity_id is not None

    @property
    def fields_visible(self) -> bool:
        """False while the record loads, after a load failure, or once closed."""
        return not (self.state.loading or self.state.load_error or self.state.closed)

    @property
    def can_submit(self) -> bool:
        return self.fields_visible and not self.state.submitting

    @property
    def enrichment(self) -> Optional[EnrichmentCoordinator]:
        return self._enrichment

    # ========== Opening ==========

    async def open(self, entity_id: Optional[str] = None) -> bool:
        """Prepare the draft.

        Without an id the wizard starts from a blank draft. With an id the
        caller must hold the edit capability for the form's permission key;
        the record is then fetched and mapped into the draft.

        Returns:
            True when the fields can be shown
        """
        self._ensure_open()
        self.state.current_step = 1
        self.state.errors = {}
        self.state.load_error = None
        self.state.submit_error = None

        if entity_id is None:
            self.entity_id = None
            self.state.draft = self.schema.blank_draft(self.forms.default_country)
            return True

        self.entity_id = entity_id
        if self.capabilities is not None and not is_action_allowed(
            self.capabilities, RowAction.EDIT, self.schema.permission_key
        ):
            self._logger.warning(
                f"Edit of {self.schema.entity_kind.value} {entity_id} not permitted",
                extra=entity_context(entity_id=entity_id),
            )
            self.state.load_error = EDIT_DENIED_MESSAGE
            return False

        self.state.loading = True
        try:
            entity = await self.store.gateway.get(entity_id)
        except GatewayError as exc:
            if not self.state.closed:
                self.state.load_error = describe_error(exc)
                self._logger.error(
                    f"Could not load {self.schema.entity_kind.value} {entity_id}: {exc.message}",
                    extra=entity_context(entity_id=entity_id),
                )
            return False
        finally:
            self.state.loading = False

        if self.state.closed:
            return False

        self.state.draft = self.schema.draft_from_entity(entity, self.forms.default_country)
        self._logger.debug(f"Loaded {self.schema.entity_kind.value} {entity_id} for editing")
        return True

    # ========== Navigation ==========

    def next(self) -> int:
        """Advance one step without validating."""
        self._ensure_open()
        self.state.current_step = min(self.state.current_step + 1, self.schema.step_count)
        return self.state.current_step

    def back(self) -> int:
        self._ensure_open()
        self.state.current_step = max(self.state.current_step - 1, 1)
        return self.state.current_step

    def jump_to(self, step: int) -> int:
        """Go straight to ``step`` (1-based).

        Raises:
            ValueError: If ``step`` is outside the form's steps
        """
        self._ensure_open()
        if not 1 <= step <= self.schema.step_count:
            raise ValueError(f"Step {step} out of range 1..{self.schema.step_count}")
        self.state.current_step = step
        return step

    # ========== Editing ==========

    def set_field(self, path: str, value: Any) -> None:
        """Replace one draft field.

        Editing the postal code starts an address lookup once it has six
        digits (unless keystroke lookups are turned off).
        """
        self._ensure_open()
        try:
            self.state.draft = self.state.draft.with_field(path, value)
        except (KeyError, ValueError) as exc:
            raise WizardError(str(exc)) from exc

        if path == self.schema.postal_code_field and self.forms.lookup_on_keystroke:
            self._trigger_lookup()

    def blur_field(self, path: str) -> None:
        """Focus left a field; the postal code is looked up again."""
        self._ensure_open()
        if path == self.schema.postal_code_field:
            self._trigger_lookup()

    def add_tag(self, value: str) -> None:
        self._ensure_open()
        self.state.draft = self.state.draft.with_tag_added(self._tag_field(), value)

    def remove_tag(self, index: int) -> None:
        self._ensure_open()
        self.state.draft = self.state.draft.with_tag_removed(self._tag_field(), index)

    @property
    def tags(self) -> list[str]:
        return list(self.state.draft.get_field(self._tag_field()))

    def _tag_field(self) -> str:
        if not self.schema.tag_field:
            raise WizardError(f"Form '{self.schema.name}' has no tag field")
        return self.schema.tag_field

    def _trigger_lookup(self) -> None:
        if self._enrichment is None:
            return
        self._enrichment.trigger(self.state.draft.get_field(self.schema.postal_code_field))

    # ========== Validation & Submission ==========

    def validate(self) -> FieldErrors:
        """Run the whole-form validation and store the result."""
        self.state.errors = self.schema.validate(self.state.draft)
        return dict(self.state.errors)

    async def submit(self) -> bool:
        """Submit from the final step, or advance from any other step.

        Returns:
            True only when the entity was saved and the wizard closed
        """
        self._ensure_open()
        if self.state.submitting:
            self._logger.debug("Submit ignored: already submitting")
            return False
        if self.state.loading or self.state.load_error:
            self._logger.warning("Submit refused: record not loaded")
            return False
        if not self.is_final_step:
            self.next()
            return False

        try:
            self.schema.check(self.state.draft)
        except ValidationError as exc:
            self.state.errors = exc.errors
            step = self.schema.first_step_with_errors(list(exc.errors))
            if step is not None:
                self.state.current_step = step
            self._logger.debug(f"Validation failed: {', '.join(sorted(exc.errors))}")
            return False

        self.state.errors = {}
        self.state.submit_error = None
        self.state.submitting = True
        payload = self.state.draft.to_payload()
        mode = "update" if self.is_edit else "create"

        try:
            if self.entity_id is not None:
                entity = await self.store.update(self.entity_id, payload)
            else:
                entity = await self.store.create(payload)
        except GatewayError as exc:
            if not self.state.closed:
                self.state.submit_error = describe_error(exc)
            return False
        finally:
            self.state.submitting = False

        if self.state.closed:
            self._logger.debug(f"Discarding {mode} result: wizard closed")
            return False

        entity_id = getattr(entity, "id", None) or self.entity_id
        self._logger.info(
            f"Saved {self.schema.entity_kind.value} {entity_id} ({mode})",
            extra=entity_context(entity_id=entity_id, operation=mode),
        )
        await self._close(saved=True)
        await self._publish(
            events.TOPIC_WIZARD_SAVED,
            events.create_wizard_saved_event(self.schema.entity_kind.value, entity_id, mode),
        )

        if self.on_saved is not None:
            result = self.on_saved(entity)
            if inspect.isawaitable(result):
                await result
        return True

    # ========== Closing ==========

    async def close(self) -> None:
        """Dispose the wizard; late submit or lookup results are dropped."""
        await self._close(saved=False)

    async def _close(self, saved: bool) -> None:
        if self.state.closed:
            return
        self.state.closed = True
        if self._enrichment is not None:
            self._enrichment.dispose()
        await self._publish(
            events.TOPIC_WIZARD_CLOSED,
            events.create_wizard_closed_event(self.schema.entity_kind.value, saved),
        )

    def _ensure_open(self) -> None:
        if self.state.closed:
            raise WizardError(f"Wizard '{self.schema.name}' is closed")

    async def _publish(self, topic: str, payload: events.EventPayload) -> None:
        if self.bus is not None:
            await self.bus.publish(topic, payload)
