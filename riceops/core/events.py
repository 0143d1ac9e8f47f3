"""Canonical event definitions for the entity lifecycle layer."""

from __future__ import annotations

from typing import Any, Dict, List

from .event_bus import EventPayload

# Store events
TOPIC_STORE_REFRESHED = "store.refreshed"
TOPIC_ENTITY_DELETED = "store.entity_deleted"
TOPIC_STORE_ERROR = "store.error"

# Wizard events
TOPIC_WIZARD_SAVED = "wizard.saved"
TOPIC_WIZARD_CLOSED = "wizard.closed"
TOPIC_ADDRESS_ENRICHED = "wizard.address_enriched"

# Session events
TOPIC_SESSION_INVALIDATED = "session.invalidated"


def create_store_refreshed_event(entity_kind: str, items: List[Dict[str, Any]]) -> EventPayload:
    """Create a store refreshed event (collection replaced after a load)."""
    return {
        "entity_kind": entity_kind,
        "count": len(items),
        "items": items,
    }


def create_entity_deleted_event(entity_kind: str, entity_id: str) -> EventPayload:
    """Create an entity deleted event."""
    return {
        "entity_kind": entity_kind,
        "entity_id": entity_id,
    }


def create_store_error_event(entity_kind: str, operation: str, message: str) -> EventPayload:
    """Create a store error event."""
    return {
        "entity_kind": entity_kind,
        "operation": operation,
        "message": message,
    }


def create_wizard_saved_event(
    entity_kind: str,
    entity_id: str | None,
    mode: str,
) -> EventPayload:
    """Create a wizard saved event.

    Args:
        entity_kind: Kind of entity the wizard edits
        entity_id: ID of the created/updated entity, if the server returned one
        mode: ``"create"`` or ``"update"``
    """
    return {
        "entity_kind": entity_kind,
        "entity_id": entity_id,
        "mode": mode,
    }


def create_wizard_closed_event(entity_kind: str, saved: bool) -> EventPayload:
    """Create a wizard closed event."""
    return {
        "entity_kind": entity_kind,
        "saved": saved,
    }


def create_address_enriched_event(entity_kind: str, pincode: str, fields: List[str]) -> EventPayload:
    """Create an address enriched event listing the address fields filled in."""
    return {
        "entity_kind": entity_kind,
        "pincode": pincode,
        "fields": fields,
    }


def create_session_invalidated_event(status_code: int, endpoint: str) -> EventPayload:
    """Create a session invalidated event (API answered 401)."""
    return {
        "status_code": status_code,
        "endpoint": endpoint,
    }
