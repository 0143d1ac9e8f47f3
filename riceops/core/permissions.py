"""
Capabilities and row-action visibility.

A ``CapabilityContext`` answers role and permission questions for the
signed-in user. It is passed explicitly to whatever needs it; nothing here
reads session state on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

from riceops.utils.logging import get_logger

logger = get_logger("core.permissions")

PERMISSION_ENTITIES = ("salesman", "broker", "vendor", "leads", "riceCode")
PERMISSION_ACTIONS = ("create", "read", "update", "delete")


def _check_action(action: str) -> None:
    if action not in PERMISSION_ACTIONS:
        raise ValueError(f"Unknown permission action: {action!r}")


class UserType(str, Enum):
    """Roles known to the console."""
    ADMIN = "admin"
    CUSTOM = "custom"
    STAFF = "staff"


class RowAction(str, Enum):
    """Actions offered on a table row."""
    EDIT = "edit"
    DELETE = "delete"
    TOGGLE_STATUS = "toggleStatus"
    PERMISSIONS = "permissions"


# ============================================================================
# Capability Context
# ============================================================================


@runtime_checkable
class CapabilityContext(Protocol):
    """Read-only view of what the current user may do."""

    def is_admin(self) -> bool:
        ...

    def is_custom_user(self) -> bool:
        ...

    def can_update(self, entity_key: str) -> bool:
        ...

    def can_delete(self, entity_key: str) -> bool:
        ...


@dataclass(frozen=True)
class SessionCapabilities:
    """Capabilities derived from the login response.

    Attributes:
        user_type: ``admin``, ``custom`` or any other role string
        permissions: ``{entity_key: {create, read, update, delete}}`` for
            custom users; ignored for other roles
    """

    user_type: str = ""
    permissions: Mapping[str, Mapping[str, bool]] = field(default_factory=dict)

    @classmethod
    def from_login(cls, payload: Mapping[str, Any]) -> "SessionCapabilities":
        """Build capabilities from a ``/auth/loginUser`` payload."""
        user = payload.get("user") or {}
        permissions = payload.get("permissions") or {}
        if not isinstance(permissions, Mapping):
            logger.warning("Ignoring malformed permissions map in login payload")
            permissions = {}
        return cls(user_type=str(user.get("user_type") or ""), permissions=permissions)

    @classmethod
    def anonymous(cls) -> "SessionCapabilities":
        return cls()

    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN.value

    def is_custom_user(self) -> bool:
        return self.user_type == UserType.CUSTOM.value

    def can(self, entity_key: str, action: str) -> bool:
        """Explicit grant lookup; anything missing or malformed is a denial.

        Raises:
            ValueError: If ``action`` is not one of PERMISSION_ACTIONS
        """
        _check_action(action)
        entity_perms = self.permissions.get(entity_key)
        if not isinstance(entity_perms, Mapping):
            return False
        return entity_perms.get(action) is True

    def can_create(self, entity_key: str) -> bool:
        return self.can(entity_key, "create")

    def can_read(self, entity_key: str) -> bool:
        return self.can(entity_key, "read")

    def can_update(self, entity_key: str) -> bool:
        return self.can(entity_key, "update")

    def can_delete(self, entity_key: str) -> bool:
        return self.can(entity_key, "delete")

    def has_access(self, entity_key: str, action: str) -> bool:
        """Admins always; custom users per grant; other roles never."""
        _check_action(action)
        if self.is_admin():
            return True
        if self.is_custom_user():
            return self.can(entity_key, action)
        return False


# ============================================================================
# Action Affordance Gate
# ============================================================================


def is_action_allowed(
    capabilities: CapabilityContext,
    action: RowAction | str,
    permission_key: Optional[str] = None,
    callback_provided: bool = True,
) -> bool:
    """Decide whether a row action is shown.

    Rules, in order: an action without a callback is never shown;
    status toggling and permission management depend only on the callback;
    without a permission key the action is shown; administrators see it;
    custom users see edit/delete only when granted update/delete on the
    key; every other role sees it.
    """
    action = RowAction(action)

    if not callback_provided:
        return False
    if action in (RowAction.TOGGLE_STATUS, RowAction.PERMISSIONS):
        return True
    if not permission_key:
        return True
    if capabilities.is_admin():
        return True
    if capabilities.is_custom_user():
        if action is RowAction.EDIT:
            return capabilities.can_update(permission_key)
        return capabilities.can_delete(permission_key)
    return True


@dataclass(frozen=True)
class ActionSet:
    """Which row actions to render."""

    edit: bool = False
    delete: bool = False
    toggle_status: bool = False
    permissions: bool = False

    def __contains__(self, action: object) -> bool:
        try:
            action = RowAction(action)
        except ValueError:
            return False
        return {
            RowAction.EDIT: self.edit,
            RowAction.DELETE: self.delete,
            RowAction.TOGGLE_STATUS: self.toggle_status,
            RowAction.PERMISSIONS: self.permissions,
        }[action]

    @property
    def has_any(self) -> bool:
        return self.edit or self.delete or self.toggle_status or self.permissions


def visible_actions(
    capabilities: CapabilityContext,
    permission_key: Optional[str] = None,
    on_edit: Optional[Callable[..., Any]] = None,
    on_delete: Optional[Callable[..., Any]] = None,
    on_toggle_status: Optional[Callable[..., Any]] = None,
    on_permissions: Optional[Callable[..., Any]] = None,
) -> ActionSet:
    """Compute the actions a row's action menu should offer."""
    return ActionSet(
        edit=is_action_allowed(capabilities, RowAction.EDIT, permission_key, on_edit is not None),
        delete=is_action_allowed(capabilities, RowAction.DELETE, permission_key, on_delete is not None),
        toggle_status=is_action_allowed(
            capabilities, RowAction.TOGGLE_STATUS, permission_key, on_toggle_status is not None
        ),
        permissions=is_action_allowed(
            capabilities, RowAction.PERMISSIONS, permission_key, on_permissions is not None
        ),
    )
