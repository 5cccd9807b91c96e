"""
Capability resolution for an acting employee.

The account-owner rule lives here and nowhere else: every caller works with
the resolved Capabilities value, never with Employee.permissions directly.
"""
import logging
from typing import Any, Mapping, Optional

from app.core.exceptions import AccessDeniedError
from app.schemas.permissions import Capabilities

logger = logging.getLogger(__name__)

CAPABILITY_FLAGS = (
    "can_set_global_frequency",
    "can_view_organization_wide",
    "can_manage_settings",
)

_FULL = Capabilities(
    can_set_global_frequency=True,
    can_view_organization_wide=True,
    can_manage_settings=True,
    is_account_owner=True,
)

_NONE = Capabilities()


def _stored_permissions(employee: Any) -> Mapping[str, Any]:
    permissions = getattr(employee, "permissions", None)
    if permissions is None:
        return {}
    if hasattr(permissions, "model_dump"):
        return permissions.model_dump()
    if isinstance(permissions, Mapping):
        return permissions
    return {}


def resolve_permissions(employee: Optional[Any]) -> Capabilities:
    """
    Pure function of an employee record. Never raises: missing data means no capability.
    An account owner gets every capability whatever is stored.
    """
    if employee is None:
        return _NONE
    if getattr(employee, "is_account_owner", False) is True:
        return _FULL

    stored = _stored_permissions(employee)
    return Capabilities(
        **{flag: stored.get(flag) is True for flag in CAPABILITY_FLAGS},
        is_account_owner=False,
    )


def require_capability(capabilities: Capabilities, capability: str) -> None:
    """Policy gate for writes. Raises AccessDeniedError naming the missing capability."""
    if capability not in CAPABILITY_FLAGS:
        raise ValueError(f"Unknown capability: {capability}")
    if not getattr(capabilities, capability):
        logger.warning(f"Policy denial: missing capability {capability}")
        raise AccessDeniedError(
            f"This action requires the '{capability}' permission.",
            capability=capability,
        )
