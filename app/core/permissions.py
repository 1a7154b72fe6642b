"""Authorization predicates shared by dependencies and services."""

from collections.abc import Mapping
from typing import Any

ADMIN_ROLE = "admin"
GUIDE_TYPE = "guide"


def is_admin(user: Mapping[str, Any]) -> bool:
    """Whether the account has the admin role."""
    return user.get("role") == ADMIN_ROLE


def is_guide(user: Mapping[str, Any]) -> bool:
    """Whether the account is a guide account."""
    return user.get("user_type") == GUIDE_TYPE


def owns_expedition(user: Mapping[str, Any], expedition: Mapping[str, Any]) -> bool:
    """Whether the account is the guide leading the expedition."""
    return str(expedition.get("guide_id")) == str(user.get("id"))


def can_manage_expedition(user: Mapping[str, Any], expedition: Mapping[str, Any]) -> bool:
    """Owning guide or admin."""
    return owns_expedition(user, expedition) or is_admin(user)
