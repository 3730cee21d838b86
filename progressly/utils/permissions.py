from typing import Any, Optional

from progressly.models.user import User

ADMIN_ROLE = "admin"


def is_admin(user: Optional[User]) -> bool:
    return bool(user) and user.role == ADMIN_ROLE


def owns_resource(user: Optional[User], resource: Any) -> bool:
    """True when the resource's user_id points at this user."""
    if user is None or resource is None:
        return False
    return getattr(resource, "user_id", None) == user.id
