from typing import Any, Optional

from enielexpress.core.errors import Forbidden
from enielexpress.db.models import User


def is_owner_or_admin(owner_id: Optional[str], principal: User) -> bool:
    if principal.is_admin:
        return True
    return owner_id is not None and str(owner_id) == str(principal.id)


def ensure_owner_or_admin(resource: Any, principal: User, field: str = "created_by") -> None:
    """Check ownership once the resource is loaded; admins bypass."""
    if not is_owner_or_admin(getattr(resource, field, None), principal):
        raise Forbidden("Access denied. You do not own this resource.")


def ensure_self_or_admin(user_id: str, principal: User) -> None:
    if not is_owner_or_admin(user_id, principal):
        raise Forbidden("Unauthorized")
