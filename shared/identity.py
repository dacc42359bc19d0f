"""
Identity & role resolution.

The identity provider hands us an opaque caller id; the role and
notification preferences live on the user's profile record.
"""

from typing import Optional

from shared.data_store import MarketplaceStore
from shared.errors import Unauthorized
from shared.models import User, UserRole


async def resolve_caller(data: MarketplaceStore, caller_id: Optional[str]) -> User:
    """
    Load the profile for an authenticated caller.

    Raises:
        Unauthorized: If the id is blank or has no profile record
    """
    if not caller_id:
        raise Unauthorized("Must be authenticated")
    user = await data.get_user(caller_id)
    if user is None:
        raise Unauthorized(f"No profile for caller '{caller_id}'")
    return user


def ensure_role(user: User, *roles: UserRole) -> User:
    """Raise Unauthorized unless the user holds one of the given roles."""
    allowed = {UserRole(r).value for r in roles}
    if UserRole(user.role).value not in allowed:
        raise Unauthorized(f"Role '{user.role}' may not perform this action")
    return user
