"""
Security guards for role-based access control.

Roles live in the Directory Store, not in the identity token, so the
admin check resolves the caller's email through the Role Manager.
"""

from fastapi import Depends
from backend.app.core.dependencies import Identity, get_current_identity, get_role_manager
from backend.app.domain.role_manager import RoleManager


async def require_admin(
    identity: Identity = Depends(get_current_identity),
    roles: RoleManager = Depends(get_role_manager),
) -> Identity:
    """
    Dependency for admin-only endpoints.
    
    Usage:
        @router.patch("/riders/approve/{rider_id}")
        async def approve_rider(
            rider_id: str,
            admin: Identity = Depends(require_admin)
        ):
            ...
    
    Returns:
        The verified identity if it resolves to ADMIN

    Raises:
        AuthenticationError 401 without a valid token
        InsufficientPermissionsError 403 otherwise
    """
    await roles.require_admin(identity.email)
    return identity
