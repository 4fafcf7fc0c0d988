"""
Role Manager.

Owns the Directory Store: first sign-in registration, role resolution,
the admin-only role mutation path and the user search used by the admin
console. It is also the authorization gate the other components call.
"""

import logging
from typing import Optional, Union

from sqlalchemy import select, update

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidArgumentError,
    ResourceNotFoundError,
)
from backend.app.domain.store import StoreContext
from backend.app.models.base import new_id, utcnow
from backend.app.models.enums import UserRole, ASSIGNABLE_ROLES
from backend.app.models.user import User
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.role_cache import RoleCache

logger = logging.getLogger("parcels.roles")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RoleManager:
    
    def __init__(self, store: StoreContext, cache: Optional[RoleCache] = None):
        self.store = store
        self.cache = cache
    
    async def _find_user(self, email: str) -> Optional[User]:
        return await self.store.scalar_one_or_none(
            select(User).where(User.email == email).execution_options(populate_existing=True)
        )
    
    async def register_user(self, email: str, name: Optional[str] = None, photo_url: Optional[str] = None) -> tuple[User, bool]:
        """
        Create-or-find the user on sign-in.
        
        New users always start with the USER role, whatever the client sends.
        
        Returns:
            (user, inserted)
        """
        async with self.store.unit_of_work("register user", conflict_message="User already exists"):
            user = await self._find_user(email)
            if user is not None:
                user.last_login_at = utcnow()
                return user, False
            
            user = User(id=new_id(), email=email, name=name, photo_url=photo_url, role=UserRole.USER)
            self.store.db.add(user)
            log_event(self.store.db, AuditAction.USER_REGISTERED, "user", user.id, actor_email=email)
        
        logger.info("Registered user %s", email)
        return user, True
    
    async def resolve_role(self, email: str) -> UserRole:
        """
        Return the stored role for ``email``.
        
        Raises:
            ResourceNotFoundError: if no user exists for the email
        """
        if self.cache is not None:
            cached = await self.cache.get(email)
            if cached is not None:
                return cached
        
        user = await self._find_user(email)
        if user is None:
            raise ResourceNotFoundError("User", message="User not found")
        
        role = user.role or UserRole.USER
        if self.cache is not None:
            await self.cache.set(email, role)
        return role
    
    async def is_admin(self, email: Optional[str]) -> bool:
        if not email:
            return False
        try:
            return await self.resolve_role(email) == UserRole.ADMIN
        except ResourceNotFoundError:
            return False
    
    async def require_admin(self, email: Optional[str]) -> None:
        """
        Raises:
            InsufficientPermissionsError: unless ``email`` resolves to ADMIN
        """
        if not await self.is_admin(email):
            logger.warning("Admin access denied for %s", email)
            raise InsufficientPermissionsError("Admin access required")
    
    async def set_role(self, actor_email: str, target_user_id: str, new_role: Union[str, UserRole]) -> User:
        """
        Change a user's role (admin only).
        
        Only ADMIN and USER can be assigned here; RIDER is granted solely
        by approving a rider application.
        """
        await self.require_admin(actor_email)
        
        try:
            role = UserRole(new_role)
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown role '{new_role}'",
                details={"allowed": sorted(r.value for r in ASSIGNABLE_ROLES)}
            )
        if role not in ASSIGNABLE_ROLES:
            raise InvalidArgumentError(
                f"Role '{role.value}' cannot be assigned directly",
                details={"allowed": sorted(r.value for r in ASSIGNABLE_ROLES)}
            )
        
        async with self.store.unit_of_work("set role"):
            user = await self.store.get(User, target_user_id, "User")
            previous = user.role
            user.role = role
            log_event(
                self.store.db, AuditAction.ROLE_CHANGED, "user", user.id,
                actor_email=actor_email,
                metadata={"email": user.email, "from": previous.value, "to": role.value},
            )
        
        await self.forget(user.email)
        logger.info("Role of %s changed %s -> %s by %s", user.email, previous.value, role.value, actor_email)
        return user
    
    async def elevate_to_rider(self, email: str) -> bool:
        """
        Stage the RIDER role for ``email`` on the caller's unit of work.
        
        Only the Rider Lifecycle calls this, while approving an application.
        Admins keep their role. Returns False when nothing was granted,
        either because no user exists for the email or because it is an admin.
        """
        result = await self.store.db.execute(
            update(User)
            .where(User.email == email, User.role != UserRole.ADMIN)
            .values(role=UserRole.RIDER)
        )
        if result.rowcount > 0:
            return True
        if await self._find_user(email) is not None:
            logger.warning("%s is an admin, rider role not granted", email)
        return False
    
    async def forget(self, email: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate(email)
    
    async def search_users(self, partial_email: str, limit: Optional[int] = None) -> list[dict]:
        """
        Case-insensitive substring search on email, reduced to email and role.
        
        An empty result is reported as NotFound; clients rely on it.
        """
        if limit is None:
            limit = settings.user_search_limit
        if limit < 1:
            raise InvalidArgumentError("limit must be a positive integer")
        
        pattern = f"%{_escape_like(partial_email or '')}%"
        rows = (await self.store.execute(
            select(User.email, User.role)
            .where(User.email.ilike(pattern, escape="\\"))
            .order_by(User.email)
            .limit(limit)
        )).all()
        
        if not rows:
            raise ResourceNotFoundError("User", message="User not found")
        return [{"email": email, "role": role or UserRole.USER} for email, role in rows]
