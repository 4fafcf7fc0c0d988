"""
Identity and component dependencies for FastAPI.

The identity context only supplies a verified email plus its claims.
Roles are never read from the token; they are resolved against the
Directory Store by the Role Manager.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.exceptions import AuthenticationError
from backend.app.core.jwt import decode_identity_token
from backend.app.core.redis_client import get_redis
from backend.app.db.session import get_db
from backend.app.domain.store import StoreContext
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.rider_lifecycle import RiderLifecycle
from backend.app.domain.parcel_lifecycle import ParcelLifecycle
from backend.app.domain.payment_recorder import PaymentRecorder
from backend.app.services.role_cache import RoleCache

# HTTP Bearer security scheme; missing headers are reported as Unauthenticated
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Verified caller identity."""
    email: str
    subject: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    Verify the bearer token and return the caller's identity.
    
    Raises:
        AuthenticationError: 401 if the token is missing, invalid or has no email
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    
    payload = decode_identity_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")
    
    email = payload.get("email")
    if not email:
        raise AuthenticationError("Invalid token payload")
    
    return Identity(email=email, subject=payload.get("sub"), claims=payload)


async def get_store(db: AsyncSession = Depends(get_db)) -> StoreContext:
    return StoreContext(db)


async def get_role_cache(redis=Depends(get_redis)) -> RoleCache:
    return RoleCache(redis)


async def get_role_manager(
    store: StoreContext = Depends(get_store),
    cache: RoleCache = Depends(get_role_cache),
) -> RoleManager:
    return RoleManager(store, cache)


async def get_rider_lifecycle(
    store: StoreContext = Depends(get_store),
    roles: RoleManager = Depends(get_role_manager),
) -> RiderLifecycle:
    return RiderLifecycle(store, roles)


async def get_parcel_lifecycle(
    store: StoreContext = Depends(get_store),
    roles: RoleManager = Depends(get_role_manager),
) -> ParcelLifecycle:
    return ParcelLifecycle(store, roles)


async def get_payment_recorder(
    store: StoreContext = Depends(get_store),
    roles: RoleManager = Depends(get_role_manager),
) -> PaymentRecorder:
    return PaymentRecorder(store, roles)
