"""
Bootstrap script for the first administrator.

Admin can only be granted by another admin through the Role Manager, so
the very first one is created (or promoted) here.

Usage:
    python -m backend.seed_admin admin@example.com [--name "Ops Admin"]
"""

import argparse
import asyncio

from sqlalchemy import select

import backend.app.core.redis_client as redis_client_module
from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.base import new_id
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.role_cache import RoleCache


async def seed_admin(email: str, name: str = None) -> User:
    """
    Create ``email`` as ADMIN, or promote the existing user.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        
        if user is not None and user.role == UserRole.ADMIN:
            print(f"ℹ️  {email} is already an admin, nothing to do")
            return user
        
        if user is None:
            user = User(id=new_id(), email=email, name=name, role=UserRole.ADMIN)
            db.add(user)
            previous = None
        else:
            previous = user.role.value
            user.role = UserRole.ADMIN
        
        log_event(
            db, AuditAction.ROLE_CHANGED, "user", user.id,
            metadata={"email": email, "from": previous, "to": UserRole.ADMIN.value, "source": "seed_admin"},
        )
        await db.commit()
    
    # drop a role cached before the promotion
    await RoleCache(redis_client_module.redis_client).invalidate(email)
    print(f"✅ {email} is now an admin")
    return user


def main():
    parser = argparse.ArgumentParser(description="Create or promote the first administrator")
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()
    asyncio.run(seed_admin(args.email, args.name))


if __name__ == "__main__":
    main()
