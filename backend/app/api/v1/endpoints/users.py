"""
Directory Store API Endpoints.

Sign-in registration, role resolution, admin role changes and user search.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, Response, status

from backend.app.core.dependencies import Identity, get_current_identity, get_role_manager
from backend.app.domain.role_manager import RoleManager
from backend.app.schemas.user import (
    UserCreate, UserResponse, UserRegistrationResponse,
    RoleResponse, RoleUpdate, UserSearchItem,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserRegistrationResponse)
async def register_user(
    user_data: UserCreate,
    response: Response,
    roles: RoleManager = Depends(get_role_manager),
):
    """
    Create the user on first sign-in, or return the existing one.
    
    Always starts with role 'user'; admin can never be self-assigned.
    """
    user, inserted = await roles.register_user(
        email=user_data.email,
        name=user_data.name,
        photo_url=user_data.photo_url,
    )
    response.status_code = status.HTTP_201_CREATED if inserted else status.HTTP_200_OK
    return UserRegistrationResponse(
        inserted=inserted,
        message="User created" if inserted else "User already exists",
        user=UserResponse.model_validate(user),
    )


@router.get("/search", response_model=list[UserSearchItem])
async def search_users(
    email: str = Query(..., min_length=1, description="Part of the email to look for"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum number of matches"),
    roles: RoleManager = Depends(get_role_manager),
):
    """Case-insensitive email search; 404 when nothing matches."""
    return await roles.search_users(email, limit)


@router.get("/{email}/role", response_model=RoleResponse)
async def get_user_role(
    email: str = Path(..., description="User email"),
    roles: RoleManager = Depends(get_role_manager),
):
    role = await roles.resolve_role(email)
    return RoleResponse(email=email, role=role)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    role_update: RoleUpdate,
    user_id: str = Path(..., description="User ID"),
    identity: Identity = Depends(get_current_identity),
    roles: RoleManager = Depends(get_role_manager),
):
    """
    Grant or revoke admin (admin only).
    
    Accepts 'admin' or 'user'; the rider role is only granted by approving
    a rider application.
    """
    user = await roles.set_role(identity.email, user_id, role_update.role)
    return UserResponse.model_validate(user)
