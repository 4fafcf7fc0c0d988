"""
User Pydantic schemas.

Defines request and response models for the Directory Store endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """
    Schema for first sign-in.
    
    There is deliberately no role field; unknown fields are ignored.
    """
    email: str = Field(..., min_length=3, max_length=255, description="Email from the identity provider")
    name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=1024)


class UserResponse(BaseModel):
    """Schema for user response."""
    id: str
    email: str
    name: Optional[str]
    role: UserRole
    created_at: datetime
    last_login_at: datetime
    
    class Config:
        from_attributes = True


class UserRegistrationResponse(BaseModel):
    inserted: bool
    message: str
    user: UserResponse


class RoleResponse(BaseModel):
    email: str
    role: UserRole


class RoleUpdate(BaseModel):
    """Schema for changing a role; validated by the Role Manager."""
    role: str = Field(..., description="'admin' or 'user'")


class UserSearchItem(BaseModel):
    email: str
    role: UserRole
