"""
Rider Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.models.rider_enums import RiderStatus, WorkStatus


class RiderApply(BaseModel):
    """Schema for a rider application."""
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    nid: Optional[str] = Field(None, max_length=100, description="National ID number")
    age: Optional[str] = Field(None, max_length=10)
    region: Optional[str] = Field(None, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)
    bike_brand: Optional[str] = Field(None, max_length=100)
    bike_registration: Optional[str] = Field(None, max_length=100)


class RiderDecision(BaseModel):
    """Schema for deciding a pending application ('active' or 'rejected')."""
    status: str


class RiderResponse(BaseModel):
    """Schema for rider response."""
    id: str
    name: str
    email: str
    phone: Optional[str]
    region: Optional[str]
    district: str
    bike_brand: Optional[str]
    bike_registration: Optional[str]
    status: RiderStatus
    work_status: WorkStatus
    applied_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
