"""
Parcel Pydantic schemas.

Defines request and response models for the Parcel Ledger.
"""

from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus, ParcelType


class ParcelCreate(BaseModel):
    """Schema for creating a new parcel."""
    owner_email: str = Field(..., min_length=3, max_length=255, description="Email of the sender account")
    title: str = Field(..., min_length=1, max_length=255)
    parcel_type: ParcelType = ParcelType.DOCUMENT
    weight_kg: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    sender_name: Optional[str] = Field(None, max_length=255)
    sender_district: Optional[str] = Field(None, max_length=100)
    receiver_name: Optional[str] = Field(None, max_length=255)
    receiver_contact: Optional[str] = Field(None, max_length=50)
    destination_district: str = Field(..., min_length=1, max_length=100)
    delivery_cost: float = Field(0, ge=0, description="Cost quoted to the sender")


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: str
    tracking_id: str
    owner_email: str
    title: str
    parcel_type: ParcelType
    weight_kg: Optional[float]
    sender_name: Optional[str]
    sender_district: Optional[str]
    receiver_name: Optional[str]
    receiver_contact: Optional[str]
    destination_district: str
    delivery_cost: float
    delivery_status: DeliveryStatus
    payment_status: PaymentStatus = Field(
        ...,
        validation_alias=AliasChoices("payment_status", "paymentStatus"),
        serialization_alias="paymentStatus",
    )
    assigned_rider_id: Optional[str]
    assigned_rider_name: Optional[str]
    assigned_rider_email: Optional[str]
    assigned_at: Optional[datetime]
    creation_date: datetime
    
    class Config:
        from_attributes = True


class ParcelCreatedResponse(BaseModel):
    message: str
    inserted_id: str
    parcel: ParcelResponse


class RiderAssignment(BaseModel):
    """Schema for assigning a rider to a parcel."""
    rider_id: str
    rider_name: Optional[str] = None
    rider_email: Optional[str] = None


class ParcelDeletedResponse(BaseModel):
    deleted: bool
    parcel_id: str
