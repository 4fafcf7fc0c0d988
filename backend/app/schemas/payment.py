"""
Payment Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class PaymentCreate(BaseModel):
    """Schema for a confirmed payment event."""
    parcel_id: str
    payer_email: str = Field(..., min_length=3, max_length=255)
    amount: float = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1, max_length=255)
    method: str = Field(..., min_length=1, max_length=50, description="e.g. 'card'")


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: str
    parcel_id: str
    payer_email: str
    amount: float
    transaction_id: str
    method: str
    paid_at: datetime
    
    class Config:
        from_attributes = True


class PaymentRecordedResponse(BaseModel):
    success: bool
    message: str
    inserted_id: str
    payment: PaymentResponse
