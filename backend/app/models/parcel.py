"""
Parcel database model (Parcel Ledger).
"""

from sqlalchemy import Column, String, Float, DateTime
from backend.app.db.session import Base
from backend.app.models.base import new_id, utcnow, enum_column
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus, ParcelType


class Parcel(Base):
    """
    Parcel model.
    
    A parcel is created by its owner, assigned to one rider, and paid for
    through the Payment Recorder. ``assigned_rider_id`` is a weak reference
    and is NULL while the parcel is CREATED.
    """
    __tablename__ = "parcels"
    
    id = Column(String(36), primary_key=True, default=new_id)
    tracking_id = Column(String(32), unique=True, nullable=False, index=True)
    
    # Ownership
    owner_email = Column(String(255), nullable=False, index=True)
    
    # Contents
    title = Column(String(255), nullable=False)
    parcel_type = Column(enum_column(ParcelType, "parcel_type"), default=ParcelType.DOCUMENT, nullable=False)
    weight_kg = Column(Float, nullable=True)
    
    # Route (supplied by the caller)
    sender_name = Column(String(255), nullable=True)
    sender_district = Column(String(100), nullable=True)
    receiver_name = Column(String(255), nullable=True)
    receiver_contact = Column(String(50), nullable=True)
    destination_district = Column(String(100), nullable=False, index=True)
    
    delivery_cost = Column(Float, nullable=False, default=0)
    
    # Status
    delivery_status = Column(
        enum_column(DeliveryStatus, "delivery_status"),
        default=DeliveryStatus.CREATED, nullable=False, index=True
    )
    payment_status = Column(
        "paymentStatus", enum_column(PaymentStatus, "payment_status"),
        default=PaymentStatus.UNPAID, nullable=False
    )
    
    # Assignment
    assigned_rider_id = Column(String(36), nullable=True, index=True)
    assigned_rider_name = Column(String(255), nullable=True)
    assigned_rider_email = Column(String(255), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    
    creation_date = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking='{self.tracking_id}', status='{self.delivery_status.value}')>"
