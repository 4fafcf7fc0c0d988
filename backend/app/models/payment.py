"""
Payment database model (Payment Journal).
"""

from sqlalchemy import Column, String, Float, DateTime
from backend.app.db.session import Base
from backend.app.models.base import new_id, utcnow


class Payment(Base):
    """
    Confirmed payment for a parcel.
    
    Immutable journal entry: NO updates or deletions. ``parcel_id`` is kept
    without a foreign key so history survives an administrative parcel
    removal.
    """
    __tablename__ = "payments"
    
    id = Column(String(36), primary_key=True, default=new_id)
    parcel_id = Column(String(36), nullable=False, index=True)
    payer_email = Column(String(255), nullable=False, index=True)
    
    amount = Column(Float, nullable=False)
    transaction_id = Column(String(255), unique=True, nullable=False)
    method = Column(String(50), nullable=False)
    
    # Timestamps (Immutable - no updated_at)
    paid_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<Payment(id={self.id}, parcel_id={self.parcel_id}, amount={self.amount})>"
