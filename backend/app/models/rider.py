"""
Rider database model (Rider Registry).
"""

from sqlalchemy import Column, String, DateTime
from backend.app.db.session import Base
from backend.app.models.base import new_id, utcnow, enum_column
from backend.app.models.rider_enums import RiderStatus, WorkStatus


class Rider(Base):
    """
    Rider application and, once approved, courier record.
    
    Several applications may exist for the same email; ``work_status``
    only carries meaning while ``status`` is ACTIVE.
    """
    __tablename__ = "riders"
    
    id = Column(String(36), primary_key=True, default=new_id)
    
    # Applicant
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    nid = Column(String(100), nullable=True)
    age = Column(String(10), nullable=True)
    
    # Coverage
    region = Column(String(100), nullable=True)
    district = Column(String(100), nullable=False, index=True)
    
    # Vehicle
    bike_brand = Column(String(100), nullable=True)
    bike_registration = Column(String(100), nullable=True)
    
    status = Column(enum_column(RiderStatus, "rider_status"), default=RiderStatus.PENDING, nullable=False, index=True)
    work_status = Column(enum_column(WorkStatus, "work_status"), default=WorkStatus.AVAILABLE, nullable=False)
    
    applied_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    def __repr__(self):
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}')>"
