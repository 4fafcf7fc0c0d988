"""
Audit Log Database Model.

Tracks role changes and state transitions on riders, parcels and payments.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from backend.app.db.session import Base
from backend.app.models.base import utcnow


class AuditLog(Base):
    """
    Audit log entry.
    
    Written in the same unit of work as the change it describes, so a
    rolled back transition leaves no entry behind.
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for anonymous/system actions)
    actor_email = Column(String(255), index=True, nullable=True)
    
    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    
    # What it was performed on
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), index=True, nullable=True)
    
    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)
    
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, entity={self.entity_type}:{self.entity_id})>"
