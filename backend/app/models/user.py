"""
User database model (Directory Store).
"""

from sqlalchemy import Column, String, DateTime
from backend.app.db.session import Base
from backend.app.models.base import new_id, utcnow, enum_column
from backend.app.models.enums import UserRole


class User(Base):
    """
    User record created on first sign-in.
    
    The email is the lookup key (case-sensitive). The role is only changed
    by the Role Manager or as a side effect of rider approval.
    """
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    photo_url = Column(String(1024), nullable=True)
    
    role = Column(enum_column(UserRole, "user_role"), default=UserRole.USER, nullable=False)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_login_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
