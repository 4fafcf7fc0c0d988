"""
Audit logging service for role changes and workflow transitions.

Entries are staged on the caller's session; the component that owns the
unit of work commits them together with the change they describe.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_REGISTERED = "USER_REGISTERED"
    ROLE_CHANGED = "ROLE_CHANGED"
    
    # Rider workflow
    RIDER_APPLIED = "RIDER_APPLIED"
    RIDER_APPROVED = "RIDER_APPROVED"
    RIDER_REJECTED = "RIDER_REJECTED"
    RIDER_DEACTIVATED = "RIDER_DEACTIVATED"
    
    # Parcel workflow
    PARCEL_CREATED = "PARCEL_CREATED"
    PARCEL_DELETED = "PARCEL_DELETED"
    RIDER_ASSIGNED = "RIDER_ASSIGNED"
    
    # Payments
    PAYMENT_RECORDED = "PAYMENT_RECORDED"


def log_event(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    actor_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Stage an audit entry on ``db``.
    
    Args:
        db: Database session of the current unit of work
        action: Action being performed (use AuditAction constants)
        entity_type: "user", "rider", "parcel" or "payment"
        entity_id: Identifier of the entity acted upon
        actor_email: Email of the caller, None when unauthenticated
        metadata: Additional context as JSON
        
    Returns:
        The pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata,
    )
    db.add(audit_log)
    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
    
    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)
    
    if action:
        query = query.where(AuditLog.action == action)
    
    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
