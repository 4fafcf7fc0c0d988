"""
Rider Lifecycle.

Application workflow for riders:

    pending ──decide──▶ active ──deactivate──▶ deactivated
       │                  │
       └──decide/reject──▶ rejected ◀──reject──┘

Approval is the only path that grants the RIDER role. Transitions are
conditional updates on the expected current status, so a racing second
decision observes Conflict instead of being applied twice.
"""

import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy import select, update

from backend.app.core.exceptions import ConflictError, InvalidArgumentError
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.store import StoreContext
from backend.app.models.base import new_id
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import (
    RiderStatus,
    WorkStatus,
    DECISION_OUTCOMES,
    TERMINAL_RIDER_STATUSES,
)
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("parcels.riders")

APPLICATION_FIELDS = (
    "name", "email", "phone", "nid", "age", "region", "district",
    "bike_brand", "bike_registration",
)


class RiderLifecycle:
    
    def __init__(self, store: StoreContext, roles: RoleManager):
        self.store = store
        self.roles = roles
    
    async def apply(self, rider_data: Dict[str, Any]) -> Rider:
        """Create a PENDING rider; several applications per email are allowed."""
        data = {key: rider_data.get(key) for key in APPLICATION_FIELDS}
        if not data["name"] or not data["email"] or not data["district"]:
            raise InvalidArgumentError("name, email and district are required")
        
        rider = Rider(
            id=new_id(),
            status=RiderStatus.PENDING,
            work_status=WorkStatus.AVAILABLE,
            **data,
        )
        async with self.store.unit_of_work("rider application"):
            self.store.db.add(rider)
            log_event(
                self.store.db, AuditAction.RIDER_APPLIED, "rider", rider.id,
                actor_email=rider.email, metadata={"district": rider.district},
            )
        
        logger.info("Rider application %s received from %s", rider.id, rider.email)
        return rider
    
    async def list_pending(self) -> list[Rider]:
        return await self.store.scalars(
            select(Rider).where(Rider.status == RiderStatus.PENDING).order_by(Rider.applied_at)
        )
    
    async def list_active(self, actor_email: Optional[str]) -> list[Rider]:
        await self.roles.require_admin(actor_email)
        return await self.store.scalars(
            select(Rider).where(Rider.status == RiderStatus.ACTIVE).order_by(Rider.applied_at)
        )
    
    async def list_available_in_district(self, district: str) -> list[Rider]:
        """
        Riders registered for ``district``.
        
        This is a plain district match; status and work status are not
        filtered, callers pick eligible riders themselves.
        """
        return await self.store.scalars(
            select(Rider).where(Rider.district == district).order_by(Rider.name)
        )
    
    async def decide(self, rider_id: str, outcome: Union[str, RiderStatus], actor_email: Optional[str] = None) -> Rider:
        """
        Resolve a PENDING application to ACTIVE or REJECTED.
        
        Approval sets the user sharing the rider's email to RIDER in the
        same transaction. Rejection leaves every user role untouched.
        """
        try:
            outcome = RiderStatus(outcome)
        except ValueError:
            outcome = None
        if outcome not in DECISION_OUTCOMES:
            raise InvalidArgumentError(
                "Decision must be 'active' or 'rejected'",
                details={"allowed": sorted(s.value for s in DECISION_OUTCOMES)}
            )
        
        async with self.store.unit_of_work("rider decision"):
            rider = await self.store.get(Rider, rider_id, "Rider")
            result = await self.store.db.execute(
                update(Rider)
                .where(Rider.id == rider.id, Rider.status == RiderStatus.PENDING)
                .values(status=outcome)
            )
            if result.rowcount != 1:
                await self.store.refresh(rider)
                logger.warning("Decision on rider %s refused, status is %s", rider.id, rider.status.value)
                raise ConflictError(
                    f"Rider application is already {rider.status.value}",
                    details={"rider_id": rider.id, "status": rider.status.value}
                )
            
            elevated = False
            if outcome == RiderStatus.ACTIVE:
                elevated = await self.roles.elevate_to_rider(rider.email)
                if not elevated:
                    logger.warning("Rider %s approved without granting the rider role to %s", rider.id, rider.email)
            
            log_event(
                self.store.db,
                AuditAction.RIDER_APPROVED if outcome == RiderStatus.ACTIVE else AuditAction.RIDER_REJECTED,
                "rider", rider.id,
                actor_email=actor_email,
                metadata={"email": rider.email, "role_granted": elevated},
            )
        
        if outcome == RiderStatus.ACTIVE:
            await self.roles.forget(rider.email)
        await self.store.refresh(rider)
        logger.info("Rider %s moved pending -> %s", rider.id, outcome.value)
        return rider
    
    async def reject(self, rider_id: str, actor_email: Optional[str] = None) -> Rider:
        """Move any non-terminal rider to REJECTED; already rejected is a no-op."""
        return await self._transition(
            rider_id,
            target=RiderStatus.REJECTED,
            allowed_from=tuple(s for s in RiderStatus if s not in TERMINAL_RIDER_STATUSES),
            action=AuditAction.RIDER_REJECTED,
            actor_email=actor_email,
        )
    
    async def deactivate(self, rider_id: str, actor_email: Optional[str] = None) -> Rider:
        """
        Move an ACTIVE rider to DEACTIVATED; already deactivated is a no-op.
        
        The linked user keeps the RIDER role.
        """
        return await self._transition(
            rider_id,
            target=RiderStatus.DEACTIVATED,
            allowed_from=(RiderStatus.ACTIVE,),
            action=AuditAction.RIDER_DEACTIVATED,
            actor_email=actor_email,
        )
    
    async def _transition(self, rider_id, target, allowed_from, action, actor_email) -> Rider:
        async with self.store.unit_of_work(f"rider {target.value}"):
            rider = await self.store.get(Rider, rider_id, "Rider")
            previous = rider.status
            result = await self.store.db.execute(
                update(Rider)
                .where(Rider.id == rider.id, Rider.status.in_(allowed_from))
                .values(status=target)
            )
            if result.rowcount != 1:
                await self.store.refresh(rider)
                if rider.status == target:
                    return rider
                logger.warning("Rider %s cannot move %s -> %s", rider.id, rider.status.value, target.value)
                raise ConflictError(
                    f"Rider in status '{rider.status.value}' cannot become '{target.value}'",
                    details={"rider_id": rider.id, "status": rider.status.value}
                )
            log_event(
                self.store.db, action, "rider", rider.id,
                actor_email=actor_email,
                metadata={"from": previous.value, "to": target.value},
            )
        
        await self.store.refresh(rider)
        logger.info("Rider %s moved %s -> %s", rider.id, previous.value, target.value)
        return rider
