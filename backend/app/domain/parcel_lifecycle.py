"""
Parcel Lifecycle.

Delivery status flow: created → rider_assigned. Assigning a rider claims
the parcel and the rider in one transaction with conditional updates:

1. parcel: created → rider_assigned (WHERE delivery_status = created)
2. rider:  available → in_delivery (WHERE status = active AND work_status = available)

If either claim matches no row the transaction is rolled back and the
caller gets Conflict, so a rider is never double-booked and a parcel is
never assigned twice.
"""

import logging
import secrets
from typing import Any, Dict, Optional

from sqlalchemy import delete, select, update

from backend.app.core.exceptions import ConflictError, InsufficientPermissionsError, InvalidArgumentError
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.store import StoreContext
from backend.app.models.base import new_id, utcnow
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus, ParcelType
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderStatus, WorkStatus
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("parcels.parcels")

PARCEL_FIELDS = (
    "title", "parcel_type", "weight_kg",
    "sender_name", "sender_district",
    "receiver_name", "receiver_contact", "destination_district",
    "delivery_cost",
)


def generate_tracking_id() -> str:
    return f"PCL-{utcnow():%Y%m%d}-{secrets.token_hex(4).upper()}"


class ParcelLifecycle:
    
    def __init__(self, store: StoreContext, roles: RoleManager):
        self.store = store
        self.roles = roles
    
    async def create(self, owner_email: str, parcel_data: Dict[str, Any]) -> Parcel:
        """Insert a CREATED, UNPAID, unassigned parcel owned by ``owner_email``."""
        if not owner_email:
            raise InvalidArgumentError("Owner email is required")
        data = {key: parcel_data[key] for key in PARCEL_FIELDS if parcel_data.get(key) is not None}
        if not data.get("destination_district"):
            raise InvalidArgumentError("Destination district is required")
        if not data.get("title"):
            raise InvalidArgumentError("Parcel title is required")
        try:
            data["parcel_type"] = ParcelType(data.get("parcel_type", ParcelType.DOCUMENT))
        except ValueError:
            raise InvalidArgumentError(f"Unknown parcel type '{data['parcel_type']}'")
        
        parcel = Parcel(
            id=new_id(),
            tracking_id=generate_tracking_id(),
            owner_email=owner_email,
            delivery_status=DeliveryStatus.CREATED,
            payment_status=PaymentStatus.UNPAID,
            assigned_rider_id=None,
            creation_date=utcnow(),
            **data,
        )
        async with self.store.unit_of_work("parcel creation"):
            self.store.db.add(parcel)
            log_event(
                self.store.db, AuditAction.PARCEL_CREATED, "parcel", parcel.id,
                actor_email=owner_email,
                metadata={"tracking_id": parcel.tracking_id, "destination": parcel.destination_district},
            )
        
        logger.info("Parcel %s created for %s", parcel.id, owner_email)
        return parcel
    
    async def get(self, parcel_id: str) -> Parcel:
        return await self.store.get(Parcel, parcel_id, "Parcel")
    
    async def list_for_owner(self, caller_email: str, owner_email: Optional[str] = None) -> list[Parcel]:
        """
        Parcels of ``owner_email``, most recent first.
        
        The caller must be the owner. Leaving ``owner_email`` out lists every
        parcel and is reserved to admins.
        """
        query = select(Parcel).order_by(Parcel.creation_date.desc())
        if owner_email is None:
            await self.roles.require_admin(caller_email)
        else:
            if caller_email != owner_email:
                raise InsufficientPermissionsError("Cannot list parcels of another user")
            query = query.where(Parcel.owner_email == owner_email)
        return await self.store.scalars(query)
    
    async def assign_rider(
        self,
        parcel_id: str,
        rider_id: str,
        rider_name: Optional[str] = None,
        rider_email: Optional[str] = None,
        actor_email: Optional[str] = None,
    ) -> Parcel:
        """
        Assign an active, available rider to a CREATED parcel.
        
        Raises:
            ResourceNotFoundError: parcel or rider absent
            ConflictError: parcel already assigned, rider inactive or busy
            DependencyError: the transaction could not be committed
        """
        async with self.store.unit_of_work("rider assignment"):
            parcel = await self.store.get(Parcel, parcel_id, "Parcel")
            rider = await self.store.get(Rider, rider_id, "Rider")
            
            if rider.status != RiderStatus.ACTIVE:
                raise ConflictError(
                    f"Rider is {rider.status.value}, only active riders can be assigned",
                    details={"rider_id": rider.id, "status": rider.status.value}
                )
            
            parcel_claim = await self.store.db.execute(
                update(Parcel)
                .where(Parcel.id == parcel.id, Parcel.delivery_status == DeliveryStatus.CREATED)
                .values(
                    delivery_status=DeliveryStatus.RIDER_ASSIGNED,
                    assigned_rider_id=rider.id,
                    assigned_rider_name=rider_name or rider.name,
                    assigned_rider_email=rider_email or rider.email,
                    assigned_at=utcnow(),
                )
            )
            if parcel_claim.rowcount != 1:
                await self.store.refresh(parcel)
                logger.warning("Parcel %s already %s, assignment refused", parcel.id, parcel.delivery_status.value)
                raise ConflictError(
                    f"Parcel is already {parcel.delivery_status.value}",
                    details={"parcel_id": parcel.id, "delivery_status": parcel.delivery_status.value}
                )
            
            rider_claim = await self.store.db.execute(
                update(Rider)
                .where(
                    Rider.id == rider.id,
                    Rider.status == RiderStatus.ACTIVE,
                    Rider.work_status == WorkStatus.AVAILABLE,
                )
                .values(work_status=WorkStatus.IN_DELIVERY)
            )
            if rider_claim.rowcount != 1:
                logger.warning("Rider %s is not available, assignment of %s rolled back", rider.id, parcel.id)
                raise ConflictError(
                    "Rider is already in delivery",
                    details={"rider_id": rider.id}
                )
            
            log_event(
                self.store.db, AuditAction.RIDER_ASSIGNED, "parcel", parcel.id,
                actor_email=actor_email,
                metadata={"rider_id": rider.id},
            )
        
        await self.store.refresh(parcel)
        logger.info("Parcel %s assigned to rider %s", parcel.id, rider.id)
        return parcel
    
    async def delete(self, parcel_id: str, actor_email: Optional[str] = None) -> str:
        """
        Remove a parcel whatever its state.
        
        Only the owner or an admin may delete. A rider still holding the
        parcel is released back to AVAILABLE in the same transaction.
        """
        async with self.store.unit_of_work("parcel removal"):
            parcel = await self.store.get(Parcel, parcel_id, "Parcel")
            if actor_email != parcel.owner_email:
                await self.roles.require_admin(actor_email)
            
            removed_id = parcel.id
            status = parcel.delivery_status
            rider_id = parcel.assigned_rider_id
            if status == DeliveryStatus.RIDER_ASSIGNED and rider_id:
                await self.store.db.execute(
                    update(Rider)
                    .where(Rider.id == rider_id, Rider.work_status == WorkStatus.IN_DELIVERY)
                    .values(work_status=WorkStatus.AVAILABLE)
                )
            
            await self.store.db.execute(delete(Parcel).where(Parcel.id == removed_id))
            log_event(
                self.store.db, AuditAction.PARCEL_DELETED, "parcel", removed_id,
                actor_email=actor_email,
                metadata={"delivery_status": status.value, "released_rider_id": rider_id},
            )
        
        logger.info("Parcel %s deleted by %s", removed_id, actor_email)
        return removed_id
