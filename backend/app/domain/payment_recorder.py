"""
Payment Recorder.

Appends a confirmed payment to the journal and marks the parcel PAID in a
single transaction. Success is only reported after both writes commit.
"""

import logging
from typing import Optional

from sqlalchemy import select, update

from backend.app.core.exceptions import ConflictError, InsufficientPermissionsError, InvalidArgumentError
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.store import StoreContext
from backend.app.models.base import new_id, utcnow
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import PaymentStatus
from backend.app.models.payment import Payment
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger("parcels.payments")


class PaymentRecorder:
    
    def __init__(self, store: StoreContext, roles: RoleManager):
        self.store = store
        self.roles = roles
    
    async def record(
        self,
        parcel_id: str,
        payer_email: str,
        amount: float,
        transaction_id: str,
        method: str,
        actor_email: Optional[str] = None,
    ) -> Payment:
        """
        Record a confirmed payment for ``parcel_id``.
        
        ``actor_email`` is the verified caller when the request came over
        HTTP; it must be the payer.
        
        Raises:
            InvalidArgumentError: malformed parcel id or payment fields
            ResourceNotFoundError: parcel absent
            ConflictError: parcel already paid or transaction id reused
            DependencyError: the transaction could not be committed
        """
        if actor_email is not None and actor_email != payer_email:
            raise InsufficientPermissionsError("Payments can only be recorded by the payer")
        if amount is None or amount <= 0:
            raise InvalidArgumentError("Payment amount must be positive")
        if not transaction_id:
            raise InvalidArgumentError("Transaction ID is required")
        if not method:
            raise InvalidArgumentError("Payment method is required")
        
        async with self.store.unit_of_work("payment recording", conflict_message="Transaction already recorded"):
            parcel = await self.store.get(Parcel, parcel_id, "Parcel")
            
            payment = Payment(
                id=new_id(),
                parcel_id=parcel.id,
                payer_email=payer_email,
                amount=amount,
                transaction_id=transaction_id,
                method=method,
                paid_at=utcnow(),
            )
            self.store.db.add(payment)
            await self.store.db.flush()
            
            marked = await self.store.db.execute(
                update(Parcel)
                .where(Parcel.id == parcel.id, Parcel.payment_status == PaymentStatus.UNPAID)
                .values(payment_status=PaymentStatus.PAID)
            )
            if marked.rowcount != 1:
                logger.warning("Parcel %s already paid, transaction %s refused", parcel.id, transaction_id)
                raise ConflictError(
                    "Parcel is already paid",
                    details={"parcel_id": parcel.id}
                )
            
            log_event(
                self.store.db, AuditAction.PAYMENT_RECORDED, "payment", payment.id,
                actor_email=payer_email,
                metadata={"parcel_id": parcel.id, "amount": amount, "transaction_id": transaction_id},
            )
        
        logger.info("Payment %s recorded, parcel %s marked paid", payment.id, parcel.id)
        return payment
    
    async def list_for_payer(self, payer_email: Optional[str], actor_email: Optional[str] = None) -> list[Payment]:
        """
        Payments of ``payer_email``, most recent first.
        
        The caller must be the payer. The full journal (no payer) is
        reserved to admins.
        """
        query = select(Payment).order_by(Payment.paid_at.desc())
        if payer_email is None:
            await self.roles.require_admin(actor_email)
        else:
            if actor_email is not None and actor_email != payer_email:
                raise InsufficientPermissionsError("Cannot list payments of another user")
            query = query.where(Payment.payer_email == payer_email)
        return await self.store.scalars(query)
