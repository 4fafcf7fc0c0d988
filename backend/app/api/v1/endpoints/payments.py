"""
Payment API Endpoints.

Records confirmed payment events and lists the journal.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from backend.app.core.dependencies import Identity, get_current_identity, get_payment_recorder
from backend.app.domain.payment_recorder import PaymentRecorder
from backend.app.schemas.payment import PaymentCreate, PaymentResponse, PaymentRecordedResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_data: PaymentCreate,
    identity: Identity = Depends(get_current_identity),
    payments: PaymentRecorder = Depends(get_payment_recorder),
):
    """
    Record a payment confirmed by the payment processor.
    
    The parcel is marked paid in the same transaction; 409 if it was
    already paid or the transaction was already recorded.
    """
    payment = await payments.record(
        parcel_id=payment_data.parcel_id,
        payer_email=payment_data.payer_email,
        amount=payment_data.amount,
        transaction_id=payment_data.transaction_id,
        method=payment_data.method,
        actor_email=identity.email,
    )
    return PaymentRecordedResponse(
        success=True,
        message="Payment saved and parcel marked as paid",
        inserted_id=payment.id,
        payment=PaymentResponse.model_validate(payment),
    )


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    email: Optional[str] = Query(None, description="Payer email; omit for the full journal (admin only)"),
    identity: Identity = Depends(get_current_identity),
    payments: PaymentRecorder = Depends(get_payment_recorder),
):
    results = await payments.list_for_payer(email, actor_email=identity.email)
    return [PaymentResponse.model_validate(p) for p in results]
