"""
Rider API Endpoints.

Applications are open to anyone; every administrative step on a rider
(review queues, decisions, deactivation) requires an admin.
"""

from fastapi import APIRouter, Depends, Path, Query, status

from backend.app.core.dependencies import get_rider_lifecycle, Identity
from backend.app.core.guards import require_admin
from backend.app.domain.rider_lifecycle import RiderLifecycle
from backend.app.models.rider_enums import RiderStatus
from backend.app.schemas.rider import RiderApply, RiderDecision, RiderResponse

router = APIRouter(prefix="/riders", tags=["Riders"])


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderApply,
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    rider = await riders.apply(application.model_dump())
    return RiderResponse.model_validate(rider)


@router.get("/pending", response_model=list[RiderResponse])
async def list_pending_riders(
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    return [RiderResponse.model_validate(r) for r in await riders.list_pending()]


@router.get("/active", response_model=list[RiderResponse])
async def list_active_riders(
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    return [RiderResponse.model_validate(r) for r in await riders.list_active(admin.email)]


@router.get("/available", response_model=list[RiderResponse])
async def list_riders_in_district(
    district: str = Query(..., min_length=1, description="District to match"),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    """
    Riders registered for a district.
    
    No status filtering is applied; pick active, available riders before
    assigning.
    """
    return [RiderResponse.model_validate(r) for r in await riders.list_available_in_district(district)]


@router.patch("/{rider_id}/status", response_model=RiderResponse)
async def decide_rider(
    decision: RiderDecision,
    rider_id: str = Path(..., description="Rider ID"),
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    """Decide a pending application; 'active' also grants the rider role."""
    rider = await riders.decide(rider_id, decision.status, actor_email=admin.email)
    return RiderResponse.model_validate(rider)


@router.patch("/approve/{rider_id}", response_model=RiderResponse)
async def approve_rider(
    rider_id: str = Path(..., description="Rider ID"),
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    rider = await riders.decide(rider_id, RiderStatus.ACTIVE, actor_email=admin.email)
    return RiderResponse.model_validate(rider)


@router.patch("/reject/{rider_id}", response_model=RiderResponse)
async def reject_rider(
    rider_id: str = Path(..., description="Rider ID"),
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    rider = await riders.reject(rider_id, actor_email=admin.email)
    return RiderResponse.model_validate(rider)


@router.patch("/deactivate/{rider_id}", response_model=RiderResponse)
async def deactivate_rider(
    rider_id: str = Path(..., description="Rider ID"),
    admin: Identity = Depends(require_admin),
    riders: RiderLifecycle = Depends(get_rider_lifecycle),
):
    """Deactivate an active rider. The user keeps the rider role."""
    rider = await riders.deactivate(rider_id, actor_email=admin.email)
    return RiderResponse.model_validate(rider)
