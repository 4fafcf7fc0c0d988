"""
Parcel API Endpoints.

Creation, lookup, owner listing, removal and rider assignment.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status

from backend.app.core.dependencies import Identity, get_current_identity, get_parcel_lifecycle
from backend.app.core.guards import require_admin
from backend.app.domain.parcel_lifecycle import ParcelLifecycle
from backend.app.schemas.parcel import (
    ParcelCreate, ParcelResponse, ParcelCreatedResponse,
    RiderAssignment, ParcelDeletedResponse,
)

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("", response_model=ParcelCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    parcels: ParcelLifecycle = Depends(get_parcel_lifecycle),
):
    """Create a parcel in status 'created', unpaid and unassigned."""
    data = parcel_data.model_dump(exclude={"owner_email"})
    parcel = await parcels.create(parcel_data.owner_email, data)
    return ParcelCreatedResponse(
        message="Parcel added successfully",
        inserted_id=parcel.id,
        parcel=ParcelResponse.model_validate(parcel),
    )


@router.get("", response_model=list[ParcelResponse])
async def list_parcels(
    email: Optional[str] = Query(None, description="Owner email; omit for every parcel (admin only)"),
    identity: Identity = Depends(get_current_identity),
    parcels: ParcelLifecycle = Depends(get_parcel_lifecycle),
):
    """
    List parcels of the caller, most recent first.
    
    The email filter must match the verified identity.
    """
    results = await parcels.list_for_owner(identity.email, email)
    return [ParcelResponse.model_validate(p) for p in results]


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    parcels: ParcelLifecycle = Depends(get_parcel_lifecycle),
):
    parcel = await parcels.get(parcel_id)
    return ParcelResponse.model_validate(parcel)


@router.delete("/{parcel_id}", response_model=ParcelDeletedResponse)
async def delete_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    identity: Identity = Depends(get_current_identity),
    parcels: ParcelLifecycle = Depends(get_parcel_lifecycle),
):
    """Remove a parcel (owner or admin), whatever its delivery status."""
    removed_id = await parcels.delete(parcel_id, actor_email=identity.email)
    return ParcelDeletedResponse(deleted=True, parcel_id=removed_id)


@router.patch("/{parcel_id}/assign", response_model=ParcelResponse)
async def assign_rider(
    assignment: RiderAssignment,
    parcel_id: str = Path(..., description="Parcel ID"),
    admin: Identity = Depends(require_admin),
    parcels: ParcelLifecycle = Depends(get_parcel_lifecycle),
):
    """
    Assign an active, available rider to a 'created' parcel (admin only).
    
    Returns 409 if the parcel is already assigned or the rider is busy.
    """
    parcel = await parcels.assign_rider(
        parcel_id,
        assignment.rider_id,
        rider_name=assignment.rider_name,
        rider_email=assignment.rider_email,
        actor_email=admin.email,
    )
    return ParcelResponse.model_validate(parcel)
