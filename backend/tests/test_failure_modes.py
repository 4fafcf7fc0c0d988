"""
Failure Injection Tests.

Storage failures surface as Dependency with nothing persisted; Redis
failures only cost a cache miss.
"""

import pytest
from sqlalchemy.exc import OperationalError

from backend.app.core.exceptions import DependencyError
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.store import StoreContext
from backend.app.models.enums import UserRole
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import WorkStatus
from backend.app.services.role_cache import RoleCache


def storage_down():
    return OperationalError("COMMIT", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
async def test_assignment_commit_failure_leaves_no_partial_state(
    parcels, parcel_data, active_rider, db_session, fetch, mocker
):
    rider_id = (await active_rider()).id
    parcel_id = (await parcels.create("u@x.com", parcel_data)).id
    mocker.patch.object(db_session, "commit", side_effect=storage_down())

    with pytest.raises(DependencyError):
        await parcels.assign_rider(parcel_id, rider_id)

    assert (await fetch(Parcel, parcel_id)).delivery_status == DeliveryStatus.CREATED
    assert (await fetch(Rider, rider_id)).work_status == WorkStatus.AVAILABLE


@pytest.mark.asyncio
async def test_payment_commit_failure_is_not_reported_as_success(
    parcels, payments, parcel_data, db_session, fetch, mocker
):
    parcel_id = (await parcels.create("u@x.com", parcel_data)).id
    mocker.patch.object(db_session, "commit", side_effect=storage_down())

    with pytest.raises(DependencyError):
        await payments.record(parcel_id, "u@x.com", 500, "tx1", "card")

    assert (await fetch(Parcel, parcel_id)).payment_status == PaymentStatus.UNPAID


@pytest.mark.asyncio
async def test_read_failure_is_dependency_error(parcels, db_session, mocker):
    mocker.patch.object(db_session, "execute", side_effect=storage_down())
    
    with pytest.raises(DependencyError):
        await parcels.list_for_owner("u@x.com", "u@x.com")


@pytest.mark.asyncio
async def test_role_resolution_survives_unreachable_redis(db_session, make_user, unreachable_redis):
    await make_user("admin@x.com", UserRole.ADMIN)
    store = StoreContext(db_session)
    roles = RoleManager(store, RoleCache(unreachable_redis))
    
    assert await roles.resolve_role("admin@x.com") == UserRole.ADMIN
    await roles.require_admin("admin@x.com")
