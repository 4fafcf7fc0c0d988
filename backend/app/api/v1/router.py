"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import users, parcels, riders, payments

router = APIRouter()

# Directory Store / Role Manager
router.include_router(users.router)

# Parcel Lifecycle
router.include_router(parcels.router)

# Rider Lifecycle
router.include_router(riders.router)

# Payment Recorder
router.include_router(payments.router)
