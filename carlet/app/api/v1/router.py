"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from carlet.app.api.v1.endpoints import (
    auth, users, locations, cars, notes, parts,
    uploads, vin, app_logs
)

router = APIRouter()

# Identity
router.include_router(auth.router)
router.include_router(users.router)

# Stage registry and board
router.include_router(locations.router)

# Vehicle workflow
router.include_router(cars.router)
router.include_router(notes.router)
router.include_router(parts.router)

# Supporting services
router.include_router(uploads.router)
router.include_router(vin.router)
router.include_router(app_logs.router)
