"""
Top-level router for version 1 of the API.

Aggregates the domain routers under a unified prefix.  When a new
domain is introduced, include its router here.
"""

from fastapi import APIRouter

from .endpoints import accounts, audit, customers, service_visits, time_entries

router = APIRouter()

router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
router.include_router(customers.router, prefix="/customers", tags=["customers"])
router.include_router(service_visits.router, prefix="/service-visits", tags=["service-visits"])
router.include_router(time_entries.router, prefix="/time-entries", tags=["time-entries"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
