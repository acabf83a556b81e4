"""
Service visit endpoints for API v1.

Visits and their time entries are reachable only by the account that
owns the visit (directly or through its customer).
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from crm_api.app.core.errors import CRMError, raise_http
from crm_api.app.core.security import get_current_account
from crm_api.app.schemas.service_visit import ServiceVisitDetail, ServiceVisitRead
from crm_api.app.schemas.time_entry import TimeEntryRead
from crm_api.app.services.service_visit_service import ServiceVisitService
from crm_api.app.services.time_entry_service import TimeEntryService


router = APIRouter()


@router.get("/", response_model=List[ServiceVisitRead])
async def list_visits(
    customer_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    account_id: int = Depends(get_current_account),
) -> List[ServiceVisitRead]:
    return await ServiceVisitService.list_visits(account_id, customer_id, limit=limit, offset=offset)


@router.post("/", response_model=ServiceVisitDetail, status_code=status.HTTP_201_CREATED)
async def create_visit(
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> ServiceVisitDetail:
    """Create a visit for one of the caller's customers.

    Requires ``customer_id``, ``service_name`` and ``service_date``.
    ``time_entries`` may be supplied; ``total_duration_minutes`` is
    always computed from them.
    """
    try:
        return await ServiceVisitService.create_visit(account_id, body)
    except CRMError as exc:
        raise_http(exc)


@router.get("/{visit_id}", response_model=ServiceVisitDetail)
async def get_visit(visit_id: int, account_id: int = Depends(get_current_account)) -> ServiceVisitDetail:
    try:
        return await ServiceVisitService.get_visit(account_id, visit_id)
    except CRMError as exc:
        raise_http(exc)


@router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_visit(visit_id: int, account_id: int = Depends(get_current_account)) -> None:
    try:
        await ServiceVisitService.delete_visit(account_id, visit_id)
    except CRMError as exc:
        raise_http(exc)
    return None


@router.get("/{visit_id}/time-entries", response_model=List[TimeEntryRead])
async def list_time_entries(visit_id: int, account_id: int = Depends(get_current_account)) -> List[TimeEntryRead]:
    try:
        return await TimeEntryService.list_time_entries(account_id, visit_id)
    except CRMError as exc:
        raise_http(exc)


@router.post("/{visit_id}/time-entries", response_model=TimeEntryRead, status_code=status.HTTP_201_CREATED)
async def add_time_entry(
    visit_id: int,
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> TimeEntryRead:
    """Log time on a visit.

    Requires ``date`` and ``duration_minutes``; ``description`` is
    optional.  The visit's ``total_duration_minutes`` is refreshed in
    the same transaction.
    """
    try:
        return await TimeEntryService.add_time_entry(account_id, visit_id, body)
    except CRMError as exc:
        raise_http(exc)
