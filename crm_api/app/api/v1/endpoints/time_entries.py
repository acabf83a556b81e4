"""
Time entry endpoints for API v1.

Updating or deleting an entry refreshes the total of the visit it
belongs to.  Entries are created through
``POST /service-visits/{visit_id}/time-entries``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from crm_api.app.core.errors import CRMError, raise_http
from crm_api.app.core.security import get_current_account
from crm_api.app.schemas.time_entry import TimeEntryRead
from crm_api.app.services.time_entry_service import TimeEntryService


router = APIRouter()


@router.patch("/{entry_id}", response_model=TimeEntryRead)
async def update_time_entry(
    entry_id: int,
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> TimeEntryRead:
    try:
        return await TimeEntryService.update_time_entry(account_id, entry_id, body)
    except CRMError as exc:
        raise_http(exc)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(entry_id: int, account_id: int = Depends(get_current_account)) -> None:
    try:
        await TimeEntryService.delete_time_entry(account_id, entry_id)
    except CRMError as exc:
        raise_http(exc)
    return None
