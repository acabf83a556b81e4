"""
Audit log endpoints for API v1.

An account can read only its own audit records.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from crm_api.app.core.security import get_current_account
from crm_api.app.schemas.audit import AuditLogRead
from crm_api.app.services.audit_service import AuditService

router = APIRouter()


@router.get("/logs", response_model=List[AuditLogRead])
async def list_audit_logs(
    object_type: Optional[str] = Query(None, description="customer, service_visit, time_entry or account"),
    action: Optional[str] = Query(None, description="create, update or delete"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    account_id: int = Depends(get_current_account),
) -> List[AuditLogRead]:
    return await AuditService.list_logs(
        account_id,
        object_type=object_type,
        action=action,
        limit=limit,
        offset=offset,
    )
