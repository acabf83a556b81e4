"""
Customer endpoints for API v1.

Every route is scoped to the authenticated account.  Customers of
other accounts answer 404 exactly like customers that do not exist.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from crm_api.app.core.errors import CRMError, raise_http
from crm_api.app.core.security import get_current_account
from crm_api.app.schemas.customer import CustomerListItem, CustomerRead
from crm_api.app.services.customer_service import CustomerService


router = APIRouter()


@router.get("/", response_model=List[CustomerListItem])
async def list_customers(
    search: Optional[str] = Query(None, description="Matches name, phone or address"),
    service_interval: Optional[str] = Query(None, description="Exact service interval in days"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    account_id: int = Depends(get_current_account),
) -> List[CustomerListItem]:
    """List the caller's customers ordered by name.

    - **search**: case-insensitive substring of name, phone or address.
    - **service_interval**: exact match; a non-numeric value is a 400.
    - **limit**, **offset**: pagination.
    """
    try:
        return await CustomerService.list_customers(
            account_id,
            {"search": search, "service_interval": service_interval},
            limit=limit,
            offset=offset,
        )
    except CRMError as exc:
        raise_http(exc)


@router.post("/", response_model=CustomerRead, status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> CustomerRead:
    try:
        return await CustomerService.create_customer(account_id, body)
    except CRMError as exc:
        raise_http(exc)


@router.get("/{customer_id}", response_model=CustomerRead)
async def get_customer(customer_id: int, account_id: int = Depends(get_current_account)) -> CustomerRead:
    try:
        return await CustomerService.get_customer(account_id, customer_id)
    except CRMError as exc:
        raise_http(exc)


@router.patch("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: int,
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> CustomerRead:
    try:
        return await CustomerService.update_customer(account_id, customer_id, body)
    except CRMError as exc:
        raise_http(exc)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: int, account_id: int = Depends(get_current_account)) -> None:
    """Delete a customer.  Refused with 400 while it still has service visits."""
    try:
        await CustomerService.delete_customer(account_id, customer_id)
    except CRMError as exc:
        raise_http(exc)
    return None
