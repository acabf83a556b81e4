"""
Account endpoints for API v1.

Registration and login are public.  ``/me`` routes act on the account
identified by the bearer token and never expose the stored password
credential.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status

from crm_api.app.core.errors import CRMError, raise_http
from crm_api.app.core.security import create_access_token, get_current_account
from crm_api.app.schemas.account import AccountRead, LoginRequest, Token
from crm_api.app.services.account_service import AccountService


router = APIRouter()


@router.post("/", response_model=AccountRead, status_code=status.HTTP_201_CREATED)
async def register_account(body: Dict[str, Any] = Body(...)) -> AccountRead:
    """Register a new account.

    Requires ``name``, ``email`` and ``password``.  Returns 409 when the
    email already belongs to another account.
    """
    try:
        return await AccountService.register(body)
    except CRMError as exc:
        raise_http(exc)


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest) -> Token:
    account = await AccountService.authenticate(credentials.email, credentials.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=create_access_token({"sub": str(account.id)}))


@router.get("/me", response_model=AccountRead)
async def read_profile(account_id: int = Depends(get_current_account)) -> AccountRead:
    try:
        return await AccountService.get_account(account_id)
    except CRMError as exc:
        raise_http(exc)


@router.patch("/me", response_model=AccountRead)
async def update_profile(
    body: Dict[str, Any] = Body(...),
    account_id: int = Depends(get_current_account),
) -> AccountRead:
    """Update the caller's ``name``, ``email`` and/or ``password``.

    Fields left out of the body are unchanged; a field sent empty is
    rejected, as is a body with no recognised field.
    """
    try:
        return await AccountService.update_profile(account_id, body)
    except CRMError as exc:
        raise_http(exc)
