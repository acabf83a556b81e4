"""
Security helpers for password hashing and bearer token authentication.

Tokens are HMAC-SHA256 signed JSON Web Tokens built from base64url
encoded parts.  The subject (``sub``) is the account id, so a token
stays valid when the account changes its email.  Passwords are
hashed with PBKDF2-HMAC-SHA256 and a per-password random salt; the
stored form is ``salthex$hashhex`` and is never returned by the API.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_cursor


PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], expires_delta: Optional[int] = None) -> str:
    """Create a signed token with the given claims.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "42"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A ``header.payload.signature`` token.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, str]]:
    """Verify and decode a token.

    Returns the payload when the signature matches and ``exp`` lies in
    the future, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_account(credentials: HTTPAuthorizationCredentials = Depends(security)) -> int:
    """Dependency that resolves the id of the calling account.

    Raises HTTP 401 when the header is missing, the token is invalid
    or expired, or the account no longer exists.
    """
    if credentials is None:
        raise _unauthenticated()
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthenticated("Invalid or expired token")
    try:
        account_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthenticated("Invalid or expired token")

    with get_cursor() as cursor:
        row = cursor.execute("SELECT id FROM accounts WHERE id = ?", (account_id,)).fetchone()
    if not row:
        raise _unauthenticated("Account no longer exists")
    return account_id


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Returns salt and hash in hex joined by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
