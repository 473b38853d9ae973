"""
auth.py - JWT-based authentication.

Users register with name/email/password and receive a bearer token; protected
routes resolve the token back to the stored user.
"""

import hashlib
import hmac
import os
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from ..config import Settings, get_settings


JWT_ALGORITHM = "HS256"
PBKDF2_ITERATIONS = 120_000

security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    """JWT token payload."""
    sub: str  # user id
    name: Optional[str] = None
    email: Optional[str] = None
    exp: datetime


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """Hash a password as "salt$digest" using PBKDF2-SHA256."""
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash."""
    if not password_hash or "$" not in password_hash:
        return False
    salt_hex, digest_hex = password_hash.split("$", 1)
    candidate = hash_password(password, bytes.fromhex(salt_hex)).split("$", 1)[1]
    return hmac.compare_digest(candidate, digest_hex)


def create_token(user_id: int, name: Optional[str], email: Optional[str],
                 settings: Settings) -> str:
    """Create a JWT token for the user."""
    payload = {
        "sub": str(user_id),
        "name": name,
        "email": email,
        "exp": datetime.utcnow() + timedelta(hours=settings.jwt_expiration_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> TokenPayload:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> TokenPayload:
    """Dependency to get the current authenticated user."""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_token(credentials.credentials, settings)
