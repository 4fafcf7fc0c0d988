"""
Identity token utilities.

Tokens are issued by the identity provider; this service only needs to
verify them and read the caller's email. ``create_identity_token`` exists
for local tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings


def create_identity_token(email: str, subject: Optional[str] = None, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed identity token for ``email``.
    
    Example payload:
        {
            "sub": "uid-123",
            "email": "user@example.com",
            "exp": 1234567890
        }
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    
    to_encode = {
        "sub": subject or email,
        "email": email,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_identity_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an identity token.
    
    Returns:
        Decoded claims if the signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
