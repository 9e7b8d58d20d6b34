"""
Credential hashing and JWT verification for admin accounts.

Tokens are issued by the authentication service; this module only checks
them. Expected claims:
    sub: admin id
    ver: the admin's token_version when the token was issued
    exp: expiry (required)
"""
import jwt
from fastapi import HTTPException, status
from pwdlib import PasswordHash

from app.core import config


_password_hash = PasswordHash.recommended()


def hash_password(raw: str) -> str:
    """Hash a credential with argon2."""
    return _password_hash.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    return _password_hash.verify(raw, hashed)


def verify_jwt_token(token: str) -> dict:
    """
    Verify an admin JWT and return its payload.

    Args:
        token: JWT token from Authorization header

    Returns:
        Decoded JWT payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
        return payload

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
