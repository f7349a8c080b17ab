"""
Security utilities.

Identity provider session token verification.
"""

from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from app.core.config import settings
from app.schemas.identity import Identity


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an identity provider session token.

    Audience and issuer are only checked when configured.

    Raises:
        JWTError: If the token is invalid, expired, or tampered.
    """
    return jwt.decode(
        token,
        settings.IDENTITY_TOKEN_KEY,
        algorithms=[settings.IDENTITY_TOKEN_ALGORITHM],
        audience=settings.IDENTITY_TOKEN_AUDIENCE,
        issuer=settings.IDENTITY_TOKEN_ISSUER,
        options={"verify_aud": settings.IDENTITY_TOKEN_AUDIENCE is not None},
    )


def decode_identity_token(token: str) -> Identity:
    """
    Decode a session token into the identity it asserts.

    Raises:
        JWTError: If the token is invalid or lacks a subject or email.
    """
    payload = decode_token(token)

    external_id = payload.get("sub")
    email = payload.get("email")
    if not external_id or not email:
        raise JWTError("Token is missing subject or email")

    return Identity(
        external_id=external_id,
        email=email,
        first_name=payload.get("first_name"),
        last_name=payload.get("last_name"),
        avatar_url=payload.get("image_url"),
    )
