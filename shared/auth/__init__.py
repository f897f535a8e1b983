"""
Authentication Module
=====================

Bearer-token identity for Attest services.

Token issuance lives in the external auth service. This module decodes
access tokens and exposes FastAPI dependencies that return the caller's
identity; roles and permissions are resolved from the database by the
workflow service.

Usage:
    from shared.auth import User, get_current_user

    @app.get("/protected")
    async def protected(user: User = Depends(get_current_user)):
        return {"user": user.email}
"""

from shared.auth.dependencies import (
    User,
    get_current_active_user,
    get_current_user,
    oauth2_scheme,
)
from shared.auth.jwt import (
    TokenData,
    create_access_token,
    decode_token,
)
from shared.auth.password import hash_password


__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    "TokenData",
    # Password
    "hash_password",
    # Dependencies
    "User",
    "get_current_user",
    "get_current_active_user",
    "oauth2_scheme",
]
