"""
Authentication Module

Provides credential issuing, JWT validation and the admin policy.
"""
from teamchat.auth.jwt_handler import (
    create_access_token,
    decode_jwt_token,
    extract_user_from_token,
    JWTValidationError,
    TokenExpiredError,
)
from teamchat.auth.dependencies import get_current_user, require_admin

__all__ = [
    "create_access_token",
    "decode_jwt_token",
    "extract_user_from_token",
    "JWTValidationError",
    "TokenExpiredError",
    "get_current_user",
    "require_admin",
]
