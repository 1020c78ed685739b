"""
JWT Token Handler

Issues and validates the bearer credentials used by both HTTP calls and
WebSocket handshakes. Uses python-jose for JWT operations.
"""
import logging
from typing import Dict, Any
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone

from teamchat.config import settings
from teamchat.exceptions import AuthenticationError
from teamchat.models.user import User

logger = logging.getLogger(__name__)


class JWTValidationError(AuthenticationError):
    """Custom exception for JWT validation errors"""
    pass


class TokenExpiredError(JWTValidationError):
    """Token signature is valid but exp has passed"""

    status_code = 403


def create_access_token(user_id: int, username: str, color: str) -> str:
    """
    Sign a credential for an identity.

    The token carries the identity id (sub), username and color and
    expires TOKEN_EXPIRE_HOURS after issue. There is no revocation list.

    Args:
        user_id: Identity id
        username: Identity username
        color: Display color

    Returns:
        Encoded JWT string
    """
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "color": color,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(hours=settings.TOKEN_EXPIRE_HOURS)).timestamp()),
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    logger.debug(f"Issued token for user {username} ({user_id})")
    return token


def decode_jwt_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string from Authorization header or handshake

    Returns:
        Decoded JWT payload as dictionary

    Raises:
        TokenExpiredError: If the token has expired
        JWTValidationError: If token is invalid or malformed
    """
    if not token:
        raise JWTValidationError("Token is required")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={
                "verify_signature": True,
                "verify_exp": True,
            }
        )
        logger.debug(f"JWT token decoded successfully for user: {payload.get('sub')}")
        return payload

    except jwt.ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise TokenExpiredError("Token has expired")

    except jwt.JWTClaimsError as e:
        logger.warning(f"JWT claims error: {e}")
        raise JWTValidationError("Invalid token claims")

    except JWTError as e:
        logger.warning(f"JWT validation error: {e}")
        raise JWTValidationError("Invalid token")


def extract_user_from_token(token: str) -> User:
    """
    Extract identity claims from a JWT token.

    Args:
        token: JWT token string

    Returns:
        User object populated with token claims

    Raises:
        JWTValidationError: If token is invalid or claims are incomplete
    """
    payload = decode_jwt_token(token)

    subject = payload.get("sub")
    username = payload.get("username")

    if not subject or not str(subject).isdigit():
        raise JWTValidationError("User ID (sub) not found in token")

    if not username:
        raise JWTValidationError("Username not found in token")

    return User(
        id=int(subject),
        username=username,
        color=payload.get("color", ""),
        exp=payload.get("exp"),
        iat=payload.get("iat"),
    )
