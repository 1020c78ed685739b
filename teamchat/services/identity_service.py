"""
Identity Service

Registration, login and credential verification.
"""
import asyncio
import logging
import random
from typing import Optional

from teamchat.auth.jwt_handler import create_access_token, extract_user_from_token
from teamchat.auth.passwords import MAX_PASSWORD_BYTES, hash_password, password_too_long, verify_password
from teamchat.config import settings
from teamchat.database import Database, db as default_db
from teamchat.exceptions import ValidationError
from teamchat.models.user import LoginResponse, User

logger = logging.getLogger(__name__)


class IdentityService:
    """Service for identities and their bearer credentials"""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or default_db

    async def register(self, username: Optional[str], password: Optional[str]) -> int:
        """
        Create a new identity with a random display color.

        Args:
            username: Desired unique username
            password: Plain-text password (hashed with bcrypt)

        Returns:
            Id of the new identity

        Raises:
            ValidationError: If username or password is missing, or the
                password is longer than bcrypt accepts
            ConflictError: If the username is taken
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password required")
        if password_too_long(password):
            raise ValidationError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")

        # bcrypt is CPU bound; keep it off the event loop
        password_hash = await asyncio.to_thread(hash_password, password)
        color = random.choice(settings.USER_COLORS)

        user_id = await self.db.create_user(username, password_hash, color)
        logger.info(f"Registered user {username} ({user_id})")
        return user_id

    async def authenticate(self, username: Optional[str], password: Optional[str]) -> LoginResponse:
        """
        Check a username/password pair and issue a 24h credential.

        Raises:
            ValidationError: If the pair does not match an identity
        """
        if not username or not password:
            raise ValidationError("Invalid credentials")

        row = await self.db.get_user_credentials(username.strip())
        if not row:
            raise ValidationError("Invalid credentials")

        valid = await asyncio.to_thread(verify_password, password, row["password"])
        if not valid:
            logger.warning(f"Failed login for user {username}")
            raise ValidationError("Invalid credentials")

        token = create_access_token(row["id"], row["username"], row["color"])
        logger.info(f"User {row['username']} ({row['id']}) logged in")
        return LoginResponse(
            token=token,
            user={"id": row["id"], "username": row["username"], "color": row["color"]},
        )

    def verify(self, token: str) -> User:
        """Validate a credential and return its claims."""
        return extract_user_from_token(token)
