"""
User Models

Identity records, request bodies for register/login, and the claims model
populated from a verified credential.
"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from enum import Enum

from teamchat.policy import is_admin


class UserStatus(str, Enum):
    """Cached presence status persisted on the identity row"""
    ONLINE = "online"
    OFFLINE = "offline"


class User(BaseModel):
    """
    Identity claims populated from a verified JWT.

    Every live connection and every authenticated call carries exactly one
    of these.
    """

    id: int = Field(..., description="Identity id (sub claim)")
    username: str = Field(..., description="Unique username")
    color: str = Field("", description="Display color")

    # Token metadata
    exp: Optional[int] = Field(None, description="Token expiration timestamp")
    iat: Optional[int] = Field(None, description="Token issued at timestamp")

    class Config:
        """Pydantic configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "username": "alice",
                "color": "#3b82f6",
                "exp": 1735689600,
                "iat": 1735603200
            }
        }

    @property
    def is_admin(self) -> bool:
        return is_admin(self.username)

    @property
    def is_token_expired(self) -> bool:
        """Check if the token is expired"""
        if not self.exp:
            return True
        return datetime.now(timezone.utc).timestamp() > self.exp

    def public(self) -> dict:
        return {"id": self.id, "username": self.username, "color": self.color}


class Identity(BaseModel):
    """Persisted identity as exposed to clients (never the password hash)"""
    id: int
    username: str
    color: str
    status: UserStatus = UserStatus.OFFLINE

    class Config:
        from_attributes = True


class CredentialsRequest(BaseModel):
    """Body of /api/register and /api/login"""
    username: Optional[str] = Field(None, description="Unique username")
    password: Optional[str] = Field(None, description="Plain-text password")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice",
                "password": "correct horse battery staple"
            }
        }


class RegisterResponse(BaseModel):
    success: bool = True
    userId: int = Field(..., description="Id of the created identity")


class LoginResponse(BaseModel):
    token: str = Field(..., description="Bearer credential, valid for 24h")
    user: dict = Field(..., description="id, username and color of the identity")
