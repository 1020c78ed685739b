"""
Channel Models

Pydantic models for channels and channel creation requests.
"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class ChannelKind(str, Enum):
    """Kind of a channel; immutable after creation"""
    PUBLIC = "public"
    DIRECT = "direct"
    PRIVATE = "private"


def direct_channel_name(user_a: int, user_b: int) -> str:
    """Canonical name of the direct channel between two identities."""
    low, high = sorted((int(user_a), int(user_b)))
    return f"dm_{low}_{high}"


class Channel(BaseModel):
    """Schema for channel response"""
    id: int = Field(..., description="Channel id")
    name: str = Field(..., description="Channel name")
    kind: ChannelKind = Field(..., description="public, direct or private")
    created_by: Optional[int] = Field(None, description="Identity that created the channel")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    member_ids: List[int] = Field(default_factory=list, description="Members of direct/private channels")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 3,
                "name": "dm_1_2",
                "kind": "direct",
                "created_by": 1,
                "created_at": "2025-10-10T10:00:00Z",
                "member_ids": [1, 2]
            }
        }

    @property
    def is_public(self) -> bool:
        return self.kind == ChannelKind.PUBLIC


class ChannelCreate(BaseModel):
    """Schema for creating a public or private-group channel"""
    name: Optional[str] = Field(None, max_length=80, description="Channel name")
    memberIds: Optional[List[int]] = Field(
        default=None,
        description="Other members; a non-empty list makes the channel a private group"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "name": "design-team",
                "memberIds": [2, 5]
            }
        }


class DirectChannelRequest(BaseModel):
    """Schema for getting or creating a direct channel"""
    targetId: Optional[int] = Field(None, description="The other identity")
