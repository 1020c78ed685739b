"""
Admin API Endpoints

Stats plus user and channel maintenance. Only identities whose username
contains "admin" may call these; everyone else gets 403 and nothing changes.
"""
from fastapi import APIRouter, Depends
from typing import List
import logging

from teamchat.auth.dependencies import require_admin
from teamchat.models.user import Identity, User
from teamchat.models.channel import Channel
from teamchat.services import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
async def get_stats(admin: User = Depends(require_admin)):
    """
    Counts of users, channels (by kind), messages, online users and live
    connections.
    """
    return await get_services().admin.get_stats(admin)


@router.get("/users", response_model=List[Identity])
async def list_users(admin: User = Depends(require_admin)):
    return await get_services().admin.list_users(admin)


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, admin: User = Depends(require_admin)):
    """Delete a user and their messages; clients receive `user_deleted`."""
    await get_services().admin.delete_user(admin, user_id)
    return {"success": True}


@router.get("/channels", response_model=List[Channel])
async def list_channels(admin: User = Depends(require_admin)):
    return await get_services().admin.list_channels(admin)


@router.delete("/channels/{channel_id}")
async def delete_channel(channel_id: int, admin: User = Depends(require_admin)):
    """Delete a channel and its messages; clients receive `channel_deleted`."""
    await get_services().admin.delete_channel(admin, channel_id)
    return {"success": True}
