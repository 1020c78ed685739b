"""
Channel API Endpoints

Visible channel listing, channel creation and direct channels.
"""
from fastapi import APIRouter, Depends
from typing import List
import logging

from teamchat.auth.dependencies import get_current_user
from teamchat.models.user import User
from teamchat.models.channel import Channel, ChannelCreate, DirectChannelRequest
from teamchat.services import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/channels", tags=["channels"])


@router.get("", response_model=List[Channel])
async def list_channels(current_user: User = Depends(get_current_user)):
    """
    List the channels visible to the caller: every public channel, direct
    channels the caller is an endpoint of, and private channels the caller
    is a member of.
    """
    return await get_services().channels.list_visible(current_user.id)


@router.post("", response_model=Channel, status_code=201)
async def create_channel(
    body: ChannelCreate,
    current_user: User = Depends(get_current_user)
):
    """
    Create a channel.

    A non-empty `memberIds` makes a private channel whose members are the
    caller plus `memberIds`; otherwise the channel is public. Connected
    clients receive a `channel_created` event.
    """
    return await get_services().channels.create_channel(current_user, body.name, body.memberIds)


@router.post("/direct", response_model=Channel)
async def get_or_create_direct(
    body: DirectChannelRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Get the direct channel shared with `targetId`, creating it on first use.

    Both endpoints always get the same channel, named `dm_<low id>_<high id>`.
    """
    return await get_services().channels.get_or_create_direct(current_user, body.targetId)
