"""
Auth API Endpoints

Registration and login. These are the only calls that do not need a
bearer credential.
"""
from fastapi import APIRouter
import logging

from teamchat.models.user import CredentialsRequest, RegisterResponse, LoginResponse
from teamchat.services import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", response_model=RegisterResponse)
async def register(body: CredentialsRequest):
    """
    Create an identity.

    Returns 400 when a field is missing or the username is taken.
    """
    user_id = await get_services().identities.register(body.username, body.password)
    return RegisterResponse(success=True, userId=user_id)


@router.post("/login", response_model=LoginResponse)
async def login(body: CredentialsRequest):
    """
    Exchange username/password for a 24h bearer credential.

    **Example Response:**
    ```json
    {
        "token": "eyJhbGciOiJIUzI1NiIs...",
        "user": {"id": 1, "username": "alice", "color": "#3b82f6"}
    }
    ```
    """
    return await get_services().identities.authenticate(body.username, body.password)
