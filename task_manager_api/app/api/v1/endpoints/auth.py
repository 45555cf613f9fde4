"""
Authentication endpoints for API v1.

Registration and login are public and return the user together with a
signed access token.  Profile and refresh require a valid bearer token.
"""

from fastapi import APIRouter, Depends, status

from task_manager_api.app.api.deps import get_auth_service
from task_manager_api.app.core.domain import User
from task_manager_api.app.core.security import get_current_user
from task_manager_api.app.schemas.auth import AuthData, TokenData
from task_manager_api.app.schemas.common import Envelope
from task_manager_api.app.schemas.user import LoginRequest, UserCreate, UserData
from task_manager_api.app.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=Envelope[AuthData], status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    service: AuthService = Depends(get_auth_service),
) -> Envelope[AuthData]:
    """Register a new user and return an access token.

    Responds with 409 ``EMAIL_ALREADY_EXISTS`` if the email is taken.
    """
    data = await service.register(user_in)
    return Envelope[AuthData](message="User created successfully", data=data)


@router.post("/login", response_model=Envelope[AuthData])
async def login(
    credentials: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> Envelope[AuthData]:
    """Authenticate with email and password."""
    data = await service.login(credentials)
    return Envelope[AuthData](message="Login successful", data=data)


@router.get("/profile", response_model=Envelope[UserData])
async def profile(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[UserData]:
    user = service.profile(current_user)
    return Envelope[UserData](message="Profile retrieved successfully", data=UserData(user=user))


@router.post("/refresh", response_model=Envelope[TokenData])
async def refresh(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[TokenData]:
    """Issue a new token for the authenticated user."""
    auth = service.refresh(current_user)
    return Envelope[TokenData](
        message="Token refreshed successfully",
        data=TokenData(token=auth.token, expires_in=auth.expires_in),
    )
