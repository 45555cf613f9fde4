"""
User endpoints for API v1.

Listing all users is restricted to administrators.  Any authenticated
user may read a public profile; only the user themself or an
administrator may change or delete it.
"""

from fastapi import APIRouter, Depends

from task_manager_api.app.api.deps import get_user_service
from task_manager_api.app.core.domain import Role, User
from task_manager_api.app.core.security import get_current_user, require_roles
from task_manager_api.app.schemas.common import Envelope, MessageResponse
from task_manager_api.app.schemas.user import ChangePasswordRequest, UserData, UserList, UserUpdate
from task_manager_api.app.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=Envelope[UserList])
async def list_users(
    current_user: User = Depends(require_roles(Role.ADMIN)),
    service: UserService = Depends(get_user_service),
) -> Envelope[UserList]:
    data = service.list_users(current_user)
    return Envelope[UserList](message="Users retrieved successfully", data=data)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Change the caller's password.

    Responds with 400 ``INVALID_CURRENT_PASSWORD`` if the current
    password does not match.
    """
    await service.change_password(current_user, payload)
    return MessageResponse(message="Password changed successfully")


@router.get("/{user_id}", response_model=Envelope[UserData])
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> Envelope[UserData]:
    user = service.get_user(current_user, user_id)
    return Envelope[UserData](message="User retrieved successfully", data=UserData(user=user))


@router.put("/{user_id}", response_model=Envelope[UserData])
async def update_user(
    user_id: str,
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> Envelope[UserData]:
    """Update a user's name, email or role.

    Only administrators may change a role, and the last administrator
    cannot be demoted.
    """
    user = service.update_user(current_user, user_id, user_in)
    return Envelope[UserData](message="User updated successfully", data=UserData(user=user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete a user.  The last administrator cannot be deleted."""
    service.delete_user(current_user, user_id)
    return MessageResponse(message="User deleted successfully")
