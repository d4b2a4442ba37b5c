"""User administration routes (admin only)."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from ...core.constants import Role
from ..core import paged_response, success_response
from ..deps import get_crew_manager, get_user_manager, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None


@router.get("")
async def list_users(
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    admin: dict = Depends(require_admin),
    um=Depends(get_user_manager),
):
    """Paginated user list, filterable by role and name/email substring."""
    return paged_response(um.list_users(role=role, search=search, page=page, limit=limit))


@router.get("/{user_id}")
async def get_user(user_id: str, admin: dict = Depends(require_admin), um=Depends(get_user_manager)):
    return success_response(um.get_user(user_id))


@router.get("/{user_id}/stats")
async def get_user_stats(user_id: str, admin: dict = Depends(require_admin), um=Depends(get_user_manager)):
    return success_response(um.get_user_stats(user_id))


@router.get("/{user_id}/projects")
async def get_crew_projects(user_id: str, admin: dict = Depends(require_admin), cm=Depends(get_crew_manager)):
    """Projects a crew member is assigned to (not yet completed)."""
    return paged_response(cm.get_crew_projects(user_id))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin: dict = Depends(require_admin),
    um=Depends(get_user_manager),
):
    updates = data.model_dump(exclude_unset=True, mode="json")
    return success_response(um.update_user(user_id, updates), "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(user_id: str, admin: dict = Depends(require_admin), um=Depends(get_user_manager)):
    um.delete_user(user_id, current_user_id=admin["id"])
    return success_response(message="User deleted successfully")
