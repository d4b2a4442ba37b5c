"""FastAPI authentication routes.

Provides endpoints for login, registration (admin), logout, current
user, profile and password changes, plus admin user aliases.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from ...core.auth import AuthService
from ...core.constants import Role
from ...core.serializers import user_to_dict
from ..core import paged_response, success_response
from ..deps import get_current_user, get_db_manager, get_settings_dep, get_user_manager, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request models ───────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.CREW


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None


class PasswordChangeRequest(BaseModel):
    current_password: str | None = None
    new_password: str | None = None


class AdminUserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None


# ── Routes ───────────────────────────────────────────────────────────────

@router.post("/login")
async def login(
    data: LoginRequest,
    db_manager=Depends(get_db_manager),
    settings=Depends(get_settings_dep),
):
    """Authenticate with email and password; returns a bearer token."""
    with db_manager.get_session() as db_session:
        user = AuthService(db_session).login(data.email, data.password)
        return success_response(
            AuthService.build_login_payload(user, settings),
            "Login successful",
        )


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    admin: dict = Depends(require_admin),
    db_manager=Depends(get_db_manager),
    settings=Depends(get_settings_dep),
):
    """Create an account (admin only)."""
    with db_manager.get_session() as db_session:
        user = AuthService(db_session).register(data.name, data.email, data.password, data.role.value)
        logger.info(f"Admin {admin['email']} registered {user.email}")
        return success_response(AuthService.build_login_payload(user, settings), "User registered successfully")


@router.post("/logout")
async def logout(user: dict = Depends(get_current_user)):
    """Tokens are stateless; the client simply discards its token."""
    return success_response(message="Logged out successfully")


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return success_response(user)


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    user: dict = Depends(get_current_user),
    db_manager=Depends(get_db_manager),
):
    with db_manager.get_session() as db_session:
        updated = AuthService(db_session).update_profile(user["id"], name=data.name, email=data.email)
        return success_response(user_to_dict(updated), "Profile updated successfully")


@router.put("/update-password")
async def update_password(
    data: PasswordChangeRequest,
    user: dict = Depends(get_current_user),
    db_manager=Depends(get_db_manager),
):
    with db_manager.get_session() as db_session:
        AuthService(db_session).change_password(user["id"], data.current_password, data.new_password)
    return success_response(message="Password updated successfully")


# ── Admin user aliases ───────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    admin: dict = Depends(require_admin),
    um=Depends(get_user_manager),
):
    return paged_response(um.list_users(role=role, search=search, page=page, limit=limit))


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    data: AdminUserUpdate,
    admin: dict = Depends(require_admin),
    um=Depends(get_user_manager),
):
    updates = data.model_dump(exclude_unset=True, mode="json")
    return success_response(um.update_user(user_id, updates), "User updated successfully")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    um=Depends(get_user_manager),
):
    um.delete_user(user_id, current_user_id=admin["id"])
    return success_response(message="User deleted successfully")
