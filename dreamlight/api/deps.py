"""FastAPI dependencies for Dreamlight.

Provides shared dependencies (auth, database, managers) via FastAPI's
Depends() injection system. Managers live on ``app.state`` and are
created once in ``create_app``.
"""

import logging

from fastapi import Depends, HTTPException, Request

from ..core.auth import AuthService
from ..core.serializers import user_to_dict

logger = logging.getLogger(__name__)


async def get_db_manager(request: Request):
    """Get DatabaseManager from app state."""
    return request.app.state.db_manager


async def get_settings_dep(request: Request):
    """Settings the app was created with."""
    return request.app.state.settings


async def get_project_manager(request: Request):
    return request.app.state.project_manager


async def get_episode_manager(request: Request):
    return request.app.state.episode_manager


async def get_crew_manager(request: Request):
    return request.app.state.crew_manager


async def get_milestone_manager(request: Request):
    return request.app.state.milestone_manager


async def get_finance_manager(request: Request):
    return request.app.state.finance_manager


async def get_asset_manager(request: Request):
    return request.app.state.asset_manager


async def get_user_manager(request: Request):
    return request.app.state.user_manager


async def get_dashboard_service(request: Request):
    return request.app.state.dashboard_service


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(request: Request) -> dict:
    """FastAPI dependency for authentication.

    Verifies the bearer token and loads the user it names. Returns the
    user dict (``id``, ``name``, ``email``, ``role``) or raises 401.
    """
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    user_id = AuthService.decode_token(token, request.app.state.settings)

    with request.app.state.db_manager.get_session() as db_session:
        user = AuthService(db_session).get_user_by_id(user_id)
        if not user:
            raise HTTPException(status_code=401, detail="User not found")
        return user_to_dict(user)


def require_roles(*roles: str):
    """Build a dependency that only lets the given roles through (403 otherwise)."""
    allowed = {str(getattr(r, "value", r)) for r in roles}

    async def _check(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"User role '{user['role']}' is not authorized to access this route",
            )
        return user

    return _check


require_admin = require_roles("admin")
require_manager = require_roles("admin", "producer")
