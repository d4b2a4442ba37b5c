"""Crew assignment routes, nested under a project."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core import paged_response, success_response
from ..deps import get_crew_manager, get_current_user, require_admin, require_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects/{project_id}/crew", tags=["project-crew"])


class CrewAssign(BaseModel):
    user_id: str | None = None
    role_in_project: str | None = None


class CrewBulkAssign(BaseModel):
    user_ids: list[str] | None = None


class CrewRoleUpdate(BaseModel):
    role_in_project: str | None = None


@router.get("")
async def list_project_crew(project_id: str, user: dict = Depends(require_manager), cm=Depends(get_crew_manager)):
    return paged_response(cm.list_project_crew(project_id, user))


@router.get("/available")
async def available_crew(project_id: str, user: dict = Depends(require_admin), cm=Depends(get_crew_manager)):
    """Crew users not yet on this project."""
    return paged_response(cm.get_available_crew(project_id))


@router.get("/check/{user_id}")
async def check_assignment(
    project_id: str,
    user_id: str,
    user: dict = Depends(get_current_user),
    cm=Depends(get_crew_manager),
):
    return success_response(cm.check_assignment(project_id, user_id))


@router.post("", status_code=201)
async def assign_crew(
    project_id: str,
    data: CrewAssign,
    user: dict = Depends(require_admin),
    cm=Depends(get_crew_manager),
):
    result = cm.assign_crew(project_id, data.user_id, user["id"], data.role_in_project)
    return success_response(result["data"], result["message"])


@router.post("/bulk", status_code=201)
async def bulk_assign_crew(
    project_id: str,
    data: CrewBulkAssign,
    user: dict = Depends(require_admin),
    cm=Depends(get_crew_manager),
):
    result = cm.bulk_assign_crew(project_id, data.user_ids, user["id"])
    return success_response(result["data"], result["message"])


@router.put("/{user_id}")
async def update_assignment(
    project_id: str,
    user_id: str,
    data: CrewRoleUpdate,
    user: dict = Depends(require_admin),
    cm=Depends(get_crew_manager),
):
    return success_response(
        cm.update_assignment(project_id, user_id, data.role_in_project),
        "Crew assignment updated",
    )


@router.delete("/{user_id}")
async def remove_crew(
    project_id: str,
    user_id: str,
    user: dict = Depends(require_admin),
    cm=Depends(get_crew_manager),
):
    return success_response(message=cm.remove_crew(project_id, user_id))
