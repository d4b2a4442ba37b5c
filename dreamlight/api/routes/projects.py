"""Project management API routes (FastAPI).

Provides role-scoped listing, detail with progress stats, CRUD, and the
broadcaster/investor portfolio views.
"""

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator

from ...core.constants import ProjectStatus, ProjectType
from ..core import paged_response, success_response
from ..deps import (
    get_current_user,
    get_finance_manager,
    get_project_manager,
    require_admin,
    require_manager,
    require_roles,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# ── Request models ───────────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    type: ProjectType
    client_id: str | None = None
    investor_id: str | None = None
    producer_id: str | None = None
    total_budget_plan: Decimal = Field(ge=0)
    target_income: Decimal = Field(ge=0)
    start_date: date
    deadline_date: date
    description: str | None = None

    @model_validator(mode="after")
    def _deadline_after_start(self):
        if self.deadline_date < self.start_date:
            raise ValueError("Deadline must be after start date")
        return self


class ProjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    type: ProjectType | None = None
    client_id: str | None = None
    investor_id: str | None = None
    producer_id: str | None = None
    total_budget_plan: Decimal | None = Field(default=None, ge=0)
    target_income: Decimal | None = Field(default=None, ge=0)
    start_date: date | None = None
    deadline_date: date | None = None
    description: str | None = None
    global_status: ProjectStatus | None = None


def _enum_values(fields: dict) -> dict:
    return {k: getattr(v, "value", v) for k, v in fields.items()}


# ── Role-specific views (declared before /{project_id}) ──────────────────

@router.get("/broadcaster/my-projects")
async def broadcaster_projects(
    user: dict = Depends(require_roles("broadcaster")),
    pm=Depends(get_project_manager),
):
    """The client's active projects with per-phase progress."""
    return paged_response(pm.get_broadcaster_projects(user["id"]))


@router.get("/investor/my-investments")
async def investor_projects(
    user: dict = Depends(require_roles("investor")),
    fm=Depends(get_finance_manager),
):
    return success_response(fm.get_investor_summary(user["id"]))


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def list_projects(
    status: str | None = None,
    type: str | None = None,
    client_id: str | None = None,
    investor_id: str | None = None,
    page: int = 1,
    limit: int = 10,
    user: dict = Depends(get_current_user),
    pm=Depends(get_project_manager),
):
    """List the projects the current user's role gives access to."""
    result = pm.list_projects(
        user,
        status=status,
        type=type,
        client_id=client_id,
        investor_id=investor_id,
        page=page,
        limit=limit,
    )
    return paged_response(result)


@router.post("", status_code=201)
async def create_project(
    data: ProjectCreate,
    user: dict = Depends(require_manager),
    pm=Depends(get_project_manager),
):
    project = pm.create_project(_enum_values(data.model_dump()))
    logger.info(f"{user['email']} created project {project['id']}")
    return success_response(project, "Project created successfully")


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    pm=Depends(get_project_manager),
):
    """Project detail with episodes, tasks, finances, assets and progress."""
    return success_response(pm.get_project(project_id, user))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: dict = Depends(require_manager),
    pm=Depends(get_project_manager),
):
    updates = _enum_values(data.model_dump(exclude_unset=True))
    return success_response(pm.update_project(project_id, updates, user), "Project updated successfully")


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: dict = Depends(require_admin),
    pm=Depends(get_project_manager),
):
    """Delete a project and all associated data."""
    pm.delete_project(project_id)
    return success_response(message="Project deleted successfully")
