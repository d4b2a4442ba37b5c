"""Milestone (crew task) routes: CRUD, task board status and approval workflow."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core.constants import PaymentStatus, PhaseCategory, WorkStatus
from ..core import paged_response, success_response
from ..deps import get_current_user, get_milestone_manager, require_manager, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/milestones", tags=["milestones"])


# ── Request models ───────────────────────────────────────────────────────

class MilestoneCreate(BaseModel):
    project_id: str
    user_id: str
    episode_id: str | None = None
    task_name: str = Field(min_length=1, max_length=255)
    phase_category: PhaseCategory
    honor_amount: Decimal = Field(default=Decimal(0), ge=0)


class MilestoneUpdate(BaseModel):
    user_id: str | None = None
    episode_id: str | None = None
    task_name: str | None = Field(default=None, min_length=1, max_length=255)
    phase_category: PhaseCategory | None = None
    honor_amount: Decimal | None = Field(default=None, ge=0)
    work_status: WorkStatus | None = None
    payment_status: PaymentStatus | None = None


class StatusUpdate(BaseModel):
    # Checked by the manager so a missing value gets the "required" message
    work_status: str | None = None


class RejectRequest(BaseModel):
    reason: str | None = None


def _enum_values(fields: dict) -> dict:
    return {k: getattr(v, "value", v) for k, v in fields.items()}


# ── Collection views (declared before /{milestone_id}) ───────────────────

@router.get("/crew/my-tasks")
async def my_tasks(
    view: str | None = None,
    user: dict = Depends(require_roles("crew")),
    mm=Depends(get_milestone_manager),
):
    """Active tasks (or ``view=history``) with honor payment stats."""
    result = mm.get_crew_tasks(user["id"], view)
    return success_response(result["tasks"], count=len(result["tasks"]), stats=result["stats"])


@router.get("/pending-approvals")
async def pending_approvals(user: dict = Depends(require_manager), mm=Depends(get_milestone_manager)):
    return paged_response(mm.get_pending_approvals(user))


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def list_milestones(
    project_id: str | None = None,
    user_id: str | None = None,
    episode_id: str | None = None,
    work_status: str | None = None,
    payment_status: str | None = None,
    user: dict = Depends(get_current_user),
    mm=Depends(get_milestone_manager),
):
    result = mm.list_milestones(
        user,
        project_id=project_id,
        user_id=user_id,
        episode_id=episode_id,
        work_status=work_status,
        payment_status=payment_status,
    )
    return paged_response(result)


@router.get("/{milestone_id}")
async def get_milestone(milestone_id: str, user: dict = Depends(get_current_user), mm=Depends(get_milestone_manager)):
    return success_response(mm.get_milestone(milestone_id, user))


@router.post("", status_code=201)
async def create_milestone(
    data: MilestoneCreate,
    user: dict = Depends(require_manager),
    mm=Depends(get_milestone_manager),
):
    milestone = mm.create_milestone(_enum_values(data.model_dump()), user)
    return success_response(milestone, "Task created successfully")


@router.put("/{milestone_id}")
async def update_milestone(
    milestone_id: str,
    data: MilestoneUpdate,
    user: dict = Depends(require_manager),
    mm=Depends(get_milestone_manager),
):
    updates = _enum_values(data.model_dump(exclude_unset=True))
    return success_response(mm.update_milestone(milestone_id, updates, user), "Task updated successfully")


@router.patch("/{milestone_id}/status")
async def update_status(
    milestone_id: str,
    data: StatusUpdate,
    user: dict = Depends(get_current_user),
    mm=Depends(get_milestone_manager),
):
    """Move a task on the board. Crew may only move their own tasks."""
    return success_response(mm.update_status(milestone_id, data.work_status, user), "Task status updated")


@router.post("/{milestone_id}/approve")
async def approve_milestone(milestone_id: str, user: dict = Depends(require_manager), mm=Depends(get_milestone_manager)):
    return success_response(mm.approve(milestone_id, user), "Task approved")


@router.post("/{milestone_id}/reject")
async def reject_milestone(
    milestone_id: str,
    data: RejectRequest | None = None,
    user: dict = Depends(require_manager),
    mm=Depends(get_milestone_manager),
):
    """Send a task back to In Progress, optionally with a reason."""
    reason = data.reason if data else None
    return success_response(mm.reject(milestone_id, user, reason), "Task sent back for revision")


@router.delete("/{milestone_id}")
async def delete_milestone(milestone_id: str, user: dict = Depends(require_manager), mm=Depends(get_milestone_manager)):
    mm.delete_milestone(milestone_id, user)
    return success_response(message="Task deleted successfully")
