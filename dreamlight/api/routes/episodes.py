"""Episode routes."""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core.constants import EpisodeStatus
from ..core import paged_response, success_response
from ..deps import get_current_user, get_episode_manager, require_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/episodes", tags=["episodes"])


class EpisodeCreate(BaseModel):
    project_id: str
    title: str = Field(min_length=1, max_length=255)
    episode_number: int = Field(ge=1)
    status: EpisodeStatus = EpisodeStatus.SCRIPTING
    synopsis: str | None = None
    airing_date: date | None = None


class EpisodeUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    episode_number: int | None = Field(default=None, ge=1)
    status: EpisodeStatus | None = None
    synopsis: str | None = None
    airing_date: date | None = None


@router.get("")
async def list_episodes(
    project_id: str | None = None,
    user: dict = Depends(get_current_user),
    em=Depends(get_episode_manager),
):
    """Episodes of one project, by number."""
    return paged_response(em.list_episodes(project_id, user))


@router.get("/{episode_id}")
async def get_episode(episode_id: str, user: dict = Depends(get_current_user), em=Depends(get_episode_manager)):
    return success_response(em.get_episode(episode_id, user))


@router.post("", status_code=201)
async def create_episode(
    data: EpisodeCreate,
    user: dict = Depends(require_manager),
    em=Depends(get_episode_manager),
):
    fields = data.model_dump()
    fields["status"] = data.status.value
    return success_response(em.create_episode(fields, user), "Episode created successfully")


@router.put("/{episode_id}")
async def update_episode(
    episode_id: str,
    data: EpisodeUpdate,
    user: dict = Depends(require_manager),
    em=Depends(get_episode_manager),
):
    updates = data.model_dump(exclude_unset=True)
    if data.status is not None:
        updates["status"] = data.status.value
    return success_response(em.update_episode(episode_id, updates, user), "Episode updated successfully")


@router.delete("/{episode_id}")
async def delete_episode(episode_id: str, user: dict = Depends(require_manager), em=Depends(get_episode_manager)):
    em.delete_episode(episode_id, user)
    return success_response(message="Episode deleted successfully")
