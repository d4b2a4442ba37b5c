"""Dashboard routes, one per role plus a dispatcher on the caller's role."""

import logging

from fastapi import APIRouter, Depends

from ...core.constants import Role
from ..core import paged_response, success_response
from ..deps import get_current_user, get_dashboard_service, require_admin, require_manager, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
async def my_dashboard(
    view: str | None = None,
    user: dict = Depends(get_current_user),
    ds=Depends(get_dashboard_service),
):
    """Dashboard for whatever role the caller has."""
    result = ds.get_dashboard(user, view)
    if user["role"] == Role.BROADCASTER:
        return paged_response(result)
    return success_response(result)


@router.get("/admin")
async def admin_dashboard(user: dict = Depends(require_admin), ds=Depends(get_dashboard_service)):
    return success_response(ds.admin())


@router.get("/producer")
async def producer_dashboard(user: dict = Depends(require_roles("producer")), ds=Depends(get_dashboard_service)):
    return success_response(ds.producer(user["id"]))


@router.get("/producer/crew")
async def producer_crew(
    page: int = 1,
    limit: int = 10,
    user: dict = Depends(require_manager),
    ds=Depends(get_dashboard_service),
):
    """Crew assignments across the producer's projects, paginated."""
    return paged_response(ds.producer_crew(user, page, limit))


@router.get("/crew")
async def crew_dashboard(
    view: str | None = None,
    user: dict = Depends(require_roles("crew")),
    ds=Depends(get_dashboard_service),
):
    return success_response(ds.crew(user["id"], view))


@router.get("/broadcaster")
async def broadcaster_dashboard(user: dict = Depends(require_roles("broadcaster")), ds=Depends(get_dashboard_service)):
    return paged_response(ds.broadcaster(user["id"]))


@router.get("/investor")
async def investor_dashboard(user: dict = Depends(require_roles("investor")), ds=Depends(get_dashboard_service)):
    return success_response(ds.investor(user["id"]))
