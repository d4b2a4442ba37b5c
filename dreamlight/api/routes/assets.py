"""Asset routes: file uploads, external links and downloads.

Uploads arrive as multipart form data; the file body is read into memory
and handed to the asset manager, which validates and stores it.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, RedirectResponse
from pydantic import BaseModel, Field

from ...core.constants import AssetCategory, LinkType
from ..core import paged_response, success_response
from ..deps import get_asset_manager, get_current_user, require_manager, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


# ── Request models ───────────────────────────────────────────────────────

class LinkCreate(BaseModel):
    project_id: str
    episode_id: str | None = None
    external_url: str | None = None
    file_name: str | None = Field(default=None, max_length=255)
    category: AssetCategory
    link_type: LinkType | None = None
    is_public_to_broadcaster: bool = False


class AssetUpdate(BaseModel):
    category: AssetCategory | None = None
    is_public_to_broadcaster: bool | None = None


# ── Broadcaster view (declared before /{asset_id}) ───────────────────────

@router.get("/broadcaster/my-files")
async def broadcaster_files(
    user: dict = Depends(require_roles("broadcaster")),
    am=Depends(get_asset_manager),
):
    """Public files of the client's projects, grouped by category."""
    return paged_response(am.get_broadcaster_files(user["id"]))


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def list_assets(
    project_id: str | None = None,
    episode_id: str | None = None,
    category: str | None = None,
    is_public_to_broadcaster: bool | None = None,
    user: dict = Depends(get_current_user),
    am=Depends(get_asset_manager),
):
    result = am.list_assets(
        user,
        project_id=project_id,
        episode_id=episode_id,
        category=category,
        is_public_to_broadcaster=is_public_to_broadcaster,
    )
    return paged_response(result)


@router.post("/upload", status_code=201)
async def upload_asset(
    file: UploadFile | None = File(default=None),
    project_id: str | None = Form(default=None),
    episode_id: str | None = Form(default=None),
    category: AssetCategory = Form(...),
    is_public_to_broadcaster: bool = Form(default=False),
    user: dict = Depends(require_manager),
    am=Depends(get_asset_manager),
):
    """Upload one file (max size from settings) to a project."""
    filename = file.filename if file else None
    content = await file.read() if file else b""
    content_type = file.content_type if file else None

    asset = am.upload_asset(
        user,
        project_id=project_id,
        filename=filename,
        content=content,
        content_type=content_type,
        category=category.value,
        episode_id=episode_id,
        is_public_to_broadcaster=is_public_to_broadcaster,
    )
    return success_response(asset, "File uploaded successfully")


@router.post("/link", status_code=201)
async def create_link(data: LinkCreate, user: dict = Depends(require_manager), am=Depends(get_asset_manager)):
    """Record an external link; the link type is guessed from the host when omitted."""
    fields = {k: getattr(v, "value", v) for k, v in data.model_dump().items()}
    return success_response(am.create_link(user, fields), "Link added successfully")


@router.get("/{asset_id}")
async def get_asset(asset_id: str, user: dict = Depends(get_current_user), am=Depends(get_asset_manager)):
    return success_response(am.get_asset(asset_id, user))


@router.get("/{asset_id}/download")
async def download_asset(asset_id: str, user: dict = Depends(get_current_user), am=Depends(get_asset_manager)):
    target = am.get_download(asset_id, user)
    if "external_url" in target:
        return RedirectResponse(target["external_url"])
    return FileResponse(
        target["file_path"],
        filename=target["file_name"],
        media_type=target["file_type"],
    )


@router.put("/{asset_id}")
async def update_asset(
    asset_id: str,
    data: AssetUpdate,
    user: dict = Depends(require_manager),
    am=Depends(get_asset_manager),
):
    updates = {k: getattr(v, "value", v) for k, v in data.model_dump(exclude_unset=True).items()}
    return success_response(am.update_asset(asset_id, updates, user), "Asset updated successfully")


@router.delete("/{asset_id}")
async def delete_asset(asset_id: str, user: dict = Depends(require_manager), am=Depends(get_asset_manager)):
    am.delete_asset(asset_id, user)
    return success_response(message="Asset deleted successfully")
