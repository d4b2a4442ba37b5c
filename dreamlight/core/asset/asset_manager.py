"""Asset Manager: project files and external links.

Assets are either uploaded files (kept on disk by ``AssetStorage``) or
external links (Drive, Dropbox, YouTube, ...). Broadcasters only ever see
assets flagged public on projects where they are the client.
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import ASSET_GROUPS, LINK_TYPE_HOSTS, LinkType, Role
from ..db import DatabaseManager
from ..db.models import Asset, Episode, Project
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..serializers import asset_to_dict
from ..utils.helpers import parse_uuid
from .storage import AssetStorage

logger = logging.getLogger(__name__)


def infer_link_type(url: str) -> str:
    host = (urlparse(url).netloc or "").lower()
    for fragment, link_type in LINK_TYPE_HOSTS:
        if fragment in host:
            return link_type
    return LinkType.OTHER.value


class AssetManager:
    """Manages asset records and their stored files."""

    def __init__(self, db_manager: DatabaseManager, storage: AssetStorage):
        self.db = db_manager
        self.storage = storage
        logger.info("AssetManager initialized")

    # =========================================================================
    # Queries
    # =========================================================================

    def list_assets(
        self,
        user: Dict,
        project_id: Optional[str] = None,
        episode_id: Optional[str] = None,
        category: Optional[str] = None,
        is_public_to_broadcaster: Optional[bool] = None,
    ) -> Dict:
        with self.db.get_session() as session:
            query = self._query(session)
            if project_id:
                query = query.filter(Asset.project_id == parse_uuid(project_id, "Project"))
            if episode_id:
                query = query.filter(Asset.episode_id == parse_uuid(episode_id, "Episode"))
            if category:
                query = query.filter(Asset.category == category)
            if is_public_to_broadcaster is not None:
                query = query.filter(Asset.is_public_to_broadcaster == is_public_to_broadcaster)

            if user["role"] != Role.ADMIN:
                visible = RBACService(session).scope_projects(
                    session.query(Project.project_id), user
                )
                query = query.filter(Asset.project_id.in_(visible))
            if user["role"] == Role.BROADCASTER:
                query = query.filter(Asset.is_public_to_broadcaster.is_(True))

            assets = query.order_by(Asset.created_at.desc()).all()
            data = [asset_to_dict(a, with_relations=True) for a in assets]
            return {"count": len(data), "data": data}

    def get_asset(self, asset_id: str, user: Dict) -> Dict:
        with self.db.get_session() as session:
            asset = self._get_or_404(session, asset_id)
            self._check_broadcaster(asset, user)
            return asset_to_dict(asset, with_relations=True)

    def get_broadcaster_files(self, user_id: str) -> Dict:
        """Public assets of the client's projects, also grouped by category."""
        with self.db.get_session() as session:
            client_projects = session.query(Project.project_id).filter(
                Project.client_id == parse_uuid(user_id, "User")
            )
            assets = self._query(session).filter(
                Asset.project_id.in_(client_projects),
                Asset.is_public_to_broadcaster.is_(True),
            ).order_by(Asset.created_at.desc()).all()

            data = [asset_to_dict(a, with_relations=True) for a in assets]
            grouped = {
                key: [item for item in data if item["category"] == category]
                for key, category in ASSET_GROUPS.items()
            }
            return {"count": len(data), "data": data, "grouped": grouped}

    def get_download(self, asset_id: str, user: Dict) -> Dict:
        """Resolve what to send back for a download request.

        External assets resolve to their URL. For stored files the path
        must still exist on disk.
        """
        with self.db.get_session() as session:
            asset = self._get_or_404(session, asset_id)
            self._check_broadcaster(asset, user)

            if asset.is_external:
                return {"external_url": asset.external_url}

            if not self.storage.exists(asset.file_path):
                raise NotFoundError("File not found on server")

            return {
                "file_path": asset.file_path,
                "file_name": asset.file_name,
                "file_type": asset.file_type or "application/octet-stream",
            }

    # =========================================================================
    # Mutations
    # =========================================================================

    def upload_asset(
        self,
        user: Dict,
        project_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        category: Optional[str] = None,
        episode_id: Optional[str] = None,
        is_public_to_broadcaster: bool = False,
    ) -> Dict:
        """Store an uploaded file and record it.

        The stored file is removed again when the record cannot be created
        (unknown project, foreign episode, database error).
        """
        if not filename:
            raise ValidationError("Please upload a file")
        if not project_id:
            raise ValidationError("project_id is required")

        project_uuid = parse_uuid(project_id, "Project")
        stored = self.storage.save(str(project_uuid), filename, content, category)
        try:
            with self.db.get_session() as session:
                project = self._get_project(session, project_uuid, user)
                episode = self._get_episode(session, episode_id, project.project_id)

                asset = Asset(
                    project_id=project.project_id,
                    episode_id=episode.episode_id if episode else None,
                    file_name=filename,
                    file_path=stored.path,
                    file_type=content_type,
                    file_size=stored.size,
                    category=category,
                    is_public_to_broadcaster=bool(is_public_to_broadcaster),
                    is_external=False,
                    uploaded_by=UUID(user["id"]),
                )
                session.add(asset)
                session.flush()
                session.refresh(asset)

                logger.info(f"Uploaded asset {asset.asset_id} ({filename}) to project {project.project_id}")
                return asset_to_dict(asset, with_relations=True)
        except Exception:
            self.storage.delete(stored.path)
            raise

    def create_link(self, user: Dict, fields: Dict) -> Dict:
        """Record an external link as an asset."""
        url = fields.get("external_url")
        if not url:
            raise ValidationError("external_url is required")

        with self.db.get_session() as session:
            project = self._get_project(session, fields.get("project_id"), user)
            episode = self._get_episode(session, fields.get("episode_id"), project.project_id)

            asset = Asset(
                project_id=project.project_id,
                episode_id=episode.episode_id if episode else None,
                file_name=fields.get("file_name") or url,
                file_path=None,
                category=fields["category"],
                is_public_to_broadcaster=bool(fields.get("is_public_to_broadcaster")),
                is_external=True,
                external_url=url,
                link_type=fields.get("link_type") or infer_link_type(url),
                uploaded_by=UUID(user["id"]),
            )
            session.add(asset)
            session.flush()
            session.refresh(asset)

            logger.info(f"Linked external asset {asset.asset_id} ({asset.link_type})")
            return asset_to_dict(asset, with_relations=True)

    def update_asset(self, asset_id: str, updates: Dict, user: Dict) -> Dict:
        with self.db.get_session() as session:
            asset = self._get_or_404(session, asset_id)
            self._check_can_modify(session, asset, user)

            if updates.get("category"):
                asset.category = updates["category"]
            if updates.get("is_public_to_broadcaster") is not None:
                asset.is_public_to_broadcaster = bool(updates["is_public_to_broadcaster"])

            session.flush()
            return asset_to_dict(asset)

    def delete_asset(self, asset_id: str, user: Dict) -> bool:
        with self.db.get_session() as session:
            asset = self._get_or_404(session, asset_id)
            self._check_can_modify(session, asset, user)

            if not asset.is_external:
                self.storage.delete(asset.file_path)
            session.delete(asset)
            logger.info(f"Deleted asset {asset_id}")
            return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _query(session: Session):
        return session.query(Asset).options(
            selectinload(Asset.project),
            selectinload(Asset.episode),
            selectinload(Asset.uploader),
        )

    @staticmethod
    def _get_or_404(session: Session, asset_id) -> Asset:
        asset = session.query(Asset).filter(
            Asset.asset_id == parse_uuid(asset_id, "Asset")
        ).first()
        if not asset:
            raise NotFoundError.for_entity("Asset")
        return asset

    @staticmethod
    def _get_project(session: Session, project_id, user: Dict) -> Project:
        project = session.query(Project).filter(
            Project.project_id == parse_uuid(project_id, "Project")
        ).first()
        if not project:
            raise NotFoundError.for_entity("Project")
        RBACService(session).require_producer_access(user, project.project_id)
        return project

    @staticmethod
    def _get_episode(session: Session, episode_id, project_id) -> Optional[Episode]:
        if not episode_id:
            return None
        try:
            episode_uuid = parse_uuid(episode_id, "Episode")
        except NotFoundError:
            raise NotFoundError("Episode not found or does not belong to this project")
        episode = session.query(Episode).filter(
            Episode.episode_id == episode_uuid,
            Episode.project_id == project_id,
        ).first()
        if not episode:
            raise NotFoundError("Episode not found or does not belong to this project")
        return episode

    @staticmethod
    def _check_broadcaster(asset: Asset, user: Dict) -> None:
        if user["role"] != Role.BROADCASTER:
            return
        if asset.project.client_id != UUID(user["id"]) or not asset.is_public_to_broadcaster:
            raise AuthorizationError("You do not have access to this file")

    @staticmethod
    def _check_can_modify(session: Session, asset: Asset, user: Dict) -> None:
        """Admin, the project's producer, or the uploader."""
        if asset.uploaded_by == UUID(user["id"]):
            return
        allowed, _ = RBACService(session).check_producer_access(user, asset.project_id)
        if not allowed:
            raise AuthorizationError("Not authorized to modify this asset")
