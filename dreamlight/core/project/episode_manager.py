"""Episode Manager: episodes of Series projects."""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import EpisodeStatus, ProjectType
from ..db import DatabaseManager
from ..db.models import Episode, Milestone, Project
from ..exceptions import NotFoundError, ValidationError
from ..serializers import (
    episode_to_dict,
    milestone_summary,
    milestone_to_dict,
    project_to_dict,
)
from ..utils.helpers import parse_uuid
from .progress import get_progress_stats

logger = logging.getLogger(__name__)


class EpisodeManager:
    """CRUD for episodes; numbers are unique within a project."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def list_episodes(self, project_id: Optional[str], user: Optional[Dict] = None) -> Dict:
        if not project_id:
            raise ValidationError("project_id is required")

        with self.db.get_session() as session:
            if user is not None:
                RBACService(session).require_project_access(user, project_id)

            episodes = session.query(Episode).options(
                selectinload(Episode.project),
                selectinload(Episode.milestones),
            ).filter(
                Episode.project_id == parse_uuid(project_id, "Project")
            ).order_by(Episode.episode_number.asc()).all()

            data = []
            for episode in episodes:
                item = episode_to_dict(episode)
                item["project"] = {
                    "id": str(episode.project.project_id),
                    "title": episode.project.title,
                    "type": episode.project.type,
                }
                item["milestones"] = [milestone_summary(m) for m in episode.milestones]
                data.append(item)
            return {"count": len(data), "data": data}

    def get_episode(self, episode_id: str, user: Optional[Dict] = None) -> Dict:
        """Episode with its project, tasks and ``progress_stats``."""
        with self.db.get_session() as session:
            episode = self._get_or_404(session, episode_id)
            if user is not None:
                RBACService(session).require_project_access(user, episode.project_id)

            milestones = session.query(Milestone).filter(
                Milestone.episode_id == episode.episode_id
            ).order_by(Milestone.created_at.desc()).all()

            data = episode_to_dict(episode)
            data["project"] = project_to_dict(episode.project)
            data["milestones"] = [milestone_to_dict(m, with_relations=True) for m in milestones]
            data["progress_stats"] = get_progress_stats(session, episode_id=episode.episode_id)
            return data

    def create_episode(self, fields: Dict, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            project = session.query(Project).filter(
                Project.project_id == parse_uuid(fields.get("project_id"), "Project")
            ).first()
            if not project:
                raise NotFoundError.for_entity("Project")

            if user is not None:
                RBACService(session).require_producer_access(user, project.project_id)

            if project.type != ProjectType.SERIES:
                raise ValidationError("Episodes can only be created for Series type projects")

            number = fields["episode_number"]
            if self._number_taken(session, project.project_id, number):
                raise ValidationError("Episode number already exists for this project")

            episode = Episode(
                project_id=project.project_id,
                producer_id=project.producer_id,
                producer_name=project.producer_name,
                title=fields["title"],
                episode_number=number,
                status=fields.get("status") or EpisodeStatus.SCRIPTING.value,
                synopsis=fields.get("synopsis"),
                airing_date=fields.get("airing_date"),
            )
            session.add(episode)
            session.flush()

            logger.info(f"Created episode {number} for project {project.project_id}")
            return episode_to_dict(episode)

    def update_episode(self, episode_id: str, updates: Dict, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            episode = self._get_or_404(session, episode_id)
            if user is not None:
                RBACService(session).require_producer_access(user, episode.project_id)

            number = updates.get("episode_number")
            if number and number != episode.episode_number:
                if self._number_taken(session, episode.project_id, number, exclude=episode.episode_id):
                    raise ValidationError("Episode number already exists for this project")
                episode.episode_number = number

            if updates.get("title"):
                episode.title = updates["title"]
            if updates.get("status"):
                episode.status = updates["status"]
            # nullable fields: explicit null clears
            for field in ("synopsis", "airing_date"):
                if field in updates:
                    setattr(episode, field, updates[field])

            session.flush()
            return episode_to_dict(episode)

    def delete_episode(self, episode_id: str, user: Optional[Dict] = None) -> bool:
        with self.db.get_session() as session:
            episode = self._get_or_404(session, episode_id)
            if user is not None:
                RBACService(session).require_producer_access(user, episode.project_id)
            session.delete(episode)
            logger.info(f"Deleted episode {episode_id}")
            return True

    @staticmethod
    def _get_or_404(session: Session, episode_id) -> Episode:
        episode = session.query(Episode).filter(
            Episode.episode_id == parse_uuid(episode_id, "Episode")
        ).first()
        if not episode:
            raise NotFoundError.for_entity("Episode")
        return episode

    @staticmethod
    def _number_taken(session: Session, project_id, number: int, exclude=None) -> bool:
        query = session.query(Episode.episode_id).filter(
            Episode.project_id == project_id,
            Episode.episode_number == number,
        )
        if exclude is not None:
            query = query.filter(Episode.episode_id != exclude)
        return query.first() is not None
