"""Project Manager for Dreamlight.

CRUD for production projects plus the role-scoped listings used by
broadcasters and the project detail view (with per-phase progress).
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_INVESTOR_NAME,
    FINISHED_STATUS,
    ProjectStatus,
    Role,
)
from ..db import DatabaseManager
from ..db.models import Asset, Milestone, Project, User
from ..exceptions import DreamlightError, NotFoundError, ValidationError
from ..serializers import (
    asset_to_dict,
    episode_summary,
    episode_to_dict,
    finance_to_dict,
    milestone_summary,
    milestone_to_dict,
    project_to_dict,
    user_summary,
)
from ..utils.helpers import paginate, parse_uuid, total_pages
from .progress import get_progress_stats

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = (
    "title",
    "type",
    "total_budget_plan",
    "target_income",
    "start_date",
    "deadline_date",
    "description",
    "global_status",
)


class ProjectManager:
    """Manages projects with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("ProjectManager initialized")

    # =========================================================================
    # Listing
    # =========================================================================

    def list_projects(
        self,
        user: Dict,
        status: Optional[str] = None,
        type: Optional[str] = None,
        client_id: Optional[str] = None,
        investor_id: Optional[str] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = 10,
    ) -> Dict:
        """List projects visible to ``user``, newest first."""
        page_num, limit_num, offset = paginate(page, limit)

        with self.db.get_session() as session:
            query = session.query(Project)
            if status:
                query = query.filter(Project.global_status == status)
            if type:
                query = query.filter(Project.type == type)
            if client_id:
                query = query.filter(Project.client_id == parse_uuid(client_id, "Client"))
            if investor_id:
                query = query.filter(Project.investor_id == parse_uuid(investor_id, "Investor"))

            query = RBACService(session).scope_projects(query, user)

            count = query.count()
            projects = query.options(
                selectinload(Project.client),
                selectinload(Project.investor),
                selectinload(Project.producer),
                selectinload(Project.episodes),
                selectinload(Project.milestones),
            ).order_by(Project.created_at.desc()).offset(offset).limit(limit_num).all()

            data = []
            for project in projects:
                item = project_to_dict(project)
                item["client"] = user_summary(project.client)
                item["investor"] = user_summary(project.investor)
                item["producer"] = user_summary(project.producer)
                item["episodes"] = [episode_summary(e) for e in project.episodes]
                item["milestones"] = [milestone_summary(m) for m in project.milestones]
                data.append(item)

            return {
                "count": len(data),
                "total": count,
                "page": page_num,
                "totalPages": total_pages(count, limit_num),
                "data": data,
            }

    # =========================================================================
    # Project CRUD
    # =========================================================================

    def get_project(self, project_id: str, user: Optional[Dict] = None) -> Dict:
        """Full project detail with relations and ``progress_stats``."""
        with self.db.get_session() as session:
            if user is not None:
                RBACService(session).require_project_access(user, project_id)

            project = self._get_or_404(session, project_id)

            data = project_to_dict(project)
            data["client"] = user_summary(project.client, with_role=True)
            data["investor"] = user_summary(project.investor, with_role=True)
            data["producer"] = user_summary(project.producer, with_role=True)
            data["episodes"] = [episode_to_dict(e) for e in project.episodes]

            milestones = session.query(Milestone).filter(
                Milestone.project_id == project.project_id
            ).order_by(Milestone.created_at.desc()).all()
            data["milestones"] = [milestone_to_dict(m, with_relations=True) for m in milestones]

            finances = sorted(project.finances, key=lambda f: f.transaction_date, reverse=True)
            data["finances"] = [finance_to_dict(f) for f in finances]

            assets = session.query(Asset).filter(
                Asset.project_id == project.project_id
            ).order_by(Asset.created_at.desc()).all()
            data["assets"] = [asset_to_dict(a, with_relations=True) for a in assets]

            data["progress_stats"] = get_progress_stats(session, project_id=project.project_id)
            return data

    def create_project(self, fields: Dict) -> Dict:
        """Create a project in ``Draft`` status.

        Client and investor names fall back to the internal placeholders
        when no (known) user is linked. A linked producer must actually
        hold the producer role.
        """
        try:
            with self.db.get_session() as session:
                client_id = fields.get("client_id")
                investor_id = fields.get("investor_id")
                producer_id = fields.get("producer_id")

                client = self._find_user(session, client_id)
                investor = self._find_user(session, investor_id)
                producer = self._find_user(session, producer_id)
                if producer and producer.role != Role.PRODUCER:
                    raise ValidationError("Selected user is not a producer")

                project = Project(
                    title=fields["title"],
                    type=fields["type"],
                    client_id=client.user_id if client else None,
                    client_name=client.name if client else DEFAULT_CLIENT_NAME,
                    investor_id=investor.user_id if investor else None,
                    investor_name=investor.name if investor else DEFAULT_INVESTOR_NAME,
                    producer_id=producer.user_id if producer else None,
                    producer_name=producer.name if producer else None,
                    total_budget_plan=fields.get("total_budget_plan") or 0,
                    target_income=fields.get("target_income") or 0,
                    start_date=fields["start_date"],
                    deadline_date=fields["deadline_date"],
                    description=fields.get("description"),
                    global_status=ProjectStatus.DRAFT.value,
                )
                session.add(project)
                session.flush()

                logger.info(f"Created project: {project.project_id} ({project.title})")
                return project_to_dict(project)

        except DreamlightError:
            raise
        except Exception as e:
            logger.error(f"Failed to create project: {e}")
            raise

    def update_project(self, project_id: str, updates: Dict, user: Optional[Dict] = None) -> Dict:
        """Partial update.

        ``updates`` only holds the fields the caller sent. For the linked
        users an explicit ``None`` clears the link and resets the name.
        """
        with self.db.get_session() as session:
            if user is not None:
                RBACService(session).require_producer_access(user, project_id)

            project = self._get_or_404(session, project_id)

            if "client_id" in updates:
                client = self._find_user(session, updates["client_id"])
                project.client_id = client.user_id if client else None
                project.client_name = client.name if client else DEFAULT_CLIENT_NAME

            if "investor_id" in updates:
                investor = self._find_user(session, updates["investor_id"])
                project.investor_id = investor.user_id if investor else None
                project.investor_name = investor.name if investor else DEFAULT_INVESTOR_NAME

            if "producer_id" in updates:
                producer = self._find_user(session, updates["producer_id"])
                if producer and producer.role != Role.PRODUCER:
                    raise ValidationError("Selected user is not a producer")
                project.producer_id = producer.user_id if producer else None
                project.producer_name = producer.name if producer else None

            for field in _MUTABLE_FIELDS:
                if field not in updates:
                    continue
                value = updates[field]
                if value is None and field != "description":
                    continue
                setattr(project, field, value)

            session.flush()
            logger.info(f"Updated project {project.project_id}")
            return project_to_dict(project)

    def delete_project(self, project_id: str) -> bool:
        """Delete a project; episodes, tasks, finances, assets and crew go with it."""
        with self.db.get_session() as session:
            project = self._get_or_404(session, project_id)
            session.delete(project)
            logger.info(f"Deleted project {project_id}")
            return True

    # =========================================================================
    # Role-specific views
    # =========================================================================

    def get_broadcaster_projects(self, user_id: str) -> Dict:
        """Client's unfinished projects with progress, latest activity first."""
        with self.db.get_session() as session:
            projects = session.query(Project).options(
                selectinload(Project.episodes),
                selectinload(Project.producer),
            ).filter(
                Project.client_id == parse_uuid(user_id, "User"),
                Project.global_status != FINISHED_STATUS,
            ).order_by(Project.updated_at.desc()).all()

            data = [
                {
                    "id": str(p.project_id),
                    "title": p.title,
                    "type": p.type,
                    "description": p.description,
                    "status": p.global_status,
                    "start_date": p.start_date.isoformat() if p.start_date else None,
                    "deadline_date": p.deadline_date.isoformat() if p.deadline_date else None,
                    "producer": user_summary(p.producer),
                    "episode_count": len(p.episodes),
                    "progress": get_progress_stats(session, project_id=p.project_id),
                    "updated_at": p.updated_at.isoformat() if p.updated_at else None,
                }
                for p in projects
            ]
            return {"count": len(data), "data": data}

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_or_404(session: Session, project_id) -> Project:
        project = session.query(Project).filter(
            Project.project_id == parse_uuid(project_id, "Project")
        ).first()
        if not project:
            raise NotFoundError.for_entity("Project")
        return project

    @staticmethod
    def _find_user(session: Session, user_id) -> Optional[User]:
        """Look up an optional linked user. Unknown ids resolve to ``None``."""
        if not user_id:
            return None
        try:
            user_uuid = parse_uuid(user_id, "User")
        except NotFoundError:
            return None
        return session.query(User).filter(User.user_id == user_uuid).first()
