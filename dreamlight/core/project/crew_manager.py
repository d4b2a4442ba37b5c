"""Crew assignment: which crew members work on which project."""

import logging
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import ACTIVE_WORK_STATUSES, ProjectStatus, Role
from ..db import DatabaseManager
from ..db.models import Milestone, Project, ProjectCrew, User
from ..exceptions import NotFoundError, ValidationError
from ..serializers import crew_to_dict
from ..utils.helpers import parse_uuid

logger = logging.getLogger(__name__)


class CrewManager:
    """Assigns crew users to projects.

    A (project, user) pair is assigned at most once, and only users with
    the ``crew`` role can be assigned.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    # =========================================================================
    # Queries
    # =========================================================================

    def list_project_crew(self, project_id: str, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            project = self._get_project(session, project_id)
            if user is not None:
                RBACService(session).require_producer_access(user, project.project_id)

            assignments = self._assignment_query(session).filter(
                ProjectCrew.project_id == project.project_id
            ).order_by(ProjectCrew.assigned_at.desc()).all()

            data = [crew_to_dict(a) for a in assignments]
            return {"count": len(data), "data": data}

    def get_available_crew(self, project_id: str) -> Dict:
        """Crew users not yet assigned to the project, by name."""
        with self.db.get_session() as session:
            project = self._get_project(session, project_id)

            assigned = session.query(ProjectCrew.user_id).filter(
                ProjectCrew.project_id == project.project_id
            )
            users = session.query(User).filter(
                User.role == Role.CREW.value,
                User.user_id.notin_(assigned),
            ).order_by(User.name.asc()).all()

            data = [{"id": str(u.user_id), "name": u.name, "email": u.email} for u in users]
            return {"count": len(data), "data": data}

    def check_assignment(self, project_id: str, user_id: str) -> Dict:
        with self.db.get_session() as session:
            assignment = session.query(ProjectCrew).filter(
                ProjectCrew.project_id == parse_uuid(project_id, "Project"),
                ProjectCrew.user_id == parse_uuid(user_id, "User"),
            ).first()
            return {
                "isAssigned": assignment is not None,
                "assignment": crew_to_dict(assignment) if assignment else None,
            }

    def get_crew_projects(self, user_id: str) -> Dict:
        """Assignments of one crew member on projects that are not completed."""
        with self.db.get_session() as session:
            user = session.query(User).filter(User.user_id == parse_uuid(user_id, "User")).first()
            if not user:
                raise NotFoundError.for_entity("User")
            if user.role != Role.CREW:
                raise ValidationError("User is not a crew member")

            assignments = self._assignment_query(session).join(
                Project, ProjectCrew.project_id == Project.project_id
            ).filter(
                ProjectCrew.user_id == user.user_id,
                Project.global_status != ProjectStatus.COMPLETED.value,
            ).order_by(Project.deadline_date.asc()).all()

            data = [crew_to_dict(a, with_project=True) for a in assignments]
            return {"count": len(data), "data": data}

    # =========================================================================
    # Mutations
    # =========================================================================

    def assign_crew(
        self,
        project_id: str,
        user_id: Optional[str],
        assigned_by: str,
        role_in_project: Optional[str] = None,
    ) -> Dict:
        if not user_id:
            raise ValidationError("user_id is required")

        with self.db.get_session() as session:
            project = self._get_project(session, project_id)
            user = session.query(User).filter(User.user_id == parse_uuid(user_id, "User")).first()
            if not user:
                raise NotFoundError.for_entity("User")
            if user.role != Role.CREW:
                raise ValidationError("Only crew members can be assigned to projects")

            existing = session.query(ProjectCrew.id).filter(
                ProjectCrew.project_id == project.project_id,
                ProjectCrew.user_id == user.user_id,
            ).first()
            if existing:
                raise ValidationError(f"{user.name} is already assigned to this project")

            assignment = ProjectCrew(
                project_id=project.project_id,
                user_id=user.user_id,
                role_in_project=role_in_project or None,
                assigned_by=UUID(assigned_by),
            )
            session.add(assignment)
            session.flush()
            session.refresh(assignment)

            logger.info(f"Assigned {user.email} to project {project.project_id}")
            return {
                "message": f"{user.name} has been assigned to {project.title}",
                "data": crew_to_dict(assignment),
            }

    def bulk_assign_crew(self, project_id: str, user_ids, assigned_by: str) -> Dict:
        """Assign several crew users; already-assigned ones are skipped."""
        if not user_ids or not isinstance(user_ids, list):
            raise ValidationError("user_ids must be a non-empty array")

        with self.db.get_session() as session:
            project = self._get_project(session, project_id)

            try:
                wanted = list(dict.fromkeys(UUID(str(uid)) for uid in user_ids))
            except ValueError:
                raise ValidationError("Some user IDs are invalid or not crew members")

            crew_count = session.query(User).filter(
                User.user_id.in_(wanted),
                User.role == Role.CREW.value,
            ).count()
            if crew_count != len(wanted):
                raise ValidationError("Some user IDs are invalid or not crew members")

            existing = {
                row.user_id
                for row in session.query(ProjectCrew.user_id).filter(
                    ProjectCrew.project_id == project.project_id,
                    ProjectCrew.user_id.in_(wanted),
                )
            }
            new_ids = [uid for uid in wanted if uid not in existing]
            for uid in new_ids:
                session.add(ProjectCrew(
                    project_id=project.project_id,
                    user_id=uid,
                    assigned_by=UUID(assigned_by),
                ))
            session.flush()

            logger.info(f"Bulk assigned {len(new_ids)} crew to project {project.project_id}")
            return {
                "message": f"{len(new_ids)} crew member(s) assigned to {project.title}",
                "data": {
                    "assigned": len(new_ids),
                    "skipped": len(existing),
                    "total": len(user_ids),
                },
            }

    def update_assignment(self, project_id: str, user_id: str, role_in_project: Optional[str]) -> Dict:
        with self.db.get_session() as session:
            assignment = self._get_assignment(session, project_id, user_id)
            assignment.role_in_project = role_in_project or None
            session.flush()
            return crew_to_dict(assignment)

    def remove_crew(self, project_id: str, user_id: str) -> str:
        """Unassign a crew member. Refused while they still hold active tasks here."""
        with self.db.get_session() as session:
            assignment = self._get_assignment(session, project_id, user_id)
            name = assignment.user.name

            active = session.query(Milestone).filter(
                Milestone.project_id == assignment.project_id,
                Milestone.user_id == assignment.user_id,
                Milestone.work_status.in_(ACTIVE_WORK_STATUSES),
            ).count()
            if active > 0:
                raise ValidationError(
                    f"Cannot remove {name}. They have {active} active task(s) in this project. "
                    "Please complete or reassign tasks first."
                )

            session.delete(assignment)
            logger.info(f"Removed user {user_id} from project {project_id}")
            return f"{name} has been removed from the project"

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _assignment_query(session: Session):
        return session.query(ProjectCrew).options(
            selectinload(ProjectCrew.user),
            selectinload(ProjectCrew.assigner),
        )

    @staticmethod
    def _get_project(session: Session, project_id) -> Project:
        project = session.query(Project).filter(
            Project.project_id == parse_uuid(project_id, "Project")
        ).first()
        if not project:
            raise NotFoundError.for_entity("Project")
        return project

    @staticmethod
    def _get_assignment(session: Session, project_id, user_id) -> ProjectCrew:
        try:
            project_uuid = parse_uuid(project_id, "Project")
            user_uuid = parse_uuid(user_id, "User")
        except NotFoundError:
            raise NotFoundError("Crew assignment not found")

        assignment = session.query(ProjectCrew).filter(
            ProjectCrew.project_id == project_uuid,
            ProjectCrew.user_id == user_uuid,
        ).first()
        if not assignment:
            raise NotFoundError("Crew assignment not found")
        return assignment
