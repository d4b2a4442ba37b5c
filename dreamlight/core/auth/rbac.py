"""RBAC (Role-Based Access Control) Service.

Every authenticated user carries exactly one role. Route groups are gated
by role (see ``dreamlight.api.deps.require_roles``); this service adds the
resource-level checks on top:

- project access (read):   admin, the project's producer, assigned crew,
                           the client broadcaster, the investor
- producer access (manage): admin, or the producer assigned to the project
- crew assignment:          admin/producer pass, crew must be assigned

Listing queries are narrowed with ``scope_projects`` so that a user only
ever sees the projects their role links them to.
"""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import false
from sqlalchemy.orm import Query, Session

from ..constants import Role
from ..db.models import Project, ProjectCrew, User
from ..exceptions import AuthorizationError, NotFoundError
from ..utils.helpers import parse_uuid

logger = logging.getLogger(__name__)


class RBACService:
    """Resource-scoping checks bound to one DB session.

    ``user`` arguments are the dicts produced by ``user_to_dict`` (the
    shape attached to each request by the auth dependency).
    """

    def __init__(self, db_session: Session):
        self._session = db_session

    # ========== Listing Filters ==========

    def scope_projects(self, query: Query, user: Dict) -> Query:
        """Narrow a ``Project`` query to what ``user`` may list."""
        role = user["role"]
        user_id = UUID(user["id"])

        if role == Role.ADMIN:
            return query
        if role == Role.PRODUCER:
            return query.filter(Project.producer_id == user_id)
        if role == Role.BROADCASTER:
            return query.filter(Project.client_id == user_id)
        if role == Role.INVESTOR:
            return query.filter(Project.investor_id == user_id)
        if role == Role.CREW:
            assigned = self._session.query(ProjectCrew.project_id).filter(
                ProjectCrew.user_id == user_id
            )
            return query.filter(Project.project_id.in_(assigned))

        logger.warning(f"Unknown role {role!r} for user {user['id']}, listing nothing")
        return query.filter(false())

    def available_crew_for_user(self, user: Dict, project_id: Optional[str] = None) -> List[User]:
        """Crew users ``user`` may pick from when creating tasks."""
        if user["role"] == Role.ADMIN:
            return self._session.query(User).filter(
                User.role == Role.CREW.value
            ).order_by(User.name.asc()).all()

        if user["role"] == Role.PRODUCER and project_id:
            return self._session.query(User).join(
                ProjectCrew, ProjectCrew.user_id == User.user_id
            ).filter(
                ProjectCrew.project_id == parse_uuid(project_id, "Project"),
                User.role == Role.CREW.value,
            ).order_by(User.name.asc()).all()

        return []

    # ========== Project Access ==========

    def is_crew_assigned(self, user_id, project_id) -> bool:
        return self._session.query(ProjectCrew.id).filter(
            ProjectCrew.project_id == parse_uuid(project_id, "Project"),
            ProjectCrew.user_id == parse_uuid(user_id, "User"),
        ).first() is not None

    def _get_project(self, project_id) -> Project:
        project = self._session.query(Project).filter(
            Project.project_id == parse_uuid(project_id, "Project")
        ).first()
        if not project:
            raise NotFoundError.for_entity("Project")
        return project

    def check_project_access(self, user: Dict, project_id) -> Tuple[bool, Optional[str]]:
        """Check if user may read a project.

        Raises:
            NotFoundError: project does not exist
        """
        role = user["role"]
        if role == Role.ADMIN:
            return True, None

        project = self._get_project(project_id)
        user_id = UUID(user["id"])

        if role == Role.PRODUCER:
            if project.producer_id == user_id:
                return True, None
            return False, "You are not assigned as producer for this project"

        if role == Role.CREW:
            if self.is_crew_assigned(user_id, project.project_id):
                return True, None
            return False, "You are not assigned to this project"

        if role == Role.BROADCASTER and project.client_id == user_id:
            return True, None
        if role == Role.INVESTOR and project.investor_id == user_id:
            return True, None

        return False, "You do not have access to this project"

    def check_producer_access(self, user: Dict, project_id) -> Tuple[bool, Optional[str]]:
        """Check if user may manage a project (edit, crew, tasks)."""
        role = user["role"]
        if role == Role.ADMIN:
            return True, None
        if role != Role.PRODUCER:
            return False, "Only producers can perform this action"

        project = self._get_project(project_id)
        if project.producer_id != UUID(user["id"]):
            return False, "You are not assigned as producer for this project"
        return True, None

    def check_crew_assignment(self, user: Dict, project_id) -> Tuple[bool, Optional[str]]:
        role = user["role"]
        if role in (Role.ADMIN, Role.PRODUCER):
            return True, None
        if role != Role.CREW:
            return False, "Only crew members can perform this action"
        if not self.is_crew_assigned(user["id"], project_id):
            return False, "You are not assigned to this project"
        return True, None

    # ========== Enforcing Helpers ==========

    def require_project_access(self, user: Dict, project_id) -> None:
        allowed, message = self.check_project_access(user, project_id)
        if not allowed:
            raise AuthorizationError(message)

    def require_producer_access(self, user: Dict, project_id) -> None:
        allowed, message = self.check_producer_access(user, project_id)
        if not allowed:
            raise AuthorizationError(message)

    def require_crew_assignment(self, user: Dict, project_id) -> None:
        allowed, message = self.check_crew_assignment(user, project_id)
        if not allowed:
            raise AuthorizationError(message)
