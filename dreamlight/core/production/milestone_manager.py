"""Milestone Manager: crew tasks and their approval workflow.

A milestone is one task assigned to one crew member on a project
(optionally scoped to an episode). Work moves through

    Pending -> In Progress -> Waiting Approval -> Done

Crew members move their own tasks up to ``Waiting Approval``; only an
admin or the project's producer can approve (``Done``) or send the task
back (``In Progress``).
"""

import logging
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import (
    ACTIVE_WORK_STATUSES,
    FINISHED_STATUS,
    PaymentStatus,
    Role,
    WorkStatus,
)
from ..db import DatabaseManager
from ..db.models import Episode, Milestone, Project, User
from ..exceptions import AuthorizationError, NotFoundError, ValidationError
from ..serializers import milestone_to_dict
from ..utils.helpers import parse_uuid, to_float

logger = logging.getLogger(__name__)

VALID_WORK_STATUSES = [s.value for s in WorkStatus]


class MilestoneManager:
    """Manages milestones (crew tasks) with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("MilestoneManager initialized")

    # =========================================================================
    # Queries
    # =========================================================================

    def list_milestones(
        self,
        user: Dict,
        project_id: Optional[str] = None,
        user_id: Optional[str] = None,
        episode_id: Optional[str] = None,
        work_status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Dict:
        """Filtered task list, newest first.

        Crew callers only see their own tasks; other roles only see tasks on
        projects they can list.
        """
        with self.db.get_session() as session:
            query = self._query(session)

            if project_id:
                query = query.filter(Milestone.project_id == parse_uuid(project_id, "Project"))
            if episode_id:
                query = query.filter(Milestone.episode_id == parse_uuid(episode_id, "Episode"))
            if work_status:
                query = query.filter(Milestone.work_status == work_status)
            if payment_status:
                query = query.filter(Milestone.payment_status == payment_status)

            if user["role"] == Role.CREW:
                query = query.filter(Milestone.user_id == UUID(user["id"]))
            else:
                if user["role"] != Role.ADMIN:
                    visible = RBACService(session).scope_projects(session.query(Project.project_id), user)
                    query = query.filter(Milestone.project_id.in_(visible))
                if user_id:
                    query = query.filter(Milestone.user_id == parse_uuid(user_id, "User"))

            milestones = query.order_by(Milestone.created_at.desc()).all()
            data = [milestone_to_dict(m, with_relations=True) for m in milestones]
            return {"count": len(data), "data": data}

    def get_milestone(self, milestone_id: str, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            milestone = self._get_or_404(session, milestone_id)
            if user is not None:
                RBACService(session).require_project_access(user, milestone.project_id)
            return milestone_to_dict(milestone, with_relations=True)

    def get_pending_approvals(self, user: Dict) -> Dict:
        """Tasks waiting for approval; producers only see their own projects."""
        with self.db.get_session() as session:
            query = self._query(session).filter(
                Milestone.work_status == WorkStatus.WAITING_APPROVAL.value
            )
            if user["role"] == Role.PRODUCER:
                query = query.join(Project, Milestone.project_id == Project.project_id).filter(
                    Project.producer_id == UUID(user["id"])
                )

            milestones = query.order_by(Milestone.updated_at.asc()).all()
            data = [milestone_to_dict(m, with_relations=True) for m in milestones]
            return {"count": len(data), "data": data}

    def get_crew_tasks(self, user_id: str, view: Optional[str] = None) -> Dict:
        """A crew member's tasks plus their payment stats.

        ``view='history'`` lists finished tasks (latest first); anything
        else lists active tasks ordered by project deadline.
        """
        user_uuid = parse_uuid(user_id, "User")

        with self.db.get_session() as session:
            query = self._query(session).join(
                Project, Milestone.project_id == Project.project_id
            ).filter(
                Milestone.user_id == user_uuid,
                Project.global_status != FINISHED_STATUS,
            )

            if view == "history":
                query = query.filter(
                    Milestone.work_status == WorkStatus.DONE.value
                ).order_by(Milestone.updated_at.desc())
            else:
                query = query.filter(
                    Milestone.work_status.in_(ACTIVE_WORK_STATUSES)
                ).order_by(Project.deadline_date.asc())

            tasks = [milestone_to_dict(m, with_relations=True) for m in query.all()]
            return {"tasks": tasks, "stats": self._crew_stats(session, user_uuid)}

    @staticmethod
    def _crew_stats(session: Session, user_id: UUID) -> Dict:
        def honor_sum(*criteria):
            total = session.query(func.sum(Milestone.honor_amount)).filter(
                Milestone.user_id == user_id, *criteria
            ).scalar()
            return to_float(total)

        active_count = session.query(Milestone).filter(
            Milestone.user_id == user_id,
            Milestone.work_status != WorkStatus.DONE.value,
        ).count()

        return {
            "pendingPayment": honor_sum(Milestone.payment_status == PaymentStatus.UNPAID.value),
            "receivedPayment": honor_sum(Milestone.payment_status == PaymentStatus.PAID.value),
            "activeTaskCount": active_count,
        }

    # =========================================================================
    # Milestone CRUD
    # =========================================================================

    def create_milestone(self, fields: Dict, user: Optional[Dict] = None) -> Dict:
        """Assign a task to a crew member of the project."""
        with self.db.get_session() as session:
            project = session.query(Project).filter(
                Project.project_id == parse_uuid(fields.get("project_id"), "Project")
            ).first()
            if not project:
                raise NotFoundError.for_entity("Project")

            if user is not None:
                RBACService(session).require_producer_access(user, project.project_id)

            assignee = self._get_assignee(session, fields.get("user_id"), project.project_id)

            episode_id = fields.get("episode_id")
            if episode_id:
                episode_id = self._check_episode(session, episode_id, project.project_id)

            milestone = Milestone(
                project_id=project.project_id,
                episode_id=episode_id or None,
                user_id=assignee.user_id,
                task_name=fields["task_name"],
                phase_category=fields["phase_category"],
                honor_amount=fields.get("honor_amount") or 0,
                work_status=WorkStatus.PENDING.value,
                payment_status=PaymentStatus.UNPAID.value,
            )
            session.add(milestone)
            session.flush()
            session.refresh(milestone)

            logger.info(f"Created milestone '{milestone.task_name}' for {assignee.email}")
            return milestone_to_dict(milestone, with_relations=True)

    def update_milestone(self, milestone_id: str, updates: Dict, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            milestone = self._get_or_404(session, milestone_id)
            if user is not None:
                RBACService(session).require_producer_access(user, milestone.project_id)

            if updates.get("user_id"):
                assignee = self._get_assignee(session, updates["user_id"], milestone.project_id)
                milestone.user_id = assignee.user_id

            if "episode_id" in updates:
                episode_id = updates["episode_id"]
                milestone.episode_id = (
                    self._check_episode(session, episode_id, milestone.project_id)
                    if episode_id else None
                )

            for field in ("task_name", "phase_category", "work_status", "payment_status"):
                if updates.get(field):
                    setattr(milestone, field, updates[field])
            if updates.get("honor_amount") is not None:
                milestone.honor_amount = updates["honor_amount"]

            session.flush()
            session.refresh(milestone)
            return milestone_to_dict(milestone, with_relations=True)

    def update_status(self, milestone_id: str, work_status: Optional[str], user: Dict) -> Dict:
        """Status change from the task board.

        Crew may only touch their own tasks and cannot mark them ``Done``;
        that transition belongs to ``approve``. Everyone else needs producer
        access to the project.
        """
        with self.db.get_session() as session:
            milestone = self._get_or_404(session, milestone_id)

            is_crew = user["role"] == Role.CREW
            if is_crew:
                if milestone.user_id != UUID(user["id"]):
                    raise AuthorizationError("You do not have access to this task")
            else:
                RBACService(session).require_producer_access(user, milestone.project_id)

            if not work_status:
                raise ValidationError("work_status is required")
            if work_status not in VALID_WORK_STATUSES:
                raise ValidationError("Invalid work_status")
            if is_crew and work_status == WorkStatus.DONE:
                raise ValidationError("Tasks are marked Done through producer approval")

            milestone.work_status = work_status
            session.flush()
            logger.info(f"Milestone {milestone.milestone_id} status -> {work_status}")
            return milestone_to_dict(milestone)

    def approve(self, milestone_id: str, user: Dict) -> Dict:
        return self._review(milestone_id, user, WorkStatus.DONE.value)

    def reject(self, milestone_id: str, user: Dict, reason: Optional[str] = None) -> Dict:
        return self._review(milestone_id, user, WorkStatus.IN_PROGRESS.value, reason)

    def _review(self, milestone_id: str, user: Dict, new_status: str, reason: Optional[str] = None) -> Dict:
        with self.db.get_session() as session:
            milestone = self._get_or_404(session, milestone_id)
            RBACService(session).require_producer_access(user, milestone.project_id)

            if milestone.work_status != WorkStatus.WAITING_APPROVAL:
                raise ValidationError("Only tasks waiting for approval can be reviewed")

            milestone.work_status = new_status
            session.flush()

            if new_status == WorkStatus.DONE:
                logger.info(f"Milestone {milestone.milestone_id} approved by {user['email']}")
            else:
                logger.info(
                    f"Milestone {milestone.milestone_id} rejected by {user['email']}"
                    + (f": {reason}" if reason else "")
                )
            return milestone_to_dict(milestone, with_relations=True)

    def delete_milestone(self, milestone_id: str, user: Optional[Dict] = None) -> bool:
        with self.db.get_session() as session:
            milestone = self._get_or_404(session, milestone_id)
            if user is not None:
                RBACService(session).require_producer_access(user, milestone.project_id)
            session.delete(milestone)
            logger.info(f"Deleted milestone {milestone_id}")
            return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _query(session: Session):
        return session.query(Milestone).options(
            selectinload(Milestone.user),
            selectinload(Milestone.project),
            selectinload(Milestone.episode),
        )

    @staticmethod
    def _get_or_404(session: Session, milestone_id) -> Milestone:
        milestone = session.query(Milestone).filter(
            Milestone.milestone_id == parse_uuid(milestone_id, "Milestone")
        ).first()
        if not milestone:
            raise NotFoundError.for_entity("Milestone")
        return milestone

    @staticmethod
    def _get_assignee(session: Session, user_id, project_id) -> User:
        """The task owner must exist and be crew on the project."""
        assignee = session.query(User).filter(User.user_id == parse_uuid(user_id, "User")).first()
        if not assignee:
            raise NotFoundError.for_entity("User")
        if not RBACService(session).is_crew_assigned(assignee.user_id, project_id):
            raise ValidationError(f"{assignee.name} is not assigned to this project")
        return assignee

    @staticmethod
    def _check_episode(session: Session, episode_id, project_id) -> UUID:
        try:
            episode_uuid = parse_uuid(episode_id, "Episode")
        except NotFoundError:
            episode_uuid = None
        episode = None
        if episode_uuid is not None:
            episode = session.query(Episode).filter(
                Episode.episode_id == episode_uuid,
                Episode.project_id == project_id,
            ).first()
        if not episode:
            raise NotFoundError("Episode not found or does not belong to this project")
        return episode.episode_id
