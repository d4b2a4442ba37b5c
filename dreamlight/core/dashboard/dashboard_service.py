"""Role-specific dashboard aggregates."""

import logging
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from ..constants import (
    FINISHED_STATUS,
    PaymentStatus,
    ProjectStatus,
    ProjectType,
    Role,
    WorkStatus,
)
from ..db import DatabaseManager
from ..db.models import Milestone, Project, ProjectCrew, User
from ..exceptions import AuthorizationError
from ..finance.finance_manager import FinanceManager
from ..production.milestone_manager import MilestoneManager
from ..project.progress import empty_progress, get_progress_stats
from ..serializers import crew_to_dict, project_to_dict
from ..utils.helpers import iso, paginate, to_float, total_pages

logger = logging.getLogger(__name__)

RECENT_PROJECTS_LIMIT = 10


class DashboardService:
    """Builds the dashboard payload for each role."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        milestone_manager: Optional[MilestoneManager] = None,
        finance_manager: Optional[FinanceManager] = None,
    ):
        self.db = db_manager
        self.milestones = milestone_manager or MilestoneManager(db_manager)
        self.finance = finance_manager or FinanceManager(db_manager)

    def get_dashboard(self, user: Dict, view: Optional[str] = None):
        """Dispatch to the dashboard matching ``user``'s role."""
        role = user["role"]
        if role == Role.ADMIN:
            return self.admin()
        if role == Role.PRODUCER:
            return self.producer(user["id"])
        if role == Role.CREW:
            return self.crew(user["id"], view)
        if role == Role.BROADCASTER:
            return self.broadcaster(user["id"])
        if role == Role.INVESTOR:
            return self.investor(user["id"])
        raise AuthorizationError("Invalid user role")

    # ========== Admin ==========

    def admin(self) -> Dict:
        with self.db.get_session() as session:
            total_projects = session.query(Project).count()
            ongoing = session.query(Project).filter(
                Project.global_status.notin_([ProjectStatus.COMPLETED.value, FINISHED_STATUS])
            ).count()
            total_crew = session.query(User).filter(User.role == Role.CREW.value).count()

            recent = session.query(Project).order_by(
                Project.created_at.desc()
            ).limit(RECENT_PROJECTS_LIMIT).all()

            recent_projects = []
            for project in recent:
                item = project_to_dict(project)
                item["progress_stats"] = get_progress_stats(session, project_id=project.project_id)
                recent_projects.append(item)

            return {
                "totalProjects": total_projects,
                "ongoingProjects": ongoing,
                "totalCrew": total_crew,
                "recentProjects": recent_projects,
            }

    # ========== Producer ==========

    def producer(self, user_id: str) -> Dict:
        producer_id = UUID(str(user_id))

        with self.db.get_session() as session:
            projects = session.query(Project).filter(
                Project.producer_id == producer_id,
                Project.global_status != FINISHED_STATUS,
            ).order_by(Project.deadline_date.asc()).all()
            project_ids = [p.project_id for p in projects]

            pending_approvals = 0
            pending_payments = 0.0
            assigned_crew = 0
            if project_ids:
                pending_approvals = session.query(Milestone).filter(
                    Milestone.project_id.in_(project_ids),
                    Milestone.work_status == WorkStatus.WAITING_APPROVAL.value,
                ).count()
                pending_payments = to_float(session.query(func.sum(Milestone.honor_amount)).filter(
                    Milestone.project_id.in_(project_ids),
                    Milestone.payment_status == PaymentStatus.UNPAID.value,
                    Milestone.work_status == WorkStatus.DONE.value,
                ).scalar())
                assigned_crew = session.query(
                    func.count(func.distinct(ProjectCrew.user_id))
                ).filter(ProjectCrew.project_id.in_(project_ids)).scalar() or 0

            my_projects = []
            for project in projects:
                item = project_to_dict(project)
                item["progress_stats"] = get_progress_stats(session, project_id=project.project_id)
                my_projects.append(item)

            return {
                "myProjects": my_projects,
                "totalProjects": len(projects),
                "pendingApprovals": pending_approvals,
                "pendingPayments": pending_payments,
                "totalAssignedCrew": assigned_crew,
            }

    def producer_crew(self, user: Dict, page: Optional[int] = 1, limit: Optional[int] = 10) -> Dict:
        """Paginated crew assignments over the producer's projects (all for admin)."""
        page_num, limit_num, offset = paginate(page, limit)

        with self.db.get_session() as session:
            projects = session.query(Project.project_id)
            if user["role"] == Role.PRODUCER:
                projects = projects.filter(Project.producer_id == UUID(user["id"]))

            query = session.query(ProjectCrew).options(
                selectinload(ProjectCrew.user),
                selectinload(ProjectCrew.project),
                selectinload(ProjectCrew.assigner),
            ).filter(ProjectCrew.project_id.in_(projects))

            count = query.count()
            if count == 0:
                return {"count": 0, "total": 0, "page": 1, "totalPages": 0, "data": []}

            assignments = query.order_by(
                ProjectCrew.created_at.desc()
            ).offset(offset).limit(limit_num).all()
            return {
                "count": len(assignments),
                "total": count,
                "page": page_num,
                "totalPages": total_pages(count, limit_num),
                "data": [crew_to_dict(a, with_project=True) for a in assignments],
            }

    # ========== Crew ==========

    def crew(self, user_id: str, view: Optional[str] = None) -> Dict:
        result = self.milestones.get_crew_tasks(user_id, view)
        return {"myTasks": result["tasks"], "stats": result["stats"]}

    # ========== Broadcaster ==========

    def broadcaster(self, user_id: str) -> Dict:
        """One card per episode of a series, one per single project.

        A series without episodes still shows up as a ``Series (Empty)``
        card so the client knows it exists.
        """
        with self.db.get_session() as session:
            projects = session.query(Project).options(
                selectinload(Project.episodes)
            ).filter(
                Project.client_id == UUID(str(user_id)),
                Project.global_status != FINISHED_STATUS,
            ).order_by(Project.updated_at.desc()).all()

            items = []
            for project in projects:
                if project.type == ProjectType.SERIES:
                    for episode in project.episodes:
                        items.append({
                            "type": "Episode",
                            "title": f"Eps {episode.episode_number}: {episode.title}",
                            "subtitle": project.title,
                            "status": episode.status,
                            "project_id": str(project.project_id),
                            "episode_id": str(episode.episode_id),
                            "progress": get_progress_stats(session, episode_id=episode.episode_id),
                            "updated_at": episode.updated_at,
                        })
                    if not project.episodes:
                        items.append({
                            "type": "Series (Empty)",
                            "title": project.title,
                            "subtitle": "No Episodes Yet",
                            "status": project.global_status,
                            "project_id": str(project.project_id),
                            "progress": empty_progress(),
                            "updated_at": project.updated_at,
                        })
                else:
                    items.append({
                        "type": project.type,
                        "title": project.title,
                        "subtitle": project.client_name or "Single Project",
                        "status": project.global_status,
                        "project_id": str(project.project_id),
                        "progress": get_progress_stats(session, project_id=project.project_id),
                        "updated_at": project.updated_at,
                    })

            items.sort(key=lambda item: item["updated_at"], reverse=True)
            for item in items:
                item["updated_at"] = iso(item["updated_at"])
            return {"count": len(items), "data": items}

    # ========== Investor ==========

    def investor(self, user_id: str) -> Dict:
        return self.finance.get_investor_summary(user_id)
