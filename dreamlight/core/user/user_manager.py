"""User administration (admin only)."""

import logging
from typing import Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..constants import ACTIVE_WORK_STATUSES, PaymentStatus, WorkStatus
from ..db import DatabaseManager
from ..db.models import Asset, Milestone, User
from ..exceptions import NotFoundError, ValidationError
from ..serializers import milestone_to_dict, user_to_dict
from ..utils.helpers import calculate_percentage, paginate, parse_uuid, to_float, total_pages

logger = logging.getLogger(__name__)


class UserManager:
    """Lists, edits and removes user accounts."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def list_users(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = 10,
    ) -> Dict:
        page_num, limit_num, offset = paginate(page, limit)

        with self.db.get_session() as session:
            query = session.query(User)
            if role:
                query = query.filter(User.role == role)
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

            count = query.count()
            users = query.order_by(User.created_at.desc()).offset(offset).limit(limit_num).all()
            return {
                "count": len(users),
                "total": count,
                "page": page_num,
                "totalPages": total_pages(count, limit_num),
                "data": [user_to_dict(u) for u in users],
            }

    def get_user(self, user_id: str) -> Dict:
        with self.db.get_session() as session:
            user = self._get_or_404(session, user_id)
            data = user_to_dict(user)
            data["milestones"] = [milestone_to_dict(m, with_relations=True) for m in user.milestones]
            return data

    def update_user(self, user_id: str, updates: Dict) -> Dict:
        with self.db.get_session() as session:
            user = self._get_or_404(session, user_id)

            email = updates.get("email")
            if email:
                email = email.strip().lower()
                if email != user.email:
                    taken = session.query(User.user_id).filter(
                        User.email == email,
                        User.user_id != user.user_id,
                    ).first()
                    if taken:
                        raise ValidationError("Email already in use")
                    user.email = email

            if updates.get("name"):
                user.name = updates["name"]
            if updates.get("role"):
                user.role = updates["role"]

            session.flush()
            logger.info(f"Updated user {user.user_id}")
            return user_to_dict(user)

    def delete_user(self, user_id: str, current_user_id: str) -> bool:
        """Delete a user account.

        Refused for the caller's own account and while the user still has
        active tasks or owns uploaded assets.
        """
        with self.db.get_session() as session:
            user = self._get_or_404(session, user_id)

            if str(user.user_id) == str(current_user_id):
                raise ValidationError("You cannot delete your own account")

            active = session.query(Milestone).filter(
                Milestone.user_id == user.user_id,
                Milestone.work_status.in_(ACTIVE_WORK_STATUSES),
            ).count()
            if active > 0:
                raise ValidationError(
                    f"Cannot delete user with {active} active task(s). "
                    "Please reassign or complete them first."
                )

            uploads = session.query(Asset).filter(Asset.uploaded_by == user.user_id).count()
            if uploads > 0:
                raise ValidationError(
                    f"Cannot delete user who uploaded {uploads} asset(s). "
                    "Please remove those assets first."
                )

            session.delete(user)
            logger.info(f"Deleted user {user_id}")
            return True

    def get_user_stats(self, user_id: str) -> Dict:
        with self.db.get_session() as session:
            user = self._get_or_404(session, user_id)

            def count(*criteria) -> int:
                return session.query(Milestone).filter(
                    Milestone.user_id == user.user_id, *criteria
                ).count()

            def honor_sum(*criteria) -> float:
                return to_float(session.query(func.sum(Milestone.honor_amount)).filter(
                    Milestone.user_id == user.user_id, *criteria
                ).scalar())

            total_tasks = count()
            completed = count(Milestone.work_status == WorkStatus.DONE.value)
            return {
                "totalTasks": total_tasks,
                "completedTasks": completed,
                "activeTasks": count(Milestone.work_status.in_(ACTIVE_WORK_STATUSES)),
                "totalEarned": honor_sum(Milestone.payment_status == PaymentStatus.PAID.value),
                "pendingPayment": honor_sum(
                    Milestone.payment_status == PaymentStatus.UNPAID.value,
                    Milestone.work_status == WorkStatus.DONE.value,
                ),
                "completionRate": calculate_percentage(completed, total_tasks),
            }

    @staticmethod
    def _get_or_404(session: Session, user_id) -> User:
        user = session.query(User).filter(User.user_id == parse_uuid(user_id, "User")).first()
        if not user:
            raise NotFoundError.for_entity("User")
        return user
