"""Finance Manager: transactions, crew payroll and financial summaries."""

import logging
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..auth.rbac import RBACService
from ..constants import (
    FINISHED_STATUS,
    FinanceStatus,
    FinanceType,
    PaymentStatus,
    Role,
    WorkStatus,
)
from ..db import DatabaseManager
from ..db.models import Finance, Milestone, Project
from ..exceptions import NotFoundError, ValidationError
from ..serializers import finance_to_dict, milestone_to_dict
from ..utils.helpers import (
    calculate_burn_rate,
    calculate_percentage,
    calculate_roi,
    month_range,
    parse_uuid,
    to_float,
)

logger = logging.getLogger(__name__)


class FinanceManager:
    """Manages finance transactions with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("FinanceManager initialized")

    # =========================================================================
    # Transactions
    # =========================================================================

    def list_finances(
        self,
        user: Optional[Dict] = None,
        project_id: Optional[str] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        month: Optional[str] = None,
    ) -> Dict:
        """Transactions, latest first, with totals over the filtered rows.

        ``totalIncome`` only counts received income; pending income is
        accounts receivable.
        """
        with self.db.get_session() as session:
            query = session.query(Finance).options(selectinload(Finance.project))
            if project_id:
                query = query.filter(Finance.project_id == parse_uuid(project_id, "Project"))
            if type:
                query = query.filter(Finance.type == type)
            if status:
                query = query.filter(Finance.status == status)
            if month:
                start, end = month_range(month)
                query = query.filter(Finance.transaction_date.between(start, end))
            if user is not None and user["role"] == Role.PRODUCER:
                query = query.join(Project, Finance.project_id == Project.project_id).filter(
                    Project.producer_id == UUID(user["id"])
                )

            finances = query.order_by(Finance.transaction_date.desc(), Finance.created_at.desc()).all()

            total_expense = sum(
                to_float(f.amount) for f in finances if f.type == FinanceType.EXPENSE
            )
            total_income = sum(
                to_float(f.amount) for f in finances
                if f.type == FinanceType.INCOME and f.status == FinanceStatus.RECEIVED
            )
            return {
                "count": len(finances),
                "data": [finance_to_dict(f, with_project=True) for f in finances],
                "summary": {"totalExpense": total_expense, "totalIncome": total_income},
            }

    def get_finance(self, finance_id: str, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            finance = self._get_or_404(session, finance_id)
            if user is not None:
                RBACService(session).require_producer_access(user, finance.project_id)
            return finance_to_dict(finance, with_project=True)

    def create_finance(self, fields: Dict, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            project = session.query(Project).filter(
                Project.project_id == parse_uuid(fields.get("project_id"), "Project")
            ).first()
            if not project:
                raise NotFoundError.for_entity("Project")
            if user is not None:
                RBACService(session).require_producer_access(user, project.project_id)

            finance = Finance(
                project_id=project.project_id,
                type=fields["type"],
                category=fields["category"],
                amount=fields["amount"],
                transaction_date=fields["transaction_date"],
                status=fields.get("status") or FinanceStatus.PENDING.value,
                description=fields.get("description"),
            )
            session.add(finance)
            session.flush()

            logger.info(f"Recorded {finance.type} of {finance.amount} on project {project.project_id}")
            return finance_to_dict(finance)

    def update_finance(self, finance_id: str, updates: Dict, user: Optional[Dict] = None) -> Dict:
        with self.db.get_session() as session:
            finance = self._get_or_404(session, finance_id)
            if user is not None:
                RBACService(session).require_producer_access(user, finance.project_id)

            for field in ("type", "category", "transaction_date", "status"):
                if updates.get(field):
                    setattr(finance, field, updates[field])
            if updates.get("amount") is not None:
                finance.amount = updates["amount"]
            if "description" in updates:
                finance.description = updates["description"]

            session.flush()
            return finance_to_dict(finance)

    def delete_finance(self, finance_id: str) -> bool:
        with self.db.get_session() as session:
            finance = self._get_or_404(session, finance_id)
            session.delete(finance)
            logger.info(f"Deleted finance transaction {finance_id}")
            return True

    # =========================================================================
    # Payroll
    # =========================================================================

    def get_pending_payroll(self, user: Optional[Dict] = None, project_id: Optional[str] = None) -> Dict:
        """Finished tasks whose honor has not been paid yet."""
        with self.db.get_session() as session:
            query = session.query(Milestone).options(
                selectinload(Milestone.user),
                selectinload(Milestone.project),
                selectinload(Milestone.episode),
            ).filter(
                Milestone.payment_status == PaymentStatus.UNPAID.value,
                Milestone.work_status == WorkStatus.DONE.value,
            )
            if project_id:
                query = query.filter(Milestone.project_id == parse_uuid(project_id, "Project"))
            if user is not None and user["role"] == Role.PRODUCER:
                query = query.join(Project, Milestone.project_id == Project.project_id).filter(
                    Project.producer_id == UUID(user["id"])
                )

            milestones = query.order_by(Milestone.updated_at.desc()).all()
            return {
                "count": len(milestones),
                "data": [milestone_to_dict(m, with_relations=True) for m in milestones],
                "totalPending": sum(to_float(m.honor_amount) for m in milestones),
            }

    def pay_crew(self, milestone_id: Optional[str], user: Optional[Dict] = None) -> Dict:
        """Mark a task's honor as paid and book the matching expense."""
        if not milestone_id:
            raise ValidationError("milestone_id is required")

        with self.db.get_session() as session:
            milestone = session.query(Milestone).filter(
                Milestone.milestone_id == parse_uuid(milestone_id, "Milestone")
            ).first()
            if not milestone:
                raise NotFoundError.for_entity("Milestone")
            if user is not None:
                RBACService(session).require_producer_access(user, milestone.project_id)

            if milestone.payment_status == PaymentStatus.PAID:
                raise ValidationError("Honor has already been paid")

            milestone.payment_status = PaymentStatus.PAID.value
            session.add(Finance(
                project_id=milestone.project_id,
                type=FinanceType.EXPENSE.value,
                category=f"Honor Crew: {milestone.user.name} - {milestone.task_name}",
                amount=milestone.honor_amount,
                transaction_date=date.today(),
                status=FinanceStatus.PAID.value,
                description=f"Payment for {milestone.task_name} in {milestone.project.title}",
            ))
            session.flush()

            logger.info(f"Paid honor for milestone {milestone.milestone_id} to {milestone.user.email}")
            return milestone_to_dict(milestone, with_relations=True)

    # =========================================================================
    # Summaries
    # =========================================================================

    def get_summary(self, user: Optional[Dict] = None, project_id: Optional[str] = None) -> Dict:
        """Income, expense and profit over one project or all active ones.

        Paid crew honors are added on top of booked expenses.
        """
        with self.db.get_session() as session:
            rbac = RBACService(session)
            if project_id:
                project_uuid = parse_uuid(project_id, "Project")
                if user is not None:
                    rbac.require_project_access(user, project_uuid)
                project_ids = [project_uuid]
            else:
                query = session.query(Project).filter(Project.global_status != FINISHED_STATUS)
                if user is not None:
                    query = rbac.scope_projects(query, user)
                project_ids = [p.project_id for p in query.all()]

            totals = self._finance_totals(session, project_ids)
            crew_expense = self._paid_honors(session, project_ids)
            total_with_crew = totals["expense"] + crew_expense

            return {
                "totalIncome": totals["income"],
                "totalExpense": totals["expense"],
                "crewExpense": crew_expense,
                "totalExpenseWithCrew": total_with_crew,
                "pendingAR": totals["receivable"],
                "netProfit": totals["income"] - total_with_crew,
            }

    def get_investor_summary(self, investor_id: str) -> Dict:
        """Portfolio view for an investor: totals, ROI and per-project burn.

        A project is ``Overbudget`` when its burn rate (real expense over
        planned budget) runs ahead of its task completion percentage.
        """
        with self.db.get_session() as session:
            projects = session.query(Project).filter(
                Project.investor_id == parse_uuid(investor_id, "User"),
                Project.global_status != FINISHED_STATUS,
            ).all()
            project_ids = [p.project_id for p in projects]

            total_investment = sum(to_float(p.total_budget_plan) for p in projects)
            totals = self._finance_totals(session, project_ids)
            total_expense_real = totals["expense"] + self._paid_honors(session, project_ids)
            total_income_real = totals["income"]

            project_stats = []
            for p in projects:
                p_totals = self._finance_totals(session, [p.project_id])
                p_expense = p_totals["expense"] + self._paid_honors(session, [p.project_id])
                budget = to_float(p.total_budget_plan)

                total_tasks = session.query(Milestone).filter(
                    Milestone.project_id == p.project_id
                ).count()
                done_tasks = session.query(Milestone).filter(
                    Milestone.project_id == p.project_id,
                    Milestone.work_status == WorkStatus.DONE.value,
                ).count()
                progress = calculate_percentage(done_tasks, total_tasks)
                burn_rate = calculate_burn_rate(p_expense, budget)

                project_stats.append({
                    "title": p.title,
                    "budget": budget,
                    "expense_real": p_expense,
                    "burn_rate": burn_rate,
                    "production_progress": progress,
                    "status": "Overbudget" if burn_rate > progress else "Efficient",
                })

            return {
                "totalInvestment": total_investment,
                "totalExpenseReal": total_expense_real,
                "totalIncomeReal": total_income_real,
                "totalAR": totals["receivable"],
                "roiPercentage": calculate_roi(total_income_real, total_expense_real, total_investment),
                "projectStats": project_stats,
            }

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get_or_404(session: Session, finance_id) -> Finance:
        try:
            finance_uuid = parse_uuid(finance_id, "Finance transaction")
        except NotFoundError:
            raise NotFoundError("Finance transaction not found")
        finance = session.query(Finance).filter(Finance.finance_id == finance_uuid).first()
        if not finance:
            raise NotFoundError("Finance transaction not found")
        return finance

    @staticmethod
    def _finance_totals(session: Session, project_ids: List[UUID]) -> Dict[str, float]:
        """expense (all), income (received) and receivable (pending income)."""
        totals = {"expense": 0.0, "income": 0.0, "receivable": 0.0}
        if not project_ids:
            return totals

        rows = session.query(
            Finance.type, Finance.status, func.sum(Finance.amount)
        ).filter(
            Finance.project_id.in_(project_ids)
        ).group_by(Finance.type, Finance.status).all()

        for ftype, status, amount in rows:
            if ftype == FinanceType.EXPENSE:
                totals["expense"] += to_float(amount)
            elif ftype == FinanceType.INCOME and status == FinanceStatus.RECEIVED:
                totals["income"] += to_float(amount)
            elif ftype == FinanceType.INCOME and status == FinanceStatus.PENDING:
                totals["receivable"] += to_float(amount)
        return totals

    @staticmethod
    def _paid_honors(session: Session, project_ids: List[UUID]) -> float:
        if not project_ids:
            return 0.0
        total = session.query(func.sum(Milestone.honor_amount)).filter(
            Milestone.project_id.in_(project_ids),
            Milestone.payment_status == PaymentStatus.PAID.value,
        ).scalar()
        return to_float(total)
