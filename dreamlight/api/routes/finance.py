"""Finance routes: transactions, crew payroll and summaries."""

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core.constants import FinanceStatus, FinanceType
from ..core import paged_response, success_response
from ..deps import get_current_user, get_finance_manager, require_admin, require_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["finance"])


# ── Request models ───────────────────────────────────────────────────────

class FinanceCreate(BaseModel):
    project_id: str
    type: FinanceType
    category: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(ge=0)
    transaction_date: date
    status: FinanceStatus = FinanceStatus.PENDING
    description: str | None = None


class FinanceUpdate(BaseModel):
    type: FinanceType | None = None
    category: str | None = Field(default=None, min_length=1, max_length=255)
    amount: Decimal | None = Field(default=None, ge=0)
    transaction_date: date | None = None
    status: FinanceStatus | None = None
    description: str | None = None


class PayCrewRequest(BaseModel):
    milestone_id: str | None = None


def _enum_values(fields: dict) -> dict:
    return {k: getattr(v, "value", v) for k, v in fields.items()}


# ── Summaries and payroll (declared before /{finance_id}) ────────────────

@router.get("/summary")
async def finance_summary(
    project_id: str | None = None,
    user: dict = Depends(get_current_user),
    fm=Depends(get_finance_manager),
):
    """Income, expense (with paid honors), receivables and net profit."""
    return success_response(fm.get_summary(user, project_id))


@router.get("/payroll/pending")
async def pending_payroll(
    project_id: str | None = None,
    user: dict = Depends(require_manager),
    fm=Depends(get_finance_manager),
):
    return paged_response(fm.get_pending_payroll(user, project_id))


@router.post("/pay-crew")
async def pay_crew(data: PayCrewRequest, user: dict = Depends(require_manager), fm=Depends(get_finance_manager)):
    return success_response(fm.pay_crew(data.milestone_id, user), "Crew honor paid successfully")


# ── Transactions ─────────────────────────────────────────────────────────

@router.get("")
async def list_finances(
    project_id: str | None = None,
    type: str | None = None,
    status: str | None = None,
    month: str | None = None,
    user: dict = Depends(require_manager),
    fm=Depends(get_finance_manager),
):
    """Transactions filtered by project, type, status or ``YYYY-MM`` month."""
    result = fm.list_finances(user, project_id=project_id, type=type, status=status, month=month)
    return paged_response(result)


@router.get("/{finance_id}")
async def get_finance(finance_id: str, user: dict = Depends(require_manager), fm=Depends(get_finance_manager)):
    return success_response(fm.get_finance(finance_id, user))


@router.post("", status_code=201)
async def create_finance(data: FinanceCreate, user: dict = Depends(require_manager), fm=Depends(get_finance_manager)):
    finance = fm.create_finance(_enum_values(data.model_dump()), user)
    return success_response(finance, "Transaction recorded successfully")


@router.put("/{finance_id}")
async def update_finance(
    finance_id: str,
    data: FinanceUpdate,
    user: dict = Depends(require_manager),
    fm=Depends(get_finance_manager),
):
    updates = _enum_values(data.model_dump(exclude_unset=True))
    return success_response(fm.update_finance(finance_id, updates, user), "Transaction updated successfully")


@router.delete("/{finance_id}")
async def delete_finance(finance_id: str, user: dict = Depends(require_admin), fm=Depends(get_finance_manager)):
    fm.delete_finance(finance_id)
    return success_response(message="Transaction deleted successfully")
