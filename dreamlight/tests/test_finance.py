"""Tests for finance transactions, crew payroll and summaries."""

from datetime import date

import pytest

from dreamlight.core.exceptions import AuthorizationError, ValidationError


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def producer(make_user):
    return make_user("producer")


@pytest.fixture
def project(producer, make_project):
    return make_project(producer=producer, total_budget_plan=1000)


def _record(finance_manager, project, type, amount, status, when=date(2025, 3, 10), category="Misc"):
    return finance_manager.create_finance({
        "project_id": project["id"],
        "type": type,
        "category": category,
        "amount": amount,
        "transaction_date": when,
        "status": status,
    })


# ── Tests: Transactions ───────────────────────────────────────────────────


class TestTransactions:

    def test_list_totals(self, finance_manager, project):
        _record(finance_manager, project, "Income", 800, "Received")
        _record(finance_manager, project, "Income", 400, "Pending")
        _record(finance_manager, project, "Expense", 150, "Paid")

        result = finance_manager.list_finances()
        assert result["count"] == 3
        assert result["summary"] == {"totalExpense": 150.0, "totalIncome": 800.0}

    def test_month_filter(self, finance_manager, project):
        _record(finance_manager, project, "Expense", 100, "Paid", when=date(2025, 2, 28))
        _record(finance_manager, project, "Expense", 200, "Paid", when=date(2025, 3, 1))
        result = finance_manager.list_finances(month="2025-03")
        assert [f["amount"] for f in result["data"]] == [200.0]

    def test_producer_scope(self, finance_manager, project, producer, make_project, make_user):
        other = make_project(producer=make_user("producer"))
        _record(finance_manager, project, "Expense", 10, "Paid")
        _record(finance_manager, other, "Expense", 20, "Paid")
        assert finance_manager.list_finances(producer)["count"] == 1

    def test_create_requires_producer_access(self, finance_manager, project, make_user):
        with pytest.raises(AuthorizationError):
            finance_manager.create_finance({
                "project_id": project["id"],
                "type": "Expense",
                "category": "Catering",
                "amount": 10,
                "transaction_date": date(2025, 3, 1),
            }, make_user("producer"))


# ── Tests: Payroll ────────────────────────────────────────────────────────


class TestPayCrew:

    def test_pay_books_expense(self, finance_manager, project, make_user, make_task, set_status):
        crew = make_user("crew", name="Sarah")
        task = make_task(project, crew=crew, honor=250, task_name="DOP")
        set_status(task, "Done")
        assert finance_manager.get_pending_payroll()["totalPending"] == 250.0

        paid = finance_manager.pay_crew(task["id"])
        assert paid["payment_status"] == "Paid"

        expenses = finance_manager.list_finances(project_id=project["id"], type="Expense")["data"]
        assert len(expenses) == 1
        assert expenses[0]["category"] == "Honor Crew: Sarah - DOP"
        assert expenses[0]["amount"] == 250.0
        assert expenses[0]["status"] == "Paid"
        assert finance_manager.get_pending_payroll()["count"] == 0

    def test_pay_twice(self, finance_manager, project, make_task, set_status):
        task = make_task(project)
        set_status(task, "Done")
        finance_manager.pay_crew(task["id"])
        with pytest.raises(ValidationError, match="Honor has already been paid"):
            finance_manager.pay_crew(task["id"])

    def test_requires_id(self, finance_manager):
        with pytest.raises(ValidationError, match="milestone_id is required"):
            finance_manager.pay_crew(None)


# ── Tests: Summaries ──────────────────────────────────────────────────────


class TestSummaries:

    def test_summary_adds_paid_honors(self, finance_manager, project, make_task, set_status):
        _record(finance_manager, project, "Income", 1000, "Received")
        _record(finance_manager, project, "Income", 300, "Pending")
        _record(finance_manager, project, "Expense", 200, "Paid")
        task = make_task(project, honor=100)
        set_status(task, "Done")
        finance_manager.pay_crew(task["id"])

        summary = finance_manager.get_summary(project_id=project["id"])
        # The booked honor expense counts once as an expense and once as crew honor
        assert summary == {
            "totalIncome": 1000.0,
            "totalExpense": 300.0,
            "crewExpense": 100.0,
            "totalExpenseWithCrew": 400.0,
            "pendingAR": 300.0,
            "netProfit": 600.0,
        }

    def test_summary_scoped_to_visible_projects(self, finance_manager, project, make_project, make_user):
        investor = make_user("investor")
        funded = make_project(investor=investor)
        _record(finance_manager, project, "Income", 500, "Received")
        _record(finance_manager, funded, "Income", 70, "Received")
        assert finance_manager.get_summary(investor)["totalIncome"] == 70.0

    def test_investor_summary(self, finance_manager, make_project, make_user, make_task, set_status):
        investor = make_user("investor")
        lean = make_project(investor=investor, title="Lean", total_budget_plan=1000)
        heavy = make_project(investor=investor, title="Heavy", total_budget_plan=1000)

        _record(finance_manager, lean, "Expense", 100, "Paid")
        set_status(make_task(lean), "Done")
        make_task(lean)

        _record(finance_manager, heavy, "Expense", 900, "Paid")
        make_task(heavy)
        _record(finance_manager, heavy, "Income", 500, "Received")

        result = finance_manager.get_investor_summary(investor["id"])
        assert result["totalInvestment"] == 2000.0
        assert result["totalExpenseReal"] == 1000.0
        assert result["roiPercentage"] == -25.0

        stats = {s["title"]: s for s in result["projectStats"]}
        assert stats["Lean"]["burn_rate"] == 10
        assert stats["Lean"]["production_progress"] == 50
        assert stats["Lean"]["status"] == "Efficient"
        assert stats["Heavy"]["status"] == "Overbudget"


# ── Tests: Routes ─────────────────────────────────────────────────────────


class TestFinanceRoutes:

    def test_create_and_list(self, client, project, producer, headers_for):
        resp = client.post(
            "/api/finance",
            json={
                "project_id": project["id"],
                "type": "Expense",
                "category": "Equipment Rental",
                "amount": 5000,
                "transaction_date": "2025-01-20",
                "status": "Paid",
            },
            headers=headers_for(producer),
        )
        assert resp.status_code == 201

        resp = client.get("/api/finance?type=Expense", headers=headers_for(producer))
        body = resp.json()
        assert body["count"] == 1
        assert body["summary"]["totalExpense"] == 5000.0

    def test_negative_amount(self, client, project, producer, headers_for):
        resp = client.post(
            "/api/finance",
            json={
                "project_id": project["id"],
                "type": "Expense",
                "category": "Refund",
                "amount": -5,
                "transaction_date": "2025-01-20",
            },
            headers=headers_for(producer),
        )
        assert resp.status_code == 400

    def test_bad_month(self, client, producer, headers_for):
        resp = client.get("/api/finance?month=March", headers=headers_for(producer))
        assert resp.status_code == 400
        assert resp.json()["message"] == "month must be in YYYY-MM format"

    def test_summary_any_role(self, client, make_user, headers_for):
        resp = client.get("/api/finance/summary", headers=headers_for(make_user("crew")))
        assert resp.status_code == 200
        assert resp.json()["data"]["netProfit"] == 0.0

    def test_pay_crew_route(self, client, project, producer, make_task, set_status, headers_for):
        task = make_task(project)
        set_status(task, "Done")
        resp = client.post("/api/finance/pay-crew", json={"milestone_id": task["id"]}, headers=headers_for(producer))
        assert resp.status_code == 200
        assert resp.json()["data"]["payment_status"] == "Paid"

    def test_delete_admin_only(self, client, finance_manager, project, producer, make_user, headers_for):
        finance = _record(finance_manager, project, "Expense", 10, "Paid")
        resp = client.delete(f"/api/finance/{finance['id']}", headers=headers_for(producer))
        assert resp.status_code == 403
        resp = client.delete(f"/api/finance/{finance['id']}", headers=headers_for(make_user("admin")))
        assert resp.status_code == 200
