"""Tests for milestones: creation rules, task board and approval workflow."""

import pytest

from dreamlight.core.exceptions import AuthorizationError, NotFoundError, ValidationError


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def producer(make_user):
    return make_user("producer")


@pytest.fixture
def crew(make_user):
    return make_user("crew", name="John Director")


@pytest.fixture
def project(producer, make_project):
    return make_project(producer=producer)


@pytest.fixture
def task(project, crew, make_task):
    return make_task(project, crew=crew, honor=500, task_name="Direct scene 1")


# ── Tests: MilestoneManager ───────────────────────────────────────────────


class TestCreateMilestone:

    def test_defaults(self, task, crew):
        assert task["work_status"] == "Pending"
        assert task["payment_status"] == "Unpaid"
        assert task["honor_amount"] == 500.0
        assert task["user"]["id"] == crew["id"]

    def test_assignee_must_be_on_project(self, milestone_manager, project, make_user):
        outsider = make_user("crew", name="Outsider")
        with pytest.raises(ValidationError, match="Outsider is not assigned to this project"):
            milestone_manager.create_milestone({
                "project_id": project["id"],
                "user_id": outsider["id"],
                "task_name": "Edit",
                "phase_category": "Post-Production",
            })

    def test_foreign_episode(self, milestone_manager, project, crew, task, make_project, episode_manager):
        other_series = make_project(type="Series")
        episode = episode_manager.create_episode({"project_id": other_series["id"], "title": "X", "episode_number": 1})
        with pytest.raises(NotFoundError, match="does not belong to this project"):
            milestone_manager.create_milestone({
                "project_id": project["id"],
                "user_id": crew["id"],
                "episode_id": episode["id"],
                "task_name": "Edit",
                "phase_category": "Post-Production",
            })

    def test_other_producer_forbidden(self, milestone_manager, project, crew, task, make_user):
        with pytest.raises(AuthorizationError):
            milestone_manager.create_milestone({
                "project_id": project["id"],
                "user_id": crew["id"],
                "task_name": "Edit",
                "phase_category": "Production",
            }, make_user("producer"))


class TestStatusWorkflow:

    def test_crew_moves_own_task(self, milestone_manager, task, crew):
        result = milestone_manager.update_status(task["id"], "In Progress", crew)
        assert result["work_status"] == "In Progress"
        result = milestone_manager.update_status(task["id"], "Waiting Approval", crew)
        assert result["work_status"] == "Waiting Approval"

    def test_crew_cannot_mark_done(self, milestone_manager, task, crew):
        with pytest.raises(ValidationError, match="producer approval"):
            milestone_manager.update_status(task["id"], "Done", crew)

    def test_crew_cannot_touch_others(self, milestone_manager, task, make_user):
        with pytest.raises(AuthorizationError, match="You do not have access to this task"):
            milestone_manager.update_status(task["id"], "In Progress", make_user("crew"))

    @pytest.mark.parametrize("role", ["investor", "broadcaster", "producer"])
    def test_non_owner_cannot_move_task(self, milestone_manager, task, make_user, role):
        with pytest.raises(AuthorizationError):
            milestone_manager.update_status(task["id"], "Done", make_user(role))
        assert milestone_manager.get_milestone(task["id"])["work_status"] == "Pending"

    def test_producer_moves_task_on_own_project(self, milestone_manager, task, producer):
        assert milestone_manager.update_status(task["id"], "Done", producer)["work_status"] == "Done"

    @pytest.mark.parametrize("value,message", [(None, "work_status is required"), ("Paused", "Invalid work_status")])
    def test_invalid_status(self, milestone_manager, task, producer, value, message):
        with pytest.raises(ValidationError, match=message):
            milestone_manager.update_status(task["id"], value, producer)

    def test_approve(self, milestone_manager, task, crew, producer):
        milestone_manager.update_status(task["id"], "Waiting Approval", crew)
        assert milestone_manager.get_pending_approvals(producer)["count"] == 1

        result = milestone_manager.approve(task["id"], producer)
        assert result["work_status"] == "Done"
        assert milestone_manager.get_pending_approvals(producer)["count"] == 0

    def test_reject(self, milestone_manager, task, crew, producer):
        milestone_manager.update_status(task["id"], "Waiting Approval", crew)
        result = milestone_manager.reject(task["id"], producer, "Audio is out of sync")
        assert result["work_status"] == "In Progress"

    def test_review_requires_waiting(self, milestone_manager, task, producer):
        with pytest.raises(ValidationError, match="Only tasks waiting for approval"):
            milestone_manager.approve(task["id"], producer)

    def test_review_by_other_producer(self, milestone_manager, task, crew, make_user):
        milestone_manager.update_status(task["id"], "Waiting Approval", crew)
        with pytest.raises(AuthorizationError):
            milestone_manager.approve(task["id"], make_user("producer"))

    def test_pending_approvals_scoped(self, milestone_manager, task, crew, make_user):
        milestone_manager.update_status(task["id"], "Waiting Approval", crew)
        assert milestone_manager.get_pending_approvals(make_user("producer"))["count"] == 0
        assert milestone_manager.get_pending_approvals(make_user("admin"))["count"] == 1


class TestCrewTasks:

    def test_active_and_history(self, milestone_manager, project, crew, task, make_task, set_status, finance_manager):
        finished = make_task(project, crew=crew, honor=300, task_name="Finished")
        set_status(finished, "Done")
        finance_manager.pay_crew(finished["id"])

        active = milestone_manager.get_crew_tasks(crew["id"])
        assert [t["task_name"] for t in active["tasks"]] == ["Direct scene 1"]
        assert active["stats"] == {"pendingPayment": 500.0, "receivedPayment": 300.0, "activeTaskCount": 1}

        history = milestone_manager.get_crew_tasks(crew["id"], "history")
        assert [t["task_name"] for t in history["tasks"]] == ["Finished"]

    def test_list_forces_own_tasks_for_crew(self, milestone_manager, project, crew, task, make_task):
        make_task(project, task_name="Someone else")
        assert milestone_manager.list_milestones(crew)["count"] == 1
        assert milestone_manager.list_milestones({"id": crew["id"], "role": "admin"})["count"] == 2

    def test_list_scoped_to_visible_projects(self, milestone_manager, project, producer, task, make_user, make_project, make_task):
        broadcaster = make_user("broadcaster")
        assert milestone_manager.list_milestones(broadcaster)["count"] == 0
        assert milestone_manager.list_milestones(make_user("producer"))["count"] == 0
        assert milestone_manager.list_milestones(producer)["count"] == 1

        funded = make_project(client=broadcaster)
        make_task(funded, task_name="Client visible")
        result = milestone_manager.list_milestones(broadcaster)
        assert [t["task_name"] for t in result["data"]] == ["Client visible"]


# ── Tests: Routes ─────────────────────────────────────────────────────────


class TestMilestoneRoutes:

    def test_create_validation(self, client, project, crew, task, producer, headers_for):
        resp = client.post(
            "/api/milestones",
            json={"project_id": project["id"], "user_id": crew["id"], "task_name": "X", "phase_category": "Wrap"},
            headers=headers_for(producer),
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "phase_category"

    def test_create(self, client, project, crew, task, producer, headers_for):
        resp = client.post(
            "/api/milestones",
            json={
                "project_id": project["id"],
                "user_id": crew["id"],
                "task_name": "Color grading",
                "phase_category": "Post-Production",
                "honor_amount": 250,
            },
            headers=headers_for(producer),
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["phase_category"] == "Post-Production"

    def test_board_flow(self, client, task, crew, producer, headers_for):
        crew_headers = headers_for(crew)
        resp = client.patch(
            f"/api/milestones/{task['id']}/status",
            json={"work_status": "Waiting Approval"},
            headers=crew_headers,
        )
        assert resp.status_code == 200

        resp = client.get("/api/milestones/pending-approvals", headers=headers_for(producer))
        assert resp.json()["count"] == 1

        resp = client.post(f"/api/milestones/{task['id']}/reject", json={"reason": "Redo"}, headers=headers_for(producer))
        assert resp.json()["data"]["work_status"] == "In Progress"

        client.patch(f"/api/milestones/{task['id']}/status", json={"work_status": "Waiting Approval"}, headers=crew_headers)
        resp = client.post(f"/api/milestones/{task['id']}/approve", headers=headers_for(producer))
        assert resp.json()["data"]["work_status"] == "Done"

    def test_my_tasks(self, client, task, crew, headers_for):
        resp = client.get("/api/milestones/crew/my-tasks", headers=headers_for(crew))
        body = resp.json()
        assert body["count"] == 1
        assert body["stats"]["activeTaskCount"] == 1
        assert body["data"][0]["project"]["id"] == task["project_id"]

    def test_my_tasks_crew_only(self, client, producer, headers_for):
        resp = client.get("/api/milestones/crew/my-tasks", headers=headers_for(producer))
        assert resp.status_code == 403

    def test_crew_cannot_delete(self, client, task, crew, headers_for):
        resp = client.delete(f"/api/milestones/{task['id']}", headers=headers_for(crew))
        assert resp.status_code == 403

    def test_investor_cannot_patch_status(self, client, task, make_user, headers_for):
        resp = client.patch(
            f"/api/milestones/{task['id']}/status",
            json={"work_status": "Done"},
            headers=headers_for(make_user("investor")),
        )
        assert resp.status_code == 403

    def test_list_hides_unrelated_projects(self, client, task, make_user, headers_for):
        broadcaster = make_user("broadcaster")
        assert client.get(f"/api/milestones/{task['id']}", headers=headers_for(broadcaster)).status_code == 403
        resp = client.get("/api/milestones", headers=headers_for(broadcaster))
        assert resp.json()["count"] == 0
