"""Tests for crew assignment (manager and nested project routes)."""

import pytest

from dreamlight.core.exceptions import NotFoundError, ValidationError


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def project(make_user, make_project):
    return make_project(producer=make_user("producer"))


# ── Tests: CrewManager ────────────────────────────────────────────────────


class TestAssignCrew:

    def test_assign(self, crew_manager, admin, project, make_user):
        crew = make_user("crew", name="John Director")
        result = crew_manager.assign_crew(project["id"], crew["id"], admin["id"], "Director")
        assert result["message"] == f"John Director has been assigned to {project['title']}"
        assert result["data"]["role_in_project"] == "Director"
        assert result["data"]["assignedBy"]["id"] == admin["id"]
        assert crew_manager.check_assignment(project["id"], crew["id"])["isAssigned"] is True

    def test_only_crew_role(self, crew_manager, admin, project, make_user):
        with pytest.raises(ValidationError, match="Only crew members"):
            crew_manager.assign_crew(project["id"], make_user("investor")["id"], admin["id"])

    def test_no_duplicates(self, crew_manager, admin, project, make_user):
        crew = make_user("crew", name="Sarah")
        crew_manager.assign_crew(project["id"], crew["id"], admin["id"])
        with pytest.raises(ValidationError, match="Sarah is already assigned"):
            crew_manager.assign_crew(project["id"], crew["id"], admin["id"])

    def test_user_id_required(self, crew_manager, admin, project):
        with pytest.raises(ValidationError, match="user_id is required"):
            crew_manager.assign_crew(project["id"], None, admin["id"])

    def test_unknown_project(self, crew_manager, admin, make_user):
        with pytest.raises(NotFoundError):
            crew_manager.assign_crew("12345678-1234-5678-1234-567812345678", make_user()["id"], admin["id"])


class TestBulkAssign:

    def test_skips_existing(self, crew_manager, admin, project, make_user):
        crew = [make_user("crew") for _ in range(3)]
        crew_manager.assign_crew(project["id"], crew[0]["id"], admin["id"])

        result = crew_manager.bulk_assign_crew(project["id"], [c["id"] for c in crew], admin["id"])
        assert result["data"] == {"assigned": 2, "skipped": 1, "total": 3}
        assert crew_manager.list_project_crew(project["id"])["count"] == 3

    def test_rejects_non_crew(self, crew_manager, admin, project, make_user):
        ids = [make_user("crew")["id"], make_user("producer")["id"]]
        with pytest.raises(ValidationError, match="invalid or not crew members"):
            crew_manager.bulk_assign_crew(project["id"], ids, admin["id"])

    def test_rejects_empty(self, crew_manager, admin, project):
        with pytest.raises(ValidationError, match="non-empty array"):
            crew_manager.bulk_assign_crew(project["id"], [], admin["id"])


class TestRemoveCrew:

    def test_blocked_by_active_tasks(self, crew_manager, project, make_user, make_task):
        crew = make_user("crew", name="Mike")
        make_task(project, crew=crew)
        with pytest.raises(ValidationError, match="Cannot remove Mike. They have 1 active task"):
            crew_manager.remove_crew(project["id"], crew["id"])

    def test_allowed_when_tasks_done(self, crew_manager, project, make_user, make_task, set_status):
        crew = make_user("crew", name="Mike")
        set_status(make_task(project, crew=crew), "Done")
        assert crew_manager.remove_crew(project["id"], crew["id"]) == "Mike has been removed from the project"
        assert crew_manager.check_assignment(project["id"], crew["id"]) == {
            "isAssigned": False,
            "assignment": None,
        }

    def test_missing_assignment(self, crew_manager, project, make_user):
        with pytest.raises(NotFoundError, match="Crew assignment not found"):
            crew_manager.remove_crew(project["id"], make_user()["id"])


class TestCrewQueries:

    def test_available_excludes_assigned(self, crew_manager, admin, project, make_user):
        assigned = make_user("crew", name="Assigned")
        free = make_user("crew", name="Free")
        crew_manager.assign_crew(project["id"], assigned["id"], admin["id"])
        result = crew_manager.get_available_crew(project["id"])
        assert [u["id"] for u in result["data"]] == [free["id"]]

    def test_crew_projects_skip_completed(self, crew_manager, project_manager, admin, make_project, make_user):
        crew = make_user("crew")
        active = make_project(title="Active")
        done = make_project(title="Wrapped")
        crew_manager.assign_crew(active["id"], crew["id"], admin["id"])
        crew_manager.assign_crew(done["id"], crew["id"], admin["id"])
        project_manager.update_project(done["id"], {"global_status": "Completed"})

        result = crew_manager.get_crew_projects(crew["id"])
        assert [a["project"]["title"] for a in result["data"]] == ["Active"]

    def test_crew_projects_requires_crew(self, crew_manager, make_user):
        with pytest.raises(ValidationError, match="User is not a crew member"):
            crew_manager.get_crew_projects(make_user("producer")["id"])


# ── Tests: Routes ─────────────────────────────────────────────────────────


class TestCrewRoutes:

    def test_assign_and_list(self, client, admin, project, make_user, headers_for):
        crew = make_user("crew")
        resp = client.post(
            f"/api/projects/{project['id']}/crew",
            json={"user_id": crew["id"], "role_in_project": "Editor"},
            headers=headers_for(admin),
        )
        assert resp.status_code == 201

        resp = client.get(f"/api/projects/{project['id']}/crew", headers=headers_for(admin))
        body = resp.json()
        assert body["count"] == 1
        assert body["data"][0]["user"]["role"] == "crew"

    def test_producer_cannot_assign(self, client, project, make_user, headers_for):
        resp = client.post(
            f"/api/projects/{project['id']}/crew",
            json={"user_id": make_user("crew")["id"]},
            headers=headers_for(make_user("producer")),
        )
        assert resp.status_code == 403

    def test_foreign_producer_cannot_list(self, client, project, make_user, headers_for):
        resp = client.get(f"/api/projects/{project['id']}/crew", headers=headers_for(make_user("producer")))
        assert resp.status_code == 403

    def test_check_and_remove(self, client, admin, project, make_user, headers_for):
        crew = make_user("crew")
        client.post(f"/api/projects/{project['id']}/crew/bulk", json={"user_ids": [crew["id"]]}, headers=headers_for(admin))

        resp = client.get(f"/api/projects/{project['id']}/crew/check/{crew['id']}", headers=headers_for(crew))
        assert resp.json()["data"]["isAssigned"] is True

        resp = client.delete(f"/api/projects/{project['id']}/crew/{crew['id']}", headers=headers_for(admin))
        assert resp.status_code == 200
        assert resp.json()["message"].endswith("has been removed from the project")
