"""Tests for project and episode routes."""

import pytest


# ── Fixtures ──────────────────────────────────────────────────────────────


def _payload(**overrides):
    payload = {
        "title": "Cinta di Semarang",
        "type": "Movie",
        "total_budget_plan": 500000,
        "target_income": 750000,
        "start_date": "2025-01-01",
        "deadline_date": "2025-06-30",
        "description": "Romantic drama",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def producer(make_user):
    return make_user("producer", name="Jane Producer")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


# ── Tests: Projects ───────────────────────────────────────────────────────


class TestCreateProject:

    def test_defaults(self, client, producer, headers_for):
        resp = client.post("/api/projects", json=_payload(producer_id=producer["id"]), headers=headers_for(producer))
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["global_status"] == "Draft"
        assert data["client_name"] == "Internal Project"
        assert data["investor_name"] == "Internal Funding"
        assert data["producer_name"] == "Jane Producer"
        assert data["total_budget_plan"] == 500000.0

    def test_linked_names(self, client, admin, make_user, headers_for):
        broadcaster = make_user("broadcaster", name="TV Nasional")
        investor = make_user("investor", name="Capital Ventures")
        resp = client.post(
            "/api/projects",
            json=_payload(client_id=broadcaster["id"], investor_id=investor["id"]),
            headers=headers_for(admin),
        )
        data = resp.json()["data"]
        assert data["client_name"] == "TV Nasional"
        assert data["investor_name"] == "Capital Ventures"

    def test_producer_must_be_producer(self, client, admin, make_user, headers_for):
        crew = make_user("crew")
        resp = client.post("/api/projects", json=_payload(producer_id=crew["id"]), headers=headers_for(admin))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Selected user is not a producer"

    def test_deadline_before_start(self, client, admin, headers_for):
        resp = client.post(
            "/api/projects",
            json=_payload(start_date="2025-06-01", deadline_date="2025-01-01"),
            headers=headers_for(admin),
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation error"
        assert "Deadline must be after start date" in body["errors"][0]["message"]

    @pytest.mark.parametrize("field,value", [
        ("type", "Documentary"),
        ("total_budget_plan", -1),
        ("title", ""),
    ])
    def test_invalid_fields(self, client, admin, headers_for, field, value):
        resp = client.post("/api/projects", json=_payload(**{field: value}), headers=headers_for(admin))
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == field

    def test_crew_cannot_create(self, client, make_user, headers_for):
        resp = client.post("/api/projects", json=_payload(), headers=headers_for(make_user("crew")))
        assert resp.status_code == 403


class TestListProjects:

    def test_scoped_and_paginated(self, client, producer, make_user, make_project, headers_for):
        for i in range(3):
            make_project(producer=producer, title=f"Mine {i}")
        make_project(producer=make_user("producer"), title="Theirs")

        resp = client.get("/api/projects?limit=2", headers=headers_for(producer))
        body = resp.json()
        assert body["total"] == 3
        assert body["count"] == 2
        assert body["totalPages"] == 2
        assert all(p["producer"]["id"] == producer["id"] for p in body["data"])

    def test_filters(self, client, admin, make_project, headers_for):
        make_project(type="Movie")
        make_project(type="Series")
        resp = client.get("/api/projects?type=Series", headers=headers_for(admin))
        assert [p["type"] for p in resp.json()["data"]] == ["Series"]

    def test_empty(self, client, make_user, headers_for):
        resp = client.get("/api/projects", headers=headers_for(make_user("investor")))
        body = resp.json()
        assert body["data"] == []
        assert body["total"] == 0


class TestProjectDetail:

    def test_detail_includes_progress(self, client, producer, make_project, make_task, headers_for):
        project = make_project(producer=producer)
        make_task(project, phase="Production")
        resp = client.get(f"/api/projects/{project['id']}", headers=headers_for(producer))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["progress_stats"] == {"Pre-Production": 0, "Production": 0, "Post-Production": 0}
        assert len(data["milestones"]) == 1
        assert data["producer"]["role"] == "producer"

    def test_other_producer_forbidden(self, client, producer, make_user, make_project, headers_for):
        project = make_project(producer=producer)
        resp = client.get(f"/api/projects/{project['id']}", headers=headers_for(make_user("producer")))
        assert resp.status_code == 403
        assert resp.json()["message"] == "You are not assigned as producer for this project"

    def test_not_found(self, client, admin, headers_for):
        resp = client.get("/api/projects/not-a-uuid", headers=headers_for(admin))
        assert resp.status_code == 404
        assert resp.json()["message"] == "Project not found"


class TestUpdateDeleteProject:

    def test_partial_update(self, client, producer, make_user, make_project, headers_for):
        broadcaster = make_user("broadcaster", name="TV Nasional")
        project = make_project(producer=producer, client=broadcaster, description="Old")
        headers = headers_for(producer)

        resp = client.put(
            f"/api/projects/{project['id']}",
            json={"global_status": "In Progress", "client_id": None, "description": None},
            headers=headers,
        )
        data = resp.json()["data"]
        assert data["global_status"] == "In Progress"
        assert data["client_id"] is None
        assert data["client_name"] == "Internal Project"
        assert data["description"] is None
        assert data["title"] == project["title"]

    def test_update_other_producer(self, client, producer, make_user, make_project, headers_for):
        project = make_project(producer=make_user("producer"))
        resp = client.put(f"/api/projects/{project['id']}", json={"title": "Hijack"}, headers=headers_for(producer))
        assert resp.status_code == 403

    def test_delete_admin_only(self, client, admin, producer, make_project, make_task, headers_for):
        project = make_project(producer=producer)
        make_task(project)

        resp = client.delete(f"/api/projects/{project['id']}", headers=headers_for(producer))
        assert resp.status_code == 403

        resp = client.delete(f"/api/projects/{project['id']}", headers=headers_for(admin))
        assert resp.status_code == 200
        resp = client.get(f"/api/projects/{project['id']}", headers=headers_for(admin))
        assert resp.status_code == 404


class TestRoleProjectViews:

    def test_broadcaster_projects(self, client, producer, make_user, make_project, headers_for):
        broadcaster = make_user("broadcaster")
        make_project(producer=producer, client=broadcaster, title="Ours")
        make_project(producer=producer, title="Not ours")

        resp = client.get("/api/projects/broadcaster/my-projects", headers=headers_for(broadcaster))
        body = resp.json()
        assert body["count"] == 1
        assert body["data"][0]["title"] == "Ours"
        assert body["data"][0]["producer"]["id"] == producer["id"]

    def test_broadcaster_route_role(self, client, producer, headers_for):
        resp = client.get("/api/projects/broadcaster/my-projects", headers=headers_for(producer))
        assert resp.status_code == 403

    def test_investor_investments(self, client, make_user, make_project, headers_for):
        investor = make_user("investor")
        make_project(investor=investor, total_budget_plan=2000)
        resp = client.get("/api/projects/investor/my-investments", headers=headers_for(investor))
        data = resp.json()["data"]
        assert data["totalInvestment"] == 2000.0
        assert len(data["projectStats"]) == 1


# ── Tests: Episodes ───────────────────────────────────────────────────────


class TestEpisodes:

    def test_create_and_list(self, client, producer, make_project, headers_for):
        series = make_project(producer=producer, type="Series")
        headers = headers_for(producer)
        for number in (2, 1):
            resp = client.post(
                "/api/episodes",
                json={"project_id": series["id"], "title": f"Episode {number}", "episode_number": number},
                headers=headers,
            )
            assert resp.status_code == 201
            assert resp.json()["data"]["producer_id"] == producer["id"]

        resp = client.get(f"/api/episodes?project_id={series['id']}", headers=headers)
        assert [e["episode_number"] for e in resp.json()["data"]] == [1, 2]

    def test_series_only(self, client, producer, make_project, headers_for):
        movie = make_project(producer=producer, type="Movie")
        resp = client.post(
            "/api/episodes",
            json={"project_id": movie["id"], "title": "Nope", "episode_number": 1},
            headers=headers_for(producer),
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Episodes can only be created for Series type projects"

    def test_duplicate_number(self, client, producer, make_project, headers_for):
        series = make_project(producer=producer, type="Series")
        payload = {"project_id": series["id"], "title": "Pilot", "episode_number": 1}
        headers = headers_for(producer)
        client.post("/api/episodes", json=payload, headers=headers)
        resp = client.post("/api/episodes", json=payload, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Episode number already exists for this project"

    def test_list_requires_project(self, client, producer, headers_for):
        resp = client.get("/api/episodes", headers=headers_for(producer))
        assert resp.status_code == 400
        assert resp.json()["message"] == "project_id is required"

    def test_update_and_delete(self, client, producer, make_project, episode_manager, headers_for):
        series = make_project(producer=producer, type="Series")
        episode = episode_manager.create_episode({"project_id": series["id"], "title": "Pilot", "episode_number": 1})
        headers = headers_for(producer)

        resp = client.put(
            f"/api/episodes/{episode['id']}",
            json={"status": "Filming", "airing_date": "2025-07-01"},
            headers=headers,
        )
        assert resp.json()["data"]["status"] == "Filming"
        assert resp.json()["data"]["airing_date"] == "2025-07-01"

        resp = client.get(f"/api/episodes/{episode['id']}", headers=headers)
        assert resp.json()["data"]["progress_stats"]["Production"] == 0

        resp = client.delete(f"/api/episodes/{episode['id']}", headers=headers)
        assert resp.status_code == 200
