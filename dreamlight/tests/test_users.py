"""Tests for user administration and the demo seed."""

import pytest

from dreamlight.core.db.seed import seed_database
from dreamlight.core.db.models import Milestone, Project, User
from dreamlight.core.exceptions import ValidationError
from dreamlight.core.user import UserManager


@pytest.fixture
def user_manager(db_manager):
    return UserManager(db_manager)


class TestUserManager:

    def test_list_filters(self, user_manager, make_user):
        make_user("crew", name="John Director")
        make_user("crew", name="Sarah Camera")
        make_user("producer", name="Jane Producer")

        assert user_manager.list_users(role="crew")["total"] == 2
        result = user_manager.list_users(search="sarah")
        assert [u["name"] for u in result["data"]] == ["Sarah Camera"]

    def test_update_email_conflict(self, user_manager, make_user):
        make_user(email="taken@example.com")
        user = make_user()
        with pytest.raises(ValidationError, match="Email already in use"):
            user_manager.update_user(user["id"], {"email": "TAKEN@example.com"})

    def test_update_role(self, user_manager, make_user):
        user = make_user("crew")
        assert user_manager.update_user(user["id"], {"role": "producer"})["role"] == "producer"

    def test_cannot_delete_self(self, user_manager, make_user):
        admin = make_user("admin")
        with pytest.raises(ValidationError, match="You cannot delete your own account"):
            user_manager.delete_user(admin["id"], current_user_id=admin["id"])

    def test_delete_blocked_by_active_tasks(self, user_manager, make_user, make_project, make_task):
        admin = make_user("admin")
        crew = make_user("crew")
        make_task(make_project(), crew=crew)
        with pytest.raises(ValidationError, match="Cannot delete user with 1 active task"):
            user_manager.delete_user(crew["id"], current_user_id=admin["id"])

    def test_delete_unlinks_projects(self, db_manager, user_manager, make_user, make_project):
        admin = make_user("admin")
        producer = make_user("producer")
        project = make_project(producer=producer)

        assert user_manager.delete_user(producer["id"], current_user_id=admin["id"]) is True
        with db_manager.get_session() as session:
            assert session.query(User).count() == 1
            stored = session.query(Project).one()
            assert str(stored.project_id) == project["id"]
            assert stored.producer_id is None

    def test_stats(self, user_manager, make_user, make_project, make_task, set_status, finance_manager):
        crew = make_user("crew")
        project = make_project()
        paid = make_task(project, crew=crew, honor=100)
        unpaid = make_task(project, crew=crew, honor=50)
        make_task(project, crew=crew, honor=10)
        set_status(paid, "Done")
        set_status(unpaid, "Done")
        finance_manager.pay_crew(paid["id"])

        stats = user_manager.get_user_stats(crew["id"])
        assert stats == {
            "totalTasks": 3,
            "completedTasks": 2,
            "activeTasks": 1,
            "totalEarned": 100.0,
            "pendingPayment": 50.0,
            "completionRate": 67,
        }


class TestUserRoutes:

    def test_admin_only(self, client, make_user, headers_for):
        assert client.get("/api/users", headers=headers_for(make_user("producer"))).status_code == 403
        resp = client.get("/api/users", headers=headers_for(make_user("admin")))
        assert resp.status_code == 200
        assert resp.json()["total"] == 2

    def test_auth_alias(self, client, make_user, headers_for):
        admin = make_user("admin")
        crew = make_user("crew")
        resp = client.put(f"/api/auth/users/{crew['id']}", json={"name": "Renamed"}, headers=headers_for(admin))
        assert resp.json()["data"]["name"] == "Renamed"

        resp = client.delete(f"/api/auth/users/{crew['id']}", headers=headers_for(admin))
        assert resp.status_code == 200
        assert client.get(f"/api/users/{crew['id']}", headers=headers_for(admin)).status_code == 404

    def test_crew_projects(self, client, make_user, make_project, crew_manager, headers_for):
        admin = make_user("admin")
        crew = make_user("crew")
        project = make_project()
        crew_manager.assign_crew(project["id"], crew["id"], admin["id"])

        resp = client.get(f"/api/users/{crew['id']}/projects", headers=headers_for(admin))
        assert resp.json()["count"] == 1


class TestSeed:

    def test_seed_is_idempotent(self, db_manager):
        assert seed_database(db_manager) is True
        assert seed_database(db_manager) is False

        with db_manager.get_session() as session:
            assert session.query(User).count() == 7
            assert session.query(Project).count() == 3
            assert session.query(Milestone).count() == 6
