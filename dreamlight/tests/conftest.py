"""Shared fixtures: in-memory database, app client and data factories."""

import itertools
from datetime import date

import pytest
from fastapi.testclient import TestClient

from dreamlight.api.app import create_app
from dreamlight.core.auth import AuthService
from dreamlight.core.db import DatabaseManager
from dreamlight.core.finance import FinanceManager
from dreamlight.core.production import MilestoneManager
from dreamlight.core.project import CrewManager, EpisodeManager, ProjectManager
from dreamlight.core.serializers import user_to_dict
from dreamlight.setting import Settings


# ── Database / app ────────────────────────────────────────────────────────


@pytest.fixture
def db_manager():
    manager = DatabaseManager("sqlite://")
    manager.init_db()
    yield manager
    manager.drop_all()
    manager.engine.dispose()


@pytest.fixture
def settings(tmp_path):
    return Settings(UPLOAD_PATH=str(tmp_path / "uploads"), MAX_FILE_SIZE=1024, RATE_LIMIT_MAX=0)


@pytest.fixture
def client(db_manager, settings):
    return TestClient(create_app(db_manager, settings))


# ── Managers ──────────────────────────────────────────────────────────────


@pytest.fixture
def project_manager(db_manager):
    return ProjectManager(db_manager)


@pytest.fixture
def episode_manager(db_manager):
    return EpisodeManager(db_manager)


@pytest.fixture
def crew_manager(db_manager):
    return CrewManager(db_manager)


@pytest.fixture
def milestone_manager(db_manager):
    return MilestoneManager(db_manager)


@pytest.fixture
def finance_manager(db_manager):
    return FinanceManager(db_manager)


# ── Factories ─────────────────────────────────────────────────────────────


@pytest.fixture
def make_user(db_manager):
    """Create a user and return its dict (``id``, ``name``, ``email``, ``role``)."""
    counter = itertools.count(1)

    def _make(role="crew", name=None, email=None, password="secret123"):
        n = next(counter)
        with db_manager.get_session() as session:
            user = AuthService(session).register(
                name or f"{role.title()} {n}",
                email or f"{role}{n}@example.com",
                password,
                role,
            )
            return user_to_dict(user)

    return _make


@pytest.fixture
def headers_for(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {AuthService.create_token(user['id'], settings=settings)}"}

    return _headers


@pytest.fixture
def make_project(project_manager):
    def _make(producer=None, client=None, investor=None, type="Movie", **overrides):
        fields = {
            "title": "Test Production",
            "type": type,
            "producer_id": producer["id"] if producer else None,
            "client_id": client["id"] if client else None,
            "investor_id": investor["id"] if investor else None,
            "total_budget_plan": 1000,
            "target_income": 1500,
            "start_date": date(2025, 1, 1),
            "deadline_date": date(2025, 6, 30),
        }
        fields.update(overrides)
        return project_manager.create_project(fields)

    return _make


@pytest.fixture
def make_task(crew_manager, milestone_manager, make_user):
    """Create a milestone; assigns the crew member to the project first if needed."""

    def _make(project, crew=None, phase="Production", honor=100, episode=None, task_name="Task"):
        crew = crew or make_user("crew")
        if not crew_manager.check_assignment(project["id"], crew["id"])["isAssigned"]:
            crew_manager.assign_crew(project["id"], crew["id"], crew["id"])
        return milestone_manager.create_milestone({
            "project_id": project["id"],
            "user_id": crew["id"],
            "episode_id": episode["id"] if episode else None,
            "task_name": task_name,
            "phase_category": phase,
            "honor_amount": honor,
        })

    return _make


@pytest.fixture
def set_status(milestone_manager):
    """Force a task's work status (as admin)."""
    admin = {"id": "00000000-0000-0000-0000-000000000000", "role": "admin", "email": "root@example.com"}

    def _set(task, status):
        return milestone_manager.update_status(task["id"], status, admin)

    return _set
