"""Tests for the app factory: request limiting and the reload factory."""

from fastapi.testclient import TestClient

from dreamlight.api.app import build_app, create_app
from dreamlight.api.core import RateLimiter
from dreamlight.setting import Settings


class TestRateLimiter:

    def test_blocks_after_max(self):
        limiter = RateLimiter(2, 60)
        assert limiter.hit("10.0.0.1", now=0) == (True, 0)
        assert limiter.hit("10.0.0.1", now=1) == (True, 0)
        assert limiter.hit("10.0.0.1", now=20) == (False, 40)
        assert limiter.hit("10.0.0.2", now=20) == (True, 0)

    def test_window_resets(self):
        limiter = RateLimiter(1, 60)
        limiter.hit("a", now=0)
        assert limiter.hit("a", now=59)[0] is False
        assert limiter.hit("a", now=60) == (True, 0)

    def test_disabled(self):
        assert RateLimiter(0, 900).enabled is False
        assert RateLimiter(100, 900).enabled is True


class TestRateLimitedApp:

    def test_api_requests_limited(self, db_manager, tmp_path):
        settings = Settings(UPLOAD_PATH=str(tmp_path / "uploads"), RATE_LIMIT_MAX=3, RATE_LIMIT_WINDOW=900)
        client = TestClient(create_app(db_manager, settings))

        for _ in range(3):
            assert client.get("/api/health").status_code == 200

        resp = client.get("/api/health")
        assert resp.status_code == 429
        assert resp.json() == {"success": False, "message": "Too many requests, please try again later."}
        assert int(resp.headers["Retry-After"]) > 0

    def test_non_api_paths_not_counted(self, db_manager, tmp_path):
        settings = Settings(UPLOAD_PATH=str(tmp_path / "uploads"), RATE_LIMIT_MAX=1)
        client = TestClient(create_app(db_manager, settings))

        client.get("/docs")
        client.get("/docs")
        assert client.get("/api/health").status_code == 200

    def test_zero_max_disables_limit(self, client):
        for _ in range(150):
            assert client.get("/api/health").status_code == 200


class TestBuildApp:

    def test_uses_shared_database_manager(self, monkeypatch, db_manager):
        monkeypatch.setattr("dreamlight.core.db.get_database_manager", lambda: db_manager)
        app = build_app()
        assert app.state.db_manager is db_manager
        assert TestClient(app).get("/api/health").status_code == 200
