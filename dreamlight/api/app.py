"""FastAPI application factory for Dreamlight.

Creates and configures the FastAPI app with rate limiting, CORS, request logging,
error envelopes and all route modules registered.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..core.asset import AssetManager, AssetStorage
from ..core.dashboard import DashboardService
from ..core.finance import FinanceManager
from ..core.production import MilestoneManager
from ..core.project import CrewManager, EpisodeManager, ProjectManager
from ..core.user import UserManager
from ..setting import Settings, get_settings
from .core import RateLimiter, rate_limited, register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(db_manager, settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_manager: DatabaseManager instance
        settings: Settings instance (defaults to ``get_settings()``)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Dreamlight API",
        description="Production management for media and TV projects",
        version="1.0.0",
    )

    limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window)

    @app.middleware("http")
    async def limit_api_requests(request: Request, call_next):
        if limiter.enabled and request.url.path.startswith("/api/"):
            client = request.client.host if request.client else "unknown"
            allowed, retry_after = limiter.hit(client)
            if not allowed:
                logger.warning(f"Rate limit exceeded for {client} on {request.url.path}")
                return rate_limited(retry_after)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        )
        return response

    register_exception_handlers(app)

    # Store shared dependencies on app state
    milestone_manager = MilestoneManager(db_manager)
    finance_manager = FinanceManager(db_manager)

    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.project_manager = ProjectManager(db_manager)
    app.state.episode_manager = EpisodeManager(db_manager)
    app.state.crew_manager = CrewManager(db_manager)
    app.state.milestone_manager = milestone_manager
    app.state.finance_manager = finance_manager
    app.state.asset_manager = AssetManager(
        db_manager,
        AssetStorage(settings.upload_path, settings.max_file_size),
    )
    app.state.user_manager = UserManager(db_manager)
    app.state.dashboard_service = DashboardService(db_manager, milestone_manager, finance_manager)

    # Register routers
    from .routes.auth import router as auth_router
    from .routes.users import router as users_router
    from .routes.projects import router as projects_router
    from .routes.project_crew import router as project_crew_router
    from .routes.episodes import router as episodes_router
    from .routes.milestones import router as milestones_router
    from .routes.finance import router as finance_router
    from .routes.assets import router as assets_router
    from .routes.dashboard import router as dashboard_router

    app.include_router(auth_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(project_crew_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(episodes_router, prefix="/api")
    app.include_router(milestones_router, prefix="/api")
    app.include_router(finance_router, prefix="/api")
    app.include_router(assets_router, prefix="/api")
    app.include_router(dashboard_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "OK",
            "message": "Dreamlight API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    logger.info("FastAPI app created with all routes registered")
    return app


def build_app() -> FastAPI:
    """Zero-argument factory for ``uvicorn --factory`` (used by reload mode)."""
    from ..core.db import get_database_manager
    return create_app(get_database_manager(), get_settings())
