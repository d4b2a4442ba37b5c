import argparse
import logging
import sys

from .core.db import get_database_manager, wait_for_db


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("psycopg2").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def main():
    """Main entry point for Dreamlight."""
    from .setting import get_settings
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Dreamlight - Production Management API")
    parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port for the API server"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode (auto-reload)"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before starting"
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Load the demo data set and exit"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger.info(f"Starting Dreamlight ({settings.env})")

    db_manager = get_database_manager()
    if not wait_for_db(db_manager):
        logger.error("Cannot start without a database")
        sys.exit(1)

    if args.init_db or args.seed:
        db_manager.init_db()

    if args.seed:
        from .core.db.seed import seed_database
        if seed_database(db_manager):
            print("\n  Demo data loaded. Login credentials are listed in dreamlight/core/db/seed.py\n")
        return

    # Launch with uvicorn
    import uvicorn

    logger.info(f"Starting FastAPI server on http://0.0.0.0:{args.port}")
    print(f"\n  Dreamlight is running at: http://localhost:{args.port}")
    print(f"  API docs at: http://localhost:{args.port}/docs\n")

    if args.debug:
        # reload requires an import string
        uvicorn.run(
            "dreamlight.api.app:build_app",
            factory=True,
            host="0.0.0.0",
            port=args.port,
            log_level=args.log_level.lower(),
            reload=True,
        )
        return

    from .api.app import create_app
    uvicorn.run(
        create_app(db_manager, settings),
        host="0.0.0.0",
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
