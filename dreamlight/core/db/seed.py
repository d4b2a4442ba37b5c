"""Demo data for local development.

Creates one user per role (three crew), three projects (movie, series,
TVC), episodes for the series, crew assignments, tasks and a few finance
transactions. Safe to run twice: it does nothing once the admin account
exists.

Login credentials:
    admin@dreamlight.com         / admin123
    producer@dreamlight.com      / producer123
    john@dreamlight.com          / crew123   (also sarah@, mike@)
    broadcaster@tvnasional.com   / broadcaster123
    investor@capital.com         / investor123
"""

import logging
from datetime import date

from ..auth.auth_service import AuthService
from ..constants import DEFAULT_CLIENT_NAME, DEFAULT_INVESTOR_NAME
from .db import DatabaseManager
from .models import Episode, Finance, Milestone, Project, ProjectCrew, User

logger = logging.getLogger(__name__)

SEED_USERS = [
    ("admin", "Admin Dreamlight", "admin@dreamlight.com", "admin123", "admin"),
    ("producer", "Jane Producer", "producer@dreamlight.com", "producer123", "producer"),
    ("john", "John Director", "john@dreamlight.com", "crew123", "crew"),
    ("sarah", "Sarah Cinematographer", "sarah@dreamlight.com", "crew123", "crew"),
    ("mike", "Mike Editor", "mike@dreamlight.com", "crew123", "crew"),
    ("broadcaster", "TV Nasional", "broadcaster@tvnasional.com", "broadcaster123", "broadcaster"),
    ("investor", "Capital Ventures", "investor@capital.com", "investor123", "investor"),
]


def seed_database(db_manager: DatabaseManager) -> bool:
    """Insert the demo data set. Returns False when data already exists."""
    with db_manager.get_session() as session:
        if session.query(User).filter(User.email == "admin@dreamlight.com").first():
            logger.info("Seed data already present, skipping")
            return False

        users = {}
        for key, name, email, password, role in SEED_USERS:
            users[key] = User(
                name=name,
                email=email,
                password_hash=AuthService.hash_password(password),
                role=role,
            )
            session.add(users[key])
        session.flush()

        producer = users["producer"]
        broadcaster = users["broadcaster"]
        investor = users["investor"]

        movie = Project(
            title="Cinta di Semarang",
            client_id=broadcaster.user_id,
            client_name=broadcaster.name,
            investor_id=investor.user_id,
            investor_name=investor.name,
            producer_id=producer.user_id,
            producer_name=producer.name,
            type="Movie",
            total_budget_plan=500000000,
            target_income=750000000,
            start_date=date(2025, 1, 1),
            deadline_date=date(2025, 6, 30),
            description="Romantic drama set in Semarang",
            global_status="In Progress",
        )
        series = Project(
            title="Keluarga Cemara Reborn",
            client_id=broadcaster.user_id,
            client_name=broadcaster.name,
            investor_id=investor.user_id,
            investor_name=investor.name,
            producer_id=producer.user_id,
            producer_name=producer.name,
            type="Series",
            total_budget_plan=2000000000,
            target_income=3000000000,
            start_date=date(2025, 2, 1),
            deadline_date=date(2025, 12, 31),
            description="Family drama series, 20 episodes",
            global_status="In Progress",
        )
        tvc = Project(
            title="TVC Bank Mandiri",
            client_name=DEFAULT_CLIENT_NAME,
            investor_name=DEFAULT_INVESTOR_NAME,
            type="TVC",
            total_budget_plan=100000000,
            target_income=150000000,
            start_date=date(2025, 1, 15),
            deadline_date=date(2025, 2, 15),
            description="Television commercial for Bank Mandiri",
            global_status="Draft",
        )
        session.add_all([movie, series, tvc])
        session.flush()

        episodes = []
        for number, title, status, airing in [
            (1, "Pilot - Back to the Village", "Editing", date(2025, 7, 1)),
            (2, "New Challenges", "Filming", date(2025, 7, 8)),
            (3, "Friendship", "Scripting", date(2025, 7, 15)),
        ]:
            episode = Episode(
                project_id=series.project_id,
                producer_id=producer.user_id,
                producer_name=producer.name,
                title=title,
                episode_number=number,
                status=status,
                airing_date=airing,
            )
            episodes.append(episode)
        session.add_all(episodes)
        session.flush()

        for project, crew_keys in [(movie, ["john", "sarah", "mike"]), (series, ["john", "sarah", "mike"])]:
            for key in crew_keys:
                session.add(ProjectCrew(
                    project_id=project.project_id,
                    user_id=users[key].user_id,
                    assigned_by=users["admin"].user_id,
                ))
        session.flush()

        tasks = [
            (movie, None, "john", "Director", "Production", "In Progress", 50000000, "Unpaid"),
            (movie, None, "sarah", "Cinematographer", "Production", "In Progress", 30000000, "Unpaid"),
            (movie, None, "mike", "Video Editor", "Post-Production", "Pending", 20000000, "Unpaid"),
            (series, episodes[0], "john", "Director Eps 1", "Production", "Done", 15000000, "Paid"),
            (series, episodes[0], "mike", "Editor Eps 1", "Post-Production", "In Progress", 10000000, "Unpaid"),
            (series, episodes[1], "sarah", "DOP Eps 2", "Production", "In Progress", 12000000, "Unpaid"),
        ]
        for project, episode, key, name, phase, status, honor, payment in tasks:
            session.add(Milestone(
                project_id=project.project_id,
                episode_id=episode.episode_id if episode else None,
                user_id=users[key].user_id,
                task_name=name,
                phase_category=phase,
                work_status=status,
                honor_amount=honor,
                payment_status=payment,
            ))

        finances = [
            (movie, "Income", "Term 1 from TV Nasional", 250000000, date(2025, 1, 15), "Received"),
            (movie, "Expense", "Equipment Rental", 50000000, date(2025, 1, 20), "Paid"),
            (movie, "Expense", "Shooting Location", 30000000, date(2025, 2, 1), "Paid"),
            (series, "Income", "Term 1", 500000000, date(2025, 2, 1), "Received"),
            (series, "Expense", "Production Episodes 1-3", 200000000, date(2025, 2, 15), "Paid"),
        ]
        for project, ftype, category, amount, tx_date, status in finances:
            session.add(Finance(
                project_id=project.project_id,
                type=ftype,
                category=category,
                amount=amount,
                transaction_date=tx_date,
                status=status,
            ))

    logger.info("Seeded 7 users, 3 projects, 3 episodes, 6 milestones, 5 finance transactions")
    return True
