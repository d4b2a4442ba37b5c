"""
SQLAlchemy ORM Models for Dreamlight

Production-management models:
- User: Accounts with a single role (admin, producer, crew, broadcaster, investor)
- Project: Movie/Series/Event/TVC productions with budget and owners
- Episode: Numbered episodes of a Series project
- Milestone: A crew task within a project (optionally an episode)
- Finance: Income/expense transactions per project
- Asset: Uploaded files or external links attached to a project/episode
- ProjectCrew: Crew users assigned to a project
"""

from sqlalchemy import (
    Column, String, Integer, Text, TIMESTAMP, Date, ForeignKey, BigInteger,
    Numeric, Index, TypeDecorator, Boolean, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID
import uuid
from datetime import datetime, timezone

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# UUID type that works with both PostgreSQL and SQLite
class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        else:
            if isinstance(value, uuid.UUID):
                return str(value)
            else:
                return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value
        else:
            if isinstance(value, uuid.UUID):
                return value
            else:
                return uuid.UUID(value)


# =============================================================================
# Users
# =============================================================================

class User(Base):
    """Application user. Exactly one role per user."""
    __tablename__ = "users"
    __table_args__ = (
        Index('idx_users_role', 'role'),
    )

    user_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default='crew', nullable=False)   # admin, producer, crew, broadcaster, investor
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    milestones = relationship("Milestone", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    crew_assignments = relationship(
        "ProjectCrew", foreign_keys="[ProjectCrew.user_id]", back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self):
        return f"<User(user_id={self.user_id}, email='{self.email}', role='{self.role}')>"


# =============================================================================
# Projects
# =============================================================================

class Project(Base):
    """A production (movie, series, event or TV commercial)."""
    __tablename__ = "projects"
    __table_args__ = (
        Index('idx_projects_producer', 'producer_id'),
        Index('idx_projects_client', 'client_id'),
        Index('idx_projects_investor', 'investor_id'),
        Index('idx_projects_status', 'global_status'),
    )

    project_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    client_id = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    client_name = Column(String(255), nullable=True)
    investor_id = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    investor_name = Column(String(255), nullable=True)
    producer_id = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    producer_name = Column(String(255), nullable=True)
    type = Column(String(20), nullable=False)                               # Movie, Series, Event, TVC
    total_budget_plan = Column(Numeric(15, 2), default=0, nullable=False)
    target_income = Column(Numeric(15, 2), default=0, nullable=False)
    start_date = Column(Date, nullable=False)
    deadline_date = Column(Date, nullable=False)
    description = Column(Text)
    global_status = Column(String(20), default='Draft', nullable=False)    # Draft, In Progress, Completed, On Hold
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    client = relationship("User", foreign_keys=[client_id])
    investor = relationship("User", foreign_keys=[investor_id])
    producer = relationship("User", foreign_keys=[producer_id])
    episodes = relationship(
        "Episode", back_populates="project", cascade="all, delete-orphan",
        passive_deletes=True, order_by="Episode.episode_number",
    )
    milestones = relationship("Milestone", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
    finances = relationship("Finance", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
    assets = relationship("Asset", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
    crew = relationship("ProjectCrew", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Project(project_id={self.project_id}, title='{self.title}', type='{self.type}')>"


class Episode(Base):
    """Numbered episode of a Series project."""
    __tablename__ = "episodes"
    __table_args__ = (
        Index('idx_episodes_project', 'project_id'),
        UniqueConstraint('project_id', 'episode_number', name='uq_project_episode_number'),
    )

    episode_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    producer_id = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    producer_name = Column(String(255), nullable=True)
    title = Column(String(255), nullable=False)
    episode_number = Column(Integer, nullable=False)
    status = Column(String(20), default='Scripting', nullable=False)   # Scripting, Filming, Editing, Preview Ready, Master Ready
    synopsis = Column(Text)
    airing_date = Column(Date, nullable=True)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="episodes")
    milestones = relationship("Milestone", back_populates="episode", cascade="all, delete-orphan", passive_deletes=True)
    assets = relationship("Asset", back_populates="episode", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Episode(episode_id={self.episode_id}, number={self.episode_number}, title='{self.title}')>"


# =============================================================================
# Crew Work
# =============================================================================

class Milestone(Base):
    """A task assigned to one crew member within a project/episode."""
    __tablename__ = "milestones"
    __table_args__ = (
        Index('idx_milestones_project', 'project_id'),
        Index('idx_milestones_episode', 'episode_id'),
        Index('idx_milestones_user', 'user_id'),
        Index('idx_milestones_status', 'work_status', 'payment_status'),
    )

    milestone_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    episode_id = Column(UUID(), ForeignKey("episodes.episode_id", ondelete="CASCADE"), nullable=True)
    user_id = Column(UUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    task_name = Column(String(255), nullable=False)
    phase_category = Column(String(30), nullable=False)             # Pre-Production, Production, Post-Production, Master
    work_status = Column(String(30), default='Pending', nullable=False)
    honor_amount = Column(Numeric(15, 2), default=0, nullable=False)
    payment_status = Column(String(20), default='Unpaid', nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="milestones")
    episode = relationship("Episode", back_populates="milestones")
    user = relationship("User", back_populates="milestones")

    def __repr__(self):
        return f"<Milestone(milestone_id={self.milestone_id}, task='{self.task_name}', status='{self.work_status}')>"


class ProjectCrew(Base):
    """Crew user assigned to a project; prerequisite for receiving milestones."""
    __tablename__ = "project_crew"
    __table_args__ = (
        Index('idx_project_crew_user', 'user_id'),
        UniqueConstraint('project_id', 'user_id', name='uq_project_crew'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    role_in_project = Column(String(255), nullable=True)             # e.g. "Lead Editor"
    assigned_by = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="crew")
    user = relationship("User", foreign_keys=[user_id], back_populates="crew_assignments")
    assigner = relationship("User", foreign_keys=[assigned_by])

    def __repr__(self):
        return f"<ProjectCrew(project_id={self.project_id}, user_id={self.user_id})>"


# =============================================================================
# Finance & Assets
# =============================================================================

class Finance(Base):
    """Income or expense transaction tied to a project."""
    __tablename__ = "finances"
    __table_args__ = (
        Index('idx_finances_project', 'project_id', 'transaction_date'),
    )

    finance_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)                        # Expense, Income
    category = Column(String(255), nullable=False)
    amount = Column(Numeric(15, 2), default=0, nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(Text)
    status = Column(String(20), default='Pending', nullable=False)   # Paid, Received, Pending
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="finances")

    def __repr__(self):
        return f"<Finance(finance_id={self.finance_id}, type='{self.type}', amount={self.amount})>"


class Asset(Base):
    """Uploaded file or external link attached to a project/episode."""
    __tablename__ = "assets"
    __table_args__ = (
        Index('idx_assets_project', 'project_id'),
        Index('idx_assets_episode', 'episode_id'),
        CheckConstraint(
            "file_path IS NOT NULL OR external_url IS NOT NULL",
            name="ck_assets_file_or_link",
        ),
    )

    asset_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    episode_id = Column(UUID(), ForeignKey("episodes.episode_id", ondelete="CASCADE"), nullable=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=True)                  # null for external links
    file_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    category = Column(String(30), nullable=False)                    # Script, Contract, Preview Video, Master Video, Other
    is_public_to_broadcaster = Column(Boolean, default=False, nullable=False)
    is_external = Column(Boolean, default=False, nullable=False)
    external_url = Column(String(500), nullable=True)
    link_type = Column(String(20), nullable=True)                    # google_drive, dropbox, youtube, vimeo, onedrive, other
    uploaded_by = Column(UUID(), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="assets")
    episode = relationship("Episode", back_populates="assets")
    uploader = relationship("User", foreign_keys=[uploaded_by])

    def __repr__(self):
        return f"<Asset(asset_id={self.asset_id}, file='{self.file_name}', external={self.is_external})>"
