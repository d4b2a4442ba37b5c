"""initial production schema

Revision ID: 3c9e1a7b5d20
Revises:
Create Date: 2026-10-19 09:12:44.301127

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c9e1a7b5d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('user_id', _uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='crew'),
        *_timestamps(),
    )
    op.create_index('idx_users_role', 'users', ['role'])

    op.create_table(
        'projects',
        sa.Column('project_id', _uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('client_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_name', sa.String(255), nullable=True),
        sa.Column('investor_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True),
        sa.Column('investor_name', sa.String(255), nullable=True),
        sa.Column('producer_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True),
        sa.Column('producer_name', sa.String(255), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('total_budget_plan', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('target_income', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('deadline_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('global_status', sa.String(20), nullable=False, server_default='Draft'),
        *_timestamps(),
    )
    op.create_index('idx_projects_producer', 'projects', ['producer_id'])
    op.create_index('idx_projects_client', 'projects', ['client_id'])
    op.create_index('idx_projects_investor', 'projects', ['investor_id'])
    op.create_index('idx_projects_status', 'projects', ['global_status'])

    op.create_table(
        'episodes',
        sa.Column('episode_id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.project_id', ondelete='CASCADE'), nullable=False),
        sa.Column('producer_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True),
        sa.Column('producer_name', sa.String(255), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('episode_number', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Scripting'),
        sa.Column('synopsis', sa.Text(), nullable=True),
        sa.Column('airing_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('project_id', 'episode_number', name='uq_project_episode_number'),
    )
    op.create_index('idx_episodes_project', 'episodes', ['project_id'])

    op.create_table(
        'milestones',
        sa.Column('milestone_id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.project_id', ondelete='CASCADE'), nullable=False),
        sa.Column('episode_id', _uuid(), sa.ForeignKey('episodes.episode_id', ondelete='CASCADE'), nullable=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
        sa.Column('task_name', sa.String(255), nullable=False),
        sa.Column('phase_category', sa.String(30), nullable=False),
        sa.Column('work_status', sa.String(30), nullable=False, server_default='Pending'),
        sa.Column('honor_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='Unpaid'),
        *_timestamps(),
    )
    op.create_index('idx_milestones_project', 'milestones', ['project_id'])
    op.create_index('idx_milestones_episode', 'milestones', ['episode_id'])
    op.create_index('idx_milestones_user', 'milestones', ['user_id'])
    op.create_index('idx_milestones_status', 'milestones', ['work_status', 'payment_status'])

    op.create_table(
        'project_crew',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.project_id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_in_project', sa.String(255), nullable=True),
        sa.Column('assigned_by', _uuid(), sa.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_at', sa.TIMESTAMP(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_crew'),
    )
    op.create_index('idx_project_crew_user', 'project_crew', ['user_id'])

    op.create_table(
        'finances',
        sa.Column('finance_id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.project_id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('category', sa.String(255), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='Pending'),
        *_timestamps(),
    )
    op.create_index('idx_finances_project', 'finances', ['project_id', 'transaction_date'])

    op.create_table(
        'assets',
        sa.Column('asset_id', _uuid(), primary_key=True),
        sa.Column('project_id', _uuid(), sa.ForeignKey('projects.project_id', ondelete='CASCADE'), nullable=False),
        sa.Column('episode_id', _uuid(), sa.ForeignKey('episodes.episode_id', ondelete='CASCADE'), nullable=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_path', sa.String(1024), nullable=True),
        sa.Column('file_type', sa.String(255), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('is_public_to_broadcaster', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_external', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('external_url', sa.String(500), nullable=True),
        sa.Column('link_type', sa.String(20), nullable=True),
        sa.Column('uploaded_by', _uuid(), sa.ForeignKey('users.user_id'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('file_path IS NOT NULL OR external_url IS NOT NULL', name='ck_assets_file_or_link'),
    )
    op.create_index('idx_assets_project', 'assets', ['project_id'])
    op.create_index('idx_assets_episode', 'assets', ['episode_id'])


def downgrade() -> None:
    op.drop_table('assets')
    op.drop_table('finances')
    op.drop_table('project_crew')
    op.drop_table('milestones')
    op.drop_table('episodes')
    op.drop_table('projects')
    op.drop_table('users')
