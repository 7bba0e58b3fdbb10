"""Initial schema migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )

    # Roles table
    op.create_table(
        'roles',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, default=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )

    # User <-> role association
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.String(15), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.String(15), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )

    # Categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )

    # Category <-> role association (which roles may see a category's ballots)
    op.create_table(
        'category_roles',
        sa.Column('category_id', sa.String(15), sa.ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.String(15), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )

    # Ballots table
    op.create_table(
        'ballots',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('ballot_type', sa.Enum('SINGLE_CHOICE', 'MULTIPLE_CHOICE', 'RANKED_CHOICE', 'LINEAR_CHOICE', 'TEXT_INPUT', 'YES_NO', name='ballottype'), nullable=False, default='SINGLE_CHOICE'),
        sa.Column('category_id', sa.String(15), sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('admin_id', sa.String(15), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('limit_date', sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column('is_suspended', sa.Boolean(), nullable=False, default=False, index=True),
        sa.Column('time_left', sa.Integer(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, default=1),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )

    # Voting options table
    op.create_table(
        'voting_options',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('ballot_id', sa.String(15), sa.ForeignKey('ballots.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('is_text', sa.Boolean(), nullable=False, default=False),
        sa.Column('position', sa.Integer(), nullable=False, default=0),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )

    # Votes table
    op.create_table(
        'votes',
        sa.Column('id', sa.String(15), primary_key=True),
        sa.Column('ballot_id', sa.String(15), sa.ForeignKey('ballots.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(15), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('option_id', sa.String(15), sa.ForeignKey('voting_options.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text_response', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, default=1),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('ballot_id', 'user_id', 'position', name='uq_votes_ballot_user_position'),
    )


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('votes')
    op.drop_table('voting_options')
    op.drop_table('ballots')
    op.drop_table('category_roles')
    op.drop_table('categories')
    op.drop_table('user_roles')
    op.drop_table('roles')
    op.drop_table('users')
    sa.Enum(name='ballottype').drop(op.get_bind(), checkfirst=True)
