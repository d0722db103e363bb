"""create leaderboard_submission and saved_state

Revision ID: 3b9c1d7e2a10
Revises:
Create Date: 2026-01-10 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b9c1d7e2a10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'leaderboard_submission',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=64), nullable=False),
        sa.Column('puzzle_date', sa.String(length=10), nullable=False),
        sa.Column('puzzle_number', sa.Integer(), nullable=True),
        sa.Column('guesses_used', sa.Integer(), nullable=False),
        sa.Column('won', sa.Boolean(), nullable=False),
        sa.Column('scope_key', sa.String(length=64), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('identity', 'puzzle_date', name='uq_submission_identity_date'),
    )
    op.create_index('ix_leaderboard_submission_identity', 'leaderboard_submission', ['identity'])
    op.create_index('ix_leaderboard_submission_puzzle_date', 'leaderboard_submission', ['puzzle_date'])
    op.create_index(
        'ix_submission_scope', 'leaderboard_submission',
        ['scope_key', 'puzzle_date', 'won', 'guesses_used', 'submitted_at'],
    )

    op.create_table(
        'saved_state',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner', sa.String(length=64), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner', 'key', name='uq_saved_state_owner_key'),
    )
    op.create_index('ix_saved_state_owner', 'saved_state', ['owner'])


def downgrade():
    op.drop_index('ix_saved_state_owner', table_name='saved_state')
    op.drop_table('saved_state')
    op.drop_index('ix_submission_scope', table_name='leaderboard_submission')
    op.drop_index('ix_leaderboard_submission_puzzle_date', table_name='leaderboard_submission')
    op.drop_index('ix_leaderboard_submission_identity', table_name='leaderboard_submission')
    op.drop_table('leaderboard_submission')
