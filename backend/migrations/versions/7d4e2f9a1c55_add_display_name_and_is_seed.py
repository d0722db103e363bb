"""add display_name and is_seed to leaderboard_submission

Revision ID: 7d4e2f9a1c55
Revises: 3b9c1d7e2a10
Create Date: 2026-01-24 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7d4e2f9a1c55'
down_revision = '3b9c1d7e2a10'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('leaderboard_submission')}
    with op.batch_alter_table('leaderboard_submission') as batch_op:
        if 'display_name' not in cols:
            batch_op.add_column(sa.Column('display_name', sa.String(length=64), nullable=True))
        if 'is_seed' not in cols:
            batch_op.add_column(sa.Column('is_seed', sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade():
    with op.batch_alter_table('leaderboard_submission') as batch_op:
        batch_op.drop_column('is_seed')
        batch_op.drop_column('display_name')
