"""login attempts

Revision ID: 0002_login_attempts
Revises: 0001_initial_schema
Create Date: 2026-10-19 00:00:00.000000

Adds login_attempts, used to lock an identifier out after repeated
failed logins.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_login_attempts'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'login_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identifier', sa.String(length=100), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(
        'ix_login_attempts_identifier_occurred',
        'login_attempts',
        ['identifier', 'occurred_at'],
    )


def downgrade():
    op.drop_index('ix_login_attempts_identifier_occurred', table_name='login_attempts')
    op.drop_table('login_attempts')
