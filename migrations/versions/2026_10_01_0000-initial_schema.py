"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - users / profiles: accounts and dashboard data
    - qr_codes: owner's redirect targets
    - qr_scans: append-only scan log, cascades with its QR code
    - revoked_tokens: access tokens invalidated by sign-out
    """
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'qr_codes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('destination_url', sa.Text(), nullable=False),
        sa.Column('is_dynamic', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('scan_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('scan_count >= 0', name='ck_qr_codes_scan_count_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qr_codes_owner_id', 'qr_codes', ['owner_id'])
    op.create_index('ix_qr_codes_created_at', 'qr_codes', ['created_at'])

    op.create_table(
        'qr_scans',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('qr_code_id', sa.String(length=36), nullable=False),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['qr_code_id'], ['qr_codes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_qr_scans_qr_code_id', 'qr_scans', ['qr_code_id'])
    op.create_index('ix_qr_scans_occurred_at', 'qr_scans', ['occurred_at'])

    op.create_table(
        'revoked_tokens',
        sa.Column('jti', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('jti')
    )
    op.create_index('ix_revoked_tokens_user_id', 'revoked_tokens', ['user_id'])


def downgrade() -> None:
    """Drop all tables, children first."""
    op.drop_index('ix_revoked_tokens_user_id', table_name='revoked_tokens')
    op.drop_table('revoked_tokens')

    op.drop_index('ix_qr_scans_occurred_at', table_name='qr_scans')
    op.drop_index('ix_qr_scans_qr_code_id', table_name='qr_scans')
    op.drop_table('qr_scans')

    op.drop_index('ix_qr_codes_created_at', table_name='qr_codes')
    op.drop_index('ix_qr_codes_owner_id', table_name='qr_codes')
    op.drop_table('qr_codes')

    op.drop_table('profiles')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
