"""recovery schema

Creates accounts, invitations, recovery records, admin reset tokens and the
audit trail, including the partial unique index that allows one open
recovery record per subject and purpose.

Revision ID: 0001_recovery_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_recovery_schema'
down_revision = None
branch_labels = None
depends_on = None

ROLES = ('SUPER_ADMIN', 'ADMIN', 'VIEW_ONLY')
PURPOSES = ('password_reset', 'invitation_accept')

user_role = postgresql.ENUM(*ROLES, name='user_role', create_type=False)
recovery_purpose = postgresql.ENUM(*PURPOSES, name='recovery_purpose', create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    recovery_purpose.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('password_changed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('invited_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_invitations_token', 'invitations', ['token'], unique=True)
    op.create_index('ix_invitations_email', 'invitations', ['email'])

    op.create_table(
        'recovery_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_identity', sa.String(254), nullable=False),
        sa.Column('purpose', recovery_purpose, nullable=False),
        sa.Column('linked_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('code', sa.String(6), nullable=True),
        sa.Column('code_expires_at', sa.DateTime(), nullable=True),
        sa.Column('attempt_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('issued_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('window_start', sa.DateTime(), nullable=False),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        sa.Column('role', user_role, nullable=True),
        sa.Column('invitation_id', sa.Integer(), sa.ForeignKey('invitations.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_recovery_records_subject_identity', 'recovery_records', ['subject_identity'])
    op.create_index(
        'uq_recovery_records_open_subject',
        'recovery_records',
        ['subject_identity', 'purpose'],
        unique=True,
        postgresql_where=sa.text('consumed_at IS NULL'),
        sqlite_where=sa.text('consumed_at IS NULL'),
    )

    op.create_table(
        'admin_recovery_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admin_recovery_tokens_token', 'admin_recovery_tokens', ['token'], unique=True)
    op.create_index('ix_admin_recovery_tokens_user_id', 'admin_recovery_tokens', ['user_id'])

    op.create_table(
        'audit_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('actor_email', sa.String(254), nullable=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('field', sa.String(64), nullable=True),
        sa.Column('old_value', sa.String(), nullable=True),
        sa.Column('new_value', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_entries_actor_user_id', 'audit_entries', ['actor_user_id'])
    op.create_index('ix_audit_entries_entity_type', 'audit_entries', ['entity_type'])
    op.create_index('ix_audit_entries_entity_id', 'audit_entries', ['entity_id'])
    op.create_index('ix_audit_entries_created_at', 'audit_entries', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_entries')
    op.drop_table('admin_recovery_tokens')
    op.drop_index('uq_recovery_records_open_subject', table_name='recovery_records')
    op.drop_table('recovery_records')
    op.drop_table('invitations')
    op.drop_table('users')

    bind = op.get_bind()
    recovery_purpose.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
