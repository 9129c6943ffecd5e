"""Create user, document, document_version and supporting tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

document.current_version_id and document_version.document_id reference each
other, so the current-version foreign key is added after both tables exist.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create DocVault schema."""

    op.execute("CREATE TYPE accesslevel AS ENUM ('private', 'team', 'public')")
    op.execute("CREATE TYPE versionstatus AS ENUM ('pending_scan', 'available', 'quarantined')")

    # Users with role and optional manager
    op.create_table(
        'user',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False, server_default='User'),
        sa.Column('manager_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
        sa.ForeignKeyConstraint(['manager_id'], ['user.id'], ondelete='SET NULL'),
        sa.CheckConstraint("role IN ('User', 'Manager', 'Admin')", name='ck_user_role'),
    )
    op.create_index('ix_user_manager_id', 'user', ['manager_id'])

    op.create_table(
        'document',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('original_filename', sa.Text(), nullable=False),
        sa.Column('access_level', postgresql.ENUM('private', 'team', 'public',
                                                  name='accesslevel', create_type=False),
                  nullable=False, server_default='private'),
        sa.Column('current_version_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_id'], ['user.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_document_owner_id', 'document', ['owner_id'])
    op.create_index('ix_document_access_level', 'document', ['access_level'])
    op.create_index('ix_document_created_at', 'document', ['created_at'])

    op.create_table(
        'document_version',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('storage_key', sa.Text(), nullable=False),
        sa.Column('mime_type', sa.Text(), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('uploaded_by_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', postgresql.ENUM('pending_scan', 'available', 'quarantined',
                                            name='versionstatus', create_type=False),
                  nullable=False, server_default='pending_scan'),
        sa.Column('scan_detail', sa.Text(), nullable=True),
        sa.Column('scanned_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_key'),
        sa.UniqueConstraint('document_id', 'version_number', name='uq_document_version_number'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by_id'], ['user.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_document_version_document_id', 'document_version', ['document_id'])
    op.create_index('ix_document_version_status', 'document_version', ['status'])

    op.create_foreign_key(
        'fk_document_current_version',
        'document', 'document_version',
        ['current_version_id'], ['id'],
    )

    op.create_table(
        'document_tag',
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tag', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('document_id', 'tag'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_document_tag_tag', 'document_tag', ['tag'])

    # Audit log outlives the documents it describes: no FK on document_id
    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['actor_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_audit_log_document_id', 'audit_log', ['document_id'])
    op.create_index('ix_audit_log_actor_id_created_at', 'audit_log', ['actor_id', 'created_at'])
    op.create_index('ix_audit_log_action', 'audit_log', ['action'])

    op.create_table(
        'notification',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_notification_user_id_read', 'notification', ['user_id', 'read'])

    # Scan jobs that exhausted their retries
    op.create_table(
        'scan_dead_letter',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('task_id', sa.Text(), nullable=True),
        sa.Column('version_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('file_locator', sa.Text(), nullable=True),
        sa.Column('payload_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('error', sa.Text(), nullable=False),
        sa.Column('retries', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_scan_dead_letter_version_id', 'scan_dead_letter', ['version_id'])


def downgrade():
    """Drop DocVault schema."""
    op.drop_table('scan_dead_letter')
    op.drop_table('notification')
    op.drop_table('audit_log')
    op.drop_table('document_tag')
    op.drop_constraint('fk_document_current_version', 'document', type_='foreignkey')
    op.drop_table('document_version')
    op.drop_table('document')
    op.drop_table('user')
    op.execute("DROP TYPE versionstatus")
    op.execute("DROP TYPE accesslevel")
