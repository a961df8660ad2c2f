"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-02 10:15:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create enum types
    op.execute("""
        CREATE TYPE document_category AS ENUM (
            'aadhaar_front', 'aadhaar_back', 'pan_card', 'passport',
            'driving_license', 'voter_id', 'selfie', 'other'
        );
        CREATE TYPE document_status AS ENUM ('uploaded', 'verified', 'rejected');
        CREATE TYPE credential_status AS ENUM ('active', 'revoked');
        CREATE TYPE consent_status AS ENUM ('pending', 'approved', 'rejected', 'revoked', 'expired');
        CREATE TYPE audit_action AS ENUM (
            'TOKEN_ISSUED', 'TOKEN_REVOKED', 'TOKEN_VERIFIED',
            'CONSENT_REQUESTED', 'CONSENT_APPROVED', 'CONSENT_REJECTED', 'CONSENT_REVOKED'
        );
        CREATE TYPE audit_subject_type AS ENUM ('token', 'consent');
    """)

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False)
    )

    # Create evidence_documents table
    op.create_table(
        'evidence_documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('category', postgresql.ENUM('aadhaar_front', 'aadhaar_back', 'pan_card', 'passport', 'driving_license', 'voter_id', 'selfie', 'other', name='document_category', create_type=False), nullable=False),
        sa.Column('raw_category', sa.String(100), nullable=False),
        sa.Column('storage_ref', sa.String(1024), nullable=False),
        sa.Column('status', postgresql.ENUM('uploaded', 'verified', 'rejected', name='document_status', create_type=False), nullable=False),
        sa.Column('issuer', sa.String(255), nullable=True),
        sa.Column('verified_at', sa.DateTime, nullable=True),
        sa.Column('trust_score', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_current', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('superseded_at', sa.DateTime, nullable=True),
        sa.Column('superseded_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('uploaded_at', sa.DateTime, nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.CheckConstraint('trust_score BETWEEN 0 AND 100', name='ck_evidence_trust_score_range')
    )
    # One current document per (owner, category)
    op.create_index(
        'uq_evidence_documents_current', 'evidence_documents', ['owner_id', 'raw_category'],
        unique=True, postgresql_where=sa.text('is_current')
    )
    op.create_index('idx_evidence_documents_owner', 'evidence_documents', ['owner_id', 'uploaded_at'])

    # Create credentials table
    op.create_table(
        'credentials',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', postgresql.ENUM('active', 'revoked', name='credential_status', create_type=False), nullable=False),
        sa.Column('issued_at', sa.DateTime, nullable=False),
        sa.Column('revoked_at', sa.DateTime, nullable=True),
        sa.Column('revoked_by', sa.String(255), nullable=True),
        sa.Column('revocation_reason', sa.String(500), nullable=True),
        sa.Column('subject', postgresql.JSONB, nullable=False),
        sa.Column('proof', postgresql.JSONB, nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'])
    )
    op.create_index('idx_credentials_owner_status', 'credentials', ['owner_id', 'status', 'issued_at'])

    # Create consent_requests table
    op.create_table(
        'consent_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('requester_id', sa.String(255), nullable=False),
        sa.Column('requester_name', sa.String(255), nullable=False),
        sa.Column('requested_fields', postgresql.JSONB, nullable=False),
        sa.Column('purpose', sa.Text, nullable=True),
        sa.Column('status', postgresql.ENUM('pending', 'approved', 'rejected', 'revoked', 'expired', name='consent_status', create_type=False), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('approved_at', sa.DateTime, nullable=True),
        sa.Column('expires_at', sa.DateTime, nullable=True),
        sa.Column('decided_at', sa.DateTime, nullable=True),
        sa.Column('decided_by', sa.String(255), nullable=True),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('version', sa.Integer, nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'])
    )
    op.create_index('idx_consent_requests_owner_status', 'consent_requests', ['owner_id', 'status'])
    op.create_index('idx_consent_requests_requester', 'consent_requests', ['requester_id'])

    # Create audit_log table
    op.create_table(
        'audit_log',
        sa.Column('sequence', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column('action', postgresql.ENUM('TOKEN_ISSUED', 'TOKEN_REVOKED', 'TOKEN_VERIFIED', 'CONSENT_REQUESTED', 'CONSENT_APPROVED', 'CONSENT_REJECTED', 'CONSENT_REVOKED', name='audit_action', create_type=False), nullable=False),
        sa.Column('subject_type', postgresql.ENUM('token', 'consent', name='audit_subject_type', create_type=False), nullable=False),
        sa.Column('subject_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('detail', postgresql.JSONB, nullable=False),
        sa.Column('actor_id', sa.String(255), nullable=False),
        sa.Column('occurred_at', sa.DateTime, nullable=False)
    )
    op.create_index('idx_audit_log_subject', 'audit_log', ['subject_id', 'occurred_at', 'sequence'])
    op.create_index('idx_audit_log_owner', 'audit_log', ['owner_id', 'occurred_at', 'sequence'])
    op.create_index('idx_audit_log_occurred', 'audit_log', ['occurred_at'])


def downgrade() -> None:
    op.drop_table('audit_log')
    op.drop_table('consent_requests')
    op.drop_table('credentials')
    op.drop_table('evidence_documents')
    op.drop_table('users')

    op.execute("DROP TYPE IF EXISTS audit_subject_type")
    op.execute("DROP TYPE IF EXISTS audit_action")
    op.execute("DROP TYPE IF EXISTS consent_status")
    op.execute("DROP TYPE IF EXISTS credential_status")
    op.execute("DROP TYPE IF EXISTS document_status")
    op.execute("DROP TYPE IF EXISTS document_category")
