"""Add immutability trigger for audit_log.

The audit trail is append-only: UPDATE and DELETE are rejected by the
database even with direct access.

Revision ID: 002_add_audit_immutability_trigger
Revises: 001
Create Date: 2026-10-02
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = '002_add_audit_immutability_trigger'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_audit_modification()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Table % is append-only. UPDATE and DELETE operations are not allowed.',
                TG_TABLE_NAME
                USING HINT = 'Audit entries are permanent.';
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER audit_log_immutable
            BEFORE UPDATE OR DELETE ON audit_log
            FOR EACH ROW
            EXECUTE FUNCTION prevent_audit_modification();
    """)

    op.execute("""
        COMMENT ON TABLE audit_log IS
        'Append-only audit trail. UPDATE/DELETE blocked by trigger.';
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS audit_log_immutable ON audit_log;")
    op.execute("DROP FUNCTION IF EXISTS prevent_audit_modification();")
    op.execute("COMMENT ON TABLE audit_log IS NULL;")
