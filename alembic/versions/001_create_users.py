"""001: create updated_at trigger function and users table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(64)     NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            full_name       VARCHAR(255),
            password_hash   VARCHAR(255)    NOT NULL,
            role            VARCHAR(16)     NOT NULL DEFAULT 'user',
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_username    UNIQUE (username),
            CONSTRAINT uq_users_email       UNIQUE (email),
            CONSTRAINT ck_users_username_len CHECK (LENGTH(username) >= 3),
            CONSTRAINT ck_users_role        CHECK (role IN ('user', 'admin'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS 'Console users; role user|admin, admins promoted via SQL';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
