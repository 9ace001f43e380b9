"""003: create assistant conversations and messages tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE conversations (
            id              VARCHAR(32)     PRIMARY KEY,
            owner_id        VARCHAR(64)     NOT NULL,
            title           VARCHAR(64)     NOT NULL,
            last_message    VARCHAR(100),
            message_count   INT             NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_conversations_count CHECK (message_count >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_conversations_owner ON conversations (owner_id, updated_at DESC);"
    )
    op.execute("""
        CREATE TRIGGER trg_conversations_updated_at
            BEFORE UPDATE ON conversations
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE messages (
            id               VARCHAR(32)    PRIMARY KEY,
            conversation_id  VARCHAR(32)    NOT NULL
                                            REFERENCES conversations (id) ON DELETE CASCADE,
            role             VARCHAR(16)    NOT NULL,
            content          TEXT           NOT NULL,
            data             JSONB,
            created_at       TIMESTAMPTZ    NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_messages_role CHECK (role IN ('user', 'assistant'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_messages_conversation ON messages (conversation_id, created_at, id);"
    )
    op.execute("COMMENT ON TABLE conversations IS 'Assistant chats, one owner each';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS messages CASCADE;")
    op.execute("DROP TABLE IF EXISTS conversations CASCADE;")
