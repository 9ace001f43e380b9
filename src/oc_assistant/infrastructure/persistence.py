# src/oc_assistant/infrastructure/persistence.py
"""ConversationRepository — raw SQL persistence for assistant chats.

Every conversation read is keyed by (id, owner_id), so another user's
conversation is indistinguishable from a missing one.
Mutating methods never commit; the application service owns the transaction.
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_assistant.domain.models import Conversation, Message
from src.oc_common.enums import MessageRole

_CONVERSATION_COLUMNS = """
    id, owner_id, title, last_message, message_count, created_at, updated_at
"""

_MESSAGE_COLUMNS = "id, conversation_id, role, content, data, created_at"

_INSERT_CONVERSATION_SQL = text("""
    INSERT INTO conversations (id, owner_id, title, last_message, message_count,
        created_at, updated_at)
    VALUES (:id, :owner_id, :title, :last_message, :message_count,
        :created_at, :updated_at)
""")

_GET_OWNED_SQL = text(f"""
    SELECT {_CONVERSATION_COLUMNS}
    FROM conversations WHERE id = :id AND owner_id = :owner_id
""")

_LIST_FOR_OWNER_SQL = text(f"""
    SELECT {_CONVERSATION_COLUMNS}
    FROM conversations WHERE owner_id = :owner_id
    ORDER BY updated_at DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_FOR_OWNER_SQL = text("SELECT COUNT(*) FROM conversations WHERE owner_id = :owner_id")

_INSERT_MESSAGE_SQL = text("""
    INSERT INTO messages (id, conversation_id, role, content, data, created_at)
    VALUES (:id, :conversation_id, :role, :content, :data, :created_at)
""").bindparams(bindparam("data", type_=JSONB))

_TOUCH_SQL = text("""
    UPDATE conversations
    SET last_message = :last_message, message_count = message_count + :added,
        updated_at = NOW()
    WHERE id = :id
    RETURNING updated_at
""")

_GET_MESSAGE_SQL = text(f"""
    SELECT {_MESSAGE_COLUMNS}
    FROM messages WHERE id = :id AND conversation_id = :conversation_id
""")

# Newest ``limit`` messages older than the anchor, handed back oldest first.
_LIST_MESSAGES_SQL = text(f"""
    SELECT {_MESSAGE_COLUMNS} FROM (
        SELECT {_MESSAGE_COLUMNS}
        FROM messages
        WHERE conversation_id = :conversation_id
          AND (CAST(:before_at AS TIMESTAMPTZ) IS NULL
               OR (created_at, id) < (CAST(:before_at AS TIMESTAMPTZ),
                                      CAST(:before_id AS TEXT)))
        ORDER BY created_at DESC, id DESC
        LIMIT :limit
    ) recent
    ORDER BY created_at, id
""")

_DELETE_MESSAGES_SQL = text("DELETE FROM messages WHERE conversation_id = :id")

_DELETE_CONVERSATION_SQL = text("DELETE FROM conversations WHERE id = :id")


def _row_to_conversation(row: Any) -> Conversation:
    return Conversation(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        last_message=row.last_message,
        message_count=row.message_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_message(row: Any) -> Message:
    data = row.data
    if isinstance(data, str):
        data = json.loads(data)
    return Message(
        id=row.id,
        conversation_id=row.conversation_id,
        role=MessageRole(row.role),
        content=row.content,
        data=data,
        created_at=row.created_at,
    )


class ConversationRepository:
    """Concrete implementation of ConversationRepositoryProtocol using raw SQL."""

    async def create(self, conversation: Conversation, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_CONVERSATION_SQL,
            {
                "id": conversation.id,
                "owner_id": conversation.owner_id,
                "title": conversation.title,
                "last_message": conversation.last_message,
                "message_count": conversation.message_count,
                "created_at": conversation.created_at,
                "updated_at": conversation.updated_at,
            },
        )

    async def get_owned(
        self, conversation_id: str, owner_id: str, db: AsyncSession
    ) -> Conversation | None:
        result = await db.execute(_GET_OWNED_SQL, {"id": conversation_id, "owner_id": owner_id})
        row = result.fetchone()
        return _row_to_conversation(row) if row is not None else None

    async def list_for_owner(
        self, owner_id: str, limit: int, offset: int, db: AsyncSession
    ) -> list[Conversation]:
        result = await db.execute(
            _LIST_FOR_OWNER_SQL, {"owner_id": owner_id, "limit": limit, "offset": offset}
        )
        return [_row_to_conversation(row) for row in result.fetchall()]

    async def count_for_owner(self, owner_id: str, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_FOR_OWNER_SQL, {"owner_id": owner_id})
        return int(result.scalar_one())

    async def add_message(self, message: Message, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_MESSAGE_SQL,
            {
                "id": message.id,
                "conversation_id": message.conversation_id,
                "role": message.role.value,
                "content": message.content,
                "data": message.data,
                "created_at": message.created_at,
            },
        )

    async def touch(
        self, conversation_id: str, last_message: str, added: int, db: AsyncSession
    ) -> datetime:
        result = await db.execute(
            _TOUCH_SQL, {"id": conversation_id, "last_message": last_message, "added": added}
        )
        updated_at: datetime = result.scalar_one()
        return updated_at

    async def get_message(
        self, message_id: str, conversation_id: str, db: AsyncSession
    ) -> Message | None:
        result = await db.execute(
            _GET_MESSAGE_SQL, {"id": message_id, "conversation_id": conversation_id}
        )
        row = result.fetchone()
        return _row_to_message(row) if row is not None else None

    async def list_messages(
        self, conversation_id: str, limit: int, before: Message | None, db: AsyncSession
    ) -> list[Message]:
        result = await db.execute(
            _LIST_MESSAGES_SQL,
            {
                "conversation_id": conversation_id,
                "before_at": before.created_at if before else None,
                "before_id": before.id if before else None,
                "limit": limit,
            },
        )
        return [_row_to_message(row) for row in result.fetchall()]

    async def delete(self, conversation_id: str, db: AsyncSession) -> None:
        await db.execute(_DELETE_MESSAGES_SQL, {"id": conversation_id})
        await db.execute(_DELETE_CONVERSATION_SQL, {"id": conversation_id})
