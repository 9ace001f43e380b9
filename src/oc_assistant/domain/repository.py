"""ConversationRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_assistant.domain.models import Conversation, Message


class ConversationRepositoryProtocol(Protocol):
    async def create(self, conversation: Conversation, db: AsyncSession) -> None: ...

    async def get_owned(
        self, conversation_id: str, owner_id: str, db: AsyncSession
    ) -> Conversation | None: ...

    async def list_for_owner(
        self, owner_id: str, limit: int, offset: int, db: AsyncSession
    ) -> list[Conversation]: ...

    async def count_for_owner(self, owner_id: str, db: AsyncSession) -> int: ...

    async def add_message(self, message: Message, db: AsyncSession) -> None: ...

    async def touch(
        self, conversation_id: str, last_message: str, added: int, db: AsyncSession
    ) -> datetime: ...

    async def get_message(
        self, message_id: str, conversation_id: str, db: AsyncSession
    ) -> Message | None: ...

    async def list_messages(
        self, conversation_id: str, limit: int, before: Message | None, db: AsyncSession
    ) -> list[Message]: ...

    async def delete(self, conversation_id: str, db: AsyncSession) -> None: ...
