"""Assistant conversation model — pure dataclasses."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.oc_common.enums import MessageRole

TITLE_LENGTH = 50
LAST_MESSAGE_LENGTH = 100


def conversation_title(first_message: str) -> str:
    """Opening message cut to ``TITLE_LENGTH`` characters, with an ellipsis when cut."""
    if len(first_message) > TITLE_LENGTH:
        return first_message[:TITLE_LENGTH] + "..."
    return first_message


@dataclass
class Conversation:
    id: str
    owner_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    last_message: str | None = None
    message_count: int = 0


@dataclass
class Message:
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: datetime
    data: dict[str, Any] | None = None
