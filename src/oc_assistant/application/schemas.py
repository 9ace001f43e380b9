from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.oc_assistant.domain.models import Conversation, Message
from src.oc_common.enums import MessageRole
from src.oc_order.application.schemas import PageMetaResponse


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    conversation_id: str | None = Field(None, min_length=1, max_length=32)


class SuggestedAction(BaseModel):
    label: str
    action: str  # navigate / query / prompt / help
    params: dict[str, Any] = Field(default_factory=dict)


class ChatReply(BaseModel):
    response: str
    data: dict[str, Any] | None = None
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)


class ChatResponse(ChatReply):
    id: str  # the stored assistant message
    conversation_id: str
    created_at: datetime


class ConversationListQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class MessageQuery(BaseModel):
    limit: int = Field(50, ge=1, le=100)
    before: str | None = Field(None, description="Only messages older than this message id")


class ConversationSummary(BaseModel):
    id: str
    title: str
    last_message: str | None = None
    message_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, conv: Conversation) -> "ConversationSummary":
        return cls(
            id=conv.id,
            title=conv.title,
            last_message=conv.last_message,
            message_count=conv.message_count,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )


class ConversationListResponse(BaseModel):
    data: list[ConversationSummary]
    meta: PageMetaResponse


class MessageResponse(BaseModel):
    id: str
    role: MessageRole
    content: str
    data: dict[str, Any] | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, msg: Message) -> "MessageResponse":
        return cls(
            id=msg.id,
            role=msg.role,
            content=msg.content,
            data=msg.data,
            created_at=msg.created_at,
        )


class ConversationDetail(BaseModel):
    id: str
    title: str
    messages: list[MessageResponse]
    created_at: datetime
    updated_at: datetime


class DeleteConversationResponse(BaseModel):
    id: str
    message: str = "Conversation deleted successfully"
