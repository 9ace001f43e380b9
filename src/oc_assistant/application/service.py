"""AssistantService — canned answers about the caller's own orders, kept as chats.

Keyword dispatch only; there is no language model behind it. Every query is
scoped to the caller's own orders, admins included. Each exchange (the user's
message and the reply) is stored in a conversation owned by the caller; a
conversation id that is unknown or belongs to someone else is a 404.
"""
import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_assistant.application.schemas import (
    ChatReply,
    ChatResponse,
    ConversationDetail,
    ConversationListQuery,
    ConversationListResponse,
    ConversationSummary,
    DeleteConversationResponse,
    MessageQuery,
    MessageResponse,
    SuggestedAction,
)
from src.oc_assistant.domain.models import (
    LAST_MESSAGE_LENGTH,
    Conversation,
    Message,
    conversation_title,
)
from src.oc_assistant.domain.repository import ConversationRepositoryProtocol
from src.oc_assistant.infrastructure.persistence import ConversationRepository
from src.oc_common.database import transaction
from src.oc_common.datetime_utils import utc_now
from src.oc_common.enums import MessageRole, OrderStatus
from src.oc_common.errors import ConversationNotFoundError
from src.oc_common.id_generator import generate_conversation_id, generate_message_id
from src.oc_order.application.schemas import PageMetaResponse
from src.oc_order.domain.access import Caller, OrderScope
from src.oc_order.domain.query import OrderFilter, PageRequest, total_pages
from src.oc_order.domain.repository import OrderRepositoryProtocol
from src.oc_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)

PENDING_PREVIEW_LIMIT = 5

HELP_TEXT = (
    "I can help you with:\n\n"
    '• **Orders**: "Show pending orders"\n'
    '• **Revenue**: "What\'s my revenue?"\n\n'
    "What would you like to know?"
)


def _money(value: Decimal) -> str:
    return f"${value.quantize(Decimal('0.01')):,}"


class AssistantService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        conversations: ConversationRepositoryProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._conversations: ConversationRepositoryProtocol = (
            conversations or ConversationRepository()
        )

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def chat(
        self,
        db: AsyncSession,
        caller: Caller,
        message: str,
        conversation_id: str | None = None,
    ) -> ChatResponse:
        async with transaction(db):
            conv = await self._open_conversation(db, caller, message, conversation_id)
            await self._conversations.add_message(
                Message(
                    id=generate_message_id(),
                    conversation_id=conv.id,
                    role=MessageRole.USER,
                    content=message,
                    created_at=utc_now(),
                ),
                db,
            )
            reply = await self.answer(db, caller, message)
            stored = Message(
                id=generate_message_id(),
                conversation_id=conv.id,
                role=MessageRole.ASSISTANT,
                content=reply.response,
                data=reply.data,
                created_at=utc_now(),
            )
            await self._conversations.add_message(stored, db)
            await self._conversations.touch(
                conv.id, reply.response[:LAST_MESSAGE_LENGTH], 2, db
            )
        return ChatResponse(
            **reply.model_dump(),
            id=stored.id,
            conversation_id=conv.id,
            created_at=stored.created_at,
        )

    async def answer(self, db: AsyncSession, caller: Caller, message: str) -> ChatReply:
        text = message.lower()
        if "pending order" in text:
            intent = "pending_orders"
            reply = await self._pending_orders(db, caller)
        elif "revenue" in text or "sales" in text:
            intent = "revenue"
            reply = await self._revenue(db, caller)
        elif "help" in text:
            intent = "help"
            reply = self._help()
        else:
            intent = "fallback"
            reply = self._fallback(message)
        logger.info("assistant reply user=%s intent=%s", caller.user_id, intent)
        return reply

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def list_conversations(
        self, db: AsyncSession, caller: Caller, query: ConversationListQuery
    ) -> ConversationListResponse:
        offset = (query.page - 1) * query.limit
        convs = await self._conversations.list_for_owner(caller.user_id, query.limit, offset, db)
        total = await self._conversations.count_for_owner(caller.user_id, db)
        return ConversationListResponse(
            data=[ConversationSummary.from_domain(c) for c in convs],
            meta=PageMetaResponse(
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=total_pages(total, query.limit),
            ),
        )

    async def get_conversation(
        self, db: AsyncSession, caller: Caller, conversation_id: str, query: MessageQuery
    ) -> ConversationDetail:
        conv = await self._owned(db, caller, conversation_id)
        anchor = None
        if query.before:
            # An anchor outside this conversation is ignored
            anchor = await self._conversations.get_message(query.before, conv.id, db)
        messages = await self._conversations.list_messages(conv.id, query.limit, anchor, db)
        return ConversationDetail(
            id=conv.id,
            title=conv.title,
            messages=[MessageResponse.from_domain(m) for m in messages],
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )

    async def delete_conversation(
        self, db: AsyncSession, caller: Caller, conversation_id: str
    ) -> DeleteConversationResponse:
        async with transaction(db):
            conv = await self._owned(db, caller, conversation_id)
            await self._conversations.delete(conv.id, db)
        logger.info("conversation deleted id=%s by=%s", conv.id, caller.user_id)
        return DeleteConversationResponse(id=conv.id)

    async def _owned(self, db: AsyncSession, caller: Caller, conversation_id: str) -> Conversation:
        conv = await self._conversations.get_owned(conversation_id, caller.user_id, db)
        if conv is None:
            raise ConversationNotFoundError(conversation_id)
        return conv

    async def _open_conversation(
        self, db: AsyncSession, caller: Caller, message: str, conversation_id: str | None
    ) -> Conversation:
        if conversation_id is not None:
            return await self._owned(db, caller, conversation_id)
        now = utc_now()
        conv = Conversation(
            id=generate_conversation_id(),
            owner_id=caller.user_id,
            title=conversation_title(message),
            created_at=now,
            updated_at=now,
        )
        await self._conversations.create(conv, db)
        logger.info("conversation started id=%s user=%s", conv.id, caller.user_id)
        return conv

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    async def _pending_orders(self, db: AsyncSession, caller: Caller) -> ChatReply:
        flt = OrderFilter(scope=OrderScope(owner_id=caller.user_id), status=OrderStatus.PENDING)
        preview = await self._repo.list_orders(
            flt, PageRequest(page=1, limit=PENDING_PREVIEW_LIMIT), db
        )
        count = await self._repo.count_orders(flt, db)
        total_value = await self._repo.sum_totals(flt, db)
        return ChatReply(
            response=(
                f"I found {count} pending orders. Total value: {_money(total_value)}. "
                "Would you like me to show the details?"
            ),
            data={
                "type": "orders_summary",
                "orders": [
                    {
                        "id": o.id,
                        "order_number": o.order_number,
                        "total": str(o.total),
                        "status": o.status.value,
                    }
                    for o in preview
                ],
                "summary": {"count": count, "total_value": str(total_value)},
            },
            suggested_actions=[
                SuggestedAction(
                    label="View all pending orders",
                    action="navigate",
                    params={"path": "/orders?status=pending"},
                ),
            ],
        )

    async def _revenue(self, db: AsyncSession, caller: Caller) -> ChatReply:
        flt = OrderFilter(
            scope=OrderScope(owner_id=caller.user_id), status=OrderStatus.DELIVERED
        )
        count = await self._repo.count_orders(flt, db)
        revenue = await self._repo.sum_totals(flt, db)
        return ChatReply(
            response=(
                f"Your total revenue from delivered orders is {_money(revenue)} "
                f"across {count} orders."
            ),
            data={
                "type": "revenue_summary",
                "summary": {"total_revenue": str(revenue), "order_count": count},
            },
        )

    def _help(self) -> ChatReply:
        return ChatReply(
            response=HELP_TEXT,
            suggested_actions=[
                SuggestedAction(
                    label="Show pending orders",
                    action="query",
                    params={"type": "pending_orders"},
                ),
                SuggestedAction(label="View orders", action="navigate", params={"path": "/orders"}),
            ],
        )

    def _fallback(self, message: str) -> ChatReply:
        return ChatReply(
            response=(
                f'I understood your query: "{message}". I can only answer a few '
                'canned questions about your orders; type "help" to see them.'
            ),
            suggested_actions=[
                SuggestedAction(label="Ask another question", action="prompt"),
                SuggestedAction(label="View help", action="help"),
            ],
        )
