"""Unit-test fixtures: order factory and in-memory order and conversation repositories."""

import copy
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.oc_assistant.domain.models import Conversation, Message
from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.domain.models import Address, Order, OrderItem
from src.oc_order.domain.query import OrderFilter, PageRequest

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

ADDRESS = Address(
    street="123 Main St", city="New York", state="NY", zip_code="10001", country="USA"
)


def make_order(**kwargs: Any) -> Order:
    items = kwargs.get(
        "items",
        [
            OrderItem(
                id="item_1",
                product_id="prod_abc",
                name="Product A",
                quantity=2,
                unit_price=Decimal("29.99"),
            )
        ],
    )
    created_at = kwargs.get("created_at", BASE_TIME)
    return Order(
        id=kwargs.get("id", "ord_1"),
        order_number=kwargs.get("order_number", "ORD-2026-1001"),
        owner_id=kwargs.get("owner_id", "user-1"),
        customer_name=kwargs.get("customer_name", "John Doe"),
        customer_email=kwargs.get("customer_email", "john@example.com"),
        customer_phone=kwargs.get("customer_phone"),
        shipping_address=kwargs.get("shipping_address", ADDRESS),
        billing_address=kwargs.get("billing_address", ADDRESS),
        items=items,
        subtotal=kwargs.get("subtotal", Decimal("59.98")),
        discount=kwargs.get("discount", Decimal("0")),
        tax=kwargs.get("tax", Decimal("5.3982")),
        shipping=kwargs.get("shipping", Decimal("5.00")),
        total=kwargs.get("total", Decimal("70.3782")),
        status=kwargs.get("status", OrderStatus.PENDING),
        notes=kwargs.get("notes"),
        created_at=created_at,
        updated_at=kwargs.get("updated_at", created_at),
    )


def _sort_key(field: OrderSortField) -> Callable[[Order], Any]:
    if field is OrderSortField.STATUS:
        return lambda o: o.status.value
    return lambda o: getattr(o, field.value)


class InMemoryOrderRepository:
    """Behaves like OrderRepository over a dict; items live in their own table."""

    def __init__(self, orders: list[Order] | None = None) -> None:
        self.orders: dict[str, Order] = {}
        self.items: dict[str, list[OrderItem]] = {}
        self.locked: list[str] = []
        for order in orders or []:
            self._store(order)

    def _store(self, order: Order) -> None:
        stored = copy.deepcopy(order)
        self.items[order.id] = stored.items
        self.orders[order.id] = stored

    def _load(self, order_id: str) -> Order | None:
        order = self.orders.get(order_id)
        if order is None:
            return None
        loaded = copy.deepcopy(order)
        loaded.items = copy.deepcopy(self.items.get(order_id, []))
        return loaded

    def _matching(self, flt: OrderFilter) -> list[Order]:
        matched = []
        for order in self.orders.values():
            if not flt.scope.includes(order):
                continue
            if flt.status is not None and order.status != flt.status:
                continue
            if flt.start_date is not None and order.created_at < flt.start_date:
                continue
            if flt.end_date is not None and order.created_at > flt.end_date:
                continue
            matched.append(order)
        return matched

    async def save(self, order: Order, db: Any) -> None:
        self._store(order)

    async def order_number_exists(self, order_number: str, db: Any) -> bool:
        return any(o.order_number == order_number for o in self.orders.values())

    async def get_by_id(self, order_id: str, db: Any) -> Order | None:
        return self._load(order_id)

    async def get_by_id_for_update(self, order_id: str, db: Any) -> Order | None:
        self.locked.append(order_id)
        return self._load(order_id)

    async def list_orders(self, flt: OrderFilter, page: PageRequest, db: Any) -> list[Order]:
        ordered = sorted(
            self._matching(flt),
            key=_sort_key(page.sort_by),
            reverse=page.sort_order is SortOrder.DESC,
        )
        window = ordered[page.offset : page.offset + page.limit]
        return [self._load(o.id) for o in window]  # type: ignore[misc]

    async def count_orders(self, flt: OrderFilter, db: Any) -> int:
        return len(self._matching(flt))

    async def sum_totals(self, flt: OrderFilter, db: Any) -> Decimal:
        return sum((o.total for o in self._matching(flt)), Decimal("0"))

    async def update_content(self, order: Order, db: Any) -> datetime:
        stored = self.orders[order.id]
        for name in (
            "customer_name", "customer_email", "customer_phone", "shipping_address", "notes"
        ):
            setattr(stored, name, getattr(order, name))
        stored.updated_at = stored.updated_at + timedelta(minutes=1)
        return stored.updated_at

    async def update_status(self, order_id: str, status: OrderStatus, db: Any) -> datetime:
        stored = self.orders[order_id]
        stored.status = status
        stored.updated_at = stored.updated_at + timedelta(minutes=1)
        return stored.updated_at

    async def delete(self, order_id: str, db: Any) -> None:
        self.items.pop(order_id, None)
        self.orders.pop(order_id, None)


class InMemoryConversationRepository:
    """Behaves like ConversationRepository; messages keep insertion order."""

    def __init__(self) -> None:
        self.conversations: dict[str, Conversation] = {}
        self.messages: list[Message] = []
        self.clock = BASE_TIME

    async def create(self, conversation: Conversation, db: Any) -> None:
        self.conversations[conversation.id] = copy.deepcopy(conversation)

    async def get_owned(self, conversation_id: str, owner_id: str, db: Any) -> Conversation | None:
        conv = self.conversations.get(conversation_id)
        if conv is None or conv.owner_id != owner_id:
            return None
        return copy.deepcopy(conv)

    async def list_for_owner(
        self, owner_id: str, limit: int, offset: int, db: Any
    ) -> list[Conversation]:
        owned = sorted(
            (c for c in self.conversations.values() if c.owner_id == owner_id),
            key=lambda c: c.updated_at,
            reverse=True,
        )
        return [copy.deepcopy(c) for c in owned[offset : offset + limit]]

    async def count_for_owner(self, owner_id: str, db: Any) -> int:
        return sum(1 for c in self.conversations.values() if c.owner_id == owner_id)

    async def add_message(self, message: Message, db: Any) -> None:
        self.messages.append(copy.deepcopy(message))

    async def touch(self, conversation_id: str, last_message: str, added: int, db: Any) -> datetime:
        conv = self.conversations[conversation_id]
        self.clock = self.clock + timedelta(minutes=1)
        conv.last_message = last_message
        conv.message_count += added
        conv.updated_at = self.clock
        return conv.updated_at

    async def get_message(
        self, message_id: str, conversation_id: str, db: Any
    ) -> Message | None:
        for msg in self.messages:
            if msg.id == message_id and msg.conversation_id == conversation_id:
                return copy.deepcopy(msg)
        return None

    async def list_messages(
        self, conversation_id: str, limit: int, before: Message | None, db: Any
    ) -> list[Message]:
        thread = [m for m in self.messages if m.conversation_id == conversation_id]
        if before is not None:
            cut = next(i for i, m in enumerate(thread) if m.id == before.id)
            thread = thread[:cut]
        return [copy.deepcopy(m) for m in thread[-limit:]]

    async def delete(self, conversation_id: str, db: Any) -> None:
        self.messages = [m for m in self.messages if m.conversation_id != conversation_id]
        self.conversations.pop(conversation_id, None)


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def fake_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def order_factory() -> Callable[..., Order]:
    return make_order


@pytest.fixture
def repo_factory() -> Callable[..., InMemoryOrderRepository]:
    return InMemoryOrderRepository


@pytest.fixture
def conversations() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()
