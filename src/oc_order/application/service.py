# src/oc_order/application/service.py
"""OrderApplicationService — composes scope, guard, state machine and pricing.

Mutations (transition, content edit, delete) lock the order row with
``SELECT ... FOR UPDATE`` inside ``transaction(db)`` and run their checks
against the locked row. Any error rolls back the whole unit.
Reads run without a transaction; page and count are separate queries.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.oc_common.database import transaction
from src.oc_common.datetime_utils import utc_now
from src.oc_common.errors import (
    InvalidTransitionError,
    OrderNotFoundError,
    OrderNumberExhaustedError,
)
from src.oc_common.id_generator import (
    OrderNumberGenerator,
    generate_item_id,
    generate_order_id,
)
from src.oc_order.application.schemas import (
    CreateOrderRequest,
    DeleteOrderResponse,
    OrderCreatedResponse,
    OrderListQuery,
    OrderListResponse,
    OrderResponse,
    OrderUpdatedResponse,
    PageMetaResponse,
    UpdateOrderRequest,
    UpdateOrderStatusRequest,
)
from src.oc_order.domain import guard, state_machine
from src.oc_order.domain.access import (
    Caller,
    OrderAction,
    authorize,
    authorize_action,
    enforce,
    resolve_scope,
)
from src.oc_order.domain.models import Order, OrderItem
from src.oc_order.domain.pricing import PricingConfig, calculate_pricing
from src.oc_order.domain.query import OrderFilter, PageMeta, PageRequest
from src.oc_order.domain.repository import OrderRepositoryProtocol
from src.oc_order.infrastructure.persistence import OrderRepository, is_order_number_conflict

logger = logging.getLogger(__name__)


def default_pricing_config() -> PricingConfig:
    return PricingConfig(tax_rate=settings.TAX_RATE, shipping_fee=settings.SHIPPING_FEE)


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        pricing: PricingConfig | None = None,
        order_numbers: OrderNumberGenerator | None = None,
        max_number_attempts: int | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._pricing = pricing or default_pricing_config()
        self._order_numbers = order_numbers or OrderNumberGenerator()
        self._max_number_attempts = max_number_attempts or settings.ORDER_NUMBER_MAX_ATTEMPTS

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_orders(
        self, db: AsyncSession, caller: Caller, query: OrderListQuery
    ) -> OrderListResponse:
        flt = OrderFilter(
            scope=resolve_scope(caller),
            status=query.status,
            start_date=query.start_date,
            end_date=query.end_date,
        )
        page = PageRequest(
            page=query.page,
            limit=query.limit,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
        )
        orders = await self._repo.list_orders(flt, page, db)
        total = await self._repo.count_orders(flt, db)
        return OrderListResponse(
            data=[OrderResponse.from_domain(o) for o in orders],
            meta=PageMetaResponse.from_domain(PageMeta.build(total, page)),
        )

    async def get_order(
        self, db: AsyncSession, caller: Caller, order_id: str
    ) -> OrderResponse:
        order = await self._repo.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        enforce(authorize(caller, OrderAction.READ, order))
        return OrderResponse.from_domain(order)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, caller: Caller, req: CreateOrderRequest
    ) -> OrderCreatedResponse:
        items = [
            OrderItem(
                id=generate_item_id(),
                product_id=i.product_id,
                name=i.name,
                quantity=i.quantity,
                unit_price=i.unit_price,
            )
            for i in req.items
        ]
        pricing = calculate_pricing(items, self._pricing)
        shipping_address = req.shipping_address.to_domain()
        now = utc_now()
        # A concurrent create can take the drawn number between the existence
        # check and the insert; the UNIQUE constraint catches it and we redraw.
        for attempt in range(1, self._max_number_attempts + 1):
            order_number = ""
            try:
                async with transaction(db):
                    order_number = await self._allocate_order_number(db, now.year)
                    order = Order(
                        id=generate_order_id(),
                        order_number=order_number,
                        owner_id=caller.user_id,
                        customer_name=req.customer_name,
                        customer_email=str(req.customer_email),
                        customer_phone=req.customer_phone,
                        shipping_address=shipping_address,
                        billing_address=(
                            req.billing_address.to_domain()
                            if req.billing_address
                            else shipping_address
                        ),
                        items=items,
                        subtotal=pricing.subtotal,
                        discount=pricing.discount,
                        tax=pricing.tax,
                        shipping=pricing.shipping,
                        total=pricing.total,
                        status=state_machine.INITIAL_STATUS,
                        notes=req.notes,
                        created_at=now,
                        updated_at=now,
                    )
                    await self._repo.save(order, db)
                break
            except IntegrityError as exc:
                if not is_order_number_conflict(exc):
                    raise
                logger.warning(
                    "order number taken concurrently number=%s attempt=%d", order_number, attempt
                )
        else:
            raise OrderNumberExhaustedError(self._max_number_attempts)
        logger.info(
            "order created id=%s number=%s owner=%s total=%s",
            order.id, order.order_number, order.owner_id, order.total,
        )
        return OrderCreatedResponse(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            total=order.total,
            created_at=order.created_at,
        )

    async def update_order(
        self, db: AsyncSession, caller: Caller, order_id: str, req: UpdateOrderRequest
    ) -> OrderUpdatedResponse:
        async with transaction(db):
            order = await self._load_locked(db, order_id)
            enforce(authorize(caller, OrderAction.EDIT, order))
            guard.ensure_editable(order)
            changed = guard.apply_content_changes(order, req.changes())
            order.updated_at = await self._repo.update_content(order, db)
        logger.info("order edited id=%s by=%s fields=%s", order.id, caller.user_id, changed)
        return OrderUpdatedResponse(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            updated_at=order.updated_at,
        )

    async def update_status(
        self, db: AsyncSession, caller: Caller, order_id: str, req: UpdateOrderStatusRequest
    ) -> OrderUpdatedResponse:
        """Move an order along the status state machine (admin only)."""
        enforce(authorize_action(caller, OrderAction.TRANSITION))
        async with transaction(db):
            order = await self._load_locked(db, order_id)
            enforce(authorize(caller, OrderAction.TRANSITION, order))
            previous = order.status
            try:
                state_machine.ensure_transition(previous, req.status)
            except InvalidTransitionError:
                logger.warning(
                    "rejected transition id=%s %s -> %s", order.id, previous.value, req.status.value
                )
                raise
            order.updated_at = await self._repo.update_status(order.id, req.status, db)
            order.status = req.status
        logger.info(
            "order status id=%s %s -> %s by=%s reason=%s",
            order.id, previous.value, order.status.value, caller.user_id, req.reason,
        )
        return OrderUpdatedResponse(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            updated_at=order.updated_at,
        )

    async def delete_order(
        self, db: AsyncSession, caller: Caller, order_id: str
    ) -> DeleteOrderResponse:
        async with transaction(db):
            order = await self._load_locked(db, order_id)
            enforce(authorize(caller, OrderAction.DELETE, order))
            guard.ensure_deletable(order)
            await self._repo.delete(order.id, db)
        logger.info("order deleted id=%s by=%s", order.id, caller.user_id)
        return DeleteOrderResponse(id=order.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_locked(self, db: AsyncSession, order_id: str) -> Order:
        order = await self._repo.get_by_id_for_update(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _allocate_order_number(self, db: AsyncSession, year: int) -> str:
        for _ in range(self._max_number_attempts):
            candidate = self._order_numbers.next_number(year)
            if not await self._repo.order_number_exists(candidate, db):
                return candidate
        raise OrderNumberExhaustedError(self._max_number_attempts)
