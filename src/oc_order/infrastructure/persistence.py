# src/oc_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
Mutating methods never commit; the application service owns the transaction.
"""
import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import TextClause, bindparam, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.domain.models import Address, Order, OrderItem
from src.oc_order.domain.query import OrderFilter, PageRequest

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, order_number, owner_id,
        customer_name, customer_email, customer_phone,
        shipping_address, billing_address,
        subtotal, discount, tax, shipping, total,
        status, notes, created_at, updated_at)
    VALUES (:id, :order_number, :owner_id,
        :customer_name, :customer_email, :customer_phone,
        :shipping_address, :billing_address,
        :subtotal, :discount, :tax, :shipping, :total,
        :status, :notes, :created_at, :updated_at)
""").bindparams(
    bindparam("shipping_address", type_=JSONB),
    bindparam("billing_address", type_=JSONB),
)

_INSERT_ITEM_SQL = text("""
    INSERT INTO order_items (id, order_id, position, product_id, name,
        quantity, unit_price, line_total)
    VALUES (:id, :order_id, :position, :product_id, :name,
        :quantity, :unit_price, :line_total)
""")

_ORDER_NUMBER_EXISTS_SQL = text("""
    SELECT 1 FROM orders WHERE order_number = :order_number
""")

_SELECT_COLUMNS = """
    id, order_number, owner_id,
    customer_name, customer_email, customer_phone,
    shipping_address, billing_address,
    subtotal, discount, tax, shipping, total,
    status, notes, created_at, updated_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

_ITEMS_FOR_ORDERS_SQL = text("""
    SELECT id, order_id, position, product_id, name, quantity, unit_price
    FROM order_items
    WHERE order_id = ANY(string_to_array(CAST(:order_ids_csv AS TEXT), ','))
    ORDER BY order_id, position
""")

# Shared by the page, count and sum queries so they always agree on the set.
_FILTER_WHERE = """
    WHERE (CAST(:owner_id AS TEXT) IS NULL OR owner_id = CAST(:owner_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:start_date AS TIMESTAMPTZ) IS NULL
           OR created_at >= CAST(:start_date AS TIMESTAMPTZ))
      AND (CAST(:end_date AS TIMESTAMPTZ) IS NULL
           OR created_at <= CAST(:end_date AS TIMESTAMPTZ))
"""

_COUNT_ORDERS_SQL = text(f"SELECT COUNT(*) FROM orders {_FILTER_WHERE}")

_SUM_TOTALS_SQL = text(f"SELECT COALESCE(SUM(total), 0) FROM orders {_FILTER_WHERE}")

# Whitelisted ORDER BY columns; values never come from user input directly.
_SORT_COLUMNS: dict[OrderSortField, str] = {
    OrderSortField.CREATED_AT: "created_at",
    OrderSortField.UPDATED_AT: "updated_at",
    OrderSortField.TOTAL: "total",
    OrderSortField.ORDER_NUMBER: "order_number",
    OrderSortField.STATUS: "status",
    OrderSortField.CUSTOMER_NAME: "customer_name",
}

_SORT_DIRECTIONS: dict[SortOrder, str] = {
    SortOrder.ASC: "ASC",
    SortOrder.DESC: "DESC",
}

_UPDATE_CONTENT_SQL = text("""
    UPDATE orders
    SET customer_name = :customer_name, customer_email = :customer_email,
        customer_phone = :customer_phone, shipping_address = :shipping_address,
        notes = :notes, updated_at = NOW()
    WHERE id = :id
    RETURNING updated_at
""").bindparams(bindparam("shipping_address", type_=JSONB))

_UPDATE_STATUS_SQL = text("""
    UPDATE orders
    SET status = :status, updated_at = NOW()
    WHERE id = :id
    RETURNING updated_at
""")

_DELETE_ITEMS_SQL = text("DELETE FROM order_items WHERE order_id = :id")

_DELETE_ORDER_SQL = text("DELETE FROM orders WHERE id = :id")


def _list_orders_sql(page: PageRequest) -> TextClause:
    column = _SORT_COLUMNS[page.sort_by]
    direction = _SORT_DIRECTIONS[page.sort_order]
    return text(f"""
        SELECT {_SELECT_COLUMNS}
        FROM orders
        {_FILTER_WHERE}
        ORDER BY {column} {direction}
        LIMIT :limit OFFSET :offset
    """)


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _load_address(value: Any) -> Address:
    # asyncpg's jsonb codec hands back a dict; fall back for plain text
    if isinstance(value, str):
        value = json.loads(value)
    return Address.from_dict(value)


def _row_to_item(row: Any) -> OrderItem:
    return OrderItem(
        id=row.id,
        product_id=row.product_id,
        name=row.name,
        quantity=row.quantity,
        unit_price=row.unit_price,
    )


def _row_to_order(row: Any, items: list[OrderItem]) -> Order:
    """Convert a DB result row plus its loaded items to an Order domain object."""
    return Order(
        id=row.id,
        order_number=row.order_number,
        owner_id=row.owner_id,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        customer_phone=row.customer_phone,
        shipping_address=_load_address(row.shipping_address),
        billing_address=_load_address(row.billing_address),
        items=items,
        subtotal=row.subtotal,
        discount=row.discount,
        tax=row.tax,
        shipping=row.shipping,
        total=row.total,
        status=OrderStatus(row.status),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


ORDER_NUMBER_CONSTRAINT = "uq_orders_order_number"


def is_order_number_conflict(exc: IntegrityError) -> bool:
    """True when the insert lost a race for an order number."""
    return ORDER_NUMBER_CONSTRAINT in str(exc.orig)


def _filter_params(flt: OrderFilter) -> dict[str, Any]:
    return {
        "owner_id": flt.scope.owner_id,
        "status": flt.status.value if flt.status else None,
        "start_date": flt.start_date,
        "end_date": flt.end_date,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "order_number": order.order_number,
                "owner_id": order.owner_id,
                "customer_name": order.customer_name,
                "customer_email": order.customer_email,
                "customer_phone": order.customer_phone,
                "shipping_address": order.shipping_address.to_dict(),
                "billing_address": order.billing_address.to_dict(),
                "subtotal": order.subtotal,
                "discount": order.discount,
                "tax": order.tax,
                "shipping": order.shipping,
                "total": order.total,
                "status": order.status.value,
                "notes": order.notes,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            },
        )
        await db.execute(
            _INSERT_ITEM_SQL,
            [
                {
                    "id": item.id,
                    "order_id": order.id,
                    "position": position,
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "line_total": item.line_total,
                }
                for position, item in enumerate(order.items)
            ],
        )

    async def order_number_exists(self, order_number: str, db: AsyncSession) -> bool:
        result = await db.execute(_ORDER_NUMBER_EXISTS_SQL, {"order_number": order_number})
        return result.fetchone() is not None

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        items = await self._load_items([row.id], db)
        return _row_to_order(row, items.get(row.id, []))

    async def get_by_id_for_update(self, order_id: str, db: AsyncSession) -> Order | None:
        """Lock the order row for the rest of the caller's transaction."""
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        items = await self._load_items([row.id], db)
        return _row_to_order(row, items.get(row.id, []))

    async def list_orders(
        self, flt: OrderFilter, page: PageRequest, db: AsyncSession
    ) -> list[Order]:
        params = _filter_params(flt)
        params.update({"limit": page.limit, "offset": page.offset})
        result = await db.execute(_list_orders_sql(page), params)
        rows = result.fetchall()
        if not rows:
            return []
        items = await self._load_items([row.id for row in rows], db)
        return [_row_to_order(row, items.get(row.id, [])) for row in rows]

    async def count_orders(self, flt: OrderFilter, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_ORDERS_SQL, _filter_params(flt))
        return int(result.scalar_one())

    async def sum_totals(self, flt: OrderFilter, db: AsyncSession) -> Decimal:
        result = await db.execute(_SUM_TOTALS_SQL, _filter_params(flt))
        return Decimal(result.scalar_one())

    async def update_content(self, order: Order, db: AsyncSession) -> datetime:
        result = await db.execute(
            _UPDATE_CONTENT_SQL,
            {
                "id": order.id,
                "customer_name": order.customer_name,
                "customer_email": order.customer_email,
                "customer_phone": order.customer_phone,
                "shipping_address": order.shipping_address.to_dict(),
                "notes": order.notes,
            },
        )
        updated_at: datetime = result.scalar_one()
        return updated_at

    async def update_status(
        self, order_id: str, status: OrderStatus, db: AsyncSession
    ) -> datetime:
        result = await db.execute(_UPDATE_STATUS_SQL, {"id": order_id, "status": status.value})
        updated_at: datetime = result.scalar_one()
        return updated_at

    async def delete(self, order_id: str, db: AsyncSession) -> None:
        # Same transaction: items and order disappear together or not at all.
        await db.execute(_DELETE_ITEMS_SQL, {"id": order_id})
        await db.execute(_DELETE_ORDER_SQL, {"id": order_id})

    async def _load_items(
        self, order_ids: list[str], db: AsyncSession
    ) -> dict[str, list[OrderItem]]:
        result = await db.execute(
            _ITEMS_FOR_ORDERS_SQL, {"order_ids_csv": ",".join(order_ids)}
        )
        grouped: dict[str, list[OrderItem]] = {}
        for row in result.fetchall():
            grouped.setdefault(row.order_id, []).append(_row_to_item(row))
        return grouped
