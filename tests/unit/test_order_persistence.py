# tests/unit/test_order_persistence.py
"""Unit tests for OrderRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.domain.access import OrderScope
from src.oc_order.domain.models import Address
from src.oc_order.domain.query import OrderFilter, PageRequest
from src.oc_order.infrastructure.db_models import OrderItemORM, OrderORM
from src.oc_order.infrastructure.persistence import (
    _INSERT_ITEM_SQL,
    _SELECT_COLUMNS,
    OrderRepository,
    _list_orders_sql,
)

_ADDRESS_DICT = {
    "street": "123 Main St",
    "city": "New York",
    "state": "NY",
    "zip_code": "10001",
    "country": "USA",
}


def _make_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "ord_1")
    row.order_number = kwargs.get("order_number", "ORD-2026-1001")
    row.owner_id = kwargs.get("owner_id", "user-1")
    row.customer_name = kwargs.get("customer_name", "John Doe")
    row.customer_email = kwargs.get("customer_email", "john@example.com")
    row.customer_phone = kwargs.get("customer_phone")
    row.shipping_address = kwargs.get("shipping_address", _ADDRESS_DICT)
    row.billing_address = kwargs.get("billing_address", _ADDRESS_DICT)
    row.subtotal = kwargs.get("subtotal", Decimal("59.9800"))
    row.discount = kwargs.get("discount", Decimal("0.0000"))
    row.tax = kwargs.get("tax", Decimal("5.3982"))
    row.shipping = kwargs.get("shipping", Decimal("5.0000"))
    row.total = kwargs.get("total", Decimal("70.3782"))
    row.status = kwargs.get("status", "pending")
    row.notes = kwargs.get("notes")
    row.created_at = kwargs.get("created_at", datetime(2026, 1, 1, tzinfo=UTC))
    row.updated_at = kwargs.get("updated_at", datetime(2026, 1, 1, tzinfo=UTC))
    return row


def _make_item_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "item_1")
    row.order_id = kwargs.get("order_id", "ord_1")
    row.position = kwargs.get("position", 0)
    row.product_id = kwargs.get("product_id", "prod_abc")
    row.name = kwargs.get("name", "Product A")
    row.quantity = kwargs.get("quantity", 2)
    row.unit_price = kwargs.get("unit_price", Decimal("29.9900"))
    return row


def _fetchone(row: Any) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    return result


def _fetchall(rows: list[Any]) -> MagicMock:
    result = MagicMock()
    result.fetchall.return_value = rows
    return result


def _scalar(value: Any) -> MagicMock:
    result = MagicMock()
    result.scalar_one.return_value = value
    return result


def _sql(call: Any) -> str:
    return " ".join(str(call.args[0]).split())


class TestSave:
    async def test_inserts_order_then_items(self, order_factory) -> None:
        db = AsyncMock()
        order = order_factory()

        await OrderRepository().save(order, db)

        assert db.execute.await_count == 2
        order_call, items_call = db.execute.await_args_list
        assert "INSERT INTO orders" in _sql(order_call)
        params = order_call.args[1]
        assert params["status"] == "pending"
        assert params["shipping_address"] == _ADDRESS_DICT
        assert params["total"] == Decimal("70.3782")
        assert "INSERT INTO order_items" in _sql(items_call)
        item_params = items_call.args[1]
        assert item_params == [
            {
                "id": "item_1",
                "order_id": "ord_1",
                "position": 0,
                "product_id": "prod_abc",
                "name": "Product A",
                "quantity": 2,
                "unit_price": Decimal("29.99"),
                "line_total": Decimal("59.98"),
            }
        ]


class TestGet:
    async def test_get_by_id_maps_row_and_items(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [_fetchone(_make_row()), _fetchall([_make_item_row()])]

        order = await OrderRepository().get_by_id("ord_1", db)

        assert order is not None
        assert order.status is OrderStatus.PENDING
        assert order.shipping_address == Address.from_dict(_ADDRESS_DICT)
        assert order.total == Decimal("70.3782")
        assert len(order.items) == 1
        assert order.items[0].line_total == Decimal("59.98")

    async def test_address_stored_as_text_is_decoded(self) -> None:
        db = AsyncMock()
        raw = '{"street": "1 A St", "city": "X", "state": "Y", "zip_code": "1", "country": "Z"}'
        db.execute.side_effect = [_fetchone(_make_row(billing_address=raw)), _fetchall([])]

        order = await OrderRepository().get_by_id("ord_1", db)

        assert order is not None
        assert order.billing_address == Address("1 A St", "X", "Y", "1", "Z")
        assert order.items == []

    async def test_get_by_id_returns_none_when_not_found(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _fetchone(None)
        assert await OrderRepository().get_by_id("missing", db) is None
        db.execute.assert_awaited_once()

    async def test_for_update_locks_row(self) -> None:
        db = AsyncMock()
        db.execute.side_effect = [_fetchone(_make_row()), _fetchall([])]

        await OrderRepository().get_by_id_for_update("ord_1", db)

        assert "FOR UPDATE" in _sql(db.execute.await_args_list[0])

    async def test_order_number_exists(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _fetchone(MagicMock())
        assert await OrderRepository().order_number_exists("ORD-2026-1001", db) is True
        db.execute.return_value = _fetchone(None)
        assert await OrderRepository().order_number_exists("ORD-2026-1002", db) is False


class TestList:
    async def test_empty_page_skips_item_query(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _fetchall([])

        flt = OrderFilter(scope=OrderScope())
        orders = await OrderRepository().list_orders(flt, PageRequest(page=4), db)

        assert orders == []
        db.execute.assert_awaited_once()

    async def test_filter_and_window_params(self) -> None:
        db = AsyncMock()
        rows = [_make_row(id="ord_1"), _make_row(id="ord_2")]
        items = [_make_item_row(order_id="ord_2", id="item_9"), _make_item_row()]
        db.execute.side_effect = [_fetchall(rows), _fetchall(items)]
        start = datetime(2026, 1, 1, tzinfo=UTC)
        flt = OrderFilter(
            scope=OrderScope(owner_id="user-1"),
            status=OrderStatus.PENDING,
            start_date=start,
            end_date=start + timedelta(days=1),
        )

        orders = await OrderRepository().list_orders(flt, PageRequest(page=3, limit=10), db)

        page_call, items_call = db.execute.await_args_list
        assert page_call.args[1] == {
            "owner_id": "user-1",
            "status": "pending",
            "start_date": start,
            "end_date": start + timedelta(days=1),
            "limit": 10,
            "offset": 20,
        }
        assert items_call.args[1] == {"order_ids_csv": "ord_1,ord_2"}
        assert [o.id for o in orders] == ["ord_1", "ord_2"]
        assert [i.id for i in orders[1].items] == ["item_9"]

    async def test_unrestricted_scope_passes_null_owner(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _scalar(7)

        total = await OrderRepository().count_orders(OrderFilter(scope=OrderScope()), db)

        assert total == 7
        assert db.execute.await_args.args[1]["owner_id"] is None
        assert db.execute.await_args.args[1]["status"] is None

    async def test_sum_totals(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _scalar(Decimal("140.7564"))
        total = await OrderRepository().sum_totals(OrderFilter(scope=OrderScope()), db)
        assert total == Decimal("140.7564")
        assert "SUM(total)" in _sql(db.execute.await_args)

    @pytest.mark.parametrize(
        ("field", "order", "expected"),
        [
            (OrderSortField.CREATED_AT, SortOrder.DESC, "ORDER BY created_at DESC"),
            (OrderSortField.TOTAL, SortOrder.ASC, "ORDER BY total ASC"),
            (OrderSortField.CUSTOMER_NAME, SortOrder.ASC, "ORDER BY customer_name ASC"),
        ],
    )
    def test_order_by_uses_whitelisted_column(
        self, field: OrderSortField, order: SortOrder, expected: str
    ) -> None:
        sql = " ".join(str(_list_orders_sql(PageRequest(sort_by=field, sort_order=order))).split())
        assert expected in sql
        assert "LIMIT :limit OFFSET :offset" in sql


class TestMutations:
    async def test_update_content_returns_new_timestamp(self, order_factory) -> None:
        db = AsyncMock()
        stamp = datetime(2026, 1, 2, tzinfo=UTC)
        db.execute.return_value = _scalar(stamp)
        order = order_factory(customer_name="Jane Roe")

        updated_at = await OrderRepository().update_content(order, db)

        assert updated_at == stamp
        params = db.execute.await_args.args[1]
        assert params["customer_name"] == "Jane Roe"
        assert params["shipping_address"] == _ADDRESS_DICT
        assert "status" not in params
        assert "total" not in params

    async def test_update_status_writes_value(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _scalar(datetime(2026, 1, 2, tzinfo=UTC))

        await OrderRepository().update_status("ord_1", OrderStatus.SHIPPED, db)

        assert db.execute.await_args.args[1] == {"id": "ord_1", "status": "shipped"}

    async def test_delete_removes_items_then_order(self) -> None:
        db = AsyncMock()

        await OrderRepository().delete("ord_1", db)

        items_call, order_call = db.execute.await_args_list
        assert "DELETE FROM order_items" in _sql(items_call)
        assert "DELETE FROM orders" in _sql(order_call)
        db.commit.assert_not_awaited()


class TestSchemaMirror:
    def test_select_columns_match_orm(self) -> None:
        selected = {c.strip() for c in _SELECT_COLUMNS.split(",")}
        assert selected == set(OrderORM.__table__.columns.keys())

    def test_item_insert_covers_orm_columns(self) -> None:
        insert_sql = str(_INSERT_ITEM_SQL)
        for column in OrderItemORM.__table__.columns.keys():
            assert f":{column}" in insert_sql
