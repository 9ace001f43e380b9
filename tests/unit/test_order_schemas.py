"""Unit tests for oc_order Pydantic schemas."""
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.application.schemas import (
    CreateOrderRequest,
    OrderListQuery,
    OrderResponse,
    UpdateOrderRequest,
    UpdateOrderStatusRequest,
)
from src.oc_order.domain.models import Address

_ADDRESS = {
    "street": "123 Main St",
    "city": "New York",
    "state": "NY",
    "zip_code": "10001",
    "country": "USA",
}


def _create_body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "customer_name": "John Doe",
        "customer_email": "john@example.com",
        "shipping_address": _ADDRESS,
        "items": [{"product_id": "p1", "name": "A", "quantity": 2, "unit_price": "29.99"}],
    }
    body.update(overrides)
    return body


class TestCreateOrderRequest:
    def test_valid_request(self) -> None:
        req = CreateOrderRequest.model_validate(_create_body())
        assert req.billing_address is None
        assert req.items[0].unit_price == Decimal("29.99")

    def test_empty_items_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(_create_body(items=[]))

    @pytest.mark.parametrize(
        "item",
        [
            {"product_id": "p1", "name": "A", "quantity": 0, "unit_price": "1.00"},
            {"product_id": "p1", "name": "A", "quantity": 1, "unit_price": "-0.01"},
            {"product_id": "p1", "name": "A", "quantity": 1, "unit_price": "1.001"},
            {"product_id": "", "name": "A", "quantity": 1, "unit_price": "1.00"},
        ],
    )
    def test_invalid_item_rejected(self, item: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(_create_body(items=[item]))

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(_create_body(customer_email="not-an-email"))

    def test_incomplete_address_rejected(self) -> None:
        address = dict(_ADDRESS)
        del address["zip_code"]
        with pytest.raises(ValidationError):
            CreateOrderRequest.model_validate(_create_body(shipping_address=address))


class TestUpdateOrderRequest:
    def test_changes_only_sent_fields(self) -> None:
        req = UpdateOrderRequest.model_validate({"notes": "leave at door"})
        assert req.changes() == {"notes": "leave at door"}

    def test_address_converted_to_domain(self) -> None:
        req = UpdateOrderRequest.model_validate({"shipping_address": _ADDRESS})
        assert req.changes() == {"shipping_address": Address(**_ADDRESS)}

    def test_optional_field_can_be_cleared(self) -> None:
        req = UpdateOrderRequest.model_validate({"customer_phone": None})
        assert req.changes() == {"customer_phone": None}

    @pytest.mark.parametrize("field", ["customer_name", "customer_email", "shipping_address"])
    def test_required_field_cannot_be_nulled(self, field: str) -> None:
        with pytest.raises(ValidationError):
            UpdateOrderRequest.model_validate({field: None})

    @pytest.mark.parametrize(
        "field",
        [
            "items",
            "status",
            "total",
            "order_number",
            "owner_id",
            "billing_address",
        ],
    )
    def test_non_editable_fields_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            UpdateOrderRequest.model_validate({field: "x"})

    def test_empty_update_is_noop(self) -> None:
        assert UpdateOrderRequest.model_validate({}).changes() == {}


class TestUpdateOrderStatusRequest:
    def test_valid(self) -> None:
        req = UpdateOrderStatusRequest.model_validate({"status": "shipped", "reason": "carrier"})
        assert req.status is OrderStatus.SHIPPED

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UpdateOrderStatusRequest.model_validate({"status": "lost"})


class TestOrderListQuery:
    def test_defaults(self) -> None:
        q = OrderListQuery()
        assert (q.page, q.limit) == (1, 10)
        assert q.sort_by is OrderSortField.CREATED_AT
        assert q.sort_order is SortOrder.DESC

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort_by": "password"}, {"sort_order": "up"}],
    )
    def test_out_of_range_rejected(self, params: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            OrderListQuery.model_validate(params)

    def test_inverted_date_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OrderListQuery(
                start_date=datetime(2026, 2, 1, tzinfo=UTC),
                end_date=datetime(2026, 1, 1, tzinfo=UTC),
            )

    def test_naive_bound_read_as_utc(self) -> None:
        q = OrderListQuery.model_validate(
            {"start_date": "2025-01-01T00:00:00", "end_date": "2026-12-31T00:00:00Z"}
        )
        assert q.start_date == datetime(2025, 1, 1, tzinfo=UTC)
        assert q.end_date is not None and q.end_date.tzinfo is not None

    def test_mixed_inverted_range_still_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OrderListQuery.model_validate(
                {"start_date": "2026-02-01T00:00:00", "end_date": "2026-01-01T00:00:00Z"}
            )


class TestOrderResponse:
    def test_from_domain_serializes_money_exactly(self, order_factory) -> None:
        data = OrderResponse.from_domain(order_factory()).model_dump(mode="json")
        assert data["total"] == "70.3782"
        assert data["tax"] == "5.3982"
        assert data["status"] == "pending"
        assert data["items"][0]["line_total"] == "59.98"
        assert data["shipping_address"]["zip_code"] == "10001"
